"""Declarative job files.

A job file describes one job under a top-level `job` table, in TOML or
YAML. Example (TOML):

    [job]
    role = "www-data"
    environment = "prod"
    name = "hello_world"
    instances = 3
    service = true

    [job.resources]
    cpu = 0.5
    ram = 128
    disk = 256

    [job.ports]
    named = ["http"]
    anonymous = 1

    [[job.constraints]]
    name = "zone"
    values = ["us-east-1a"]

    [[job.constraints]]
    name = "host"
    limit = 1

    [job.container]
    type = "docker"
    image = "nginx:1.27"

Values are passed to the builder as-is; only the shape of the file is
checked here.
"""

import tomllib
from pathlib import Path
from typing import Union

import yaml

from aurora_jobs.jobs.builder import AuroraJob
from aurora_jobs.jobs.container import Container, DockerContainer, MesosContainer


class JobFileError(ValueError):
    """A job file is unreadable or structurally malformed."""


def _as_list(value, where: str) -> list:
    if not isinstance(value, list):
        raise JobFileError(f"{where} must be a list, got {type(value).__name__}")
    return value


def _build_container(data: dict) -> Container:
    container_type = data.get("type", "mesos")

    if container_type == "mesos":
        container = MesosContainer()
        image = data.get("image")
        if isinstance(image, dict):
            if "docker" in image:
                container.docker_image(image["docker"]["name"], image["docker"]["tag"])
            elif "appc" in image:
                container.appc_image(image["appc"]["name"], image["appc"]["image_id"])
            else:
                raise JobFileError(f"Unknown mesos image type: {sorted(image)}")
        for volume in data.get("volumes", []):
            container.add_volume(
                volume["host_path"], volume["container_path"], volume.get("mode", "RW")
            )
        return container

    if container_type == "docker":
        container = DockerContainer(data.get("image", ""))
        for name, value in data.get("parameters", {}).items():
            container.add_parameter(name, str(value))
        return container

    raise JobFileError(f"Unknown container type: {container_type}")


def job_from_dict(data: dict, config=None) -> AuroraJob:
    """Build a job from a parsed job file.

    Args:
        data: Parsed file contents with a top-level "job" table
        config: Optional Config whose defaults seed the builder

    Returns:
        Populated AuroraJob

    Raises:
        JobFileError: If the file structure is malformed
    """
    spec = data.get("job")
    if not isinstance(spec, dict):
        raise JobFileError("Job file must contain a [job] table")

    job = config.new_job() if config is not None else AuroraJob()

    try:
        if "role" in spec:
            job.set_role(spec["role"])
        if "environment" in spec:
            job.set_environment(spec["environment"])
        if "name" in spec:
            job.set_name(spec["name"])

        if "instances" in spec:
            job.set_instance_count(spec["instances"])
        if "service" in spec:
            job.set_is_service(spec["service"])
        if "max_failures" in spec:
            job.set_max_failures(spec["max_failures"])
        if "tier" in spec:
            job.set_tier(spec["tier"])
        if "cron_schedule" in spec:
            job.set_cron_schedule(spec["cron_schedule"])
        if "cron_collision_policy" in spec:
            job.set_cron_collision_policy(spec["cron_collision_policy"])

        resources = spec.get("resources", {})
        if "cpu" in resources:
            job.set_cpu(float(resources["cpu"]))
        if "ram" in resources:
            job.set_ram(resources["ram"])
        if "disk" in resources:
            job.set_disk(resources["disk"])

        executor = spec.get("executor", {})
        if "name" in executor:
            job.set_executor_name(executor["name"])
        if "data" in executor:
            job.set_executor_data(executor["data"])

        # Named ports first, so anonymous names continue after them
        ports = spec.get("ports", {})
        named = _as_list(ports.get("named", []), "ports.named")
        if named:
            job.add_named_ports(*named)
        if ports.get("anonymous"):
            job.add_ports(ports["anonymous"])

        constraints = _as_list(spec.get("constraints", []), "constraints")
        for i, constraint in enumerate(constraints):
            has_values = "values" in constraint
            has_limit = "limit" in constraint
            if has_values == has_limit:
                raise JobFileError(
                    f"constraints[{i}] must have exactly one of 'values' or 'limit'"
                )
            if has_values:
                job.add_value_constraint(
                    constraint["name"],
                    constraint.get("negated", False),
                    *_as_list(constraint["values"], f"constraints[{i}].values"),
                )
            else:
                job.add_limit_constraint(constraint["name"], constraint["limit"])

        for dedicated in _as_list(spec.get("dedicated", []), "dedicated"):
            job.add_dedicated_constraint(dedicated["role"], dedicated["name"])

        for uri in _as_list(spec.get("uris", []), "uris"):
            job.add_uris(uri.get("extract", False), uri.get("cache", False), uri["value"])

        for key, value in spec.get("labels", {}).items():
            job.add_label(key, str(value))

        if "container" in spec:
            job.set_container(_build_container(spec["container"]))

    except JobFileError:
        raise
    except KeyError as e:
        raise JobFileError(f"Missing required key in job file: {e}") from e
    except (TypeError, AttributeError, ValueError) as e:
        raise JobFileError(f"Malformed job file: {e}") from e

    return job


def load_job_file(path: Union[str, Path], config=None) -> AuroraJob:
    """Load a TOML or YAML job file and build the job it describes.

    Args:
        path: Path to a .toml, .yaml or .yml file
        config: Optional Config whose defaults seed the builder

    Raises:
        JobFileError: If the file cannot be read, parsed or built
    """
    path = Path(path)
    try:
        if path.suffix in (".yaml", ".yml"):
            with open(path, "r") as f:
                data = yaml.safe_load(f)
        else:
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except OSError as e:
        raise JobFileError(f"Cannot read job file {path}: {e}") from e
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
        raise JobFileError(f"Failed to parse job file {path}: {e}") from e

    if not isinstance(data, dict):
        raise JobFileError(f"Job file {path} is not a mapping")

    return job_from_dict(data, config=config)
