"""Job configuration data types for scheduler submission.

This module defines the records a submission client sends to the scheduler:
the job key, the task template and everything it owns (resources, fetcher
URIs, metadata, constraints, container, executor). All types can be
converted to and from plain dictionaries for JSON serialization.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Set
import json


# Cron collision policies understood by the scheduler
CRON_COLLISION_POLICIES = ("KILL_EXISTING", "CANCEL_NEW", "RUN_OVERLAP")
DEFAULT_CRON_COLLISION_POLICY = "KILL_EXISTING"

# Volume access modes
VOLUME_MODES = ("RW", "RO")


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class JobKey:
    """Identity of a job within a cluster: (role, environment, name)."""

    role: str = ""
    environment: str = ""
    name: str = ""

    def to_dict(self) -> dict:
        return {"role": self.role, "environment": self.environment, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict) -> "JobKey":
        return cls(
            role=data.get("role", ""),
            environment=data.get("environment", ""),
            name=data.get("name", ""),
        )


@dataclass
class Identity:
    """Legacy owner identity, kept for older schema consumers."""

    user: str = ""

    def to_dict(self) -> dict:
        return {"user": self.user}

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        return cls(user=data.get("user", ""))


@dataclass
class Resource:
    """A single resource request.

    Exactly one field is populated per entry. The scheduler treats the
    resource list as a bag, so a job holds one cpu, one ram and one disk
    entry plus one entry per requested port.

    Attributes:
        num_cpus: Fractional core count
        ram_mb: Memory in megabytes
        disk_mb: Disk in megabytes
        named_port: Name of a dynamically assigned port
    """

    num_cpus: Optional[float] = None
    ram_mb: Optional[int] = None
    disk_mb: Optional[int] = None
    named_port: Optional[str] = None

    @property
    def kind(self) -> Optional[str]:
        """Name of the populated field, or None for an empty entry."""
        if self.num_cpus is not None:
            return "cpu"
        if self.ram_mb is not None:
            return "ram"
        if self.disk_mb is not None:
            return "disk"
        if self.named_port is not None:
            return "named_port"
        return None

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "num_cpus": self.num_cpus,
                "ram_mb": self.ram_mb,
                "disk_mb": self.disk_mb,
                "named_port": self.named_port,
            }
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Resource":
        return cls(
            num_cpus=data.get("num_cpus"),
            ram_mb=data.get("ram_mb"),
            disk_mb=data.get("disk_mb"),
            named_port=data.get("named_port"),
        )


@dataclass
class FetcherURI:
    """An artifact the agent downloads into the sandbox before the task starts.

    Attributes:
        value: URI of the artifact
        extract: Extract archives after download
        cache: Allow the agent to cache the artifact
    """

    value: str
    extract: bool = False
    cache: bool = False

    def to_dict(self) -> dict:
        return {"value": self.value, "extract": self.extract, "cache": self.cache}

    @classmethod
    def from_dict(cls, data: dict) -> "FetcherURI":
        return cls(
            value=data["value"],
            extract=data.get("extract", False),
            cache=data.get("cache", False),
        )


@dataclass
class Metadata:
    """A key/value label attached to the task."""

    key: str
    value: str

    def to_dict(self) -> dict:
        return {"key": self.key, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "Metadata":
        return cls(key=data["key"], value=data["value"])


@dataclass
class ValueConstraint:
    """Host attribute must (or, if negated, must not) take one of `values`."""

    negated: bool = False
    values: Set[str] = field(default_factory=set)

    def to_dict(self) -> dict:
        return {"negated": self.negated, "values": sorted(self.values)}

    @classmethod
    def from_dict(cls, data: dict) -> "ValueConstraint":
        return cls(negated=data.get("negated", False), values=set(data.get("values", [])))


@dataclass
class LimitConstraint:
    """At most `limit` active tasks per distinct host attribute value."""

    limit: int

    def to_dict(self) -> dict:
        return {"limit": self.limit}

    @classmethod
    def from_dict(cls, data: dict) -> "LimitConstraint":
        return cls(limit=data["limit"])


@dataclass
class TaskConstraint:
    """Union of a value constraint and a limit constraint.

    Exactly one of the two variants is set. Use `of_value` or `of_limit`
    rather than populating the fields directly.
    """

    value: Optional[ValueConstraint] = None
    limit: Optional[LimitConstraint] = None

    def __post_init__(self):
        if (self.value is None) == (self.limit is None):
            raise ValueError("TaskConstraint requires exactly one of value or limit")

    @classmethod
    def of_value(cls, negated: bool, values) -> "TaskConstraint":
        return cls(value=ValueConstraint(negated=negated, values=set(values)))

    @classmethod
    def of_limit(cls, limit: int) -> "TaskConstraint":
        return cls(limit=LimitConstraint(limit=limit))

    @property
    def kind(self) -> str:
        return "value" if self.value is not None else "limit"

    def to_dict(self) -> dict:
        if self.value is not None:
            return {"value": self.value.to_dict()}
        return {"limit": self.limit.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "TaskConstraint":
        if "value" in data and "limit" not in data:
            return cls(value=ValueConstraint.from_dict(data["value"]))
        if "limit" in data and "value" not in data:
            return cls(limit=LimitConstraint.from_dict(data["limit"]))
        raise ValueError(f"Constraint must have exactly one of value or limit: {data}")


@dataclass
class Constraint:
    """A placement rule bound to a host attribute name."""

    name: str
    constraint: TaskConstraint

    def to_dict(self) -> dict:
        return {"name": self.name, "constraint": self.constraint.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "Constraint":
        return cls(
            name=data["name"],
            constraint=TaskConstraint.from_dict(data["constraint"]),
        )


@dataclass
class ExecutorConfig:
    """Executor name plus an opaque payload handed to that executor."""

    name: str = ""
    data: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "data": self.data}

    @classmethod
    def from_dict(cls, data: dict) -> "ExecutorConfig":
        return cls(name=data.get("name", ""), data=data.get("data", ""))


# =============================================================================
# Container descriptors
# =============================================================================


@dataclass
class DockerImage:
    name: str
    tag: str

    def to_dict(self) -> dict:
        return {"name": self.name, "tag": self.tag}


@dataclass
class AppcImage:
    name: str
    image_id: str

    def to_dict(self) -> dict:
        return {"name": self.name, "image_id": self.image_id}


@dataclass
class Image:
    """Union of a docker image and an appc image."""

    docker: Optional[DockerImage] = None
    appc: Optional[AppcImage] = None

    def __post_init__(self):
        if (self.docker is None) == (self.appc is None):
            raise ValueError("Image requires exactly one of docker or appc")

    def to_dict(self) -> dict:
        if self.docker is not None:
            return {"docker": self.docker.to_dict()}
        return {"appc": self.appc.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "Image":
        if "docker" in data:
            return cls(docker=DockerImage(**data["docker"]))
        if "appc" in data:
            return cls(appc=AppcImage(**data["appc"]))
        raise ValueError(f"Unknown image type: {sorted(data)}")


@dataclass
class Volume:
    """A host path mounted into a process-style container."""

    container_path: str
    host_path: str
    mode: str = "RW"

    def to_dict(self) -> dict:
        return {
            "container_path": self.container_path,
            "host_path": self.host_path,
            "mode": self.mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Volume":
        return cls(
            container_path=data["container_path"],
            host_path=data["host_path"],
            mode=data.get("mode", "RW"),
        )


@dataclass
class MesosContainerConfig:
    """Process-style container, optionally running inside a filesystem image."""

    image: Optional[Image] = None
    volumes: List[Volume] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {"volumes": [v.to_dict() for v in self.volumes]}
        if self.image is not None:
            data["image"] = self.image.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MesosContainerConfig":
        image = data.get("image")
        return cls(
            image=Image.from_dict(image) if image is not None else None,
            volumes=[Volume.from_dict(v) for v in data.get("volumes", [])],
        )


@dataclass
class DockerParameter:
    """An arbitrary `docker run` parameter, e.g. ("label", "team=infra")."""

    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


@dataclass
class DockerContainerConfig:
    """Image-style container run by the docker daemon."""

    image: str = ""
    parameters: List[DockerParameter] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "image": self.image,
            "parameters": [p.to_dict() for p in self.parameters],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DockerContainerConfig":
        return cls(
            image=data.get("image", ""),
            parameters=[DockerParameter(**p) for p in data.get("parameters", [])],
        )


@dataclass
class ContainerConfig:
    """Union over the two container variants; exactly one is set."""

    mesos: Optional[MesosContainerConfig] = None
    docker: Optional[DockerContainerConfig] = None

    def __post_init__(self):
        if (self.mesos is None) == (self.docker is None):
            raise ValueError("ContainerConfig requires exactly one of mesos or docker")

    @property
    def kind(self) -> str:
        return "mesos" if self.mesos is not None else "docker"

    def to_dict(self) -> dict:
        if self.mesos is not None:
            return {"mesos": self.mesos.to_dict()}
        return {"docker": self.docker.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "ContainerConfig":
        if "mesos" in data:
            return cls(mesos=MesosContainerConfig.from_dict(data["mesos"]))
        if "docker" in data:
            return cls(docker=DockerContainerConfig.from_dict(data["docker"]))
        raise ValueError(f"Unknown container type: {sorted(data)}")


# =============================================================================
# Task and job
# =============================================================================


@dataclass
class TaskConfig:
    """Blueprint replicated across every instance of a job.

    Attributes:
        job: Key of the owning job (shared with JobConfiguration.key)
        owner: Legacy owner identity, mirrors the job role
        resources: cpu/ram/disk entries followed by named-port entries
        mesos_fetcher_uris: Artifacts downloaded before the task starts
        metadata: Labels attached to the task
        constraints: Placement rules
        container: Container the task runs in
        is_service: Restart tasks when they exit
        max_task_failures: Failures tolerated before the scheduler gives up
        tier: Scheduling tier consumed by the admission policy
        executor_config: Optional executor name and payload
    """

    job: JobKey = field(default_factory=JobKey)
    owner: Optional[Identity] = None
    resources: List[Resource] = field(default_factory=list)
    mesos_fetcher_uris: List[FetcherURI] = field(default_factory=list)
    metadata: List[Metadata] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    container: Optional[ContainerConfig] = None
    is_service: bool = False
    max_task_failures: int = 0
    tier: Optional[str] = None
    executor_config: Optional[ExecutorConfig] = None

    def to_dict(self) -> dict:
        data = {
            "job": self.job.to_dict(),
            "owner": self.owner.to_dict() if self.owner is not None else None,
            "resources": [r.to_dict() for r in self.resources],
            "mesos_fetcher_uris": [u.to_dict() for u in self.mesos_fetcher_uris],
            "metadata": [m.to_dict() for m in self.metadata],
            "constraints": [c.to_dict() for c in self.constraints],
            "container": self.container.to_dict() if self.container is not None else None,
            "is_service": self.is_service,
            "max_task_failures": self.max_task_failures,
            "tier": self.tier,
            "executor_config": (
                self.executor_config.to_dict()
                if self.executor_config is not None
                else None
            ),
        }
        return _drop_none(data)

    @classmethod
    def from_dict(cls, data: dict) -> "TaskConfig":
        owner = data.get("owner")
        container = data.get("container")
        executor = data.get("executor_config")
        return cls(
            job=JobKey.from_dict(data.get("job", {})),
            owner=Identity.from_dict(owner) if owner is not None else None,
            resources=[Resource.from_dict(r) for r in data.get("resources", [])],
            mesos_fetcher_uris=[
                FetcherURI.from_dict(u) for u in data.get("mesos_fetcher_uris", [])
            ],
            metadata=[Metadata.from_dict(m) for m in data.get("metadata", [])],
            constraints=[Constraint.from_dict(c) for c in data.get("constraints", [])],
            container=ContainerConfig.from_dict(container) if container is not None else None,
            is_service=data.get("is_service", False),
            max_task_failures=data.get("max_task_failures", 0),
            tier=data.get("tier"),
            executor_config=(
                ExecutorConfig.from_dict(executor) if executor is not None else None
            ),
        )


@dataclass
class JobConfiguration:
    """Everything the scheduler needs to create or update a job."""

    key: JobKey = field(default_factory=JobKey)
    owner: Optional[Identity] = None
    task_config: TaskConfig = field(default_factory=TaskConfig)
    instance_count: int = 0
    cron_schedule: Optional[str] = None
    cron_collision_policy: str = DEFAULT_CRON_COLLISION_POLICY

    def to_dict(self) -> dict:
        data = {
            "key": self.key.to_dict(),
            "owner": self.owner.to_dict() if self.owner is not None else None,
            "task_config": self.task_config.to_dict(),
            "instance_count": self.instance_count,
            "cron_schedule": self.cron_schedule,
            "cron_collision_policy": self.cron_collision_policy,
        }
        return _drop_none(data)

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict) -> "JobConfiguration":
        """Create configuration from dictionary.

        The task config's job key and owner are re-linked to the job-level
        objects so the result has the same sharing as a built configuration.
        """
        key = JobKey.from_dict(data.get("key", {}))
        owner = data.get("owner")
        owner = Identity.from_dict(owner) if owner is not None else None

        task_config = TaskConfig.from_dict(data.get("task_config", {}))
        task_config.job = key
        if owner is not None:
            task_config.owner = owner

        return cls(
            key=key,
            owner=owner,
            task_config=task_config,
            instance_count=data.get("instance_count", 0),
            cron_schedule=data.get("cron_schedule"),
            cron_collision_policy=data.get(
                "cron_collision_policy", DEFAULT_CRON_COLLISION_POLICY
            ),
        )

    @classmethod
    def from_json(cls, data: str) -> "JobConfiguration":
        """Deserialize configuration from JSON string."""
        return cls.from_dict(json.loads(data))
