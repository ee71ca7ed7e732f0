"""Advisory job configuration checks.

The builder accepts anything; the scheduler is the authority on what it
will run. This module catches the common reasons for a rejected submission
before the round trip:
- Identity fields left empty
- Resource values out of range
- Cron settings that conflict with service jobs
- Dedicated constraints naming another role
- Duplicate port names
- Container fields the scheduler requires

Nothing here raises. Findings are returned as ValidationError records and
the caller decides what to do with them.
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Union

from aurora_jobs.jobs.builder import AuroraJob, DEDICATED_ATTRIBUTE
from aurora_jobs.jobs.spec import CRON_COLLISION_POLICIES, VOLUME_MODES, JobConfiguration


@dataclass
class ValidationError:
    """A finding against one field of a job configuration.

    Attributes:
        field: Dotted name of the offending field
        message: Human-readable description
        code: Error code for programmatic handling (e.g., OUT_OF_RANGE)
    """

    field: str
    message: str
    code: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {"field": self.field, "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ValidationError":
        """Create from dictionary."""
        return cls(field=data["field"], message=data["message"], code=data.get("code"))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# Lower bounds for numeric job parameters
NUMERIC_CONSTRAINTS = {
    "task_config.resources.cpu": {"min": 0.0, "exclusive": True},
    "task_config.resources.ram": {"min": 0, "exclusive": True},
    "task_config.resources.disk": {"min": 0, "exclusive": False},
    "instance_count": {"min": 1, "exclusive": False},
    "task_config.max_task_failures": {"min": -1, "exclusive": False},
}


class JobValidator:
    """Checks a job configuration for values the scheduler would reject."""

    def validate(
        self, job: Union[AuroraJob, JobConfiguration]
    ) -> List[ValidationError]:
        """Validate a builder or a configuration.

        Args:
            job: AuroraJob or JobConfiguration to check

        Returns:
            List of ValidationError objects (empty if nothing was flagged)
        """
        if isinstance(job, AuroraJob):
            config = job.get_job_config()
        elif isinstance(job, JobConfiguration):
            config = job
        else:
            return [
                ValidationError(
                    field="type",
                    message=f"Unknown job type: {type(job).__name__}",
                    code="INVALID_VALUE",
                )
            ]

        errors = []
        errors.extend(self._validate_key(config))
        errors.extend(self._validate_numeric(config))
        errors.extend(self._validate_cron(config))
        errors.extend(self._validate_constraints(config))
        errors.extend(self._validate_ports(config))
        errors.extend(self._validate_container(config))
        return errors

    def _validate_key(self, config: JobConfiguration) -> List[ValidationError]:
        errors = []
        for name in ("role", "environment", "name"):
            if not getattr(config.key, name):
                errors.append(
                    ValidationError(
                        field=f"key.{name}",
                        message=f"Job {name} is required",
                        code="MISSING_FIELD",
                    )
                )
        return errors

    def _validate_numeric(self, config: JobConfiguration) -> List[ValidationError]:
        task = config.task_config
        values = {
            "instance_count": config.instance_count,
            "task_config.max_task_failures": task.max_task_failures,
        }
        for resource in task.resources:
            if resource.kind == "cpu":
                values["task_config.resources.cpu"] = resource.num_cpus
            elif resource.kind == "ram":
                values["task_config.resources.ram"] = resource.ram_mb
            elif resource.kind == "disk":
                values["task_config.resources.disk"] = resource.disk_mb

        errors = []
        for field, value in values.items():
            if not _is_number(value):
                errors.append(
                    ValidationError(
                        field=field,
                        message=f"Value must be a number, got {value!r}",
                        code="INVALID_VALUE",
                    )
                )
                continue

            bounds = NUMERIC_CONSTRAINTS[field]
            minimum = bounds["min"]
            if bounds["exclusive"]:
                bad = value <= minimum
                expected = f"greater than {minimum}"
            else:
                bad = value < minimum
                expected = f"at least {minimum}"
            if bad:
                errors.append(
                    ValidationError(
                        field=field,
                        message=f"Value must be {expected}, got {value}",
                        code="OUT_OF_RANGE",
                    )
                )
        return errors

    def _validate_cron(self, config: JobConfiguration) -> List[ValidationError]:
        errors = []
        if config.cron_collision_policy not in CRON_COLLISION_POLICIES:
            errors.append(
                ValidationError(
                    field="cron_collision_policy",
                    message=(
                        f"Unknown policy '{config.cron_collision_policy}', expected "
                        f"one of {', '.join(CRON_COLLISION_POLICIES)}"
                    ),
                    code="INVALID_VALUE",
                )
            )
        if config.cron_schedule and config.task_config.is_service:
            errors.append(
                ValidationError(
                    field="cron_schedule",
                    message="A cron schedule cannot be set on a service job",
                    code="CONFLICT",
                )
            )
        return errors

    def _validate_constraints(self, config: JobConfiguration) -> List[ValidationError]:
        errors = []
        role = config.key.role
        for i, constraint in enumerate(config.task_config.constraints):
            field = f"task_config.constraints[{i}]"
            task_constraint = constraint.constraint

            if task_constraint.limit is not None:
                limit = task_constraint.limit.limit
                if not _is_number(limit):
                    errors.append(
                        ValidationError(
                            field=field,
                            message=f"Limit must be a number, got {limit!r}",
                            code="INVALID_VALUE",
                        )
                    )
                elif limit < 1:
                    errors.append(
                        ValidationError(
                            field=field,
                            message=f"Limit must be at least 1, got {limit}",
                            code="OUT_OF_RANGE",
                        )
                    )

            if constraint.name == DEDICATED_ATTRIBUTE and task_constraint.value is not None:
                for value in sorted(task_constraint.value.values):
                    dedicated_role = str(value).split("/", 1)[0]
                    if dedicated_role not in ("*", role):
                        errors.append(
                            ValidationError(
                                field=field,
                                message=(
                                    f"Dedicated role '{dedicated_role}' does not "
                                    f"match job role '{role}'"
                                ),
                                code="CONFLICT",
                            )
                        )
        return errors

    def _validate_ports(self, config: JobConfiguration) -> List[ValidationError]:
        names = Counter(
            r.named_port
            for r in config.task_config.resources
            if r.named_port is not None
        )
        return [
            ValidationError(
                field="task_config.resources",
                message=f"Port '{name}' requested {count} times",
                code="DUPLICATE",
            )
            for name, count in names.items()
            if count > 1
        ]

    def _validate_container(self, config: JobConfiguration) -> List[ValidationError]:
        container = config.task_config.container
        if container is None:
            return []

        errors = []
        if container.docker is not None and not container.docker.image:
            errors.append(
                ValidationError(
                    field="task_config.container.docker.image",
                    message="Docker container requires an image",
                    code="MISSING_FIELD",
                )
            )
        if container.mesos is not None:
            for i, volume in enumerate(container.mesos.volumes):
                if volume.mode not in VOLUME_MODES:
                    errors.append(
                        ValidationError(
                            field=f"task_config.container.mesos.volumes[{i}].mode",
                            message=(
                                f"Unknown volume mode '{volume.mode}', expected "
                                f"one of {', '.join(VOLUME_MODES)}"
                            ),
                            code="INVALID_VALUE",
                        )
                    )
        return errors
