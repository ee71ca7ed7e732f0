"""Fluent builder for scheduler job configurations.

This module assembles a JobConfiguration from a chain of setter calls,
handling the resource table, named port allocation, placement constraints,
fetcher URIs, labels, executor and container.

The builder performs no validation. Values the scheduler would reject
(negative resources, a cron schedule on a service, a dedicated role that
does not match the job role) pass through untouched and are reported by the
scheduler at submission time. See `JobValidator` for an opt-in local check.
"""

import copy
from typing import Dict

from loguru import logger

from aurora_jobs.jobs.container import Container, MesosContainer
from aurora_jobs.jobs.spec import (
    Constraint,
    ExecutorConfig,
    FetcherURI,
    Identity,
    JobConfiguration,
    JobKey,
    Metadata,
    Resource,
    TaskConfig,
    TaskConstraint,
)


# Prefix for generated port names: <namespace>.port.<index>
DEFAULT_PORT_NAMESPACE = "org.apache.aurora"

# Host attribute the scheduler treats as a dedicated-machine marker
DEDICATED_ATTRIBUTE = "dedicated"


class AuroraJob:
    """Builds a JobConfiguration through chained setter calls.

    Every setter returns the builder, and none of them raise. A freshly
    constructed builder is already a complete configuration: empty key
    fields, zeroed cpu/ram/disk entries and a bare process-style container.

    The accessors `get_job_key`, `get_job_config` and `get_task_config`
    return the live objects held by the builder, not copies. Mutating them
    changes the job; this is intentional so that submission helpers can
    adjust a configuration in place. Use `snapshot()` for a detached copy.

    The builder holds plain mutable state and is not safe to share between
    threads without external locking.

    Example:
        >>> job = (
        ...     AuroraJob()
        ...     .set_role("www-data")
        ...     .set_environment("prod")
        ...     .set_name("hello_world")
        ...     .set_cpu(0.5)
        ...     .set_ram(128)
        ...     .set_disk(256)
        ...     .set_instance_count(3)
        ...     .add_ports(1)
        ... )
        >>> job.get_job_key().name
        'hello_world'
    """

    def __init__(self, port_namespace: str = DEFAULT_PORT_NAMESPACE):
        """Initialize an empty, fully populated job configuration.

        Args:
            port_namespace: Prefix used when naming anonymous ports
        """
        self.port_namespace = port_namespace

        job_key = JobKey()

        task_config = TaskConfig(
            job=job_key,
            # The container is a union, so one variant must always be set
            container=MesosContainer().build(),
        )

        self._job_config = JobConfiguration(key=job_key, task_config=task_config)

        self._resources: Dict[str, Resource] = {
            "cpu": Resource(num_cpus=0.0),
            "ram": Resource(ram_mb=0),
            "disk": Resource(disk_mb=0),
        }
        task_config.resources = [
            self._resources["cpu"],
            self._resources["ram"],
            self._resources["disk"],
        ]

        self._port_count = 0

    # =========================================================================
    # Identity
    # =========================================================================

    def set_environment(self, env: str) -> "AuroraJob":
        self._job_config.key.environment = env
        return self

    def set_role(self, role: str) -> "AuroraJob":
        """Set the job role and the legacy owner identity.

        The job and its task share one Identity object so the two owner
        fields can never diverge.
        """
        self._job_config.key.role = role

        identity = Identity(user=role)
        self._job_config.owner = identity
        self._job_config.task_config.owner = identity
        return self

    def set_name(self, name: str) -> "AuroraJob":
        self._job_config.key.name = name
        return self

    # =========================================================================
    # Executor
    # =========================================================================

    def _executor(self) -> ExecutorConfig:
        task_config = self._job_config.task_config
        if task_config.executor_config is None:
            task_config.executor_config = ExecutorConfig()
        return task_config.executor_config

    def set_executor_name(self, name: str) -> "AuroraJob":
        """Set the executor the task is launched with."""
        self._executor().name = name
        return self

    def set_executor_data(self, data: str) -> "AuroraJob":
        """Set the opaque payload handed to the executor."""
        self._executor().data = data
        return self

    # =========================================================================
    # Resources
    # =========================================================================

    def set_cpu(self, cpus: float) -> "AuroraJob":
        self._resources["cpu"].num_cpus = cpus
        return self

    def set_ram(self, ram: int) -> "AuroraJob":
        """Set memory in megabytes."""
        self._resources["ram"].ram_mb = ram
        return self

    def set_disk(self, disk: int) -> "AuroraJob":
        """Set disk in megabytes."""
        self._resources["disk"].disk_mb = disk
        return self

    def set_tier(self, tier: str) -> "AuroraJob":
        self._job_config.task_config.tier = tier
        return self

    # =========================================================================
    # Scheduling behaviour
    # =========================================================================

    def set_max_failures(self, max_fail: int) -> "AuroraJob":
        """How many task failures to tolerate before giving up."""
        self._job_config.task_config.max_task_failures = max_fail
        return self

    def set_instance_count(self, count: int) -> "AuroraJob":
        """How many instances of the job to run."""
        self._job_config.instance_count = count
        return self

    def get_instance_count(self) -> int:
        return self._job_config.instance_count

    def set_is_service(self, is_service: bool) -> "AuroraJob":
        """Restart the job's tasks when they exit."""
        self._job_config.task_config.is_service = is_service
        return self

    def set_cron_schedule(self, cron: str) -> "AuroraJob":
        # Does not touch is_service; the scheduler decides whether the
        # combination is acceptable.
        self._job_config.cron_schedule = cron
        return self

    def set_cron_collision_policy(self, policy: str) -> "AuroraJob":
        """Set what happens when a cron run starts while the previous one is live.

        Args:
            policy: One of CRON_COLLISION_POLICIES
        """
        self._job_config.cron_collision_policy = policy
        return self

    # =========================================================================
    # Ports
    # =========================================================================

    @property
    def port_count(self) -> int:
        """Total ports requested so far, named and anonymous."""
        return self._port_count

    def add_named_ports(self, *names: str) -> "AuroraJob":
        """Request one dynamically assigned port per name.

        The scheduler picks the port numbers; specific ports cannot be
        requested. Named ports also advance the counter used to name
        anonymous ports.
        """
        self._port_count += len(names)
        resources = self._job_config.task_config.resources
        for name in names:
            resources.append(Resource(named_port=name))

        logger.debug(f"Added named ports {list(names)}, port count {self._port_count}")
        return self

    def add_ports(self, num: int) -> "AuroraJob":
        """Request `num` anonymous ports.

        Ports are named `<namespace>.port.<i>` where i continues from the
        total number of ports already requested, named or anonymous. With a
        fresh builder, `add_named_ports("http", "admin").add_ports(1)` yields
        a port called `org.apache.aurora.port.2`.
        """
        start = self._port_count
        self._port_count += num
        resources = self._job_config.task_config.resources
        for i in range(start, self._port_count):
            resources.append(Resource(named_port=f"{self.port_namespace}.port.{i}"))

        logger.debug(f"Added {num} anonymous ports, port count {self._port_count}")
        return self

    # =========================================================================
    # Constraints
    # =========================================================================

    def add_value_constraint(
        self, name: str, negated: bool, *values: str
    ) -> "AuroraJob":
        """Add a value constraint.

        Args:
            name: Agent attribute the constraint is matched against
            negated: Treat as 'not', i.e. avoid hosts with these values
            values: Attribute values to look for
        """
        self._job_config.task_config.constraints.append(
            Constraint(name=name, constraint=TaskConstraint.of_value(negated, values))
        )
        return self

    def add_limit_constraint(self, name: str, limit: int) -> "AuroraJob":
        """Add a limit constraint.

        At most `limit` active tasks may be scheduled simultaneously on hosts
        sharing the same value of attribute `name`.
        """
        self._job_config.task_config.constraints.append(
            Constraint(name=name, constraint=TaskConstraint.of_limit(limit))
        )
        return self

    def add_dedicated_constraint(self, role: str, name: str) -> "AuroraJob":
        """Require a host carrying the dedicated attribute `role/name`.

        Dedicated hosts only accept matching jobs, and a job with this
        constraint only lands on matching hosts. The scheduler rejects the
        job if `role` is neither the job role nor the wildcard `*`.
        """
        return self.add_value_constraint(DEDICATED_ATTRIBUTE, False, f"{role}/{name}")

    # =========================================================================
    # Fetcher URIs, labels, container
    # =========================================================================

    def add_uris(self, extract: bool, cache: bool, *values: str) -> "AuroraJob":
        """Add URIs sharing the same extract and cache settings.

        Requires the scheduler to run with the fetcher enabled. Duplicate
        URIs are kept as separate entries.
        """
        uris = self._job_config.task_config.mesos_fetcher_uris
        for value in values:
            uris.append(FetcherURI(value=value, extract=extract, cache=cache))
        return self

    def add_label(self, key: str, value: str) -> "AuroraJob":
        """Add a label to the task.

        The scheduler prefixes each key with its own metadata namespace, so
        keys are stored as given.
        """
        self._job_config.task_config.metadata.append(Metadata(key=key, value=value))
        return self

    def set_container(self, container: Container) -> "AuroraJob":
        """Replace the task's container."""
        config = container.build()
        logger.debug(f"Setting {config.kind} container")
        self._job_config.task_config.container = config
        return self

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_job_key(self) -> JobKey:
        """Live job key, for calls that address an existing job."""
        return self._job_config.key

    def get_job_config(self) -> JobConfiguration:
        """Live job configuration. Changes made through it affect the job."""
        return self._job_config

    def get_task_config(self) -> TaskConfig:
        """Live task configuration. Changes made through it affect the job."""
        return self._job_config.task_config

    def snapshot(self) -> JobConfiguration:
        """Return a deep copy of the configuration for hand-off to a submitter.

        The copy is detached from the builder: later builder calls do not
        reach it and edits to it do not reach the builder. It is not frozen;
        the returned JobConfiguration is an ordinary mutable dataclass.
        """
        return copy.deepcopy(self._job_config)

    def to_dict(self) -> dict:
        return self._job_config.to_dict()

    def to_json(self, indent=None) -> str:
        return self._job_config.to_json(indent=indent)
