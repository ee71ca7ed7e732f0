"""Jobs module for aurora-jobs.

This module provides the job configuration builder and its companions:
- spec: Job configuration data types (JobConfiguration, TaskConfig, ...)
- container: Container builders (MesosContainer, DockerContainer)
- builder: Fluent job builder (AuroraJob)
- validator: Advisory pre-submission checks
- loader: Building jobs from TOML/YAML job files
"""

from aurora_jobs.jobs.spec import (
    CRON_COLLISION_POLICIES,
    VOLUME_MODES,
    Constraint,
    ContainerConfig,
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
from aurora_jobs.jobs.container import (
    Container,
    DockerContainer,
    MesosContainer,
)
from aurora_jobs.jobs.builder import (
    AuroraJob,
    DEFAULT_PORT_NAMESPACE,
)
from aurora_jobs.jobs.validator import (
    JobValidator,
    ValidationError,
    NUMERIC_CONSTRAINTS,
)
from aurora_jobs.jobs.loader import (
    JobFileError,
    job_from_dict,
    load_job_file,
)

__all__ = [
    # Configuration types
    "CRON_COLLISION_POLICIES",
    "VOLUME_MODES",
    "Constraint",
    "ContainerConfig",
    "ExecutorConfig",
    "FetcherURI",
    "Identity",
    "JobConfiguration",
    "JobKey",
    "Metadata",
    "Resource",
    "TaskConfig",
    "TaskConstraint",
    # Containers
    "Container",
    "DockerContainer",
    "MesosContainer",
    # Building
    "AuroraJob",
    "DEFAULT_PORT_NAMESPACE",
    # Validation
    "JobValidator",
    "ValidationError",
    "NUMERIC_CONSTRAINTS",
    # Job files
    "JobFileError",
    "job_from_dict",
    "load_job_file",
]
