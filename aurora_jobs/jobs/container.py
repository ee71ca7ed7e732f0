"""Container builders.

A job runs its tasks in exactly one container. Two kinds are supported:

- MesosContainer: the agent's own process-style containerizer, optionally
  launched inside a docker or appc filesystem image and with host volumes
- DockerContainer: the task is handed to the docker daemon as an image

Both builders produce a ContainerConfig through `build()`, which is what
`AuroraJob.set_container` stores on the task.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from aurora_jobs.jobs.spec import (
    AppcImage,
    ContainerConfig,
    DockerContainerConfig,
    DockerImage,
    DockerParameter,
    Image,
    MesosContainerConfig,
    Volume,
)


class Container(ABC):
    """Anything that can produce a ContainerConfig."""

    @abstractmethod
    def build(self) -> ContainerConfig:
        """Return a new ContainerConfig describing this container."""


class MesosContainer(Container):
    """Process-style container.

    Example:
        >>> container = (
        ...     MesosContainer()
        ...     .docker_image("python", "3.12")
        ...     .add_volume("/etc/ssl", "/etc/ssl", mode="RO")
        ... )
        >>> container.build().kind
        'mesos'
    """

    def __init__(self):
        self._image: Optional[Image] = None
        self._volumes: List[Volume] = []

    def docker_image(self, name: str, tag: str) -> "MesosContainer":
        """Run the process inside a docker filesystem image."""
        self._image = Image(docker=DockerImage(name=name, tag=tag))
        return self

    def appc_image(self, name: str, image_id: str) -> "MesosContainer":
        """Run the process inside an appc filesystem image."""
        self._image = Image(appc=AppcImage(name=name, image_id=image_id))
        return self

    def add_volume(
        self, host_path: str, container_path: str, mode: str = "RW"
    ) -> "MesosContainer":
        """Mount `host_path` at `container_path` inside the container."""
        self._volumes.append(
            Volume(container_path=container_path, host_path=host_path, mode=mode)
        )
        return self

    def build(self) -> ContainerConfig:
        return ContainerConfig(
            mesos=MesosContainerConfig(image=self._image, volumes=list(self._volumes))
        )


class DockerContainer(Container):
    """Image-style container run by the docker daemon."""

    def __init__(self, image: str = ""):
        self._image = image
        self._parameters: List[DockerParameter] = []

    def image(self, name: str) -> "DockerContainer":
        self._image = name
        return self

    def add_parameter(self, name: str, value: str) -> "DockerContainer":
        """Pass `--<name>=<value>` through to `docker run`."""
        self._parameters.append(DockerParameter(name=name, value=value))
        return self

    def build(self) -> ContainerConfig:
        return ContainerConfig(
            docker=DockerContainerConfig(
                image=self._image, parameters=list(self._parameters)
            )
        )
