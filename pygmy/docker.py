# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Docker container and network wrappers.

Everything here shells out to the ``docker`` CLI through
:func:`pygmy.sh.run_command`.  Queries (``exists``, ``is_running``, ...)
never raise; they report False when docker cannot answer.  Mutations raise
:class:`DockerError` when the command fails, and are idempotent: starting a
running container or removing an absent network does nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from pygmy.sh import CommandResult, Runner, run_command


logger = logging.getLogger(__name__)

DEFAULT_DOCKER_COMMAND = "docker"


class DockerError(Exception):
    """Raised when a docker command fails."""

    @classmethod
    def from_result(cls, action: str, result: CommandResult) -> DockerError:
        """Build an error naming the failed command and its output."""
        return cls(
            f"Failed to {action}. Command '{result.command_line}' failed: "
            f"{result.error_detail()}"
        )


class _DockerCli:
    """Shared plumbing for objects that run ``docker`` subcommands."""

    def __init__(
        self,
        docker_command: str = DEFAULT_DOCKER_COMMAND,
        runner: Runner = run_command,
    ) -> None:
        self.docker_command = docker_command
        self._runner = runner

    def _docker(self, *args: str) -> CommandResult:
        return self._runner([self.docker_command, *args])

    def _docker_or_raise(self, action: str, *args: str) -> CommandResult:
        result = self._docker(*args)
        if not result.success:
            raise DockerError.from_result(action, result)
        return result


class DockerNetwork(_DockerCli):
    """A named user-defined docker network.

    Args:
        name: Network name.
        docker_command: Container runtime binary.
        runner: Command runner.
    """

    def __init__(
        self,
        name: str,
        docker_command: str = DEFAULT_DOCKER_COMMAND,
        runner: Runner = run_command,
    ) -> None:
        super().__init__(docker_command, runner)
        self.name = name

    def exists(self) -> bool:
        return self._docker("network", "inspect", self.name).success

    def create(self) -> bool:
        """Create the network unless it exists.

        Returns:
            True if the network was created.
        """
        if self.exists():
            logger.debug("Network %s already exists", self.name)
            return False
        self._docker_or_raise(
            f"create network {self.name}", "network", "create", self.name
        )
        logger.info("Created network %s", self.name)
        return True

    def remove(self) -> bool:
        """Remove the network if it exists.

        Returns:
            True if the network was removed.
        """
        if not self.exists():
            return False
        self._docker_or_raise(
            f"remove network {self.name}", "network", "rm", self.name
        )
        logger.info("Removed network %s", self.name)
        return True

    def inspect_containers(self) -> list[str]:
        """Return names of containers attached to the network.

        An absent network has no containers.
        """
        result = self._docker(
            "network",
            "inspect",
            "--format",
            "{{range .Containers}}{{.Name}} {{end}}",
            self.name,
        )
        if not result.success:
            return []
        return result.stdout.split()

    def has_container(self, container_name: str) -> bool:
        return container_name in self.inspect_containers()


class ServiceStatus(Enum):
    """Lifecycle state of a service container."""

    RUNNING = "running"
    STOPPED = "stopped"
    ABSENT = "not created"


@dataclass(frozen=True)
class PortMapping:
    """A published container port (``host:container/protocol``)."""

    host: int
    container: int
    protocol: str = "tcp"

    def to_arg(self) -> str:
        return f"{self.host}:{self.container}/{self.protocol}"


class DockerService(_DockerCli):
    """A single long-running container managed by pygmy.

    Subclasses supply the image, the container name and the
    ``docker run`` arguments.
    """

    def __init__(
        self,
        image_name: str,
        container_name: str,
        docker_command: str = DEFAULT_DOCKER_COMMAND,
        runner: Runner = run_command,
    ) -> None:
        super().__init__(docker_command, runner)
        self.image_name = image_name
        self.container_name = container_name

    def run_args(self) -> list[str]:
        """Arguments for ``docker run`` (without the ``docker run`` prefix)."""
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _container_ids(self, *, include_stopped: bool) -> list[str]:
        args = ["ps", "-q", "--filter", f"name=^/?{self.container_name}$"]
        if include_stopped:
            args.insert(1, "-a")
        result = self._docker(*args)
        if not result.success:
            return []
        return result.stdout.split()

    def exists(self) -> bool:
        """True if the container exists, running or not."""
        return bool(self._container_ids(include_stopped=True))

    def is_running(self) -> bool:
        return bool(self._container_ids(include_stopped=False))

    def status(self) -> ServiceStatus:
        if self.is_running():
            return ServiceStatus.RUNNING
        if self.exists():
            return ServiceStatus.STOPPED
        return ServiceStatus.ABSENT

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def pull(self) -> None:
        """Pull the service image."""
        logger.info("Pulling %s", self.image_name)
        self._docker_or_raise(
            f"pull image {self.image_name}", "pull", self.image_name
        )

    def start(self) -> bool:
        """Make sure the container is running.

        Starts an existing stopped container, or creates it with
        ``docker run`` if it does not exist.

        Returns:
            True if anything was started.
        """
        status = self.status()
        if status is ServiceStatus.RUNNING:
            logger.info("%s is already running", self.container_name)
            return False
        if status is ServiceStatus.STOPPED:
            self._docker_or_raise(
                f"start {self.container_name}", "start", self.container_name
            )
        else:
            self._docker_or_raise(
                f"run {self.container_name}", "run", *self.run_args()
            )
        logger.info("Started %s", self.container_name)
        return True

    def stop(self) -> bool:
        """Stop the container if it is running.

        Returns:
            True if the container was stopped.
        """
        if not self.is_running():
            return False
        self._docker_or_raise(
            f"stop {self.container_name}", "stop", self.container_name
        )
        logger.info("Stopped %s", self.container_name)
        return True

    def delete(self) -> bool:
        """Remove the container if it exists (stopping it first).

        Returns:
            True if the container was removed.
        """
        if not self.exists():
            return False
        self._docker_or_raise(
            f"remove {self.container_name}", "rm", "-f", self.container_name
        )
        logger.info("Removed %s", self.container_name)
        return True


def publish_args(ports: Sequence[PortMapping]) -> list[str]:
    """Turn port mappings into ``-p`` arguments."""
    args: list[str] = []
    for port in ports:
        args.extend(["-p", port.to_arg()])
    return args
