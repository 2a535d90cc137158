# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Traefik reverse proxy container.

Traefik watches the docker socket and routes ``<container>.<domain>`` to
each container on the shared network, so a container named ``myapp`` is
reachable at ``http://myapp.docker.amazee.io``.
"""

from __future__ import annotations

import logging

from pygmy.docker import (
    DEFAULT_DOCKER_COMMAND,
    DockerError,
    DockerNetwork,
    DockerService,
    PortMapping,
    publish_args,
)
from pygmy.sh import Runner, run_command


logger = logging.getLogger(__name__)

IMAGE_NAME = "traefik:2.0"
CONTAINER_NAME = "traefik.docker.amazee.io"
NETWORK_NAME = "amazeeio-network"
DOMAIN = "docker.amazee.io"

PORTS = (
    PortMapping(80, 80),
    PortMapping(8080, 8080),
    PortMapping(443, 443),
)

_DOCKER_SOCKET = "/var/run/docker.sock"


class Traefik(DockerService):
    """The shared reverse proxy.

    Args:
        image_name: Traefik image.
        container_name: Name of the proxy container.
        network_name: Network the proxy routes into.
        domain: Suffix appended to container names in the routing rule.
        docker_command: Container runtime binary.
        runner: Command runner.
    """

    def __init__(
        self,
        image_name: str = IMAGE_NAME,
        container_name: str = CONTAINER_NAME,
        network_name: str = NETWORK_NAME,
        domain: str = DOMAIN,
        docker_command: str = DEFAULT_DOCKER_COMMAND,
        runner: Runner = run_command,
    ) -> None:
        super().__init__(image_name, container_name, docker_command, runner)
        self.network = DockerNetwork(network_name, docker_command, runner)
        self.domain = domain

    @property
    def host_rule(self) -> str:
        """Default router rule applied to every discovered container."""
        return f"Host(`{{{{ .Name }}}}.{self.domain}`)"

    def run_args(self) -> list[str]:
        return [
            "-d",
            *publish_args(PORTS),
            "--restart",
            "always",
            f"--volume={_DOCKER_SOCKET}:{_DOCKER_SOCKET}",
            f"--name={self.container_name}",
            "--label",
            f"traefik.docker.network={self.network.name}",
            self.image_name,
            "--api",
            "--providers.docker",
            f"--providers.docker.defaultrule={self.host_rule}",
        ]

    def connect_args(self) -> list[str]:
        return ["network", "connect", self.network.name, self.container_name]

    def is_connected(self) -> bool:
        """True if the proxy container is attached to its network."""
        return self.network.has_container(self.container_name)

    def connect(self) -> bool:
        """Attach the proxy to its network unless already attached.

        Returns:
            True once connected.

        Raises:
            DockerError: If ``docker network connect`` fails.
        """
        if not self.is_connected():
            result = self._docker(*self.connect_args())
            if not result.success:
                raise DockerError.from_result(
                    f"connect {self.container_name} to {self.network.name}",
                    result,
                )
            logger.info(
                "Connected %s to %s", self.container_name, self.network.name
            )
        return self.is_connected()
