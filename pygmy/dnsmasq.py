# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""dnsmasq resolver container.

Answers every name under the local domain with the loopback address, where
Traefik is listening.  The host resolver file points at it (see
:mod:`pygmy.resolv`).
"""

from __future__ import annotations

from pygmy.docker import (
    DEFAULT_DOCKER_COMMAND,
    DockerService,
    PortMapping,
    publish_args,
)
from pygmy.sh import Runner, run_command


IMAGE_NAME = "andyshinn/dnsmasq:2.78"
CONTAINER_NAME = "amazeeio-dnsmasq"
DOMAIN = "docker.amazee.io"

# resolv.conf cannot carry a port, so the default has to be 53.
DEFAULT_PORT = 53
TARGET_ADDRESS = "127.0.0.1"


class Dnsmasq(DockerService):
    """The local DNS resolver.

    Args:
        image_name: dnsmasq image.
        container_name: Name of the resolver container.
        domain: Domain answered with *address*.
        port: Host port published for DNS over TCP and UDP.
        address: Address returned for every name under *domain*.
        docker_command: Container runtime binary.
        runner: Command runner.
    """

    def __init__(
        self,
        image_name: str = IMAGE_NAME,
        container_name: str = CONTAINER_NAME,
        domain: str = DOMAIN,
        port: int = DEFAULT_PORT,
        address: str = TARGET_ADDRESS,
        docker_command: str = DEFAULT_DOCKER_COMMAND,
        runner: Runner = run_command,
    ) -> None:
        super().__init__(image_name, container_name, docker_command, runner)
        self.domain = domain
        self.port = port
        self.address = address

    def run_args(self) -> list[str]:
        ports = (
            PortMapping(self.port, 53, "tcp"),
            PortMapping(self.port, 53, "udp"),
        )
        return [
            "-d",
            *publish_args(ports),
            "--restart",
            "always",
            f"--name={self.container_name}",
            "--cap-add=NET_ADMIN",
            self.image_name,
            "-A",
            f"/{self.domain}/{self.address}",
        ]
