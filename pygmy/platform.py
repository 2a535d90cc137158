# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Linux distribution detection.

The resolver file lives in different places depending on the distribution.
Detection reads ``/etc/os-release`` through the ``distro`` library and
matches both ``ID`` and ``ID_LIKE`` so derivatives (Linux Mint, Pop!_OS,
Manjaro, ...) are treated like their parent.

The three predicates are independent.  A host can in principle satisfy more
than one, so callers that need a single answer use :func:`detect_platform`,
which checks them in a fixed order.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol

import distro


logger = logging.getLogger(__name__)


class PlatformKind(Enum):
    """Distribution families the resolver knows about."""

    UBUNTU = "ubuntu"
    FEDORA = "fedora"
    ARCH = "arch"
    UNKNOWN = "unknown"


class PlatformProbe(Protocol):
    """Anything that can answer the distribution questions."""

    def is_ubuntu(self) -> bool: ...

    def is_fedora(self) -> bool: ...

    def is_arch(self) -> bool: ...


class LinuxPlatform:
    """Platform probe backed by the host's OS identification files.

    Every query re-reads the files; nothing is cached between calls.

    Args:
        root_dir: Alternate filesystem root to read ``etc/os-release``
            from.  None means the real root.
    """

    def __init__(self, root_dir: Path | None = None) -> None:
        self._root_dir = root_dir

    def _identifiers(self) -> set[str]:
        """Return the lowercase ``ID`` plus every ``ID_LIKE`` token.

        Missing, unreadable or undecodable files yield an empty set.
        """
        try:
            if self._root_dir is None:
                info = distro.LinuxDistribution(
                    include_lsb=False, include_uname=False
                )
            else:
                info = distro.LinuxDistribution(
                    include_lsb=False,
                    include_uname=False,
                    root_dir=str(self._root_dir),
                )
            ids = {info.id().lower()}
            ids.update(token.lower() for token in info.like().split())
        except (OSError, ValueError) as e:
            logger.debug("Could not read OS identification: %s", e)
            return set()
        ids.discard("")
        return ids

    def is_ubuntu(self) -> bool:
        return "ubuntu" in self._identifiers()

    def is_fedora(self) -> bool:
        return "fedora" in self._identifiers()

    def is_arch(self) -> bool:
        return "arch" in self._identifiers()


def detect_platform(probe: PlatformProbe) -> PlatformKind:
    """Classify the host, checking Ubuntu, then Fedora, then Arch.

    Args:
        probe: Source of the distribution predicates.

    Returns:
        The first matching kind, or ``PlatformKind.UNKNOWN``.
    """
    if probe.is_ubuntu():
        return PlatformKind.UBUNTU
    if probe.is_fedora():
        return PlatformKind.FEDORA
    if probe.is_arch():
        return PlatformKind.ARCH
    return PlatformKind.UNKNOWN
