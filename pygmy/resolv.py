# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Host resolver file management.

Points the host's DNS resolution at the local dnsmasq container by adding a
single ``nameserver`` line, tagged with a marker comment, at the top of the
platform's resolver file::

    nameserver 127.0.0.1 # added by pygmy
    nameserver 10.0.34.17
    search corp.example.com

Which file is edited depends on the distribution:

- Ubuntu: ``/etc/resolvconf/resolv.conf.d/head`` (resolvconf prepends it to
  the generated ``/etc/resolv.conf``; ``resolvconf -u`` is run afterwards).
- Fedora, Arch: ``/etc/resolv.conf``.
- Anything else: ``/etc/resolv.conf`` only if it already exists.  The tool
  refuses to guess a path it cannot verify.

Every operation re-reads the file, transforms the full text in memory and
replaces the file as a whole.  Lines other than the managed one are kept
byte-for-byte, so ``clean()`` after ``configure()`` restores the original.
There is no locking: if the OS rewrites the file concurrently, the last
writer wins, and re-running either operation converges.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from pygmy.platform import (
    LinuxPlatform,
    PlatformKind,
    PlatformProbe,
    detect_platform,
)
from pygmy.sh import Runner, run_command


logger = logging.getLogger(__name__)

#: Comment appended to the managed nameserver line.
MARKER = "# added by pygmy"

DEFAULT_NAMESERVER = "127.0.0.1"
COMMON_RESOLV_FILE = Path("/etc/resolv.conf")
UBUNTU_RESOLV_FILE = Path("/etc/resolvconf/resolv.conf.d/head")

_RESOLVCONF_UPDATE = ("resolvconf", "-u")


class ResolvError(Exception):
    """Base exception for resolver file errors."""


class ResolvLocationError(ResolvError):
    """Raised when no resolver file location can be determined."""


class ResolvReadError(ResolvError, OSError):
    """Raised when the resolver file cannot be read."""


class ResolvWriteError(ResolvError, OSError):
    """Raised when the resolver file cannot be written."""


def is_managed_line(line: str) -> bool:
    """Return True if *line* is a nameserver line carrying our marker."""
    stripped = line.strip()
    return stripped.startswith("nameserver") and stripped.endswith(MARKER)


def add_nameserver(contents: str, entry: str) -> str:
    """Return *contents* with *entry* as the first line.

    Returns *contents* unchanged if *entry* is already present and is the
    only managed line.  Marked lines for a different address (left over
    from an earlier setting) are dropped so at most one managed line
    remains.
    """
    lines = contents.splitlines(keepends=True)
    managed = [line for line in lines if is_managed_line(line)]
    if len(managed) == 1 and managed[0].strip() == entry:
        return contents
    kept = [line for line in lines if not is_managed_line(line)]
    return entry + "\n" + "".join(kept)


def remove_nameserver(contents: str) -> str:
    """Return *contents* with every managed line removed."""
    lines = contents.splitlines(keepends=True)
    return "".join(line for line in lines if not is_managed_line(line))


class Resolv:
    """Adds and removes the managed nameserver in the host resolver file.

    Args:
        platform: Distribution probe.  Defaults to the real host.
        nameserver: Address of the local DNS resolver.
        common_resolv_file: Resolver file on Fedora, Arch and unknown
            platforms.
        ubuntu_resolv_file: Resolver file on Ubuntu.
        runner: Command runner used for ``resolvconf -u``.
        update_resolvconf: Whether to regenerate ``/etc/resolv.conf`` with
            ``resolvconf -u`` after editing the Ubuntu file.
    """

    def __init__(
        self,
        platform: PlatformProbe | None = None,
        *,
        nameserver: str = DEFAULT_NAMESERVER,
        common_resolv_file: Path = COMMON_RESOLV_FILE,
        ubuntu_resolv_file: Path = UBUNTU_RESOLV_FILE,
        runner: Runner = run_command,
        update_resolvconf: bool = True,
    ) -> None:
        self._platform = platform if platform is not None else LinuxPlatform()
        self.nameserver = nameserver
        self.common_resolv_file = Path(common_resolv_file)
        self.ubuntu_resolv_file = Path(ubuntu_resolv_file)
        self._runner = runner
        self._update_resolvconf = update_resolvconf

    @property
    def nameserver_line(self) -> str:
        """The full managed line, without a trailing newline."""
        return f"nameserver {self.nameserver} {MARKER}"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def platform_kind(self) -> PlatformKind:
        """Classify the host (Ubuntu first, then Fedora, then Arch)."""
        return detect_platform(self._platform)

    def resolv_file(self) -> Path:
        """Return the resolver file to edit on this platform.

        Raises:
            ResolvLocationError: On an unrecognized platform when the
                common resolver file does not exist.
        """
        kind = self.platform_kind()
        if kind is PlatformKind.UBUNTU:
            return self.ubuntu_resolv_file
        if kind in (PlatformKind.FEDORA, PlatformKind.ARCH):
            return self.common_resolv_file
        if self.common_resolv_file.exists():
            return self.common_resolv_file
        raise ResolvLocationError(
            "Unable to determine location of resolv file: platform not "
            f"recognized and {self.common_resolv_file} does not exist"
        )

    def resolv_file_contents(self) -> str:
        """Return the full current contents of the resolver file.

        Raises:
            ResolvLocationError: If the file location cannot be determined.
            ResolvReadError: If the file cannot be read.
        """
        return self._read(self.resolv_file())

    def has_our_nameserver(self) -> bool:
        """Return True if the managed nameserver line is present."""
        return self._contains_entry(self.resolv_file_contents())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def configure(self) -> bool:
        """Ensure the managed nameserver is the first line of the file.

        Returns:
            True if the file was rewritten, False if it already had the
            entry.

        Raises:
            ResolvLocationError: If the file location cannot be determined.
            ResolvReadError: If the file cannot be read.  Nothing is
                written in that case.
            ResolvWriteError: If the new contents cannot be written.
        """
        path = self.resolv_file()
        contents = self._read(path)
        updated = add_nameserver(contents, self.nameserver_line)
        if updated == contents:
            logger.info("Nameserver %s already in %s", self.nameserver, path)
            return False

        self._write(path, updated)
        logger.info("Added nameserver %s to %s", self.nameserver, path)
        self._after_write()
        return True

    def clean(self) -> bool:
        """Ensure no managed nameserver line remains in the file.

        Returns:
            True if the file was rewritten, False if there was nothing to
            remove.

        Raises:
            ResolvLocationError: If the file location cannot be determined.
            ResolvReadError: If the file cannot be read.  Nothing is
                written in that case.
            ResolvWriteError: If the new contents cannot be written.
        """
        path = self.resolv_file()
        contents = self._read(path)
        cleaned = remove_nameserver(contents)
        if cleaned == contents:
            logger.info("No pygmy nameserver in %s", path)
            return False

        self._write(path, cleaned)
        logger.info("Removed pygmy nameserver from %s", path)
        self._after_write()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _contains_entry(self, contents: str) -> bool:
        entry = self.nameserver_line
        return any(line.strip() == entry for line in contents.splitlines())

    @staticmethod
    def _read(path: Path) -> str:
        # newline="" keeps \r\n line endings intact across a rewrite, and
        # surrogateescape carries bytes that are not UTF-8 through unchanged.
        try:
            with open(
                path, encoding="utf-8", errors="surrogateescape", newline=""
            ) as f:
                return f.read()
        except (OSError, UnicodeError) as e:
            raise ResolvReadError(
                f"Failed to read resolv file {path}: {e}"
            ) from e

    @staticmethod
    def _write(path: Path, contents: str) -> None:
        """Replace *path* with *contents* via a temp file and rename.

        Symlinks are followed so a linked ``/etc/resolv.conf`` stays a
        link.  The original permission bits are kept.
        """
        target = path.resolve()
        try:
            mode = stat.S_IMODE(target.stat().st_mode)
            fd, tmp = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
            try:
                with open(
                    fd,
                    "w",
                    encoding="utf-8",
                    errors="surrogateescape",
                    newline="",
                ) as f:
                    f.write(contents)
                os.chmod(tmp, mode)
                Path(tmp).replace(target)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except (OSError, UnicodeError) as e:
            raise ResolvWriteError(
                f"Failed to write resolv file {path}: {e}"
            ) from e
        logger.debug("Wrote %d bytes to %s", len(contents), target)

    def _after_write(self) -> None:
        """Regenerate ``/etc/resolv.conf`` after editing the resolvconf head."""
        if not self._update_resolvconf:
            return
        if self.platform_kind() is not PlatformKind.UBUNTU:
            return
        result = self._runner(_RESOLVCONF_UPDATE)
        if not result.success:
            logger.warning(
                "'%s' failed, %s may be stale until the next resolvconf "
                "update: %s",
                result.command_line,
                self.common_resolv_file,
                result.error_detail(),
            )
