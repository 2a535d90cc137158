# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Test doubles for the platform probe and the command runner."""

from collections.abc import Sequence
from dataclasses import dataclass

from pygmy.sh import CommandResult


@dataclass
class FakePlatform:
    """Platform probe with fixed answers."""

    ubuntu: bool = False
    fedora: bool = False
    arch: bool = False

    def is_ubuntu(self) -> bool:
        return self.ubuntu

    def is_fedora(self) -> bool:
        return self.fedora

    def is_arch(self) -> bool:
        return self.arch


class FakeRunner:
    """Command runner that records calls and replays canned results.

    Results are registered per command prefix with :meth:`on`.  The most
    specific (longest) matching prefix wins.  When several results are
    registered for one prefix they are returned in order, and the last one
    repeats.  Unmatched commands succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._rules: dict[tuple[str, ...], list[tuple[int, str, str]]] = {}

    def on(
        self,
        *prefix: str,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> "FakeRunner":
        self._rules.setdefault(prefix, []).append(
            (returncode, stdout, stderr)
        )
        return self

    def __call__(self, args: Sequence[str]) -> CommandResult:
        argv = tuple(args)
        self.calls.append(argv)
        matches = [p for p in self._rules if argv[: len(p)] == p]
        if not matches:
            return CommandResult(argv, 0, "", "")
        results = self._rules[max(matches, key=len)]
        returncode, stdout, stderr = (
            results.pop(0) if len(results) > 1 else results[0]
        )
        return CommandResult(argv, returncode, stdout, stderr)

    def called(self, *prefix: str) -> bool:
        """True if any recorded call starts with *prefix*."""
        return any(call[: len(prefix)] == prefix for call in self.calls)
