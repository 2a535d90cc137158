# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for shell command execution."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pygmy.sh import (
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
    CommandResult,
    run_command,
)


class TestCommandResult:
    """Tests for CommandResult."""

    def test_success(self) -> None:
        assert CommandResult(("true",), 0).success
        assert not CommandResult(("false",), 1).success

    def test_command_line(self) -> None:
        result = CommandResult(("docker", "ps", "-q"), 0)
        assert result.command_line == "docker ps -q"

    def test_error_detail_prefers_stderr(self) -> None:
        result = CommandResult(("x",), 1, stdout="out", stderr=" err \n")
        assert result.error_detail() == "err"

    def test_error_detail_falls_back_to_stdout(self) -> None:
        result = CommandResult(("x",), 1, stdout="out\n")
        assert result.error_detail() == "out"

    def test_error_detail_falls_back_to_exit_status(self) -> None:
        assert CommandResult(("x",), 3).error_detail() == "exit status 3"

    def test_frozen(self) -> None:
        result = CommandResult(("x",), 0)
        with pytest.raises(AttributeError):
            result.returncode = 1  # type: ignore[misc]


class TestRunCommand:
    """Tests for run_command()."""

    @patch("pygmy.sh.subprocess.run")
    def test_captures_output(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(
            returncode=0, stdout="abc\n", stderr=""
        )

        result = run_command(["docker", "ps"])

        mock_run.assert_called_once_with(
            ("docker", "ps"),
            capture_output=True,
            text=True,
            timeout=60.0,
        )
        assert result == CommandResult(("docker", "ps"), 0, "abc\n", "")

    @patch("pygmy.sh.subprocess.run")
    def test_failure_is_returned(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(
            returncode=1, stdout="", stderr="No such container"
        )
        result = run_command(["docker", "stop", "x"])
        assert not result.success
        assert result.stderr == "No such container"

    @patch("pygmy.sh.subprocess.run")
    def test_arguments_are_stringified(self, mock_run: MagicMock) -> None:
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        args: list = ["cat", Path("/etc/hosts")]
        result = run_command(args)
        assert result.args == ("cat", "/etc/hosts")

    @patch(
        "pygmy.sh.subprocess.run",
        side_effect=FileNotFoundError(2, "No such file", "nope"),
    )
    def test_missing_executable(self, _run: MagicMock) -> None:
        result = run_command(["nope"])
        assert result.returncode == EXIT_NOT_FOUND
        assert "No such file" in result.stderr

    @patch(
        "pygmy.sh.subprocess.run",
        side_effect=subprocess.TimeoutExpired(["sleep"], 1),
    )
    def test_timeout(self, _run: MagicMock) -> None:
        result = run_command(["sleep", "10"], timeout=1)
        assert result.returncode == EXIT_TIMEOUT
        assert "timed out" in result.stderr

    def test_real_command(self) -> None:
        result = run_command(["echo", "hello"])
        assert result.success
        assert result.stdout == "hello\n"
