# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across multiple test modules."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from pygmy.dotenv_loader import reset_dotenv_state
from tests.fakes import FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture(autouse=True)
def _isolated_config_dir(tmp_path: Path) -> Iterator[Path]:
    """Point the XDG config directory at a temp dir and reset dotenv state.

    Keeps tests from reading the developer's own pygmy config or ``.env``.
    """
    config_home = tmp_path / "xdg-config"
    reset_dotenv_state()
    with patch(
        "pygmy.config.user_config_path",
        side_effect=lambda name: config_home / name,
    ):
        yield config_home
    reset_dotenv_state()
