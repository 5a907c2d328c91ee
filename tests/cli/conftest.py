"""Shared fixtures for CLI tests.

Every command is invoked against a temporary pyenv root described by a
YAML configuration file, with filesystem watching replaced by a fake.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from runtimescout.config import ScoutConfig
from runtimescout.factory import create_engine

from tests.locators.helpers import FakeWatchFactory, create_pyenv_root


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def pyenv_root(tmp_path: Path) -> Path:
    """A pyenv root holding two CPython versions."""
    return create_pyenv_root(tmp_path / "pyenv", "3.9.0", "3.11.4")


@pytest.fixture
def config_file(tmp_path: Path, pyenv_root: Path) -> Path:
    """A configuration that only enables the pyenv locator."""
    path = tmp_path / "scout.yaml"
    path.write_text(f"locators: [pyenv]\npyenv_root: {pyenv_root}\n")
    return path


@pytest.fixture
def empty_config_file(tmp_path: Path) -> Path:
    """A configuration whose only locator points at a missing folder."""
    path = tmp_path / "empty.yaml"
    path.write_text(f"locators: [pyenv]\npyenv_root: {tmp_path / 'nowhere'}\n")
    return path


@pytest.fixture
def cli_obj(fake_watch: FakeWatchFactory) -> dict:
    """Context object that builds engines with the fake watch service."""

    def _factory(config: ScoutConfig):
        return create_engine(config, watch_factory=fake_watch)

    return {"engine_factory": _factory}
