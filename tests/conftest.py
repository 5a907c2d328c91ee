"""Shared fixtures for runtimescout tests."""

from __future__ import annotations

import pathlib

import pytest

from tests.locators.helpers import FakeWatchFactory

_ISOLATED_VARS = (
    "PYENV_ROOT",
    "WORKON_HOME",
    "CONDA_PREFIX",
    "RUNTIMESCOUT_CONFIG",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """Point HOME at an empty folder and clear discovery-related variables.

    Keeps every test independent of interpreters installed on the machine
    running the suite.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for name in _ISOLATED_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PATH", "")
    return home


@pytest.fixture
def fake_watch() -> FakeWatchFactory:
    """A watch factory that records registrations instead of watching."""
    return FakeWatchFactory()
