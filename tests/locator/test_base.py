"""Tests for the Locator contract and FilteredLocator symmetry."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from runtimescout.exceptions import DisposedError, QueryError
from runtimescout.locator.base import FilteredLocator, Locator
from runtimescout.locator.events import EnvsChangedEvent
from runtimescout.locator.query import LocatorQuery

from tests.locators.helpers import StaticLocator, executables, run_collect


def _only_python3(executable: str) -> bool:
    return executable.endswith("python3")


class TestLocatorContract:
    """Behaviour every locator inherits from the base class."""

    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            Locator()  # type: ignore[abstract]

    def test_iteration_is_restartable(self, tmp_path: Path) -> None:
        locator = StaticLocator("static", [str(tmp_path / "a"), str(tmp_path / "b")])
        first = run_collect(locator.iter_envs())
        second = run_collect(locator.iter_envs())
        assert executables(first) == executables(second)
        assert locator.started_iterations == 2

    def test_malformed_query_raises(self) -> None:
        locator = StaticLocator("static")
        with pytest.raises(QueryError):
            locator.iter_envs(LocatorQuery(search_locations=("relative",)))

    def test_use_after_dispose_raises(self, tmp_path: Path) -> None:
        locator = StaticLocator("static", [str(tmp_path / "a")])
        locator.dispose()
        assert locator.disposed
        with pytest.raises(DisposedError):
            locator.iter_envs()
        with pytest.raises(DisposedError):
            asyncio.run(locator.resolve_env(tmp_path / "a"))

    def test_dispose_clears_listeners(self) -> None:
        locator = StaticLocator("static")
        locator.on_changed.subscribe(lambda e: None)
        locator.dispose()
        assert locator.on_changed.listener_count == 0

    def test_repr_names_locator(self) -> None:
        assert repr(StaticLocator("static")) == "<StaticLocator static>"


class TestFilteredLocator:
    """The predicate applies to iteration and resolution alike."""

    def test_iteration_filtered(self, tmp_path: Path) -> None:
        inner = StaticLocator("static", [str(tmp_path / "python"), str(tmp_path / "python3")])
        locator = FilteredLocator(inner, _only_python3)
        assert executables(run_collect(locator.iter_envs())) == {str(tmp_path / "python3")}

    def test_resolution_filtered(self, tmp_path: Path) -> None:
        inner = StaticLocator("static", [str(tmp_path / "python"), str(tmp_path / "python3")])
        locator = FilteredLocator(inner, _only_python3)
        assert asyncio.run(locator.resolve_env(tmp_path / "python")) is None
        assert inner.resolve_calls == 0
        resolved = asyncio.run(locator.resolve_env(tmp_path / "python3"))
        assert resolved is not None

    def test_name_and_events_relayed(self) -> None:
        inner = StaticLocator("inner")
        locator = FilteredLocator(inner, _only_python3)
        seen: list[EnvsChangedEvent] = []
        locator.on_changed.subscribe(seen.append)
        inner.on_changed.fire(EnvsChangedEvent())
        assert locator.name == "inner"
        assert len(seen) == 1

    def test_dispose_disposes_inner_once(self) -> None:
        inner = StaticLocator("inner")
        locator = FilteredLocator(inner, _only_python3)
        locator.dispose()
        locator.dispose()
        assert inner.dispose_count == 1
