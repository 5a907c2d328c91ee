"""Tests for query construction, validation and evaluation."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from runtimescout.exceptions import QueryError
from runtimescout.info.models import EnvKind, build_env_info
from runtimescout.locator.query import (
    LocatorQuery,
    build_query,
    filter_envs,
    get_envs,
    kind_allowed,
    location_allowed,
    query_matches,
)


async def _aiter(items):
    for item in items:
        yield item


class TestBuildQuery:
    """Translating loose input into a validated query."""

    def test_kind_names_accepted(self) -> None:
        query = build_query(kinds=["pyenv", EnvKind.CONDA])
        assert query.kinds == frozenset({EnvKind.PYENV, EnvKind.CONDA})
        assert query.search_locations is None

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(QueryError, match="Unknown environment kind"):
            build_query(kinds=["snake"])

    def test_search_locations_made_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        query = build_query(search_locations=["project"])
        assert query.search_locations == (str(tmp_path / "project"),)

    def test_empty_query(self) -> None:
        assert build_query().is_empty


class TestValidate:
    """Malformed queries are programming errors."""

    def test_relative_location_rejected(self) -> None:
        with pytest.raises(QueryError):
            LocatorQuery(search_locations=("relative/dir",)).validate()

    def test_non_kind_rejected(self) -> None:
        with pytest.raises(QueryError):
            LocatorQuery(kinds=frozenset({"pyenv"})).validate()  # type: ignore[arg-type]

    def test_valid_query_returned(self, tmp_path: Path) -> None:
        query = LocatorQuery(kinds=frozenset({EnvKind.VENV}), search_locations=(str(tmp_path),))
        assert query.validate() is query


class TestEvaluation:
    """Pruning helpers and full record matching."""

    def test_kind_allowed(self) -> None:
        assert kind_allowed(None, EnvKind.PYENV)
        assert kind_allowed(LocatorQuery(), EnvKind.PYENV)
        query = LocatorQuery(kinds=frozenset({EnvKind.CONDA}))
        assert kind_allowed(query, EnvKind.CONDA)
        assert not kind_allowed(query, EnvKind.PYENV)

    def test_location_allowed_both_directions(self, tmp_path: Path) -> None:
        query = LocatorQuery(search_locations=(str(tmp_path / "work"),))
        assert location_allowed(query, str(tmp_path))
        assert location_allowed(query, str(tmp_path / "work" / "project"))
        assert not location_allowed(query, str(tmp_path / "elsewhere"))

    def test_location_prefix_is_not_containment(self, tmp_path: Path) -> None:
        query = LocatorQuery(search_locations=(str(tmp_path / "work"),))
        assert not location_allowed(query, str(tmp_path / "workshop"))

    def test_query_matches_search_location(self, tmp_path: Path) -> None:
        env = build_env_info(
            tmp_path / "proj" / ".venv" / "bin" / "python", EnvKind.VENV,
            location=tmp_path / "proj" / ".venv",
            search_location=tmp_path / "proj",
        )
        assert query_matches(build_query(search_locations=[tmp_path / "proj"]), env)
        assert not query_matches(build_query(search_locations=[tmp_path / "other"]), env)

    def test_query_matches_kind(self, tmp_path: Path) -> None:
        env = build_env_info(tmp_path / "python", EnvKind.CONDA)
        assert query_matches(None, env)
        assert not query_matches(build_query(kinds=["pyenv"]), env)

    def test_record_without_anchor_excluded_by_location(self, tmp_path: Path) -> None:
        env = build_env_info(tmp_path / "python")
        assert not query_matches(build_query(search_locations=[tmp_path]), env)


class TestIteratorHelpers:
    def test_filter_and_collect(self, tmp_path: Path) -> None:
        envs = [
            build_env_info(tmp_path / "a", EnvKind.PYENV),
            build_env_info(tmp_path / "b", EnvKind.CONDA),
        ]
        query = build_query(kinds=["conda"])
        result = asyncio.run(get_envs(filter_envs(_aiter(envs), query)))
        assert [e.executable for e in result] == [str(tmp_path / "b")]
