"""Property-based tests for version parsing and merging.

Verifies:
- Round trip: a complete version survives ``str`` then ``parse_version``.
- Partial versions never invent components.
- ``merge_versions`` never changes a component ``kept`` already knows.
"""
from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from runtimescout.info.models import UNKNOWN, PythonVersion, merge_versions
from runtimescout.info.version import parse_version


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

components = st.integers(min_value=0, max_value=99)


def partial_versions() -> st.SearchStrategy[PythonVersion]:
    """Versions known to some prefix of (major, minor, micro)."""
    return st.tuples(components, components, components, st.integers(0, 3)).map(
        lambda t: PythonVersion(*(t[i] if i < t[3] else UNKNOWN for i in range(3)))
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseRoundTrip:
    @given(components, components, components)
    def test_complete_version_round_trips(self, major: int, minor: int, micro: int) -> None:
        version = PythonVersion(major, minor, micro)
        assert parse_version(str(version)) == version

    @given(components, components)
    def test_missing_micro_stays_unknown(self, major: int, minor: int) -> None:
        parsed = parse_version(f"{major}.{minor}")
        assert parsed.micro == UNKNOWN
        assert not parsed.is_complete

    @given(components, components, components, st.integers(min_value=0, max_value=9))
    def test_release_candidate(self, major: int, minor: int, micro: int, serial: int) -> None:
        parsed = parse_version(f"{major}.{minor}.{micro}rc{serial}")
        assert parsed.release == "candidate"
        assert parsed.serial == serial


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


class TestMergeVersions:
    @given(partial_versions(), partial_versions())
    def test_known_components_preserved(self, kept: PythonVersion, other: PythonVersion) -> None:
        merged = merge_versions(kept, other)
        for part in ("major", "minor", "micro"):
            if getattr(kept, part) != UNKNOWN:
                assert getattr(merged, part) == getattr(kept, part)

    @given(partial_versions())
    def test_merging_with_empty_is_identity(self, version: PythonVersion) -> None:
        assert merge_versions(version, PythonVersion()) == version
        assert merge_versions(PythonVersion(), version) == version
