"""Data models describing one discovered Python environment.

An ``EnvInfo`` is keyed by its executable path. Locators create records
cheaply at scan time (path and kind first) and may fill in version and
architecture later; every enrichment produces a new record because the
dataclasses are frozen.

Unknown numeric version components use ``-1`` so that "not determined" can
never be confused with a concrete ``0``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum

from runtimescout.common.platform import is_case_insensitive_fs
from runtimescout.exceptions import QueryError

UNKNOWN: int = -1


class EnvKind(str, Enum):
    """Provenance tag set by the locator that produced a record."""

    UNKNOWN = "unknown"
    PATH_ENTRY = "path"
    SYSTEM = "system"
    PYENV = "pyenv"
    CONDA = "conda"
    VENV = "venv"
    VIRTUALENV = "virtualenv"
    VIRTUALENVWRAPPER = "virtualenvwrapper"
    PIPENV = "pipenv"
    WINDOWS_STORE = "windows-store"
    CUSTOM = "custom"


class Architecture(str, Enum):
    """Pointer width of an interpreter build."""

    X86 = "x86"
    X64 = "x64"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class PythonVersion:
    """A (possibly partial) Python version.

    Attributes:
        major: Major version, ``-1`` if unknown.
        minor: Minor version, ``-1`` if unknown.
        micro: Micro version, ``-1`` if unknown.
        release: Release level (``final``, ``alpha``, ``beta``,
            ``candidate``, ``dev``) or empty when unknown.
        serial: Release serial, ``-1`` if unknown.
    """

    major: int = UNKNOWN
    minor: int = UNKNOWN
    micro: int = UNKNOWN
    release: str = ""
    serial: int = UNKNOWN

    @property
    def is_empty(self) -> bool:
        return self.major == UNKNOWN

    @property
    def is_micro_known(self) -> bool:
        return self.micro != UNKNOWN

    @property
    def is_complete(self) -> bool:
        return UNKNOWN not in (self.major, self.minor, self.micro)

    def __str__(self) -> str:
        known: list[str] = []
        for part in (self.major, self.minor, self.micro):
            if part == UNKNOWN:
                break
            known.append(str(part))
        return ".".join(known)


EMPTY_VERSION = PythonVersion()


@dataclass(frozen=True)
class Distro:
    """The distribution (organization) an interpreter came from."""

    org: str = ""
    default_display_name: str = ""


@dataclass(frozen=True)
class EnvInfo:
    """A single Python environment discovered on the system.

    Attributes:
        executable: Absolute path of the interpreter binary (identity).
        kind: Provenance tag set by the producing locator.
        version: Interpreter version, possibly partial.
        location: Install directory of the environment. May differ from
            the executable's parent (e.g. ``<env>/bin/python``).
        name: Short human-facing name.
        distro: Owning distribution.
        arch: Interpreter architecture.
        display_name: Derived label, not authoritative.
        search_location: Root folder the environment was found under,
            for locators scoped to specific directories.
        source: Names of the locators that reported this environment.
    """

    executable: str
    kind: EnvKind = EnvKind.UNKNOWN
    version: PythonVersion = EMPTY_VERSION
    location: str = ""
    name: str = ""
    distro: Distro = field(default_factory=Distro)
    arch: Architecture = Architecture.UNKNOWN
    display_name: str = ""
    search_location: str = ""
    source: tuple[str, ...] = ()

    @property
    def identity(self) -> str:
        return normalize_identity(self.executable)


def normalize_identity(path: str | os.PathLike[str]) -> str:
    """Normalize an executable path into a comparable identity key.

    The path is made absolute and normalized, and lower-cased on
    platforms whose filesystems are case-insensitive by default.
    Symlinks are deliberately not resolved: a link and its target are
    distinct environments.
    """
    normalized = os.path.normpath(os.path.abspath(os.fspath(path)))
    if is_case_insensitive_fs():
        normalized = normalized.lower()
    return normalized


def get_identity(env: str | os.PathLike[str] | EnvInfo) -> str:
    """Extract the normalized identity from a path or a (partial) record.

    Raises:
        QueryError: If ``env`` is neither a path nor an ``EnvInfo`` or
            carries no executable path.
    """
    if isinstance(env, EnvInfo):
        raw = env.executable
    elif isinstance(env, (str, os.PathLike)):
        raw = os.fspath(env)
    else:
        raise QueryError(f"Cannot derive an environment identity from {env!r}")
    if not raw:
        raise QueryError("Environment identity requires an executable path")
    return normalize_identity(raw)


def get_executable(env: str | os.PathLike[str] | EnvInfo) -> str:
    """Return the absolute (not case-folded) executable path of ``env``."""
    raw = env.executable if isinstance(env, EnvInfo) else os.fspath(env)
    if not raw:
        raise QueryError("Environment identity requires an executable path")
    return os.path.normpath(os.path.abspath(raw))


def same_environment(
    a: str | os.PathLike[str] | EnvInfo,
    b: str | os.PathLike[str] | EnvInfo,
) -> bool:
    """Whether two paths or records denote the same environment."""
    return get_identity(a) == get_identity(b)


def build_env_info(
    executable: str | os.PathLike[str],
    kind: EnvKind = EnvKind.UNKNOWN,
    *,
    version: PythonVersion | None = None,
    location: str | os.PathLike[str] = "",
    name: str = "",
    distro: Distro | None = None,
    arch: Architecture = Architecture.UNKNOWN,
    display_name: str = "",
    search_location: str | os.PathLike[str] = "",
    source: tuple[str, ...] = (),
) -> EnvInfo:
    """Construct a record, filling derived fields that were not supplied.

    ``executable`` is made absolute. ``display_name`` defaults to
    ``"<name>:<kind>"`` when a name is known, else to a label built from
    the version.
    """
    exe = os.path.normpath(os.path.abspath(os.fspath(executable)))
    version = version or EMPTY_VERSION
    if not display_name:
        display_name = _default_display_name(name, kind, version)
    return EnvInfo(
        executable=exe,
        kind=kind,
        version=version,
        location=os.fspath(location) if location else "",
        name=name,
        distro=distro or Distro(),
        arch=arch,
        display_name=display_name,
        search_location=os.fspath(search_location) if search_location else "",
        source=source,
    )


def _default_display_name(name: str, kind: EnvKind, version: PythonVersion) -> str:
    if name:
        return f"{name}:{kind.value}" if kind != EnvKind.UNKNOWN else name
    label = f"Python {version}" if not version.is_empty else "Python"
    if kind in (EnvKind.UNKNOWN, EnvKind.PATH_ENTRY, EnvKind.SYSTEM):
        return label
    return f"{label} ({kind.value})"


def merge_versions(kept: PythonVersion, other: PythonVersion) -> PythonVersion:
    """Fill unknown components of ``kept`` from ``other``.

    Components are only borrowed when both versions agree on everything
    ``kept`` already knows; a conflicting ``other`` is ignored.
    """
    if other.is_empty:
        return kept
    if kept.is_empty:
        return other
    if kept.major != other.major:
        return kept
    if kept.minor == UNKNOWN:
        return other
    if kept.minor != other.minor:
        return kept
    if kept.micro == UNKNOWN:
        return other
    if kept.micro != other.micro:
        return kept
    if not kept.release and other.release:
        return replace(kept, release=other.release, serial=other.serial)
    return kept


def merge_env_infos(kept: EnvInfo, other: EnvInfo) -> EnvInfo:
    """Merge two records for the same environment.

    ``kept`` is authoritative: populated fields are never overwritten and
    only empty ones are filled from ``other``. ``kind`` is only replaced
    when ``kept`` does not know it. Sources are unioned in order.
    """
    source = kept.source + tuple(s for s in other.source if s not in kept.source)
    version = merge_versions(kept.version, other.version)
    display_name = kept.display_name
    if not kept.name and other.name:
        # Derived label follows the borrowed name.
        display_name = other.display_name or display_name
    return replace(
        kept,
        kind=other.kind if kept.kind == EnvKind.UNKNOWN else kept.kind,
        version=version,
        location=kept.location or other.location,
        name=kept.name or other.name,
        distro=Distro(
            org=kept.distro.org or other.distro.org,
            default_display_name=(
                kept.distro.default_display_name or other.distro.default_display_name
            ),
        ),
        arch=other.arch if kept.arch == Architecture.UNKNOWN else kept.arch,
        display_name=display_name or other.display_name,
        search_location=kept.search_location or other.search_location,
        source=source,
    )
