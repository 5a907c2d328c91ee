"""Version parsing for interpreter installs.

Two kinds of evidence are handled here, both cheap (no subprocess):

* version strings, including pyenv version directory names such as
  ``3.9.0``, ``3.11-dev``, ``miniconda3-4.7.12`` or ``pypy3.6-7.3.1``;
* marker files inside an install: ``pyvenv.cfg``, ``conda-meta/python-*.json``
  and the ``lib/pythonX.Y`` directory.

Anything more precise requires running the interpreter, see
``runtimescout.common.interpreter``.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from runtimescout.info.models import EMPTY_VERSION, UNKNOWN, PythonVersion

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(
    r"^(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<micro>\d+))?"
    r"(?:"
    r"(?P<pre>a|b|rc|c)(?P<pre_serial>\d+)"
    r"|(?P<dev>-?dev)"
    r"|\.(?P<level>final|alpha|beta|candidate)\.(?P<level_serial>\d+)"
    r")?$"
)

_PRE_RELEASE_LEVELS: dict[str, str] = {
    "a": "alpha",
    "b": "beta",
    "c": "candidate",
    "rc": "candidate",
}

# "<org>-<digits...>", e.g. miniconda3-4.7.12, pypy3.6-7.3.1, stackless-3.7.5
_PYENV_ORG_RE = re.compile(r"^(?P<org>[A-Za-z][A-Za-z0-9.]*)-(?P<rest>\d.*)$")

# pypy3.6 -> ("pypy", "3.6")
_ORG_WITH_PY_VERSION_RE = re.compile(r"^(?P<org>[A-Za-z]+?)(?P<py>\d+(?:\.\d+)?)$")

# Distributions whose own version number is the Python version.
_PYTHON_VERSIONED_ORGS: frozenset[str] = frozenset({
    "activepython",
    "ironpython",
    "jython",
    "stackless",
})

# Implementations whose name carries the Python version (pypy3.6).
_PY_VERSION_IN_NAME_ORGS: frozenset[str] = frozenset({"pypy"})

_CONDA_PYTHON_META_RE = re.compile(r"^python-(?P<version>\d+\.\d+(?:\.\d+)?)-.*\.json$")
_LIB_PYTHON_DIR_RE = re.compile(r"^python(?P<version>\d+\.\d+)$")
_BINARY_VERSION_RE = re.compile(r"^python(?P<version>\d+(?:\.\d+)?)(?:\.exe)?$", re.IGNORECASE)


def parse_version(text: str) -> PythonVersion:
    """Parse a Python version string.

    Accepts ``3``, ``3.9``, ``3.9.0``, ``3.10.0rc1``, ``3.11-dev`` and the
    ``sys.version_info`` style ``3.8.5.final.0``. Missing components are
    reported as unknown, never as ``0``.

    Raises:
        ValueError: If ``text`` is not a recognizable version.
    """
    m = _VERSION_RE.match(text.strip())
    if not m:
        raise ValueError(f"Invalid Python version: {text!r}")

    def _num(group: str) -> int:
        value = m.group(group)
        return int(value) if value is not None else UNKNOWN

    release = ""
    serial = UNKNOWN
    if m.group("pre"):
        release = _PRE_RELEASE_LEVELS[m.group("pre")]
        serial = int(m.group("pre_serial"))
    elif m.group("dev"):
        release = "dev"
    elif m.group("level"):
        release = m.group("level")
        serial = int(m.group("level_serial"))

    return PythonVersion(
        major=_num("major"),
        minor=_num("minor"),
        micro=_num("micro"),
        release=release,
        serial=serial,
    )


def _try_parse(text: str) -> PythonVersion:
    try:
        return parse_version(text)
    except ValueError:
        return EMPTY_VERSION


def parse_pyenv_dirname(name: str) -> tuple[PythonVersion, str]:
    """Interpret a pyenv ``versions/<name>`` directory name.

    Returns:
        A ``(version, org)`` tuple. ``org`` is empty for plain CPython
        versions and for virtual environments created with
        pyenv-virtualenv, whose names carry no version at all.

    Examples::

        3.9.0              -> (3.9.0, "")
        miniconda3-4.7.12  -> (unknown, "miniconda3")
        pypy3.6-7.3.1      -> (3.6 with unknown micro, "pypy")
        stackless-3.7.5    -> (3.7.5, "stackless")
        venv1              -> (unknown, "")
    """
    version = _try_parse(name)
    if not version.is_empty:
        return version, ""

    m = _PYENV_ORG_RE.match(name)
    if not m:
        return EMPTY_VERSION, ""

    org = m.group("org")
    rest = m.group("rest")
    if org.lower() in _PYTHON_VERSIONED_ORGS:
        return _try_parse(rest), org

    named = _ORG_WITH_PY_VERSION_RE.match(org)
    if named and named.group("org").lower() in _PY_VERSION_IN_NAME_ORGS:
        return _try_parse(named.group("py")), named.group("org")

    # The trailing number is the distribution's own release, e.g. conda 4.7.12.
    return EMPTY_VERSION, org


def read_pyvenv_cfg(location: str | os.PathLike[str]) -> dict[str, str]:
    """Read ``pyvenv.cfg`` from an environment folder.

    Returns:
        Lower-cased keys mapped to stripped values. Empty when the file is
        missing or unreadable.
    """
    cfg = Path(location) / "pyvenv.cfg"
    try:
        text = cfg.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return {}
    except OSError:
        logger.debug("Cannot read %s", cfg, exc_info=True)
        return {}

    values: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip().lower()] = value.strip()
    return values


def _version_from_pyvenv_cfg(location: Path) -> PythonVersion:
    cfg = read_pyvenv_cfg(location)
    for key in ("version", "version_info"):
        if key in cfg:
            version = _try_parse(cfg[key])
            if not version.is_empty:
                return version
    return EMPTY_VERSION


def _version_from_conda_meta(location: Path) -> PythonVersion:
    meta = location / "conda-meta"
    try:
        names = sorted(os.listdir(meta))
    except OSError:
        return EMPTY_VERSION
    for name in names:
        m = _CONDA_PYTHON_META_RE.match(name)
        if m:
            return _try_parse(m.group("version"))
    return EMPTY_VERSION


def _version_from_lib_dir(location: Path) -> PythonVersion:
    try:
        names = sorted(os.listdir(location / "lib"))
    except OSError:
        return EMPTY_VERSION
    for name in names:
        m = _LIB_PYTHON_DIR_RE.match(name)
        if m:
            return _try_parse(m.group("version"))
    return EMPTY_VERSION


def version_from_install(
    location: str | os.PathLike[str],
    executable: str | os.PathLike[str] | None = None,
) -> PythonVersion:
    """Best-effort version of an install from files inside it.

    Evidence is tried from most to least precise: ``pyvenv.cfg``, conda
    metadata, the ``lib/pythonX.Y`` folder and finally the executable name.
    Unreadable evidence is skipped.

    Returns:
        The first version found, or an empty version.
    """
    if location:
        root = Path(location)
        for probe in (_version_from_pyvenv_cfg, _version_from_conda_meta, _version_from_lib_dir):
            version = probe(root)
            if not version.is_empty:
                return version

    if executable:
        m = _BINARY_VERSION_RE.match(os.path.basename(os.fspath(executable)))
        if m:
            return _try_parse(m.group("version"))
    return EMPTY_VERSION
