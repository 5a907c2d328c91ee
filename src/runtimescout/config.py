"""User configuration for RuntimeScout.

Configuration is a small YAML document. Every key is optional::

    locators: [path, pyenv, conda, virtualenvs, workspace]
    workspaces: [~/src/project]
    pyenv_root: ~/.pyenv
    conda_roots: [~/miniconda3]
    virtualenv_roots: [~/.virtualenvs]
    resolve_timeout: 10
    probe_interpreters: false
    probe_timeout: 15
    cache: true

The file is looked up in this order: an explicit path, the
``RUNTIMESCOUT_CONFIG`` environment variable, then
``~/.config/runtimescout/config.yaml``. With no file, defaults apply.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from runtimescout.common.platform import get_env_var, get_user_home
from runtimescout.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "RUNTIMESCOUT_CONFIG"

LOCATOR_NAMES: tuple[str, ...] = ("path", "pyenv", "conda", "virtualenvs", "workspace")


@dataclass
class ScoutConfig:
    """Settings controlling which locators run and how.

    Attributes:
        locators: Enabled strategies, by name. Registration order is fixed
            regardless of the order given here.
        workspaces: Project folders probed for in-project environments.
        pyenv_root: Overrides ``$PYENV_ROOT`` / ``~/.pyenv``.
        conda_roots: Overrides the built-in list of conda installs.
        virtualenv_roots: Overrides the shared environment folders.
        resolve_timeout: Per-locator bound in seconds for resolution.
        probe_interpreters: Run interpreters to complete resolved records.
        probe_timeout: Seconds allowed for one interpreter probe.
        cache: Keep the result of a full scan until something changes.
    """

    locators: list[str] = field(default_factory=lambda: list(LOCATOR_NAMES))
    workspaces: list[str] = field(default_factory=list)
    pyenv_root: str | None = None
    conda_roots: list[str] | None = None
    virtualenv_roots: list[str] | None = None
    resolve_timeout: float | None = 10.0
    probe_interpreters: bool = False
    probe_timeout: float = 15.0
    cache: bool = True

    def is_enabled(self, locator: str) -> bool:
        return locator in self.locators


def _expand(path: str) -> str:
    return os.path.abspath(os.path.expanduser(path))


def _as_path_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of paths")
    return [_expand(v) for v in value]


def _as_number(key: str, value: Any, *, allow_none: bool = False) -> float | None:
    if value is None and allow_none:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"'{key}' must be a positive number")
    return float(value)


def _as_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false")
    return value


def config_from_dict(data: dict[str, Any]) -> ScoutConfig:
    """Validate a parsed YAML mapping and build a ``ScoutConfig``.

    Raises:
        ConfigError: On unknown keys, wrong types or unknown locator names.
    """
    known = {f.name for f in fields(ScoutConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    config = ScoutConfig()
    if "locators" in data:
        value = data["locators"]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ConfigError("'locators' must be a list of names")
        bad = [v for v in value if v not in LOCATOR_NAMES]
        if bad:
            raise ConfigError(
                f"Unknown locators: {', '.join(bad)} "
                f"(expected some of {', '.join(LOCATOR_NAMES)})"
            )
        config.locators = list(value)
    if "workspaces" in data:
        config.workspaces = _as_path_list("workspaces", data["workspaces"])
    if data.get("pyenv_root") is not None:
        if not isinstance(data["pyenv_root"], str):
            raise ConfigError("'pyenv_root' must be a path")
        config.pyenv_root = _expand(data["pyenv_root"])
    if data.get("conda_roots") is not None:
        config.conda_roots = _as_path_list("conda_roots", data["conda_roots"])
    if data.get("virtualenv_roots") is not None:
        config.virtualenv_roots = _as_path_list("virtualenv_roots", data["virtualenv_roots"])
    if "resolve_timeout" in data:
        config.resolve_timeout = _as_number(
            "resolve_timeout", data["resolve_timeout"], allow_none=True,
        )
    if "probe_interpreters" in data:
        config.probe_interpreters = _as_bool("probe_interpreters", data["probe_interpreters"])
    if "probe_timeout" in data:
        config.probe_timeout = _as_number("probe_timeout", data["probe_timeout"]) or 0.0
    if "cache" in data:
        config.cache = _as_bool("cache", data["cache"])
    return config


def default_config_path() -> Path:
    return get_user_home() / ".config" / "runtimescout" / "config.yaml"


def find_config_file(explicit: str | os.PathLike[str] | None = None) -> Path | None:
    """Pick the configuration file to load, or ``None`` for defaults.

    An explicit path or ``$RUNTIMESCOUT_CONFIG`` must exist; the default
    location is optional.

    Raises:
        ConfigError: If an explicitly named file does not exist.
    """
    if explicit is not None:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"Configuration file not found: {path}")
        return path
    from_env = get_env_var(CONFIG_ENV_VAR)
    if from_env:
        path = Path(from_env).expanduser()
        if not path.is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        return path
    path = default_config_path()
    return path if path.is_file() else None


def load_config(path: str | os.PathLike[str] | None = None) -> ScoutConfig:
    """Load the configuration, falling back to defaults when there is none.

    Args:
        path: Explicit configuration file (``--config``).

    Returns:
        The validated configuration.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or
            holds invalid settings.
    """
    config_file = find_config_file(path)
    if config_file is None:
        logger.debug("No configuration file; using defaults")
        return ScoutConfig()

    try:
        raw = config_file.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {config_file}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_file}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping at the top level")
    logger.debug("Loaded configuration from %s", config_file)
    return config_from_dict(data)
