"""Assemble the default set of locators and the engine around them.

Registration order is fixed: ``path``, ``pyenv``, ``conda``,
``virtualenvs``, then one ``workspace`` locator per configured folder.
Earlier locators are authoritative when two report the same interpreter.
"""

from __future__ import annotations

import logging

from runtimescout.common.interpreter import InterpreterProbe
from runtimescout.common.watcher import WatchFactory
from runtimescout.config import ScoutConfig
from runtimescout.engine import EnvironmentsEngine
from runtimescout.locator.aggregator import Locators
from runtimescout.locator.base import Locator
from runtimescout.locators.conda import CondaEnvLocator
from runtimescout.locators.path_env import PathEnvVarLocator
from runtimescout.locators.pyenv import PyenvLocator
from runtimescout.locators.virtualenvs import GlobalVirtualEnvLocator, WorkspaceVirtualEnvLocator

logger = logging.getLogger(__name__)


def default_locators(
    config: ScoutConfig | None = None,
    *,
    watch_factory: WatchFactory | None = None,
) -> Locators:
    """Build the enabled strategies, composed in registration order.

    Args:
        config: Settings; defaults apply when omitted.
        watch_factory: Replacement for the filesystem watch service,
            passed to every watching locator.
    """
    config = config or ScoutConfig()
    locators: list[Locator] = []
    if config.is_enabled("path"):
        locators.append(PathEnvVarLocator())
    if config.is_enabled("pyenv"):
        locators.append(PyenvLocator(config.pyenv_root, watch_factory=watch_factory))
    if config.is_enabled("conda"):
        locators.append(CondaEnvLocator(config.conda_roots, watch_factory=watch_factory))
    if config.is_enabled("virtualenvs"):
        locators.append(
            GlobalVirtualEnvLocator(config.virtualenv_roots, watch_factory=watch_factory)
        )
    if config.is_enabled("workspace"):
        locators.extend(
            WorkspaceVirtualEnvLocator(folder, watch_factory=watch_factory)
            for folder in config.workspaces
        )
    logger.debug("Registered locators: %s", ", ".join(repr(loc) for loc in locators))
    return Locators(locators, resolve_timeout=config.resolve_timeout)


def create_engine(
    config: ScoutConfig | None = None,
    *,
    watch_factory: WatchFactory | None = None,
) -> EnvironmentsEngine:
    """Build an ``EnvironmentsEngine`` over ``default_locators(config)``."""
    config = config or ScoutConfig()
    probe = InterpreterProbe(config.probe_timeout) if config.probe_interpreters else None
    return EnvironmentsEngine(
        default_locators(config, watch_factory=watch_factory),
        cache_enabled=config.cache,
        interpreter_probe=probe,
    )
