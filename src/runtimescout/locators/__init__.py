"""Concrete discovery strategies.

Each class here is one ``Locator``: a directory scan, the ``$PATH``
search, or a version-manager / environment-folder layout. They are
combined by ``runtimescout.factory.default_locators``.
"""

from __future__ import annotations

from runtimescout.locators.conda import CondaEnvLocator
from runtimescout.locators.files import DirFilesLocator
from runtimescout.locators.path_env import PathEnvVarLocator
from runtimescout.locators.pyenv import PyenvLocator
from runtimescout.locators.virtualenvs import GlobalVirtualEnvLocator, WorkspaceVirtualEnvLocator
from runtimescout.locators.watching import FSWatchingLocator

__all__ = [
    "CondaEnvLocator",
    "DirFilesLocator",
    "FSWatchingLocator",
    "GlobalVirtualEnvLocator",
    "PathEnvVarLocator",
    "PyenvLocator",
    "WorkspaceVirtualEnvLocator",
]
