"""Shared state handed from the ``runtimescout`` group to its commands.

The group stores the ``--config`` path in ``ctx.obj``; commands build
their engine through ``engine_from_context`` so that configuration errors
are reported the same way everywhere. Tests may place their own
``engine_factory`` in ``ctx.obj``.

Exit Codes:
    3 -- The configuration file is missing or invalid.
"""

from __future__ import annotations

import dataclasses
import sys
from collections.abc import Callable

import click

from runtimescout.config import ScoutConfig, load_config
from runtimescout.engine import EnvironmentsEngine
from runtimescout.exceptions import ConfigError
from runtimescout.factory import create_engine

EngineFactory = Callable[[ScoutConfig], EnvironmentsEngine]

EXIT_CONFIG_ERROR = 3


def config_from_context(ctx: click.Context) -> ScoutConfig:
    """Load (once) the configuration selected by the group options."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        try:
            obj["config"] = load_config(obj.get("config_path"))
        except ConfigError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(EXIT_CONFIG_ERROR)
    return obj["config"]


def engine_from_context(
    ctx: click.Context,
    *,
    probe: bool = False,
) -> EnvironmentsEngine:
    """Build the engine for one command invocation.

    Args:
        ctx: The current click context.
        probe: Force interpreter probing on, regardless of configuration.
    """
    config = config_from_context(ctx)
    if probe and not config.probe_interpreters:
        config = dataclasses.replace(config, probe_interpreters=True)
    factory: EngineFactory = ctx.ensure_object(dict).get("engine_factory", create_engine)
    return factory(config)
