"""``runtimescout resolve <path>`` -- Show everything known about one interpreter.

Asks every locator, in registration order, whether it recognizes the
path. With ``--probe`` (or ``probe_interpreters: true`` in the
configuration) the interpreter is run to fill in an incomplete version or
unknown architecture.

Exit Codes:
    0 -- The path was resolved.
    1 -- No locator recognizes the path.
    2 -- The path could not be inspected.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys

import click

from runtimescout.cli.context import engine_from_context
from runtimescout.cli.output import env_to_json, print_env_detail
from runtimescout.engine import EnvironmentsEngine
from runtimescout.exceptions import ProbeError
from runtimescout.info.models import EnvInfo


async def resolve_one(engine: EnvironmentsEngine, path: str) -> EnvInfo | None:
    """Resolve ``path`` and release the engine afterwards."""
    try:
        return await engine.resolve_env(path)
    finally:
        engine.dispose()


@click.command("resolve")
@click.argument("path", type=click.Path())
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.option(
    "--probe", is_flag=True, default=False,
    help="Run the interpreter to complete its version and architecture.",
)
@click.pass_context
def resolve_command(ctx: click.Context, path: str, output_format: str, probe: bool) -> None:
    """Resolve an interpreter path into a complete environment record."""
    engine = engine_from_context(ctx, probe=probe)
    try:
        env = asyncio.run(resolve_one(engine, os.path.abspath(path)))
    except ProbeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if env is None:
        if output_format == "json":
            click.echo(json.dumps({"environment": None, "path": path}))
        else:
            click.echo(f"Not a known Python environment: {path}")
        sys.exit(1)

    if output_format == "json":
        click.echo(json.dumps({"environment": env_to_json(env)}, indent=2))
    else:
        print_env_detail(env)
