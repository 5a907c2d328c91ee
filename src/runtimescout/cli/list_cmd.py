"""``runtimescout list`` -- List discovered Python environments.

Runs every enabled locator, merges duplicate reports of the same
interpreter and prints a table (or JSON). ``--kind`` and
``--search-location`` narrow the result.

Exit Codes:
    0 -- At least one environment was found.
    2 -- No environment matched.
"""

from __future__ import annotations

import asyncio
import json
import sys

import click

from runtimescout.cli.context import engine_from_context
from runtimescout.cli.output import env_to_json, print_env_table
from runtimescout.engine import EnvironmentsEngine
from runtimescout.info.models import EnvInfo, EnvKind
from runtimescout.locator.query import LocatorQuery, build_query

KIND_CHOICE = click.Choice([kind.value for kind in EnvKind], case_sensitive=False)


def query_from_options(
    kinds: tuple[str, ...],
    search_locations: tuple[str, ...],
) -> LocatorQuery | None:
    """Build the query for ``--kind`` / ``--search-location`` options."""
    if not kinds and not search_locations:
        return None
    return build_query(
        kinds=[kind.lower() for kind in kinds] or None,
        search_locations=search_locations or None,
    )


async def collect_envs(
    engine: EnvironmentsEngine,
    query: LocatorQuery | None,
) -> list[EnvInfo]:
    """Run one scan and release the engine afterwards."""
    try:
        return await engine.get_envs(query)
    finally:
        engine.dispose()


@click.command("list")
@click.option(
    "--kind", "kinds",
    type=KIND_CHOICE,
    multiple=True,
    help="Only list environments of this kind (repeatable).",
)
@click.option(
    "--search-location", "search_locations",
    type=click.Path(file_okay=False),
    multiple=True,
    help="Only list environments found under this folder (repeatable).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@click.pass_context
def list_command(
    ctx: click.Context,
    kinds: tuple[str, ...],
    search_locations: tuple[str, ...],
    output_format: str,
) -> None:
    """List the Python environments installed on this machine."""
    query = query_from_options(kinds, search_locations)
    engine = engine_from_context(ctx)
    envs = asyncio.run(collect_envs(engine, query))

    if output_format == "json":
        click.echo(json.dumps({"environments": [env_to_json(e) for e in envs]}, indent=2))
    else:
        print_env_table(envs)

    sys.exit(0 if envs else 2)
