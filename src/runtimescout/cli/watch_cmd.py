"""``runtimescout watch`` -- Keep the environment list up to date.

Lists the environments once, then waits for change notifications from the
watching locators and lists again after each one. Runs until interrupted
(Ctrl+C) or, with ``--max-events``, until that many changes were seen.

Exit Codes:
    0 -- Stopped by the user or after ``--max-events`` changes.
"""

from __future__ import annotations

import asyncio

import click

from runtimescout.cli.context import engine_from_context
from runtimescout.cli.list_cmd import KIND_CHOICE, query_from_options
from runtimescout.cli.output import console, print_env_table
from runtimescout.engine import EnvironmentsEngine
from runtimescout.locator.events import EnvsChangedEvent
from runtimescout.locator.query import LocatorQuery


async def watch_envs(
    engine: EnvironmentsEngine,
    query: LocatorQuery | None,
    max_events: int | None = None,
) -> int:
    """List, then re-list on every change. Returns the number of changes seen.

    Notifications arrive on watcher threads; they are handed to the event
    loop with ``call_soon_threadsafe``.
    """
    loop = asyncio.get_running_loop()
    changed = asyncio.Event()

    def _on_changed(event: EnvsChangedEvent) -> None:
        loop.call_soon_threadsafe(changed.set)

    subscription = engine.on_changed.subscribe(_on_changed)
    seen = 0
    try:
        print_env_table(await engine.get_envs(query))
        while max_events is None or seen < max_events:
            await changed.wait()
            changed.clear()
            seen += 1
            console.print("[dim]Change detected, rescanning...[/dim]")
            print_env_table(await engine.get_envs(query))
    finally:
        subscription.dispose()
        engine.dispose()
    return seen


@click.command("watch")
@click.option(
    "--kind", "kinds",
    type=KIND_CHOICE,
    multiple=True,
    help="Only list environments of this kind (repeatable).",
)
@click.option(
    "--max-events", type=click.IntRange(min=0), default=None,
    help="Stop after this many changes (default: run until interrupted).",
)
@click.pass_context
def watch_command(ctx: click.Context, kinds: tuple[str, ...], max_events: int | None) -> None:
    """List environments and refresh the list whenever they change."""
    query = query_from_options(kinds, ())
    engine = engine_from_context(ctx)
    try:
        asyncio.run(watch_envs(engine, query, max_events))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
