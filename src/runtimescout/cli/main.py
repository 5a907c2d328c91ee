"""RuntimeScout CLI -- Find every Python interpreter on this machine.

Entry point for the ``runtimescout`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    list     -- List discovered environments, optionally filtered.
    resolve  -- Show everything known about one interpreter path.
    watch    -- List, then list again whenever environments change.
    kinds    -- List the environment kinds RuntimeScout can report.

Usage::

    runtimescout list
    runtimescout list --kind pyenv --kind conda
    runtimescout list --search-location ~/src/project --format json
    runtimescout resolve ~/.pyenv/versions/3.9.0/bin/python --probe
    runtimescout watch
    runtimescout --config ./scout.yaml --verbose list
"""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from runtimescout import __version__
from runtimescout.cli.kinds_cmd import kinds_command
from runtimescout.cli.list_cmd import list_command
from runtimescout.cli.resolve_cmd import resolve_command
from runtimescout.cli.watch_cmd import watch_command


def _configure_logging(verbose: bool) -> None:
    """Send library logs to stderr through rich; debug level when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="runtimescout")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (default: $RUNTIMESCOUT_CONFIG or "
         "~/.config/runtimescout/config.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """RuntimeScout: discover the Python runtimes installed on this machine.

    Looks on $PATH, in pyenv, in conda installs and in virtual environment
    folders, and merges what it finds into one deduplicated list.
    """
    _configure_logging(verbose)
    obj = ctx.ensure_object(dict)
    obj["config_path"] = config_path


# Register all subcommands
cli.add_command(list_command)
cli.add_command(resolve_command)
cli.add_command(watch_command)
cli.add_command(kinds_command)
