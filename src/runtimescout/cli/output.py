"""Rich output formatting helpers for the RuntimeScout CLI.

Tables for environment listings and a detail panel for a single resolved
environment, plus the JSON shape shared by ``--format json``.

Kind Color Mapping:
    path / system = white, pyenv = cyan, conda = green,
    virtual environments = yellow, anything else = magenta
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from runtimescout.info.models import EnvInfo, EnvKind

_KIND_STYLES: dict[EnvKind, str] = {
    EnvKind.PATH_ENTRY: "white",
    EnvKind.SYSTEM: "white",
    EnvKind.PYENV: "cyan",
    EnvKind.CONDA: "green",
    EnvKind.VENV: "yellow",
    EnvKind.VIRTUALENV: "yellow",
    EnvKind.VIRTUALENVWRAPPER: "yellow",
    EnvKind.PIPENV: "yellow",
}

console = Console()


def kind_style(kind: EnvKind) -> str:
    """Return the Rich style string for a given environment kind."""
    return _KIND_STYLES.get(kind, "magenta")


def env_to_json(env: EnvInfo) -> dict[str, Any]:
    """Convert a record to a JSON-serializable dict."""
    version = env.version
    return {
        "executable": env.executable,
        "kind": env.kind.value,
        "version": str(version) or None,
        "version_info": {
            "major": version.major,
            "minor": version.minor,
            "micro": version.micro,
            "release": version.release,
            "serial": version.serial,
        },
        "location": env.location or None,
        "name": env.name or None,
        "display_name": env.display_name or None,
        "distro": env.distro.org or None,
        "arch": env.arch.value,
        "search_location": env.search_location or None,
        "source": list(env.source),
    }


def print_env_table(envs: list[EnvInfo], *, title: str = "Python Environments") -> None:
    """Print a summary table of environments.

    Args:
        envs: Records to show, in display order.
        title: Table title.
    """
    if not envs:
        console.print("[dim]No Python environments found.[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Name", style="bold")
    table.add_column("Kind", justify="center")
    table.add_column("Version", justify="right")
    table.add_column("Executable", style="dim", overflow="fold")
    table.add_column("Source", style="dim")

    for env in envs:
        table.add_row(
            env.display_name or env.name or "-",
            Text(env.kind.value, style=kind_style(env.kind)),
            str(env.version) or "?",
            env.executable,
            ", ".join(env.source),
        )

    console.print(table)
    _print_summary(envs)


def _print_summary(envs: list[EnvInfo]) -> None:
    """Print a one-line count per kind after the table."""
    counts: dict[EnvKind, int] = {}
    for env in envs:
        counts[env.kind] = counts.get(env.kind, 0) + 1
    parts = [f"[bold]{len(envs)}[/bold] environments"]
    for kind, count in counts.items():
        parts.append(f"[{kind_style(kind)}]{count} {kind.value}[/{kind_style(kind)}]")
    console.print(" | ".join(parts))


def print_env_detail(env: EnvInfo) -> None:
    """Print every field of a single resolved environment."""
    header = Text.assemble(
        ("Environment: ", "bold"), (env.display_name or env.executable, ""),
        ("  Kind: ", "bold"), (env.kind.value, kind_style(env.kind)),
    )
    console.print(Panel(header, title="Resolved Environment"))

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value", overflow="fold")
    table.add_row("Executable", env.executable)
    table.add_row("Version", str(env.version) or "unknown")
    table.add_row("Release", env.version.release or "-")
    table.add_row("Architecture", env.arch.value)
    table.add_row("Location", env.location or "-")
    table.add_row("Name", env.name or "-")
    table.add_row("Distribution", env.distro.org or "-")
    table.add_row("Search location", env.search_location or "-")
    table.add_row("Reported by", ", ".join(env.source) or "-")
    console.print(table)
