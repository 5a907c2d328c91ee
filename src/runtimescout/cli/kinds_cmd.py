"""``runtimescout kinds`` -- List the environment kinds RuntimeScout reports.

Exit Codes:
    0 -- Always (informational command, cannot fail).
"""

from __future__ import annotations

import click

from runtimescout.info.models import EnvKind

_KIND_DESCRIPTIONS: dict[EnvKind, str] = {
    EnvKind.UNKNOWN: "Not classified by any locator",
    EnvKind.PATH_ENTRY: "Interpreter found in a $PATH directory",
    EnvKind.SYSTEM: "Interpreter installed by the operating system",
    EnvKind.PYENV: "Install under $PYENV_ROOT/versions",
    EnvKind.CONDA: "Conda base or named environment",
    EnvKind.VENV: "Environment created by the stdlib venv module",
    EnvKind.VIRTUALENV: "Environment created by virtualenv",
    EnvKind.VIRTUALENVWRAPPER: "virtualenvwrapper environment in $WORKON_HOME",
    EnvKind.PIPENV: "Environment managed by pipenv",
    EnvKind.WINDOWS_STORE: "Microsoft Store Python",
    EnvKind.CUSTOM: "Reported by a user-supplied locator",
}


def format_kinds_table() -> str:
    """Build the kinds table as a plain string."""
    width = max(len(kind.value) for kind in EnvKind)
    lines = [f"{'Kind':<{width}}  Description", f"{'-' * width}  {'-' * 11}"]
    for kind in EnvKind:
        lines.append(f"{kind.value:<{width}}  {_KIND_DESCRIPTIONS.get(kind, '')}".rstrip())
    return "\n".join(lines)


@click.command("kinds")
def kinds_command() -> None:
    """List the environment kinds and what they mean."""
    click.echo(format_kinds_table())
