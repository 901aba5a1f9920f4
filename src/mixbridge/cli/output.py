"""Console output helpers shared by commands."""

from datetime import datetime
from pathlib import Path

import click

from mixbridge.exceptions import format_error_for_display


def display_error(error: Exception, log_path: Path | None = None) -> None:
    """Print a clean error banner with the recovery hint, without a traceback."""
    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    if log_path:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)
    click.echo("For logging options, run: mixbridge --help", err=True)


def timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]
