"""Main CLI entry point."""

import logging
import logging.handlers
import sys
from pathlib import Path

import click

from mixbridge import __version__
from mixbridge.models.config import DEFAULT_CONFIG_DIR

from .commands import midi_group, mixer_group, preset_group, run

logger = logging.getLogger(__name__)


def resolve_log_path(debug: bool, log_file: Path | None) -> Path:
    """Debug mode logs to the working directory, otherwise to ~/.mixbridge/logs."""
    if log_file:
        return log_file
    if debug:
        return Path.cwd() / "mixbridge-debug.log"
    return DEFAULT_CONFIG_DIR / "logs" / "mixbridge.log"


def setup_logging(verbose: int, debug: bool, log_file: Path | None, log_level: str) -> Path:
    """
    Configure logging for the application.

    Args:
        verbose: Verbosity count (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, enable debug mode with file logging
        log_file: Custom log file path (optional)
        log_level: Log level for file logging (DEBUG/INFO/WARNING/ERROR)

    Returns:
        Path of the log file
    """
    if debug or verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Explicit log level applies to custom log files
    if log_file and not debug:
        level = getattr(logging, log_level.upper())

    log_path = resolve_log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Rotating file handler (keeps last 5 files, max 10MB each)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, file={log_path}")
    return log_path


@click.group()
@click.pass_context
@click.version_option(version=__version__, prog_name="mixbridge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.mixbridge/config.json)",
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG)")
@click.option("--debug", is_flag=True, help="Enable debug mode (DEBUG level, logs to ./mixbridge-debug.log)")
@click.option("--log-file", type=click.Path(path_type=Path), default=None, help="Custom log file path")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Log level for file logging (default: INFO)",
)
def cli(ctx, config_path: Path | None, verbose: int, debug: bool, log_file: Path | None, log_level: str):
    """
    mixbridge - drive a networked digital mixer from MIDI controllers.

    \b
    Examples:
      # Run the bridge with a preset
      mixbridge run --preset logic-pro

      # Find mixers on the network
      mixbridge mixer discover

      # Check a preset before using it
      mixbridge preset validate ./my-preset.json

      # Watch incoming MIDI
      mixbridge -v midi monitor
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_path"] = setup_logging(verbose, debug, log_file, log_level)


cli.add_command(run)
cli.add_command(midi_group)
cli.add_command(mixer_group)
cli.add_command(preset_group)


def main() -> None:
    """Console script entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nInterrupted", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
