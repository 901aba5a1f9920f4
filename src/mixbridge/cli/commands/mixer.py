"""Mixer command implementations."""

import logging

import click

from mixbridge.exceptions import ConfigurationError
from mixbridge.mixer import DiscoveryService
from mixbridge.models import AppConfig, DiscoveredMixer
from mixbridge.utils import load_object

from ..output import display_error

logger = logging.getLogger(__name__)


def describe_mixer(mixer: DiscoveredMixer) -> str:
    label = mixer.device_name or mixer.name or mixer.model or "Unknown mixer"
    details = [part for part in (mixer.model, mixer.serial and f"serial {mixer.serial}") if part]
    suffix = f" ({', '.join(details)})" if details else ""
    return f"{label} at {mixer.ip}{suffix}"


@click.group(name="mixer")
def mixer_group():
    """Mixer discovery commands."""
    pass


@mixer_group.command(name="discover")
@click.option("--timeout", "-t", type=float, default=None, help="Scan duration in seconds (default: from config)")
@click.pass_context
def discover(ctx, timeout: float | None):
    """
    Scan the local network for mixers.

    Requires a discovery backend configured as ``discovery_backend`` in the
    config file. Announcements from this machine are ignored, and each mixer
    is listed once.
    """
    try:
        config = AppConfig.load_or_default(ctx.obj.get("config_path"))
        if not config.discovery_backend:
            click.echo("No discovery backend configured (set 'discovery_backend' in the config file).")
            return
        backend = load_object(config.discovery_backend, "discovery_backend")()
    except ConfigurationError as e:
        display_error(e, ctx.obj.get("log_path"))
        ctx.exit(1)

    scan_timeout = timeout if timeout is not None else config.discovery_timeout
    click.echo(f"Scanning for mixers ({scan_timeout:g}s)...\n")

    found = DiscoveryService(backend).discover(
        scan_timeout,
        on_found=lambda mixer: click.echo(f"  - {describe_mixer(mixer)}"),
    )

    if not found:
        click.echo("  No mixers found.")
    else:
        click.echo(f"\nFound {len(found)} mixer(s).")
