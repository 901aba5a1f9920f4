"""Run command - starts the MIDI/mixer bridge."""

import logging
import time

import click

from mixbridge.core import Bridge
from mixbridge.mapping import MappingEngine
from mixbridge.models import AppConfig, MidiEvent, MixerCommand
from mixbridge.protocols import ConnectionKind
from mixbridge.services import PresetStore

from ..output import display_error, timestamp
from .midi import describe_event

logger = logging.getLogger(__name__)


class ConsoleReporter:
    """Echoes connection changes and, optionally, bridge activity."""

    def __init__(self, show_activity: bool = False):
        self.show_activity = show_activity

    # ConnectionObserver
    def on_connection_restored(self, kind: ConnectionKind, name: str) -> None:
        label = "MIDI device" if kind == ConnectionKind.MIDI else "Mixer"
        click.echo(f"[{timestamp()}] {label} connected: {name}")

    def on_device_lost(self, device_name: str) -> None:
        click.echo(f"[{timestamp()}] MIDI device lost: {device_name} (will retry)")

    def on_mixer_lost(self, address: str | None) -> None:
        click.echo(f"[{timestamp()}] Mixer connection lost: {address or 'unknown'} (will retry)")

    # BridgeObserver
    def on_midi_activity(self, event: MidiEvent) -> None:
        if self.show_activity:
            click.echo(f"[{timestamp()}] {event.source_device}: {describe_event(event)}")

    def on_mixer_activity(self, command: MixerCommand) -> None:
        if not self.show_activity:
            return
        value = command.value if command.value is not None else command.toggle
        click.echo(f"[{timestamp()}]   -> {command.action.value} {command.target} = {value}")


@click.command()
@click.option("--preset", "-p", type=str, default=None, help="Preset name (from ~/.mixbridge/presets) or file path")
@click.option("--mixer-ip", type=str, default=None, help="Connect to this mixer and make it the preferred one")
@click.option("--discover/--no-discover", default=True, help="Discover a mixer when none is preferred (default: on)")
@click.option("--activity", is_flag=True, help="Print every MIDI event and mixer command")
@click.pass_context
def run(ctx, preset: str | None, mixer_ip: str | None, discover: bool, activity: bool):
    """
    Run the bridge until Ctrl+C.

    Loads the preset (or the last used one), opens the preferred MIDI
    devices, connects the mixer, and keeps both sides reconnecting in the
    background. Changes to preferences are saved back to the preset.

    \b
    Examples:
      mixbridge run --preset logic-pro
      mixbridge run --preset ./live.json --mixer-ip 192.168.1.50
      mixbridge run --no-discover --activity
    """
    config_path = ctx.obj.get("config_path")
    log_path = ctx.obj.get("log_path")
    bridge = None

    try:
        config = AppConfig.load_or_default(config_path)
        engine = MappingEngine()
        store = PresetStore(engine)

        source = preset or config.last_preset
        if source:
            loaded = store.load(source)
            click.echo(f"Preset: {loaded.name} ({len(loaded.mappings)} mappings)")
            config.last_preset = store.current_path
            config.save(config_path)
        else:
            click.echo("No preset loaded; running without mappings")

        if mixer_ip:
            engine.set_preferred_mixer_ip(mixer_ip)

        bridge = Bridge.from_config(config, engine=engine)
        reporter = ConsoleReporter(show_activity=activity)
        bridge.register_connection_observer(reporter)
        bridge.register_observer(reporter)

        click.echo("Starting bridge... (Ctrl+C to stop)\n")
        bridge.start(discover=discover)

        connected = bridge.midi.connected_devices()
        click.echo(f"MIDI: {', '.join(connected) if connected else 'no device'}")
        click.echo(f"Mixer: {bridge.mixer.address if bridge.mixer.is_connected else 'not connected'}\n")

        while True:
            time.sleep(0.5)

    except KeyboardInterrupt:
        click.echo("\nStopping bridge...")

    except Exception as e:
        logger.exception("Error running bridge")
        display_error(e, log_path)
        ctx.exit(1)

    finally:
        if bridge is not None:
            bridge.stop()
