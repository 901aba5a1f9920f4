"""MIDI command implementations."""

import logging
import time

import click

from mixbridge.exceptions import collect_errors
from mixbridge.midi import MidiMultiplexer
from mixbridge.models import MidiEvent, MidiEventKind

from ..output import timestamp

logger = logging.getLogger(__name__)


def describe_event(event: MidiEvent) -> str:
    """One-line human readable form of a normalized event."""
    if event.kind == MidiEventKind.CC:
        return f"CC    ch={event.channel:<2} cc={event.controller:<3} value={event.value}"
    if event.kind == MidiEventKind.PITCH_BEND:
        return f"BEND  ch={event.channel:<2} value={event.value}"
    label = "ON " if event.kind == MidiEventKind.NOTE_ON else "OFF"
    return f"NOTE {label} ch={event.channel:<2} note={event.note:<3} velocity={event.value}"


class _MonitorPrinter:
    """MIDI observer echoing events to the console."""

    def on_midi_message(self, event: MidiEvent) -> None:
        click.echo(f"[{timestamp()}] {event.source_device}: {describe_event(event)}")

    def on_midi_device_lost(self, device_name: str) -> None:
        click.echo(f"[{timestamp()}] {device_name}: disconnected")


@click.group(name="midi")
def midi_group():
    """MIDI device commands."""
    pass


@midi_group.command(name="list")
def list_midi():
    """List available MIDI ports."""
    midi = MidiMultiplexer()

    click.echo("MIDI Input Ports:\n")
    inputs = midi.available_inputs()
    if not inputs:
        click.echo("  No MIDI input ports found.")
    else:
        for i, port in enumerate(inputs):
            click.echo(f"  [{i}] {port}")

    click.echo("\nMIDI Output Ports:\n")
    outputs = midi.available_outputs()
    if not outputs:
        click.echo("  No MIDI output ports found.")
    else:
        for i, port in enumerate(outputs):
            click.echo(f"  [{i}] {port}")


@midi_group.command(name="monitor")
@click.option("--device", "-d", "devices", multiple=True, help="Only monitor these input ports (repeatable)")
def monitor_midi(devices: tuple[str, ...]):
    """
    Monitor MIDI input ports and print normalized messages.

    Shows messages the way the bridge sees them: 1-based channels, NoteOn
    with velocity 0 as NoteOff, pitch bend as 0-16383. Messages the bridge
    ignores (clock, sysex, ...) are not shown.

    Press Ctrl+C to stop monitoring.
    """
    midi = MidiMultiplexer()
    ports = list(devices) or midi.available_inputs()

    if not ports:
        click.echo("No MIDI input ports found.")
        return

    midi.register_observer(_MonitorPrinter())
    collector = collect_errors("open MIDI inputs")
    for port in ports:
        with collector.try_operation(port):
            midi.connect_device(port)
    if collector.has_errors:
        click.echo(collector.get_summary(), err=True)
    opened = midi.connected_devices()

    if not opened:
        click.echo("No MIDI input ports could be opened.")
        return

    click.echo(f"Monitoring {len(opened)} MIDI input port(s):")
    for port in opened:
        click.echo(f"  - {port}")
    click.echo("\nPress Ctrl+C to stop\n")

    try:
        while True:
            time.sleep(0.5)
            midi.check_availability()
    except KeyboardInterrupt:
        click.echo("\n\nStopping monitor...")
    finally:
        midi.disconnect_all()
