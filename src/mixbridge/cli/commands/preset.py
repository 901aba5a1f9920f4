"""Preset command implementations."""

import click

from mixbridge.exceptions import MixBridgeError
from mixbridge.mapping import MappingEngine
from mixbridge.models import ChannelRef, MappingRule, TriggerType
from mixbridge.services import PresetStore

from ..output import display_error


def describe_rule(rule: MappingRule) -> str:
    trigger = rule.midi
    if trigger.type == TriggerType.CC:
        source = f"CC {trigger.controller} ch{trigger.channel}"
    elif trigger.type == TriggerType.NOTE:
        source = f"Note {trigger.note} ch{trigger.channel}"
    else:
        source = f"Notes {trigger.note_min}-{trigger.note_max} ch{trigger.channel}"
    if trigger.device:
        source += f" [{trigger.device}]"
    if trigger.invert:
        source += " (inverted)"

    target = rule.mixer.target
    where = f"{target.type} {target.channel}" if isinstance(target, ChannelRef) else f"group {target.channel}"
    action = f"{rule.mixer.action.value} {where}"
    if rule.mixer.action.is_continuous:
        low, high = rule.mixer.effective_range
        action += f" [{low:g}-{high:g}]"
    return f"{source:<32} -> {action}"


@click.group(name="preset")
def preset_group():
    """Mapping preset commands."""
    pass


@preset_group.command(name="list")
def list_presets():
    """List saved presets."""
    store = PresetStore(MappingEngine(), autosave=False)
    paths = store.list_presets()
    if not paths:
        click.echo(f"No presets found in {store.presets_dir}")
        return
    for path in paths:
        click.echo(f"  {path.stem}")


@preset_group.command(name="validate")
@click.argument("preset")
@click.pass_context
def validate(ctx, preset: str):
    """
    Check a preset file without loading it.

    PRESET is a file path or the name of a saved preset. Every broken
    mapping rule is reported.
    """
    store = PresetStore(MappingEngine(), autosave=False)
    path = store.resolve(preset)
    try:
        loaded = store.read(path)
    except (MixBridgeError, FileNotFoundError) as e:
        display_error(e, ctx.obj.get("log_path"))
        ctx.exit(1)

    click.echo(f"OK: '{loaded.name}' ({len(loaded.mappings)} mappings) from {path}")


@preset_group.command(name="show")
@click.argument("preset")
@click.pass_context
def show(ctx, preset: str):
    """Print a preset's preferences and mapping rules."""
    store = PresetStore(MappingEngine(), autosave=False)
    path = store.resolve(preset)
    try:
        loaded = store.read(path)
    except (MixBridgeError, FileNotFoundError) as e:
        display_error(e, ctx.obj.get("log_path"))
        ctx.exit(1)

    click.echo(f"Preset: {loaded.name} (v{loaded.version})")
    if loaded.description:
        click.echo(f"  {loaded.description}")
    click.echo(f"Mixer: {loaded.mixer_ip or '-'}")
    devices = loaded.preferred_midi_devices
    click.echo(f"MIDI devices: {', '.join(devices) if devices else '-'}")
    click.echo(f"Feedback: {'on' if loaded.midi_feedback_enabled else 'off'}")
    click.echo(f"\nMappings ({len(loaded.mappings)}):")
    for i, rule in enumerate(loaded.mappings):
        click.echo(f"  [{i}] {describe_rule(rule)}")
