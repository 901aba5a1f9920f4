"""mido-backed MIDI port access."""

from collections.abc import Callable

import mido


class MidoBackend:
    """
    Thin MidiBackend over mido's default backend (python-rtmidi).

    Input callbacks run in mido's internal I/O thread.
    """

    def get_input_names(self) -> list[str]:
        return mido.get_input_names()

    def get_output_names(self) -> list[str]:
        return mido.get_output_names()

    def open_input(self, name: str, callback: Callable[[mido.Message], None]) -> mido.ports.BaseInput:
        return mido.open_input(name, callback=callback)

    def open_output(self, name: str) -> mido.ports.BaseOutput:
        return mido.open_output(name)
