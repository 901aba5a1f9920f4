"""MIDI-related exceptions."""

from .base import MixBridgeError


class MidiError(MixBridgeError):
    """MIDI port operation failed."""

    recoverable_by_default = True
    default_recovery_hint = "Run 'mixbridge midi list' to see available devices."

    def __init__(self, user_message: str, device_name: str | None = None, **kwargs):
        """
        Initialize MIDI error.

        Args:
            user_message: User-friendly error message
            device_name: The MIDI device involved (if applicable)
        """
        super().__init__(user_message, **kwargs)
        self.device_name = device_name


class MidiPortError(MidiError):
    """A MIDI port could not be opened."""

    default_recovery_hint = (
        "Close other applications using the device. "
        "Run 'mixbridge midi list' to see available devices."
    )

    def __init__(self, device_name: str, original_error: str | None = None):
        user_msg = f"Could not open MIDI device '{device_name}'"
        tech_msg = user_msg
        if original_error:
            tech_msg += f"\nOriginal error: {original_error}"

        super().__init__(user_message=user_msg, technical_message=tech_msg, device_name=device_name)
        self.original_error = original_error
