"""Mixer-related exceptions.

This module defines exceptions for the mixer connection:
- MixerError: Base class for mixer errors
- MixerNotConnectedError: A command was sent while disconnected
- MixerConnectionError: Opening a session to a mixer failed
"""

from .base import MixBridgeError


class MixerError(MixBridgeError):
    """Mixer command or connection failed."""

    # The reconnect loop keeps retrying, so mixer errors never stop the bridge
    recoverable_by_default = True
    default_recovery_hint = "Check that the mixer is powered on and reachable on the network."

    def __init__(self, user_message: str, address: str | None = None, **kwargs):
        """
        Initialize mixer error.

        Args:
            user_message: User-friendly error message
            address: The mixer address involved (if applicable)
        """
        super().__init__(user_message, **kwargs)
        self.address = address


class MixerNotConnectedError(MixerError):
    """A write was attempted while no mixer session is open."""

    default_recovery_hint = "Connect to a mixer first. Run 'mixbridge mixer discover' to find one."

    def __init__(self, operation: str | None = None):
        """
        Initialize not-connected error.

        Args:
            operation: The command that was attempted (for logging)
        """
        tech_msg = "Not connected to mixer"
        if operation:
            tech_msg += f" (attempted {operation})"

        super().__init__(user_message="Not connected to mixer", technical_message=tech_msg)
        self.operation = operation


class MixerConnectionError(MixerError):
    """Opening a session to the mixer failed or timed out."""

    def __init__(self, address: str, original_error: str | None = None, timed_out: bool = False):
        """
        Initialize connection error.

        Args:
            address: Host the connection was attempted to
            original_error: The error reported by the mixer client
            timed_out: True if the attempt exceeded its timeout
        """
        if timed_out:
            user_msg = f"Timed out connecting to mixer at {address}"
        else:
            user_msg = f"Failed to connect to mixer at {address}"

        tech_msg = user_msg
        if original_error:
            tech_msg += f"\nOriginal error: {original_error}"

        super().__init__(user_message=user_msg, technical_message=tech_msg, address=address)
        self.original_error = original_error
        self.timed_out = timed_out
