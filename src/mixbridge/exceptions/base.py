"""Base exception class for mixbridge.

Every bridge error carries a short message for the CLI, a longer one for
the log, and whether the bridge can carry on. Error families set
class-level defaults so that errors raised deep inside worker threads
(reconnect attempts, MIDI callbacks) still tell the user what to try.
"""


class MixBridgeError(Exception):
    """
    Base exception for all mixbridge errors.

    Attributes:
        user_message: Short message for display
        technical_message: Detailed message for logging
        recoverable: True if the bridge keeps running and the operation can be retried
        recovery_hint: What the user can try, falling back to the class default

    Subclasses override ``default_recovery_hint`` and
    ``recoverable_by_default`` instead of repeating them at every raise.
    """

    default_recovery_hint: str | None = None
    recoverable_by_default = False

    def __init__(
        self,
        user_message: str,
        technical_message: str | None = None,
        recoverable: bool | None = None,
        recovery_hint: str | None = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.recoverable = self.recoverable_by_default if recoverable is None else recoverable
        self.recovery_hint = recovery_hint or self.default_recovery_hint

    def __str__(self) -> str:
        return self.user_message

    def get_full_message(self) -> str:
        """User message followed by the recovery hint, if any."""
        if not self.recovery_hint:
            return self.user_message
        return f"{self.user_message}\n\nSuggestion: {self.recovery_hint}"
