"""Configuration-related exceptions.

This module defines exceptions for configuration and preset errors:
- ConfigurationError: Base class for configuration errors
- ConfigFileInvalidError: Config or preset file has invalid syntax
- ConfigValidationError: Config values fail validation
- MappingValidationError: A mapping rule set is malformed
"""

from typing import Any

from .base import MixBridgeError


class ConfigurationError(MixBridgeError):
    """Configuration is invalid or cannot be loaded."""
    pass


class ConfigFileInvalidError(ConfigurationError):
    """Configuration file has invalid JSON syntax."""

    def __init__(self, file_path: str, parse_error: str):
        """
        Initialize config file invalid error.

        Args:
            file_path: Path to the invalid file
            parse_error: The parsing error message
        """
        user_msg = "Configuration file has invalid syntax"
        recovery = "Check for common JSON errors:\n"
        recovery += "  - Trailing commas (remove commas after last item)\n"
        recovery += "  - Missing quotes around strings\n"
        recovery += "  - Unclosed braces or brackets\n"
        recovery += f"  - Edit: {file_path}"

        if "trailing comma" in parse_error.lower():
            user_msg = "Configuration file has a trailing comma"
            recovery = (
                f"Remove the trailing comma from {file_path}\n"
                "JSON doesn't allow commas after the last item in an object or array"
            )
        elif "empty" in parse_error.lower():
            user_msg = "Configuration file is empty"

        super().__init__(
            user_message=user_msg,
            technical_message=f"JSON parse error in {file_path}: {parse_error}",
            recoverable=True,
            recovery_hint=recovery
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """Configuration values fail validation."""

    def __init__(self, field: str, value: Any, error_msg: str, file_path: str | None = None):
        """
        Initialize config validation error.

        Args:
            field: The configuration field that failed validation
            value: The invalid value
            error_msg: Why the value is invalid
            file_path: Path to the config file (optional)
        """
        user_msg = f"Invalid configuration value for '{field}': {error_msg}"

        recovery = f"Update the '{field}' value in your configuration"
        if file_path:
            recovery += f"\nConfig file: {file_path}"

        if "midi" in field.lower():
            recovery += "\nRun 'mixbridge midi list' to see valid MIDI devices"
        elif "mixer" in field.lower():
            recovery += "\nRun 'mixbridge mixer discover' to find mixers on the network"

        super().__init__(
            user_message=user_msg,
            technical_message=f"Config validation failed for {field}={value}: {error_msg}",
            recoverable=True,
            recovery_hint=recovery
        )
        self.field = field
        self.value = value
        self.file_path = file_path


class MappingValidationError(ConfigurationError):
    """A mapping rule set is malformed and was rejected as a whole."""

    def __init__(self, errors: list[str], source: str | None = None):
        """
        Initialize mapping validation error.

        Args:
            errors: One line per offending rule (e.g. "mappings.3.midi.controller: Field required")
            source: Where the rule set came from (preset path, "add_mapping", ...)
        """
        count = len(errors)
        noun = "rule" if count == 1 else "rules"
        user_msg = f"Mapping rejected: {count} invalid {noun}"
        detail = "\n".join(f"  - {line}" for line in errors)

        recovery = "Fix the listed rules; no rules were applied"
        if source:
            recovery += f"\nSource: {source}"

        super().__init__(
            user_message=user_msg,
            technical_message=f"Mapping validation failed ({source or 'unknown source'}):\n{detail}",
            recoverable=True,
            recovery_hint=recovery
        )
        self.errors = errors
        self.source = source
