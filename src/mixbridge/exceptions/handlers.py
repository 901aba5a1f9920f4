"""
Centralized error handling utilities.

Layered approach used throughout mixbridge:

1. **Custom Exceptions** - Typed, user-friendly error classes (base, config, mixer, midi)
2. **Error Context** - Technical details go to the log, friendly messages to users
3. **Recovery Hints** - Tell users what to do when things fail
4. **Error Isolation** - A failure in one MIDI message, poller tick or device
   must not cascade into the next one

## Quick Reference

| Scenario | Use This |
|----------|----------|
| Command sent while disconnected | `MixerNotConnectedError` |
| Mixer unreachable | `MixerConnectionError` (via `wrap_mixer_error`) |
| Preset has a broken rule | `MappingValidationError` (via `wrap_pydantic_error`) |
| Config value invalid | `ConfigValidationError` |

| Pattern | Code |
|---------|------|
| Log and swallow, return fallback | `@handle_errors(operation_name="read name", re_raise=False)` |
| Try several devices, collect errors | `collector = collect_errors("connect MIDI"); with collector.try_operation(name): ...` |
| Critical section with auto-logging | `with ErrorContext("start bridge"): ...` |
"""

import logging
from functools import wraps
from typing import Callable, Optional, TypeVar

from .base import MixBridgeError
from .config import ConfigFileInvalidError, ConfigValidationError, MappingValidationError
from .mixer import MixerConnectionError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def handle_errors(
    *,
    operation_name: str,
    user_notification: Optional[Callable[[str], None]] = None,
    fallback_value: Optional[T] = None,
    re_raise: bool = True,
    log_level: int = logging.ERROR
) -> Callable:
    """
    Decorator for consistent error handling.

    Args:
        operation_name: Name of the operation for logging (e.g., "read channel name")
        user_notification: Optional callback to notify the user
        fallback_value: Value to return if error occurs and re_raise=False
        re_raise: Whether to re-raise the exception after handling
        log_level: Logging level for the error (default: ERROR)

    Returns:
        Decorated function
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            try:
                return func(*args, **kwargs)

            except MixBridgeError as e:
                logger.log(log_level, f"Failed to {operation_name}: {e.technical_message}")

                if user_notification:
                    user_notification(e.get_full_message())

                if re_raise:
                    raise
                return fallback_value

            except Exception as e:
                logger.log(
                    log_level,
                    f"Unexpected error during {operation_name}: {e}",
                    exc_info=True
                )

                if user_notification:
                    user_notification(f"Error: {e}")

                if re_raise:
                    raise
                return fallback_value

        return wrapper
    return decorator


class ErrorContext:
    """
    Context manager for error handling with automatic logging.

    Example:
        ```python
        with ErrorContext("connect preferred mixer", re_raise=False) as ctx:
            supervisor.connect(address)

        if ctx.error:
            print(f"Failed: {ctx.error}")
        ```
    """

    def __init__(
        self,
        operation: str,
        logger_instance: Optional[logging.Logger] = None,
        re_raise: bool = True
    ):
        """
        Initialize error context.

        Args:
            operation: Description of the operation
            logger_instance: Logger to use (defaults to module logger)
            re_raise: Whether to re-raise exceptions
        """
        self.operation = operation
        self.logger = logger_instance or logger
        self.re_raise = re_raise
        self.error: Optional[Exception] = None

    def __enter__(self):
        self.logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation}")
            return False

        self.error = exc_val

        if isinstance(exc_val, MixBridgeError):
            self.logger.error(f"Failed to {self.operation}: {exc_val.technical_message}")
        else:
            self.logger.error(f"Failed to {self.operation}: {exc_val}", exc_info=True)

        # Return True to suppress exception, False to re-raise
        return not self.re_raise


def _format_loc(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "unknown"


def wrap_pydantic_error(error: Exception, file_path: str) -> MixBridgeError:
    """
    Convert Pydantic validation errors to mixbridge exceptions.

    Invalid JSON becomes ConfigFileInvalidError. Errors located under a
    ``mappings`` field become a single MappingValidationError listing every
    broken rule, so a preset is rejected as a whole. Anything else becomes
    ConfigValidationError.

    Args:
        error: The Pydantic ValidationError
        file_path: Path to the file that failed validation

    Returns:
        A ConfigurationError subclass with appropriate message
    """
    from pydantic import ValidationError

    error_msg = str(error)

    if "Invalid JSON" in error_msg or "json_invalid" in error_msg:
        if "Invalid JSON:" in error_msg:
            parse_error = error_msg.split("Invalid JSON:")[1].split("[type=")[0].strip()
        else:
            parse_error = error_msg
        return ConfigFileInvalidError(file_path, parse_error)

    if isinstance(error, ValidationError):
        errors = error.errors()

        mapping_errors = [e for e in errors if e.get('loc') and e['loc'][0] == 'mappings']
        if mapping_errors:
            lines = [f"{_format_loc(e['loc'])}: {e.get('msg', 'validation failed')}" for e in mapping_errors]
            return MappingValidationError(lines, source=file_path)

        if len(errors) == 1:
            first_error = errors[0]
            return ConfigValidationError(
                field=_format_loc(first_error.get('loc', ('unknown',))),
                value=first_error.get('input', None),
                error_msg=first_error.get('msg', 'validation failed'),
                file_path=file_path
            )
        if errors:
            error_lines = [
                f"  - {_format_loc(err.get('loc', ('unknown',)))}: {err.get('msg', 'validation failed')}"
                for err in errors
            ]
            combined_msg = f"{len(errors)} validation errors:\n" + "\n".join(error_lines)
            return ConfigValidationError(
                field="multiple fields",
                value=None,
                error_msg=combined_msg,
                file_path=file_path
            )

    return ConfigValidationError(field="unknown", value=None, error_msg=error_msg, file_path=file_path)


def wrap_mixer_error(error: Exception, address: str) -> MixerConnectionError:
    """
    Convert a low-level mixer client error into MixerConnectionError.

    Args:
        error: The exception raised by the mixer client
        address: The host that was being connected to

    Returns:
        A MixerConnectionError carrying the original message
    """
    if isinstance(error, MixerConnectionError):
        return error
    timed_out = isinstance(error, TimeoutError) or "timed out" in str(error).lower()
    return MixerConnectionError(address, original_error=str(error) or type(error).__name__, timed_out=timed_out)


def format_error_for_display(error: Exception) -> tuple[str, Optional[str]]:
    """
    Format an exception for user display.

    Returns:
        Tuple of (user_message, recovery_hint or None)
    """
    if isinstance(error, MixBridgeError):
        return error.user_message, error.recovery_hint

    error_type = type(error).__name__
    return f"{error_type}: {error}", None


def collect_errors(operation: str) -> "ErrorCollector":
    """
    Create an error collector for batch operations.

    Example:
        ```python
        collector = collect_errors("connect preferred MIDI devices")

        for name in preferred:
            with collector.try_operation(f"connect {name}"):
                midi.connect_device(name)

        if collector.has_errors:
            logger.warning(collector.get_summary())
        ```
    """
    return ErrorCollector(operation)


class ErrorCollector:
    """
    Collects multiple errors during batch operations.

    Allows operations to continue even if some fail, then
    report all failures at once.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.errors: list[tuple[str, Exception]] = []
        self.success_count = 0

    @property
    def has_errors(self) -> bool:
        """Check if any errors were collected."""
        return len(self.errors) > 0

    @property
    def error_count(self) -> int:
        """Get the number of errors collected."""
        return len(self.errors)

    def try_operation(self, sub_operation: str):
        """
        Context manager for a single operation within the batch.

        Args:
            sub_operation: Description of this specific operation
        """
        return self._OperationContext(self, sub_operation)

    def get_summary(self) -> str:
        """Get a multi-line summary of collected errors."""
        if not self.has_errors:
            return f"All operations completed successfully ({self.success_count} total)"

        summary = f"Failed {self.error_count} of {self.error_count + self.success_count} operations:\n"
        for sub_op, error in self.errors:
            if isinstance(error, MixBridgeError):
                summary += f"  - {sub_op}: {error.user_message}\n"
            else:
                summary += f"  - {sub_op}: {error}\n"

        return summary.rstrip()

    class _OperationContext:
        """Internal context manager for individual operations."""

        def __init__(self, collector: "ErrorCollector", sub_operation: str):
            self.collector = collector
            self.sub_operation = sub_operation

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_type is None:
                self.collector.success_count += 1
                return False

            logger.debug(f"{self.collector.operation}: {self.sub_operation} failed: {exc_val}")
            self.collector.errors.append((self.sub_operation, exc_val))
            return True
