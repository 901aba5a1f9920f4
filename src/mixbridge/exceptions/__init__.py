"""
Custom exception hierarchy for mixbridge.

## Exception Hierarchy

```
MixBridgeError (base)
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   ├── ConfigValidationError
│   └── MappingValidationError
├── MixerError
│   ├── MixerConnectionError
│   └── MixerNotConnectedError
└── MidiError
    └── MidiPortError
```

All custom exceptions carry `user_message`, `technical_message`,
`recoverable` and `recovery_hint`; each family supplies defaults for the
last two (see `MixerError.default_recovery_hint`).

### Example: rejected preset

```python
from mixbridge.exceptions import MappingValidationError

try:
    engine.load_rules(raw_rules)
except MappingValidationError as e:
    logger.error(e.technical_message)   # every broken rule, one per line
    print(e.get_full_message())         # "Mapping rejected: 2 invalid rules ..."
```

See `mixbridge.exceptions.handlers` for utilities to handle these exceptions systematically.
"""

from .base import MixBridgeError
from .config import (
    ConfigFileInvalidError,
    ConfigurationError,
    ConfigValidationError,
    MappingValidationError,
)
from .handlers import (
    ErrorCollector,
    ErrorContext,
    collect_errors,
    format_error_for_display,
    handle_errors,
    wrap_mixer_error,
    wrap_pydantic_error,
)
from .midi import MidiError, MidiPortError
from .mixer import MixerConnectionError, MixerError, MixerNotConnectedError

__all__ = [
    # Base
    "MixBridgeError",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    "MappingValidationError",
    # MIDI
    "MidiError",
    "MidiPortError",
    # Mixer
    "MixerConnectionError",
    "MixerError",
    "MixerNotConnectedError",
    # Handlers
    "ErrorCollector",
    "ErrorContext",
    "collect_errors",
    "format_error_for_display",
    "handle_errors",
    "wrap_mixer_error",
    "wrap_pydantic_error",
]
