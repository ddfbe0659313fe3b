"""
Custom exception hierarchy for oscsurface.

## Exception Hierarchy

```
OscSurfaceError (base)
├── ConfigurationError
│   ├── ConfigFileInvalidError
│   └── ConfigValidationError
├── NetworkError
│   └── PortInUseError
└── ProtocolError
    ├── MalformedMessageError
    └── UnknownCategoryError
```

All custom exceptions inherit from `OscSurfaceError`, which provides:

- `user_message`: Human-friendly message for display to users
- `technical_message`: Detailed message for logging
- `recoverable`: Whether the error can be recovered from
- `recovery_hint`: Optional suggestion for how to fix the issue
- `path`: OSC address of the inbound message that caused it, if any

Bounds violations (bad coordinates) and a full slot pool are *not*
exceptions: the first is ignored like real hardware clips it, the second is
answered with a refusal message. Protocol errors never escape the message
router.

See `oscsurface.exceptions.handlers` for utilities to handle these exceptions systematically.
"""

from .base import OscSurfaceError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .handlers import (
    ErrorContext,
    format_error_for_display,
    handle_errors,
    wrap_pydantic_error,
)
from .network import NetworkError, PortInUseError
from .protocol import MalformedMessageError, ProtocolError, UnknownCategoryError

__all__ = [
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    # Handlers
    "ErrorContext",
    "format_error_for_display",
    "handle_errors",
    "wrap_pydantic_error",
    # Network
    "NetworkError",
    "PortInUseError",
    # Protocol
    "MalformedMessageError",
    "ProtocolError",
    "UnknownCategoryError",
    # Base
    "OscSurfaceError",
]
