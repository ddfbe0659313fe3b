"""Wire protocol exceptions.

These are raised while decoding inbound OSC messages and are always caught
by the message router: a misbehaving remote client must never take the host
down, so the offending message is logged and dropped.
"""

from typing import Any, Optional

from .base import OscSurfaceError


class ProtocolError(OscSurfaceError):
    """An inbound message could not be handled."""

    def __init__(self, user_message: str, path: Optional[str] = None, **kwargs):
        """
        Initialize protocol error.

        Args:
            user_message: User-friendly error message
            path: OSC address of the offending message (if known)
        """
        super().__init__(user_message, recoverable=True, path=path, **kwargs)


class MalformedMessageError(ProtocolError):
    """Inbound message has missing, extra or mistyped arguments."""

    def __init__(self, path: str, args: tuple[Any, ...], reason: str):
        """
        Initialize malformed message error.

        Args:
            path: OSC address of the message
            args: The arguments that were received
            reason: What was wrong with them
        """
        super().__init__(
            f"Malformed message: {reason}",
            path=path,
            technical_message=f"Malformed message on {path} with args {args!r}: {reason}",
            recovery_hint="Check that the remote client implements the oscsurface protocol",
        )
        self.args_received = args
        self.reason = reason


class UnknownCategoryError(ProtocolError):
    """Connect request named a device category that does not exist."""

    def __init__(self, category: str):
        """
        Initialize unknown category error.

        Args:
            category: The category string that was requested
        """
        super().__init__(
            f"Unknown device category '{category}'",
            path="/sys/connect",
            recovery_hint="Supported categories are 'grid' and 'arc'",
        )
        self.category = category
