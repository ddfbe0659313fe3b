"""Network-related exceptions.

This module defines exceptions for the OSC socket:
- NetworkError: Base class for socket errors
- PortInUseError: The listening port is already taken
"""

from .base import OscSurfaceError


class NetworkError(OscSurfaceError):
    """OSC socket setup or operation failed."""

    def __init__(self, user_message: str, host: str | None = None, port: int | None = None, **kwargs):
        """
        Initialize network error.

        Args:
            user_message: User-friendly error message
            host: Address involved (if applicable)
            port: Port involved (if applicable)
        """
        super().__init__(user_message, **kwargs)
        self.host = host
        self.port = port


class PortInUseError(NetworkError):
    """The UDP port the server wants to listen on is not available."""

    def __init__(self, host: str, port: int, original_error: str | None = None):
        """
        Initialize port-in-use error.

        Args:
            host: Bind address
            port: Bind port
            original_error: The original socket error message
        """
        user_msg = f"Cannot listen on {host}:{port}."
        tech_msg = user_msg
        if original_error:
            tech_msg += f"\nOriginal error: {original_error}"

        recovery = (
            "Another oscsurface instance (or other OSC software) may be using this port. "
            "Stop it or pass a different one with 'oscsurface serve --port'."
        )

        super().__init__(
            user_message=user_msg,
            technical_message=tech_msg,
            host=host,
            port=port,
            recoverable=True,
            recovery_hint=recovery,
        )
