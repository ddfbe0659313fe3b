"""Root of the oscsurface exception tree."""

from typing import Optional


class OscSurfaceError(Exception):
    """
    Base for every error oscsurface raises on purpose.

    ``user_message`` is what the CLI prints and ``technical_message`` what
    goes to the log. Errors caused by an inbound datagram carry its OSC
    ``path``; ``str()`` leads with it so a log line names the address that
    misbehaved.
    """

    def __init__(
        self,
        user_message: str,
        technical_message: Optional[str] = None,
        recoverable: bool = False,
        recovery_hint: Optional[str] = None,
        path: Optional[str] = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"[{self.path}] {self.user_message}"
        return self.user_message

    def describe(self) -> str:
        """Message plus recovery hint, for a terminal."""
        if not self.recovery_hint:
            return str(self)
        return f"{self}\nHint: {self.recovery_hint}"
