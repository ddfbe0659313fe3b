"""Device-side protocols and shared types."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, NamedTuple, Protocol, runtime_checkable


class ClientAddress(NamedTuple):
    """Network endpoint of a remote client (the sender of its datagrams)."""

    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


# Application callbacks. Coordinates and ring numbers are 1-based.
KeyCallback = Callable[[int, int, int], None]          # surface: x, y, state
RingDeltaCallback = Callable[[int, int], None]         # ring: n, delta
RingKeyCallback = Callable[[int, int], None]           # ring: n, state


@runtime_checkable
class Transport(Protocol):
    """Outbound datagram sink used by every device."""

    def send(self, destination: ClientAddress, path: str, *args: Any) -> None:
        """
        Send one message.

        Fire-and-forget: implementations log delivery failures and never
        raise them back into device code.
        """
        ...


class SurfaceMirror(Protocol):
    """Genuine grid hardware that should show the same state as a virtual surface."""

    def led(self, x: int, y: int, level: int) -> None: ...

    def all(self, level: int) -> None: ...

    def refresh(self) -> None: ...

    def rotation(self, rotation: int) -> None: ...

    def intensity(self, level: int) -> None: ...


class RingMirror(Protocol):
    """Genuine encoder hardware that should show the same state as a virtual ring device."""

    def led(self, ring: int, x: int, level: int) -> None: ...

    def all(self, level: int) -> None: ...

    def segment(self, ring: int, from_angle: float, to_angle: float, level: int) -> None: ...

    def refresh(self) -> None: ...
