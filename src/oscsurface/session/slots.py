"""
Slots and the application-facing ports that wrap them.

A port is what application code holds on to. It exists for the whole life
of the host, whether or not a client is connected to its slot, so scripts
can grab ``port(SURFACE, 1)`` at startup and keep drawing into it. Calls on
an empty port do nothing, the same way writes to unplugged hardware vanish.

::

    app ──► SurfacePort(1) ──► VirtualSurface  ──► remote client
                 │
                 └──────────► SurfaceMirror (optional genuine hardware)

    remote key ──► VirtualSurface.key ──► SurfacePort._on_key ──► app key callback
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from oscsurface.devices.device import VirtualDevice
from oscsurface.devices.protocols import (
    ClientAddress,
    KeyCallback,
    RingDeltaCallback,
    RingKeyCallback,
    RingMirror,
    SurfaceMirror,
)
from oscsurface.devices.ring import VirtualRing
from oscsurface.devices.surface import VirtualSurface
from oscsurface.models.enums import DeviceCategory

logger = logging.getLogger(__name__)


@dataclass
class CategoryCallbacks:
    """Application hooks fired when a device joins or leaves any slot of a category."""

    add: Callable[["Port"], None] | None = None
    remove: Callable[["Port"], None] | None = None

    def clear(self) -> None:
        self.add = None
        self.remove = None


class Port(ABC):
    """One slot of a category: at most one device, stable index."""

    category: DeviceCategory

    def __init__(self, index: int):
        self.index = index
        self.device: VirtualDevice | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.index}, {self.name})"

    @property
    def connected(self) -> bool:
        return self.device is not None

    @property
    def client(self) -> ClientAddress | None:
        return self.device.client if self.device else None

    @property
    def name(self) -> str:
        return self.device.serial if self.device else "none"

    def attach(self, device: VirtualDevice) -> None:
        if self.device is not None:
            raise RuntimeError(f"{self!r} already holds a device")
        device.slot = self.index
        self.device = device

    def detach(self) -> VirtualDevice | None:
        device, self.device = self.device, None
        return device

    @abstractmethod
    def clear_callbacks(self) -> None:
        """Drop the application input handlers."""
        pass


class SurfacePort(Port):
    """Application handle for a surface slot."""

    category = DeviceCategory.SURFACE

    def __init__(self, index: int, mirror: SurfaceMirror | None = None):
        super().__init__(index)
        self.mirror = mirror
        self.key: KeyCallback | None = None

    @property
    def surface(self) -> VirtualSurface | None:
        return self.device  # type: ignore[return-value]

    @property
    def cols(self) -> int:
        return self.surface.logical_size[0] if self.surface else 0

    @property
    def rows(self) -> int:
        return self.surface.logical_size[1] if self.surface else 0

    def attach(self, device: VirtualDevice) -> None:
        super().attach(device)
        device.key = self._on_key

    def _on_key(self, x: int, y: int, state: int) -> None:
        if self.key is not None:
            self.key(x, y, state)

    def clear_callbacks(self) -> None:
        self.key = None

    def led(self, x: int, y: int, level: int) -> None:
        if self.surface:
            self.surface.led(x, y, level)
        if self.mirror:
            self.mirror.led(x, y, level)

    def all(self, level: int) -> None:
        if self.surface:
            self.surface.all(level)
        if self.mirror:
            self.mirror.all(level)

    def refresh(self) -> None:
        if self.surface:
            self.surface.refresh()
        if self.mirror:
            self.mirror.refresh()

    def rotation(self, rotation: int) -> None:
        if self.surface:
            self.surface.rotation(rotation)
        if self.mirror:
            self.mirror.rotation(rotation)

    def intensity(self, level: int) -> None:
        if self.surface:
            self.surface.intensity(level)
        if self.mirror:
            self.mirror.intensity(level)


class RingPort(Port):
    """Application handle for a ring device slot."""

    category = DeviceCategory.RING

    def __init__(self, index: int, mirror: RingMirror | None = None):
        super().__init__(index)
        self.mirror = mirror
        self.delta: RingDeltaCallback | None = None
        self.key: RingKeyCallback | None = None

    @property
    def ring(self) -> VirtualRing | None:
        return self.device  # type: ignore[return-value]

    @property
    def ring_count(self) -> int:
        return self.ring.ring_count if self.ring else 0

    def attach(self, device: VirtualDevice) -> None:
        super().attach(device)
        device.delta = self._on_delta
        device.key = self._on_key

    def _on_delta(self, ring: int, delta: int) -> None:
        if self.delta is not None:
            self.delta(ring, delta)

    def _on_key(self, ring: int, state: int) -> None:
        if self.key is not None:
            self.key(ring, state)

    def clear_callbacks(self) -> None:
        self.delta = None
        self.key = None

    def led(self, ring: int, x: int, level: int) -> None:
        if self.ring:
            self.ring.led(ring, x, level)
        if self.mirror:
            self.mirror.led(ring, x, level)

    def all(self, level: int) -> None:
        if self.ring:
            self.ring.all(level)
        if self.mirror:
            self.mirror.all(level)

    def segment(self, ring: int, from_angle: float, to_angle: float, level: int) -> None:
        if self.ring:
            self.ring.segment(ring, from_angle, to_angle, level)
        if self.mirror:
            self.mirror.segment(ring, from_angle, to_angle, level)

    def range(self, ring: int, x1: int, x2: int, level: int) -> None:
        if self.ring:
            self.ring.range(ring, x1, x2, level)

    def refresh(self) -> None:
        if self.ring:
            self.ring.refresh()
        if self.mirror:
            self.mirror.refresh()

    def intensity(self, level: int) -> None:
        if self.ring:
            self.ring.intensity(level)


PORT_TYPES: dict[DeviceCategory, type[Port]] = {
    DeviceCategory.SURFACE: SurfacePort,
    DeviceCategory.RING: RingPort,
}
