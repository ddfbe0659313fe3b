"""Enums shared across the device and session layers."""

from enum import Enum


class DeviceCategory(Enum):
    """Kind of virtual device a client asks for.

    Values are the type strings used on the wire in ``/sys/connect``.
    """

    SURFACE = "grid"  # 2D button grid with per-key LEDs
    RING = "arc"      # rotary encoders with circular LED rings

    @classmethod
    def from_wire(cls, value: str) -> "DeviceCategory":
        """Parse a wire type string ("grid" / "arc")."""
        return cls(value.strip().lower())


class WireFormat(Enum):
    """How a surface serialises its LED state."""

    BULK = "bulk"            # one hex string, one character per LED
    LEVEL_MAP = "level_map"  # serialosc style 8x8 level maps

