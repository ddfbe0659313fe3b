"""Data models for oscsurface."""

from .config import (
    DEFAULT_CONFIG_PATH,
    MAX_RING_COUNT,
    MAX_RING_LEDS,
    MAX_SURFACE_SIDE,
    AppConfig,
    RingConfig,
    SurfaceConfig,
)
from .enums import DeviceCategory, WireFormat

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "MAX_RING_COUNT",
    "MAX_RING_LEDS",
    "MAX_SURFACE_SIDE",
    # Config
    "AppConfig",
    "RingConfig",
    "SurfaceConfig",
    # Enums
    "DeviceCategory",
    "WireFormat",
]
