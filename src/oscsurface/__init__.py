"""oscsurface: virtual grid and arc devices for touchscreen OSC clients."""

__version__ = "0.1.0"

# Devices
from .devices import PackedBuffer, VirtualRing, VirtualSurface

# Host
from .models import AppConfig, DeviceCategory
from .orchestration import SurfaceHost

__all__ = [
    "AppConfig",
    "DeviceCategory",
    "PackedBuffer",
    "SurfaceHost",
    "VirtualRing",
    "VirtualSurface",
]
