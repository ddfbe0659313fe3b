"""Virtual devices: packed LED buffers, grid surfaces and encoder rings."""

from .buffer import PackedBuffer
from .device import VirtualDevice
from .protocols import ClientAddress, RingMirror, SurfaceMirror, Transport
from .registry import build_device, get_factory, register_device
from .ring import VirtualRing, segment_levels
from .surface import VirtualSurface

__all__ = [
    "ClientAddress",
    "PackedBuffer",
    "RingMirror",
    "SurfaceMirror",
    "Transport",
    "VirtualDevice",
    "VirtualRing",
    "VirtualSurface",
    "build_device",
    "get_factory",
    "register_device",
    "segment_levels",
]
