"""Session layer: slot pools, message routing and discovery."""

from .discovery import Discovery
from .manager import SessionManager
from .router import MessageRouter
from .slots import CategoryCallbacks, Port, RingPort, SurfacePort
from .system import SystemHandler

__all__ = [
    "CategoryCallbacks",
    "Discovery",
    "MessageRouter",
    "Port",
    "RingPort",
    "SessionManager",
    "SurfacePort",
    "SystemHandler",
]
