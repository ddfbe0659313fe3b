"""Protocol definitions for the host's observer patterns.

- Events: session and host lifecycle events
- Observers: Protocols for components that react to these events
"""

from .events import HostEvent, SessionEvent
from .observers import HostObserver, SessionObserver

__all__ = [
    # Events
    "HostEvent",
    "SessionEvent",
    # Observers
    "HostObserver",
    "SessionObserver",
]
