"""Domain events for observer pattern.

This module defines events that can occur within the host:
- Session events: devices taking or leaving slots
- Host events: lifecycle of the host itself
"""

from enum import Enum


class SessionEvent(Enum):
    """Slot lifecycle events."""

    DEVICE_ADDED = "device_added"              # Empty -> Connected
    DEVICE_RECONNECTED = "device_reconnected"  # Connected -> Connected (same client)
    DEVICE_REMOVED = "device_removed"          # Connected -> Empty
    CONNECT_REFUSED = "connect_refused"        # Pool full or requested size too large


class HostEvent(Enum):
    """Host lifecycle events."""

    STARTED = "started"                # Socket bound, loop ready
    SCRIPT_CHANGED = "script_changed"  # Devices cleared, callbacks dropped
    STOPPING = "stopping"              # Teardown in progress
