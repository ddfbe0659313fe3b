"""Observer protocol definitions.

- Session observers: React to devices connecting and disconnecting
- Host observers: React to host lifecycle changes
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .events import HostEvent, SessionEvent

if TYPE_CHECKING:
    from oscsurface.devices.protocols import ClientAddress
    from oscsurface.session.slots import Port


@runtime_checkable
class SessionObserver(Protocol):
    """
    Observer that receives slot lifecycle events.

    The CLI uses this to print connections; tests use it to watch the
    session manager without reaching into its slot tables.
    """

    def on_session_event(self, event: SessionEvent, port: "Port | None", client: "ClientAddress") -> None:
        """
        Handle a session event.

        Args:
            event: What happened
            port: The affected slot's port (None for CONNECT_REFUSED)
            client: Remote client that triggered the event

        Note:
            Called from the host loop; must not block.
        """
        ...


@runtime_checkable
class HostObserver(Protocol):
    """Observer that receives host lifecycle events."""

    def on_host_event(self, event: HostEvent) -> None:
        """
        Handle a host lifecycle event.

        Args:
            event: The lifecycle event
        """
        ...
