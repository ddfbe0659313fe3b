"""
Session and slot management.

The SessionManager owns a fixed pool of slots per device category and maps
anonymous network clients onto them.

Slot Lifecycle
==============

::

                     connect (free slot)
         ┌───────┐ ─────────────────────► ┌───────────┐
         │ Empty │                        │ Connected │ ◄─┐ connect from the same
         └───────┘ ◄───────────────────── └───────────┘ ──┘ client: ack + full redraw
                     disconnect / shutdown

A client is identified by the address its datagrams come from. It holds at
most one slot per category; connecting again from the same address reuses
that slot instead of taking a second one, so slot numbers stay stable for
the whole session. A full pool is a normal outcome, answered with
``/sys/connect 0``, never an exception.

Inbound Routing
===============

::

    /sys/connect, /sys/disconnect     → connect() / disconnect()
    <device prefix>/grid/key ...      → sender's device.handle_input()
    <global prefix>/<n>               → sender's surface.handle_button(n)
    anything else                     → not consumed (next handler / fallback)
"""

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

from oscsurface.devices.device import VirtualDevice
from oscsurface.devices.protocols import ClientAddress, Transport
from oscsurface.devices.registry import build_device
from oscsurface.devices.surface import VirtualSurface
from oscsurface.exceptions import ErrorContext, MalformedMessageError, UnknownCategoryError
from oscsurface.models import AppConfig, DeviceCategory
from oscsurface.osc import addresses
from oscsurface.osc.addresses import int_args
from oscsurface.protocols import SessionEvent, SessionObserver
from oscsurface.utils import ObserverManager

from .discovery import Discovery
from .slots import PORT_TYPES, CategoryCallbacks, Port

logger = logging.getLogger(__name__)


class SessionManager:
    """Fixed slot pools, client matching and device lifecycle."""

    def __init__(
        self,
        config: AppConfig,
        transport: Transport,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the manager with every slot empty.

        Args:
            config: Host configuration (slot count, device defaults, prefix)
            transport: Outbound message sink shared by all devices
            clock: Monotonic time source handed to surfaces
        """
        self.config = config
        self.transport = transport
        self.clock = clock
        self.max_slots = config.max_slots
        self.global_prefix = config.prefix

        self._ports: dict[DeviceCategory, list[Port]] = {
            category: [PORT_TYPES[category](index) for index in range(1, self.max_slots + 1)]
            for category in DeviceCategory
        }
        self.callbacks: dict[DeviceCategory, CategoryCallbacks] = {
            category: CategoryCallbacks() for category in DeviceCategory
        }
        self.discovery = Discovery(transport, self.devices)
        self._observers = ObserverManager[SessionObserver]("session")

    # =================================================================
    # Observers
    # =================================================================

    def register_observer(self, observer: SessionObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: SessionObserver) -> None:
        self._observers.unregister(observer)

    def _notify(self, event: SessionEvent, port: Port | None, client: ClientAddress) -> None:
        self._observers.notify("on_session_event", event, port, client)

    # =================================================================
    # Lookup
    # =================================================================

    def port(self, category: DeviceCategory, index: int) -> Port:
        """
        Port for a 1-based slot index.

        Raises:
            IndexError: If index is outside 1..max_slots
        """
        if not 1 <= index <= self.max_slots:
            raise IndexError(f"Slot {index} out of range 1..{self.max_slots}")
        return self._ports[category][index - 1]

    def ports(self, category: DeviceCategory) -> list[Port]:
        return list(self._ports[category])

    def find_free_slot(self, category: DeviceCategory) -> int | None:
        """First empty slot index for category, or None when the pool is full."""
        for port in self._ports[category]:
            if not port.connected:
                return port.index
        return None

    def find_client_slot(self, client: ClientAddress, category: DeviceCategory) -> int | None:
        """Slot index the client holds in category, or None."""
        for port in self._ports[category]:
            if port.connected and port.client == client:
                return port.index
        return None

    def find_any_client(self, client: ClientAddress) -> tuple[DeviceCategory, int] | None:
        """(category, slot) of the client's first device, surfaces first."""
        for category in DeviceCategory:
            slot = self.find_client_slot(client, category)
            if slot is not None:
                return category, slot
        return None

    def connected_slots(self, category: DeviceCategory) -> list[int]:
        return [port.index for port in self._ports[category] if port.connected]

    def connect_any(self, category: DeviceCategory) -> Port:
        """First connected port of category, or slot 1 when none is connected."""
        for port in self._ports[category]:
            if port.connected:
                return port
        return self._ports[category][0]

    def devices(self, category: DeviceCategory | None = None) -> Iterator[VirtualDevice]:
        """Connected devices, surfaces before rings, in slot order."""
        categories = [category] if category else list(DeviceCategory)
        for cat in categories:
            for port in self._ports[cat]:
                if port.device is not None:
                    yield port.device

    def devices_for(self, client: ClientAddress) -> list[VirtualDevice]:
        return [device for device in self.devices() if device.client == client]

    # =================================================================
    # Connect / disconnect
    # =================================================================

    def connect(
        self,
        client: ClientAddress,
        category: DeviceCategory,
        serial: str | None = None,
        cols: int | None = None,
        rows: int | None = None,
    ) -> Port | None:
        """
        Give the client a slot in category.

        Args:
            client: Sender address
            category: Requested device category
            serial: Requested serial (default: derived from the address)
            cols: Columns (surface) or ring count (ring device)
            rows: Rows (surface) or LEDs per ring (ring device)

        Returns:
            The client's port, or None when every slot is taken or the
            requested size is over the configured limits
        """
        existing = self.find_client_slot(client, category)
        if existing is not None:
            port = self.port(category, existing)
            device = port.device
            logger.info(f"{client} reconnected to {category.value} slot {existing}, refreshing")
            device.send_connected()
            device.force_refresh()
            device.send_sys_info()
            self._notify(SessionEvent.DEVICE_RECONNECTED, port, client)
            return port

        limits = self.config.surface if category == DeviceCategory.SURFACE else self.config.ring
        if not limits.accepts(cols, rows):
            logger.warning(f"Refusing {category.value} of {cols}x{rows} from {client}: larger than the host allows")
            self._refuse(client)
            self._notify(SessionEvent.CONNECT_REFUSED, None, client)
            return None

        slot = self.find_free_slot(category)
        if slot is None:
            logger.warning(f"No free {category.value} slot for {client}")
            self._refuse(client)
            self._notify(SessionEvent.CONNECT_REFUSED, None, client)
            return None

        device = build_device(category, client, self.transport, self.config, serial, cols, rows, self.clock)
        port = self.port(category, slot)
        port.attach(device)
        cols, rows = device.size
        logger.info(f"{category.value} '{device.serial}' ({cols}x{rows}) from {client} on slot {slot}")

        device.send_connected()
        self.discovery.notify_added(device)
        self._run_callback(self.callbacks[category].add, port, "add")
        self._notify(SessionEvent.DEVICE_ADDED, port, client)
        device.send_sys_info()
        return port

    def disconnect_slot(self, category: DeviceCategory, index: int) -> bool:
        """
        Tear down the device in a slot.

        Returns:
            True if the slot held a device
        """
        port = self.port(category, index)
        device = port.device
        if device is None:
            return False

        self._run_callback(self.callbacks[category].remove, port, "remove")
        # The slot is emptied even when the goodbye messages fail
        with ErrorContext(f"clean up {device.serial}", logger_instance=logger, re_raise=False):
            device.cleanup()
        port.detach()
        logger.info(f"{category.value} '{device.serial}' removed from slot {index}")

        self.discovery.notify_removed(device)
        self._notify(SessionEvent.DEVICE_REMOVED, port, device.client)
        return True

    def disconnect(self, client: ClientAddress, category: DeviceCategory | None = None) -> int:
        """
        Remove the client's devices.

        Args:
            client: Sender address
            category: Only this category (default: every device the client holds)

        Returns:
            Number of devices removed
        """
        removed = 0
        categories = [category] if category else list(DeviceCategory)
        for cat in categories:
            slot = self.find_client_slot(client, cat)
            if slot is not None and self.disconnect_slot(cat, slot):
                removed += 1
        return removed

    def shutdown(self) -> None:
        """Empty every occupied slot."""
        for category in DeviceCategory:
            for index in self.connected_slots(category):
                self.disconnect_slot(category, index)

    def clear_all(self) -> None:
        """
        Reset for a new application script.

        Devices stay connected but are blanked, and every application
        callback is dropped so the old script's handlers cannot fire.
        """
        for category in DeviceCategory:
            self.callbacks[category].clear()
            for port in self._ports[category]:
                port.clear_callbacks()
                if port.device is not None:
                    port.device.all(0)
                    port.device.force_refresh()
        logger.info("Cleared all devices and callbacks")

    def flush_stale(self, max_staleness: float) -> int:
        """
        Force a transmit on surfaces whose changes have waited too long.

        Returns:
            Number of surfaces refreshed
        """
        now = self.clock()
        flushed = 0
        for device in self.devices(DeviceCategory.SURFACE):
            pending = device.pending_since
            if pending is not None and now - pending >= max_staleness:
                logger.debug(f"{device.serial}: changes pending {now - pending:.3f}s, forcing refresh")
                device.force_refresh()
                flushed += 1
        return flushed

    def _refuse(self, client: ClientAddress) -> None:
        self.transport.send(client, addresses.SYS_CONNECT, 0)

    @staticmethod
    def _run_callback(callback: Callable[[Port], None] | None, port: Port, label: str) -> None:
        if callback is None:
            return
        try:
            callback(port)
        except Exception as e:
            logger.error(f"Application '{label}' callback failed for {port!r}: {e}", exc_info=True)

    # =================================================================
    # Inbound messages
    # =================================================================

    def handle_message(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        """Router entry point for connection and device input messages."""
        if path == addresses.SYS_CONNECT:
            self._handle_connect(client, path, args)
            return True
        if path == addresses.SYS_DISCONNECT:
            removed = self.disconnect(client)
            logger.info(f"Disconnect request from {client}: {removed} device(s) removed")
            return True
        return self._route_input(client, path, args)

    def _handle_connect(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> None:
        # /sys/connect [serial] [type] [cols] [rows]
        serial = str(args[0]) if args and str(args[0]) else None
        type_name = str(args[1]) if len(args) >= 2 else DeviceCategory.SURFACE.value

        try:
            category = DeviceCategory.from_wire(type_name)
        except ValueError as e:
            self._refuse(client)
            raise UnknownCategoryError(type_name) from e

        dims = int_args(path, args[2:4], len(args[2:4]))
        if any(value < 0 for value in dims):
            raise MalformedMessageError(path, args, "dimensions must not be negative")
        cols = dims[0] if len(dims) >= 1 and dims[0] else None
        rows = dims[1] if len(dims) >= 2 and dims[1] else None

        logger.info(f"Connect request from {client} ({category.value})")
        self.connect(client, category, serial, cols, rows)

    def _route_input(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        devices = self.devices_for(client)

        for device in devices:
            if path.startswith(device.prefix + "/"):
                if device.handle_input(path[len(device.prefix):], args):
                    return True

        if not path.startswith(self.global_prefix + "/"):
            return False

        suffix = path[len(self.global_prefix):]
        if suffix[1:].isdigit():
            # TouchOSC button: <global prefix>/<1-based index> state
            (state,) = int_args(path, args, 1)
            surface = next((d for d in devices if isinstance(d, VirtualSurface)), None)
            if surface is not None:
                surface.handle_button(int(suffix[1:]), state)
            return True

        return any(device.handle_input(suffix, args) for device in devices)
