"""Common base for virtual devices."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from oscsurface.models.enums import DeviceCategory
from oscsurface.osc import addresses
from oscsurface.osc.addresses import join_path

from .buffer import PackedBuffer
from .protocols import ClientAddress, Transport

logger = logging.getLogger(__name__)


class VirtualDevice(ABC):
    """
    State and wire plumbing shared by surfaces and ring devices.

    A device belongs to exactly one remote client. Outbound messages go to
    ``destination``, which starts as the client's own address and can be
    redirected with ``/sys/host`` and ``/sys/port``.

    The default serial names the category as well as the address, so a
    client holding a surface and a ring device shows up as two devices in
    discovery.
    """

    category: DeviceCategory

    def __init__(
        self,
        client: ClientAddress,
        transport: Transport,
        element_count: int,
        serial: str | None = None,
        prefix: str | None = None,
    ):
        self.client = client
        self.destination = client
        self.transport = transport
        self.buffer = PackedBuffer(element_count)
        self.serial = serial or f"oscsurface-{self.category.value}-{client.host}:{client.port}"
        self.prefix = prefix or f"/{self.serial}"
        self.slot: int | None = None

    def __repr__(self) -> str:
        cols, rows = self.size
        return (
            f"{type(self).__name__}(serial={self.serial!r}, client={self.client}, "
            f"size={cols}x{rows}, slot={self.slot})"
        )

    # =================================================================
    # Identity
    # =================================================================

    @property
    @abstractmethod
    def size(self) -> tuple[int, int]:
        """(cols, rows) as reported on the wire."""
        pass

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Model name in discovery replies (e.g. "monome 128")."""
        pass

    @property
    def rotation_degrees(self) -> int:
        return 0

    # =================================================================
    # Outbound
    # =================================================================

    def send(self, path: str, *args: Any) -> None:
        self.transport.send(self.destination, path, *args)

    def send_prefixed(self, suffix: str, *args: Any) -> None:
        self.send(join_path(self.prefix, suffix), *args)

    def send_connected(self) -> None:
        """Acknowledge a connect request with the negotiated identity and size."""
        cols, rows = self.size
        self.send(addresses.SYS_CONNECT, self.serial, self.category.value, cols, rows)

    def send_disconnected(self) -> None:
        self.send(addresses.SYS_DISCONNECT, self.serial)

    def send_sys_info(self, target: ClientAddress | None = None) -> None:
        """Send the serialosc ``/sys/*`` description of this device."""
        target = target or self.destination
        cols, rows = self.size
        self.transport.send(target, addresses.SYS_ID, self.serial)
        self.transport.send(target, addresses.SYS_SIZE, cols, rows)
        self.transport.send(target, addresses.SYS_HOST, self.destination.host)
        self.transport.send(target, addresses.SYS_PORT, self.destination.port)
        self.transport.send(target, addresses.SYS_PREFIX, self.prefix)
        self.transport.send(target, addresses.SYS_ROTATION, self.rotation_degrees)

    def set_destination(self, host: str | None = None, port: int | None = None) -> None:
        """Redirect outbound messages (``/sys/host``, ``/sys/port``)."""
        self.destination = ClientAddress(
            host if host is not None else self.destination.host,
            port if port is not None else self.destination.port,
        )
        logger.info(f"{self.serial}: destination changed to {self.destination}")

    # =================================================================
    # Lifecycle
    # =================================================================

    @abstractmethod
    def all(self, level: int) -> None:
        pass

    @abstractmethod
    def force_refresh(self) -> None:
        """Transmit the whole state, ignoring rate limits and dirty bits."""
        pass

    @abstractmethod
    def handle_input(self, suffix: str, args: tuple[Any, ...]) -> bool:
        """
        Handle an inbound message addressed under the device prefix.

        Args:
            suffix: Path with the prefix stripped (e.g. "/grid/key")
            args: Message arguments

        Returns:
            True if the message was for this device type
        """
        pass

    def cleanup(self) -> None:
        """Blank the remote display and tell the client it is disconnected."""
        self.all(0)
        self.force_refresh()
        self.send_disconnected()
        logger.debug(f"{self.serial}: cleaned up")
