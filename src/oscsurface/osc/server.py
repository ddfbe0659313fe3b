"""Inbound OSC datagrams."""

import logging
import socket
from collections.abc import Callable
from typing import Any

from pythonosc.dispatcher import Dispatcher
from pythonosc.osc_server import BlockingOSCUDPServer

from oscsurface.devices.protocols import ClientAddress
from oscsurface.exceptions import PortInUseError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[ClientAddress, str, tuple[Any, ...]], None]


class OscServer:
    """
    Single-threaded UDP listener.

    Every datagram goes through one default handler, so routing is entirely
    ours. ``poll()`` waits at most ``poll_interval`` seconds for a datagram and
    handles at most one; the host calls it in a loop and ticks in between.
    """

    def __init__(self, host: str, port: int, on_message: MessageCallback, poll_interval: float = 0.01):
        """
        Initialize server.

        Args:
            host: Bind address
            port: Bind port
            on_message: Called with (client, path, args) for each message
            poll_interval: Seconds poll() waits for a datagram
        """
        self.host = host
        self.port = port
        self.poll_interval = poll_interval
        self._on_message = on_message

        self._dispatcher = Dispatcher()
        self._dispatcher.set_default_handler(self._handle, needs_reply_address=True)
        self._server: BlockingOSCUDPServer | None = None

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def socket(self) -> socket.socket | None:
        return self._server.socket if self._server else None

    @property
    def address(self) -> tuple[str, int] | None:
        """Actual bound address (useful when port 0 was requested)."""
        return self._server.server_address if self._server else None

    def start(self) -> None:
        """
        Bind the socket.

        Raises:
            PortInUseError: If the address cannot be bound
        """
        if self._server is not None:
            logger.warning("OSC server already started")
            return
        try:
            self._server = BlockingOSCUDPServer((self.host, self.port), self._dispatcher)
        except OSError as e:
            raise PortInUseError(self.host, self.port, str(e)) from e
        self._server.timeout = self.poll_interval
        logger.info(f"Listening for OSC on {self.host}:{self.address[1]}")

    def poll(self) -> None:
        """Handle at most one datagram, waiting up to poll_interval."""
        if self._server is not None:
            self._server.handle_request()

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.server_close()
        self._server = None
        logger.info("OSC server closed")

    def _handle(self, client_address: tuple[str, int], address: str, *args: Any) -> None:
        client = ClientAddress(client_address[0], client_address[1])
        logger.debug(f"<- {client} {address} {args!r}")
        self._on_message(client, address, args)
