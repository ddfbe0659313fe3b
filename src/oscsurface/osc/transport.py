"""Outbound OSC datagrams."""

import logging
import socket
from typing import Any

from pythonosc.osc_message_builder import BuildError, OscMessageBuilder

from oscsurface.devices.protocols import ClientAddress

logger = logging.getLogger(__name__)


def encode_message(path: str, *args: Any) -> bytes:
    """Encode one OSC message (argument types are inferred by python-osc)."""
    builder = OscMessageBuilder(address=path)
    for arg in args:
        builder.add_arg(arg)
    return builder.build().dgram


class OscTransport:
    """
    Fire-and-forget UDP sender.

    When the host is running, the transport shares the server's socket so
    that replies come from the port clients talk to. Delivery failures are
    logged and counted, never raised: a client that went away must not break
    the device that was talking to it.
    """

    def __init__(self, sock: socket.socket | None = None):
        """
        Initialize transport.

        Args:
            sock: Socket to send from. If None, a private UDP socket is created
                on first send.
        """
        self._socket = sock
        self._owns_socket = False
        self.sent_count = 0
        self.error_count = 0

    def attach(self, sock: socket.socket) -> None:
        """Send from an existing socket (typically the server's)."""
        self._close_owned()
        self._socket = sock

    def _ensure_socket(self) -> socket.socket:
        if self._socket is None:
            self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self._owns_socket = True
        return self._socket

    def send(self, destination: ClientAddress, path: str, *args: Any) -> None:
        try:
            datagram = encode_message(path, *args)
        except (BuildError, ValueError) as e:
            self.error_count += 1
            logger.error(f"Could not encode {path} {args!r}: {e}")
            return

        try:
            self._ensure_socket().sendto(datagram, (destination.host, destination.port))
        except OSError as e:
            self.error_count += 1
            logger.warning(f"Send {path} to {destination} failed: {e}")
            return

        self.sent_count += 1
        logger.debug(f"-> {destination} {path} ({len(args)} args)")

    def _close_owned(self) -> None:
        if self._owns_socket and self._socket is not None:
            self._socket.close()
        self._socket = None
        self._owns_socket = False

    def close(self) -> None:
        """Close the socket if this transport created it."""
        self._close_owned()
