"""
serialosc-style device discovery.

Clients that speak the monome serialosc protocol find devices by asking,
not by being told:

- ``/serialosc/list host port`` answers with one ``/serialosc/device`` per
  connected device (serial, type name, slot).
- ``/serialosc/notify host port`` subscribes once. The next device that
  appears or disappears is reported with ``/serialosc/add`` or
  ``/serialosc/remove`` and the subscription is dropped; clients re-subscribe
  after every notification.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from oscsurface.devices.device import VirtualDevice
from oscsurface.devices.protocols import ClientAddress, Transport
from oscsurface.osc import addresses
from oscsurface.osc.addresses import int_args

logger = logging.getLogger(__name__)


class Discovery:
    """Answers list requests and keeps one-shot notify subscriptions."""

    def __init__(self, transport: Transport, devices: Callable[[], Iterable[VirtualDevice]]):
        """
        Args:
            transport: Outbound message sink
            devices: Returns the currently connected devices
        """
        self.transport = transport
        self._devices = devices
        self._subscribers: list[ClientAddress] = []

    @property
    def subscribers(self) -> list[ClientAddress]:
        return list(self._subscribers)

    def handle_message(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        if path == addresses.SERIALOSC_LIST:
            self.send_list(self._reply_target(client, path, args))
            return True
        if path == addresses.SERIALOSC_NOTIFY:
            self.subscribe(self._reply_target(client, path, args))
            return True
        return False

    def send_list(self, target: ClientAddress) -> None:
        count = 0
        for device in self._devices():
            self.transport.send(target, addresses.SERIALOSC_DEVICE, device.serial, device.type_name, device.slot)
            count += 1
        logger.debug(f"Listed {count} device(s) to {target}")

    def subscribe(self, target: ClientAddress) -> None:
        if target not in self._subscribers:
            self._subscribers.append(target)
            logger.debug(f"{target} subscribed to device notifications")

    def notify_added(self, device: VirtualDevice) -> None:
        self._notify(addresses.SERIALOSC_ADD, device)

    def notify_removed(self, device: VirtualDevice) -> None:
        self._notify(addresses.SERIALOSC_REMOVE, device)

    def _notify(self, path: str, device: VirtualDevice) -> None:
        subscribers, self._subscribers = self._subscribers, []
        for target in subscribers:
            self.transport.send(target, path, device.serial)
        if subscribers:
            logger.debug(f"Sent {path} {device.serial} to {len(subscribers)} subscriber(s)")

    @staticmethod
    def _reply_target(client: ClientAddress, path: str, args: tuple[Any, ...]) -> ClientAddress:
        """Reply to the host/port named in the message, or to the sender."""
        if len(args) >= 2:
            (port,) = int_args(path, args[1:2], 1)
            return ClientAddress(str(args[0]), port)
        return client
