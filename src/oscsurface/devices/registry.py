"""
Device factory registry.

Maps a device category (from ``/sys/connect``) to the function that builds
it. The session manager selects a factory once per connect; everything after
that goes through the common ``VirtualDevice`` interface.

::

    /sys/connect "my-arc" "arc" 2
                 ↓
    DeviceCategory.from_wire("arc")  →  DeviceCategory.RING
                 ↓
    get_factory(RING)  →  _build_ring
                 ↓
    VirtualRing(client, transport, ring_count=2, leds_per_ring=config.ring.leds_per_ring)

To support another device type, register a factory::

    register_device(DeviceCategory.SURFACE, build_my_surface)
"""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from oscsurface.exceptions import UnknownCategoryError
from oscsurface.models import AppConfig, DeviceCategory

from .device import VirtualDevice
from .protocols import ClientAddress, Transport
from .ring import VirtualRing
from .surface import VirtualSurface

logger = logging.getLogger(__name__)


class DeviceFactory(Protocol):
    def __call__(
        self,
        client: ClientAddress,
        transport: Transport,
        config: AppConfig,
        serial: str | None,
        cols: int | None,
        rows: int | None,
        clock: Callable[[], float],
    ) -> VirtualDevice: ...


FACTORIES: dict[DeviceCategory, DeviceFactory] = {}


def register_device(category: DeviceCategory, factory: DeviceFactory) -> None:
    """
    Register a device factory.

    Args:
        category: Category the factory builds
        factory: Callable returning a VirtualDevice
    """
    FACTORIES[category] = factory


def get_factory(category: DeviceCategory) -> DeviceFactory | None:
    return FACTORIES.get(category)


def build_device(
    category: DeviceCategory,
    client: ClientAddress,
    transport: Transport,
    config: AppConfig,
    serial: str | None = None,
    cols: int | None = None,
    rows: int | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> VirtualDevice:
    """
    Build a device for a connect request.

    Missing dimensions fall back to the configured defaults.

    Raises:
        UnknownCategoryError: If no factory is registered for category
    """
    factory = get_factory(category)
    if factory is None:
        raise UnknownCategoryError(str(category.value))
    device = factory(client, transport, config, serial, cols, rows, clock)
    logger.debug(f"Built {device!r}")
    return device


def _build_surface(client, transport, config, serial, cols, rows, clock) -> VirtualDevice:
    return VirtualSurface(
        client,
        transport,
        cols=cols or config.surface.cols,
        rows=rows or config.surface.rows,
        serial=serial,
        refresh_interval=config.surface.refresh_interval,
        wire_format=config.surface.wire_format,
        bulk_path=config.bulk_path,
        clock=clock,
    )


def _build_ring(client, transport, config, serial, cols, rows, clock) -> VirtualDevice:
    # On the wire a ring device reports encoders as cols and LEDs as rows
    return VirtualRing(
        client,
        transport,
        ring_count=cols or config.ring.ring_count,
        leds_per_ring=rows or config.ring.leds_per_ring,
        serial=serial,
        position_scale=config.ring.position_scale,
    )


def _register_builtin_devices() -> None:
    register_device(DeviceCategory.SURFACE, _build_surface)
    register_device(DeviceCategory.RING, _build_ring)


_register_builtin_devices()
