"""
Virtual encoder ring device.

Rings do not batch: every mutation is sent as soon as it is made, because
rotation feedback has to track the knob closely. ``refresh()`` is therefore
a no-op and the buffer is clean again after every call.

Segment Rendering
=================

``segment(ring, from, to, level)`` maps angles onto LED positions
(``pos = angle / 2π * leds``) and lights every LED in proportion to how much
of it the arc covers, so boundary LEDs are dimmed instead of snapping::

    LED:       0     1     2     3     4     5
             ├─────┼─────┼─────┼─────┼─────┼─────┤
    arc:              ├──────────────────┤
                     1.3                4.6
    overlap:   0    0.7    1     1     0.6   0
    level 15:  0    11    15    15     9     0

Overlap is computed on a circle: an arc with ``from > to`` wraps through
zero and is split into ``[from, leds)`` and ``[0, to)``.
"""

import logging
import math
from typing import Any

from oscsurface.models.enums import DeviceCategory
from oscsurface.osc import addresses

from .buffer import clamp_level
from .device import VirtualDevice
from .protocols import ClientAddress, RingDeltaCallback, RingKeyCallback, Transport

logger = logging.getLogger(__name__)

TAU = 2 * math.pi
DEFAULT_POSITION_SCALE = 500.0


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _interval_overlap(a: float, b: float, c: float, d: float, span: float) -> float:
    """Length shared by circular interval [a, b] and linear interval [c, d] on a circle of size span."""
    if a > b:
        return _interval_overlap(a, span, c, d, span) + _interval_overlap(0.0, b, c, d, span)
    return max(0.0, min(b, d) - max(a, c))


def segment_levels(from_angle: float, to_angle: float, level: int, leds: int) -> list[int]:
    """
    Per-LED levels for an arc between two angles (radians, clockwise from the top).

    A span of a full turn or more lights the whole ring at ``level``.
    """
    level = clamp_level(level)
    if to_angle - from_angle >= TAU:
        return [level] * leds

    start = (from_angle % TAU) / TAU * leds
    end = (to_angle % TAU) / TAU * leds
    return [round_half_up(_interval_overlap(start, end, i, i + 1, leds) * level) for i in range(leds)]


class VirtualRing(VirtualDevice):
    """A set of encoders with circular LED rings mirrored to a remote client."""

    category = DeviceCategory.RING

    def __init__(
        self,
        client: ClientAddress,
        transport: Transport,
        ring_count: int = 4,
        leds_per_ring: int = 64,
        serial: str | None = None,
        prefix: str | None = None,
        position_scale: float = DEFAULT_POSITION_SCALE,
    ):
        if ring_count < 1 or leds_per_ring < 1:
            raise ValueError(f"Ring dimensions must be positive, got {ring_count}x{leds_per_ring}")

        super().__init__(client, transport, ring_count * leds_per_ring, serial=serial, prefix=prefix)
        self.ring_count = ring_count
        self.leds_per_ring = leds_per_ring
        self.position_scale = position_scale

        self.delta: RingDeltaCallback | None = None
        self.key: RingKeyCallback | None = None
        self._positions: list[float | None] = [None] * ring_count

    @property
    def size(self) -> tuple[int, int]:
        return self.ring_count, self.leds_per_ring

    @property
    def type_name(self) -> str:
        return f"monome arc {self.ring_count}"

    def _valid_ring(self, ring: int) -> bool:
        return 1 <= ring <= self.ring_count

    def _offset(self, ring: int) -> int:
        return (ring - 1) * self.leds_per_ring

    # =================================================================
    # Application API
    # =================================================================

    def led(self, ring: int, x: int, level: int) -> None:
        """Set one LED (1-based ring and position); sent immediately if it changed."""
        if not self._valid_ring(ring) or not 1 <= x <= self.leds_per_ring:
            return

        index = self._offset(ring) + x - 1
        if self.buffer.set(index, level):
            self.send_prefixed(addresses.RING_SET, ring - 1, x - 1, self.buffer.get(index))
            self._sent()

    def get(self, ring: int, x: int) -> int:
        if not self._valid_ring(ring) or not 1 <= x <= self.leds_per_ring:
            return 0
        return self.buffer.get(self._offset(ring) + x - 1)

    def all(self, level: int) -> None:
        """Set every LED on every ring."""
        level = clamp_level(level)
        self.buffer.set_all(level)
        for ring in range(self.ring_count):
            self.send_prefixed(addresses.RING_ALL, ring, level)
        self._sent()

    def segment(self, ring: int, from_angle: float, to_angle: float, level: int) -> None:
        """Draw an anti-aliased arc, replacing everything else on the ring."""
        if not self._valid_ring(ring):
            return
        self.map(ring, segment_levels(from_angle, to_angle, level, self.leds_per_ring))

    def range(self, ring: int, x1: int, x2: int, level: int) -> None:
        """
        Set LEDs x1..x2 inclusive (1-based), wrapping past the last LED.

        Other LEDs on the ring keep their levels.
        """
        if not self._valid_ring(ring):
            return

        leds = self.leds_per_ring
        offset = self._offset(ring)
        first = (x1 - 1) % leds
        count = (x2 - 1 - first) % leds + 1
        for step in range(count):
            self.buffer.set(offset + (first + step) % leds, level)
        self._send_map(ring)

    def map(self, ring: int, levels: list[int]) -> None:
        """Set a whole ring from a list of levels (missing entries become 0)."""
        if not self._valid_ring(ring):
            return
        offset = self._offset(ring)
        for i in range(self.leds_per_ring):
            self.buffer.set(offset + i, levels[i] if i < len(levels) else 0)
        self._send_map(ring)

    def refresh(self) -> bool:
        """Rings transmit on every mutation; nothing is ever pending."""
        return False

    def force_refresh(self) -> None:
        for ring in range(1, self.ring_count + 1):
            self._send_map(ring)

    def intensity(self, level: int) -> None:
        logger.debug(f"{self.serial}: intensity {level} ignored")

    # =================================================================
    # Inbound
    # =================================================================

    def handle_delta(self, ring: int, delta: int) -> None:
        """Encoder turned (1-based ring)."""
        if self._valid_ring(ring) and delta and self.delta is not None:
            self.delta(ring, delta)

    def handle_key(self, ring: int, state: int) -> None:
        """Encoder pressed or released (1-based ring)."""
        if self._valid_ring(ring) and self.key is not None:
            self.key(ring, state)

    def handle_position(self, ring: int, position: float) -> None:
        """
        Absolute knob position in [0, 1) from a touch knob.

        Converted into a delta against the last report, wrapped through
        zero and scaled by ``position_scale``. The first report for a ring
        only records the position.
        """
        if not self._valid_ring(ring):
            return

        last = self._positions[ring - 1]
        self._positions[ring - 1] = position
        if last is None:
            return

        change = position - last
        if change > 0.5:
            change -= 1.0
        elif change < -0.5:
            change += 1.0
        self.handle_delta(ring, round(change * self.position_scale))

    def handle_input(self, suffix: str, args: tuple[Any, ...]) -> bool:
        path = self.prefix + suffix
        if suffix == addresses.ENC_DELTA:
            ring, delta = addresses.int_args(path, args, 2)
            self.handle_delta(ring + 1, delta)
        elif suffix == addresses.ENC_KEY:
            ring, state = addresses.int_args(path, args, 2)
            self.handle_key(ring + 1, state)
        elif suffix == addresses.ENC_POSITION:
            (ring,) = addresses.int_args(path, args, 1)
            self.handle_position(ring + 1, addresses.float_arg(path, args, 1))
        else:
            return False
        return True

    # =================================================================
    # Transmit
    # =================================================================

    def _send_map(self, ring: int) -> None:
        self.send_prefixed(addresses.RING_MAP, ring - 1, *self.buffer.levels(self._offset(ring), self.leds_per_ring))
        self._sent()

    def _sent(self) -> None:
        self.buffer.commit()
        self.buffer.clear_dirty()
