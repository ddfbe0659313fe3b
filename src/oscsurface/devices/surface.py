"""
Virtual grid surface.

Data Flow
=========

::

    app: led(x, y, level)              1-based logical coordinates
              ↓ bounds check against logical extent (depends on rotation)
    transform.to_physical(x, y, r)     1-based physical coordinates
              ↓
    buffer.set(index, level)           marks index dirty if changed
              ↓
    app: refresh()                     rate limited, coalescing
              ↓ buffer.has_dirty()?
    transmit                           bulk hex string or level-map quads
              ↓
    buffer.commit(); buffer.clear_dirty()

Inbound key presses travel the other way: the client reports 0-based
physical coordinates, which are converted to 1-based physical coordinates,
passed through ``transform_key`` and handed to the ``key`` callback.

Refresh Policy
--------------

``refresh()`` never sends more often than ``refresh_interval``. A call that
arrives too early is simply dropped, with the dirty state kept for the next
call. There is no timer behind it: if the application stops calling
``refresh()``, changes stay buffered. The host can optionally bound that
with a staleness limit, see ``pending_since``.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from oscsurface.models.enums import DeviceCategory, WireFormat
from oscsurface.osc import addresses

from . import transform
from .device import VirtualDevice
from .protocols import ClientAddress, KeyCallback, Transport

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 1 / 30
DEFAULT_BULK_PATH = "/oscsurface_bulk"
QUAD_SIZE = 8


class VirtualSurface(VirtualDevice):
    """A 2D grid of LEDs and keys mirrored to a remote client."""

    category = DeviceCategory.SURFACE

    def __init__(
        self,
        client: ClientAddress,
        transport: Transport,
        cols: int = 16,
        rows: int = 8,
        serial: str | None = None,
        prefix: str | None = None,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        wire_format: WireFormat = WireFormat.BULK,
        bulk_path: str = DEFAULT_BULK_PATH,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize a virtual surface.

        Args:
            client: Remote client that owns this surface
            transport: Outbound message sink
            cols: Physical column count
            rows: Physical row count
            serial: Device serial (default: derived from the client address)
            prefix: OSC prefix (default: "/" + serial)
            refresh_interval: Minimum seconds between transmits
            wire_format: Bulk hex string or serialosc level maps
            bulk_path: OSC address used for bulk updates
            clock: Monotonic time source in seconds
        """
        if cols < 1 or rows < 1:
            raise ValueError(f"Surface dimensions must be positive, got {cols}x{rows}")

        super().__init__(client, transport, cols * rows, serial=serial, prefix=prefix)
        self.cols = cols
        self.rows = rows
        self.refresh_interval = refresh_interval
        self.wire_format = wire_format
        self.bulk_path = bulk_path
        self.clock = clock

        self.rotation_state = 0
        self.key: KeyCallback | None = None

        self._last_sent = float("-inf")
        self._pending_since: float | None = None
        self.transmit_count = 0

    # =================================================================
    # Identity
    # =================================================================

    @property
    def size(self) -> tuple[int, int]:
        return self.cols, self.rows

    @property
    def type_name(self) -> str:
        return f"monome {self.cols * self.rows}"

    @property
    def rotation_degrees(self) -> int:
        return self.rotation_state * 90

    @property
    def logical_size(self) -> tuple[int, int]:
        """(cols, rows) as the application sees them under the current rotation."""
        return transform.logical_extent(self.cols, self.rows, self.rotation_state)

    @property
    def pending_since(self) -> float | None:
        """Clock time of the oldest change not yet transmitted (None when clean)."""
        return self._pending_since

    # =================================================================
    # Application API
    # =================================================================

    def led(self, x: int, y: int, level: int) -> None:
        """Set one LED at 1-based logical coordinates. Out-of-range calls are ignored."""
        logical_cols, logical_rows = self.logical_size
        if not (1 <= x <= logical_cols and 1 <= y <= logical_rows):
            return

        px, py = transform.to_physical(x, y, self.rotation_state, self.cols, self.rows)
        if self.buffer.set(transform.physical_index(px, py, self.cols), level):
            self._note_pending()

    def get(self, x: int, y: int) -> int:
        """Read back the level at 1-based logical coordinates (0 when out of range)."""
        logical_cols, logical_rows = self.logical_size
        if not (1 <= x <= logical_cols and 1 <= y <= logical_rows):
            return 0
        px, py = transform.to_physical(x, y, self.rotation_state, self.cols, self.rows)
        return self.buffer.get(transform.physical_index(px, py, self.cols))

    def all(self, level: int) -> None:
        self.buffer.set_all(level)
        self._note_pending()

    def rotation(self, rotation: int) -> bool:
        """
        Change the logical orientation.

        Args:
            rotation: Quarter turns clockwise (0-3)

        Returns:
            True if accepted. Invalid values are logged and leave state unchanged.
        """
        if not transform.is_valid_rotation(rotation):
            logger.warning(f"{self.serial}: ignoring invalid rotation {rotation!r}")
            return False

        self.rotation_state = rotation
        logger.info(f"{self.serial}: rotation set to {rotation * 90} degrees")
        # Same physical payload, different mapping: the client must redraw
        self.force_refresh()
        return True

    def intensity(self, level: int) -> None:
        """Hardware brightness; the remote client has no equivalent."""
        logger.debug(f"{self.serial}: intensity {level} ignored")

    def refresh(self) -> bool:
        """
        Transmit pending changes if the rate limit allows.

        Returns:
            True if a transmit happened
        """
        now = self.clock()
        if now - self._last_sent < self.refresh_interval:
            return False
        if not self.buffer.has_dirty():
            return False

        self._transmit(full=False)
        self._last_sent = now
        return True

    def force_refresh(self) -> None:
        """Transmit the full state immediately, ignoring the rate limit."""
        self.buffer.mark_all_dirty()
        self._transmit(full=True)
        self._last_sent = self.clock()

    def transform_key(self, px: int, py: int) -> tuple[int, int]:
        """Convert 1-based physical key coordinates to logical coordinates."""
        return transform.to_logical(px, py, self.rotation_state, self.cols, self.rows)

    # =================================================================
    # Inbound
    # =================================================================

    def handle_key(self, x: int, y: int, state: int) -> None:
        """Key event from the wire (0-based physical coordinates)."""
        self._dispatch_key(x + 1, y + 1, state)

    def handle_button(self, index: int, state: int) -> None:
        """TouchOSC button event (1-based linear index, row-major)."""
        if index < 1:
            return
        px = (index - 1) % self.cols + 1
        py = (index - 1) // self.cols + 1
        self._dispatch_key(px, py, state)

    def handle_input(self, suffix: str, args: tuple[Any, ...]) -> bool:
        if suffix != addresses.GRID_KEY:
            return False
        path = self.prefix + suffix
        x, y, state = addresses.int_args(path, args, 3)
        self.handle_key(x, y, state)
        return True

    def _dispatch_key(self, px: int, py: int, state: int) -> None:
        if not (1 <= px <= self.cols and 1 <= py <= self.rows):
            logger.debug(f"{self.serial}: key ({px}, {py}) outside {self.cols}x{self.rows}")
            return
        if self.key is None:
            return
        x, y = self.transform_key(px, py)
        self.key(x, y, state)

    # =================================================================
    # Transmit
    # =================================================================

    def _note_pending(self) -> None:
        if self._pending_since is None:
            self._pending_since = self.clock()

    def _transmit(self, full: bool) -> None:
        if self.wire_format is WireFormat.LEVEL_MAP:
            self._send_level_maps(full)
        else:
            self.send(self.bulk_path, self.buffer.to_hex_string())

        self.buffer.commit()
        self.buffer.clear_dirty()
        self._pending_since = None
        self.transmit_count += 1

    def _send_level_maps(self, full: bool) -> None:
        """Send one 8x8 level map per quad (only dirty quads unless full)."""
        for y_off in range(0, self.rows, QUAD_SIZE):
            for x_off in range(0, self.cols, QUAD_SIZE):
                if full or self._quad_dirty(x_off, y_off):
                    self.send_prefixed(addresses.GRID_LEVEL_MAP, x_off, y_off, *self._quad_levels(x_off, y_off))

    def _quad_cells(self, x_off: int, y_off: int):
        for row in range(QUAD_SIZE):
            for col in range(QUAD_SIZE):
                px, py = x_off + col + 1, y_off + row + 1
                if px <= self.cols and py <= self.rows:
                    yield transform.physical_index(px, py, self.cols)
                else:
                    yield None

    def _quad_levels(self, x_off: int, y_off: int) -> list[int]:
        return [0 if index is None else self.buffer.get(index) for index in self._quad_cells(x_off, y_off)]

    def _quad_dirty(self, x_off: int, y_off: int) -> bool:
        return any(index is not None and self.buffer.is_dirty(index) for index in self._quad_cells(x_off, y_off))
