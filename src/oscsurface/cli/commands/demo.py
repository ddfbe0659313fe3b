"""Demo command - serves and animates whatever connects."""

import logging
import math
from typing import Optional

import click

from oscsurface.models import DeviceCategory
from oscsurface.orchestration import SurfaceHost
from oscsurface.session import Port, RingPort, SurfacePort

from .serve import load_config, run_host

logger = logging.getLogger(__name__)

RING_STEP = math.tau / 256  # radians per encoder delta tick
RING_WIDTH = math.tau / 6


class DemoScript:
    """
    Rotation test pattern on surfaces, a rotating arc on rings.

    Surfaces show a diagonal plus four dimmed corners; any key press cycles
    the rotation so the pattern should turn with it. Ring encoders move an
    arc around their ring and a ring key press puts it back at the top.
    """

    def __init__(self, host: SurfaceHost):
        self.host = host
        self.rotations: dict[int, int] = {}
        self.angles: dict[tuple[int, int], float] = {}

    def install(self) -> None:
        sessions = self.host.sessions
        sessions.callbacks[DeviceCategory.SURFACE].add = self._surface_added
        sessions.callbacks[DeviceCategory.RING].add = self._ring_added
        self.host.add_tick_callback(self._refresh_surfaces)

    # Surfaces

    def _surface_added(self, port: Port) -> None:
        assert isinstance(port, SurfacePort)
        self.rotations[port.index] = 0
        port.key = lambda x, y, state: self._surface_key(port, x, y, state)
        self.draw_pattern(port)

    def _surface_key(self, port: SurfacePort, x: int, y: int, state: int) -> None:
        if state != 1:
            return
        rotation = (self.rotations.get(port.index, 0) + 1) % 4
        self.rotations[port.index] = rotation
        logger.info(f"Surface {port.index}: key ({x}, {y}), rotation {rotation * 90} degrees")
        port.rotation(rotation)
        self.draw_pattern(port)

    @staticmethod
    def draw_pattern(port: SurfacePort) -> None:
        cols, rows = port.cols, port.rows
        port.all(0)
        for i in range(1, min(cols, rows) + 1):
            port.led(i, i, 15)
        port.led(1, 1, 10)
        port.led(cols, 1, 8)
        port.led(1, rows, 6)
        port.led(cols, rows, 4)

    def _refresh_surfaces(self) -> None:
        for index in self.host.sessions.connected_slots(DeviceCategory.SURFACE):
            self.host.port(DeviceCategory.SURFACE, index).refresh()

    # Rings

    def _ring_added(self, port: Port) -> None:
        assert isinstance(port, RingPort)
        port.delta = lambda n, delta: self._ring_delta(port, n, delta)
        port.key = lambda n, state: self._ring_key(port, n, state)
        for n in range(1, port.ring_count + 1):
            self.angles[(port.index, n)] = 0.0
            self.draw_ring(port, n)

    def _ring_delta(self, port: RingPort, n: int, delta: int) -> None:
        key = (port.index, n)
        self.angles[key] = (self.angles.get(key, 0.0) + delta * RING_STEP) % math.tau
        self.draw_ring(port, n)

    def _ring_key(self, port: RingPort, n: int, state: int) -> None:
        if state == 1:
            self.angles[(port.index, n)] = 0.0
            self.draw_ring(port, n)

    def draw_ring(self, port: RingPort, n: int) -> None:
        start = self.angles.get((port.index, n), 0.0)
        port.segment(n, start, start + RING_WIDTH, 15)


@click.command()
@click.option('--port', '-p', type=click.IntRange(1, 65535), default=None, help='UDP port (default from config)')
@click.option('--slots', '-n', type=click.IntRange(1, 16), default=None, help='Slots per device type')
@click.pass_context
def demo(ctx, port: Optional[int], slots: Optional[int]):
    """
    Run the host with a built-in demo script.

    \b
    Grid: a rotation test pattern; press any key to rotate by 90 degrees.
    Arc:  an arc per encoder; turn to move it, press to reset.
    """
    config = load_config(ctx, None, port, slots)
    run_host(ctx, config, setup=lambda host: DemoScript(host).install())
