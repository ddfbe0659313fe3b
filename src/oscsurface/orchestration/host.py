"""
Host context object.

SurfaceHost ties the pieces together and owns the event loop. It is built
explicitly and handed to whoever runs the loop; there is no module-level
instance.

Architecture:
    SurfaceHost
    ├── OscServer         (inbound datagrams, single threaded)
    ├── MessageRouter     (discovery → system → sessions → fallback)
    ├── SessionManager    (slots, devices, ports)
    └── OscTransport      (outbound datagrams, shares the server socket)

Loop:
    while running:
        server.poll()      handle at most one datagram (waits poll_interval)
        tick()             staleness policy + application tick callbacks

Everything runs on that one loop, so nothing here needs a lock.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from oscsurface.devices.protocols import ClientAddress, Transport
from oscsurface.exceptions import ErrorContext, handle_errors
from oscsurface.models import AppConfig, DeviceCategory
from oscsurface.osc import OscServer, OscTransport
from oscsurface.protocols import HostEvent, HostObserver
from oscsurface.session import MessageRouter, Port, SessionManager, SystemHandler
from oscsurface.session.router import FallbackHandler
from oscsurface.utils import ObserverManager

logger = logging.getLogger(__name__)

DISCOVERY_PRIORITY = 10
SYSTEM_PRIORITY = 20
SESSION_PRIORITY = 30


class SurfaceHost:
    """
    Owns the transport, session manager and router, and drives the loop.

    Example:
        ```python
        with SurfaceHost(AppConfig()) as host:
            grid = host.port(DeviceCategory.SURFACE, 1)
            grid.key = lambda x, y, s: grid.led(x, y, 15 if s else 0)
            host.add_tick_callback(grid.refresh)
            host.run()
        ```
    """

    def __init__(
        self,
        config: AppConfig,
        transport: Transport | None = None,
        clock: Callable[[], float] = time.monotonic,
        fallback: FallbackHandler | None = None,
    ):
        """
        Initialize the host (no socket is opened until startup()).

        Args:
            config: Host configuration
            transport: Outbound sink (default: OscTransport on the server socket)
            clock: Monotonic time source shared by all devices
            fallback: Receives messages no oscsurface handler consumed
        """
        self.config = config
        self.clock = clock
        self.transport = transport or OscTransport()

        self.sessions = SessionManager(config, self.transport, clock)
        self.system = SystemHandler(self.sessions)

        self.router = MessageRouter(fallback)
        self.router.add_handler(self.sessions.discovery.handle_message, DISCOVERY_PRIORITY, "discovery")
        self.router.add_handler(self.system.handle_message, SYSTEM_PRIORITY, "system")
        self.router.add_handler(self.sessions.handle_message, SESSION_PRIORITY, "sessions")

        self.server: OscServer | None = None
        self._running = False
        self._tick_callbacks: list[Callable[[], None]] = []
        self._observers = ObserverManager[HostObserver]("host")

    # =================================================================
    # Lifecycle
    # =================================================================

    def startup(self) -> None:
        """
        Bind the OSC server.

        Raises:
            PortInUseError: If the configured address is not available
        """
        self.server = OscServer(self.config.host, self.config.port, self.handle_message, self.config.poll_interval)
        self.server.start()
        if isinstance(self.transport, OscTransport):
            self.transport.attach(self.server.socket)
        logger.info(f"Host started with {self.config.max_slots} slot(s) per category")
        self._observers.notify("on_host_event", HostEvent.STARTED)

    def run(self) -> None:
        """Run the loop until stop() is called (or Ctrl+C)."""
        if self.server is None:
            self.startup()
        self._running = True
        logger.info("Host loop running")
        try:
            while self._running:
                self.server.poll()
                self.tick()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            self._running = False

    def stop(self) -> None:
        """Ask the loop to exit after the current iteration."""
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def shutdown(self) -> None:
        """Tear down every slot (blank, notify clients) and close the socket."""
        logger.info("Shutting down host")
        self._observers.notify("on_host_event", HostEvent.STOPPING)
        self.stop()

        with ErrorContext("tear down slots", logger_instance=logger, re_raise=False):
            self.sessions.shutdown()

        if self.server is not None:
            self.server.stop()
            self.server = None
        if isinstance(self.transport, OscTransport):
            self.transport.close()

    def script_changed(self) -> None:
        """A new application script is taking over: blank devices, drop callbacks."""
        self.sessions.clear_all()
        self._tick_callbacks.clear()
        self._observers.notify("on_host_event", HostEvent.SCRIPT_CHANGED)

    def __enter__(self) -> "SurfaceHost":
        self.startup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.shutdown()
        return False

    # =================================================================
    # Loop work
    # =================================================================

    def handle_message(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        return self.router.dispatch(client, path, args)

    def tick(self) -> None:
        """Apply the staleness policy, then run application tick callbacks."""
        if self.config.max_staleness is not None:
            self.sessions.flush_stale(self.config.max_staleness)
        for callback in list(self._tick_callbacks):
            self._run_tick_callback(callback)

    @handle_errors(operation_name="run tick callback", re_raise=False)
    def _run_tick_callback(self, callback: Callable[[], None]) -> None:
        callback()

    def add_tick_callback(self, callback: Callable[[], None]) -> None:
        self._tick_callbacks.append(callback)

    def remove_tick_callback(self, callback: Callable[[], None]) -> None:
        if callback in self._tick_callbacks:
            self._tick_callbacks.remove(callback)

    # =================================================================
    # Convenience
    # =================================================================

    def port(self, category: DeviceCategory, index: int = 1) -> Port:
        return self.sessions.port(category, index)

    def register_observer(self, observer: HostObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: HostObserver) -> None:
        self._observers.unregister(observer)
