"""
Ordered dispatch chain for inbound OSC messages.

Handlers are tried in priority order (lower first, ties in registration
order). The first one that returns True consumes the message. Messages no
handler wants go to the fallback, typically whatever the host did with OSC
before oscsurface was installed.

::

    datagram ─► [10 discovery] ─► [20 system] ─► [30 sessions] ─► fallback
                     │ True           │ True          │ True
                     ▼                ▼               ▼
                   done             done            done

A handler that raises never takes the host down: protocol errors are
logged as warnings, anything else as an error with traceback, and the
message is dropped.
"""

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from oscsurface.devices.protocols import ClientAddress
from oscsurface.exceptions import ProtocolError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[ClientAddress, str, tuple[Any, ...]], bool]
FallbackHandler = Callable[[ClientAddress, str, tuple[Any, ...]], None]

_sequence = itertools.count()


@dataclass(order=True)
class _Entry:
    priority: int
    sequence: int
    handler: MessageHandler = field(compare=False)
    name: str = field(compare=False)


class MessageRouter:
    """Priority-ordered handler chain with a fallback."""

    def __init__(self, fallback: FallbackHandler | None = None):
        self._entries: list[_Entry] = []
        self.fallback = fallback

    def add_handler(self, handler: MessageHandler, priority: int = 100, name: str | None = None) -> None:
        """
        Register a handler.

        Args:
            handler: Called with (client, path, args); returns True if consumed
            priority: Lower runs first
            name: Label for logs (default: the handler's qualified name)
        """
        label = name or getattr(handler, "__qualname__", repr(handler))
        self._entries.append(_Entry(priority, next(_sequence), handler, label))
        self._entries.sort()
        logger.debug(f"Registered message handler '{label}' at priority {priority}")

    def remove_handler(self, handler: MessageHandler) -> bool:
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.handler != handler]
        return len(self._entries) < before

    @property
    def handler_names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def dispatch(self, client: ClientAddress, path: str, args: tuple[Any, ...]) -> bool:
        """
        Route one message.

        Returns:
            True if a handler consumed it (errors count as consumed)
        """
        for entry in list(self._entries):
            try:
                if entry.handler(client, path, args):
                    return True
            except ProtocolError as e:
                logger.warning(f"Dropped {path} from {client}: {e.technical_message}")
                return True
            except Exception as e:
                logger.error(f"Handler '{entry.name}' failed on {path} from {client}: {e}", exc_info=True)
                return True

        if self.fallback is not None:
            try:
                self.fallback(client, path, args)
            except Exception as e:
                logger.error(f"Fallback handler failed on {path} from {client}: {e}", exc_info=True)
        else:
            logger.debug(f"Unhandled {path} from {client}")
        return False
