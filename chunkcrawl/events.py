"""
Chunk transition notifications
"""
from collections import defaultdict
from dataclasses import dataclass
import logging
from typing import Callable, DefaultDict, List, Tuple, Type

logger = logging.getLogger(__name__)

Handler = Callable[[object], None]


@dataclass(frozen=True)
class ChunkWillChange:
    """Published before the departing chunk is saved"""
    from_coords: Tuple[int, int]
    to_coords: Tuple[int, int]


@dataclass(frozen=True)
class ChunkDidChange:
    """Published once the player stands in the new chunk"""
    coords: Tuple[int, int]
    biome: str


class EventBus:
    """Synchronous publish/subscribe keyed by event class"""

    def __init__(self) -> None:
        self._subscribers: DefaultDict[Type[object], List[Tuple[int, int, Handler]]] = defaultdict(list)
        self._next_order = 0

    def subscribe(self, event_type: Type[object], handler: Handler, *, priority: int = 100) -> None:
        """
        Register a handler for one event class

        Args:
            event_type: Event class to listen for
            handler: Called with the event
            priority: Lower runs first; ties run in subscription order
        """
        self._subscribers[event_type].append((int(priority), self._next_order, handler))
        self._next_order += 1
        self._subscribers[event_type].sort(key=lambda row: (row[0], row[1]))

    def publish(self, event: object) -> None:
        """Deliver an event to its handlers; a failing handler is logged and the rest still run"""
        event_type = type(event)
        for priority, _, handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception:
                handler_name = getattr(handler, "__qualname__", getattr(handler, "__name__", repr(handler)))
                logger.exception("Handler %s failed on %s (priority %d)", handler_name, event_type.__name__, priority)
