"""EventBus: synchronous in-process notifications from the game loop.

Rules:
- publishers never import their subscribers
- payloads carry ids and small plain values, not live state objects
- propagation depth is capped at MAX_DEPTH
- one source may emit a given event type once per turn (reset_chain)
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # max nested emits within one turn


@dataclass
class BusEvent:
    """Args:
    event_type: one of EventTypes (e.g. "day_ended")
    data: payload (ids and plain values)
    source: emitting component name
    """

    event_type: str
    data: Dict[str, Any]
    source: str

    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[BusEvent], None]


class EventBus:
    """Synchronous event bus.

    Usage:
        bus = EventBus()
        bus.subscribe("day_ended", chronicle.on_day_ended)
        bus.emit(BusEvent(event_type="day_ended", data={"day": 4}, source="game_loop"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._current_depth: int = 0
        self._emitted_in_chain: Set[str] = set()  # "source:event_type"

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug(f"EventBus subscribe: {event_type} → {handler.__qualname__}")

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"EventBus unsubscribe: {event_type} → {handler.__qualname__}")
            except ValueError:
                logger.warning(f"Handler not registered: {event_type} → {handler.__qualname__}")

    def emit(self, event: BusEvent) -> None:
        """Call every handler for the event type, synchronously.

        Dropped (with a warning) when depth reaches MAX_DEPTH or when the same
        source already emitted this event type in the current turn. Handler
        exceptions are logged and do not reach the emitter.
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                f"EventBus depth limit ({MAX_DEPTH}) reached: "
                f"{event.source}:{event.event_type} dropped"
            )
            return

        chain_key = f"{event.source}:{event.event_type}"
        if chain_key in self._emitted_in_chain:
            logger.warning(f"EventBus duplicate suppressed: {chain_key}")
            return

        self._emitted_in_chain.add(chain_key)
        event._depth = self._current_depth

        handlers = self._handlers.get(event.event_type, [])
        if not handlers:
            logger.debug(f"EventBus: no subscribers for {event.event_type}")
            return

        logger.debug(
            f"EventBus dispatch: {event.event_type} (source={event.source}, "
            f"depth={self._current_depth}, handlers={len(handlers)})"
        )

        self._current_depth += 1
        try:
            for handler in list(handlers):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"EventBus handler error: {handler.__qualname__} "
                        f"(event={event.event_type})"
                    )
        finally:
            self._current_depth -= 1

    def reset_chain(self) -> None:
        """Called at the end of every turn; clears duplicate tracking."""
        self._emitted_in_chain.clear()
        self._current_depth = 0

    def clear(self) -> None:
        """Drop all subscriptions; the session is going away."""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
