"""Session event delivery for a single event loop.

The presentation layer listens here for SessionStarted/SessionEnded,
e.g. to route back to the login screen after a forced logout.
"""

from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, List, Type, TypeVar

import structlog

from nutriscan.domain.shared.events import DomainEvent

logger = structlog.get_logger(__name__)

TEvent = TypeVar("TEvent", bound=DomainEvent)

Listener = Callable[[Any], Awaitable[None]]


def _name(listener: Listener) -> str:
    return getattr(listener, "__name__", repr(listener))


class InMemoryEventBus:
    """
    Typed pub/sub keyed on the exact event class.

    Listeners run sequentially in the order they subscribed. One
    listener raising never stops delivery to the rest.

    Example:
        >>> bus = InMemoryEventBus()
        >>> async def show_login(event: SessionEnded) -> None:
        ...     screen.show("login")
        >>> bus.subscribe(SessionEnded, show_login)
        >>> await bus.publish(SessionEnded(reason=SessionEndReason.AUTH_REJECTED))
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[Type[DomainEvent], List[Listener]] = defaultdict(list)

    def subscribe(
        self,
        event_type: Type[TEvent],
        listener: Callable[[TEvent], Awaitable[None]],
    ) -> None:
        """Register listener for event_type; duplicates are delivered twice."""
        self._listeners[event_type].append(listener)
        logger.debug("Listener added", event_type=event_type.__name__, listener=_name(listener))

    def unsubscribe(
        self,
        event_type: Type[TEvent],
        listener: Callable[[TEvent], Awaitable[None]],
    ) -> bool:
        """Drop one registration of listener. False when it was not registered."""
        registered = self._listeners.get(event_type, [])
        if listener not in registered:
            return False
        registered.remove(listener)
        return True

    async def publish(self, event: DomainEvent) -> None:
        event_name = type(event).__name__
        # snapshot: listeners may unsubscribe while being notified
        listeners = tuple(self._listeners.get(type(event), ()))

        logger.debug("Delivering event", event_type=event_name, listeners=len(listeners))

        for listener in listeners:
            try:
                await listener(event)
            except Exception as e:
                logger.error(
                    "Session listener raised",
                    event_type=event_name,
                    event_id=str(event.event_id),
                    listener=_name(listener),
                    error=str(e),
                    exc_info=True,
                )

    def clear(self) -> None:
        self._listeners.clear()

    def get_handler_count(self, event_type: Type[TEvent]) -> int:
        return len(self._listeners.get(event_type, ()))
