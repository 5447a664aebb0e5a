"""Synchronous event bus for scrub observability.

Decouples the controller (which emits ProgressRecords and run events)
from presentation (CLI formatters, log sinks, tests collecting records).
"""

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")


class EventBusProtocol(Protocol):
    """Interface shared by EventBus and NullEventBus."""

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None: ...

    def emit(self, event: T) -> None: ...


class EventBus:
    """Dispatches each event to the handlers subscribed to its exact type.

    Handlers run synchronously in subscription order. Handler exceptions
    propagate to the emitter; a broken formatter is a bug, not a condition
    to hide.

    Example:
        bus = EventBus()
        bus.subscribe(ProgressRecord, lambda r: print(r.window_lower_bound, r.rows_affected))
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Callable[[Any], None]]] = {}

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def emit(self, event: T) -> None:
        for handler in self._subscribers.get(type(event), []):
            handler(event)


class NullEventBus:
    """Event bus that drops everything.

    Deliberately not an EventBus subclass, so code that subscribes
    expecting callbacks is visibly wired to the wrong bus.
    """

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        pass

    def emit(self, event: T) -> None:
        pass
