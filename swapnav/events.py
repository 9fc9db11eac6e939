"""In-process event bus for navigation lifecycle notifications."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from swapnav.types import LoadState

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class LoadChangeEvent:
    """Fired whenever the navigating flag is written.

    ``error`` is set when a started navigation was aborted by a failure.
    """

    previous_loading: bool
    new_loading: bool
    cancelled_by_deactivate: bool = False
    error: str | None = None

    @property
    def started(self) -> bool:
        return self.new_loading

    @property
    def finished(self) -> bool:
        """True only for a navigation that ran to completion."""
        return not self.new_loading and not self.cancelled_by_deactivate and self.error is None


@dataclass(frozen=True, slots=True)
class PhaseEvent:
    """Fired on entering each navigation phase."""

    phase: LoadState


NavigationEvent = LoadChangeEvent | PhaseEvent
E = TypeVar("E", LoadChangeEvent, PhaseEvent)


class EventBus:
    """Synchronous, ordered fan-out of navigation events.

    Handlers run in subscription order inside ``publish``. A failing handler
    is logged and does not stop delivery to the others. Queue subscribers
    receive every event without blocking the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = {}
        self._queues: list[asyncio.Queue[NavigationEvent]] = []

    def subscribe(self, event_type: type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler; returns a callable that unsubscribes it."""
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                handlers.remove(handler)

        return unsubscribe

    def publish(self, event: NavigationEvent) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                logger.exception("event_handler_failed", event=type(event).__name__)
        for q in self._queues:
            q.put_nowait(event)

    def subscribe_queue(self) -> asyncio.Queue[NavigationEvent]:
        """Return a queue that receives every subsequent event."""
        q: asyncio.Queue[NavigationEvent] = asyncio.Queue()
        self._queues.append(q)
        return q

    def unsubscribe_queue(self, q: asyncio.Queue[NavigationEvent]) -> None:
        with contextlib.suppress(ValueError):
            self._queues.remove(q)
