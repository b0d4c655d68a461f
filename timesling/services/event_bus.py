"""Typed publish/subscribe bus between the timer registry and front ends."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Type

from timesling.domain.models import Timer

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Base class of every registry event."""


@dataclass(frozen=True)
class TimerStarted(Event):
    timer: Timer


@dataclass(frozen=True)
class TimerUpdated(Event):
    timer_id: str


@dataclass(frozen=True)
class TimerCancelled(Event):
    # ``None`` means every timer was cancelled at once.
    timer_id: Optional[str] = None

    @property
    def all(self) -> bool:
        return self.timer_id is None


@dataclass(frozen=True)
class TimerCompleted(Event):
    timer_id: str
    display_name: str
    description: str = ""


Subscriber = Callable[[Event], None]


class EventBus:
    """Simple publish/subscribe event bus keyed by event class.

    Subscribing to :class:`Event` receives everything. Callbacks run on the
    publishing thread; exceptions they raise are logged and dropped.
    """

    def __init__(self) -> None:
        self._subs: Dict[Type[Event], List[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: Type[Event], fn: Subscriber) -> None:
        with self._lock:
            subs = self._subs.setdefault(event_type, [])
            if fn not in subs:
                subs.append(fn)

    def unsubscribe(self, event_type: Type[Event], fn: Subscriber) -> None:
        with self._lock:
            try:
                self._subs.get(event_type, []).remove(fn)
            except ValueError:
                pass

    def publish(self, event: Event) -> None:
        with self._lock:
            targets = list(self._subs.get(type(event), []))
            if type(event) is not Event:
                targets.extend(fn for fn in self._subs.get(Event, []) if fn not in targets)
        for fn in targets:
            try:
                fn(event)
            except Exception:
                log.debug("Subscriber %r failed on %s", fn, type(event).__name__, exc_info=True)


__all__ = [
    "Event",
    "EventBus",
    "Subscriber",
    "TimerStarted",
    "TimerUpdated",
    "TimerCancelled",
    "TimerCompleted",
]
