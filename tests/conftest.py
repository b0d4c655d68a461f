import sys
import threading
from pathlib import Path
from typing import List, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from timesling.config.settings import MemorySettingsStore, Settings  # noqa: E402
from timesling.core.registry import TimerRegistry  # noqa: E402
from timesling.services.event_bus import Event, EventBus  # noqa: E402


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingDispatcher:
    """Dispatcher double that records every request synchronously."""

    def __init__(self) -> None:
        self.calls: List[Tuple] = []
        self.scheduled = {}
        self._lock = threading.Lock()

    def schedule_delayed_notification(self, timer_id, title, body, delay):
        with self._lock:
            self.calls.append(("schedule", timer_id, title, body, delay))
            self.scheduled[timer_id] = (title, body, delay)

    def cancel_scheduled_notification(self, timer_id):
        with self._lock:
            self.calls.append(("cancel", timer_id))
            self.scheduled.pop(timer_id, None)

    def fire_immediate_notification(self, title, body):
        with self._lock:
            self.calls.append(("fire", title, body))

    def play_completion_sound(self):
        with self._lock:
            self.calls.append(("sound",))

    def kinds(self, kind: str) -> List[Tuple]:
        with self._lock:
            return [call for call in self.calls if call[0] == kind]


class EventRecorder:
    """Collects every event; reads wait for the registry's delivery thread."""

    def __init__(self, registry: TimerRegistry) -> None:
        self._registry = registry
        self._events: List[Event] = []
        self._lock = threading.Lock()
        registry.bus.subscribe(Event, self._record)

    def _record(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Event]:
        assert self._registry.flush(), "event delivery stalled"
        with self._lock:
            return list(self._events)

    def of(self, event_type) -> List[Event]:
        return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def store() -> MemorySettingsStore:
    return MemorySettingsStore()


@pytest.fixture
def registry(clock, dispatcher, store) -> TimerRegistry:
    reg = TimerRegistry(Settings.load(store), dispatcher, EventBus(), clock=clock)
    yield reg
    reg.stop()


@pytest.fixture
def events(registry) -> EventRecorder:
    return EventRecorder(registry)
