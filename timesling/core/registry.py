"""In-memory registry of running countdown timers.

The registry owns the active-timer list. Commands may arrive from any
thread while a background sweep checks for expired timers once per poll
interval. A single lock guards the list; it is never held while talking
to the notification dispatcher or the event bus. Events are handed to one
delivery thread so slow subscribers never hold up a command or a sweep.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import queue
import threading
import time
from typing import Callable, List, Optional

from timesling.config.settings import Settings
from timesling.domain.models import Timer
from timesling.services.event_bus import (
    Event,
    EventBus,
    TimerCancelled,
    TimerCompleted,
    TimerStarted,
    TimerUpdated,
)
from timesling.services.notifications import NotificationDispatcher

__all__ = ["TimerRegistry", "COMPLETION_TITLE", "completion_body"]

log = logging.getLogger(__name__)

COMPLETION_TITLE = "Timer Complete!"


def completion_body(display_name: str) -> str:
    if not display_name:
        return "Your timer has finished!"
    return f"{display_name} is done!"


class TimerRegistry:
    """Start, cancel, update and query countdown timers."""

    def __init__(
        self,
        settings: Settings,
        dispatcher: NotificationDispatcher,
        bus: Optional[EventBus] = None,
        *,
        poll_interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._dispatcher = dispatcher
        self.bus = bus or EventBus()
        self._poll_interval = max(0.01, float(poll_interval))
        self._clock = clock
        self._timers: List[Timer] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._thread_lock = threading.Lock()
        self._events: "queue.Queue[object]" = queue.Queue()
        self._delivery: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    # ------------------------------------------------------------------
    def start(self) -> None:
        """Start the periodic expiration sweep."""

        with self._thread_lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="TimerSweep", daemon=True)
            self._thread.start()
        log.debug("Sweep started (interval=%.2fs)", self._poll_interval)

    def stop(self) -> None:
        """Stop the sweep thread; safe to call more than once."""

        with self._thread_lock:
            self._stop_event.set()
            thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._poll_interval * 2 + 1.0)
        with self._thread_lock:
            self._thread = None
        self._stop_delivery()
        log.debug("Sweep stopped")

    @property
    def running(self) -> bool:
        thread = self._thread
        return bool(thread and thread.is_alive())

    def __enter__(self) -> "TimerRegistry":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # ------------------------------------------------------------------
    def start_timer(self, duration: float, title: str) -> Optional[str]:
        try:
            seconds = float(duration)
        except (TypeError, ValueError):
            log.debug("Ignoring timer with invalid duration %r", duration)
            return None
        if not (math.isfinite(seconds) and seconds > 0):
            log.debug("Ignoring timer with non-positive or unbounded duration %r", duration)
            return None

        timer = Timer(title=title or "", duration=seconds, end_time=self._clock() + seconds)
        with self._lock:
            self._timers.append(timer)
            snapshot = dataclasses.replace(timer)

        if self._settings.notifications_enabled:
            self._dispatch(
                "schedule_delayed_notification",
                timer.id,
                COMPLETION_TITLE,
                completion_body(snapshot.display_name),
                seconds,
            )
            if self.get_timer(timer.id) is None:
                # cancelled before the notification was armed
                self._dispatch("cancel_scheduled_notification", timer.id)
        log.info("Timer started: %s (%ds)", snapshot.display_name or timer.id, int(seconds))
        self._publish(TimerStarted(snapshot))
        return timer.id

    def update_timer(self, timer_id: str, custom_name: str = "", description: str = "") -> None:
        now = self._clock()
        with self._lock:
            timer = self._find(timer_id)
            if timer is None:
                log.debug("update_timer: unknown id %s", timer_id)
                return
            timer.custom_name = custom_name or ""
            timer.description = description or ""
            display_name = timer.display_name
            remaining = timer.remaining(now)

        if self._settings.notifications_enabled and remaining > 0:
            self._dispatch("cancel_scheduled_notification", timer_id)
            self._dispatch(
                "schedule_delayed_notification",
                timer_id,
                COMPLETION_TITLE,
                completion_body(display_name),
                remaining,
            )
            if self.get_timer(timer_id) is None:
                # cancelled while the notification was being re-armed
                self._dispatch("cancel_scheduled_notification", timer_id)
        log.info("Timer %s updated: %s", timer_id, display_name)
        self._publish(TimerUpdated(timer_id))

    def cancel_timer(self, timer_id: str) -> None:
        with self._lock:
            timer = self._find(timer_id)
            if timer is not None:
                self._timers.remove(timer)

        if timer is None:
            log.debug("cancel_timer: unknown id %s", timer_id)
            return
        self._dispatch("cancel_scheduled_notification", timer_id)
        log.info("Timer cancelled: %s", timer.display_name or timer_id)
        self._publish(TimerCancelled(timer_id))

    def cancel_all_timers(self) -> None:
        with self._lock:
            timer_ids = [timer.id for timer in self._timers]
        for timer_id in timer_ids:
            self.cancel_timer(timer_id)
        log.info("All timers cancelled (%d)", len(timer_ids))
        self._publish(TimerCancelled(None))

    # ------------------------------------------------------------------
    def get_active_timers(self) -> List[Timer]:
        now = self._clock()
        with self._lock:
            return [dataclasses.replace(t) for t in self._timers if t.is_active(now)]

    def get_timer(self, timer_id: str) -> Optional[Timer]:
        with self._lock:
            timer = self._find(timer_id)
            return dataclasses.replace(timer) if timer is not None else None

    def has_active_timers(self) -> bool:
        return bool(self.get_active_timers())

    # ------------------------------------------------------------------
    def toggle_notifications(self) -> bool:
        return self._settings.toggle_notifications()

    def toggle_sound(self) -> bool:
        return self._settings.toggle_sound()

    # ------------------------------------------------------------------
    def sweep(self) -> List[Timer]:
        """Remove expired timers and fire their completion side effects once."""

        now = self._clock()
        with self._lock:
            expired = [t for t in self._timers if not t.is_active(now)]
            if expired:
                self._timers = [t for t in self._timers if t.is_active(now)]

        for timer in expired:
            self._complete(timer)
        return expired

    def _complete(self, timer: Timer) -> None:
        log.info("Timer completed: %s", timer.display_name or timer.id)
        if self._settings.notifications_enabled:
            self._dispatch(
                "fire_immediate_notification", COMPLETION_TITLE, completion_body(timer.display_name)
            )
        if self._settings.sound_enabled:
            self._dispatch("play_completion_sound")
        self._publish(TimerCompleted(timer.id, timer.display_name, timer.description))

    def flush(self, timeout: float = 2.0) -> bool:
        """Wait until every event published so far has reached its subscribers."""

        with self._thread_lock:
            delivery, events = self._delivery, self._events
        if delivery is None or delivery is threading.current_thread():
            return True
        marker = threading.Event()
        events.put(marker)
        return marker.wait(timeout)

    def _publish(self, event: Event) -> None:
        with self._thread_lock:
            if self._delivery is None:
                self._events = queue.Queue()
                self._delivery = threading.Thread(
                    target=self._deliver, args=(self._events,), name="TimerEvents", daemon=True
                )
                self._delivery.start()
            self._events.put(event)

    def _deliver(self, events: "queue.Queue[object]") -> None:
        while True:
            item = events.get()
            if item is None:
                return
            if isinstance(item, threading.Event):
                item.set()
                continue
            self.bus.publish(item)

    def _stop_delivery(self) -> None:
        with self._thread_lock:
            delivery, events = self._delivery, self._events
            self._delivery = None
        if delivery is None:
            return
        # pending events are still delivered before the worker exits
        events.put(None)
        if delivery is not threading.current_thread():
            delivery.join(timeout=2.0)

    def _run(self) -> None:
        while not self._stop_event.wait(self._poll_interval):
            try:
                self.sweep()
            except Exception:
                log.exception("Sweep iteration failed")

    def _dispatch(self, action: str, *args) -> None:
        try:
            getattr(self._dispatcher, action)(*args)
        except Exception:
            log.debug("Dispatcher %s failed", action, exc_info=True)

    def _find(self, timer_id: str) -> Optional[Timer]:
        for timer in self._timers:
            if timer.id == timer_id:
                return timer
        return None
