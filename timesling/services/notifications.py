"""Best-effort desktop notifications and completion sound.

Every public method returns immediately: the actual work runs on daemon
threads so the timer registry never waits for ``osascript``,
``notify-send`` or an audio player. Failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from shutil import which
from typing import Callable, Dict, List, Optional

from timesling.config.app_config import AppConfig
from timesling.services import sound

log = logging.getLogger(__name__)

Poster = Callable[[str, str], None]
Runner = Callable[[Callable[[], None]], None]


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def post_notification(title: str, body: str) -> None:
    """Show a desktop notification using whatever the platform offers."""

    if sys.platform == "darwin":
        script = f"display notification {_applescript_quote(body)} with title {_applescript_quote(title)}"
        cmd = ["osascript", "-e", script]
    elif which("notify-send"):
        cmd = ["notify-send", "-a", "TimeSling", title, body]
    else:
        log.info("Notification: %s - %s", title, body)
        return
    try:
        subprocess.run(cmd, check=True, timeout=5, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except (OSError, subprocess.SubprocessError) as exc:
        log.debug("Notification request rejected (%s): %s", cmd[0], exc)


class NotificationDispatcher:
    """Schedule, cancel and fire notifications for individual timers."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        poster: Optional[Poster] = None,
        sound_player: Optional[Callable[[], None]] = None,
        runner: Optional[Runner] = None,
    ) -> None:
        cfg = config or AppConfig()
        self._poster = poster or post_notification
        self._sound_player = sound_player or (
            lambda: sound.play_sound(cfg.sound_name, repeat=cfg.sound_repeat, gap=cfg.sound_gap)
        )
        self._runner = runner or self._spawn
        self._workers: List[threading.Thread] = []
        self._pending: Dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def schedule_delayed_notification(self, timer_id: str, title: str, body: str, delay: float) -> None:
        pending = threading.Timer(max(0.0, float(delay)), self._fire_scheduled, args=(timer_id, title, body))
        pending.daemon = True
        with self._lock:
            previous = self._pending.pop(timer_id, None)
            self._pending[timer_id] = pending
        if previous is not None:
            previous.cancel()
        pending.start()
        log.debug("Notification for %s scheduled in %.1fs", timer_id, delay)

    def cancel_scheduled_notification(self, timer_id: str) -> None:
        with self._lock:
            pending = self._pending.pop(timer_id, None)
        if pending is not None:
            pending.cancel()
            log.debug("Scheduled notification for %s cancelled", timer_id)

    def has_scheduled(self, timer_id: str) -> bool:
        with self._lock:
            return timer_id in self._pending

    def fire_immediate_notification(self, title: str, body: str) -> None:
        self._dispatch(lambda: self._poster(title, body), "notification")

    def play_completion_sound(self) -> None:
        self._dispatch(self._sound_player, "sound")

    def shutdown(self, timeout: float = 0.0) -> None:
        """Cancel pending schedules and wait up to ``timeout`` for running work."""

        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
            workers = list(self._workers)
        for item in pending:
            item.cancel()
        for worker in workers:
            if timeout > 0 and worker.is_alive():
                worker.join(timeout=timeout)

    # ------------------------------------------------------------------
    def _fire_scheduled(self, timer_id: str, title: str, body: str) -> None:
        with self._lock:
            current = self._pending.get(timer_id)
            if current is not None and current is threading.current_thread():
                del self._pending[timer_id]
        self._safe_call(lambda: self._poster(title, body), "scheduled notification")

    def _spawn(self, work: Callable[[], None]) -> None:
        worker = threading.Thread(target=work, name="TimeSlingDispatch", daemon=True)
        with self._lock:
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(worker)
        worker.start()

    def _dispatch(self, work: Callable[[], None], what: str) -> None:
        try:
            self._runner(lambda: self._safe_call(work, what))
        except Exception:
            log.debug("Could not dispatch %s", what, exc_info=True)

    @staticmethod
    def _safe_call(work: Callable[[], None], what: str) -> None:
        try:
            work()
        except Exception:
            log.debug("Dispatch of %s failed", what, exc_info=True)


__all__ = ["NotificationDispatcher", "post_notification"]
