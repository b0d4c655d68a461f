"""Quick presets and duration formatting shared by tray front ends."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .models import Timer

__all__ = [
    "PRESETS",
    "IDLE_TITLE",
    "preset_duration",
    "custom_timer_title",
    "format_hm",
    "format_mmss",
    "tray_title",
]


PRESETS: Tuple[Tuple[str, int], ...] = (
    ("5 minutes", 5 * 60),
    ("15 minutes", 15 * 60),
    ("30 minutes", 30 * 60),
    ("1 hour", 60 * 60),
    ("2 hours", 2 * 60 * 60),
)

IDLE_TITLE = "⏱"


def preset_duration(name: str) -> Optional[int]:
    """Return the preset length in seconds for ``name`` or ``None``."""

    wanted = (name or "").strip().lower()
    for title, seconds in PRESETS:
        if title.lower() == wanted:
            return seconds
    return None


def custom_timer_title(seconds: float) -> str:
    """Label a timer started from the duration picker (``"1h 30m timer"``)."""

    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}m timer"
    if hours > 0:
        return f"{hours}h timer"
    return f"{minutes}m timer"


def format_hm(seconds: float) -> str:
    mins = int(seconds) // 60
    hrs = mins // 60
    m = mins % 60
    if hrs == 0:
        return f"{m}m"
    return f"{hrs}h {m}m"


def format_mmss(seconds: float) -> str:
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def tray_title(timers: Iterable[Timer], now: float) -> str:
    """Text shown next to the tray icon for the given active timers."""

    active = list(timers)
    if not active:
        return IDLE_TITLE
    if len(active) == 1:
        return format_mmss(active[0].remaining(now))
    return f"{len(active)}-{IDLE_TITLE}'s"
