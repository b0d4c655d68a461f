from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def _new_timer_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Timer:
    title: str
    duration: float
    end_time: float
    custom_name: str = ""
    description: str = ""
    id: str = field(default_factory=_new_timer_id)

    @property
    def display_name(self) -> str:
        return self.custom_name or self.title

    def remaining(self, now: float) -> float:
        return max(0.0, self.end_time - now)

    def is_active(self, now: float) -> bool:
        return self.end_time > now
