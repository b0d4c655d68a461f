"""Timer registry and expiration sweep."""

from .registry import TimerRegistry

__all__ = ["TimerRegistry"]
