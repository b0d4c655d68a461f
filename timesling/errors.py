"""Exceptions raised by the TimeSling package."""
from __future__ import annotations


class TimeSlingError(Exception):
    """Base class for every TimeSling specific error."""


class ConfigError(TimeSlingError):
    """Invalid runtime configuration supplied by the user."""


__all__ = ["TimeSlingError", "ConfigError"]
