"""Plain data types shared by the registry and any front end."""

from .models import Timer

__all__ = ["Timer"]
