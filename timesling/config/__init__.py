"""Preferences and runtime configuration."""

from .app_config import AppConfig
from .settings import JsonSettingsStore, MemorySettingsStore, Settings, SettingsStore

__all__ = ["AppConfig", "JsonSettingsStore", "MemorySettingsStore", "Settings", "SettingsStore"]
