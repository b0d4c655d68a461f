"""User preferences and their key-value persistence."""
from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

log = logging.getLogger(__name__)

CONFIG_DIR = Path(os.environ.get("TIMESLING_SETTINGS_DIR", Path.home() / ".timesling"))
PREFERENCES_PATH = CONFIG_DIR / "preferences.json"

NOTIFICATIONS_KEY = "notificationsEnabled"
SOUND_KEY = "soundEnabled"


class SettingsStore(Protocol):
    """Minimal key-value interface used to persist boolean preferences."""

    def load_bool(self, key: str, default: bool) -> bool:
        ...

    def save_bool(self, key: str, value: bool) -> None:
        ...


class MemorySettingsStore:
    """Volatile store, handy for tests and ephemeral runs."""

    def __init__(self, initial: Optional[Dict[str, bool]] = None) -> None:
        self._values: Dict[str, bool] = dict(initial or {})

    def load_bool(self, key: str, default: bool) -> bool:
        value = self._values.get(key, default)
        return value if isinstance(value, bool) else default

    def save_bool(self, key: str, value: bool) -> None:
        self._values[key] = bool(value)


class JsonSettingsStore:
    """Persist preferences in a small JSON document written atomically."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else PREFERENCES_PATH
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    def load_bool(self, key: str, default: bool) -> bool:
        with self._lock:
            payload = self._read()
        value = payload.get(key, default)
        if not isinstance(value, bool):
            log.debug("Ignoring non boolean value for %s: %r", key, value)
            return default
        return value

    def save_bool(self, key: str, value: bool) -> None:
        with self._lock:
            payload = self._read()
            payload[key] = bool(value)
            self._atomic_save(payload)
        log.info("Preference %s=%s saved to %s", key, bool(value), self.path)

    # ------------------------------------------------------------------
    def _read(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
            if not raw.strip():
                return {}
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("preferences payload must be a JSON object")
            return payload
        except FileNotFoundError:
            return {}
        except (json.JSONDecodeError, ValueError) as exc:
            log.warning("Preferences file %s invalid (%s); using defaults", self.path, exc)
            self._backup_corrupt_file()
            return {}

    def _atomic_save(self, payload: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)

    def _backup_corrupt_file(self) -> None:
        try:
            if self.path.exists():
                self.path.with_suffix(".json.bak").write_bytes(self.path.read_bytes())
                self.path.unlink()
        except Exception:  # pragma: no cover - best effort
            log.debug("Could not create backup for corrupt preferences", exc_info=True)


@dataclass
class Settings:
    """Process wide notification and sound preferences."""

    notifications_enabled: bool = True
    sound_enabled: bool = True
    store: Optional[SettingsStore] = field(default=None, repr=False, compare=False)

    # ------------------------------------------------------------------
    @classmethod
    def load(cls, store: SettingsStore) -> "Settings":
        settings = cls(
            notifications_enabled=store.load_bool(NOTIFICATIONS_KEY, True),
            sound_enabled=store.load_bool(SOUND_KEY, True),
            store=store,
        )
        log.info(
            "Preferences loaded: notifications=%s sound=%s",
            settings.notifications_enabled,
            settings.sound_enabled,
        )
        return settings

    # ------------------------------------------------------------------
    def toggle_notifications(self) -> bool:
        self.notifications_enabled = not self.notifications_enabled
        self._persist(NOTIFICATIONS_KEY, self.notifications_enabled)
        log.info("Notifications %s", "enabled" if self.notifications_enabled else "disabled")
        return self.notifications_enabled

    def toggle_sound(self) -> bool:
        self.sound_enabled = not self.sound_enabled
        self._persist(SOUND_KEY, self.sound_enabled)
        log.info("Sound %s", "enabled" if self.sound_enabled else "disabled")
        return self.sound_enabled

    def _persist(self, key: str, value: bool) -> None:
        if self.store is None:
            return
        try:
            self.store.save_bool(key, value)
        except Exception as exc:
            log.warning("Could not persist preference %s: %s", key, exc)


__all__ = [
    "Settings",
    "SettingsStore",
    "JsonSettingsStore",
    "MemorySettingsStore",
    "NOTIFICATIONS_KEY",
    "SOUND_KEY",
    "PREFERENCES_PATH",
]
