"""Runtime configuration for the TimeSling agent.

Values come from an optional YAML document and may be overridden through
environment variables. The file is searched in this order:

* ``$TIMESLING_CONFIG``
* ``$TIMESLING_SETTINGS_DIR/app.yaml``
* ``~/.timesling/app.yaml``

Every key is optional; invalid values fall back to the defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

log = logging.getLogger(__name__)

_DEFAULT_DIR = Path.home() / ".timesling"
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _find_app_config(env: Mapping[str, str]) -> Optional[Path]:
    candidates = []

    override = env.get("TIMESLING_CONFIG")
    if override:
        candidates.append(Path(override))

    settings_dir = env.get("TIMESLING_SETTINGS_DIR")
    if settings_dir:
        candidates.append(Path(settings_dir) / "app.yaml")

    candidates.append(_DEFAULT_DIR / "app.yaml")

    for candidate in candidates:
        try:
            if candidate.is_file():
                return candidate
        except OSError:
            continue
    return None


def _load_yaml_config(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        if isinstance(data, dict):
            return data
        log.debug("Ignoring %s: top level is not a mapping", path)
    except (OSError, yaml.YAMLError) as exc:
        log.debug("Could not parse %s: %s", path, exc)
    return {}


def _nested_get(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    current: Any = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def _positive_float(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def _non_negative_float(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if number >= 0 else fallback


def _positive_int(value: Any, fallback: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return fallback
    return number if number > 0 else fallback


def _log_level(value: Any, fallback: str) -> str:
    level = str(value or "").strip().upper()
    return level if level in _LOG_LEVELS else fallback


@dataclass
class AppConfig:
    poll_interval: float = 1.0
    log_level: str = "INFO"
    sound_name: str = "Glass"
    sound_repeat: int = 2
    sound_gap: float = 0.5
    log_dir: Optional[str] = None

    @classmethod
    def from_sources(cls, env: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if env is None else env
        cfg_path = _find_app_config(env)
        data = _load_yaml_config(cfg_path)
        if cfg_path is not None:
            log.debug("Using configuration file %s", cfg_path)

        poll_interval = _positive_float(
            env.get("TIMESLING_POLL_INTERVAL", _nested_get(data, "timers", "poll_interval")),
            cls.poll_interval,
        )
        log_level = _log_level(
            env.get("TIMESLING_LOG_LEVEL", _nested_get(data, "logging", "level")),
            cls.log_level,
        )
        sound_name = str(_nested_get(data, "sound", "name", default=cls.sound_name) or cls.sound_name)
        sound_repeat = _positive_int(_nested_get(data, "sound", "repeat"), cls.sound_repeat)
        sound_gap = _non_negative_float(_nested_get(data, "sound", "gap"), cls.sound_gap)
        log_dir = env.get("TIMESLING_LOG_DIR") or _nested_get(data, "logging", "dir")

        return cls(
            poll_interval=poll_interval,
            log_level=log_level,
            sound_name=sound_name,
            sound_repeat=sound_repeat,
            sound_gap=sound_gap,
            log_dir=str(log_dir) if log_dir else None,
        )

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


__all__ = ["AppConfig"]
