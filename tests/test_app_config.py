from __future__ import annotations

import logging
from pathlib import Path

import pytest

from timesling.config import app_config as app_config_mod
from timesling.config.app_config import AppConfig


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(app_config_mod, "_DEFAULT_DIR", tmp_path / "home", raising=False)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_file(tmp_path: Path) -> None:
    config = AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path / "nowhere")})
    assert config.poll_interval == 1.0
    assert config.log_level == "INFO"
    assert config.sound_name == "Glass"
    assert config.sound_repeat == 2
    assert config.sound_gap == 0.5


def test_yaml_file_in_settings_dir(tmp_path: Path) -> None:
    _write(
        tmp_path / "app.yaml",
        "timers:\n  poll_interval: 0.5\nlogging:\n  level: debug\nsound:\n  name: Ping\n  repeat: 3\n  gap: 0.2\n",
    )
    config = AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)})
    assert config.poll_interval == 0.5
    assert config.log_level == "DEBUG"
    assert config.logging_level == logging.DEBUG
    assert config.sound_name == "Ping"
    assert config.sound_repeat == 3
    assert config.sound_gap == 0.2


def test_explicit_config_wins_and_env_overrides(tmp_path: Path) -> None:
    _write(tmp_path / "app.yaml", "timers:\n  poll_interval: 5\n")
    explicit = _write(tmp_path / "custom.yaml", "timers:\n  poll_interval: 2\nlogging:\n  level: ERROR\n")

    config = AppConfig.from_sources(
        {
            "TIMESLING_SETTINGS_DIR": str(tmp_path),
            "TIMESLING_CONFIG": str(explicit),
            "TIMESLING_LOG_LEVEL": "warning",
        }
    )
    assert config.poll_interval == 2.0
    assert config.log_level == "WARNING"

    config = AppConfig.from_sources({"TIMESLING_CONFIG": str(explicit), "TIMESLING_POLL_INTERVAL": "0.25"})
    assert config.poll_interval == 0.25


def test_invalid_values_fall_back(tmp_path: Path) -> None:
    _write(
        tmp_path / "app.yaml",
        "timers:\n  poll_interval: -1\nlogging:\n  level: LOUD\nsound:\n  repeat: zero\n  gap: -3\n",
    )
    config = AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)})
    assert config.poll_interval == 1.0
    assert config.log_level == "INFO"
    assert config.sound_repeat == 2
    assert config.sound_gap == 0.5


def test_unparseable_yaml_is_ignored(tmp_path: Path) -> None:
    _write(tmp_path / "app.yaml", "timers: [unclosed\n")
    config = AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)})
    assert config == AppConfig()

    _write(tmp_path / "app.yaml", "- just\n- a list\n")
    assert AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)}) == AppConfig()


def test_log_dir_from_file_or_env(tmp_path: Path) -> None:
    assert AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)}).log_dir is None

    _write(tmp_path / "app.yaml", "logging:\n  dir: /var/log/timesling\n")
    config = AppConfig.from_sources({"TIMESLING_SETTINGS_DIR": str(tmp_path)})
    assert config.log_dir == "/var/log/timesling"

    config = AppConfig.from_sources(
        {"TIMESLING_SETTINGS_DIR": str(tmp_path), "TIMESLING_LOG_DIR": str(tmp_path / "logs")}
    )
    assert config.log_dir == str(tmp_path / "logs")
