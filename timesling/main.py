#!/usr/bin/env python3
"""Headless TimeSling agent.

Wires the preferences, notification dispatcher, event bus and timer
registry together, optionally starts one timer from the command line and
keeps the expiration sweep alive until SIGINT/SIGTERM.
"""
from __future__ import annotations

import argparse
import logging
import math
import os
import signal
import sys
import threading
from typing import Optional, Sequence

from timesling.config.app_config import AppConfig
from timesling.config.settings import JsonSettingsStore, MemorySettingsStore, Settings
from timesling.core.registry import TimerRegistry
from timesling.domain.presets import PRESETS, custom_timer_title, preset_duration
from timesling.errors import ConfigError
from timesling.services.event_bus import Event, EventBus
from timesling.services.logging import setup_logging
from timesling.services.notifications import NotificationDispatcher

log = logging.getLogger(__name__)


class HeadlessTimeSling:
    """Long lived agent owning a single registry for the process."""

    def __init__(self, config: AppConfig, *, ephemeral: bool = False) -> None:
        self.config = config
        store = MemorySettingsStore() if ephemeral else JsonSettingsStore()
        self.settings = Settings.load(store)
        self.bus = EventBus()
        self.dispatcher = NotificationDispatcher(config)
        self.registry = TimerRegistry(
            self.settings,
            self.dispatcher,
            self.bus,
            poll_interval=config.poll_interval,
        )
        self._stop = threading.Event()
        self.bus.subscribe(Event, self._log_event)

    def _log_event(self, event: Event) -> None:
        log.debug("Event: %s", event)

    def request_stop(self, signum=None, frame=None) -> None:
        if signum is not None:
            log.info("Received signal %s, shutting down", signum)
        self._stop.set()

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self.request_stop)
        signal.signal(signal.SIGINT, self.request_stop)

    def run(self, *, exit_when_idle: bool = False) -> None:
        """Run until stopped; with ``exit_when_idle`` return once no timer is left."""

        self.registry.start()
        try:
            while not self._stop.wait(self.config.poll_interval):
                if exit_when_idle and not self.registry.has_active_timers():
                    # let the last completion reach the sweep
                    self.registry.sweep()
                    break
        finally:
            self.registry.stop()
            self.dispatcher.shutdown(timeout=3.0)
            log.info("TimeSling stopped")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TimeSling countdown timer agent")
    parser.add_argument("--config", help="Path to an app.yaml configuration file")
    parser.add_argument("--timer", type=float, help="Start a timer of this many seconds")
    parser.add_argument("--title", default="", help="Title for the --timer countdown")
    parser.add_argument(
        "--preset",
        help="Start a preset timer: " + ", ".join(name for name, _ in PRESETS),
    )
    parser.add_argument("--ephemeral", action="store_true", help="Do not persist preferences")
    parser.add_argument("--exit-when-idle", action="store_true", help="Exit after the last timer completes")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def _initial_timer(args: argparse.Namespace) -> Optional[tuple[float, str]]:
    if args.preset:
        seconds = preset_duration(args.preset)
        if seconds is None:
            raise ConfigError(f"Unknown preset: {args.preset}")
        return float(seconds), args.preset
    if args.timer is not None:
        if not (math.isfinite(args.timer) and args.timer > 0):
            raise ConfigError("Timer duration must be a positive number of seconds")
        return args.timer, args.title or custom_timer_title(args.timer)
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    env = dict(os.environ)
    if args.config:
        env["TIMESLING_CONFIG"] = args.config
    config = AppConfig.from_sources(env)
    setup_logging(logging.DEBUG if args.verbose else config.logging_level, config.log_dir)

    try:
        initial = _initial_timer(args)
    except ConfigError as exc:
        raise SystemExit(str(exc))

    app = HeadlessTimeSling(config, ephemeral=args.ephemeral)
    app.install_signal_handlers()
    if initial is not None:
        app.registry.start_timer(*initial)

    try:
        app.run(exit_when_idle=args.exit_when_idle)
    except KeyboardInterrupt:  # pragma: no cover - manual control
        log.info("Interrupted by user")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
