"""Completion sound helpers, best-effort on every platform."""
from __future__ import annotations

import logging
import math
import subprocess
import sys
import tempfile
import time
import wave
from array import array
from functools import lru_cache
from pathlib import Path
from shutil import which
from typing import Iterable, Optional

log = logging.getLogger(__name__)

MACOS_SOUNDS_DIR = Path("/System/Library/Sounds")

_PLAYER_CANDIDATES: tuple[str, ...] = ("afplay", "paplay", "aplay", "play")


def play_sound(name: str = "Glass", *, repeat: int = 1, gap: float = 0.5) -> None:
    """Play the named system sound ``repeat`` times, blocking the caller."""

    for index in range(max(1, int(repeat))):
        if index:
            time.sleep(max(0.0, gap))
        try:
            _play_once(name)
        except Exception:  # pragma: no cover - defensive logging only
            log.debug("Could not play sound %s", name, exc_info=True)


def _play_once(name: str) -> None:
    system_sound = MACOS_SOUNDS_DIR / f"{name}.aiff"
    player = _detect_player()

    if player and Path(player).name == "afplay" and system_sound.exists():
        _run_player(player, system_sound)
        return

    if player and Path(player).name != "afplay":
        wav_path = _write_chime()
        try:
            _run_player(player, wav_path)
        finally:
            try:
                wav_path.unlink()
            except OSError:
                pass
        return

    # Fallback: terminal bell
    try:
        sys.stdout.write("\a")
        sys.stdout.flush()
    except (OSError, ValueError):
        pass


def _run_player(player: str, sound_path: Path) -> None:
    try:
        subprocess.run(
            list(_player_command(player, sound_path)),
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except (OSError, subprocess.SubprocessError):
        log.debug("Playback with %s failed", player, exc_info=True)


@lru_cache(maxsize=1)
def _detect_player() -> Optional[str]:
    for candidate in _PLAYER_CANDIDATES:
        path = which(candidate)
        if path:
            return path
    return None


def _player_command(player: str, sound_path: Path) -> Iterable[str]:
    binary = Path(player).name.lower()
    if binary in {"aplay", "play"}:
        return (player, "-q", str(sound_path))
    return (player, str(sound_path))


CHIME_NOTES: tuple[tuple[float, float], ...] = ((987.8, 0.18), (659.3, 0.32))
CHIME_RATE = 22050
_FADE_SECONDS = 0.01


def _chime_samples(notes=CHIME_NOTES, rate: int = CHIME_RATE, volume: float = 0.6) -> array:
    """Render ``(frequency, seconds)`` notes as 16-bit mono samples.

    Each note ramps in and out over a few milliseconds so players do not
    click at the note boundaries.
    """

    peak = int(32767 * min(1.0, max(0.0, volume)))
    fade = max(1, int(rate * _FADE_SECONDS))
    samples = array("h")
    for frequency, seconds in notes:
        count = max(1, int(rate * seconds))
        step = 2.0 * math.pi * frequency / rate
        for index in range(count):
            envelope = min(1.0, index / fade, (count - 1 - index) / fade)
            samples.append(int(peak * envelope * math.sin(step * index)))
    return samples


def _write_chime() -> Path:
    samples = _chime_samples()
    handle = tempfile.NamedTemporaryFile(prefix="timesling-chime-", suffix=".wav", delete=False)
    handle.close()
    path = Path(handle.name)
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setparams((1, 2, CHIME_RATE, len(samples), "NONE", "not compressed"))
        wav_file.writeframes(samples.tobytes())
    return path


__all__ = ["play_sound"]
