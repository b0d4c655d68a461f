from __future__ import annotations

import wave
from pathlib import Path

from timesling.services import sound


def test_play_sound_repeats_with_gap(monkeypatch) -> None:
    played, slept = [], []
    monkeypatch.setattr(sound, "_play_once", played.append)
    monkeypatch.setattr(sound.time, "sleep", slept.append)

    sound.play_sound("Glass", repeat=2, gap=0.5)

    assert played == ["Glass", "Glass"]
    assert slept == [0.5]


def test_play_sound_swallows_errors(monkeypatch) -> None:
    def boom(name):
        raise RuntimeError("no audio device")

    monkeypatch.setattr(sound, "_play_once", boom)
    sound.play_sound("Glass", repeat=1)


def test_generated_tone_is_used_without_afplay(monkeypatch) -> None:
    commands = []
    monkeypatch.setattr(sound, "_detect_player", lambda: "/usr/bin/paplay")
    monkeypatch.setattr(sound, "_run_player", lambda player, path: commands.append((player, path, path.exists())))

    sound._play_once("Glass")

    player, path, existed = commands[0]
    assert player == "/usr/bin/paplay"
    assert path.suffix == ".wav"
    assert existed
    assert not path.exists()


def test_afplay_plays_system_sound(monkeypatch, tmp_path: Path) -> None:
    (tmp_path / "Glass.aiff").write_bytes(b"")
    commands = []
    monkeypatch.setattr(sound, "MACOS_SOUNDS_DIR", tmp_path)
    monkeypatch.setattr(sound, "_detect_player", lambda: "/usr/bin/afplay")
    monkeypatch.setattr(sound, "_run_player", lambda player, path: commands.append((player, path)))

    sound._play_once("Glass")
    assert commands == [("/usr/bin/afplay", tmp_path / "Glass.aiff")]


def test_player_command_flags() -> None:
    wav = Path("/tmp/x.wav")
    assert tuple(sound._player_command("/usr/bin/aplay", wav)) == ("/usr/bin/aplay", "-q", "/tmp/x.wav")
    assert tuple(sound._player_command("/usr/bin/afplay", wav)) == ("/usr/bin/afplay", "/tmp/x.wav")


def test_chime_fades_at_note_boundaries() -> None:
    samples = sound._chime_samples(((1000.0, 0.1), (500.0, 0.1)), rate=8000, volume=0.5)

    assert len(samples) == 1600
    assert samples[0] == 0
    assert samples[799] == 0 and samples[800] == 0
    assert samples[-1] == 0
    assert max(abs(s) for s in samples) <= 16383
    assert max(abs(s) for s in samples[100:700]) > 10000


def test_written_chime_is_a_mono_wav(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(sound.tempfile, "tempdir", str(tmp_path))
    path = sound._write_chime()
    try:
        with wave.open(str(path), "rb") as wav_file:
            assert wav_file.getnchannels() == 1
            assert wav_file.getsampwidth() == 2
            assert wav_file.getframerate() == sound.CHIME_RATE
            assert wav_file.getnframes() == len(sound._chime_samples())
    finally:
        path.unlink()
