"""Tests for settings, chime synthesis and the wake-lock.

Covers:
- Settings dataclass defaults and JSON round-trip
- Chime WAV generation and SoundManager playback API
- CaffeinateWakeLock idempotence, failure handling and non-blocking release
"""

from __future__ import annotations

import io
import json
import subprocess
import wave

import pytest

from meditimer.audio.sounds import SAMPLE_RATE, SoundManager, generate_chime
from meditimer.settings import Settings, load_settings, save_settings
from meditimer.wakelock import CaffeinateWakeLock


# ═══════════════════════════════════════════════════════════════════════
#  SETTINGS
# ═══════════════════════════════════════════════════════════════════════


class TestSettings:

    def test_defaults(self):
        s = Settings()
        assert (s.default_minutes, s.default_seconds) == (5, 0)
        assert s.sound_enabled is True
        assert s.sound_volume == 70
        assert s.notifications_enabled is True
        assert s.keep_awake is True

    def test_round_trip(self, tmp_path):
        path = tmp_path / "settings.json"
        save_settings(Settings(sound_volume=20, keep_awake=False), path)
        loaded = load_settings(path)
        assert loaded.sound_volume == 20
        assert loaded.keep_awake is False

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"sound_volume": 10, "theme": "dark"}))
        assert load_settings(path).sound_volume == 10

    def test_corrupt_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{{{")
        assert load_settings(path) == Settings()

    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "absent.json") == Settings()


# ═══════════════════════════════════════════════════════════════════════
#  CHIME
# ═══════════════════════════════════════════════════════════════════════


class TestChimeSynthesis:

    def test_valid_wav(self):
        data = generate_chime()
        with wave.open(io.BytesIO(data)) as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == SAMPLE_RATE
            assert wf.getnframes() == SAMPLE_RATE * 3

    def test_tail_is_silent(self):
        data = generate_chime(duration_s=1.0)
        with wave.open(io.BytesIO(data)) as wf:
            frames = wf.readframes(wf.getnframes())
        assert frames[-2:] == b"\x00\x00"


class TestSoundManager:

    def test_writes_chime_file(self, qapp, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        assert mgr.chime_path.exists()
        assert mgr.chime_path.parent == tmp_path

    def test_disabled_chime_reports_false(self, qapp, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.set_enabled(False)
        assert mgr.chime() is False

    def test_volume_is_clamped(self, qapp, tmp_path):
        mgr = SoundManager(sounds_dir=tmp_path)
        mgr.set_volume(150)
        assert mgr.volume == 100
        mgr.set_volume(-5)
        assert mgr.volume == 0


# ═══════════════════════════════════════════════════════════════════════
#  WAKE-LOCK
# ═══════════════════════════════════════════════════════════════════════


class _FakeProc:
    linger = False

    def __init__(self, *args, **kwargs):
        self.args = args
        self.alive = True
        self.terminated = False

    def poll(self):
        return None if self.alive else 0

    def terminate(self):
        self.terminated = True
        if not self.linger:
            self.alive = False

    def wait(self, timeout=None):
        raise AssertionError("release blocked on the child process")


class TestWakeLock:

    @pytest.fixture
    def spawned(self, monkeypatch):
        procs: list[_FakeProc] = []

        def fake_popen(*args, **kwargs):
            proc = _FakeProc(*args, **kwargs)
            procs.append(proc)
            return proc

        monkeypatch.setattr(subprocess, "Popen", fake_popen)
        return procs

    def test_acquire_spawns_once(self, spawned):
        lock = CaffeinateWakeLock("/usr/bin/caffeinate")
        assert lock.acquire() is True
        assert lock.acquire() is True
        assert len(spawned) == 1
        assert lock.held

    def test_release_terminates(self, spawned):
        lock = CaffeinateWakeLock("/usr/bin/caffeinate")
        lock.acquire()
        assert lock.release() is True
        assert not spawned[0].alive
        assert not lock.held

    def test_release_does_not_wait_for_slow_child(self, spawned, monkeypatch):
        monkeypatch.setattr(_FakeProc, "linger", True)
        lock = CaffeinateWakeLock("/usr/bin/caffeinate")
        lock.acquire()
        slow = spawned[0]
        assert lock.release() is True
        assert slow.terminated and slow.alive
        assert not lock.held

        # Exited meanwhile: reaped on the next acquire
        slow.alive = False
        assert lock.acquire() is True
        assert len(spawned) == 2
        assert lock._exiting == []

    def test_release_without_acquire(self):
        assert CaffeinateWakeLock("/usr/bin/caffeinate").release() is True

    def test_disabled_never_spawns(self, spawned):
        lock = CaffeinateWakeLock("/usr/bin/caffeinate", enabled=False)
        assert lock.acquire() is False
        assert spawned == []

    def test_missing_executable_reports_false(self, tmp_path):
        lock = CaffeinateWakeLock(str(tmp_path / "no-such-binary"))
        assert lock.acquire() is False
        assert not lock.held

