"""Chime synthesis and playback using numpy + QSoundEffect.

The completion chime is a singing-bowl strike: a fundamental plus a few
inharmonic partials, each decaying at its own rate.  The WAV is
generated once and cached to disk so later launches are instant.
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

logger = logging.getLogger(__name__)


# ── paths ────────────────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "MediTimer"
SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"

CHIME_NAME = "chime"
SAMPLE_RATE = 44100

# (frequency ratio to the fundamental, amplitude, decay time constant in s)
_BOWL_PARTIALS = (
    (1.0, 0.45, 2.2),
    (2.71, 0.18, 1.4),
    (5.15, 0.08, 0.7),
    (8.43, 0.03, 0.35),
)


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _sine(freq: float, duration_s: float) -> np.ndarray:
    """Pure sine wave at *freq* Hz for *duration_s* seconds."""
    t = np.linspace(0, duration_s, int(SAMPLE_RATE * duration_s), endpoint=False)
    return np.sin(2 * np.pi * freq * t)


def _decay(length: int, tau_s: float, attack: int = 220) -> np.ndarray:
    """Short linear attack followed by an exponential decay."""
    t = np.arange(length) / SAMPLE_RATE
    env = np.exp(-t / tau_s)
    a = min(attack, length)
    if a > 0:
        env[:a] *= np.linspace(0.0, 1.0, a)
    return env


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Convert a float64 numpy array (-1..1) to 16-bit PCM WAV bytes."""
    samples = np.clip(samples, -1.0, 1.0)
    int_samples = (samples * 32767).astype(np.int16)

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(int_samples.tobytes())
    return buf.getvalue()


def generate_chime(fundamental: float = 432.0, duration_s: float = 3.0) -> bytes:
    """Singing-bowl strike, about three seconds long."""
    length = int(SAMPLE_RATE * duration_s)
    mix = np.zeros(length, dtype=np.float64)
    for ratio, amp, tau in _BOWL_PARTIALS:
        mix += _sine(fundamental * ratio, duration_s) * amp * _decay(length, tau)
    # Fade the tail so the cut-off is inaudible
    tail = int(SAMPLE_RATE * 0.1)
    mix[-tail:] *= np.linspace(1.0, 0.0, tail)
    return _to_wav_bytes(mix)


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Owns the chime effect.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        controller = SessionController(chime=mgr.chime, ...)
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> None:
        super().__init__(parent)
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or SOUNDS_DIR
        self._effect: QSoundEffect | None = None

        self._ensure_wav_file()
        self._load_effect()

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100)."""
        self._volume = max(0, min(level, 100)) / 100.0
        if self._effect is not None:
            self._effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def chime(self) -> bool:
        """Play the chime.  Returns False when muted or unplayable."""
        if not self._enabled or self._effect is None:
            return False
        if self._effect.status() == QSoundEffect.Status.Error:
            logger.warning("Chime effect failed to load from %s", self.chime_path)
            return False
        self._effect.play()
        return True

    @property
    def volume(self) -> int:
        """Current volume as 0-100 integer."""
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def chime_path(self) -> Path:
        return self._sounds_dir / f"{CHIME_NAME}.wav"

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_file(self) -> None:
        """Generate the WAV into the cache directory if missing."""
        try:
            self._sounds_dir.mkdir(parents=True, exist_ok=True)
            if not self.chime_path.exists():
                self.chime_path.write_bytes(generate_chime())
        except OSError:
            logger.warning("Could not write chime to %s", self.chime_path, exc_info=True)

    def _load_effect(self) -> None:
        if self.chime_path.exists():
            effect = QSoundEffect(self)
            effect.setSource(QUrl.fromLocalFile(str(self.chime_path)))
            effect.setVolume(self._volume)
            self._effect = effect
