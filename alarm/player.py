"""Alarm tone rendering (numpy) and playback using mpv."""

import subprocess
import wave
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from timer.config import (
    TONE_CACHE_DIR, SAMPLE_RATE, TONE_GAIN, ALARM_REPEATS, ALARM_TONE_INTERVAL, DEBUG,
)

# Shape of one tone: seconds -> gain factor (attack, decay, silence)
TONE_LENGTH = 0.6
ENVELOPE_TIMES = [0.0, 0.1, 0.5, TONE_LENGTH]
ENVELOPE_LEVELS = [0.0, 1.0, 0.0, 0.0]

PLAYER_COMMAND = ("mpv", "--no-video", "--really-quiet", "--")


def render_tone_pattern(
    frequency: float,
    repeats: int = ALARM_REPEATS,
    interval: float = ALARM_TONE_INTERVAL,
    sample_rate: int = SAMPLE_RATE,
    gain: float = TONE_GAIN,
) -> np.ndarray:
    """
    Render `repeats` sine tones, one every `interval` seconds.

    Returns 16-bit mono samples. The buffer ends with the last tone, so
    nothing plays after the final repetition.
    """
    if repeats <= 0:
        return np.zeros(0, dtype=np.int16)

    tone_samples = int(round(TONE_LENGTH * sample_rate))
    slot_samples = int(round(interval * sample_rate))
    total = slot_samples * (repeats - 1) + tone_samples

    t = np.arange(tone_samples) / sample_rate
    envelope = np.interp(t, ENVELOPE_TIMES, ENVELOPE_LEVELS) * gain
    tone = np.sin(2 * np.pi * frequency * t) * envelope

    signal = np.zeros(total, dtype=np.float64)
    for i in range(repeats):
        start = i * slot_samples
        signal[start:start + tone_samples] += tone

    return (np.clip(signal, -1.0, 1.0) * 32767).astype(np.int16)


def write_wav(samples: np.ndarray, path: Path, sample_rate: int = SAMPLE_RATE):
    """Write 16-bit mono samples to a WAV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as f:
        f.setnchannels(1)
        f.setsampwidth(2)
        f.setframerate(sample_rate)
        f.writeframes(samples.tobytes())


class Playback:
    """A running player process. Stopping is idempotent."""

    def __init__(self, process: subprocess.Popen):
        self._process: Optional[subprocess.Popen] = process

    @property
    def pid(self) -> Optional[int]:
        if self._process is None or self._process.poll() is not None:
            return None
        return self._process.pid

    def is_playing(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def stop(self) -> bool:
        """
        Stop playback and reap the process.

        Returns True if a process was released, False if already stopped.
        """
        if self._process is None:
            return False

        process = self._process
        self._process = None
        try:
            # Send SIGTERM for graceful shutdown
            process.terminate()
            process.wait(timeout=2)
        except subprocess.TimeoutExpired:
            # Force kill if it doesn't respond
            process.kill()
            process.wait()
        except Exception as e:
            print(f"[Alarm] Error stopping playback: {e}")

        if DEBUG:
            print("[Alarm] Playback stopped")
        return True


class TonePlayer:
    """Plays cached tone patterns through an external audio player."""

    def __init__(self, cache_dir: Optional[Path] = None, command: Sequence[str] = PLAYER_COMMAND):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else TONE_CACHE_DIR
        self.command = tuple(command)

    def _pattern_path(self, frequency: float, repeats: int, interval: float) -> Path:
        return self.cache_dir / f"tone_{int(frequency)}hz_{repeats}x_{int(interval * 1000)}ms.wav"

    def pattern_file(
        self,
        frequency: float,
        repeats: int = ALARM_REPEATS,
        interval: float = ALARM_TONE_INTERVAL,
    ) -> Path:
        """Path of the rendered pattern, rendering it on first use."""
        path = self._pattern_path(frequency, repeats, interval)
        if not path.exists():
            if DEBUG:
                print(f"[Alarm] Rendering {path.name}")
            write_wav(render_tone_pattern(frequency, repeats, interval), path)
        return path

    def play_pattern(
        self,
        frequency: float,
        repeats: int = ALARM_REPEATS,
        interval: float = ALARM_TONE_INTERVAL,
    ) -> Optional[Playback]:
        """
        Start playing a tone pattern without blocking.

        Returns a Playback handle, or None if audio is unavailable.
        """
        try:
            path = self.pattern_file(frequency, repeats, interval)
        except (IOError, OSError) as e:
            print(f"[Alarm] Error rendering tone: {e}")
            return None

        try:
            process = subprocess.Popen(
                [*self.command, str(path)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            print(f"[Alarm] Error: {self.command[0]} not installed. Run: sudo apt install {self.command[0]}")
            return None
        except Exception as e:
            print(f"[Alarm] Error starting playback: {e}")
            return None

        if DEBUG:
            print(f"[Alarm] Playing {repeats} tones at {frequency:.0f} Hz")
        return Playback(process)
