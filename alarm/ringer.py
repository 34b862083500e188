"""Bounded, stoppable alarm fired when a countdown reaches zero."""

import threading
from typing import Callable, Optional

from timer.config import (
    ALARM_REPEATS, ALARM_TONE_INTERVAL, ALARM_CEILING_SECONDS,
    FOCUS_TONE_HZ, BREAK_TONE_HZ, DEBUG,
)
from timer.state import TimerMode

from .player import Playback, TonePlayer


def tone_for(mode: TimerMode) -> float:
    """Lower tone for breaks, higher tone otherwise."""
    return BREAK_TONE_HZ if mode.is_break else FOCUS_TONE_HZ


class Alarm:
    """
    Plays a capped tone pattern and stops itself after a fixed ceiling.

    Every exit path (stop, auto-stop, restart) releases the player process
    and cancels the pending auto-stop job.
    """

    def __init__(
        self,
        player: TonePlayer,
        scheduler,
        repeats: int = ALARM_REPEATS,
        interval: float = ALARM_TONE_INTERVAL,
        ceiling: float = ALARM_CEILING_SECONDS,
        on_expired: Optional[Callable[[], None]] = None,
    ):
        """
        Args:
            player: Plays tone patterns
            scheduler: Provides `after(seconds, func)` for the auto-stop
            on_expired: Called (outside the alarm lock) after an auto-stop
        """
        self._player = player
        self._scheduler = scheduler
        self.repeats = repeats
        self.interval = interval
        self.ceiling = ceiling
        self.on_expired = on_expired

        self._lock = threading.RLock()
        self._is_alarming = False
        self._playback: Optional[Playback] = None
        self._auto_stop = None
        self._generation = 0
        self.mode: Optional[TimerMode] = None

    @property
    def is_alarming(self) -> bool:
        return self._is_alarming

    def start(self, mode: TimerMode):
        """Start the alarm for `mode`, tearing down any previous one first."""
        with self._lock:
            self.stop()

            self._generation += 1
            generation = self._generation
            self._is_alarming = True
            self.mode = mode

            print(f"[Alarm] Ringing for {mode.value}")
            self._playback = self._player.play_pattern(
                tone_for(mode), self.repeats, self.interval
            )
            self._auto_stop = self._scheduler.after(
                self.ceiling, lambda: self._expire(generation)
            )

    def stop(self) -> bool:
        """
        Silence the alarm and release its resources.

        Returns True if an alarm was active, False otherwise.
        """
        with self._lock:
            was_alarming = self._is_alarming

            if self._auto_stop is not None:
                self._auto_stop.cancel()
                self._auto_stop = None

            if self._playback is not None:
                try:
                    self._playback.stop()
                except Exception as e:
                    print(f"[Alarm] Error releasing audio: {e}")
                self._playback = None

            self._is_alarming = False

        if was_alarming and DEBUG:
            print("[Alarm] Stopped")
        return was_alarming

    def _expire(self, generation: int):
        """Auto-stop callback; ignored if a newer alarm superseded this one."""
        with self._lock:
            if generation != self._generation or not self._is_alarming:
                return
            print("[Alarm] Ceiling reached, stopping")
            self.stop()

        if self.on_expired is not None:
            self.on_expired()
