"""Session clock: the countdown state machine."""

import threading
from dataclasses import replace
from typing import Callable, Optional

from alarm.notify import Permission

from .config import TICK_SECONDS, DEBUG
from .state import ExternalTask, SessionState, TimerMode

COMPLETION_MESSAGE = "Block complete!"


class SessionClock:
    """
    Owns the SessionState and advances it once per second while running.

    States are Idle, Running and Alarming. Every mutation goes through
    `_update`, which checks the state invariants and starts or cancels the
    ticker job on each edge of `is_running`. A re-entrant lock serializes
    ticks from the scheduler thread with requests from the web app.
    """

    def __init__(
        self,
        preferences,
        scheduler,
        alarm,
        notifier=None,
        on_complete: Optional[Callable[[], None]] = None,
        mode: TimerMode = TimerMode.STUDY,
    ):
        """
        Args:
            preferences: PreferenceStore providing `duration_for(mode)`
            scheduler: Provides `every(seconds, func)` for the ticker
            alarm: Alarm with `start(mode)`, `stop()`, `is_alarming`
            notifier: Optional DesktopNotifier
            on_complete: Called once per countdown reaching zero
            mode: Initial mode
        """
        self._preferences = preferences
        self._scheduler = scheduler
        self._alarm = alarm
        self._notifier = notifier
        self.on_complete = on_complete

        self._lock = threading.RLock()
        self._ticker = None
        self._tick_generation = 0
        self._last_task: Optional[ExternalTask] = None

        self._alarm.on_expired = self._on_alarm_expired

        duration = self._preferences.duration_for(mode)
        self._state = SessionState(mode=mode, time_left=duration, initial_duration=duration)

    @property
    def state(self) -> SessionState:
        return self._state

    def snapshot(self) -> dict:
        return self._state.to_dict()

    # --- Operations ---

    def select_mode(self, mode: TimerMode) -> SessionState:
        """Switch mode, load its saved duration and go idle."""
        with self._lock:
            self._alarm.stop()
            duration = self._preferences.duration_for(mode)
            self._update(
                mode=mode,
                initial_duration=duration,
                time_left=duration,
                is_running=False,
                is_alarming=False,
                label=None,
            )
            print(f"[Timer] Mode {mode.value} ({duration // 60} min)")
            return self._state

    def apply_external_task(self, task: ExternalTask) -> SessionState:
        """
        Configure the session from a plan step and start it.

        Delivering the same task object again does nothing.
        """
        with self._lock:
            if task is self._last_task:
                return self._state
            self._last_task = task

            self._alarm.stop()
            self._update(
                restart_ticker=True,
                mode=task.mode,
                initial_duration=task.duration_seconds,
                time_left=task.duration_seconds,
                is_running=True,
                is_alarming=False,
                label=task.label,
            )
            print(f"[Timer] Started '{task.label}': {task.mode.value} for {task.duration_seconds}s")
            return self._state

    def toggle_running(self) -> SessionState:
        """Start or pause. Stops a ringing alarm first."""
        with self._lock:
            if self._state.is_alarming:
                self._alarm.stop()
                self._update(is_alarming=False)

            if self._state.is_running:
                self._update(is_running=False)
                return self._state

            time_left = self._state.time_left or self._state.initial_duration
            self._request_notification_permission()
            self._update(time_left=time_left, is_running=True)
            return self._state

    def reset(self) -> SessionState:
        """Rewind to the initial duration and go idle."""
        with self._lock:
            self._alarm.stop()
            self._update(
                time_left=self._state.initial_duration,
                is_running=False,
                is_alarming=False,
            )
            return self._state

    def stop_alarm(self) -> SessionState:
        with self._lock:
            self._alarm.stop()
            self._update(is_alarming=False)
            return self._state

    def tick(self, generation: Optional[int] = None) -> SessionState:
        """
        Advance the countdown by one second.

        Ticks from a cancelled ticker (stale generation) are dropped.
        """
        with self._lock:
            if generation is not None and generation != self._tick_generation:
                return self._state

            state = self._state
            if not state.is_running or state.time_left <= 0:
                return state

            time_left = state.time_left - 1
            if time_left > 0:
                self._update(time_left=time_left)
                return self._state

            self._update(time_left=0, is_running=False)
            self._complete()
            return self._state

    def close(self):
        """Release the ticker and the alarm."""
        with self._lock:
            self._cancel_ticker()
            self._alarm.stop()
            if self._state.is_running or self._state.is_alarming:
                self._update(is_running=False, is_alarming=False)

    # --- Internals ---

    def _update(self, restart_ticker: bool = False, **changes):
        previous = self._state
        self._state = replace(previous, **changes)  # validates invariants

        if self._state.is_running and (restart_ticker or not previous.is_running):
            self._start_ticker()
        elif previous.is_running and not self._state.is_running:
            self._cancel_ticker()

    def _start_ticker(self):
        self._cancel_ticker()
        self._tick_generation += 1
        generation = self._tick_generation
        self._ticker = self._scheduler.every(TICK_SECONDS, lambda: self.tick(generation))

    def _cancel_ticker(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        # Any tick already in flight belongs to an old generation now
        self._tick_generation += 1

    def _complete(self):
        state = self._state
        print(f"[Timer] {state.mode.value} session complete")

        self._alarm.start(state.mode)
        self._update(is_alarming=self._alarm.is_alarming)

        if self._notifier is not None:
            try:
                self._notifier.notify(COMPLETION_MESSAGE)
            except Exception as e:
                print(f"[Timer] Notification error: {e}")

        if self.on_complete is not None:
            try:
                self.on_complete()
            except Exception as e:
                print(f"[Timer] Completion listener error: {e}")

    def _request_notification_permission(self):
        if self._notifier is None:
            return
        try:
            if self._notifier.permission is Permission.DEFAULT:
                self._notifier.request_permission()
        except Exception as e:
            if DEBUG:
                print(f"[Timer] Permission request failed: {e}")

    def _on_alarm_expired(self):
        with self._lock:
            if self._state.is_alarming and not self._alarm.is_alarming:
                self._update(is_alarming=False)
