"""Session state models."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional

from .config import STUDY_MINUTES, PRACTICE_MINUTES, SHORT_BREAK_MINUTES


class TimerMode(str, Enum):
    """Category of activity being timed."""
    STUDY = "STUDY"
    PRACTICE = "PRACTICE"
    SHORT_BREAK = "SHORT_BREAK"

    @property
    def is_break(self) -> bool:
        return self is TimerMode.SHORT_BREAK


class ActivityType(str, Enum):
    """Classification of a practice plan step."""
    STUDY = "study"
    PRACTICE = "practice"
    BREAK = "break"


DEFAULT_DURATIONS = {
    TimerMode.STUDY: STUDY_MINUTES * 60,
    TimerMode.PRACTICE: PRACTICE_MINUTES * 60,
    TimerMode.SHORT_BREAK: SHORT_BREAK_MINUTES * 60,
}


def parse_mode(value) -> TimerMode:
    """
    Parse a mode name such as "STUDY", "short_break" or a TimerMode.

    Raises ValueError for unknown names.
    """
    if isinstance(value, TimerMode):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid timer mode: {value!r}")
    try:
        return TimerMode(value.strip().upper())
    except ValueError:
        raise ValueError(f"Invalid timer mode: {value!r}") from None


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the countdown session."""
    mode: TimerMode
    time_left: int
    initial_duration: int
    is_running: bool = False
    is_alarming: bool = False
    label: Optional[str] = None  # set when a plan step configured the session

    def __post_init__(self):
        if self.initial_duration <= 0:
            raise ValueError("initial_duration must be positive")
        if not 0 <= self.time_left <= self.initial_duration:
            raise ValueError(
                f"time_left {self.time_left} outside 0..{self.initial_duration}"
            )
        if self.is_running and self.is_alarming:
            raise ValueError("a session cannot run and alarm at the same time")

    @property
    def status(self) -> str:
        if self.is_alarming:
            return "alarming"
        if self.is_running:
            return "running"
        return "idle"

    @property
    def progress(self) -> float:
        """Remaining time as a percentage of the initial duration."""
        return round(self.time_left / self.initial_duration * 100, 2)

    @property
    def formatted(self) -> str:
        minutes, seconds = divmod(self.time_left, 60)
        return f"{minutes}:{seconds:02d}"

    def to_dict(self):
        data = asdict(self)
        data["mode"] = self.mode.value
        data["status"] = self.status
        data["progress"] = self.progress
        data["formatted"] = self.formatted
        return data


@dataclass(frozen=True, eq=False)
class ExternalTask:
    """
    Timer configuration handed over by a practice plan step.

    Compared by identity: two steps may share duration, mode and label
    and still be distinct deliveries.
    """
    duration_seconds: int
    mode: TimerMode
    label: str

    def __post_init__(self):
        if self.duration_seconds <= 0:
            raise ValueError("duration_seconds must be positive")
