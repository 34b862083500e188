"""Turn a practice plan step into a timer configuration."""

import re
from typing import Any

from .config import FALLBACK_STEP_MINUTES
from .state import ActivityType, ExternalTask, TimerMode

DEFAULT_LABEL = "Block"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def mode_for_activity(activity_type: Any) -> TimerMode:
    """Study steps time as STUDY, practice as PRACTICE, anything else as a break."""
    if isinstance(activity_type, ActivityType):
        value = activity_type.value
    else:
        value = str(activity_type or "").strip().lower()

    if value == ActivityType.STUDY.value:
        return TimerMode.STUDY
    if value == ActivityType.PRACTICE.value:
        return TimerMode.PRACTICE
    return TimerMode.SHORT_BREAK


def parse_step_minutes(duration: Any) -> int:
    """
    Read the leading integer of a step duration ("10", "12 min").

    Unparseable or non-positive values give the fallback.
    """
    if isinstance(duration, bool):
        return FALLBACK_STEP_MINUTES
    if isinstance(duration, int):
        minutes = duration
    else:
        match = _LEADING_INT.match(str(duration if duration is not None else ""))
        if not match:
            return FALLBACK_STEP_MINUTES
        minutes = int(match.group(1))

    return minutes if minutes > 0 else FALLBACK_STEP_MINUTES


def _field(step: Any, name: str):
    if isinstance(step, dict):
        return step.get(name)
    return getattr(step, name, None)


def task_from_step(step: Any) -> ExternalTask:
    """
    Build an ExternalTask from a plan step.

    Accepts a PracticeStep row or a dict with "duration", "action" and
    "type" (or "activity_type") keys.
    """
    activity = _field(step, "activity_type")
    if activity is None:
        activity = _field(step, "type")

    label = (_field(step, "action") or "").strip() or DEFAULT_LABEL

    return ExternalTask(
        duration_seconds=parse_step_minutes(_field(step, "duration")) * 60,
        mode=mode_for_activity(activity),
        label=label,
    )
