"""Validation for practice plan edits."""

from dataclasses import dataclass
from typing import Optional

from timer.state import ActivityType

MAX_PLAN_MINUTES = 240
ACTIVITY_TYPES = {t.value for t in ActivityType}
STEP_TEXT_FIELDS = ("duration", "action", "description")


@dataclass
class ValidationResult:
    """Result of a validation check."""
    is_valid: bool
    error_message: Optional[str] = None


def validate_plan_name(name) -> ValidationResult:
    """Plan names must be non-empty text."""
    if not isinstance(name, str) or not name.strip():
        return ValidationResult(
            is_valid=False,
            error_message="Plan name cannot be empty"
        )
    if len(name) > 200:
        return ValidationResult(
            is_valid=False,
            error_message="Plan name must be at most 200 characters"
        )
    return ValidationResult(is_valid=True)


def validate_plan_minutes(minutes) -> ValidationResult:
    """
    Validate a plan length.
    Hard limits: 1-240 minutes
    """
    whole_number = ValidationResult(
        is_valid=False,
        error_message="Plan length must be a whole number of minutes"
    )
    if isinstance(minutes, bool):
        return whole_number
    if isinstance(minutes, float) and not minutes.is_integer():
        return whole_number  # also NaN and infinity

    try:
        value = int(minutes)
    except (TypeError, ValueError, OverflowError):
        return whole_number
    if value < 1:
        return ValidationResult(
            is_valid=False,
            error_message="Plan length must be at least 1 minute"
        )
    if value > MAX_PLAN_MINUTES:
        return ValidationResult(
            is_valid=False,
            error_message=f"Plan length must be at most {MAX_PLAN_MINUTES} minutes"
        )
    return ValidationResult(is_valid=True)


def validate_step_fields(data: dict) -> ValidationResult:
    """
    Validate the editable fields of a step.

    Durations are not checked here: the timer falls back to a default
    for anything it cannot read.
    """
    for field in STEP_TEXT_FIELDS:
        if field in data and not isinstance(data[field], (str, int)):
            return ValidationResult(
                is_valid=False,
                error_message=f"Step {field} must be text"
            )

    activity = data.get("type", ActivityType.PRACTICE.value)
    if not isinstance(activity, str) or activity not in ACTIVITY_TYPES:
        return ValidationResult(
            is_valid=False,
            error_message=f"Step type must be one of: {', '.join(sorted(ACTIVITY_TYPES))}"
        )

    return ValidationResult(is_valid=True)
