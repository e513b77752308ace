"""Structural validation for routine blocks and goals.

Validators never raise: every applicable check runs and each failure is
collected into the returned ValidationResult.
"""

from __future__ import annotations

from weekwise.models import (
    BlockDraft,
    Goal,
    GoalDraft,
    RoutineBlock,
    ValidationError,
    ValidationResult,
)
from weekwise.timeutil import MINUTES_IN_DAY


def _minute_in_range(value: int | None) -> bool:
    return value is not None and 0 <= value < MINUTES_IN_DAY


def validate_routine_block(block: BlockDraft | RoutineBlock) -> ValidationResult:
    """Check time bounds, non-zero duration, day of week and activity type."""
    errors: list[ValidationError] = []

    if not _minute_in_range(block.start_minutes):
        errors.append(ValidationError("startMinutes", "Start time must be between 0 and 1439 minutes"))

    if not _minute_in_range(block.end_minutes):
        errors.append(ValidationError("endMinutes", "End time must be between 0 and 1439 minutes"))

    if block.start_minutes is not None and block.end_minutes is not None:
        if block.start_minutes == block.end_minutes:
            errors.append(ValidationError("endMinutes", "Block must have a duration greater than 0"))

    if block.day_of_week is None or not 0 <= block.day_of_week <= 6:
        errors.append(
            ValidationError("dayOfWeek", "Day of week must be between 0 (Sunday) and 6 (Saturday)")
        )

    if not block.activity_type_id:
        errors.append(ValidationError("activityTypeId", "Activity type is required"))

    return ValidationResult(is_valid=not errors, errors=errors)


def find_overlapping_blocks(
    blocks: list[RoutineBlock],
    candidate: RoutineBlock,
) -> list[RoutineBlock]:
    """Return blocks on the candidate's day whose [start, end) meets the candidate's.

    A block sharing the candidate's id is skipped so an edited block does not
    conflict with its own previous version. Start and end are compared as
    stored: a block wrapping past midnight is not split into two intervals.
    """
    overlapping = []
    for existing in blocks:
        if candidate.id and existing.id == candidate.id:
            continue
        if existing.day_of_week != candidate.day_of_week:
            continue
        if not (
            candidate.end_minutes <= existing.start_minutes
            or candidate.start_minutes >= existing.end_minutes
        ):
            overlapping.append(existing)
    return overlapping


def validate_goal(goal: GoalDraft | Goal) -> ValidationResult:
    """Check name, positive estimate and activity type."""
    errors: list[ValidationError] = []

    if not goal.name or not goal.name.strip():
        errors.append(ValidationError("name", "Goal name is required"))

    if goal.estimated_minutes is None or goal.estimated_minutes <= 0:
        errors.append(ValidationError("estimatedMinutes", "Estimated time must be greater than 0"))

    if not goal.activity_type_id:
        errors.append(ValidationError("activityTypeId", "Activity type is required"))

    return ValidationResult(is_valid=not errors, errors=errors)
