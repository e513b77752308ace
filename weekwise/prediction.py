"""Goal completion forecasting.

Projects each goal's remaining minutes forward at the weekly rate the
routine allocates to the goal's activity type.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from weekwise.models import CONFIDENCE_LEVELS, Goal, PredictionResult, Routine, TrackingEntry

HIGH_CONFIDENCE_ENTRIES = 14
MEDIUM_CONFIDENCE_ENTRIES = 7

LOW, MEDIUM, HIGH = CONFIDENCE_LEVELS


def get_weekly_minutes_for_activity_type(routine: Routine, activity_type_id: str) -> int:
    """Minutes per week the routine assigns to an activity type."""
    return sum(
        block.duration_minutes()
        for block in routine.blocks
        if block.activity_type_id == activity_type_id
    )


def _confidence(goal: Goal, tracking_history: list[TrackingEntry] | None) -> str:
    # Sample size only: variance and recency of the history are not considered.
    if not tracking_history:
        return LOW
    relevant = sum(1 for e in tracking_history if e.activity_type_id == goal.activity_type_id)
    if relevant >= HIGH_CONFIDENCE_ENTRIES:
        return HIGH
    if relevant >= MEDIUM_CONFIDENCE_ENTRIES:
        return MEDIUM
    return LOW


def predict_goal_completion(
    goal: Goal,
    routine: Routine,
    tracking_history: list[TrackingEntry] | None = None,
    today: date | None = None,
) -> PredictionResult:
    """Predict when *goal* completes if the routine is followed from *today*."""
    if today is None:
        today = date.today()

    weekly_minutes = get_weekly_minutes_for_activity_type(routine, goal.activity_type_id)
    remaining = goal.estimated_minutes - goal.logged_minutes

    if weekly_minutes == 0 or remaining <= 0:
        done = remaining <= 0
        return PredictionResult(
            goal_id=goal.id,
            predicted_completion_date=today.isoformat() if done else None,
            weekly_minutes_allocated=weekly_minutes,
            remaining_minutes=max(0, remaining),
            weeks_remaining=0 if done else None,
            confidence_level=LOW,
        )

    weeks_remaining = remaining / weekly_minutes
    days_remaining = math.ceil(weeks_remaining * 7)

    return PredictionResult(
        goal_id=goal.id,
        predicted_completion_date=(today + timedelta(days=days_remaining)).isoformat(),
        weekly_minutes_allocated=weekly_minutes,
        remaining_minutes=remaining,
        weeks_remaining=weeks_remaining,
        confidence_level=_confidence(goal, tracking_history),
    )


def predict_all_goals(
    goals: list[Goal],
    routine: Routine,
    tracking_history: list[TrackingEntry] | None = None,
    today: date | None = None,
) -> list[PredictionResult]:
    """Predictions for active goals; paused, completed and archived goals are skipped."""
    return [
        predict_goal_completion(goal, routine, tracking_history, today)
        for goal in goals
        if goal.status == "active"
    ]
