"""Planned-vs-tracked analytics for Weekwise.

Aggregates a routine's blocks into weekly planned minutes per activity
type, and finished tracking entries inside a week into actual minutes.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta

from weekwise.models import (
    ActivityType,
    Routine,
    TrackingEntry,
    WeeklyAnalytics,
    WeeklyBreakdown,
)
from weekwise.timeutil import parse_timestamp

MINUTES_IN_WEEK = 7 * 24 * 60  # 10080


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def get_week_start(day: date) -> date:
    """The Sunday on or before *day*."""
    # date.weekday() counts from Monday; shift so Sunday is 0
    return day - timedelta(days=(day.weekday() + 1) % 7)


# ── Breakdowns ────────────────────────────────────────────────


def get_routine_breakdown(
    routine: Routine,
    activity_types: list[ActivityType],
) -> list[WeeklyBreakdown]:
    """Planned minutes per activity type, largest first, empty types dropped."""
    minutes_by_type: dict[str, int] = defaultdict(int)
    for block in routine.blocks:
        minutes_by_type[block.activity_type_id] += block.duration_minutes()

    rows = []
    for at in activity_types:
        planned = minutes_by_type.get(at.id, 0)
        if planned <= 0:
            continue
        rows.append(WeeklyBreakdown(
            activity_type_id=at.id,
            activity_type_name=at.name,
            color=at.color,
            planned_minutes=planned,
            actual_minutes=0,
            percentage_of_week=planned / MINUTES_IN_WEEK * 100,
        ))
    rows.sort(key=lambda r: r.planned_minutes, reverse=True)
    return rows


def get_tracked_breakdown(
    tracking_entries: list[TrackingEntry],
    week_start_date: date | str,
    activity_types: list[ActivityType],
) -> list[WeeklyBreakdown]:
    """Tracked minutes per activity type for the week starting at *week_start_date*.

    Entries still in progress are ignored.
    """
    week_start = _as_date(week_start_date)
    week_end = week_start + timedelta(days=7)

    minutes_by_type: dict[str, float] = defaultdict(float)
    for entry in tracking_entries:
        if not week_start <= _as_date(entry.date) < week_end:
            continue
        if entry.end_time is None:
            continue
        elapsed = parse_timestamp(entry.end_time) - parse_timestamp(entry.start_time)
        minutes_by_type[entry.activity_type_id] += elapsed.total_seconds() / 60

    rows = []
    for at in activity_types:
        actual = minutes_by_type.get(at.id, 0.0)
        if actual <= 0:
            continue
        rows.append(WeeklyBreakdown(
            activity_type_id=at.id,
            activity_type_name=at.name,
            color=at.color,
            planned_minutes=0,
            actual_minutes=actual,
            percentage_of_week=actual / MINUTES_IN_WEEK * 100,
        ))
    rows.sort(key=lambda r: r.actual_minutes, reverse=True)
    return rows


# ── Planned vs. tracked ───────────────────────────────────────


def get_weekly_analytics(
    routine: Routine | None,
    tracking_entries: list[TrackingEntry],
    week_start_date: date | str,
    activity_types: list[ActivityType],
) -> WeeklyAnalytics:
    """Merge planned and tracked breakdowns into one row per activity type.

    Rows are ordered by planned + tracked minutes; percentage_of_week is
    taken from the planned side. Without a routine everything is unplanned.
    """
    week_start = _as_date(week_start_date)
    planned = get_routine_breakdown(routine, activity_types) if routine else []
    tracked = get_tracked_breakdown(tracking_entries, week_start, activity_types)

    merged: dict[str, WeeklyBreakdown] = {}
    for row in planned:
        merged[row.activity_type_id] = row
    for row in tracked:
        existing = merged.get(row.activity_type_id)
        if existing is not None:
            existing.actual_minutes = row.actual_minutes
        else:
            row.percentage_of_week = 0.0
            merged[row.activity_type_id] = row

    breakdown = sorted(
        merged.values(),
        key=lambda r: r.planned_minutes + r.actual_minutes,
        reverse=True,
    )
    total_planned = sum(r.planned_minutes for r in planned)
    total_tracked = sum(r.actual_minutes for r in tracked)
    return WeeklyAnalytics(
        week_start=week_start.isoformat(),
        breakdown=breakdown,
        total_planned_minutes=total_planned,
        total_tracked_minutes=total_tracked,
        unallocated_minutes=MINUTES_IN_WEEK - total_planned,
    )
