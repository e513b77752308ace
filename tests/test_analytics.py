"""Tests for weekwise/analytics.py — week boundaries and planned vs. tracked."""

from datetime import date

from weekwise.analytics import (
    MINUTES_IN_WEEK,
    get_week_start,
    get_routine_breakdown,
    get_tracked_breakdown,
    get_weekly_analytics,
)
from weekwise.models import ActivityType, Routine, RoutineBlock, TrackingEntry


def test_minutes_in_week():
    assert MINUTES_IN_WEEK == 10080


def test_get_week_start():
    # 2026-02-08 is a Sunday
    assert get_week_start(date(2026, 2, 8)) == date(2026, 2, 8)
    assert get_week_start(date(2026, 2, 11)) == date(2026, 2, 8)
    assert get_week_start(date(2026, 2, 14)) == date(2026, 2, 8)
    assert get_week_start(date(2026, 2, 15)) == date(2026, 2, 15)


def test_routine_breakdown(state):
    rows = get_routine_breakdown(state.routines[0], state.activity_types)
    assert [r.activity_type_id for r in rows] == ["at-work", "at-read", "at-fit"]
    assert [r.planned_minutes for r in rows] == [960, 120, 60]
    assert rows[0].actual_minutes == 0
    assert abs(rows[0].percentage_of_week - 960 / 10080 * 100) < 1e-9


def test_routine_breakdown_drops_empty_types(state):
    rows = get_routine_breakdown(state.routines[0], state.activity_types)
    assert "at-idle" not in [r.activity_type_id for r in rows]


def test_routine_breakdown_ignores_unknown_types():
    routine = Routine(blocks=[RoutineBlock(day_of_week=0, start_minutes=0, end_minutes=60, activity_type_id="ghost")])
    assert get_routine_breakdown(routine, [ActivityType(id="a", name="A")]) == []


def test_tracked_breakdown_for_week(state):
    rows = get_tracked_breakdown(state.tracking_entries, "2026-02-08", state.activity_types)
    assert [(r.activity_type_id, r.actual_minutes) for r in rows] == [("at-work", 120), ("at-fit", 45)]
    assert all(r.planned_minutes == 0 for r in rows)


def test_tracked_breakdown_previous_week(state):
    rows = get_tracked_breakdown(state.tracking_entries, date(2026, 2, 1), state.activity_types)
    assert [(r.activity_type_id, r.actual_minutes) for r in rows] == [("at-work", 60)]


def test_tracked_breakdown_skips_running_entries():
    types = [ActivityType(id="a", name="A")]
    entries = [TrackingEntry(id="e", date="2026-02-09", start_time="2026-02-09T09:00:00+00:00", activity_type_id="a")]
    assert get_tracked_breakdown(entries, date(2026, 2, 8), types) == []


def test_tracked_breakdown_week_end_exclusive():
    types = [ActivityType(id="a", name="A")]
    entries = [TrackingEntry(
        id="e", date="2026-02-15", activity_type_id="a",
        start_time="2026-02-15T09:00:00+00:00", end_time="2026-02-15T10:00:00+00:00",
    )]
    assert get_tracked_breakdown(entries, date(2026, 2, 8), types) == []


def test_weekly_analytics(state):
    analytics = get_weekly_analytics(state.routines[0], state.tracking_entries, date(2026, 2, 8), state.activity_types)
    assert analytics.week_start == "2026-02-08"
    assert [r.activity_type_id for r in analytics.breakdown] == ["at-work", "at-read", "at-fit"]
    work = analytics.breakdown[0]
    assert (work.planned_minutes, work.actual_minutes) == (960, 120)
    fit = analytics.breakdown[2]
    assert (fit.planned_minutes, fit.actual_minutes) == (60, 45)
    assert analytics.total_planned_minutes == 1140
    assert analytics.total_tracked_minutes == 165
    assert analytics.unallocated_minutes == 10080 - 1140


def test_weekly_analytics_tracked_only_row():
    types = [ActivityType(id="a", name="A"), ActivityType(id="b", name="B")]
    routine = Routine(blocks=[RoutineBlock(day_of_week=1, start_minutes=0, end_minutes=30, activity_type_id="a")])
    entries = [TrackingEntry(
        id="e", date="2026-02-09", activity_type_id="b",
        start_time="2026-02-09T09:00:00+00:00", end_time="2026-02-09T10:00:00+00:00",
    )]
    analytics = get_weekly_analytics(routine, entries, "2026-02-08", types)
    assert [r.activity_type_id for r in analytics.breakdown] == ["b", "a"]
    tracked_only = analytics.breakdown[0]
    assert tracked_only.planned_minutes == 0
    assert tracked_only.percentage_of_week == 0.0


def test_weekly_analytics_without_routine(state):
    analytics = get_weekly_analytics(None, state.tracking_entries, date(2026, 2, 8), state.activity_types)
    assert analytics.total_planned_minutes == 0
    assert analytics.unallocated_minutes == MINUTES_IN_WEEK
    assert analytics.total_tracked_minutes == 165


def test_weekly_analytics_to_dict(state):
    d = get_weekly_analytics(state.routines[0], [], date(2026, 2, 8), state.activity_types).to_dict()
    assert d["weekStart"] == "2026-02-08"
    assert d["breakdown"][0]["activityTypeName"] == "Work"
    assert d["totalTrackedMinutes"] == 0


def test_routine_breakdown_sums_blocks():
    types = [ActivityType(id="a1", name="A")]
    routine = Routine(blocks=[
        RoutineBlock(id="x", day_of_week=1, start_minutes=540, end_minutes=600, activity_type_id="a1"),
        RoutineBlock(id="y", day_of_week=3, start_minutes=600, end_minutes=690, activity_type_id="a1"),
    ])
    rows = get_routine_breakdown(routine, types)
    assert rows[0].planned_minutes == 150
    assert rows[0].percentage_of_week == 150 / 10080 * 100
