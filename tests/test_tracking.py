"""Tests for weekwise/tracking.py — start/stop and manual entries."""

from datetime import datetime, timedelta, timezone

from weekwise.analytics import get_tracked_breakdown
from weekwise.store import find_goal
from weekwise.tracking import (
    find_entry,
    get_current_entry,
    start_tracking,
    stop_tracking,
    add_completed_entry,
    update_tracking_entry,
    delete_tracking_entry,
)

START = datetime(2026, 2, 11, 9, 0, tzinfo=timezone.utc)


def test_start_tracking(state):
    entry, errors = start_tracking(state, "at-work", routine_block_id="b-mon-work", now=START)
    assert errors == []
    assert entry.date == "2026-02-11"
    assert entry.start_time == "2026-02-11T09:00:00+00:00"
    assert entry.end_time is None
    assert entry.source == "manual"
    assert state.current_tracking_entry_id == entry.id
    assert get_current_entry(state) is entry


def test_start_tracking_errors(state):
    entry, errors = start_tracking(state, "nope", goal_id="gone", source="telepathy", now=START)
    assert entry is None
    assert errors == ["Unknown activity type: nope", "Unknown goal: gone", "Invalid source: telepathy"]
    assert state.current_tracking_entry_id is None


def test_start_tracking_requires_activity(state):
    _, errors = start_tracking(state, "", now=START)
    assert errors == ["Activity type is required"]


def test_start_stops_running_entry(state):
    first, _ = start_tracking(state, "at-work", now=START)
    second, _ = start_tracking(state, "at-read", now=START + timedelta(minutes=30))
    assert first.end_time == "2026-02-11T09:30:00+00:00"
    assert state.current_tracking_entry_id == second.id
    assert [e for e in state.tracking_entries if e.end_time is None] == [second]


def test_stop_tracking_logs_to_goal(state):
    start_tracking(state, "at-fit", goal_id="g-fit", now=START)
    entry = stop_tracking(state, now=START + timedelta(minutes=60))
    assert entry.end_time == "2026-02-11T10:00:00+00:00"
    assert state.current_tracking_entry_id is None
    assert get_current_entry(state) is None
    assert find_goal(state, "g-fit").logged_minutes == 180


def test_stop_tracking_rounds_minutes(state):
    start_tracking(state, "at-fit", goal_id="g-fit", now=START)
    stop_tracking(state, now=START + timedelta(seconds=20))
    assert find_goal(state, "g-fit").logged_minutes == 120

    start_tracking(state, "at-fit", goal_id="g-fit", now=START)
    stop_tracking(state, now=START + timedelta(seconds=40))
    assert find_goal(state, "g-fit").logged_minutes == 121


def test_stop_tracking_completes_goal(state):
    start_tracking(state, "at-fit", goal_id="g-fit", now=START)
    stop_tracking(state, now=START + timedelta(hours=8))
    goal = find_goal(state, "g-fit")
    assert goal.logged_minutes == 600
    assert goal.status == "completed"


def test_stop_tracking_nothing_running(state):
    assert stop_tracking(state, now=START) is None
    assert stop_tracking(state, "e-work", now=START) is None


def test_add_completed_entry(state):
    entry, errors = add_completed_entry(state, {
        "startTime": "2026-02-12T18:00:00Z",
        "endTime": "2026-02-12T18:30:00Z",
        "activityTypeId": "at-read",
        "goalId": "g-read",
        "notes": "chapter 3",
    })
    assert errors == []
    assert entry.date == "2026-02-12"
    assert find_entry(state, entry.id) is entry
    assert find_goal(state, "g-read").logged_minutes == 30
    assert state.current_tracking_entry_id is None


def test_add_completed_entry_keeps_explicit_date(state):
    entry, _ = add_completed_entry(state, {
        "date": "2026-02-11",
        "startTime": "2026-02-12T00:10:00+00:00",
        "endTime": "2026-02-12T00:40:00+00:00",
        "activityTypeId": "at-read",
    })
    assert entry.date == "2026-02-11"


def test_add_completed_entry_errors(state):
    _, errors = add_completed_entry(state, {
        "startTime": "2026-02-12T18:00:00+00:00",
        "endTime": "2026-02-12T17:00:00+00:00",
        "activityTypeId": "at-read",
    })
    assert errors == ["End time must be after start time"]

    _, errors = add_completed_entry(state, {"startTime": "yesterday", "activityTypeId": "at-read"})
    assert errors == [
        "Start time must be an ISO 8601 timestamp",
        "End time is required for a completed entry",
    ]


def test_add_completed_entry_mixed_timezones(state):
    _, errors = add_completed_entry(state, {
        "startTime": "2026-02-12T18:00:00",
        "endTime": "2026-02-12T19:00:00+00:00",
        "activityTypeId": "at-read",
    })
    assert errors == ["Start and end time must both carry a timezone, or neither"]


def test_update_tracking_entry(state):
    entry, errors = update_tracking_entry(state, "e-work", {"notes": "standup ran long"})
    assert errors == []
    assert entry.notes == "standup ran long"
    assert entry.id == "e-work"
    assert find_entry(state, "e-work").notes == "standup ran long"


def test_update_tracking_entry_closing_running_entry(state):
    running, _ = start_tracking(state, "at-work", now=START)
    update_tracking_entry(state, running.id, {"endTime": "2026-02-11T09:45:00+00:00"})
    assert state.current_tracking_entry_id is None


def test_update_tracking_entry_errors(state):
    _, errors = update_tracking_entry(state, "missing", {})
    assert errors == ["Entry not found: missing"]
    _, errors = update_tracking_entry(state, "e-work", {"activityTypeId": "nope"})
    assert errors == ["Unknown activity type: nope"]


def test_update_tracking_entry_rejects_bad_timestamps(state):
    _, errors = update_tracking_entry(state, "e-work", {"startTime": "not a time"})
    assert errors == ["Start time must be an ISO 8601 timestamp"]
    _, errors = update_tracking_entry(state, "e-work", {"endTime": "2026-02-09T05:00:00+00:00"})
    assert errors == ["End time must be after start time"]
    _, errors = update_tracking_entry(state, "e-work", {"startTime": "2026-02-09T09:00:00"})
    assert errors == ["Start and end time must both carry a timezone, or neither"]

    # the stored entry is untouched, so the week still aggregates
    assert find_entry(state, "e-work").start_time == "2026-02-09T09:00:00+00:00"
    rows = get_tracked_breakdown(state.tracking_entries, "2026-02-09", state.activity_types)
    assert any(r.activity_type_id == "at-work" and r.actual_minutes == 120 for r in rows)


def test_update_tracking_entry_cannot_reopen(state):
    running, _ = start_tracking(state, "at-read", now=START)
    _, errors = update_tracking_entry(state, "e-work", {"endTime": None})
    assert errors == ["A stopped entry cannot be reopened"]
    assert find_entry(state, "e-work").end_time == "2026-02-09T11:00:00+00:00"
    assert [e.id for e in state.tracking_entries if e.end_time is None] == [running.id]
    assert state.current_tracking_entry_id == running.id


def test_delete_tracking_entry(state):
    running, _ = start_tracking(state, "at-work", now=START)
    assert delete_tracking_entry(state, running.id) is True
    assert state.current_tracking_entry_id is None
    assert delete_tracking_entry(state, running.id) is False
