"""Time tracking for Weekwise.

At most one tracking entry runs at a time (it has no end time and is
pointed to by AppState.current_tracking_entry_id). Stopping an entry
credits its rounded duration to the linked goal.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from weekwise.defaults import new_id, timestamp
from weekwise.models import TRACKING_SOURCES, AppState, TrackingEntry
from weekwise.store import find_activity_type, find_goal, log_minutes_to_goal
from weekwise.timeutil import parse_timestamp

logger = logging.getLogger(__name__)


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now().astimezone()


def _rounded_minutes(start: datetime, end: datetime) -> int:
    return math.floor((end - start).total_seconds() / 60 + 0.5)


def find_entry(state: AppState, entry_id: str) -> TrackingEntry | None:
    for e in state.tracking_entries:
        if e.id == entry_id:
            return e
    return None


def get_current_entry(state: AppState) -> TrackingEntry | None:
    """The running entry, or None when nothing is being tracked."""
    if not state.current_tracking_entry_id:
        return None
    entry = find_entry(state, state.current_tracking_entry_id)
    if entry is None or entry.end_time is not None:
        return None
    return entry


def _reference_errors(state: AppState, activity_type_id: str, goal_id: str | None, source: str) -> list[str]:
    errors = []
    if not activity_type_id:
        errors.append("Activity type is required")
    elif find_activity_type(state, activity_type_id) is None:
        errors.append(f"Unknown activity type: {activity_type_id}")
    if goal_id and find_goal(state, goal_id) is None:
        errors.append(f"Unknown goal: {goal_id}")
    if source not in TRACKING_SOURCES:
        errors.append(f"Invalid source: {source}")
    return errors


def _time_errors(entry: TrackingEntry) -> tuple[datetime | None, list[str]]:
    """Parse and order-check an entry's timestamps. Returns (start, errors)."""
    errors = []
    start = end = None
    try:
        start = parse_timestamp(entry.start_time)
    except ValueError:
        errors.append("Start time must be an ISO 8601 timestamp")
    if entry.end_time is not None:
        try:
            end = parse_timestamp(entry.end_time)
        except ValueError:
            errors.append("End time must be an ISO 8601 timestamp")
    if start is not None and end is not None:
        try:
            if end < start:
                errors.append("End time must be after start time")
        except TypeError:
            errors.append("Start and end time must both carry a timezone, or neither")
    return start, errors


def start_tracking(
    state: AppState,
    activity_type_id: str,
    goal_id: str | None = None,
    routine_block_id: str | None = None,
    source: str = "manual",
    notes: str | None = None,
    now: datetime | None = None,
) -> tuple[TrackingEntry | None, list[str]]:
    """Start a new entry, stopping whichever entry was running first."""
    errors = _reference_errors(state, activity_type_id, goal_id, source)
    if errors:
        return None, errors

    now = _now(now)
    if state.current_tracking_entry_id:
        stop_tracking(state, now=now)

    stamp = timestamp(now)
    entry = TrackingEntry(
        id=new_id(),
        date=now.date().isoformat(),
        start_time=stamp,
        end_time=None,
        activity_type_id=activity_type_id,
        goal_id=goal_id or None,
        routine_block_id=routine_block_id or None,
        source=source,
        notes=notes or None,
        created_at=stamp,
        updated_at=stamp,
    )
    state.tracking_entries.append(entry)
    state.current_tracking_entry_id = entry.id
    logger.info("Started tracking %s (entry %s)", activity_type_id, entry.id)
    return entry, []


def stop_tracking(
    state: AppState,
    entry_id: str | None = None,
    now: datetime | None = None,
) -> TrackingEntry | None:
    """Stop an entry (the current one by default).

    Returns None when there is nothing running to stop.
    """
    entry_id = entry_id or state.current_tracking_entry_id
    if not entry_id:
        return None
    entry = find_entry(state, entry_id)
    if entry is None or entry.end_time is not None:
        return None

    now = _now(now)
    stamp = timestamp(now)
    entry.end_time = stamp
    entry.updated_at = stamp
    if state.current_tracking_entry_id == entry_id:
        state.current_tracking_entry_id = None

    duration = _rounded_minutes(parse_timestamp(entry.start_time), parse_timestamp(stamp))
    logger.info("Stopped tracking entry %s after %d min", entry.id, duration)
    if entry.goal_id and duration > 0:
        log_minutes_to_goal(state, entry.goal_id, duration, now)
    return entry


def add_completed_entry(
    state: AppState, data: dict[str, Any], now: datetime | None = None
) -> tuple[TrackingEntry | None, list[str]]:
    """Record time after the fact. The entry's date defaults to its start date."""
    entry = TrackingEntry.from_dict(data)
    errors = _reference_errors(state, entry.activity_type_id, entry.goal_id, entry.source)
    start, time_errors = _time_errors(entry)
    errors.extend(time_errors)
    if entry.end_time is None:
        errors.append("End time is required for a completed entry")
    if errors:
        return None, errors

    stamp = timestamp(now)
    entry.id = new_id()
    entry.date = entry.date or start.date().isoformat()
    entry.created_at = stamp
    entry.updated_at = stamp
    state.tracking_entries.append(entry)

    duration = _rounded_minutes(start, parse_timestamp(entry.end_time))
    if entry.goal_id and duration > 0:
        log_minutes_to_goal(state, entry.goal_id, duration, now)
    return entry, []


def update_tracking_entry(
    state: AppState, entry_id: str, updates: dict[str, Any], now: datetime | None = None
) -> tuple[TrackingEntry | None, list[str]]:
    """Edit an entry's fields. Goal minutes already logged are left as they are.

    A stopped entry cannot be reopened by clearing its end time.
    """
    entry = find_entry(state, entry_id)
    if entry is None:
        return None, [f"Entry not found: {entry_id}"]

    merged = entry.to_dict()
    merged.update(updates)
    updated = TrackingEntry.from_dict(merged)
    errors = _reference_errors(state, updated.activity_type_id, updated.goal_id, updated.source)
    errors.extend(_time_errors(updated)[1])
    if entry.end_time is not None and updated.end_time is None:
        errors.append("A stopped entry cannot be reopened")
    if errors:
        return None, errors

    updated.id = entry.id
    updated.created_at = entry.created_at
    updated.updated_at = timestamp(now)
    for i, e in enumerate(state.tracking_entries):
        if e.id == entry_id:
            state.tracking_entries[i] = updated
            break
    if updated.end_time is not None and state.current_tracking_entry_id == entry_id:
        state.current_tracking_entry_id = None
    return updated, []


def delete_tracking_entry(state: AppState, entry_id: str) -> bool:
    before = len(state.tracking_entries)
    state.tracking_entries = [e for e in state.tracking_entries if e.id != entry_id]
    if state.current_tracking_entry_id == entry_id:
        state.current_tracking_entry_id = None
    return len(state.tracking_entries) < before
