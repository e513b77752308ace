"""State store for Weekwise: CRUD over activity types, goals and routines.

Every action mutates an AppState snapshot in place. Callers load the
snapshot, apply actions, then save it back:

    state = load_state(root)
    goal, errors = add_goal(state, {...})
    save_state(state, root)

Actions that validate their input return (obj, errors); an empty error
list means the change was applied.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any

from weekwise.defaults import create_default_activity_types, new_id, timestamp
from weekwise.fileio import WorkspaceFileError, backup_path, read_json, write_json_atomic
from weekwise.models import (
    GOAL_STATUSES,
    ActivityType,
    AppState,
    BlockDraft,
    Goal,
    GoalDraft,
    Routine,
    RoutineBlock,
)
from weekwise.validation import find_overlapping_blocks, validate_goal, validate_routine_block
from weekwise.workspace import state_path

logger = logging.getLogger(__name__)

DEFAULT_ROUTINE_NAME = "My Week"


# ── Lookups ───────────────────────────────────────────────────


def find_activity_type(state: AppState, activity_type_id: str) -> ActivityType | None:
    for at in state.activity_types:
        if at.id == activity_type_id:
            return at
    return None


def find_goal(state: AppState, goal_id: str) -> Goal | None:
    for g in state.goals:
        if g.id == goal_id:
            return g
    return None


def find_routine(state: AppState, routine_id: str) -> Routine | None:
    for r in state.routines:
        if r.id == routine_id:
            return r
    return None


def find_block(routine: Routine, block_id: str) -> RoutineBlock | None:
    for b in routine.blocks:
        if b.id == block_id:
            return b
    return None


def get_active_routine(state: AppState) -> Routine | None:
    if state.active_routine_id:
        routine = find_routine(state, state.active_routine_id)
        if routine is not None:
            return routine
    for r in state.routines:
        if r.is_active:
            return r
    return None


# ── Activity types ────────────────────────────────────────────


def add_activity_type(
    state: AppState, data: dict[str, Any], now: datetime | None = None
) -> tuple[ActivityType | None, list[str]]:
    """Create a user-defined activity type. Returns (activity_type, errors)."""
    name = str(data.get("name") or "").strip()
    if not name:
        return None, ["Activity type name is required"]

    stamp = timestamp(now)
    at = ActivityType.from_dict(data)
    at.id = new_id()
    at.name = name
    at.is_default = False
    if "sortOrder" not in data:
        at.sort_order = max((a.sort_order for a in state.activity_types), default=-1) + 1
    at.created_at = stamp
    at.updated_at = stamp
    state.activity_types.append(at)
    return at, []


def update_activity_type(
    state: AppState, activity_type_id: str, updates: dict[str, Any], now: datetime | None = None
) -> tuple[ActivityType | None, list[str]]:
    """Update display fields of an activity type. Identity is never changed."""
    at = find_activity_type(state, activity_type_id)
    if at is None:
        return None, [f"Activity type not found: {activity_type_id}"]

    merged = at.to_dict()
    merged.update(updates)
    updated = ActivityType.from_dict(merged)
    if not updated.name.strip():
        return None, ["Activity type name is required"]

    updated.id = at.id
    updated.is_default = at.is_default
    updated.created_at = at.created_at
    updated.updated_at = timestamp(now)
    for i, a in enumerate(state.activity_types):
        if a.id == activity_type_id:
            state.activity_types[i] = updated
            break
    return updated, []


def activity_type_in_use(state: AppState, activity_type_id: str) -> bool:
    if any(g.activity_type_id == activity_type_id for g in state.goals):
        return True
    if any(b.activity_type_id == activity_type_id for r in state.routines for b in r.blocks):
        return True
    return any(e.activity_type_id == activity_type_id for e in state.tracking_entries)


def delete_activity_type(state: AppState, activity_type_id: str) -> bool:
    """Delete an unreferenced activity type. Returns False if missing or in use."""
    if activity_type_in_use(state, activity_type_id):
        logger.warning("Cannot delete activity type %s: it is in use", activity_type_id)
        return False
    before = len(state.activity_types)
    state.activity_types = [a for a in state.activity_types if a.id != activity_type_id]
    return len(state.activity_types) < before


def reorder_activity_types(state: AppState, ids: list[str], now: datetime | None = None) -> None:
    """Apply the order given by *ids*; types not listed go last in their old order."""
    position = {at_id: i for i, at_id in enumerate(ids)}
    stamp = timestamp(now)
    ordered = sorted(
        state.activity_types,
        key=lambda a: (a.id not in position, position.get(a.id, a.sort_order)),
    )
    for i, at in enumerate(ordered):
        at.sort_order = i
        at.updated_at = stamp
    state.activity_types = ordered


# ── Goals ─────────────────────────────────────────────────────


def _goal_errors(state: AppState, goal: Goal | GoalDraft) -> list[str]:
    errors = validate_goal(goal).messages
    if goal.activity_type_id and find_activity_type(state, goal.activity_type_id) is None:
        errors.append(f"Unknown activity type: {goal.activity_type_id}")
    if goal.priority is not None and not 1 <= goal.priority <= 5:
        errors.append("Priority must be between 1 and 5")
    return errors


def add_goal(
    state: AppState, data: dict[str, Any], now: datetime | None = None
) -> tuple[Goal | None, list[str]]:
    """Create an active goal with nothing logged. Returns (goal, errors)."""
    try:
        draft = GoalDraft.from_dict(data)
    except (TypeError, ValueError):
        return None, ["Estimated time must be a number of minutes"]

    errors = _goal_errors(state, draft)
    if errors:
        return None, errors

    stamp = timestamp(now)
    goal = Goal(
        id=new_id(),
        name=(draft.name or "").strip(),
        description=draft.description or "",
        estimated_minutes=draft.estimated_minutes or 0,
        logged_minutes=0,
        activity_type_id=draft.activity_type_id or "",
        status="active",
        priority=draft.priority or 3,
        created_at=stamp,
        updated_at=stamp,
    )
    state.goals.append(goal)
    return goal, []


def update_goal(
    state: AppState, goal_id: str, updates: dict[str, Any], now: datetime | None = None
) -> tuple[Goal | None, list[str]]:
    """Update a goal by ID. Returns (updated_goal, errors)."""
    goal = find_goal(state, goal_id)
    if goal is None:
        return None, [f"Goal not found: {goal_id}"]

    merged = goal.to_dict()
    merged.update(updates)
    try:
        updated = Goal.from_dict(merged)
    except (TypeError, ValueError):
        return None, ["Estimated and logged time must be numbers of minutes"]

    errors = _goal_errors(state, updated)
    if updated.status not in GOAL_STATUSES:
        errors.append(f"Invalid status: {updated.status}")
    if errors:
        return None, errors

    updated.id = goal.id
    updated.created_at = goal.created_at
    updated.updated_at = timestamp(now)
    for i, g in enumerate(state.goals):
        if g.id == goal_id:
            state.goals[i] = updated
            break
    return updated, []


def delete_goal(state: AppState, goal_id: str) -> bool:
    """Delete a goal; blocks that pointed at it keep existing without a goal."""
    before = len(state.goals)
    state.goals = [g for g in state.goals if g.id != goal_id]
    if len(state.goals) == before:
        return False
    for routine in state.routines:
        for block in routine.blocks:
            if block.goal_id == goal_id:
                block.goal_id = None
    return True


def log_minutes_to_goal(
    state: AppState, goal_id: str, minutes: float, now: datetime | None = None
) -> Goal | None:
    """Add tracked minutes to a goal, completing it once the estimate is reached."""
    goal = find_goal(state, goal_id)
    if goal is None:
        return None

    stamp = timestamp(now)
    goal.logged_minutes += minutes
    goal.updated_at = stamp
    if goal.logged_minutes >= goal.estimated_minutes and goal.status != "completed":
        goal.status = "completed"
        goal.completed_at = stamp
        logger.info("Goal %s (%s) completed", goal.id, goal.name)
    return goal


def set_goal_status(
    state: AppState, goal_id: str, status: str, now: datetime | None = None
) -> tuple[Goal | None, list[str]]:
    if status not in GOAL_STATUSES:
        return None, [f"Invalid status: {status}"]
    goal = find_goal(state, goal_id)
    if goal is None:
        return None, [f"Goal not found: {goal_id}"]

    stamp = timestamp(now)
    goal.status = status
    if status == "completed":
        goal.completed_at = stamp
    goal.updated_at = stamp
    return goal, []


# ── Routines ──────────────────────────────────────────────────


def add_routine(
    state: AppState, name: str, now: datetime | None = None
) -> tuple[Routine | None, list[str]]:
    name = (name or "").strip()
    if not name:
        return None, ["Routine name is required"]
    stamp = timestamp(now)
    routine = Routine(id=new_id(), name=name, is_active=False, created_at=stamp, updated_at=stamp)
    state.routines.append(routine)
    return routine, []


def rename_routine(
    state: AppState, routine_id: str, name: str, now: datetime | None = None
) -> tuple[Routine | None, list[str]]:
    routine = find_routine(state, routine_id)
    if routine is None:
        return None, [f"Routine not found: {routine_id}"]
    name = (name or "").strip()
    if not name:
        return None, ["Routine name is required"]
    routine.name = name
    routine.updated_at = timestamp(now)
    return routine, []


def delete_routine(state: AppState, routine_id: str) -> bool:
    before = len(state.routines)
    state.routines = [r for r in state.routines if r.id != routine_id]
    if state.active_routine_id == routine_id:
        state.active_routine_id = None
    return len(state.routines) < before


def set_active_routine(state: AppState, routine_id: str | None, now: datetime | None = None) -> bool:
    """Make *routine_id* the only active routine; None deactivates all of them."""
    if routine_id is not None and find_routine(state, routine_id) is None:
        return False
    stamp = timestamp(now)
    for r in state.routines:
        r.is_active = r.id == routine_id
        r.updated_at = stamp
    state.active_routine_id = routine_id
    return True


def duplicate_routine(
    state: AppState, routine_id: str, new_name: str, now: datetime | None = None
) -> Routine | None:
    """Copy a routine and its blocks under a new name. The copy starts inactive."""
    source = find_routine(state, routine_id)
    if source is None:
        return None
    stamp = timestamp(now)
    copy = Routine(
        id=new_id(),
        name=new_name,
        is_active=False,
        blocks=[
            RoutineBlock.from_dict({**b.to_dict(), "id": new_id()})
            for b in source.blocks
        ],
        created_at=stamp,
        updated_at=stamp,
    )
    state.routines.append(copy)
    return copy


# ── Routine blocks ────────────────────────────────────────────


def _block_errors(state: AppState, routine: Routine, draft: BlockDraft) -> list[str]:
    errors = validate_routine_block(draft).messages
    if errors:
        return errors

    if find_activity_type(state, draft.activity_type_id or "") is None:
        errors.append(f"Unknown activity type: {draft.activity_type_id}")
    if draft.goal_id and find_goal(state, draft.goal_id) is None:
        errors.append(f"Unknown goal: {draft.goal_id}")

    overlaps = find_overlapping_blocks(routine.blocks, draft.to_block())
    if overlaps:
        other = find_activity_type(state, overlaps[0].activity_type_id)
        label = other.name if other else overlaps[0].activity_type_id
        errors.append(f'Time conflict: this block overlaps with an existing "{label}" block')
    return errors


def _as_draft(data: dict[str, Any] | BlockDraft) -> BlockDraft:
    return replace(data) if isinstance(data, BlockDraft) else BlockDraft.from_dict(data)


def add_routine_block(
    state: AppState,
    routine_id: str,
    data: dict[str, Any] | BlockDraft,
    now: datetime | None = None,
) -> tuple[RoutineBlock | None, list[str]]:
    """Validate and append a block. Overlaps within the routine are rejected."""
    routine = find_routine(state, routine_id)
    if routine is None:
        return None, [f"Routine not found: {routine_id}"]
    try:
        draft = _as_draft(data)
    except (TypeError, ValueError):
        return None, ["Day and times must be whole numbers"]
    draft.id = None

    errors = _block_errors(state, routine, draft)
    if errors:
        return None, errors

    block = draft.to_block(new_id())
    routine.blocks.append(block)
    routine.updated_at = timestamp(now)
    return block, []


def update_routine_block(
    state: AppState,
    routine_id: str,
    block_id: str,
    updates: dict[str, Any],
    now: datetime | None = None,
) -> tuple[RoutineBlock | None, list[str]]:
    routine = find_routine(state, routine_id)
    if routine is None:
        return None, [f"Routine not found: {routine_id}"]
    block = find_block(routine, block_id)
    if block is None:
        return None, [f"Block not found: {block_id}"]

    merged = block.to_dict()
    merged.update(updates)
    merged["id"] = block_id
    try:
        draft = BlockDraft.from_dict(merged)
    except (TypeError, ValueError):
        return None, ["Day and times must be whole numbers"]

    errors = _block_errors(state, routine, draft)
    if errors:
        return None, errors

    updated = draft.to_block(block_id)
    for i, b in enumerate(routine.blocks):
        if b.id == block_id:
            routine.blocks[i] = updated
            break
    routine.updated_at = timestamp(now)
    return updated, []


def delete_routine_block(
    state: AppState, routine_id: str, block_id: str, now: datetime | None = None
) -> bool:
    routine = find_routine(state, routine_id)
    if routine is None:
        return False
    before = len(routine.blocks)
    routine.blocks = [b for b in routine.blocks if b.id != block_id]
    if len(routine.blocks) == before:
        return False
    routine.updated_at = timestamp(now)
    return True


def copy_day_blocks(
    state: AppState,
    routine_id: str,
    from_day: int,
    to_days: list[int],
    now: datetime | None = None,
) -> list[RoutineBlock] | None:
    """Replace the blocks on each target day with copies of *from_day*'s blocks."""
    routine = find_routine(state, routine_id)
    if routine is None:
        return None

    source = [b for b in routine.blocks if b.day_of_week == from_day]
    copies = [
        RoutineBlock.from_dict({**b.to_dict(), "id": new_id(), "dayOfWeek": day})
        for day in to_days
        for b in source
    ]
    kept = [b for b in routine.blocks if b.day_of_week not in to_days]
    routine.blocks = kept + copies
    routine.updated_at = timestamp(now)
    return copies


# ── Lifecycle & persistence ───────────────────────────────────


def create_initial_state(now: datetime | None = None) -> AppState:
    return AppState(activity_types=create_default_activity_types(now))


def initialize_defaults(state: AppState, now: datetime | None = None) -> None:
    """Seed default activity types and an active routine when none exist."""
    if not state.activity_types:
        state.activity_types = create_default_activity_types(now)
    if not state.routines:
        stamp = timestamp(now)
        routine = Routine(
            id=new_id(),
            name=DEFAULT_ROUTINE_NAME,
            is_active=True,
            created_at=stamp,
            updated_at=stamp,
        )
        state.routines = [routine]
        state.active_routine_id = routine.id


def reset_state(state: AppState, now: datetime | None = None) -> None:
    """Discard everything in *state* and start over with the defaults."""
    fresh = create_initial_state(now)
    initialize_defaults(fresh, now)
    for f in fields(AppState):
        setattr(state, f.name, getattr(fresh, f.name))
    logger.info("State reset to defaults")


def load_state(root: Path | None = None) -> AppState:
    """Load state.json, seeding defaults for a fresh workspace.

    An undecodable state.json falls back to the copy kept by the last save;
    without a usable copy the WorkspaceFileError propagates.
    """
    path = state_path(root)
    try:
        data = read_json(path)
    except WorkspaceFileError as exc:
        if not backup_path(path).exists():
            raise
        logger.error("Could not read %s (%s), using %s", path, exc.reason, backup_path(path).name)
        data = read_json(backup_path(path))
    if not data:
        logger.info("No saved state found, starting with defaults")
        state = create_initial_state()
        initialize_defaults(state)
        return state
    return AppState.from_dict(data)


def save_state(state: AppState, root: Path | None = None) -> None:
    """Write the whole snapshot back to state.json atomically, keeping the previous one."""
    state.last_synced_at = timestamp()
    write_json_atomic(state_path(root), state.to_dict(), backup=True)
    logger.debug("Saved state to %s", state_path(root))
