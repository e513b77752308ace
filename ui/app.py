from __future__ import annotations

import os
import secrets
from datetime import date
from typing import Any

from weekwise import (
    workspace_root as _workspace_root,
    now_local,
    load_settings,
    set_user_timezone,
    load_state,
    save_state,
    reset_state,
    get_active_routine,
    find_activity_type,
    find_goal,
    find_routine,
    add_activity_type,
    update_activity_type,
    delete_activity_type,
    reorder_activity_types,
    add_goal,
    update_goal,
    delete_goal,
    set_goal_status,
    add_routine,
    rename_routine,
    delete_routine,
    set_active_routine,
    duplicate_routine,
    add_routine_block,
    update_routine_block,
    delete_routine_block,
    copy_day_blocks,
    get_current_entry,
    start_tracking,
    stop_tracking,
    add_completed_entry,
    update_tracking_entry,
    delete_tracking_entry,
    get_week_start,
    get_weekly_analytics,
    predict_all_goals,
    format_duration,
    minutes_to_time_string,
    get_day_name,
    AppState,
)

from fastapi import FastAPI, Depends, HTTPException, status
from fastapi.responses import HTMLResponse
from fastapi import Body
from fastapi.security import HTTPBasic, HTTPBasicCredentials


# ── HTML helpers ──────────────────────────────────────────────

def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


# ── Auth ──────────────────────────────────────────────────────

app = FastAPI(title="Weekwise", version="0.1.0")

security = HTTPBasic(auto_error=False)


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("WEEKWISE_USERNAME", "")
    expected_password = os.environ.get("WEEKWISE_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Helpers ───────────────────────────────────────────────────

def _check(errors: list[str]) -> None:
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))


def _commit(state: AppState) -> None:
    save_state(state, _workspace_root())


def _parse_day(value: str | None, field: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {value}")


def _predictions(state: AppState, today: date) -> list[dict[str, Any]]:
    routine = get_active_routine(state)
    if routine is None:
        return []
    return [p.to_dict() for p in predict_all_goals(state.goals, routine, state.tracking_entries, today)]


# ── Pages ─────────────────────────────────────────────────────

@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/", response_class=HTMLResponse)
def index(username: str = Depends(get_current_user)) -> HTMLResponse:
    """Read-only overview of the current week."""
    root = _workspace_root()
    state = load_state(root)
    today = now_local(root).date()
    routine = get_active_routine(state)
    analytics = get_weekly_analytics(routine, state.tracking_entries, get_week_start(today), state.activity_types)

    rows = []
    for b in analytics.breakdown:
        rows.append(
            f'<tr><td><span class="dot" style="background:{_escape(b.color)}"></span>'
            f"{_escape(b.activity_type_name)}</td>"
            f"<td>{format_duration(b.planned_minutes)}</td>"
            f"<td>{format_duration(b.actual_minutes)}</td></tr>"
        )

    goals = []
    names = {g.id: g.name for g in state.goals}
    for p in _predictions(state, today):
        when = p["predictedCompletionDate"] or "Add routine blocks"
        goals.append(
            f"<li>{_escape(names.get(p['goalId'], p['goalId']))}: "
            f"{_escape(when)} <span class=\"muted\">({p['confidenceLevel']} confidence)</span></li>"
        )

    current = get_current_entry(state)
    tracking = '<p class="muted">Not tracking.</p>'
    if current is not None:
        at = find_activity_type(state, current.activity_type_id)
        elapsed = current.elapsed_minutes(now_local(root)) or 0
        tracking = (
            f"<p>Tracking <b>{_escape(at.name if at else current.activity_type_id)}</b> "
            f"for {format_duration(elapsed)}</p>"
        )

    title = _escape(routine.name) if routine else "No active routine"
    html = f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Weekwise</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 760px; margin: 2rem auto; }}
    .muted {{ color: #888; }}
    .dot {{ display: inline-block; width: .7em; height: .7em; border-radius: 50%; margin-right: .4em; }}
    td {{ padding: .2em 1em .2em 0; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p class="muted">Week of {analytics.week_start} &middot; signed in as {_escape(username)}</p>
  {tracking}
  <h2>Planned vs. tracked</h2>
  <table>
    <tr><th>Activity</th><th>Planned</th><th>Tracked</th></tr>
    {''.join(rows) or '<tr><td class="muted" colspan="3">(empty)</td></tr>'}
  </table>
  <p class="muted">Unallocated: {format_duration(analytics.unallocated_minutes)}</p>
  <h2>Goals</h2>
  <ul>{''.join(goals) or '<li class="muted">(no active goals)</li>'}</ul>
</body>
</html>"""
    return HTMLResponse(html)


# ── State ─────────────────────────────────────────────────────

@app.get("/api/state")
def api_get_state(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Full state dump."""
    return load_state(_workspace_root()).to_dict()


@app.post("/api/reset")
def api_reset_state(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Wipe everything back to the default activity types and an empty routine."""
    state = load_state(_workspace_root())
    reset_state(state)
    _commit(state)
    return {"ok": True, "state": state.to_dict()}


# ── Settings ──────────────────────────────────────────────────

@app.get("/api/settings")
def api_get_settings(username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    settings = load_settings(root)
    settings.setdefault("timezone", "UTC")
    return {"settings": settings}


@app.put("/api/settings")
def api_update_settings(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    name = payload.get("timezone")
    if not isinstance(name, str) or not name:
        raise HTTPException(status_code=400, detail="Missing timezone")
    root = _workspace_root()
    _check(set_user_timezone(name, root))
    return {"ok": True, "settings": load_settings(root)}


# ── Activity types ────────────────────────────────────────────

@app.get("/api/activity-types")
def api_list_activity_types(username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    ordered = sorted(state.activity_types, key=lambda a: a.sort_order)
    return {"activityTypes": [a.to_dict() for a in ordered]}


@app.post("/api/activity-types")
def api_create_activity_type(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    at, errors = add_activity_type(state, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "activityType": at.to_dict()}


@app.put("/api/activity-types/{activity_type_id}")
def api_update_activity_type(activity_type_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_activity_type(state, activity_type_id) is None:
        raise HTTPException(status_code=404, detail=f"Activity type not found: {activity_type_id}")
    at, errors = update_activity_type(state, activity_type_id, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "activityType": at.to_dict()}


@app.delete("/api/activity-types/{activity_type_id}")
def api_delete_activity_type(activity_type_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_activity_type(state, activity_type_id) is None:
        raise HTTPException(status_code=404, detail=f"Activity type not found: {activity_type_id}")
    if not delete_activity_type(state, activity_type_id):
        raise HTTPException(status_code=409, detail="Activity type is in use by a goal, block or entry")
    _commit(state)
    return {"ok": True, "activityTypeId": activity_type_id}


@app.post("/api/activity-types/reorder")
def api_reorder_activity_types(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    ids = payload.get("ids")
    if not isinstance(ids, list):
        raise HTTPException(status_code=400, detail="Missing ids")
    state = load_state(_workspace_root())
    reorder_activity_types(state, [str(i) for i in ids])
    _commit(state)
    return {"ok": True, "activityTypes": [a.to_dict() for a in state.activity_types]}


# ── Goals ─────────────────────────────────────────────────────

@app.get("/api/goals")
def api_list_goals(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Goals with progress and, for active goals, a completion forecast."""
    root = _workspace_root()
    state = load_state(root)
    predictions = {p["goalId"]: p for p in _predictions(state, now_local(root).date())}
    goals = []
    for g in state.goals:
        d = g.to_dict()
        d["progressPct"] = round(g.progress_pct(), 1)
        d["prediction"] = predictions.get(g.id)
        goals.append(d)
    return {"goals": goals}


@app.post("/api/goals")
def api_create_goal(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    goal, errors = add_goal(state, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "goal": goal.to_dict()}


@app.put("/api/goals/{goal_id}")
def api_update_goal(goal_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_goal(state, goal_id) is None:
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    goal, errors = update_goal(state, goal_id, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "goal": goal.to_dict()}


@app.post("/api/goals/{goal_id}/status")
def api_set_goal_status(goal_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_goal(state, goal_id) is None:
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    goal, errors = set_goal_status(state, goal_id, str(payload.get("status", "")))
    _check(errors)
    _commit(state)
    return {"ok": True, "goal": goal.to_dict()}


@app.delete("/api/goals/{goal_id}")
def api_delete_goal(goal_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if not delete_goal(state, goal_id):
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    _commit(state)
    return {"ok": True, "goalId": goal_id}


# ── Routines ──────────────────────────────────────────────────

@app.get("/api/routines")
def api_list_routines(username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    return {
        "routines": [r.to_dict() for r in state.routines],
        "activeRoutineId": state.active_routine_id,
    }


@app.post("/api/routines")
def api_create_routine(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    routine, errors = add_routine(state, str(payload.get("name", "")))
    _check(errors)
    if payload.get("activate"):
        set_active_routine(state, routine.id)
    _commit(state)
    return {"ok": True, "routine": routine.to_dict()}


@app.put("/api/routines/{routine_id}")
def api_rename_routine(routine_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_routine(state, routine_id) is None:
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    routine, errors = rename_routine(state, routine_id, str(payload.get("name", "")))
    _check(errors)
    _commit(state)
    return {"ok": True, "routine": routine.to_dict()}


@app.post("/api/routines/{routine_id}/activate")
def api_activate_routine(routine_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if not set_active_routine(state, routine_id):
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    _commit(state)
    return {"ok": True, "activeRoutineId": routine_id}


@app.post("/api/routines/{routine_id}/duplicate")
def api_duplicate_routine(routine_id: str, payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    source = find_routine(state, routine_id)
    if source is None:
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    name = str(payload.get("name") or f"{source.name} (copy)")
    copy = duplicate_routine(state, routine_id, name)
    _commit(state)
    return {"ok": True, "routine": copy.to_dict()}


@app.delete("/api/routines/{routine_id}")
def api_delete_routine(routine_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if not delete_routine(state, routine_id):
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    _commit(state)
    return {"ok": True, "routineId": routine_id}


@app.get("/api/routines/{routine_id}/days/{day_of_week}")
def api_routine_day(routine_id: str, day_of_week: int, username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Blocks of one day, in start order, with display times."""
    state = load_state(_workspace_root())
    routine = find_routine(state, routine_id)
    if routine is None:
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    if not 0 <= day_of_week <= 6:
        raise HTTPException(status_code=400, detail=f"Invalid day of week: {day_of_week}")
    blocks = []
    for b in routine.blocks_for_day(day_of_week):
        d = b.to_dict()
        d["start"] = minutes_to_time_string(b.start_minutes)
        d["end"] = minutes_to_time_string(b.end_minutes)
        d["duration"] = format_duration(b.duration_minutes())
        blocks.append(d)
    return {"day": get_day_name(day_of_week), "blocks": blocks}


@app.post("/api/routines/{routine_id}/blocks")
def api_create_block(routine_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if find_routine(state, routine_id) is None:
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    block, errors = add_routine_block(state, routine_id, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "block": block.to_dict()}


@app.put("/api/routines/{routine_id}/blocks/{block_id}")
def api_update_block(routine_id: str, block_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    routine = find_routine(state, routine_id)
    if routine is None or not any(b.id == block_id for b in routine.blocks):
        raise HTTPException(status_code=404, detail=f"Block not found: {block_id}")
    block, errors = update_routine_block(state, routine_id, block_id, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "block": block.to_dict()}


@app.delete("/api/routines/{routine_id}/blocks/{block_id}")
def api_delete_block(routine_id: str, block_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if not delete_routine_block(state, routine_id, block_id):
        raise HTTPException(status_code=404, detail=f"Block not found: {block_id}")
    _commit(state)
    return {"ok": True, "blockId": block_id}


@app.post("/api/routines/{routine_id}/copy-day")
def api_copy_day(routine_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Replace the target days' blocks with copies of one day."""
    try:
        from_day = int(payload["fromDay"])
        to_days = [int(d) for d in payload.get("toDays", [])]
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=400, detail="fromDay and toDays must be day numbers 0-6")
    if not all(0 <= d <= 6 for d in [from_day, *to_days]):
        raise HTTPException(status_code=400, detail="fromDay and toDays must be day numbers 0-6")

    state = load_state(_workspace_root())
    copies = copy_day_blocks(state, routine_id, from_day, to_days)
    if copies is None:
        raise HTTPException(status_code=404, detail=f"Routine not found: {routine_id}")
    _commit(state)
    return {"ok": True, "copied": len(copies)}


# ── Tracking ──────────────────────────────────────────────────

@app.get("/api/tracking/current")
def api_tracking_current(username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    state = load_state(root)
    entry = get_current_entry(state)
    if entry is None:
        return {"entry": None}
    elapsed = entry.elapsed_minutes(now_local(root)) or 0
    return {"entry": entry.to_dict(), "elapsedMinutes": round(elapsed, 1)}


@app.post("/api/tracking/start")
def api_tracking_start(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    state = load_state(root)
    entry, errors = start_tracking(
        state,
        activity_type_id=str(payload.get("activityTypeId", "")),
        goal_id=payload.get("goalId"),
        routine_block_id=payload.get("routineBlockId"),
        source=str(payload.get("source", "manual")),
        notes=payload.get("notes"),
        now=now_local(root),
    )
    _check(errors)
    _commit(state)
    return {"ok": True, "entry": entry.to_dict()}


@app.post("/api/tracking/stop")
def api_tracking_stop(payload: dict[str, Any] = Body(default={}), username: str = Depends(get_current_user)) -> dict[str, Any]:
    root = _workspace_root()
    state = load_state(root)
    entry = stop_tracking(state, payload.get("entryId"), now=now_local(root))
    if entry is None:
        raise HTTPException(status_code=409, detail="No running entry to stop")
    _commit(state)
    return {"ok": True, "entry": entry.to_dict()}


@app.get("/api/tracking/entries")
def api_list_entries(
    week_start: str | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Entries, optionally restricted to the week starting at week_start."""
    state = load_state(_workspace_root())
    entries = state.tracking_entries
    start = _parse_day(week_start, "week_start")
    if start is not None:
        entries = [e for e in entries if 0 <= (date.fromisoformat(e.date) - start).days < 7]
    return {"entries": [e.to_dict() for e in entries]}


@app.post("/api/tracking/entries")
def api_add_entry(payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    entry, errors = add_completed_entry(state, payload)
    _check(errors)
    _commit(state)
    return {"ok": True, "entry": entry.to_dict()}


@app.put("/api/tracking/entries/{entry_id}")
def api_update_entry(entry_id: str, payload: dict[str, Any] = Body(...), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    entry, errors = update_tracking_entry(state, entry_id, payload)
    if entry is None and errors and errors[0].startswith("Entry not found"):
        raise HTTPException(status_code=404, detail=errors[0])
    _check(errors)
    _commit(state)
    return {"ok": True, "entry": entry.to_dict()}


@app.delete("/api/tracking/entries/{entry_id}")
def api_delete_entry(entry_id: str, username: str = Depends(get_current_user)) -> dict[str, Any]:
    state = load_state(_workspace_root())
    if not delete_tracking_entry(state, entry_id):
        raise HTTPException(status_code=404, detail=f"Entry not found: {entry_id}")
    _commit(state)
    return {"ok": True, "entryId": entry_id}


# ── Analytics & predictions ───────────────────────────────────

@app.get("/api/analytics/week")
def api_weekly_analytics(
    week_start: str | None = None,
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Planned vs. tracked minutes per activity type for one week (Sunday start)."""
    root = _workspace_root()
    state = load_state(root)
    start = _parse_day(week_start, "week_start") or get_week_start(now_local(root).date())
    analytics = get_weekly_analytics(get_active_routine(state), state.tracking_entries, start, state.activity_types)
    return analytics.to_dict()


@app.get("/api/predictions")
def api_predictions(username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Completion forecasts for active goals under the active routine."""
    root = _workspace_root()
    state = load_state(root)
    return {"predictions": _predictions(state, now_local(root).date())}
