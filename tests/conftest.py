"""Shared test fixtures for Weekwise tests."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest
import yaml

from weekwise import AppState, load_state


STATE = {
    "activityTypes": [
        {"id": "at-work", "name": "Work", "color": "#E53935", "isDefault": True, "sortOrder": 0,
         "createdAt": "2026-01-01T00:00:00+00:00", "updatedAt": "2026-01-01T00:00:00+00:00"},
        {"id": "at-fit", "name": "Fitness", "color": "#4CAF50", "isDefault": True, "sortOrder": 1,
         "createdAt": "2026-01-01T00:00:00+00:00", "updatedAt": "2026-01-01T00:00:00+00:00"},
        {"id": "at-read", "name": "Reading", "color": "#FFEB3B", "isDefault": False, "sortOrder": 2,
         "createdAt": "2026-01-01T00:00:00+00:00", "updatedAt": "2026-01-01T00:00:00+00:00"},
        {"id": "at-idle", "name": "Idle", "color": "#9E9E9E", "isDefault": False, "sortOrder": 3,
         "createdAt": "2026-01-01T00:00:00+00:00", "updatedAt": "2026-01-01T00:00:00+00:00"},
    ],
    "goals": [
        {"id": "g-fit", "name": "Run a marathon", "estimatedMinutes": 600, "loggedMinutes": 120,
         "activityTypeId": "at-fit", "status": "active", "priority": 2},
        {"id": "g-read", "name": "Read War and Peace", "estimatedMinutes": 1800, "loggedMinutes": 0,
         "activityTypeId": "at-read", "status": "active", "priority": 3},
        {"id": "g-piano", "name": "Learn piano", "estimatedMinutes": 300, "loggedMinutes": 30,
         "activityTypeId": "at-read", "status": "paused", "priority": 4},
    ],
    "routines": [
        {
            "id": "r-main",
            "name": "Weekdays",
            "isActive": True,
            "blocks": [
                {"id": "b-mon-work", "dayOfWeek": 1, "startMinutes": 540, "endMinutes": 1020, "activityTypeId": "at-work"},
                {"id": "b-tue-work", "dayOfWeek": 2, "startMinutes": 540, "endMinutes": 1020, "activityTypeId": "at-work"},
                {"id": "b-mon-run", "dayOfWeek": 1, "startMinutes": 1050, "endMinutes": 1110,
                 "activityTypeId": "at-fit", "goalId": "g-fit"},
                {"id": "b-sat-read", "dayOfWeek": 6, "startMinutes": 1380, "endMinutes": 60,
                 "activityTypeId": "at-read", "goalId": "g-read"},
            ],
        },
        {"id": "r-holiday", "name": "Holiday", "isActive": False, "blocks": []},
    ],
    "trackingEntries": [
        {"id": "e-work", "date": "2026-02-09", "startTime": "2026-02-09T09:00:00+00:00",
         "endTime": "2026-02-09T11:00:00+00:00", "activityTypeId": "at-work", "source": "scheduled",
         "routineBlockId": "b-mon-work"},
        {"id": "e-run", "date": "2026-02-10", "startTime": "2026-02-10T17:30:00+00:00",
         "endTime": "2026-02-10T18:15:00+00:00", "activityTypeId": "at-fit", "goalId": "g-fit"},
        {"id": "e-last-week", "date": "2026-02-05", "startTime": "2026-02-05T09:00:00+00:00",
         "endTime": "2026-02-05T10:00:00+00:00", "activityTypeId": "at-work"},
    ],
    "activeRoutineId": "r-main",
    "currentTrackingEntryId": None,
    "hasCompletedOnboarding": True,
    "schemaVersion": 1,
}


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and a populated state."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    (root / "settings.yaml").write_text(
        yaml.dump({"timezone": "UTC"}, default_flow_style=False), encoding="utf-8"
    )
    (root / "state.json").write_text(json.dumps(STATE, indent=2), encoding="utf-8")

    # Set env var
    os.environ["WEEKWISE_ROOT"] = str(root)
    yield root
    # Cleanup
    if "WEEKWISE_ROOT" in os.environ:
        del os.environ["WEEKWISE_ROOT"]


@pytest.fixture
def state(workspace: Path) -> AppState:
    return load_state(workspace)
