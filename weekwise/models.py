"""Typed dataclasses for the Weekwise data model.

All persisted models use from_dict/to_dict for JSON serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from weekwise.timeutil import block_duration_minutes, parse_timestamp


GOAL_STATUSES = ("active", "completed", "paused", "archived")
TRACKING_SOURCES = ("scheduled", "manual", "notification")
CONFIDENCE_LEVELS = ("low", "medium", "high")

PRIORITY_LABELS = {
    1: "Very High",
    2: "High",
    3: "Medium",
    4: "Low",
    5: "Very Low",
}

SCHEMA_VERSION = 1


def _opt_str(value: Any) -> str | None:
    return None if value is None or value == "" else str(value)


def _opt_int(value: Any) -> int | None:
    return None if value is None else int(value)


def _opt_number(value: Any) -> float | None:
    if value is None:
        return None
    number = float(value)
    return int(number) if number.is_integer() else number


# ── Activity types ────────────────────────────────────────────


@dataclass
class ActivityType:
    id: str = ""
    name: str = ""
    color: str = "#9E9E9E"
    icon: str | None = None
    is_default: bool = False
    sort_order: int = 0
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ActivityType:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            color=str(d.get("color", "#9E9E9E")),
            icon=_opt_str(d.get("icon")),
            is_default=bool(d.get("isDefault", False)),
            sort_order=int(d.get("sortOrder", 0)),
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "isDefault": self.is_default,
            "sortOrder": self.sort_order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.icon:
            d["icon"] = self.icon
        return d


# ── Goals ─────────────────────────────────────────────────────


@dataclass
class Goal:
    id: str = ""
    name: str = ""
    description: str = ""
    estimated_minutes: float = 0
    logged_minutes: float = 0
    activity_type_id: str = ""
    status: str = "active"  # active, completed, paused, archived
    priority: int = 3  # 1 = highest, 5 = lowest
    created_at: str = ""
    updated_at: str = ""
    completed_at: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            description=str(d.get("description", "")),
            estimated_minutes=_opt_number(d.get("estimatedMinutes")) or 0,
            logged_minutes=_opt_number(d.get("loggedMinutes")) or 0,
            activity_type_id=str(d.get("activityTypeId", "")),
            status=str(d.get("status", "active")),
            priority=int(d.get("priority", 3)),
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
            completed_at=_opt_str(d.get("completedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "estimatedMinutes": self.estimated_minutes,
            "loggedMinutes": self.logged_minutes,
            "activityTypeId": self.activity_type_id,
            "status": self.status,
            "priority": self.priority,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.completed_at:
            d["completedAt"] = self.completed_at
        return d

    def progress_pct(self) -> float:
        if self.estimated_minutes <= 0:
            return 0.0
        return min(100.0, self.logged_minutes / self.estimated_minutes * 100)


@dataclass
class GoalDraft:
    """A partially filled goal, as submitted from a form, before validation."""

    name: str | None = None
    description: str | None = None
    estimated_minutes: float | None = None
    activity_type_id: str | None = None
    priority: int | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GoalDraft:
        return cls(
            name=_opt_str(d.get("name")),
            description=_opt_str(d.get("description")),
            estimated_minutes=_opt_number(d.get("estimatedMinutes")),
            activity_type_id=_opt_str(d.get("activityTypeId")),
            priority=_opt_int(d.get("priority")),
        )


# ── Routines ──────────────────────────────────────────────────


@dataclass
class RoutineBlock:
    id: str = ""
    day_of_week: int = 0  # 0 = Sunday
    start_minutes: int = 0  # minutes from midnight
    end_minutes: int = 0
    activity_type_id: str = ""
    goal_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RoutineBlock:
        return cls(
            id=str(d.get("id", "")),
            day_of_week=int(d.get("dayOfWeek", 0)),
            start_minutes=int(d.get("startMinutes", 0)),
            end_minutes=int(d.get("endMinutes", 0)),
            activity_type_id=str(d.get("activityTypeId", "")),
            goal_id=_opt_str(d.get("goalId")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "dayOfWeek": self.day_of_week,
            "startMinutes": self.start_minutes,
            "endMinutes": self.end_minutes,
            "activityTypeId": self.activity_type_id,
        }
        if self.goal_id:
            d["goalId"] = self.goal_id
        return d

    def duration_minutes(self) -> int:
        """Length of the block, wrapping past midnight when end <= start."""
        return block_duration_minutes(self.start_minutes, self.end_minutes)


@dataclass
class BlockDraft:
    """A routine block whose fields may still be missing."""

    id: str | None = None
    day_of_week: int | None = None
    start_minutes: int | None = None
    end_minutes: int | None = None
    activity_type_id: str | None = None
    goal_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BlockDraft:
        return cls(
            id=_opt_str(d.get("id")),
            day_of_week=_opt_int(d.get("dayOfWeek")),
            start_minutes=_opt_int(d.get("startMinutes")),
            end_minutes=_opt_int(d.get("endMinutes")),
            activity_type_id=_opt_str(d.get("activityTypeId")),
            goal_id=_opt_str(d.get("goalId")),
        )

    def to_block(self, block_id: str | None = None) -> RoutineBlock:
        """Build a full block. Only meaningful once the draft validates."""
        return RoutineBlock(
            id=block_id or self.id or "",
            day_of_week=self.day_of_week or 0,
            start_minutes=self.start_minutes or 0,
            end_minutes=self.end_minutes or 0,
            activity_type_id=self.activity_type_id or "",
            goal_id=self.goal_id,
        )


@dataclass
class Routine:
    id: str = ""
    name: str = ""
    is_active: bool = False
    blocks: list[RoutineBlock] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Routine:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            is_active=bool(d.get("isActive", False)),
            blocks=[RoutineBlock.from_dict(b) for b in (d.get("blocks") or [])],
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "isActive": self.is_active,
            "blocks": [b.to_dict() for b in self.blocks],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def blocks_for_day(self, day_of_week: int) -> list[RoutineBlock]:
        return sorted(
            (b for b in self.blocks if b.day_of_week == day_of_week),
            key=lambda b: b.start_minutes,
        )


# ── Tracking ──────────────────────────────────────────────────


@dataclass
class TrackingEntry:
    id: str = ""
    date: str = ""  # ISO date the entry belongs to
    start_time: str = ""  # ISO datetime
    end_time: str | None = None  # None while tracking is in progress
    activity_type_id: str = ""
    goal_id: str | None = None
    routine_block_id: str | None = None
    source: str = "manual"  # scheduled, manual, notification
    notes: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TrackingEntry:
        return cls(
            id=str(d.get("id", "")),
            date=str(d.get("date", "")),
            start_time=str(d.get("startTime", "")),
            end_time=_opt_str(d.get("endTime")),
            activity_type_id=str(d.get("activityTypeId", "")),
            goal_id=_opt_str(d.get("goalId")),
            routine_block_id=_opt_str(d.get("routineBlockId")),
            source=str(d.get("source", "manual")),
            notes=_opt_str(d.get("notes")),
            created_at=str(d.get("createdAt", "")),
            updated_at=str(d.get("updatedAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "startTime": self.start_time,
            "activityTypeId": self.activity_type_id,
            "source": self.source,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.end_time:
            d["endTime"] = self.end_time
        if self.goal_id:
            d["goalId"] = self.goal_id
        if self.routine_block_id:
            d["routineBlockId"] = self.routine_block_id
        if self.notes:
            d["notes"] = self.notes
        return d

    @property
    def in_progress(self) -> bool:
        return self.end_time is None

    def elapsed_minutes(self, now: datetime | None = None) -> float | None:
        """Minutes between start and end (or *now* for a running entry)."""
        if self.end_time is not None:
            end = parse_timestamp(self.end_time)
        elif now is not None:
            end = now
        else:
            return None
        return (end - parse_timestamp(self.start_time)).total_seconds() / 60


# ── App state ─────────────────────────────────────────────────


@dataclass
class AppState:
    activity_types: list[ActivityType] = field(default_factory=list)
    goals: list[Goal] = field(default_factory=list)
    routines: list[Routine] = field(default_factory=list)
    tracking_entries: list[TrackingEntry] = field(default_factory=list)
    active_routine_id: str | None = None
    current_tracking_entry_id: str | None = None
    has_completed_onboarding: bool = False
    last_synced_at: str | None = None
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AppState:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            activity_types=[ActivityType.from_dict(a) for a in (d.get("activityTypes") or [])],
            goals=[Goal.from_dict(g) for g in (d.get("goals") or [])],
            routines=[Routine.from_dict(r) for r in (d.get("routines") or [])],
            tracking_entries=[TrackingEntry.from_dict(e) for e in (d.get("trackingEntries") or [])],
            active_routine_id=_opt_str(d.get("activeRoutineId")),
            current_tracking_entry_id=_opt_str(d.get("currentTrackingEntryId")),
            has_completed_onboarding=bool(d.get("hasCompletedOnboarding", False)),
            last_synced_at=_opt_str(d.get("lastSyncedAt")),
            schema_version=int(d.get("schemaVersion", SCHEMA_VERSION)),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "activityTypes": [a.to_dict() for a in self.activity_types],
            "goals": [g.to_dict() for g in self.goals],
            "routines": [r.to_dict() for r in self.routines],
            "trackingEntries": [e.to_dict() for e in self.tracking_entries],
            "activeRoutineId": self.active_routine_id,
            "currentTrackingEntryId": self.current_tracking_entry_id,
            "hasCompletedOnboarding": self.has_completed_onboarding,
            "schemaVersion": self.schema_version,
        }
        if self.last_synced_at:
            d["lastSyncedAt"] = self.last_synced_at
        return d


# ── Engine results ────────────────────────────────────────────


@dataclass
class ValidationError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {"isValid": self.is_valid, "errors": [e.to_dict() for e in self.errors]}


@dataclass
class WeeklyBreakdown:
    activity_type_id: str = ""
    activity_type_name: str = ""
    color: str = ""
    planned_minutes: float = 0
    actual_minutes: float = 0
    percentage_of_week: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "activityTypeId": self.activity_type_id,
            "activityTypeName": self.activity_type_name,
            "color": self.color,
            "plannedMinutes": self.planned_minutes,
            "actualMinutes": round(self.actual_minutes, 1),
            "percentageOfWeek": round(self.percentage_of_week, 2),
        }


@dataclass
class WeeklyAnalytics:
    week_start: str = ""
    breakdown: list[WeeklyBreakdown] = field(default_factory=list)
    total_planned_minutes: float = 0
    total_tracked_minutes: float = 0
    unallocated_minutes: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "weekStart": self.week_start,
            "breakdown": [b.to_dict() for b in self.breakdown],
            "totalPlannedMinutes": self.total_planned_minutes,
            "totalTrackedMinutes": round(self.total_tracked_minutes, 1),
            "unallocatedMinutes": self.unallocated_minutes,
        }


@dataclass
class PredictionResult:
    goal_id: str = ""
    predicted_completion_date: str | None = None  # ISO date
    weekly_minutes_allocated: float = 0
    remaining_minutes: float = 0
    weeks_remaining: float | None = None
    confidence_level: str = "low"  # low, medium, high

    def to_dict(self) -> dict[str, Any]:
        return {
            "goalId": self.goal_id,
            "predictedCompletionDate": self.predicted_completion_date,
            "weeklyMinutesAllocated": self.weekly_minutes_allocated,
            "remainingMinutes": self.remaining_minutes,
            "weeksRemaining": None if self.weeks_remaining is None else round(self.weeks_remaining, 2),
            "confidenceLevel": self.confidence_level,
        }
