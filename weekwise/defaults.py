"""Built-in activity types seeded into a fresh workspace."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from weekwise.models import ActivityType

DEFAULT_ACTIVITY_TYPES = [
    {"name": "Work", "color": "#E53935", "icon": "💼"},
    {"name": "Side Project", "color": "#FF9800", "icon": "🚀"},
    {"name": "Family Time", "color": "#E91E63", "icon": "❤️"},
    {"name": "Fitness", "color": "#4CAF50", "icon": "💪"},
    {"name": "Personal Development", "color": "#FFEB3B", "icon": "📚"},
    {"name": "Entertainment", "color": "#2196F3", "icon": "📺"},
    {"name": "Social", "color": "#9C27B0", "icon": "👥"},
    {"name": "Commute", "color": "#607D8B", "icon": "🚗"},
    {"name": "Food", "color": "#795548", "icon": "🍴"},
    {"name": "Hygiene", "color": "#00BCD4", "icon": "💧"},
    {"name": "Sleep", "color": "#3F51B5", "icon": "🌙"},
]


def new_id() -> str:
    return uuid.uuid4().hex


def timestamp(now: datetime | None = None) -> str:
    """ISO timestamp used for createdAt/updatedAt fields."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.isoformat(timespec="seconds")


def create_default_activity_types(now: datetime | None = None) -> list[ActivityType]:
    stamp = timestamp(now)
    return [
        ActivityType(
            id=new_id(),
            name=spec["name"],
            color=spec["color"],
            icon=spec["icon"],
            is_default=True,
            sort_order=i,
            created_at=stamp,
            updated_at=stamp,
        )
        for i, spec in enumerate(DEFAULT_ACTIVITY_TYPES)
    ]
