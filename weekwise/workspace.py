"""Workspace root, timezone and path helpers for Weekwise."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from weekwise.fileio import read_yaml, write_yaml_atomic

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def workspace_root() -> Path:
    """Get the workspace root directory (holds settings.yaml and state.json)."""
    return Path(
        os.environ.get("WEEKWISE_ROOT", str(Path.home() / "weekwise"))
    ).expanduser().resolve()


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def state_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "state.json"


def load_settings(root: Path | None = None) -> dict:
    """Load settings.yaml; missing file means all defaults."""
    return read_yaml(settings_path(root))


def save_settings(settings: dict, root: Path | None = None) -> None:
    write_yaml_atomic(settings_path(root), settings)


def set_user_timezone(name: str, root: Path | None = None) -> list[str]:
    """Store an IANA timezone name in settings.yaml. Returns errors; nothing is written on error."""
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return [f"Unknown timezone: {name}"]
    settings = load_settings(root)
    settings["timezone"] = name
    save_settings(settings, root)
    logger.info("Timezone set to %s", name)
    return []


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).get("timezone") or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in settings, falling back to %s", name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return now_local(root).date().isoformat()
