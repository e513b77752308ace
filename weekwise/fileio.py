"""File persistence for the Weekwise workspace.

Documents are read and written whole. A write goes to a locked temp file
beside the target which then replaces it, so a reader never sees a
half-written state.json.
"""

from __future__ import annotations

import fcntl
import json
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, TextIO

import yaml


class WorkspaceFileError(ValueError):
    """A workspace file exists but its contents cannot be decoded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def backup_path(path: Path) -> Path:
    """Where the previous version of *path* is kept: state.json -> state.json.bak."""
    return path.with_name(path.name + ".bak")


def read_text(path: Path) -> str:
    """Read a text file, returning empty string if missing."""
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def _decode(path: Path, loads: Callable[[str], Any]) -> dict[str, Any]:
    text = read_text(path)
    if not text.strip():
        return {}
    try:
        result = loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise WorkspaceFileError(path, str(exc)) from exc
    return result if isinstance(result, dict) else {}


def read_json(path: Path) -> dict[str, Any]:
    """Load a JSON object. Missing, empty or non-object files give {}."""
    return _decode(path, json.loads)


def read_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping. Missing, empty or non-mapping files give {}."""
    return _decode(path, yaml.safe_load)


@contextmanager
def _replacing(path: Path, suffix: str) -> Iterator[TextIO]:
    """Yield a locked temp file next to *path*; it replaces *path* on success."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=suffix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                yield f
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


def write_json_atomic(path: Path, data: dict[str, Any], backup: bool = False) -> None:
    """Replace *path* with *data* as JSON, optionally keeping the old file as .bak."""
    if backup and path.exists():
        shutil.copy2(path, backup_path(path))
    with _replacing(path, ".json") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    with _replacing(path, ".yaml") as f:
        yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
