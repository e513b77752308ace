"""Tests for weekwise/workspace.py and weekwise/fileio.py."""

import json
from zoneinfo import ZoneInfo

import pytest
import yaml

from weekwise.fileio import (
    WorkspaceFileError,
    backup_path,
    read_json,
    read_yaml,
    read_text,
    write_json_atomic,
    write_yaml_atomic,
)
from weekwise.workspace import (
    workspace_root,
    settings_path,
    state_path,
    load_settings,
    save_settings,
    set_user_timezone,
    get_user_timezone,
    now_local,
    today_str,
)


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()
    assert settings_path() == workspace.resolve() / "settings.yaml"
    assert state_path() == workspace.resolve() / "state.json"


def test_load_settings(workspace):
    assert load_settings(workspace) == {"timezone": "UTC"}


def test_user_timezone(workspace):
    (workspace / "settings.yaml").write_text("timezone: Europe/Berlin\n", encoding="utf-8")
    assert get_user_timezone(workspace) == ZoneInfo("Europe/Berlin")
    assert now_local(workspace).tzinfo == ZoneInfo("Europe/Berlin")


def test_unknown_timezone_falls_back_to_utc(workspace):
    (workspace / "settings.yaml").write_text("timezone: Mars/Olympus\n", encoding="utf-8")
    assert get_user_timezone(workspace) == ZoneInfo("UTC")


def test_missing_settings_default_to_utc(tmp_path):
    assert load_settings(tmp_path) == {}
    assert get_user_timezone(tmp_path) == ZoneInfo("UTC")


def test_today_str_format(workspace):
    day = today_str(workspace)
    assert len(day) == 10
    assert day[4] == "-" and day[7] == "-"


def test_read_missing_files(tmp_path):
    assert read_text(tmp_path / "nope.txt") == ""
    assert read_json(tmp_path / "nope.json") == {}
    assert read_yaml(tmp_path / "nope.yaml") == {}


def test_read_json_non_object(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert read_json(path) == {}


def test_write_json_atomic(tmp_path):
    path = tmp_path / "nested" / "state.json"
    write_json_atomic(path, {"name": "Café", "n": 1})
    assert json.loads(path.read_text(encoding="utf-8")) == {"name": "Café", "n": 1}
    assert [p.name for p in path.parent.iterdir()] == ["state.json"]


def test_write_yaml_atomic_keeps_key_order(tmp_path):
    path = tmp_path / "settings.yaml"
    write_yaml_atomic(path, {"timezone": "UTC", "a": 1})
    assert list(yaml.safe_load(path.read_text(encoding="utf-8"))) == ["timezone", "a"]
    assert read_yaml(path) == {"timezone": "UTC", "a": 1}


def test_set_user_timezone(workspace):
    (workspace / "settings.yaml").write_text("timezone: UTC\nweekStart: sunday\n", encoding="utf-8")
    assert set_user_timezone("Asia/Tokyo", workspace) == []
    assert load_settings(workspace) == {"timezone": "Asia/Tokyo", "weekStart": "sunday"}
    assert get_user_timezone(workspace) == ZoneInfo("Asia/Tokyo")


def test_set_user_timezone_rejects_unknown(workspace):
    assert set_user_timezone("Mars/Olympus", workspace) == ["Unknown timezone: Mars/Olympus"]
    assert load_settings(workspace) == {"timezone": "UTC"}


def test_save_settings_creates_file(tmp_path):
    save_settings({"timezone": "Europe/Paris"}, tmp_path)
    assert read_yaml(tmp_path / "settings.yaml") == {"timezone": "Europe/Paris"}


def test_read_json_corrupt(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(WorkspaceFileError) as info:
        read_json(path)
    assert info.value.path == path


def test_write_json_atomic_backup(tmp_path):
    path = tmp_path / "state.json"
    write_json_atomic(path, {"v": 1}, backup=True)
    assert not backup_path(path).exists()
    write_json_atomic(path, {"v": 2}, backup=True)
    assert read_json(path) == {"v": 2}
    assert read_json(backup_path(path)) == {"v": 1}
    assert backup_path(path).name == "state.json.bak"
