"""Tests for specflow.backlog models and state file operations."""

import json

import pytest

from specflow.backlog.models import BacklogItem, BacklogState
from specflow.backlog.store import load_state, save_state, open_state, atomic_write_text
from specflow.lib.errors import StateFileNotFound
from specflow.lib.locking import LockTimeout, state_lock, lock_path_for
from specflow.lib.validate import ValidationError


def _item_dict(index: int, **markers) -> dict:
    data = {
        "id": f"item-{index}",
        "raw": f"fix bug {index}",
        "formattedTitle": f"Fix bug {index}",
        "formattedDescription": "Type: bug. Priority: P2. Topic: General.",
        "topic": "General",
        "type": "bug",
        "priority": "P2",
        "priorityScore": 60,
    }
    data.update(markers)
    return data


def _state_dict(*items) -> dict:
    return {
        "createdAt": "2026-01-05T10:00:00.000Z",
        "sourceFile": "/repo/backlog.md",
        "repo": "octo/repo",
        "items": list(items),
    }


def _write(path, data) -> str:
    text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return text


class TestModels:
    """Test BacklogItem / BacklogState conversion."""

    def test_camel_case_keys_map_to_fields(self):
        item = BacklogItem.from_dict(_item_dict(1, createdIssueNumber=12, branch="issue/12-fix-bug-1"))
        assert item.formatted_title == "Fix bug 1"
        assert item.priority_score == 60
        assert item.created_issue_number == 12
        assert item.is_issued and item.is_branched and not item.is_provisioned

    def test_new_item_omits_unset_markers(self):
        item = BacklogItem.from_dict(_item_dict(1))
        data = item.to_dict()
        assert "createdIssueNumber" not in data
        assert list(data)[:3] == ["id", "raw", "formattedTitle"]

    def test_set_markers_are_appended(self):
        item = BacklogItem.from_dict(_item_dict(1))
        item.created_issue_number = 5
        item.created_issue_url = "https://github.com/octo/repo/issues/5"
        data = item.to_dict()
        assert list(data)[-2:] == ["createdIssueNumber", "createdIssueUrl"]

    def test_unknown_keys_preserved(self):
        raw = _state_dict(_item_dict(1, reviewer="sam"))
        raw["boardColumn"] = "Todo"
        state = BacklogState.from_dict(raw)
        data = state.to_dict()
        assert data["boardColumn"] == "Todo"
        assert data["items"][0]["reviewer"] == "sam"

    def test_find_by_issue(self):
        state = BacklogState.from_dict(_state_dict(
            _item_dict(1, createdIssueNumber=10),
            _item_dict(2, createdIssueNumber=11),
        ))
        assert state.find_by_issue(11).id == "item-2"
        assert state.find_by_issue(99) is None


class TestLoadSave:
    """Test state file load/save."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(StateFileNotFound):
            load_state(tmp_path / "backlog.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "backlog.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError, match="Invalid JSON"):
            load_state(path)

    def test_schema_violation(self, tmp_path):
        path = tmp_path / "backlog.json"
        _write(path, _state_dict(_item_dict(1, priority="P9")))
        with pytest.raises(ValidationError, match="at items.0.priority"):
            load_state(path)

    def test_round_trip_is_byte_identical(self, tmp_path):
        path = tmp_path / "backlog.json"
        original = _write(path, _state_dict(
            _item_dict(1, createdIssueNumber=3, createdIssueUrl="u", branch=None, extraNote="keep é"),
            _item_dict(2),
        ))
        save_state(path, load_state(path))
        assert path.read_text(encoding="utf-8") == original

    def test_refuses_to_write_invalid_state(self, tmp_path):
        path = tmp_path / "backlog.json"
        _write(path, _state_dict(_item_dict(1)))
        state = load_state(path)
        state.items[0].type = "epic"
        with pytest.raises(ValidationError, match="Refusing to write"):
            save_state(path, state)
        assert json.loads(path.read_text())["items"][0]["type"] == "bug"

    def test_atomic_write_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "out.json"
        atomic_write_text(path, "one\n")
        atomic_write_text(path, "two\n")
        assert path.read_text() == "two\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]


class TestOpenState:
    """Test the lock + load + save context manager."""

    def test_saves_mutations(self, tmp_path):
        path = tmp_path / "backlog.json"
        _write(path, _state_dict(_item_dict(1)))
        with open_state(path) as state:
            state.items[0].created_issue_number = 8
        assert json.loads(path.read_text())["items"][0]["createdIssueNumber"] == 8

    def test_saves_progress_when_body_raises(self, tmp_path):
        path = tmp_path / "backlog.json"
        _write(path, _state_dict(_item_dict(1), _item_dict(2)))
        with pytest.raises(RuntimeError):
            with open_state(path) as state:
                state.items[0].created_issue_number = 8
                raise RuntimeError("gh failed")
        items = json.loads(path.read_text())["items"]
        assert items[0]["createdIssueNumber"] == 8
        assert "createdIssueNumber" not in items[1]

    def test_lock_held_times_out(self, tmp_path):
        path = tmp_path / "backlog.json"
        _write(path, _state_dict(_item_dict(1)))
        with state_lock(path):
            with pytest.raises(LockTimeout):
                with open_state(path, timeout=0):
                    pass
        assert lock_path_for(path).name == "backlog.json.lock"
