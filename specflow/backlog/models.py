"""
Data models for the backlog state file.

Python attribute names are snake_case; the JSON file uses camelCase keys.
Serialization keeps the key order of the file that was loaded, so an
unmodified state round-trips byte-for-byte, and keys this version does not
know about are carried through untouched.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional


def _json_key(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class BacklogItem:
    """One work item, created at intake from a single raw input line.

    Stage markers (issue number onward) start as None and are filled in
    pipeline order; the engine never clears them.
    """
    id: str                                    # item-1, item-2, ...
    raw: str
    formatted_title: str
    formatted_description: str
    topic: str
    type: str                                  # feature, bug, task
    priority: str                              # P0..P3
    priority_score: int
    created_issue_number: Optional[int] = None
    created_issue_url: Optional[str] = None
    branch: Optional[str] = None
    worktree_path: Optional[str] = None
    pr_url: Optional[str] = None
    agent_workspace_path: Optional[str] = None
    agent_last_run_at: Optional[str] = None    # ISO timestamp
    agent_last_run_status: Optional[str] = None  # succeeded, failed, skipped
    agent_last_run_output: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
    key_order: list[str] = field(default_factory=list, repr=False, compare=False)

    @property
    def is_issued(self) -> bool:
        return self.created_issue_number is not None

    @property
    def is_branched(self) -> bool:
        return self.branch is not None

    @property
    def is_provisioned(self) -> bool:
        return self.worktree_path is not None

    @classmethod
    def from_dict(cls, data: dict) -> "BacklogItem":
        return _from_dict(cls, data)

    def to_dict(self) -> dict:
        return _to_dict(self)


@dataclass
class BacklogState:
    """The whole state file: metadata plus items in intake order."""
    created_at: str
    source_file: str
    repo: str
    items: list[BacklogItem] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)
    key_order: list[str] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> "BacklogState":
        payload = dict(data)
        payload["items"] = [BacklogItem.from_dict(item) for item in data.get("items", [])]
        return _from_dict(cls, payload)

    def to_dict(self) -> dict:
        return _to_dict(self)

    def find_by_issue(self, issue_number: int) -> Optional[BacklogItem]:
        """First item whose tracker issue is issue_number."""
        for item in self.items:
            if item.created_issue_number == issue_number:
                return item
        return None


_BOOKKEEPING = ("extra", "key_order")


def _data_fields(cls) -> list:
    return [f for f in fields(cls) if f.name not in _BOOKKEEPING]


def _from_dict(cls, data: dict):
    by_key = {_json_key(f.name): f.name for f in _data_fields(cls)}
    kwargs = {}
    extra = {}
    for key, value in data.items():
        if key in by_key:
            kwargs[by_key[key]] = value
        else:
            extra[key] = value
    obj = cls(**kwargs)
    obj.extra = extra
    obj.key_order = list(data.keys())
    return obj


def _dump_value(value):
    if isinstance(value, list):
        return [_dump_value(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _to_dict(obj) -> dict:
    """Serialize keeping loaded key order; new non-None fields follow in declaration order."""
    values = {}
    for f in _data_fields(type(obj)):
        values[_json_key(f.name)] = getattr(obj, f.name)

    out = {}
    for key in obj.key_order:
        if key in values:
            out[key] = _dump_value(values[key])
        elif key in obj.extra:
            out[key] = obj.extra[key]
    for key, value in values.items():
        if key not in out and value is not None:
            out[key] = _dump_value(value)
    for key, value in obj.extra.items():
        if key not in out:
            out[key] = value
    return out
