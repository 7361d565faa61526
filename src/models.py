"""Data models for the Kanban board.

Status is stored by member name ("Backlog", "Todo", "Doing", "Done") so the
JSON file stays readable. Timestamps use minute resolution ("YYYY-MM-DD HH:MM")
which keeps version-control diffs of the board file small.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple
import uuid

from errors import InvalidInput

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_TITLE = "New task"
DEFAULT_PRIORITY = 2
PRIORITY_LABELS: Tuple[str, ...] = ("Critical", "High", "Normal", "Low")
COPY_SUFFIX = " (copy)"


def timestamp() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def new_id() -> str:
    return uuid.uuid4().hex[:8]


class Status(Enum):
    BACKLOG = "Backlog"
    TODO = "Todo"
    DOING = "Doing"
    DONE = "Done"

    @property
    def position(self) -> int:
        return STATUS_ORDER.index(self)

    def shifted(self, delta: int) -> "Status":
        """Step along the board order, saturating at Backlog and Done."""
        idx = min(max(self.position + delta, 0), len(STATUS_ORDER) - 1)
        return STATUS_ORDER[idx]

    @classmethod
    def parse(cls, value: str) -> "Status":
        for status in cls:
            if status.value.lower() == str(value).strip().lower():
                return status
        raise InvalidInput(f"Unknown status: {value!r}")

    def __str__(self) -> str:
        return self.value


STATUS_ORDER: Tuple[Status, ...] = tuple(Status)


class Direction(IntEnum):
    BACK = -1
    FORWARD = 1


def _require_object(raw: Any, what: str) -> None:
    if not isinstance(raw, Mapping):
        raise InvalidInput(f"{what} record must be an object, got {type(raw).__name__}")


def _records(raw: Mapping[str, Any], key: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise InvalidInput(f"Task {raw['id']}: {key!r} must be a list")
    return value


@dataclass
class Subtask:
    text: str = ""
    done: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "done": self.done}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Subtask":
        _require_object(raw, "Subtask")
        return cls(text=str(raw.get("text") or ""), done=bool(raw.get("done", False)))


@dataclass
class LogEntry:
    action: str
    timestamp: str = field(default_factory=lambda: timestamp())

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "action": self.action}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "LogEntry":
        _require_object(raw, "Log entry")
        return cls(action=str(raw.get("action") or ""), timestamp=str(raw.get("timestamp") or ""))


# Field name -> how a change to it is described in the activity log.
# Fields showing before/after values use a format string; the rest are fixed text.
_CHANGE_MESSAGES: Dict[str, str] = {
    "title": "Title: {old} → {new}",
    "priority": "Priority: {old} → {new}",
    "status": "Status: {old} → {new}",
    "notes": "Notes changed",
    "tags": "Tags changed",
    "link": "Link changed",
    "archived": "{verb}",
}


def _shown(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


@dataclass
class Task:
    """A single Kanban card.

    Fields:
        id: 8 hex chars, unique within a board, never reassigned.
        title: Trimmed, never blank.
        notes / tags / link: Free text, may be None.
        status: Column the card lives in.
        priority: 0 (Critical) .. 3 (Low); only drives ordering and colour.
        archived: Hidden from the columns, listed in the archive view.
        created_at: Set once at creation.
        subtasks: User-ordered checklist.
        log: Append-only activity history; the first entry is written on creation.
    """
    title: str = DEFAULT_TITLE
    status: Status = Status.TODO
    id: str = field(default_factory=new_id)
    notes: Optional[str] = None
    priority: int = DEFAULT_PRIORITY
    tags: Optional[str] = None
    link: Optional[str] = None
    archived: bool = False
    created_at: str = field(default_factory=lambda: timestamp())
    subtasks: List[Subtask] = field(default_factory=list)
    log: List[LogEntry] = field(default_factory=list)

    # -------------------- activity log --------------------
    def record(self, action: str) -> LogEntry:
        entry = LogEntry(action)
        self.log.append(entry)
        return entry

    def change(self, name: str, value: Any) -> bool:
        """Assign a tracked field and log it. Returns False (and logs nothing) if unchanged."""
        old = getattr(self, name)
        if old == value:
            return False
        setattr(self, name, value)
        message = _CHANGE_MESSAGES[name].format(
            old=_shown(old), new=_shown(value), verb="Archived" if value else "Restored")
        self.record(message)
        return True

    # -------------------- derived --------------------
    def progress(self) -> Tuple[int, int]:
        return sum(1 for s in self.subtasks if s.done), len(self.subtasks)

    def is_openable(self) -> bool:
        link = (self.link or "").strip()
        return bool(link) and link.lower().startswith("http")

    def matches(self, query: str) -> bool:
        needle = (query or "").strip().lower()
        if not needle:
            return True
        return any(needle in (text or "").lower()
                   for text in (self.title, self.notes, self.tags, self.link))

    # -------------------- serialization --------------------
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "notes": self.notes,
            "status": self.status.value,
            "priority": self.priority,
            "tags": self.tags,
            "link": self.link,
            "archived": self.archived,
            "createdAt": self.created_at,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "log": [e.to_dict() for e in self.log],
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Task":
        """Build a task from a stored record.

        id, title, status and a non-empty log are required; anything else
        falls back to its default so hand-edited files still load.
        """
        _require_object(raw, "Task")
        for key in ("id", "title", "status"):
            if not raw.get(key):
                raise InvalidInput(f"Task record is missing {key!r}")
        log = [LogEntry.from_dict(e) for e in _records(raw, "log")]
        if not log:
            raise InvalidInput(f"Task {raw['id']}: activity log is empty")
        priority = raw.get("priority", DEFAULT_PRIORITY)
        if not isinstance(priority, int) or isinstance(priority, bool) or not 0 <= priority <= 3:
            raise InvalidInput(f"Task {raw['id']}: priority must be an integer 0-3")
        return cls(
            id=str(raw["id"]),
            title=str(raw["title"]),
            notes=_text(raw.get("notes")),
            status=Status.parse(raw["status"]),
            priority=priority,
            tags=_text(raw.get("tags")),
            link=_text(raw.get("link")),
            archived=bool(raw.get("archived", False)),
            created_at=str(raw.get("createdAt") or ""),
            subtasks=[Subtask.from_dict(s) for s in _records(raw, "subtasks")],
            log=log,
        )

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self.id}, title={self.title}, status={self.status})"
