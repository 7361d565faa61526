"""Board logic: owns the task list and every operation that mutates it.

Tasks live in one insertion-ordered list. Columns are a view: tasks of one
status, not archived, matching the search, sorted by priority (stable, so
equal priorities keep insertion order).

Every accepted change goes through Task.change / Task.record so the activity
log always gets exactly one entry per real change and none for no-ops.
Subtask reordering is the one mutation that is deliberately not logged.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional
import logging

from errors import InvalidInput, TaskNotFound
from models import (
    COPY_SUFFIX, PRIORITY_LABELS, STATUS_ORDER, Direction, Status, Subtask, Task, new_id,
)

logger = logging.getLogger("kanban.board")

EDITABLE_FIELDS = ("title", "notes", "tags", "link", "priority", "status")


class TaskQuery:
    """Lazy, restartable search over a board.

    Nothing is cached: each iteration walks the live task list, so edits made
    between two iterations are reflected.
    """

    def __init__(self, tasks: List[Task], query: str = ""):
        self._tasks = tasks
        self.query = (query or "").strip()

    def __iter__(self) -> Iterator[Task]:
        return (t for t in self._tasks if t.matches(self.query))

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"TaskQuery({self.query!r})"


class Board:
    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self.tasks: List[Task] = []
        for task in tasks or ():
            if any(t.id == task.id for t in self.tasks):
                raise InvalidInput(f"Duplicate task id {task.id!r}")
            self.tasks.append(task)

    # -------------------- loading / serialization --------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Board":
        if not isinstance(data, Mapping):
            raise InvalidInput("Board file must contain a JSON object")
        raw_tasks = data.get("tasks", [])
        if not isinstance(raw_tasks, list):
            raise InvalidInput("'tasks' must be a list")
        return cls(Task.from_dict(raw) for raw in raw_tasks)

    def to_dict(self) -> Dict[str, Any]:
        return {"tasks": [t.to_dict() for t in self.tasks]}

    # -------------------- id management --------------------
    def _allocate_id(self) -> str:
        taken = {t.id for t in self.tasks}
        nid = new_id()
        while nid in taken:
            nid = new_id()
        return nid

    # -------------------- queries --------------------
    def find(self, key: str) -> Task:
        """Look a task up by full id or by a unique id prefix."""
        key = (key or "").strip().lower().rstrip(".")
        if not key:
            raise InvalidInput("Task id required.")
        hits = [t for t in self.tasks if t.id.startswith(key)]
        exact = [t for t in hits if t.id == key]
        if exact:
            return exact[0]
        if not hits:
            raise TaskNotFound(key)
        if len(hits) > 1:
            raise InvalidInput(f'Id prefix "{key}" is ambiguous ({len(hits)} tasks).')
        return hits[0]

    def search(self, query: str = "") -> TaskQuery:
        return TaskQuery(self.tasks, query)

    def column(self, status: Status, query: str = "") -> List[Task]:
        visible = [t for t in self.search(query) if t.status is status and not t.archived]
        return sorted(visible, key=lambda t: t.priority)

    def columns(self, query: str = "") -> Dict[Status, List[Task]]:
        return {status: self.column(status, query) for status in STATUS_ORDER}

    def archived(self, query: str = "") -> List[Task]:
        """Archived tasks, most recently touched first."""
        shelved = [t for t in self.search(query) if t.archived]
        return sorted(shelved, key=lambda t: t.log[-1].timestamp if t.log else "", reverse=True)

    def counts(self) -> Dict[Status, int]:
        result = {status: 0 for status in STATUS_ORDER}
        for task in self.tasks:
            if not task.archived:
                result[task.status] += 1
        return result

    # -------------------- task operations --------------------
    def create(self, title: str, status: Status = Status.TODO) -> Task:
        title = _clean_title(title)
        task = Task(id=self._allocate_id(), title=title, status=status)
        task.record("Created")
        self.tasks.append(task)
        logger.debug("created %s %r in %s", task.id, title, status)
        return task

    def duplicate(self, source: Task) -> Task:
        clone = Task(
            id=self._allocate_id(),
            title=source.title + COPY_SUFFIX,
            notes=source.notes,
            status=source.status,
            priority=source.priority,
            tags=source.tags,
            link=source.link,
            subtasks=[Subtask(text=s.text, done=False) for s in source.subtasks],
        )
        clone.record(f"Duplicated from {source.id}")
        self.tasks.append(clone)
        logger.debug("duplicated %s as %s", source.id, clone.id)
        return clone

    def move(self, task: Task, direction: int) -> bool:
        """Shift one column back or forward. Returns False at either end."""
        target = task.status.shifted(_direction(direction))
        return self.move_to(task, target)

    def move_to(self, task: Task, status: Status) -> bool:
        changed = task.change("status", status)
        if changed:
            logger.debug("moved %s to %s", task.id, status)
        return changed

    def set_field(self, task: Task, name: str, value: Any) -> bool:
        """Edit one field. Returns False when the value is unchanged (nothing logged)."""
        if name not in EDITABLE_FIELDS:
            raise InvalidInput(f"Unknown field: {name!r}")
        return task.change(name, _FIELD_CLEANERS[name](value))

    def archive(self, task: Task) -> bool:
        return task.change("archived", True)

    def restore(self, task: Task) -> bool:
        return task.change("archived", False)

    def archive_done(self) -> int:
        done = [t for t in self.tasks if t.status is Status.DONE and not t.archived]
        for task in done:
            self.archive(task)
        if done:
            logger.debug("archived %d done tasks", len(done))
        return len(done)

    def delete(self, task: Task) -> None:
        """Remove permanently. Callers are expected to confirm first."""
        for idx, existing in enumerate(self.tasks):
            if existing is task:
                del self.tasks[idx]
                logger.debug("deleted %s", task.id)
                return
        raise TaskNotFound(task.id)

    # -------------------- subtasks --------------------
    def add_subtask(self, task: Task, text: str) -> Subtask:
        text = (text or "").strip()
        if not text:
            raise InvalidInput("Subtask text required.")
        sub = Subtask(text=text)
        task.subtasks.append(sub)
        task.record(f"Added subtask: {text}")
        return sub

    def toggle_subtask(self, task: Task, index: int) -> Subtask:
        sub = task.subtasks[_check_index(task, index)]
        sub.done = not sub.done
        task.record(f"Subtask '{sub.text}' {'completed' if sub.done else 'uncompleted'}")
        return sub

    def reorder_subtask(self, task: Task, index: int, direction: int) -> bool:
        """Swap with the neighbour. Position changes are not written to the log."""
        idx = _check_index(task, index)
        other = idx + _direction(direction)
        if other < 0 or other >= len(task.subtasks):
            return False
        task.subtasks[idx], task.subtasks[other] = task.subtasks[other], task.subtasks[idx]
        return True

    def remove_subtask(self, task: Task, index: int) -> Subtask:
        sub = task.subtasks.pop(_check_index(task, index))
        task.record(f"Removed subtask: {sub.text}")
        return sub

    def __len__(self) -> int:
        return len(self.tasks)

    def __str__(self) -> str:
        counts = self.counts()
        parts = [f"{status}: {counts[status]} tasks" for status in STATUS_ORDER]
        archived = sum(1 for t in self.tasks if t.archived)
        return ", ".join(parts) + f", Archived: {archived} tasks"


# -------------------- validation helpers --------------------
def _clean_title(value: Any) -> str:
    title = str(value or "").strip()
    if not title:
        raise InvalidInput("Title required.")
    return title


def _clean_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _clean_priority(value: Any) -> int:
    try:
        priority = int(value)
    except (TypeError, ValueError):
        priority = next((i for i, label in enumerate(PRIORITY_LABELS)
                         if label.lower() == str(value).strip().lower()), -1)
    if not 0 <= priority < len(PRIORITY_LABELS):
        raise InvalidInput(f"Priority must be 0-{len(PRIORITY_LABELS) - 1}: {value!r}")
    return priority


def _clean_status(value: Any) -> Status:
    return value if isinstance(value, Status) else Status.parse(value)


def _direction(value: int) -> Direction:
    try:
        return Direction(value)
    except ValueError:
        raise InvalidInput(f"Direction must be -1 or 1: {value!r}") from None


def _check_index(task: Task, index: int) -> int:
    if not isinstance(index, int) or not 0 <= index < len(task.subtasks):
        raise InvalidInput(f"No subtask #{index} on task {task.id}.")
    return index


_FIELD_CLEANERS: Dict[str, Callable[[Any], Any]] = {
    "title": _clean_title,
    "notes": _clean_text,
    "tags": _clean_text,
    "link": _clean_text,
    "priority": _clean_priority,
    "status": _clean_status,
}
