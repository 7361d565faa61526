"""Error taxonomy for the Kanban board.

Nothing here is fatal: the REPL reports any KanbanError and keeps going,
and the storage layer turns its own failures into log lines.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional


class KanbanError(Exception):
    """Base class for every error raised by the board."""


class InvalidInput(KanbanError, ValueError):
    """Rejected edit (blank title, bad priority, bad index...). No state changed."""


class TaskNotFound(KanbanError, LookupError):
    def __init__(self, key: str):
        super().__init__(f'Task "{key}" not found.')
        self.key = key


class StorageError(KanbanError):
    verb = "Storage failure on"

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{self.verb} {path}{detail}")


class StorageReadFailure(StorageError):
    verb = "Failed to load"


class StorageWriteFailure(StorageError):
    verb = "Failed to save"
