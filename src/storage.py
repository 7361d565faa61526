"""Persistence helpers (load/save) for the Kanban board.

The whole board is written on every save, pretty-printed with a fixed key
order, so a version-control diff of the file shows only what changed.
Storage problems never propagate: they are logged, kept on
``Storage.last_error`` and the in-memory board stays authoritative.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import contextlib
import json
import logging
import os
import shutil

from board import Board
from errors import KanbanError, StorageReadFailure, StorageWriteFailure

DEFAULT_BOARD_FILE = Path("kanban_board.json")
JSON_INDENT = 4
BROKEN_SUFFIX = ".corrupt"

logger = logging.getLogger("kanban.storage")


def dumps(board: Board) -> str:
    """Serialize deterministically: same board, same bytes."""
    return json.dumps(board.to_dict(), indent=JSON_INDENT, ensure_ascii=False) + "\n"


def loads(text: str) -> Board:
    return Board.from_dict(json.loads(text))


class Storage:
    def __init__(self, path: Union[str, Path] = DEFAULT_BOARD_FILE):
        self.path = Path(path)
        self.last_error: Optional[KanbanError] = None
        self._keep_broken = False

    def load(self) -> Board:
        """Load the board from disk.

        Missing file -> a fresh empty board, saved straight away.
        Unreadable or malformed file -> an empty board that is NOT saved. The
        broken file is left alone; a later save first copies it to
        "<name>.corrupt" so it survives for manual recovery.
        """
        self.last_error = None
        if not self.path.exists():
            logger.info("no board at %s, creating one", self.path)
            board = Board()
            self.save(board)
            return board
        try:
            text = self.path.read_text(encoding="utf-8")
            board = loads(text)
        except (OSError, ValueError, TypeError) as exc:
            # json.JSONDecodeError and InvalidInput are both ValueErrors
            self.last_error = StorageReadFailure(self.path, exc)
            self._keep_broken = True
            logger.error("%s", self.last_error)
            return Board()
        logger.debug("loaded %d tasks from %s", len(board), self.path)
        return board

    def save(self, board: Board) -> bool:
        """Persist the full board. Returns False (after logging) if the write failed."""
        self.last_error = None
        if self._keep_broken and not self._backup_broken():
            return False
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(dumps(board), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            self.last_error = StorageWriteFailure(self.path, exc)
            logger.error("%s", self.last_error)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False
        logger.debug("saved %d tasks to %s", len(board), self.path)
        return True

    def _backup_broken(self) -> bool:
        """Copy an unreadable board file aside before the first overwrite."""
        backup = self.path.with_name(self.path.name + BROKEN_SUFFIX)
        n = 1
        while backup.exists():
            backup = self.path.with_name(f"{self.path.name}{BROKEN_SUFFIX}.{n}")
            n += 1
        try:
            if self.path.exists():
                shutil.copy2(self.path, backup)
                logger.warning("kept unreadable board as %s", backup)
        except OSError as exc:
            self.last_error = StorageWriteFailure(backup, exc)
            logger.error("%s", self.last_error)
            return False
        self._keep_broken = False
        return True
