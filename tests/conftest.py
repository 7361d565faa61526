"""Shared fixtures for the Kanban tests.

File handling: every board file lives under tmp_path.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from board import Board
from cli import CLI
from models import Status
from storage import Storage


@pytest.fixture
def board() -> Board:
    return Board()


@pytest.fixture
def board_path(tmp_path: Path) -> Path:
    return tmp_path / "kanban" / "kanban_board.json"


@pytest.fixture
def storage(board_path: Path) -> Storage:
    return Storage(board_path)


@pytest.fixture
def populated(board: Board) -> Board:
    """Board with one task per column plus an archived one."""
    board.create("Write design notes", Status.BACKLOG)
    fix = board.create("Fix login bug")
    board.set_field(fix, "tags", "auth,urgent")
    board.set_field(fix, "priority", 0)
    board.create("Ship release", Status.DOING)
    done = board.create("Set up CI", Status.DONE)
    board.add_subtask(done, "pick runner")
    old = board.create("Old spike", Status.DONE)
    board.archive(old)
    return board


class FakeFrontEnd:
    """Records confirmation prompts and opened links."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.prompts: List[str] = []
        self.opened: List[str] = []

    def confirm(self, text: str) -> bool:
        self.prompts.append(text)
        return self.answer

    def open(self, url: str) -> None:
        self.opened.append(url)


@pytest.fixture
def front_end() -> FakeFrontEnd:
    return FakeFrontEnd()


@pytest.fixture
def make_cli(board: Board, storage: Storage, front_end: FakeFrontEnd):
    """Factory for a REPL wired to tmp storage and the fake front end."""

    def _make(target: Board = None) -> CLI:
        return CLI(target if target is not None else board, storage, alt_screen=False,
                   confirm=front_end.confirm, opener=front_end.open)

    return _make
