"""Board file persistence: bootstrap, round trip, and degraded modes."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from board import Board
from errors import StorageReadFailure, StorageWriteFailure
from models import Direction, Status
from storage import BROKEN_SUFFIX, Storage, dumps


def test_missing_file_bootstraps_saved_empty_board(storage: Storage, board_path: Path) -> None:
    assert not board_path.parent.exists()
    board = storage.load()
    assert len(board) == 0
    assert storage.last_error is None
    assert json.loads(board_path.read_text(encoding="utf-8")) == {"tasks": []}


def test_round_trip_preserves_everything_in_order(populated: Board, storage: Storage) -> None:
    task = populated.tasks[1]
    populated.move(task, Direction.FORWARD)
    populated.add_subtask(task, "repro")
    populated.add_subtask(task, "patch")
    populated.toggle_subtask(task, 1)
    populated.set_field(task, "link", "https://tracker/ISSUE-1")

    assert storage.save(populated) is True
    loaded = storage.load()

    assert loaded.tasks == populated.tasks
    assert [t.id for t in loaded.tasks] == [t.id for t in populated.tasks]
    assert loaded.tasks[1].status is Status.DOING
    assert [s.done for s in loaded.tasks[1].subtasks] == [False, True]


def test_file_layout(board: Board, storage: Storage, board_path: Path) -> None:
    task = board.create("Fix login bug")
    storage.save(board)
    text = board_path.read_text(encoding="utf-8")
    record = json.loads(text)["tasks"][0]
    assert record["id"] == task.id
    assert record["status"] == "Todo"
    assert record["notes"] is None
    assert record["createdAt"] == task.created_at
    assert record["log"] == [{"timestamp": task.created_at, "action": "Created"}]
    assert text.endswith("\n")
    assert '\n    "tasks": [\n' in text


def test_serialization_is_deterministic(populated: Board, storage: Storage, board_path: Path) -> None:
    storage.save(populated)
    first = board_path.read_bytes()
    storage.save(storage.load())
    assert board_path.read_bytes() == first
    assert dumps(populated) == first.decode("utf-8")


def test_non_ascii_is_written_verbatim(board: Board, storage: Storage, board_path: Path) -> None:
    task = board.create("Übersetzung")
    board.move(task, Direction.FORWARD)
    storage.save(board)
    text = board_path.read_text(encoding="utf-8")
    assert "Übersetzung" in text
    assert "Todo → Doing" in text


LOG = '"log": [{"timestamp": "2026-10-18 09:30", "action": "Created"}]'


@pytest.mark.parametrize(
    "content",
    [
        "{ not json",
        "[]",
        '{"tasks": {}}',
        '{"tasks": [{"id": "a", "title": "t", "status": "Blocked", ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", ' + LOG + "}, "
        '{"id": "a", "title": "u", "status": "Done", ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "subtasks": ["x"], ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "subtasks": [null], ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "subtasks": "abc", ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "priority": "2", ' + LOG + "}]}",
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "log": ["Created"]}]}',
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo", "log": []}]}',
        '{"tasks": [{"id": "a", "title": "t", "status": "Todo"}]}',
    ],
)
def test_corrupt_file_gives_empty_unsaved_board(
    storage: Storage, board_path: Path, content: str, caplog: pytest.LogCaptureFixture
) -> None:
    board_path.parent.mkdir(parents=True)
    board_path.write_text(content, encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="kanban.storage"):
        board = storage.load()

    assert len(board) == 0
    assert isinstance(storage.last_error, StorageReadFailure)
    assert board_path.read_text(encoding="utf-8") == content
    assert "Failed to load" in caplog.text


def test_unreadable_path_is_a_read_failure(tmp_path: Path) -> None:
    storage = Storage(tmp_path)
    assert len(storage.load()) == 0
    assert isinstance(storage.last_error, StorageReadFailure)


def test_first_save_after_corrupt_load_keeps_a_backup(storage: Storage, board_path: Path) -> None:
    board_path.parent.mkdir(parents=True)
    board_path.write_text("{ not json", encoding="utf-8")
    board = storage.load()
    board.create("fresh start")

    assert storage.save(board) is True
    backup = board_path.with_name(board_path.name + BROKEN_SUFFIX)
    assert backup.read_text(encoding="utf-8") == "{ not json"
    assert len(storage.load()) == 1

    storage.save(board)
    assert not backup.with_name(backup.name + ".1").exists()


def test_existing_backup_is_not_overwritten(storage: Storage, board_path: Path) -> None:
    board_path.parent.mkdir(parents=True)
    backup = board_path.with_name(board_path.name + BROKEN_SUFFIX)
    backup.write_text("older", encoding="utf-8")
    board_path.write_text("newer", encoding="utf-8")
    storage.save(storage.load())
    assert backup.read_text(encoding="utf-8") == "older"
    assert backup.with_name(backup.name + ".1").read_text(encoding="utf-8") == "newer"


def test_write_failure_is_reported_not_raised(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    storage = Storage(blocker / "kanban_board.json")
    board = Board()
    task = board.create("survives")

    with caplog.at_level(logging.ERROR, logger="kanban.storage"):
        assert storage.save(board) is False

    assert isinstance(storage.last_error, StorageWriteFailure)
    assert board.tasks == [task]
    assert "Failed to save" in caplog.text


def test_failed_save_leaves_previous_file_intact(board: Board, storage: Storage, board_path: Path,
                                                 monkeypatch: pytest.MonkeyPatch) -> None:
    board.create("v1")
    storage.save(board)
    before = board_path.read_text(encoding="utf-8")

    def boom(*args, **kwargs):
        raise PermissionError("read-only")

    monkeypatch.setattr("storage.os.replace", boom)
    board.create("v2")
    assert storage.save(board) is False
    assert board_path.read_text(encoding="utf-8") == before
    assert not board_path.with_name(board_path.name + ".tmp").exists()
    assert storage.last_error is not None and "read-only" in str(storage.last_error)
