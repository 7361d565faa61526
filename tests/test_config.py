"""Environment-driven configuration and palette overrides."""
from __future__ import annotations

import logging
from pathlib import Path

from config import Config
from log import LOG_FILE_NAME, setup_logging
from storage import DEFAULT_BOARD_FILE
from theme import DEFAULT_PALETTE, read_dotenv, resolve_palette


def test_defaults() -> None:
    config = Config.from_env({})
    assert config.board_file == DEFAULT_BOARD_FILE
    assert config.alt_screen is True
    assert config.log_dir is None
    assert config.verbose is False


def test_env_overrides(tmp_path: Path) -> None:
    config = Config.from_env({
        "KANBAN_FILE": str(tmp_path / "b.json"),
        "KANBAN_ALT_SCREEN": "off",
        "KANBAN_LOG_DIR": str(tmp_path / "logs"),
        "KANBAN_VERBOSE": "1",
    })
    assert config.board_file == tmp_path / "b.json"
    assert config.alt_screen is False
    assert config.log_dir == tmp_path / "logs"
    assert config.verbose is True


def test_dotenv_palette(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# colours\nKANBAN_TODO=#112233\nKANBAN_DONE=zzzzzz\nOTHER=#445566\nbroken line\n",
        encoding="utf-8",
    )
    dotenv = read_dotenv(env_file)
    assert dotenv == {"KANBAN_TODO": "#112233"}
    palette = resolve_palette({"KANBAN_TODO": "abcdef", "KANBAN_DOING": "#010203"}, dotenv)
    assert palette["KANBAN_TODO"] == "#abcdef"
    assert palette["KANBAN_DOING"] == "#010203"
    assert palette["KANBAN_DONE"] == DEFAULT_PALETTE["KANBAN_DONE"]


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("kanban.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in (tmp_path / "logs" / LOG_FILE_NAME).read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
