"""Runtime configuration for the Kanban board.

Resolution order: command-line flag > environment variable > default.

    KANBAN_FILE        board file (default ./kanban_board.json)
    KANBAN_ALT_SCREEN  use the terminal alternate screen (default on)
    KANBAN_LOG_DIR     directory for kanban.log (default: no file log)
    KANBAN_VERBOSE     debug logging on stderr
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os

from storage import DEFAULT_BOARD_FILE

VERSION = "1.0.0"


def _truthy_env(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass
class Config:
    board_file: Path = DEFAULT_BOARD_FILE
    alt_screen: bool = True
    log_dir: Optional[Path] = None
    verbose: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        env = os.environ if environ is None else environ
        log_dir = env.get("KANBAN_LOG_DIR")
        return cls(
            board_file=Path(env.get("KANBAN_FILE") or DEFAULT_BOARD_FILE),
            alt_screen=_truthy_env(env.get("KANBAN_ALT_SCREEN"), True),
            log_dir=Path(log_dir) if log_dir else None,
            verbose=_truthy_env(env.get("KANBAN_VERBOSE"), False),
        )
