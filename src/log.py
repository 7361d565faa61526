"""Logging setup for the Kanban board.

The REPL owns the terminal, so the console handler stays at WARNING unless
--verbose is given. Only "kanban.*" loggers reach the console; a file log,
when configured, gets everything.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import logging
import sys

LOG_FILE_NAME = "kanban.log"


class _ConsoleFilter(logging.Filter):
    """Keep our own records; third-party noise only at ERROR and above."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "kanban" or record.name.startswith("kanban."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    verbose: bool = False,
    log_dir: Optional[Union[str, Path]] = None,
) -> None:
    """Configure the root logger. Call once, before the first log line."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if verbose else logging.WARNING)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleFilter())
    root.addHandler(ch)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
