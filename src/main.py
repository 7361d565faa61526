"""Main entry point for the terminal Kanban board (``kanban`` console script)."""
from __future__ import annotations
from pathlib import Path
from typing import Optional
import logging

import click

from cli import CLI
from config import VERSION, Config
from errors import StorageReadFailure
from log import setup_logging
from storage import Storage

logger = logging.getLogger("kanban.main")


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("-f", "--file", "board_file", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Board JSON file (env: KANBAN_FILE).")
@click.option("--alt-screen/--no-alt-screen", default=None,
              help="Draw on the terminal's alternate screen (env: KANBAN_ALT_SCREEN).")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging on stderr.")
@click.version_option(VERSION, prog_name="kanban")
def main(board_file: Optional[Path], alt_screen: Optional[bool], verbose: bool) -> None:
    """Kanban board for the terminal, stored as a diff-friendly JSON file."""
    config = Config.from_env()
    if board_file is not None:
        config.board_file = board_file
    if alt_screen is not None:
        config.alt_screen = alt_screen
    config.verbose = config.verbose or verbose
    setup_logging(verbose=config.verbose, log_dir=config.log_dir)

    storage = Storage(config.board_file)
    board = storage.load()
    logger.debug("board %s: %s", config.board_file, board)
    cli = CLI(board, storage, alt_screen=config.alt_screen)
    if isinstance(storage.last_error, StorageReadFailure):
        cli.view.message = f"{storage.last_error}. Starting with an empty board."
    elif storage.last_error is not None:
        cli.view.message = (f"{storage.last_error}. Could not create the board file; "
                            "changes stay in memory until a save succeeds.")
    cli.run()


if __name__ == "__main__":
    main()
