"""Command-line interface loop for the Kanban board.

The REPL owns no task data. It keeps transient view state (search text,
archive toggle, last message) in a ViewState, turns each command into one
Board operation and saves the whole board after every command that changed
something.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import shutil

import click

from board import Board
from errors import KanbanError, InvalidInput
from models import Direction, Status, Task
from render import render_archive, render_board, render_task
from storage import Storage

# --- terminal control helpers ---
# ESC[3J (scrollback), ESC[H (home), ESC[2J (screen), ESC[H (home); 3J first
# is more reliable on some terminals.
def _clear_screen() -> None:
    print("\033[3J\033[H\033[2J\033[H", end="", flush=True)


def _enter_alt_screen() -> None:
    print("\033[?1049h", end="", flush=True)


def _leave_alt_screen() -> None:
    print("\033[?1049l", end="", flush=True)


STATUS_ALIASES: Dict[str, Status] = {
    'b': Status.BACKLOG,
    'backlog': Status.BACKLOG,
    't': Status.TODO,
    'todo': Status.TODO,
    'ip': Status.DOING,
    'doing': Status.DOING,
    'in-progress': Status.DOING,
    'd': Status.DONE,
    'done': Status.DONE,
}

SUBTASK_ACTIONS = ('add', 'done', 'up', 'down', 'rm')

HELP_LINES = (
    "Commands:",
    "  add [@status] <title>      Add a task (default column Todo), e.g. add @b write docs",
    "  mv <id> <status>           Move to a column; aliases: b, t, ip, d",
    "  < <id>  /  > <id>          Move one column back / forward",
    "  edit <id> <field> <value>  Edit title, notes, tags, link, priority (0-3) or status",
    "  dup <id>                   Duplicate a task (subtasks come unchecked)",
    "  arch <id> / restore <id>   Archive or restore a task",
    "  archdone                   Archive every task in Done",
    "  rm <id>                    Delete a task (asks first)",
    "  sub <id> add <text>        Add a subtask",
    "  sub <id> done|up|down|rm <n>  Toggle, reorder or remove subtask n",
    "  show <id>                  Task details, subtasks and activity log",
    "  open <id>                  Open the task link in a browser",
    "  find [query]               Filter by title, notes, tags or link; no query clears",
    "  archive                    Toggle the archive view",
    "  help                       Show this help (press Enter to return)",
    "  exit                       Save and exit",
    "Ids can be shortened to any unique prefix.",
)


@dataclass
class ViewState:
    """Per-session UI state; never persisted."""
    search: str = ""
    show_archive: bool = False
    message: Optional[str] = None


class CLI:
    def __init__(
        self,
        board: Board,
        storage: Storage,
        alt_screen: bool = True,
        confirm: Callable[[str], bool] = lambda text: click.confirm(text, default=False),
        opener: Callable[[str], object] = click.launch,
    ):
        self.board: Board = board
        self.storage = storage
        self.alt_screen = alt_screen
        self.confirm = confirm
        self.opener = opener
        self.view = ViewState()
        self._line = ""
        self._commands: Dict[str, Callable[[List[str]], bool]] = {
            'add': self._cmd_add,
            'mv': self._cmd_mv,
            '<': self._cmd_back,
            '>': self._cmd_forward,
            'edit': self._cmd_edit,
            'dup': self._cmd_dup,
            'arch': self._cmd_arch,
            'restore': self._cmd_restore,
            'archdone': self._cmd_archdone,
            'rm': self._cmd_rm,
            'sub': self._cmd_sub,
            'show': self._cmd_show,
            'open': self._cmd_open,
            'find': self._cmd_find,
            'archive': self._cmd_archive,
        }

    def run(self) -> None:
        """Main REPL loop; the board is cleared and redrawn every cycle."""
        if self.alt_screen:
            _enter_alt_screen()
        exit_message: Optional[str] = None
        try:
            while True:
                self._redraw()
                line = input("\n: ").strip()
                if not line:
                    continue
                lower = line.lower()
                if lower == 'help':
                    _clear_screen()
                    print("\n".join(HELP_LINES))
                    input("\nPress Enter to return to the board...")
                    continue
                if lower == 'exit':
                    exit_message = "Goodbye."
                    break
                self.handle(line)
        except (KeyboardInterrupt, EOFError):
            exit_message = "Interrupted. Goodbye."
        finally:
            if self.alt_screen:
                _leave_alt_screen()
            if exit_message:
                print(exit_message)

    def _redraw(self) -> None:
        _clear_screen()
        width = shutil.get_terminal_size((120, 30)).columns
        if self.view.show_archive:
            lines = render_archive(self.board, self.view.search)
        else:
            print("Kanban Board:")
            lines = render_board(self.board, self.view.search, width)
        print("\n".join(lines))
        if self.view.search:
            print(f'\nFilter: "{self.view.search}"')
        if self.view.message:
            print(f"\n{self.view.message}")
            self.view.message = None

    # -------------------- command dispatch --------------------
    def handle(self, line: str) -> bool:
        """Run one command line. Saves and returns True when the board changed."""
        tokens = line.split()
        if not tokens:
            return False
        self._line = line.strip()
        handler = self._commands.get(tokens[0].lower())
        if handler is None:
            self.view.message = "Unknown command. Type 'help' for instructions."
            return False
        try:
            changed = handler(tokens)
        except KanbanError as exc:
            self.view.message = str(exc)
            return False
        if changed and not self.storage.save(self.board):
            self.view.message = f"{self.storage.last_error} (changes kept in memory)"
        return changed

    def _task(self, tokens: List[str], usage: str, min_len: int = 2) -> Task:
        if len(tokens) < min_len:
            raise InvalidInput(f"Usage: {usage}")
        return self.board.find(tokens[1])

    # ---- individual command helpers ----
    def _cmd_add(self, tokens: List[str]) -> bool:
        words = tokens[1:]
        status = Status.TODO
        if words and words[0].startswith('@'):
            status = _parse_status(words[0][1:])
            words = words[1:]
        task = self.board.create(' '.join(words), status)
        self.view.message = f'Added {task.id[:6]} "{task.title}" to {status}.'
        return True

    def _cmd_mv(self, tokens: List[str]) -> bool:
        task = self._task(tokens, "mv <id> <status>; statuses: b/t/ip/d", 3)
        status = _parse_status(tokens[2])
        if not self.board.move_to(task, status):
            self.view.message = f'"{task.title}" already in {status}.'
            return False
        return True

    def _step(self, tokens: List[str], direction: Direction) -> bool:
        task = self._task(tokens, f"{tokens[0]} <id>")
        if not self.board.move(task, direction):
            self.view.message = f'"{task.title}" is already in {task.status}.'
            return False
        return True

    def _cmd_back(self, tokens: List[str]) -> bool:
        return self._step(tokens, Direction.BACK)

    def _cmd_forward(self, tokens: List[str]) -> bool:
        return self._step(tokens, Direction.FORWARD)

    def _cmd_edit(self, tokens: List[str]) -> bool:
        task = self._task(tokens, "edit <id> <field> <value>", 3)
        name = tokens[2].lower()
        # value is the rest of the raw line so inner spacing survives
        parts = self._line.split(None, 3)
        value: Optional[str] = parts[3] if len(parts) > 3 else ''
        if name in ('notes', 'tags', 'link') and not value:
            value = None
        return self.board.set_field(task, name, value)

    def _cmd_dup(self, tokens: List[str]) -> bool:
        clone = self.board.duplicate(self._task(tokens, "dup <id>"))
        self.view.message = f'Duplicated as {clone.id[:6]}.'
        return True

    def _cmd_arch(self, tokens: List[str]) -> bool:
        return self.board.archive(self._task(tokens, "arch <id>"))

    def _cmd_restore(self, tokens: List[str]) -> bool:
        return self.board.restore(self._task(tokens, "restore <id>"))

    def _cmd_archdone(self, tokens: List[str]) -> bool:
        count = self.board.archive_done()
        self.view.message = f"Archived {count} tasks." if count else "Nothing in Done to archive."
        return count > 0

    def _cmd_rm(self, tokens: List[str]) -> bool:
        task = self._task(tokens, "rm <id>")
        if not self.confirm(f'Delete "{task.title}"?'):
            return False
        self.board.delete(task)
        self.view.message = f'Task "{task.title}" removed.'
        return True

    def _cmd_sub(self, tokens: List[str]) -> bool:
        usage = "sub <id> add <text> | sub <id> done|up|down|rm <n>"
        task = self._task(tokens, usage, 4)
        action = tokens[2].lower()
        if action not in SUBTASK_ACTIONS:
            raise InvalidInput(f"Usage: {usage}")
        if action == 'add':
            self.board.add_subtask(task, ' '.join(tokens[3:]))
            return True
        if not tokens[3].isdigit():
            raise InvalidInput("Subtask number required.")
        index = int(tokens[3]) - 1
        if action == 'done':
            self.board.toggle_subtask(task, index)
            return True
        if action == 'rm':
            self.board.remove_subtask(task, index)
            return True
        direction = Direction.BACK if action == 'up' else Direction.FORWARD
        return self.board.reorder_subtask(task, index, direction)

    def _cmd_show(self, tokens: List[str]) -> bool:
        task = self._task(tokens, "show <id>")
        _clear_screen()
        print("\n".join(render_task(task)))
        input("\nPress Enter to return to the board...")
        return False

    def _cmd_open(self, tokens: List[str]) -> bool:
        task = self._task(tokens, "open <id>")
        if task.is_openable():
            self.opener(task.link.strip())
        else:
            self.view.message = "Task has no web link to open."
        return False

    def _cmd_find(self, tokens: List[str]) -> bool:
        self.view.search = ' '.join(tokens[1:]).strip()
        return False

    def _cmd_archive(self, tokens: List[str]) -> bool:
        self.view.show_archive = not self.view.show_archive
        return False


def _parse_status(raw: str) -> Status:
    status = STATUS_ALIASES.get(raw.lower())
    if status is None:
        raise InvalidInput(f"Invalid status: {raw}")
    return status
