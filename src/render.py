"""Terminal rendering of the board: column layout, card wrapping, detail views.

Everything returns lists of lines instead of printing so the REPL decides
where output goes. Widths are measured on the visible text (ANSI codes
stripped).
"""
from __future__ import annotations
from typing import Dict, List, Mapping, Sequence
import re

from board import Board
from models import PRIORITY_LABELS, STATUS_ORDER, Status, Task
from theme import (
    BOLD, DIM, EMPTY_COLOR, HEADER_COLOR, ID_COLOR, PRIORITY_COLOR, STATUS_COLOR, color,
)

ID_WIDTH = 6
MIN_COL_WIDTH = 16
SEP = " | "
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
STATUS_ICONS: Dict[Status, str] = {
    Status.BACKLOG: "\U0001F4CB",
    Status.TODO: "\U0001F4DD",
    Status.DOING: "\U0001F528",
    Status.DONE: "✅",
}


def visible_len(s: str) -> int:
    return len(ANSI_RE.sub('', s))


def short_id(task: Task) -> str:
    return task.id[:ID_WIDTH]


def header_text(status: Status, count: int) -> str:
    return f"{status.value.upper()} ({count})"


# -------------------- width calculation --------------------
def compute_column_widths(columns: Mapping[Status, Sequence[Task]], term_width: int) -> Dict[Status, int]:
    """Give each column room for its longest card, then shrink or pad to the terminal."""
    sep_total = len(SEP) * (len(STATUS_ORDER) - 1)
    widths: Dict[Status, int] = {}
    for status in STATUS_ORDER:
        longest = len(header_text(status, len(columns[status])))
        for t in columns[status]:
            longest = max(longest, ID_WIDTH + 1 + len(t.title) + len(_suffix(t)))
        widths[status] = max(MIN_COL_WIDTH, longest)
    total = sum(widths.values()) + sep_total
    if total > term_width:
        target_space = max(term_width - sep_total, len(STATUS_ORDER) * MIN_COL_WIDTH)
        while sum(widths.values()) > target_space:
            widest = max(STATUS_ORDER, key=lambda s: widths[s])
            if widths[widest] <= MIN_COL_WIDTH:
                break
            widths[widest] -= 1
    else:
        extra = term_width - total
        i = 0
        while extra > 0:
            widths[STATUS_ORDER[i % len(STATUS_ORDER)]] += 1
            extra -= 1
            i += 1
    return widths


# -------------------- wrapping --------------------
def _suffix(task: Task) -> str:
    done, total = task.progress()
    return f" [{done}/{total}]" if total else ""


def wrap_words(text: str, limit: int) -> List[str]:
    lines: List[str] = []
    current = ''
    for w in text.split():
        while len(w) > limit:
            if current:
                lines.append(current)
                current = ''
            lines.append(w[:limit])
            w = w[limit:]
        candidate = w if not current else current + ' ' + w
        if len(candidate) <= limit:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = w
    if current:
        lines.append(current)
    return lines or ['']


def wrap_card(task: Task, col_width: int) -> List[str]:
    """Card = priority-coloured id, title wrapped under it, subtask progress at the end."""
    prefix_space = ID_WIDTH + 1
    limit = max(1, col_width - prefix_space)
    raw = wrap_words(task.title + _suffix(task), limit)
    id_cell = color(short_id(task), PRIORITY_COLOR[task.priority], BOLD) + ' '
    status_col = STATUS_COLOR.get(task.status.value, '')
    out = [id_cell + color(raw[0], status_col)]
    out.extend(' ' * prefix_space + color(line, status_col) for line in raw[1:])
    return out


# -------------------- board --------------------
def render_board(board: Board, query: str = "", term_width: int = 120) -> List[str]:
    columns = board.columns(query)
    widths = compute_column_widths(columns, term_width)
    cells: Dict[Status, List[str]] = {}
    for status in STATUS_ORDER:
        if not columns[status]:
            cells[status] = [color('(empty)', EMPTY_COLOR)]
            continue
        acc: List[str] = []
        for t in columns[status]:
            acc.extend(wrap_card(t, widths[status]))
        cells[status] = acc

    lines = [
        SEP.join(_pad(color(header_text(s, len(columns[s])), HEADER_COLOR, BOLD), widths[s])
                 for s in STATUS_ORDER),
        SEP.join(color('-' * widths[s], HEADER_COLOR) for s in STATUS_ORDER),
    ]
    rows = max(len(cells[s]) for s in STATUS_ORDER)
    for r in range(rows):
        lines.append(SEP.join(
            _pad(cells[s][r], widths[s]) if r < len(cells[s]) else ' ' * widths[s]
            for s in STATUS_ORDER))
    return lines


def _pad(text: str, width: int) -> str:
    pad = width - visible_len(text)
    return text + ' ' * pad if pad > 0 else text


def render_archive(board: Board, query: str = "") -> List[str]:
    shelved = board.archived(query)
    lines = [color(f"ARCHIVED TASKS ({len(shelved)})", HEADER_COLOR, BOLD)]
    if not shelved:
        lines.append(color('No archived tasks.', EMPTY_COLOR))
    for t in shelved:
        lines.append(f"{color(short_id(t), ID_COLOR)}  {t.title}  "
                     + color(f"{t.status.value} - created {t.created_at}", DIM))
    return lines


# -------------------- task detail --------------------
def render_task(task: Task) -> List[str]:
    lines = [
        color(task.title, BOLD) + color(f"  [{task.id}]", DIM),
        f"Status: {STATUS_ICONS[task.status]} {task.status.value}   "
        f"Priority: {color(PRIORITY_LABELS[task.priority], PRIORITY_COLOR[task.priority])}"
        + ("   (archived)" if task.archived else ""),
    ]
    if task.tags:
        lines.append(f"Tags: {task.tags}")
    if task.link:
        lines.append(f"Link: {task.link}" + ("" if task.is_openable() else color("  (not a web link)", DIM)))
    if task.notes:
        lines.append("Notes:")
        lines.extend("  " + line for line in task.notes.splitlines())
    lines.append(color(f"Created: {task.created_at}", DIM))

    done, total = task.progress()
    if total:
        lines.append(f"Subtasks: {done}/{total} ({100 * done // total}%)")
        for i, sub in enumerate(task.subtasks, start=1):
            mark = "[x]" if sub.done else "[ ]"
            lines.append(f"  {i}. {mark} " + (color(sub.text, DIM) if sub.done else sub.text))

    lines.append("Activity:")
    for entry in reversed(task.log):
        lines.append(f"  {color(entry.timestamp, DIM)}  {entry.action}")
    return lines
