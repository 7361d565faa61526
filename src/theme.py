"""Colour & style helpers for the terminal board.

- Truecolor when COLORTERM says so, otherwise the xterm 256-colour cube.
- Off when stdout is not a TTY unless FORCE_COLOR=1; NO_COLOR always wins.
- Column colours can be overridden with KANBAN_PRIMARY / KANBAN_BACKLOG /
  KANBAN_TODO / KANBAN_DOING / KANBAN_DONE, from the environment or from a
  .env file in the working directory (real environment wins).
"""
from __future__ import annotations
import os, sys
from pathlib import Path
from typing import Dict, Mapping, Optional

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))

PALETTE_KEYS = ("KANBAN_PRIMARY", "KANBAN_BACKLOG", "KANBAN_TODO", "KANBAN_DOING", "KANBAN_DONE")

DEFAULT_PALETTE: Dict[str, str] = {
    "KANBAN_PRIMARY": "#476EAE",
    "KANBAN_BACKLOG": "#8C9BAB",
    "KANBAN_TODO": "#48B3AF",
    "KANBAN_DOING": "#F6FF99",
    "KANBAN_DONE": "#A7E399",
}

# Critical, High, Normal, Low
PRIORITY_HEX = ("#E05252", "#F0A040", "#5B8DEF", "#B0B0B0")


def _code(part: str) -> str:
    return f"\033[{part}m" if _ENABLE else ''


def _valid_hex(value: str) -> Optional[str]:
    h = value.strip().lstrip('#')
    if len(h) == 6 and all(c in '0123456789abcdefABCDEF' for c in h):
        return '#' + h
    return None


def _hex_to_rgb(hex_code: str) -> tuple[int, int, int]:
    h = hex_code.lstrip('#')
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    return f"\033[38;5;{16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)}m"


def from_hex(hex_code: str) -> str:
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)


def read_dotenv(path: Path) -> Dict[str, str]:
    """Palette entries from a .env file; malformed lines and colours are skipped."""
    found: Dict[str, str] = {}
    if not path.is_file():
        return found
    for line in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = (part.strip() for part in line.split('=', 1))
        hex_code = _valid_hex(v) if k in PALETTE_KEYS else None
        if hex_code:
            found[k] = hex_code
    return found


def resolve_palette(environ: Mapping[str, str], dotenv: Mapping[str, str]) -> Dict[str, str]:
    """Priority: real env var > .env override > default."""
    palette: Dict[str, str] = {}
    for key in PALETTE_KEYS:
        env_value = _valid_hex(environ.get(key, ""))
        palette[key] = env_value or dotenv.get(key) or DEFAULT_PALETTE[key]
    return palette


RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')

PALETTE = resolve_palette(os.environ, read_dotenv(Path.cwd() / '.env'))

PRIMARY = from_hex(PALETTE["KANBAN_PRIMARY"])
STATUS_COLOR: Dict[str, str] = {
    "Backlog": from_hex(PALETTE["KANBAN_BACKLOG"]),
    "Todo": from_hex(PALETTE["KANBAN_TODO"]),
    "Doing": from_hex(PALETTE["KANBAN_DOING"]),
    "Done": from_hex(PALETTE["KANBAN_DONE"]),
}
PRIORITY_COLOR = tuple(from_hex(h) for h in PRIORITY_HEX)

HEADER_COLOR = PRIMARY
ID_COLOR = PRIMARY + BOLD
EMPTY_COLOR = DIM + PRIMARY


def color(text: str, *styles: str) -> str:
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET


__all__ = [
    'color', 'from_hex', 'read_dotenv', 'resolve_palette', 'RESET', 'BOLD', 'DIM',
    'STATUS_COLOR', 'PRIORITY_COLOR', 'HEADER_COLOR', 'ID_COLOR', 'EMPTY_COLOR', 'PALETTE',
]
