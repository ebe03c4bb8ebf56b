"""
Terminal output for depfloor commands, built on Rich.

Everything a user is meant to read goes through here: one-line status
messages, result tables and the spinner shown while a batch resolves.
Diagnostics belong to :mod:`depfloor.utils.logger` instead.

The Rich console is created lazily and honours ``NO_COLOR`` and ``CI``;
call :func:`reconfigure_console` after changing either at runtime.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.status import Status
from rich.console import Console

DEPFLOOR_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
    }
)

#: Rich color per update classification; unlisted types stay unstyled.
UPDATE_TYPE_COLORS: Dict[str, str] = {
    "same": "dim",
    "patch": "green",
    "minor": "yellow",
    "major": "red",
    "update": "yellow",
    "new": "cyan",
    "downgrade": "red",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _color_enabled() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def get_raw_console() -> Console:
    """Return the shared Rich console, creating it on first use."""
    global _console

    with _console_lock:
        if _console is None:
            color = _color_enabled()
            _console = Console(theme=DEPFLOOR_THEME, no_color=not color, highlight=color)
        return _console


def reconfigure_console() -> None:
    """Drop the shared console so the next call re-reads the environment."""
    global _console
    with _console_lock:
        _console = None


def print_success(message: str) -> None:
    get_raw_console().print(f"[OK] {message}", style="success")


def print_error(message: str) -> None:
    get_raw_console().print(f"[ERROR] {message}", style="error")


def print_warning(message: str) -> None:
    get_raw_console().print(f"[WARNING] {message}", style="warning")


def print_table(
    rows: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
) -> None:
    """Render *rows* as a table; nothing is printed for an empty list.

    Args:
        rows: One dict per row, keyed by column header. Values may
            contain Rich markup.
        headers: Column order; defaults to the keys of the first row.
        title: Table title.
        column_styles: Keyword arguments for ``Table.add_column`` per
            header (``style``, ``justify``, ``no_wrap``).
    """
    if not rows:
        return

    headers = headers or list(rows[0])
    column_styles = column_styles or {}

    table = Table(title=title, header_style="bold")
    for header in headers:
        table.add_column(header, overflow="fold", **column_styles.get(header, {}))
    for row in rows:
        table.add_row(*(str(row.get(h, "")) for h in headers))

    get_raw_console().print(table)


def colorize_update_type(update_type: str) -> str:
    """Wrap an update classification (``"major"``, ``"same"``, ...) in Rich markup."""
    color = UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type


def status(message: str) -> Status:
    """Return a spinner on the shared console; use it as a context manager."""
    return get_raw_console().status(f"[info]{message}[/info]", spinner="dots")
