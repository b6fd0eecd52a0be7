"""
Rich console output for depscout commands.

Status lines, tables and the markup used for package statuses and change
types. Diagnostics belong in :mod:`depscout.utils.logger`.
"""

from __future__ import annotations

import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

from depscout.utils.logger import stream_supports_color

# ---------------------------------------------------------------------------
# Theme and markup colors
# ---------------------------------------------------------------------------

DEPSCOUT_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

_CHANGE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "error": "magenta",
}

_STATUS_COLORS: Dict[str, str] = {
    "up-to-date": "green",
    "outdated": "yellow",
    "error": "red",
}

# ---------------------------------------------------------------------------
# Console singleton
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()
_color_override: Optional[bool] = None


def _should_use_color() -> bool:
    """``--color/--no-color`` wins; otherwise stdout must be a color terminal."""
    if _color_override is not None:
        return _color_override
    return stream_supports_color(sys.stdout)


def _get_console() -> Console:
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=DEPSCOUT_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console(*, color: Optional[bool] = None) -> None:
    """Drop the current console so the next print builds a fresh one.

    Args:
        color: Force colors on or off; ``None`` goes back to detecting them
            from the environment and stdout.
    """
    global _console, _color_override
    with _console_lock:
        _color_override = color
        _console = None


def get_raw_console() -> Console:
    """Return the shared Rich console for output the helpers don't cover."""
    return _get_console()


# ---------------------------------------------------------------------------
# Status lines
# ---------------------------------------------------------------------------


def _print_status(style: str, prefix: str, message: str) -> None:
    _get_console().print(f"{prefix} {message}", style=style)


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _print_status("success", prefix, message)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _print_status("error", prefix, message)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _print_status("warning", prefix, message)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
) -> None:
    """Render rows of package data as a Rich table.

    Cell values may contain Rich markup such as the output of
    :func:`colorize_status`. Nothing is printed for an empty ``data``.

    Args:
        data: One dictionary per row.
        headers: Column order; defaults to the keys of the first row.
        title: Table title.
        caption: Table caption.
        column_styles: Per-column ``style``, ``justify`` and ``no_wrap``.
        row_styler: Returns a style for a whole row, or ``None``.
    """
    if not data:
        return

    columns = headers or list(data[0])
    column_styles = column_styles or {}

    table = Table(title=title, caption=caption, show_header=True, header_style="bold")
    for column in columns:
        options = column_styles.get(column, {})
        table.add_column(
            column,
            style=options.get("style"),
            justify=options.get("justify", "default"),
            no_wrap=options.get("no_wrap", False),
            overflow="fold",
        )

    for row in data:
        table.add_row(
            *(str(row.get(column, "")) for column in columns),
            style=row_styler(row) if row_styler else None,
        )

    _get_console().print(table)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


def _colorize(label: str, colors: Dict[str, str]) -> str:
    color = colors.get(label.lower())
    return f"[{color}]{label}[/{color}]" if color else label


def colorize_change_type(change_type: str) -> str:
    """Rich markup for a ``major``/``minor``/``patch`` label.

    Example:
        >>> colorize_change_type("major")
        '[red]major[/red]'
    """
    return _colorize(change_type, _CHANGE_TYPE_COLORS)


def colorize_status(status: str) -> str:
    """Rich markup for an ``up-to-date``/``outdated``/``error`` status."""
    return _colorize(status, _STATUS_COLORS)
