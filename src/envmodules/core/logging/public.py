# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing diagnostic helpers with optional colour support."""

from __future__ import annotations

from rich.text import Text

from ...runtime.console.manager import detect_tty, get_console_manager

SEPARATOR_WIDTH = 67
DEFAULT_COLUMNS = 80


def print_line(
    msg: str,
    *,
    style: str | None = None,
    use_color: bool | None = None,
    nonewline: bool = False,
) -> None:
    """Render ``msg`` on the stderr console.

    Args:
        msg: Message text to print.
        style: Rich style name to apply when colour output is active.
        use_color: Optional explicit colour flag overriding TTY detection.
        nonewline: Omit the trailing newline.
    """

    color_enabled = detect_tty() if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text, end="" if nonewline else "\n")


def separator(title: str = "", *, columns: int = DEFAULT_COLUMNS) -> str:
    """Return a dashed separator line, centring ``title`` when provided.

    Args:
        title: Optional text embedded in the line.
        columns: Terminal width; an untitled line never exceeds 67 dashes.

    Returns:
        str: Separator text without trailing newline.
    """

    if not title:
        return "-" * min(columns, SEPARATOR_WIDTH)
    left = max(1, (columns - len(title) - 2) // 2)
    right = max(1, columns - len(title) - 2 - left)
    return f"{'-' * left} {title} {'-' * right}"


__all__ = ["DEFAULT_COLUMNS", "SEPARATOR_WIDTH", "print_line", "separator"]
