# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Backslash escaping helpers shared by the path algebra and the renderers."""

from __future__ import annotations

import re
from functools import lru_cache

from ..constants import SHELL_ESCAPED_CHARS


@lru_cache(maxsize=32)
def _escape_pattern(chars: str) -> re.Pattern[str]:
    return re.compile(f"([{re.escape(chars)}])")


@lru_cache(maxsize=32)
def _unescape_pattern(chars: str) -> re.Pattern[str]:
    return re.compile(f"\\\\([{re.escape(chars)}])")


def char_escaped(text: str, chars: str = SHELL_ESCAPED_CHARS) -> str:
    """Return ``text`` with every character of ``chars`` prefixed by a backslash.

    Args:
        text: Raw value to escape.
        chars: Characters that must be escaped.

    Returns:
        str: Escaped value.
    """

    if not chars:
        return text
    return _escape_pattern(chars).sub(r"\\\1", text)


def char_unescaped(text: str, chars: str = SHELL_ESCAPED_CHARS) -> str:
    """Reverse :func:`char_escaped` for the characters in ``chars``."""

    if not chars:
        return text
    return _unescape_pattern(chars).sub(r"\1", text)


def psplit(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep`` while honouring backslash-escaped separators.

    Args:
        text: Serialised list.
        sep: Separator string.

    Returns:
        list[str]: Items with escaped separators restored.
    """

    items: list[str] = []
    start = 0
    idx = text.find(sep)
    while idx != -1:
        if idx == 0 or text[idx - 1] != "\\":
            items.append(char_unescaped(text[start:idx], sep))
            start = idx + len(sep)
        idx = text.find(sep, idx + 1)
    items.append(char_unescaped(text[start:], sep))
    return items


def pjoin(items: list[str], sep: str) -> str:
    """Join ``items`` with ``sep``, escaping separators found inside items."""

    return sep.join(char_escaped(item, sep) for item in items)


__all__ = ["char_escaped", "char_unescaped", "pjoin", "psplit"]
