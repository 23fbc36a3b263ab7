# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Dictionary ordering used when listing module names and versions."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Final

_CHUNK_RE: Final[re.Pattern[str]] = re.compile(r"(\d+)")

DictionaryKey = tuple[tuple[tuple[str, int], ...], str]


def dictionary_key(value: str) -> DictionaryKey:
    """Return a sort key comparing embedded integers numerically and text case-insensitively.

    ``foo/1.10`` sorts after ``foo/1.9`` and ``Bar`` sorts next to ``bar``; the
    original string breaks ties so the ordering stays total.

    Args:
        value: String to order.

    Returns:
        DictionaryKey: Comparable key for :func:`sorted`.
    """

    parts: list[tuple[str, int]] = []
    for chunk in _CHUNK_RE.split(value):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append(("0", int(chunk)))
        else:
            parts.append((chunk.lower(), 0))
    return tuple(parts), value


def dictionary_sorted(values: Iterable[str], *, unique: bool = False) -> list[str]:
    """Return ``values`` in dictionary order, optionally removing duplicates."""

    items = set(values) if unique else list(values)
    return sorted(items, key=dictionary_key)


__all__ = ["DictionaryKey", "dictionary_key", "dictionary_sorted"]
