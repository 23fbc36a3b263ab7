# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Normalisation and argument checks of ``module`` sub-commands."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Final

_ABBREVIATIONS: Final[tuple[tuple[re.Pattern[str], str], ...]] = tuple(
    (re.compile(pattern), command)
    for pattern, command in (
        (r"^(add|lo)", "load"),
        (r"^(rm|unlo)", "unload"),
        (r"^(ref|rel)", "reload"),
        (r"^sw", "switch"),
        (r"^(di|show)", "display"),
        (r"^av", "avail"),
        (r"^al", "aliases"),
        (r"^li", "list"),
        (r"^wh", "whatis"),
        (r"^(apropos|keyword)$", "search"),
        (r"^pu", "purge"),
        (r"^init(a|lo)", "initadd"),
        (r"^initp", "initprepend"),
        (r"^initsw", "initswitch"),
        (r"^init(rm|unlo)$", "initrm"),
        (r"^initl", "initlist"),
    )
)

TOP_LEVEL_ONLY: Final[frozenset[str]] = frozenset(
    {
        "path",
        "paths",
        "autoinit",
        "help",
        "prepend-path",
        "append-path",
        "remove-path",
        "is-loaded",
        "is-saved",
        "is-used",
        "is-avail",
        "info-loaded",
    }
)

ArgCountCheck = Callable[[int], bool]

_ARG_COUNTS: Final[dict[str, ArgCountCheck]] = {
    **dict.fromkeys(
        ("unload", "source", "display", "initadd", "initprepend", "initrm", "test", "is-avail"),
        lambda count: count >= 1,
    ),
    **dict.fromkeys(
        ("reload", "aliases", "list", "purge", "savelist", "initlist", "initclear", "autoinit"),
        lambda count: count == 0,
    ),
    "switch": lambda count: 1 <= count <= 2,
    **dict.fromkeys(("path", "paths", "info-loaded"), lambda count: count == 1),
    **dict.fromkeys(("search", "save", "restore", "saverm", "saveshow"), lambda count: count <= 1),
    "initswitch": lambda count: count == 2,
    **dict.fromkeys(("prepend-path", "append-path", "remove-path"), lambda count: count >= 2),
}


def normalize_command(command: str, args: Sequence[str]) -> tuple[str, list[str]]:
    """Expand abbreviated sub-command names.

    An empty command stands for ``help`` and drops its arguments.

    Args:
        command: Sub-command as typed.
        args: Its arguments.

    Returns:
        tuple[str, list[str]]: Canonical command name and arguments.
    """

    if command == "":
        return "help", []
    for pattern, canonical in _ABBREVIATIONS:
        if pattern.search(command):
            return canonical, list(args)
    return command, list(args)


def argument_count_error(command: str, args: Sequence[str]) -> str | None:
    """Return the error message when ``command`` got a wrong number of ``args``."""

    check = _ARG_COUNTS.get(command)
    if check is not None and not check(len(args)):
        return f"Unexpected number of args for '{command}' command"
    return None


__all__ = ["TOP_LEVEL_ONLY", "argument_count_error", "normalize_command"]
