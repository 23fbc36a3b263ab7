# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Parse the ``modulecmd`` command line.

Global switches may appear anywhere after the shell name, mixed with the
sub-command and its arguments. Switches only meaningful to a sub-command
(``--append``, ``--delim``...) are left in the argument list for it.
"""

from __future__ import annotations

import re
from collections.abc import Callable, MutableMapping, Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Final

from ..commands.listing import ShowFilter
from ..constants import QUARANTINE_SUFFIX, QUARANTINE_VAR
from ..errors import ArgumentError
from ..render.dialects import Shell, resolve_shell

WarningSink = Callable[[str], None]
DebugSink = Callable[[str], None]

_PASSTHROUGH_PATTERNS: Final[tuple[str, ...]] = (
    "-a",
    "--append",
    "-append",
    "-p",
    "--prepend",
    "-prepend",
    "--delim",
    "-delim",
    "--delim=*",
    "-delim=*",
    "--duplicates",
    "--index",
)
_PATH_COMMANDS: Final[frozenset[str]] = frozenset({"append-path", "prepend-path", "remove-path"})
_UNSUPPORTED_PATTERNS: Final[tuple[str, ...]] = (
    "-f",
    "--force",
    "--human",
    "-v",
    "--verbose",
    "-s",
    "--silent",
    "-c",
    "--create",
    "-i",
    "--icase",
    "--userlvl=*",
)
_UNSUPPORTED_WITH_VALUE: Final[frozenset[str]] = frozenset({"-u", "--userlvl"})
_VARIABLE_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(slots=True)
class Invocation:
    """Switches and sub-command extracted from the command line."""

    shell: str
    shell_type: Shell
    command: str = ""
    args: list[str] = field(default_factory=list)
    debug: bool = False
    show_help: bool = False
    show_version: bool = False
    paginate: bool | None = None
    show_oneperline: bool = False
    show_modtimes: bool = False
    show_filter: ShowFilter = ""


def _matches(arg: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(arg, pattern) for pattern in patterns)


def parse_invocation(argv: Sequence[str], *, warn: WarningSink) -> Invocation:
    """Split ``argv`` into the shell, global switches, sub-command and its arguments.

    An empty sub-command means ``help`` and drops any argument.

    Args:
        argv: Command line without the program name, shell name first.
        warn: Callback receiving warnings about unsupported switches.

    Returns:
        Invocation: Parsed command line.

    Raises:
        UnknownShellError: When the shell name is not supported.
        ArgumentError: When an unknown switch is given.
    """

    shell = argv[0] if argv else ""
    invocation = Invocation(shell=shell, shell_type=resolve_shell(shell))

    remaining: list[str] = []
    delim_switch = False
    skip_next = False
    for arg in argv[1:]:
        if skip_next:
            skip_next = False
            continue
        match arg:
            case "-D" | "--debug":
                invocation.debug = True
            case "-h" | "--help":
                invocation.show_help = True
            case "-V" | "--version":
                invocation.show_version = True
            case "--paginate":
                invocation.paginate = True
            case "--no-pager":
                invocation.paginate = False
            case "-t" | "--terse":
                invocation.show_oneperline = True
                invocation.show_modtimes = False
            case "-l" | "--long":
                invocation.show_modtimes = True
                invocation.show_oneperline = False
            case "-d" | "--default":
                # after a *-path command, -d is the short form of --delim
                if arg == "-d" and delim_switch:
                    remaining.append(arg)
                else:
                    invocation.show_filter = "onlydefaults"
            case "-L" | "--latest":
                invocation.show_filter = "onlylatest"
            case _ if _matches(arg, _PASSTHROUGH_PATTERNS):
                remaining.append(arg)
            case _ if arg in _PATH_COMMANDS:
                delim_switch = True
                remaining.append(arg)
            case _ if _matches(arg, _UNSUPPORTED_PATTERNS):
                warn(f"Unsupported option '{arg}'")
            case _ if arg in _UNSUPPORTED_WITH_VALUE:
                warn(f"Unsupported option '{arg}'")
                skip_next = True
            case _ if arg.startswith("-"):
                raise ArgumentError(f"Invalid option '{arg}'\nTry 'module --help' for more information.")
            case _:
                remaining.append(arg)

    if remaining and remaining[0] != "":
        invocation.command = remaining[0]
        invocation.args = remaining[1:]
    return invocation


def release_quarantine(
    env: MutableMapping[str, str],
    shell_type: Shell,
    *,
    warn: WarningSink,
    debug: DebugSink,
) -> None:
    """Put back the variables set aside by the ``module`` shell function.

    Every name listed in ``MODULES_RUN_QUARANTINE`` gets the value saved in
    ``<name>_modquar``, or is unset when nothing was saved. csh shells do
    not support the mechanism.

    Args:
        env: Session environment, edited in place.
        shell_type: Dialect family of the calling shell.
        warn: Callback receiving warnings about invalid names.
        debug: Callback receiving debug traces.
    """

    names = env.get(QUARANTINE_VAR)
    if names is None or shell_type is Shell.CSH:
        return
    for var in names.split(" "):
        if _VARIABLE_NAME_RE.match(var):
            saved = f"{var}{QUARANTINE_SUFFIX}"
            if saved in env:
                debug(f"Release '{var}' environment variable from quarantine ({env[saved]})")
                env[var] = env[saved]
            elif var in env:
                debug(f"Unset '{var}' environment variable after quarantine")
                del env[var]
        elif var:
            warn(f"Bad variable name set in MODULES_RUN_QUARANTINE ({var})")


__all__ = ["Invocation", "parse_invocation", "release_quarantine"]
