# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reference-counted editing of delimited path variables.

Every tracked path variable ``VAR`` owns a shadow variable (``VAR_modshare``)
recording how many modules contributed each entry. The helpers here are pure:
they read a snapshot of the environment, compute the new entries and counts,
and return the values to write back.
"""

from __future__ import annotations

import platform
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Final

from ..constants import DEFAULT_DELIMITER, PATH_SEPARATOR, REFCOUNT_DYLD_PREFIX, REFCOUNT_SUFFIX
from ..core.escaping import pjoin, psplit
from ..errors import PathArgumentError

WarningSink = Callable[[str], None]

_INTEGER_RE: Final[re.Pattern[str]] = re.compile(r"[+-]?\d+")
_DELIM_FLAGS: Final[frozenset[str]] = frozenset({"-d", "-delim", "--delim"})
_SIP_PREFIXES: Final[tuple[str, ...]] = ("DYLD_", "LD_")


class Position(str, Enum):
    """Enumerate where ``add`` splices new entries."""

    PREPEND = "prepend"
    APPEND = "append"


def refcount_var_name(var: str) -> str:
    """Return the name of the reference-count shadow variable for ``var``.

    Args:
        var: Name of the tracked path variable.

    Returns:
        str: ``VAR_modshare`` or ``MODULES_MODSHARE_VAR`` for ``DYLD_*`` variables.
    """

    if var.startswith("DYLD_"):
        return f"{REFCOUNT_DYLD_PREFIX}{var}"
    return f"{var}{REFCOUNT_SUFFIX}"


def split_entries(value: str, delimiter: str) -> list[str]:
    """Split ``value`` on ``delimiter`` where an empty string yields no entry."""

    if value == "":
        return []
    return value.split(delimiter)


@dataclass(slots=True)
class PathVariableState:
    """Entries and reference counts of one delimited variable."""

    name: str
    delimiter: str = DEFAULT_DELIMITER
    entries: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def value(self) -> str | None:
        """Return the joined variable value, ``None`` meaning unset."""

        if not self.entries:
            return None
        return self.delimiter.join(self.entries)

    @property
    def shadow_name(self) -> str:
        return refcount_var_name(self.name)

    @property
    def shadow_value(self) -> str | None:
        """Return the serialised reference counts, ``None`` meaning unset."""

        if not self.counts:
            return None
        flat: list[str] = []
        for entry, count in self.counts.items():
            flat.extend((entry, str(count)))
        return pjoin(flat, PATH_SEPARATOR)

    def add(self, values: Sequence[str], *, position: Position, allow_duplicates: bool = False) -> None:
        """Splice ``values`` into the variable and increment their counts.

        A value already counted is not inserted again unless duplicates are
        allowed; its count is incremented either way.

        Args:
            values: Entries to add, in the order they should appear.
            position: Whether to prepend or append the entries.
            allow_duplicates: Insert even when the entry is already present.
        """

        ordered = list(reversed(values)) if position is Position.PREPEND else list(values)
        for entry in ordered:
            if entry not in self.counts or allow_duplicates:
                if position is Position.PREPEND:
                    self.entries.insert(0, entry)
                else:
                    self.entries.append(entry)
            self.counts[entry] = self.counts.get(entry, 0) + 1

    def remove(self, values: Sequence[str], *, by_index: bool = False, force: bool = False) -> None:
        """Decrement counts for ``values`` and drop entries no longer referenced.

        Args:
            values: Entries to release, or integer positions when ``by_index``.
            by_index: Interpret ``values`` as positions in the current entries.
            force: Remove every matching entry regardless of its count.
        """

        current = list(self.entries)
        doomed: set[int] = set()
        for raw in values:
            idx = -1
            if by_index:
                idx = int(raw)
                if idx < 0 or idx >= len(current):
                    continue
                entry = current[idx]
            else:
                entry = raw

            if entry in self.counts:
                self.counts[entry] -= 1
                remaining = self.counts[entry]
                if remaining <= 0:
                    del self.counts[entry]
            else:
                remaining = 0

            found = [pos for pos, item in enumerate(current) if item == entry]
            if force or remaining <= 0:
                doomed.update([idx] if by_index else found)
            elif len(found) > remaining:
                # extra occurrences go from the lowest priority end
                doomed.update([idx] if by_index else found[remaining:])

        if doomed:
            self.entries = [item for pos, item in enumerate(current) if pos not in doomed]


def read_path_state(
    env: Mapping[str, str],
    var: str,
    delimiter: str = DEFAULT_DELIMITER,
    *,
    force: bool = False,
    warn: WarningSink | None = None,
) -> PathVariableState:
    """Build the :class:`PathVariableState` of ``var`` from ``env``.

    The shadow counts are repaired when they disagree with the variable:
    entries lacking a count get 1 and counts for absent entries are dropped.
    A shadow list of odd length is treated as corrupted and rebuilt.

    Args:
        env: Environment snapshot to read.
        var: Tracked variable name.
        delimiter: Entry delimiter of ``var``.
        force: Suppress the repair warning.
        warn: Callback receiving warning messages.

    Returns:
        PathVariableState: Entries and reconciled counts.
    """

    shadow = refcount_var_name(var)
    value = env.get(var)
    counts: dict[str, int] | None = None

    if shadow in env:
        if value is not None:
            flat = psplit(env[shadow], PATH_SEPARATOR)
            if len(flat) % 2 == 0:
                counts = _reconcile_counts(var, shadow, value, delimiter, flat, force=force, warn=warn)
        elif not (var.startswith(_SIP_PREFIXES) and platform.system() == "Darwin"):
            if warn is not None:
                warn(f"{shadow} exists ( {env[shadow]} ), but {var} doesn't. Environment is corrupted.")

    if counts is None:
        counts = {}
        if value is not None:
            for entry in split_entries(value, delimiter):
                counts.setdefault(entry, 1)

    entries = split_entries(value, delimiter) if value is not None else []
    if value == "" and "" in counts:
        entries = [""]
    return PathVariableState(name=var, delimiter=delimiter, entries=entries, counts=counts)


def _reconcile_counts(
    var: str,
    shadow: str,
    value: str,
    delimiter: str,
    flat: list[str],
    *,
    force: bool,
    warn: WarningSink | None,
) -> dict[str, int]:
    counts: dict[str, int] = {}
    for entry, raw_count in zip(flat[::2], flat[1::2], strict=True):
        try:
            counts[entry] = int(raw_count)
        except ValueError:
            counts[entry] = 1

    used = [""] if value == "" and "" in counts else split_entries(value, delimiter)

    fixed = [entry for entry in counts if entry not in used]
    for entry in fixed:
        del counts[entry]
    for entry in used:
        counts.setdefault(entry, 1)

    if fixed and not force and warn is not None:
        warn(
            f"${var} does not agree with ${shadow} counter. The following directories' usage "
            "counters were adjusted to match. Note that this may mean that module unloading "
            f"may not work correctly.\n {' '.join(fixed)}"
        )
    return counts


@dataclass(frozen=True, slots=True)
class PathCommand:
    """Normalised arguments of ``prepend-path``/``append-path``/``remove-path``."""

    var: str
    values: tuple[str, ...]
    delimiter: str = DEFAULT_DELIMITER
    allow_duplicates: bool = False
    by_index: bool = False


def parse_path_arguments(command: str, args: Sequence[str], *, warn: WarningSink | None = None) -> PathCommand:
    """Parse the raw argument list of a path command.

    Args:
        command: Command name used in error messages (``add-path`` or ``unload-path``).
        args: Raw arguments including ``--delim``, ``--duplicates`` and ``--index`` flags.
        warn: Callback receiving warnings about flags without effect.

    Returns:
        PathCommand: Parsed variable, values and flags.

    Raises:
        PathArgumentError: When the arguments are incomplete or invalid.
    """

    delimiter: str | None = None
    var: str | None = None
    raw_values: list[str] = []
    allow_duplicates = False
    by_index = False
    next_is_delim = False

    for arg in args:
        if next_is_delim:
            delimiter = arg
            next_is_delim = False
        elif arg == "--index":
            if command == "add-path":
                _emit(warn, f"--index option has no effect on {command}")
            else:
                by_index = True
        elif arg == "--duplicates":
            if command == "unload-path":
                _emit(warn, f"--duplicates option has no effect on {command}")
            else:
                allow_duplicates = True
        elif arg in _DELIM_FLAGS:
            next_is_delim = True
        elif arg.startswith("--delim="):
            delimiter = arg[len("--delim=") :]
        elif var is None:
            var = arg
        else:
            raw_values.append(arg)

    if delimiter is None:
        delimiter = DEFAULT_DELIMITER
    elif delimiter == "":
        raise PathArgumentError(f"{command} should get a non-empty path delimiter")
    if var is None:
        raise PathArgumentError(f"{command} should get an environment variable name")
    if var == "":
        raise PathArgumentError(f"{command} should get a valid environment variable name")
    if not raw_values:
        raise PathArgumentError(f"{command} should get a value for environment variable {var}")

    values: list[str] = []
    for raw in raw_values:
        if by_index and not _INTEGER_RE.fullmatch(raw):
            raise PathArgumentError(f"{command} should get valid number as index value")
        if raw == "":
            values.append("")
        elif raw == delimiter:
            raise PathArgumentError(f"{command} cannot handle path equals to separator string")
        else:
            values.extend(raw.split(delimiter))

    return PathCommand(
        var=var,
        values=tuple(values),
        delimiter=delimiter,
        allow_duplicates=allow_duplicates,
        by_index=by_index,
    )


def _emit(warn: WarningSink | None, message: str) -> None:
    if warn is not None:
        warn(message)


__all__ = [
    "PathCommand",
    "PathVariableState",
    "Position",
    "parse_path_arguments",
    "read_path_state",
    "refcount_var_name",
    "split_entries",
]
