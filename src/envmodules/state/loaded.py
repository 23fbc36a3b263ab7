# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Registry of loaded modules and lookups by name or script path."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from ..resolution.graph import is_full_path

if TYPE_CHECKING:
    from .session import Session

MatchBehavior = Literal["last", "first", "all"]


@dataclass(slots=True)
class LoadedModules:
    """Index of loaded modules by name and by script path.

    One script may back several loaded names when it is the target of
    virtual modules, hence the list per path.
    """

    by_name: dict[str, str] = field(default_factory=dict)
    by_file: dict[str, list[str]] = field(default_factory=dict)
    cached: bool = False

    def add(self, mod: str, modfile: str) -> None:
        self.by_name[mod] = modfile
        names = self.by_file.setdefault(modfile, [])
        if mod not in names:
            names.append(mod)

    def discard(self, mod: str, modfile: str) -> None:
        self.by_name.pop(mod, None)
        names = self.by_file.get(modfile)
        if names is None:
            return
        if len(names) <= 1:
            del self.by_file[modfile]
        else:
            self.by_file[modfile] = [name for name in names if name != mod]

    def is_loaded(self, mod: str) -> bool:
        return mod in self.by_name

    def is_file_loaded(self, modfile: str) -> bool:
        return modfile in self.by_file

    def file_of(self, mod: str) -> str:
        return self.by_name.get(mod, "")

    def modules_of(self, modfile: str) -> list[str]:
        return list(self.by_file.get(modfile, ()))


def _short_split(session: Session, mod: str) -> list[str]:
    if is_full_path(mod) and (short := session.module_name_from_file(mod)):
        return short.split("/")
    return mod.split("/")


def closest_loaded_name(session: Session, name: str) -> str:
    """Return the loaded module whose name shares the longest prefix with ``name``.

    Names are compared component by component; on a tie the module loaded
    last wins. A full path is first converted to its module name relative
    to the enabled module paths.

    Args:
        session: Active session.
        name: Requested module designation.

    Returns:
        str: Matching loaded module, empty when no component matches.
    """

    registry = session.loaded_registry()
    found = ""
    best = 0
    name_split: list[str] | None
    if is_full_path(name):
        fullname = session.absolute_path(name)
        short = session.module_name_from_file(fullname)
        name_split = short.split("/") if short else None
        if name_split is None:
            if registry.is_loaded(fullname):
                found = fullname
            elif registry.is_file_loaded(fullname):
                found = registry.modules_of(fullname)[-1]
    else:
        name_split = name.split("/")

    if name_split is not None:
        for mod in session.loaded_module_list():
            mod_split = _short_split(session, mod)
            for idx in range(min(len(name_split), len(mod_split))):
                if mod_split[idx] != name_split[idx]:
                    break
                if idx >= best:
                    best = idx
                    found = mod

    session.reporter.debug(f"getLoadedWithClosestName: '{found}' closest to '{name}'")
    return found


def matching_loaded_names(session: Session, name: str, behavior: MatchBehavior = "last") -> list[str]:
    """Return the loaded modules equal to ``name`` or nested below it.

    Args:
        session: Active session.
        name: Module name or script path.
        behavior: Keep the ``last`` or ``first`` match, or ``all`` of them.

    Returns:
        list[str]: Matching loaded modules, empty when nothing matches.
    """

    registry = session.loaded_registry()
    matches: list[str] = []
    if is_full_path(name):
        modfile = session.absolute_path(name)
        matches = registry.modules_of(modfile)
    elif name != "":
        prefix = f"{name}/"
        for mod in session.loaded_module_list():
            matchmod = mod
            if is_full_path(mod) and (short := session.module_name_from_file(mod)):
                matchmod = short
            if f"{matchmod}/".startswith(prefix):
                matches.append(mod)

    if matches and behavior == "last":
        matches = [matches[-1]]
    elif matches and behavior == "first":
        matches = [matches[0]]
    session.reporter.debug(f"getLoadedMatchingName: '{' '.join(matches)}' matches '{name}'")
    return matches


def matching_loaded_name(session: Session, name: str, behavior: MatchBehavior = "last") -> str:
    found = matching_loaded_names(session, name, behavior)
    return found[0] if found else ""


__all__ = [
    "LoadedModules",
    "MatchBehavior",
    "closest_loaded_name",
    "matching_loaded_name",
    "matching_loaded_names",
]
