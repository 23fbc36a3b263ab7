# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Alias, symbolic version and virtual module bookkeeping.

The graph records every ``module_alias``/``module_version`` declaration as an
edge from a source name to a target name. Each source is also resolved eagerly
to its end-point so lookups never need to walk the chain again; when a new
edge extends an existing chain the end-points of every dependent name are
updated in place.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Final, NamedTuple

from ..constants import DEFAULT_SYMBOL
from ..core.sorting import dictionary_sorted
from ..errors import InvalidModuleNameError, ResolutionCycleError

_LOG = logging.getLogger(__name__)

_SHORTHAND_RE: Final[re.Pattern[str]] = re.compile(r"^\.?/(.*)$")
_FULL_PATH_RE: Final[re.Pattern[str]] = re.compile(r"^(|\.|\.\.)/")


class ModuleName(NamedTuple):
    """Module designation split into its full form, name and version parts."""

    full: str
    name: str
    version: str


def _dirname(path: str) -> str:
    parent = posixpath.dirname(path)
    if parent == "":
        return "."
    return parent


def split_module_name(
    name: str = "",
    *,
    current_module: str = "",
    current_file: str = "",
    relative_to_current: bool = False,
) -> ModuleName:
    """Split ``name`` into its module name and version parts.

    ``/version`` and ``./version`` designate a version of the module currently
    being evaluated, and an empty ``name`` designates that module itself.

    Args:
        name: Requested module designation.
        current_module: Name of the module currently evaluated, if any.
        current_file: Path of the script currently evaluated, if any.
        relative_to_current: Replace a bare name equal to the last component
            of the current module's name by that full name.

    Returns:
        ModuleName: Full designation, name and version (empty when absent).

    Raises:
        InvalidModuleNameError: When shorthand notation is used outside a
            module directory.
    """

    cur_name = _dirname(current_module)
    cur_version = posixpath.basename(current_module)

    if name == "":
        mod_name, version = cur_name, cur_version
    elif current_module and (match := _SHORTHAND_RE.match(name)):
        if current_file == current_module:
            raise InvalidModuleNameError(name)
        mod_name, version = cur_name, match.group(1)
    else:
        trimmed = name.rstrip("/")
        version = posixpath.basename(trimmed)
        if trimmed == version:
            mod_name, version = trimmed, ""
        else:
            mod_name = _dirname(trimmed)
        if relative_to_current and posixpath.basename(cur_name) == mod_name:
            mod_name = cur_name

    full = mod_name if version == "" else f"{mod_name}/{version}"
    return ModuleName(full, mod_name, version)


def is_full_path(name: str) -> bool:
    """Return ``True`` when ``name`` designates a script by path rather than by module name."""

    return _FULL_PATH_RE.match(name) is not None


def is_hidden(name: str) -> bool:
    """Return ``True`` when a component of ``name`` starts with a dot."""

    return any(part.startswith(".") for part in name.split("/"))


def same_root(first: str, second: str) -> bool:
    return first.split("/", 1)[0] == second.split("/", 1)[0]


def is_virtual(name: str, modfile: str) -> bool:
    """Return ``True`` when ``modfile`` does not end with the module ``name``."""

    return not modfile.endswith(name)


def _merge_symbols(*groups: Iterable[str]) -> list[str]:
    merged: list[str] = []
    for group in groups:
        merged.extend(group)
    return dictionary_sorted(merged, unique=True)


@dataclass(slots=True)
class ResolutionGraph:
    """Registry of aliases, symbolic versions and virtual modules."""

    aliases: dict[str, str] = field(default_factory=dict)
    alias_sources: dict[str, str] = field(default_factory=dict)
    versions: dict[str, str] = field(default_factory=dict)
    version_sources: dict[str, str] = field(default_factory=dict)
    virtuals: dict[str, str] = field(default_factory=dict)
    virtual_sources: dict[str, str] = field(default_factory=dict)
    resolved: dict[str, str] = field(default_factory=dict)
    resolved_path: dict[str, str] = field(default_factory=dict)
    symbols: dict[str, list[str]] = field(default_factory=dict)
    alt_names: dict[str, str] = field(default_factory=dict)
    rc_aliases: dict[str, str] = field(default_factory=dict)
    rc_versions: dict[str, str] = field(default_factory=dict)
    rc_virtuals: dict[str, str] = field(default_factory=dict)
    _dependents: dict[str, list[str]] = field(default_factory=dict)

    def resolve(self, name: str) -> str | None:
        """Return the end-point ``name`` resolves to, ``None`` when unknown."""

        return self.resolved.get(name)

    def symbols_of(self, name: str) -> list[str]:
        """Return the symbolic versions currently pointing at ``name``."""

        return list(self.symbols.get(name, ()))

    def set_resolution(
        self,
        mod: str,
        target: str,
        symbol: str | None = None,
        *,
        override_path: bool = True,
        source: str = "",
    ) -> None:
        """Register that ``mod`` resolves to ``target``.

        Args:
            mod: Alias or ``name/symbol`` designation being declared.
            target: Designation ``mod`` points to.
            symbol: Symbolic version name when ``mod`` is a symbolic version.
            override_path: Replace the first hop recorded for ``mod`` when one exists.
            source: Script declaring the resolution.

        Raises:
            ResolutionCycleError: When following ``target`` leads back to ``mod``.
        """

        res = target
        res_path = [res]
        while mod != res and res in self.resolved_path:
            res = self.resolved_path[res]
            res_path.append(res)
        if mod == res:
            raise ResolutionCycleError(res)

        mod_name = split_module_name(mod).name if symbol else ""
        mod_alt: str | None = None
        if symbol == DEFAULT_SYMBOL:
            mod_alt = mod_name
            previous = self.resolved.get(mod)
            if previous is not None and DEFAULT_SYMBOL in self.symbols.get(previous, ()):
                _LOG.debug("remove symbol 'default' from '%s'", previous)
                self.symbols[previous].remove(DEFAULT_SYMBOL)

        _LOG.debug("%s resolved to %s", mod, res)
        self._register_endpoint(mod, res, target, override_path=override_path)
        if mod_alt is not None:
            self._register_endpoint(mod_alt, res, target, override_path=override_path)
            self.alt_names[mod_alt] = mod
            self.alt_names[mod] = mod_alt

        related = self._dependents.pop(mod, [])
        if mod_alt is not None:
            related.extend(self._dependents.pop(mod_alt, []))
        for relmod in related:
            self.resolved[relmod] = res
            self._dependents.setdefault(res, []).append(relmod)

        sym_list = self.symbols_of(mod)
        propagate_from: str | None = None
        if symbol:
            if mod_alt is not None and mod_alt in self.symbols:
                sym_list = _merge_symbols(sym_list, self.symbols[mod_alt])
                self.symbols[mod] = sym_list
                self.symbols[mod_alt] = list(sym_list)
            sym_list = _merge_symbols(sym_list, [symbol])

            for modres in res_path:
                modres_name = split_module_name(modres).name
                if modres_name != mod_name:
                    propagate_from = modres
                    break
                merged = _merge_symbols(self.symbols.get(modres, ()), sym_list)
                if modres in self.alt_names:
                    self.symbols[self.alt_names[modres]] = list(merged)
                self.symbols[modres] = merged
                for sym in sym_list:
                    vers = f"{modres_name}/{sym}"
                    self.versions[vers] = modres
                    self.version_sources[vers] = source
        else:
            propagate_from = target

        if propagate_from is not None:
            modres_name = split_module_name(propagate_from).name
            for sym in sym_list:
                vers = f"{modres_name}/{sym}"
                _LOG.debug("set resolution for %s", vers)
                self.set_resolution(vers, propagate_from, sym, override_path=False, source=source)

    def _register_endpoint(self, mod: str, res: str, target: str, *, override_path: bool) -> None:
        self.resolved[mod] = res
        if override_path or mod not in self.resolved_path:
            self.resolved_path[mod] = target
        self._dependents.setdefault(res, []).append(mod)

    def add_version(self, target: ModuleName, symbols: Iterable[str], *, source: str = "") -> list[str]:
        """Declare ``symbols`` as symbolic versions of ``target``.

        Args:
            target: Module designation the symbols point to.
            symbols: Symbolic version names.
            source: Script declaring the versions.

        Returns:
            list[str]: ``name/symbol`` designations that were already defined and
            therefore left untouched.

        Raises:
            ResolutionCycleError: When a symbol would make resolution loop.
        """

        duplicates: list[str] = []
        for symbol in symbols:
            alias_version = f"{target.name}/{symbol}"
            if alias_version in self.versions:
                duplicates.append(alias_version)
                continue
            self.set_resolution(alias_version, target.full, symbol, source=source)
        return duplicates

    def add_alias(self, alias: str, target: str, *, source: str = "") -> None:
        """Declare ``alias`` as pointing at ``target``.

        Raises:
            ResolutionCycleError: When the alias would make resolution loop.
        """

        _LOG.debug("module-alias: %s = %s", alias, target)
        self.set_resolution(alias, target, source=source)
        self.aliases[alias] = target
        self.alias_sources[alias] = source

    def add_virtual(self, name: str, path: str, *, source: str = "") -> None:
        """Declare ``name`` as a virtual module backed by the script at ``path``."""

        _LOG.debug("module-virtual: %s = %s", name, path)
        self.virtuals[name] = path
        self.virtual_sources[name] = source

    def mark_rc_definitions(self) -> None:
        """Snapshot current declarations as coming from global rc files."""

        self.rc_aliases = dict(self.aliases)
        self.rc_versions = dict(self.versions)
        self.rc_virtuals = dict(self.virtuals)


__all__ = [
    "ModuleName",
    "ResolutionGraph",
    "is_full_path",
    "is_hidden",
    "is_virtual",
    "same_root",
    "split_module_name",
]
