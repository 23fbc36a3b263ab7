# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Resolve requested module names to the scripts implementing them.

Resolution looks in each module path in priority order. For each path the
elements related to the root of the requested name are gathered in one scan
(scripts, directories, then the aliases, symbolic versions and virtual
modules declared by the rc files met on the way) and the name is rewritten
through aliases, symbols and directory defaults until a script is reached.
A name rewritten outside of its root restarts the lookup from the first
module path, so precedence between paths is preserved.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Literal, Protocol

from ..core.sorting import dictionary_sorted
from ..errors import InvalidModuleNameError
from ..resolution.graph import is_full_path, is_hidden, same_root, split_module_name
from ..state.loaded import closest_loaded_name, matching_loaded_name
from .entries import (
    AliasEntry,
    DirectoryEntry,
    EntryMap,
    IssueEntry,
    ModuleEntry,
    ModulefileEntry,
    ModulercEntry,
    VersionEntry,
    VirtualEntry,
)
from .finder import ModuleFinder

if TYPE_CHECKING:
    from ..state.session import Session

LookLoaded = Literal["no", "match", "close"]
SearchFlag = Literal["wild", "rc_defs_included", "rc_alias_only"]


class ModulercRunner(Protocol):
    """Evaluates ``.modulerc``/``.version`` files on behalf of the locator."""

    def execute_modulerc(self, path: str) -> object: ...


@dataclass(frozen=True, slots=True)
class LocateResult:
    """Outcome of a module lookup.

    ``path`` is empty on failure; ``issue`` then names the failure kind
    (``none``, ``invalid`` or ``accesserr``) and ``message`` describes it.
    """

    path: str
    name: str
    issue: str = ""
    message: str = ""
    issue_path: str = ""

    @property
    def found(self) -> bool:
        return self.path != ""


class ModuleLocator:
    """Find modules in the enabled module paths."""

    def __init__(self, session: Session, rc_runner: ModulercRunner) -> None:
        self._session = session
        self._rc_runner = rc_runner
        self.finder = ModuleFinder(session.config, session.reporter)

    # listing ---------------------------------------------------------------

    def get_modules(
        self,
        directory: str,
        mod: str = "",
        *,
        fetch_mtime: bool = False,
        search: Iterable[SearchFlag] = (),
        fetch_hidden: bool = False,
    ) -> EntryMap:
        """Return every element of ``directory`` whose name starts with ``mod``.

        Scripts and directories come from the filesystem; aliases, symbolic
        versions and virtual modules from the rc files evaluated during the
        scan (and, with ``rc_defs_included``, from the global rc files).
        Directories end up with their dictionary-sorted children and their
        default element, empty directories being pruned.

        Args:
            directory: Module path directory.
            mod: Name prefix (glob syntax allowed) to select elements.
            fetch_mtime: Record script modification times.
            search: ``wild`` matches any name starting with a flat ``mod``,
                ``rc_defs_included`` adds global rc declarations and
                ``rc_alias_only`` skips the filesystem entirely.
            fetch_hidden: Include dot-prefixed elements.

        Returns:
            EntryMap: Selected entries keyed by module name.
        """

        session = self._session
        graph = session.graph
        flags = set(search)
        session.reporter.debug(
            f"getModules: get '{mod}' in {directory} (fetch_mtime={int(fetch_mtime)}, "
            f"search={' '.join(sorted(flags))}, fetch_hidden={int(fetch_hidden)})"
        )

        found: EntryMap
        if "rc_alias_only" in flags:
            add_rc_defs = True
            found = {}
        else:
            parents = mod.split("/")
            findmod = parents[0]
            if "wild" in flags and len(parents) <= 1:
                findmod += "*"
            add_rc_defs = "rc_defs_included" in flags
            if not fetch_hidden:
                fetch_hidden = is_hidden(mod)
            found = self.finder.find_modules(directory, findmod, fetch_mtime=fetch_mtime, fetch_hidden=fetch_hidden)

        pattern = f"{mod}*"
        dir_list: set[str] = set()
        mod_list: EntryMap = {}
        for elt in sorted(found):
            entry = found[elt]
            if isinstance(entry, ModulercEntry):
                with session.evaluating(elt):
                    self._rc_runner.execute_modulerc(posixpath.join(directory, elt))
            elif fnmatchcase(elt, pattern):
                mod_list[elt] = entry
                if isinstance(entry, DirectoryEntry):
                    dir_list.add(elt)

        def _declared_here(source: str, rc_defs: dict[str, str], name: str) -> bool:
            return (directory != "" and source.startswith(f"{directory}/")) or (add_rc_defs and name in rc_defs)

        matching_versalias: list[str] = []
        matching_versvirt: list[str] = []
        for vers in [name for name in graph.versions if fnmatchcase(name, pattern)]:
            versmod = graph.versions[vers]
            if _declared_here(graph.version_sources.get(vers, ""), graph.rc_versions, vers):
                mod_list[vers] = VersionEntry(versmod)
            if versmod not in mod_list:
                if mod == vers and not fetch_hidden and is_hidden(versmod):
                    found.update(
                        self.finder.find_modules(directory, versmod, fetch_mtime=fetch_mtime, fetch_hidden=True)
                    )
                if versmod in found:
                    mod_list[versmod] = found[versmod]
                elif versmod in graph.aliases:
                    matching_versalias.append(versmod)
                elif versmod in graph.virtuals:
                    matching_versvirt.append(versmod)

        orphans: dict[str, list[str]] = {}
        matching_alias = [name for name in graph.aliases if fnmatchcase(name, pattern)]
        matching_alias += [name for name in matching_versalias if name not in matching_alias]
        for alias in matching_alias:
            if not _declared_here(graph.alias_sources.get(alias, ""), graph.rc_aliases, alias):
                continue
            mod_list[alias] = AliasEntry(graph.aliases[alias])
            dir_list.discard(alias)
            parent_name = _parent(alias)
            parent = mod_list.get(parent_name)
            if isinstance(parent, DirectoryEntry):
                parent.children.append(posixpath.basename(alias))
            else:
                orphans.setdefault(parent_name, []).append(posixpath.basename(alias))

        matching_virtual = [name for name in graph.virtuals if fnmatchcase(name, pattern)]
        matching_virtual += [name for name in matching_versvirt if name not in matching_virtual]
        for virt in matching_virtual:
            if not _declared_here(graph.virtual_sources.get(virt, ""), graph.rc_virtuals, virt):
                continue
            target = graph.virtuals[virt]
            validity, message = self.finder.check_valid_module(target)
            dir_list.discard(virt)
            if validity != "true":
                mod_list[virt] = IssueEntry(validity, message, target)
                continue
            mtime = self.finder.file_mtime(target) if fetch_mtime else None
            mod_list[virt] = VirtualEntry(path=target, mtime=mtime)

            parent_name = _parent(virt)
            elt = posixpath.basename(virt)
            while parent_name not in mod_list and parent_name != ".":
                mod_list[parent_name] = DirectoryEntry(children=[elt])
                dir_list.add(parent_name)
                elt = posixpath.basename(parent_name)
                parent_name = _parent(parent_name)
            parent = mod_list.get(parent_name)
            if isinstance(parent, DirectoryEntry):
                parent.children.append(elt)

        for orphan_dir, tails in orphans.items():
            parent = mod_list.get(orphan_dir)
            if isinstance(parent, DirectoryEntry):
                parent.children.extend(tails)

        for dirname in sorted(dir_list):
            self._finalize_directory(mod_list, dirname)

        session.reporter.debug(f"getModules: got {' '.join(mod_list)}")
        return mod_list

    def _finalize_directory(self, mod_list: EntryMap, dirname: str) -> None:
        entry = mod_list.get(dirname)
        if not isinstance(entry, DirectoryEntry):
            return
        children = dictionary_sorted(entry.children)
        if children:
            resolved = self._session.graph.resolved_path.get(dirname)
            entry.default = posixpath.basename(resolved) if resolved is not None else children[-1]
            entry.children = children
            return

        del mod_list[dirname]
        current = dirname
        while (par_dir := _parent(current)) != "." and par_dir in mod_list:
            parent = mod_list[par_dir]
            if not isinstance(parent, DirectoryEntry):
                break
            removed = posixpath.basename(current)
            remaining = [child for child in parent.children if child != removed]
            if not remaining:
                del mod_list[par_dir]
                current = par_dir
                continue
            if parent.default == removed:
                parent.default = remaining[-1]
            parent.children = remaining
            break

    # resolution ------------------------------------------------------------

    def path_to_module(
        self,
        mod: str,
        *,
        indir: Sequence[str] | None = None,
        look_loaded: LookLoaded = "no",
        excdir: Sequence[str] = (),
    ) -> LocateResult:
        """Return the script implementing ``mod``.

        Failures are reported through the session reporter before returning.

        Args:
            mod: Requested module name, or a script path.
            indir: Restrict the lookup to these module paths.
            look_loaded: Prefer a loaded module ``match``ing or ``close`` to ``mod``.
            excdir: Module paths already searched.

        Returns:
            LocateResult: Script path and resolved module name, or the failure.

        Raises:
            ModulePathUnsetError: When no module path is defined and ``indir`` is not given.
        """

        session = self._session
        session.reporter.debug(f"getPathToModule: finding '{mod}' in '{' '.join(indir or ())}'")
        result = self._locate(mod, indir, look_loaded, excdir)
        if result.found:
            session.reporter.debug(f"getPathToModule: found '{result.path}' as '{result.name}'")
        elif result.issue:
            session.reporter.issue(result.issue, result.message, result.issue_path)
        return result

    def _locate(
        self,
        mod: str,
        indir: Sequence[str] | None,
        look_loaded: LookLoaded,
        excdir: Sequence[str],
    ) -> LocateResult:
        session = self._session
        if mod == "":
            return LocateResult("", "", "none", "Invalid empty module name")

        loaded_name = ""
        if look_loaded == "match":
            loaded_name = matching_loaded_name(session, mod)
        elif look_loaded == "close":
            loaded_name = closest_loaded_name(session, mod)
        if loaded_name:
            return LocateResult(session.loaded_registry().file_of(loaded_name), loaded_name)

        if is_full_path(mod):
            modfile = session.absolute_path(mod)
            validity, message = self.finder.check_valid_module(modfile)
            if validity == "true":
                return LocateResult(modfile, modfile)
            return LocateResult("", modfile, validity, message, modfile)

        dir_list = list(indir) if indir else session.module_paths(required=True)
        dir_list = [directory for directory in dir_list if directory not in excdir]

        try:
            mod = split_module_name(
                mod, current_module=session.module_name, current_file=session.modulefile
            ).full
        except InvalidModuleNameError as exc:
            return LocateResult("", mod, "none", str(exc))
        modroot = mod.split("/", 1)[0]
        fetch_hidden = is_hidden(mod)

        for directory in dir_list:
            mod_list = self.get_modules(directory, modroot, search=("rc_defs_included",), fetch_hidden=fetch_hidden)
            prevmod = ""
            mod_res = ""
            result: LocateResult | None = None
            while prevmod != mod:
                prevmod = mod
                entry: ModuleEntry | None = mod_list.get(mod)
                match entry:
                    case AliasEntry() | VersionEntry():
                        newmod = session.graph.resolve(mod) or mod
                        if same_root(mod, newmod) and (fetch_hidden or not is_hidden(newmod)):
                            mod = newmod
                            mod_res = newmod
                        else:
                            return self._locate(newmod, indir, "no", ())
                    case DirectoryEntry(default=default):
                        mod = f"{mod}/{default}"
                        if not fetch_hidden and is_hidden(mod):
                            return self._locate(mod, indir, "no", ())
                    case ModulefileEntry():
                        result = LocateResult(f"{directory}/{mod}", mod)
                    case VirtualEntry(path=path):
                        result = LocateResult(path, mod)
                    case IssueEntry(kind=kind, message=message, path=path):
                        result = LocateResult("", mod, kind, message, path)
                    case _:
                        pass
            if result is not None:
                return result
            if mod_res == mod:
                return self._locate(mod, indir, "no", [*excdir, directory])

        return LocateResult("", mod, "none", f"Unable to locate a modulefile for '{mod}'")

    def is_avail(self, mod: str) -> bool:
        """Return ``True`` when ``mod`` can be located, without reporting failures."""

        with self._session.reporter.suppressed():
            return self.path_to_module(mod).found


def _parent(name: str) -> str:
    parent = posixpath.dirname(name)
    return parent if parent else "."


__all__ = ["LocateResult", "LookLoaded", "ModuleLocator", "ModulercRunner", "SearchFlag"]
