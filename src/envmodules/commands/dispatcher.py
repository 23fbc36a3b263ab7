# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Route ``module`` sub-commands to their implementation.

A :class:`Dispatcher` owns the sandbox, the locator and the collection store
of one session and wires them together. Commands typed on the command line
run as top-level calls; the same entry point serves the ``module()``
primitive of modulefiles, where the current evaluation mode changes what a
command does (a nested ``load`` unloads when its caller is being unloaded).
"""

from __future__ import annotations

import os
import re
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from .. import __version__
from ..collections.store import DEFAULT_COLLECTION, CollectionStore
from ..constants import LOADED_FILES_VAR, LOADED_MODULES_VAR, MODULEPATH_VAR, MODULERCFILE_VAR, MODULESHOME_VAR
from ..core.sorting import dictionary_sorted
from ..errors import CollectionError, EnvModulesError, PrimitiveError, SubModuleFailed
from ..locator.entries import AliasEntry, IssueEntry, ModulefileEntry, VersionEntry, VirtualEntry
from ..locator.locator import LookLoaded, ModuleLocator, SearchFlag
from ..paths.algebra import PathCommand, Position, parse_path_arguments
from ..render.autoinit import engine_argv
from ..resolution.graph import is_full_path, is_virtual
from ..sandbox.engine import SandboxEngine
from ..state.loaded import LoadedModules, matching_loaded_name
from .initfiles import InitAction, InitFileEditor
from .listing import ElementListPrinter, HeaderStyle, format_mtime, list_modules, table_header
from .parsing import TOP_LEVEL_ONLY, argument_count_error, normalize_command

if TYPE_CHECKING:
    from ..sandbox.primitives import Primitives
    from ..state.session import Session

USAGE: Final[str] = """Usage: module [options] [command] [args ...]

Loading / Unloading commands:
  add | load      modulefile [...]  Load modulefile(s)
  rm | unload     modulefile [...]  Remove modulefile(s)
  purge                             Unload all loaded modulefiles
  reload | refresh                  Unload then load all loaded modulefiles
  switch | swap   [mod1] mod2       Unload mod1 and load mod2

Listing / Searching commands:
  list            [-t|-l]           List loaded modules
  avail   [-d|-L] [-t|-l] [mod ...] List all or matching available modules
  aliases                           List all module aliases
  whatis          [modulefile ...]  Print whatis information of modulefile(s)
  apropos | keyword | search  str   Search all name and whatis containing str
  is-loaded       [modulefile ...]  Test if any of the modulefile(s) are loaded
  is-avail        modulefile [...]  Is any of the modulefile(s) available
  info-loaded     modulefile        Get full name of matching loaded module(s)

Collection of modules handling commands:
  save            [collection|file] Save current module list to collection
  restore         [collection|file] Restore module list from collection or file
  saverm          [collection]      Remove saved collection
  saveshow        [collection|file] Display information about collection
  savelist        [-t|-l]           List all saved collections
  is-saved        [collection ...]  Test if any of the collection(s) exists

Shell's initialization files handling commands:
  initlist                          List all modules loaded from init file
  initadd         modulefile [...]  Add modulefile to shell init file
  initrm          modulefile [...]  Remove modulefile from shell init file
  initprepend     modulefile [...]  Add to beginning of list in init file
  initswitch      mod1 mod2         Switch mod1 with mod2 from init file
  initclear                         Clear all modulefiles from init file

Environment direct handling commands:
  prepend-path [-d c] var val [...] Prepend value to environment variable
  append-path [-d c] var val [...]  Append value to environment variable
  remove-path [-d c] var val [...]  Remove value from environment variable

Other commands:
  help            [modulefile ...]  Print this or modulefile(s) help info
  display | show  modulefile [...]  Display information about modulefile(s)
  test            [modulefile ...]  Test modulefile(s)
  use     [-a|-p] dir [...]         Add dir(s) to MODULEPATH variable
  unuse           dir [...]         Remove dir(s) from MODULEPATH variable
  is-used         [dir ...]         Is any of the dir(s) enabled in MODULEPATH
  path            modulefile        Print modulefile path
  paths           modulefile        Print path of matching available modules
  source          scriptfile [...]  Execute scriptfile(s)

Switches:
  -t | --terse    Display output in terse format
  -l | --long     Display output in long format
  -d | --default  Only show default versions available
  -L | --latest   Only show latest versions available
  -a | --append   Append directory to MODULEPATH
  -p | --prepend  Prepend directory to MODULEPATH

Options:
  -h | --help     This usage info
  -V | --version  Module version
  -D | --debug    Enable debug messages
  --paginate      Pipe mesg output into a pager if stream attached to terminal
  --no-pager      Do not pipe message output into a pager"""

_APPEND_FLAGS: Final[frozenset[str]] = frozenset({"-a", "--append", "-append"})
_PREPEND_FLAGS: Final[frozenset[str]] = frozenset({"-p", "--prepend", "-prepend"})
_MODULESPATH_LINE_RE: Final[re.Pattern[str]] = re.compile(r"^\s*(.*?)\s*(#.*|)$")
_INIT_ACTIONS: Final[dict[str, InitAction]] = {
    "initadd": "add",
    "initprepend": "prepend",
    "initswitch": "switch",
    "initrm": "rm",
    "initlist": "list",
    "initclear": "clear",
}
_HELP_HINT: Final[str] = "Try 'module --help' for more information."


class Dispatcher:
    """Run ``module`` sub-commands against a session."""

    def __init__(self, session: Session, *, release: str = __version__) -> None:
        self.session = session
        self.release = release
        self.sandbox = SandboxEngine(session)
        self.locator = ModuleLocator(session, rc_runner=self.sandbox)
        self.collections = CollectionStore(session, self.locator)
        self.init_files = InitFileEditor(session)
        self.sandbox.locator = self.locator
        self.sandbox.commands = self
        self._lists = ElementListPrinter(session.reporter, session.reporter.columns)

    @property
    def _primitives(self) -> Primitives:
        return self.sandbox.primitives

    # entry point -----------------------------------------------------------

    def module(self, command: str, args: Sequence[str], *, top: bool = True) -> None:
        """Run ``command`` with ``args``.

        Args:
            command: Sub-command name, possibly abbreviated.
            args: Sub-command arguments.
            top: ``False`` when called from a script through ``module()``.

        Raises:
            EnvModulesError: At top level, when the command is invalid.
            PrimitiveError: From a script, when the command is invalid or not allowed.
            SubModuleFailed: From a script, when a nested load or unload failed.
        """

        session = self.session
        command, arguments = normalize_command(command, args)
        session.reporter.debug(
            f"module: ({command} {' '.join(arguments)}) mode={session.mode} top={int(top)}"
        )

        prefix = "" if top else "module: "
        message: str | None = None
        if not top and command in TOP_LEVEL_ONLY:
            message = f"{prefix}Command '{command}' not supported"
        message = argument_count_error(command, arguments) or message
        if message is not None:
            self._fail(message, top=top)

        with session.running(command):
            succeeded = self._run(command, arguments, top=top)
        if succeeded is None:
            self._fail(f"{prefix}Invalid command '{command}'", top=top)
        if not succeeded and not top:
            raise SubModuleFailed()

    def _fail(self, message: str, *, top: bool) -> NoReturn:
        if top:
            self.session.reporter.fatal(f"{message}\n{_HELP_HINT}")
        raise PrimitiveError(message)

    def _run(self, command: str, args: list[str], *, top: bool) -> bool | None:
        """Dispatch ``command``; only nested load and unload report a failure."""

        session = self.session
        mode = session.mode
        displaying = mode == "display" and not session.inhibit_display
        match command:
            case "load":
                if not args:
                    return True
                if top or mode == "load":
                    return self.load_modules(args)
                if mode == "unload":
                    return self.unload_modules(list(reversed(args)))
                if displaying:
                    session.reporter.report(f"module load\t{' '.join(args)}")
            case "unload":
                if top or mode in ("load", "unload"):
                    return self.unload_modules(args)
                if displaying:
                    session.reporter.report(f"module unload\t{' '.join(args)}")
            case "reload":
                self.reload()
            case "use":
                if top or mode == "load":
                    self.use(args)
                elif mode == "unload":
                    self.unuse(args)
                elif displaying:
                    session.reporter.report(f"module use\t{' '.join(args)}")
            case "unuse":
                if top or mode in ("load", "unload"):
                    self.unuse(args)
                elif displaying:
                    session.reporter.report(f"module unuse\t{' '.join(args)}")
            case "source":
                if top or mode == "load":
                    self.source(args)
                elif mode == "unload":
                    self.unsource(list(reversed(args)))
                elif displaying:
                    session.reporter.report(f"module source\t{' '.join(args)}")
            case "switch":
                self.switch(*args)
            case "display":
                self.display(args)
            case "avail":
                for mod in args or [""]:
                    self.avail(mod)
            case "aliases":
                self.aliases()
            case "path":
                self.path(args[0])
            case "paths":
                self.paths(args[0])
            case "list":
                self.list_loaded()
            case "whatis":
                for mod in args or [""]:
                    self.search(mod)
            case "search":
                self.search("", args[0] if args else "")
            case "purge":
                self.purge()
            case "save":
                self.save(*args)
            case "restore":
                self.restore(*args)
            case "saverm":
                self.saverm(*args)
            case "saveshow":
                self.saveshow(*args)
            case "savelist":
                self.savelist()
            case "initadd" | "initprepend" | "initswitch" | "initrm" | "initlist" | "initclear":
                self.edit_init_files(_INIT_ACTIONS[command], args)
            case "autoinit":
                self.autoinit()
            case "help":
                self.help(args)
            case "test":
                self.test(args)
            case "prepend-path" | "append-path" | "remove-path" | "is-loaded" | "is-saved" | "is-used" | "is-avail":
                self.resurface(command, args)
            case "info-loaded":
                self.resurface("module-info", ["loaded", *args])
            case _:
                return None
        return True

    # loading ---------------------------------------------------------------

    def load_modules(self, mods: Sequence[str]) -> bool:
        """Load each module of ``mods`` in order.

        A module whose evaluation fails leaves no trace in the session; the
        following modules are still loaded.

        Args:
            mods: Module names or script paths.

        Returns:
            bool: ``True`` when every module was found and loaded (or already was).
        """

        session = self.session
        succeeded = True
        with session.in_mode("load"):
            for mod in mods:
                result = self.locator.path_to_module(mod)
                if not result.found:
                    succeeded = False
                    continue
                modname = matching_loaded_name(session, result.name) or result.name
                if not session.force and session.loaded_registry().is_loaded(modname):
                    continue
                if not self._evaluate_load(mod, modname, result.path):
                    succeeded = False
        return succeeded

    def _evaluate_load(self, mod: str, modname: str, modfile: str) -> bool:
        session = self.session
        primitives = self._primitives
        session.settings.push()
        try:
            with session.evaluating(modname, mod):
                evaluated = self.sandbox.execute_modulefile(modfile)
            if not evaluated:
                self._rollback()
                return False
            primitives.add_path(Position.APPEND, PathCommand(LOADED_MODULES_VAR, (modname,)))
            primitives.add_path(Position.APPEND, PathCommand(LOADED_FILES_VAR, (modfile,), allow_duplicates=True))
            session.loaded_registry().add(modname, modfile)
        finally:
            session.settings.pop()
        return True

    def _rollback(self) -> None:
        session = self.session
        session.settings.restore()
        # loaded registry is rebuilt from the restored environment
        session.loaded = LoadedModules()

    def unload_modules(self, mods: Sequence[str], *, match: LookLoaded = "match") -> bool:
        """Unload each loaded module of ``mods`` in order.

        Args:
            mods: Module names as requested; resolved against loaded modules first.
            match: How requested names are matched against loaded ones.

        Returns:
            bool: ``True`` when every module was found and unloaded (or was not loaded).
        """

        session = self.session
        primitives = self._primitives
        succeeded = True
        with session.in_mode("unload"):
            for mod in mods:
                result = self.locator.path_to_module(mod, look_loaded=match)
                if not result.found:
                    succeeded = False
                    continue
                modname, modfile = result.name, result.path
                if not session.loaded_registry().is_loaded(modname):
                    continue
                session.settings.push()
                try:
                    with session.evaluating(modname, mod):
                        evaluated = self.sandbox.execute_modulefile(modfile)
                    if not evaluated:
                        self._rollback()
                        succeeded = False
                        continue
                    index = session.loaded_module_list(filter_empty=False).index(modname)
                    primitives.unload_path(PathCommand(LOADED_MODULES_VAR, (modname,)))
                    primitives.unload_path(PathCommand(LOADED_FILES_VAR, (str(index),), by_index=True))
                    session.loaded_registry().discard(modname, modfile)
                finally:
                    session.settings.pop()
        return succeeded

    def switch(self, old: str, new: str | None = None) -> bool:
        """Unload ``old`` then, if that worked, load ``new``.

        With a single name the loaded module closest to it is swapped for
        the name's default version.
        """

        match: LookLoaded = "match"
        if new is None:
            new = old
            match = "close"
        self.session.reporter.debug(f"cmdModuleSwitch: old={old} new={new}")
        if not self.unload_modules([old], match=match):
            return False
        return self.load_modules([new])

    def reload(self) -> None:
        loaded = self.session.loaded_module_list()
        for mod in reversed(loaded):
            self.unload_modules([mod])
        for mod in loaded:
            self.load_modules([mod])

    def purge(self) -> None:
        self.unload_modules(list(reversed(self.session.loaded_module_list())))

    # scripts ---------------------------------------------------------------

    def source(self, paths: Sequence[str]) -> None:
        """Evaluate the scripts at ``paths`` in load mode, without the magic cookie check.

        Raises:
            EnvModulesError: When a path is empty or does not exist.
        """

        self._source(paths, mode="load")

    def unsource(self, paths: Sequence[str]) -> None:
        self._source(paths, mode="unload")

    def _source(self, paths: Sequence[str], *, mode: str) -> None:
        session = self.session
        for path in paths:
            if path == "":
                session.reporter.fatal("File name empty")
            abspath = session.absolute_path(path)
            if not os.path.exists(abspath):
                session.reporter.fatal(f"File {path} does not exist")
            with session.in_mode(mode), session.evaluating(abspath):
                self.sandbox.execute_modulefile(abspath, must_have_cookie=False)

    def run_global_rc(self) -> None:
        """Source the global rc files then flag their declarations as global."""

        session = self.session
        candidates: list[Path] = []
        rcfile = session.env.get(MODULERCFILE_VAR)
        if rcfile is not None:
            rcpath = Path(rcfile)
            if rcpath.is_dir() and (rcpath / "modulerc").is_file():
                candidates.append(rcpath / "modulerc")
            elif rcpath.is_file():
                candidates.append(rcpath)
        if session.config.site_rc.is_file():
            candidates.append(session.config.site_rc)
        home = session.env.get("HOME")
        if home is not None and (Path(home) / ".modulerc").is_file():
            candidates.append(Path(home) / ".modulerc")

        for rc in candidates:
            if os.access(rc, os.R_OK):
                session.reporter.debug(f"runModulerc: Executing {rc}")
                self.source([str(rc)])
        session.graph.mark_rc_definitions()

    # module paths ----------------------------------------------------------

    def _show_module_paths(self) -> None:
        reporter = self.session.reporter
        paths = self.session.module_paths()
        if not paths:
            reporter.warning("No directories on module search path")
            return
        reporter.report("Search path for module files (in search order):")
        for path in paths:
            reporter.report(f"  {path}")

    def use(self, args: Sequence[str]) -> None:
        """Enable module paths, prepended unless an append flag precedes them."""

        session = self.session
        if not args:
            self._show_module_paths()
            return
        position = Position.PREPEND
        for arg in args:
            if arg in _APPEND_FLAGS:
                position = Position.APPEND
            elif arg in _PREPEND_FLAGS:
                position = Position.PREPEND
            elif arg == "":
                session.reporter.error("Directory name empty")
            else:
                path = session.absolute_path(arg)
                if not os.path.isdir(session.expand_env_refs(path)):
                    session.reporter.error(f"Directory '{path}' not found")
                    continue
                with session.in_mode("load"):
                    self._primitives.add_path(position, PathCommand(MODULEPATH_VAR, (path,)))

    def unuse(self, args: Sequence[str]) -> None:
        """Disable module paths, matched as registered or as absolute paths."""

        session = self.session
        if not args:
            self._show_module_paths()
            return
        for arg in args:
            if arg == "":
                session.reporter.error("Directory name empty")
                continue
            current = session.module_paths(resolve=False, absolute=False)
            abspath = session.absolute_path(arg)
            if arg in current:
                target = arg
            elif abspath in current:
                target = abspath
            else:
                continue
            with session.in_mode("unload"):
                self._primitives.unload_path(PathCommand(MODULEPATH_VAR, (target,)))
            if target in session.module_paths(resolve=False, absolute=False):
                session.reporter.warning(f"Did not unuse {target}")

    def use_paths(self, paths: Sequence[str], *, append: bool) -> None:
        self.use(["--append" if append else "--prepend", *paths])

    def unuse_paths(self, paths: Sequence[str]) -> None:
        self.unuse(paths)

    # per-module reports ----------------------------------------------------

    def _report_modules(self, mods: Sequence[str], *, mode: str, title: str) -> None:
        session = self.session
        reporter = session.reporter
        first = True
        with session.in_mode(mode):
            for mod in mods:
                if mod == "":
                    continue
                result = self.locator.path_to_module(mod)
                if not result.found:
                    continue
                if first:
                    reporter.separator()
                    first = False
                reporter.report(f"{title}{result.path}:\n")
                with session.evaluating(result.name, mod):
                    self.sandbox.execute_modulefile(result.path)
                reporter.separator()

    def display(self, mods: Sequence[str]) -> None:
        self._report_modules(mods, mode="display", title="")

    def help(self, mods: Sequence[str]) -> None:
        """Print the help of each module, or the usage text when none is given."""

        self._report_modules(mods, mode="help", title="Module Specific Help for ")
        if not mods:
            self.session.reporter.version(self.release)
            self.session.reporter.report(USAGE)

    def test(self, mods: Sequence[str]) -> None:
        self._report_modules(mods, mode="test", title="Module Specific Test for ")

    # listings --------------------------------------------------------------

    def list_loaded(self) -> None:
        """Print the loaded modules with their symbols (and modification times in long mode)."""

        session = self.session
        reporter = session.reporter
        loaded = session.loaded_module_list()
        if not loaded:
            reporter.report("No Modulefiles Currently Loaded.")
            return

        registry = session.loaded_registry()
        lines: list[str] = []
        for mod in loaded:
            if session.show_oneperline:
                lines.append(mod)
                continue
            modfile = registry.file_of(mod)
            mtime: float | None = None
            tags: list[str] = []
            if is_full_path(mod):
                mtime = self._mtime(mod)
            elif is_virtual(mod, modfile):
                mtime = self._mtime(modfile)
            else:
                directory = modfile[: -len(mod) - 1] if modfile.endswith(f"/{mod}") else ""
                entry = self.locator.get_modules(directory, mod, fetch_mtime=session.show_modtimes).get(mod)
                if entry is not None:
                    if isinstance(entry, ModulefileEntry | VirtualEntry):
                        mtime = entry.mtime
                    tags = session.graph.symbols_of(mod)

            if session.show_modtimes:
                lines.append(f"{mod:<40}{':'.join(tags):<20}{format_mtime(mtime):>19}")
            elif tags:
                lines.append(f"{mod}({':'.join(tags)})")
            else:
                lines.append(mod)

        if session.show_modtimes:
            reporter.report(table_header("Package", "Versions", "Last mod."))
        reporter.report("Currently Loaded Modulefiles:")
        one_per_line = session.show_modtimes or session.show_oneperline
        self._lists.display(lines, one_per_line=one_per_line, show_index=not one_per_line)

    def _mtime(self, path: str) -> float | None:
        if not self.session.show_modtimes:
            return None
        try:
            return self.locator.finder.file_mtime(path)
        except OSError:
            return None

    def avail(self, mod: str = "") -> None:
        """Print the modules available in each module path, matching ``mod``.

        Global rc aliases come first in their own list.
        """

        session = self.session
        reporter = session.reporter
        one_per_line = session.show_modtimes or session.show_oneperline
        header_style: HeaderStyle = "terse" if one_per_line else "sepline"
        header_shown = False

        def _show(lines: list[str], header: str) -> None:
            nonlocal header_shown
            if not lines:
                return
            if session.show_modtimes and not header_shown:
                header_shown = True
                reporter.report(table_header("Package/Alias", "Versions", "Last mod."))
            self._lists.display(lines, header=header, header_style=header_style, one_per_line=one_per_line)

        show_filter = session.show_filter
        with reporter.suppressed():
            rc_lines = list_modules(
                session, self.locator, "", mod, show_filter=show_filter, search=("rc_alias_only",)
            )
            _show(rc_lines, "global/user modulerc")
            for directory in session.module_paths(required=True):
                _show(list_modules(session, self.locator, directory, mod, show_filter=show_filter), directory)

    def aliases(self) -> None:
        session = self.session
        graph = session.graph
        with session.reporter.suppressed():
            for directory in session.module_paths(required=True):
                self.locator.get_modules(directory)

        aliases = [f"{name} -> {graph.aliases[name]}" for name in dictionary_sorted(graph.aliases)]
        self._lists.display(aliases, header="Aliases", header_style="sepline", one_per_line=True)
        versions = [f"{name} -> {graph.versions[name]}" for name in dictionary_sorted(graph.versions)]
        self._lists.display(versions, header="Versions", header_style="sepline", one_per_line=True)

    def path(self, mod: str) -> None:
        self.session.return_text = self.locator.path_to_module(mod).path

    def paths(self, mod: str) -> None:
        """Return the scripts of every available module matching ``mod`` as text."""

        session = self.session
        dirs = session.module_paths(required=True)
        found: list[str] = []
        for directory in dirs:
            mod_list = self.locator.get_modules(directory, mod, search=("rc_defs_included",))
            target_dirs = [directory, *(other for other in dirs if other != directory)]
            for elt, entry in mod_list.items():
                match entry:
                    case ModulefileEntry():
                        found.append(f"{directory}/{elt}")
                    case VirtualEntry(path=path):
                        found.append(path)
                    case AliasEntry(target=target) | VersionEntry(target=target):
                        result = self.locator.path_to_module(target, indir=target_dirs)
                        if result.found and result.name not in mod_list:
                            found.append(result.path)
                    case _:
                        pass
        session.return_text = " ".join(dictionary_sorted(found, unique=True))

    def search(self, mod: str = "", text: str = "") -> None:
        """Print the whatis lines of the modules matching ``mod`` and ``text``.

        Alias and symbol targets missing from the path holding the alias are
        searched in the other module paths afterwards.

        Args:
            mod: Module name prefix; empty for every module.
            text: Case-insensitive regular expression the whatis text must match.

        Raises:
            EnvModulesError: When ``text`` is not a valid regular expression or no
                module path is defined.
        """

        session = self.session
        reporter = session.reporter
        pattern: re.Pattern[str] | None = None
        if text:
            try:
                pattern = re.compile(text, re.IGNORECASE)
            except re.error as exc:
                reporter.fatal(f"Invalid search pattern '{text}'\n{exc}")

        flags: list[SearchFlag] = ["rc_defs_included"]
        if mod == "":
            flags.append("wild")
        issues: dict[str, tuple[str, str, str]] = {}
        found_any = False

        with reporter.suppressed(), session.in_mode("whatis"):
            dirs = session.module_paths(required=True)
            scripts = self._collect_search_scripts(dirs, mod, flags, issues)
            for directory in dirs:
                candidates = scripts.get(directory)
                if not candidates:
                    continue
                found_any = True
                lines: list[str] = []
                for elt in dictionary_sorted(candidates):
                    session.whatis[elt] = []
                    with session.evaluating(elt):
                        self.sandbox.execute_modulefile(candidates[elt])
                    whatis = session.whatis.get(elt, [])
                    if pattern is None or pattern.search(" ".join(whatis)):
                        lines.extend(f"{elt:>20}: {line}" for line in whatis)
                self._lists.display(lines, header=directory, header_style="sepline", one_per_line=True)

        if mod and not found_any:
            if not issues:
                issues[mod] = ("none", f"Unable to locate a modulefile for '{mod}'", "")
            for kind, message, path in issues.values():
                reporter.issue(kind, message, path)

    def _collect_search_scripts(
        self,
        dirs: Sequence[str],
        mod: str,
        flags: Sequence[SearchFlag],
        issues: dict[str, tuple[str, str, str]],
    ) -> dict[str, dict[str, str]]:
        session = self.session
        scripts: dict[str, dict[str, str]] = {}
        known: set[str] = set()
        pending: dict[str, tuple[str, bool]] = {}

        for directory in dirs:
            mod_list = self.locator.get_modules(directory, mod, search=flags)
            found: dict[str, str] = {}
            for elt, entry in mod_list.items():
                match entry:
                    case ModulefileEntry():
                        found[elt] = f"{directory}/{elt}"
                        known.add(elt)
                    case VirtualEntry(path=path):
                        found[elt] = path
                        known.add(elt)
                    case AliasEntry(target=target) | VersionEntry(target=target):
                        if target in known:
                            continue
                        result = self.locator.path_to_module(target, indir=[directory])
                        if result.found and result.name not in mod_list:
                            found[result.name] = result.path
                            known.add(result.name)
                        elif not result.found:
                            if result.message.startswith("Unable to locate"):
                                pending[result.name] = (directory, elt == mod)
                            elif elt == mod:
                                issues[result.name] = (result.issue, result.message, result.issue_path)
                    case IssueEntry(kind=kind, message=message, path=path):
                        if elt == mod:
                            issues[elt] = (kind, message, path)
                    case _:
                        pass
            for name in [name for name in pending if name in known]:
                del pending[name]
            if found:
                scripts.setdefault(directory, {}).update(found)

        # alias targets absent from their own module path
        for name, (directory, primal) in pending.items():
            result = self.locator.path_to_module(name, excdir=[directory])
            if result.found:
                if is_virtual(result.name, result.path):
                    owner = session.modulepath_of_file(session.graph.virtual_sources.get(result.name, ""))
                else:
                    owner = result.path[: -len(result.name) - 1]
                scripts.setdefault(owner, {})[result.name] = result.path
            elif primal:
                issues[result.name] = (result.issue, result.message, result.issue_path)
        return scripts

    # collections -----------------------------------------------------------

    def save(self, name: str = DEFAULT_COLLECTION) -> None:
        try:
            self.collections.save(name)
        except CollectionError as exc:
            self.session.reporter.fatal(str(exc))

    def restore(self, name: str = DEFAULT_COLLECTION) -> None:
        try:
            self.collections.restore(name, self)
        except CollectionError as exc:
            self.session.reporter.fatal(str(exc))

    def saverm(self, name: str = DEFAULT_COLLECTION) -> None:
        try:
            self.collections.remove(name)
        except CollectionError as exc:
            self.session.reporter.fatal(str(exc))

    def saveshow(self, name: str = DEFAULT_COLLECTION) -> None:
        """Print the content of collection ``name`` between separator lines."""

        reporter = self.session.reporter
        try:
            coll, collection = self.collections.read_valid(name)
        except CollectionError as exc:
            reporter.fatal(str(exc))
        reporter.separator()
        reporter.report(f"{coll.path}:\n")
        reporter.report(collection.format())
        reporter.separator()

    def savelist(self) -> None:
        session = self.session
        reporter = session.reporter
        store = self.collections
        target = store.target
        target_desc = f' (for target "{target}")' if target else ""
        try:
            found = store.find()
        except CollectionError as exc:
            reporter.fatal(str(exc))
        if not found:
            reporter.report(f"No named collection{target_desc}.")
            return

        if session.show_modtimes:
            reporter.report(table_header("Collection", "Last mod."))
        reporter.report(f"Named collection list{target_desc}:")
        by_name = {str(path): path for path in found}
        lines: list[str] = []
        for key in dictionary_sorted(by_name):
            path = by_name[key]
            name = store.display_name(path)
            if session.show_modtimes:
                lines.append(f"{name:<60}{format_mtime(path.stat().st_mtime):>19}")
            else:
                lines.append(name)
        one_per_line = session.show_modtimes or session.show_oneperline
        self._lists.display(lines, one_per_line=one_per_line, show_index=not one_per_line)

    # shell integration -----------------------------------------------------

    def edit_init_files(self, action: InitAction, args: Sequence[str]) -> None:
        try:
            self.init_files.run(action, args)
        except EnvModulesError as exc:
            self.session.reporter.fatal(str(exc))

    def autoinit(self) -> None:
        """Request the ``module`` function definition and initialise its variables."""

        session = self.session
        config = session.config
        primitives = self._primitives
        session.auto_init = True
        with session.in_mode("load"):
            primitives.setenv(MODULESHOME_VAR, str(config.home))
            primitives.setenv("MODULES_CMD", shlex.join(engine_argv(config.autoinit_command)))

            if session.env.get(MODULEPATH_VAR, "") == "":
                self._use_modulespath_file(config.modulespath_file)
                if MODULEPATH_VAR not in session.env:
                    primitives.setenv(MODULEPATH_VAR, "")
            if LOADED_MODULES_VAR not in session.env:
                primitives.setenv(LOADED_MODULES_VAR, "")

            if (
                session.env.get(MODULEPATH_VAR) == ""
                and session.env.get(LOADED_MODULES_VAR) == ""
                and config.init_modulerc.exists()
            ):
                self.source([str(config.init_modulerc)])

    def _use_modulespath_file(self, path: Path) -> None:
        if not os.access(path, os.R_OK):
            return
        for line in path.read_text(encoding="utf-8").splitlines():
            match = _MODULESPATH_LINE_RE.match(line)
            if match is not None and match.group(1):
                self.use(["--append", *match.group(1).split(":")])

    def resurface(self, command: str, args: Sequence[str]) -> None:
        """Run a script primitive from the command line and record its result as the status.

        Args:
            command: Primitive name (``prepend-path``, ``is-loaded``, ``module-info``...).
            args: Primitive arguments.
        """

        session = self.session
        reporter = session.reporter
        primitives = self._primitives
        reporter.debug(f"cmdModuleResurface: cmd='{command}', args='{' '.join(args)}'")
        with session.in_mode("load"), session.running(command):
            try:
                match command:
                    case "prepend-path" | "append-path":
                        position = Position.PREPEND if command == "prepend-path" else Position.APPEND
                        primitives.add_path(position, parse_path_arguments("add-path", args, warn=reporter.warning))
                        result = True
                    case "remove-path":
                        primitives.unload_path(parse_path_arguments("unload-path", args, warn=reporter.warning))
                        result = True
                    case "is-loaded":
                        result = primitives.is_loaded(*args)
                    case "is-saved":
                        result = primitives.is_saved(*args)
                    case "is-used":
                        result = primitives.is_used(*args)
                    case "is-avail":
                        result = primitives.is_avail(*args)
                    case "module-info":
                        info = primitives.module_info(*args)
                        session.return_text = " ".join(info) if isinstance(info, list) else str(info)
                        return
                    case _:
                        raise PrimitiveError(f"Invalid command '{command}'")
            except EnvModulesError as exc:
                reporter.error(str(exc))
                return
        if not result:
            session.return_false = True


__all__ = ["Dispatcher", "USAGE"]
