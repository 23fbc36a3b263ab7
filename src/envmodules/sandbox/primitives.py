# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Primitive vocabulary available to modulefiles and rc files.

Every primitive looks at the current evaluation mode: ``load`` and
``unload`` mutate the session, ``display`` prints a canonical rendering of
the call and the remaining modes ignore the call.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

from ..constants import DEFAULT_DELIMITER, DEFAULT_SYMBOL, UNDEFINED_VALUE
from ..core.runtime.process import CommandOptions, SubprocessExecutionError, run_command
from ..errors import (
    ConstraintViolation,
    InvalidModuleNameError,
    ModulefileAbort,
    ModulefileExit,
    ModulefileStop,
    PrimitiveError,
    ResolutionCycleError,
)
from ..paths.algebra import PathCommand, Position, parse_path_arguments, read_path_state, refcount_var_name
from ..resolution.graph import ModuleName, split_module_name
from ..state.loaded import matching_loaded_name, matching_loaded_names

if TYPE_CHECKING:
    from ..state.session import Session
    from .engine import SandboxEngine

ModuleInfoResult = str | bool | int | list[str]

_SWITCH_MODES: Final[frozenset[str]] = frozenset({"switch", "switch1", "switch2", "switch3"})
_NOT_IMPLEMENTED: Final[tuple[str, ...]] = ("module_log", "module_verbosity", "module_user", "module_trace")
_UNAME_COMMANDS: Final[dict[str, tuple[str, ...]]] = {
    "nodename": ("uname", "-n"),
    "node": ("uname", "-n"),
    "domain": ("domainname",),
    "version": ("uname", "-v"),
}

MODULEFILE_VOCABULARY: Final[tuple[str, ...]] = (
    "setenv",
    "unsetenv",
    "getenv",
    "prepend_path",
    "append_path",
    "remove_path",
    "set_alias",
    "unset_alias",
    "is_loaded",
    "is_saved",
    "is_used",
    "is_avail",
    "conflict",
    "prereq",
    "chdir",
    "system",
    "module_info",
    "uname",
    "module",
    "module_whatis",
    "module_version",
    "module_alias",
    "module_virtual",
    "x_resource",
    "puts",
    "print",
    "report_warning",
    "report_error",
    "is_win",
    "stop",
    "abort",
    "exit",
    "quit",
    *_NOT_IMPLEMENTED,
)

MODULERC_VOCABULARY: Final[tuple[str, ...]] = (
    "module_version",
    "module_alias",
    "module_virtual",
    "module_info",
    "module",
    "is_loaded",
    "getenv",
    "uname",
    "system",
    "puts",
    "print",
    "chdir",
    "report_warning",
    "report_error",
    "stop",
    "abort",
    "exit",
    "quit",
    *_NOT_IMPLEMENTED,
)


def _words(args: Sequence[object]) -> str:
    return " ".join(str(arg) for arg in args)


class Primitives:
    """Implementation of the script primitives for one session."""

    def __init__(self, session: Session, engine: SandboxEngine) -> None:
        self._session = session
        self._engine = engine
        self._reporter = session.reporter

    # namespace -------------------------------------------------------------

    def namespace(self, vocabulary: Sequence[str]) -> dict[str, Any]:
        """Return the callables named in ``vocabulary`` keyed by their script name."""

        table: dict[str, Callable[..., Any]] = {}
        for name in vocabulary:
            if name in _NOT_IMPLEMENTED:
                table[name] = self._not_implemented(name.replace("_", "-"))
            elif name == "quit":
                table[name] = self.exit
            else:
                table[name] = getattr(self, name)
        return table

    def _not_implemented(self, command: str) -> Callable[..., None]:
        def _warn(*_args: object) -> None:
            self._reporter.warning(f"'{command}' command not implemented")

        _warn.__name__ = command.replace("-", "_")
        return _warn

    @property
    def environment(self) -> Mapping[str, str]:
        return MappingProxyType(self._session.env)

    # helpers ---------------------------------------------------------------

    @property
    def _mode(self) -> str:
        return self._session.mode

    def _displaying(self) -> bool:
        return self._session.mode == "display" and not self._session.inhibit_display

    def _display(self, text: str) -> None:
        if self._displaying():
            self._reporter.report(text)

    def _module_name(self, name: str = "", *, relative: bool = False) -> ModuleName:
        session = self._session
        try:
            return split_module_name(
                name,
                current_module=session.module_name,
                current_file=session.modulefile,
                relative_to_current=relative,
            )
        except InvalidModuleNameError as exc:
            self._reporter.error(str(exc))
            return ModuleName("", "", "")

    # environment -----------------------------------------------------------

    def setenv(self, var: str, value: str) -> None:
        session = self._session
        value = str(value)
        self._reporter.debug(f"setenv: ({var},{value}) mode = {self._mode}")
        shadow = refcount_var_name(var)
        shadow_unset = False
        if self._mode != "unload":
            session.set_env(var, value)
            if shadow in session.env:
                session.unset_env(shadow)
                shadow_unset = True

        if self._mode == "load":
            session.mark_env(var, "new")
            if shadow_unset:
                session.mark_env(shadow, "del")
        elif self._mode == "unload":
            # the value stays readable for the rest of the script
            session.mark_env(var, "del")
        else:
            self._display(f"setenv\t\t{var}\t{value}")

    def unsetenv(self, var: str, value: str | None = None) -> None:
        """Unset ``var``; on unload, restore ``value`` when one is given."""

        session = self._session
        self._reporter.debug(f"unsetenv: ({var},{value or ''}) mode = {self._mode}")
        if self._mode == "load":
            session.unset_env(var)
            session.mark_env(var, "del")
            shadow = refcount_var_name(var)
            if shadow in session.env:
                session.unset_env(shadow)
                session.mark_env(shadow, "del")
        elif self._mode == "unload":
            if value:
                session.set_env(var, str(value))
                session.mark_env(var, "new")
            else:
                session.mark_env(var, "del")
        elif value:
            self._display(f"unsetenv\t{var}\t{value}")
        else:
            self._display(f"unsetenv\t{var}")

    def getenv(self, var: str) -> str:
        """Return the value of ``var``.

        Returns ``_UNDEFINED_`` for an unset variable while loading or
        unloading, and the ``$VAR`` reference while displaying.
        """

        self._reporter.debug(f"getenv: ({var}) mode = {self._mode}")
        if self._mode in ("load", "unload"):
            return self._session.env.get(var, UNDEFINED_VALUE)
        if self._displaying():
            return f"${var}"
        return ""

    # path variables --------------------------------------------------------

    def _path_command(
        self,
        command: str,
        var: str,
        values: Sequence[str],
        *,
        delim: str,
        duplicates: bool = False,
        index: bool = False,
    ) -> PathCommand:
        raw: list[str] = ["--delim", delim]
        if duplicates:
            raw.append("--duplicates")
        if index:
            raw.append("--index")
        raw.append(var)
        raw.extend(str(value) for value in values)
        return parse_path_arguments(command, raw, warn=self._reporter.warning)

    @staticmethod
    def _display_path_args(var: str, values: Sequence[str], delim: str, flags: Sequence[str]) -> str:
        head = [*flags]
        if delim != DEFAULT_DELIMITER:
            head.append(f"--delim={delim}")
        head.append(var)
        return f"{' '.join(head)}\t{_words(values)}"

    def add_path(self, position: Position, cmd: PathCommand) -> None:
        session = self._session
        self._reporter.debug(f"add-path: ({cmd.var} {_words(cmd.values)}) pos={position.value}")
        state = read_path_state(session.env, cmd.var, cmd.delimiter, force=session.force, warn=self._reporter.warning)
        state.add(cmd.values, position=position, allow_duplicates=cmd.allow_duplicates)
        session.set_env(cmd.var, state.value or "")
        session.set_env(state.shadow_name, state.shadow_value or "")
        session.mark_env(cmd.var, "new")
        session.mark_env(state.shadow_name, "new")

    def unload_path(self, cmd: PathCommand) -> None:
        session = self._session
        self._reporter.debug(f"unload-path: ({cmd.var} {_words(cmd.values)})")
        state = read_path_state(session.env, cmd.var, cmd.delimiter, force=session.force, warn=self._reporter.warning)
        if session.env_state.get(cmd.var) == "del":
            return
        state.remove(cmd.values, by_index=cmd.by_index, force=session.force)

        value = state.value
        if value is None:
            session.unset_env(cmd.var)
            session.mark_env(cmd.var, "del")
        else:
            session.set_env(cmd.var, value)
            session.mark_env(cmd.var, "new")
        shadow_value = state.shadow_value
        if shadow_value is None:
            session.unset_env(state.shadow_name)
            session.mark_env(state.shadow_name, "del")
        else:
            session.set_env(state.shadow_name, shadow_value)
            session.mark_env(state.shadow_name, "new")

    def prepend_path(self, var: str, *values: str, delim: str = DEFAULT_DELIMITER, duplicates: bool = False) -> None:
        self._edit_path("prepend-path", Position.PREPEND, var, values, delim=delim, duplicates=duplicates)

    def append_path(self, var: str, *values: str, delim: str = DEFAULT_DELIMITER, duplicates: bool = False) -> None:
        self._edit_path("append-path", Position.APPEND, var, values, delim=delim, duplicates=duplicates)

    def _edit_path(
        self,
        name: str,
        position: Position,
        var: str,
        values: Sequence[str],
        *,
        delim: str,
        duplicates: bool,
    ) -> None:
        self._reporter.debug(f"{name}: ({var} {_words(values)}) mode={self._mode}")
        if self._mode == "load":
            self.add_path(position, self._path_command("add-path", var, values, delim=delim, duplicates=duplicates))
        elif self._mode == "unload":
            self.unload_path(self._path_command("unload-path", var, values, delim=delim))
        else:
            flags = ["--duplicates"] if duplicates else []
            self._display(f"{name}\t{self._display_path_args(var, values, delim, flags)}")

    def remove_path(self, var: str, *values: str, delim: str = DEFAULT_DELIMITER, index: bool = False) -> None:
        """Release ``values`` (or the entries at positions ``values``) from ``var``."""

        self._reporter.debug(f"remove-path: ({var} {_words(values)}) mode={self._mode}")
        if self._mode == "load":
            self.unload_path(self._path_command("unload-path", var, values, delim=delim, index=index))
        elif self._mode != "unload":
            flags = ["--index"] if index else []
            self._display(f"remove-path\t{self._display_path_args(var, values, delim, flags)}")

    # aliases ---------------------------------------------------------------

    def set_alias(self, name: str, value: str) -> None:
        session = self._session
        self._reporter.debug(f"set-alias: ({name}, {value}) mode={self._mode}")
        if self._mode == "load":
            session.aliases[name] = str(value)
            session.mark_alias(name, "new")
        elif self._mode == "unload":
            session.aliases[name] = ""
            session.mark_alias(name, "del")
        else:
            self._display(f"set-alias\t{name}\t{value}")

    def unset_alias(self, name: str) -> None:
        session = self._session
        self._reporter.debug(f"unset-alias: ({name}) mode={self._mode}")
        if self._mode == "load":
            session.aliases[name] = ""
            session.mark_alias(name, "del")
        elif self._mode != "unload":
            self._display(f"unset-alias\t{name}")

    # predicates ------------------------------------------------------------

    def is_loaded(self, *mods: str) -> bool:
        """Return ``True`` when one of ``mods`` is loaded, or anything is when none is given."""

        self._reporter.debug(f"is-loaded: {_words(mods)}")
        if any(matching_loaded_name(self._session, mod, "first") for mod in mods):
            return True
        return not mods and bool(self._session.loaded_module_list())

    def is_saved(self, *colls: str) -> bool:
        self._reporter.debug(f"is-saved: {_words(colls)}")
        store = self._engine.commands.collections
        if any(store.collection_file(coll).path.exists() for coll in colls):
            return True
        return not colls and bool(store.find())

    def is_used(self, *dirs: str) -> bool:
        self._reporter.debug(f"is-used: {_words(dirs)}")
        session = self._session
        modpaths = session.module_paths()
        if any(session.absolute_path(directory) in modpaths for directory in dirs):
            return True
        return not dirs and bool(modpaths)

    def is_avail(self, *mods: str) -> bool:
        self._reporter.debug(f"is-avail: {_words(mods)}")
        locator = self._engine.locator
        with self._reporter.suppressed():
            return any(locator.path_to_module(mod).found for mod in mods)

    # load constraints ------------------------------------------------------

    def conflict(self, *mods: str) -> None:
        """Fail the load when one of ``mods`` is loaded.

        Raises:
            ConstraintViolation: When a conflicting module is loaded.
        """

        current = self._session.module_name
        self._reporter.debug(f"conflict: ({_words(mods)}) mode = {self._mode}")
        if self._mode == "load":
            if self.is_loaded(current):
                return
            for mod in mods:
                if self.is_loaded(mod):
                    raise ConstraintViolation(
                        f"{current} cannot be loaded due to a conflict.\n"
                        f'HINT: Might try "module unload {mod}" first.'
                    )
        else:
            self._display(f"conflict\t{_words(mods)}")

    def prereq(self, *mods: str) -> None:
        """Fail the load unless one of ``mods`` is loaded.

        Raises:
            ConstraintViolation: When no listed module is loaded.
        """

        current = self._session.module_name
        self._reporter.debug(f"prereq: ({_words(mods)}) mode = {self._mode}")
        if self._mode == "load":
            if self.is_loaded(current) or self.is_loaded(*mods):
                return
            message = f"{current} cannot be loaded due to missing prereq."
            if len(mods) > 1:
                message += f"\nHINT: at least one of the following modules must be loaded first: {_words(mods)}"
            else:
                message += f"\nHINT: the following module must be loaded first: {_words(mods)}"
            raise ConstraintViolation(message)
        else:
            self._display(f"prereq\t\t{_words(mods)}")

    # process interaction ---------------------------------------------------

    def chdir(self, path: str) -> None:
        session = self._session
        self._reporter.debug(f"chdir: ({path}) mode = {self._mode}")
        if self._mode == "load":
            if os.path.isdir(path):
                session.change_dir = path
            else:
                self._reporter.warning(f"Cannot chdir to '{path}' for '{session.module_name}'")
        elif self._mode != "unload":
            self._display(f"chdir\t\t{path}")

    def system(self, command: str, *args: str) -> int | None:
        """Run ``command`` through ``/bin/sh`` with its output sent to stderr.

        Returns:
            int | None: Exit status while loading or unloading, ``None`` otherwise.
        """

        line = " ".join([command, *map(str, args)])
        self._reporter.debug(f"system: {line}")
        if self._mode in ("load", "unload"):
            options = CommandOptions(env=self._session.env, check=False, stdout_to_stderr=True)
            return run_command(["/bin/sh", "-c", line], options=options).returncode
        self._display(f"system\t\t{line}")
        return None

    def uname(self, field: str) -> str:
        """Return the ``field`` of the system identification, cached per session.

        Raises:
            PrimitiveError: When ``field`` is not supported.
        """

        cache = self._session.uname_cache
        self._reporter.debug(f"uname: called: {field}")
        if field in cache:
            return cache[field]
        if field == "sysname":
            result = platform.system()
        elif field == "machine":
            result = platform.machine()
        elif field == "release":
            result = platform.release()
        elif field in _UNAME_COMMANDS:
            options = CommandOptions(env=self._session.env, check=True, capture_output=True)
            try:
                result = run_command(_UNAME_COMMANDS[field], options=options).stdout.strip()
            except (FileNotFoundError, SubprocessExecutionError) as exc:
                raise PrimitiveError(str(exc)) from exc
        else:
            raise PrimitiveError(f"uname {field} not supported")
        cache[field] = result
        return result

    def x_resource(self, resource: str, value: str = "") -> None:
        """Merge an X resource, or a resource file, into the X server database.

        Raises:
            ConstraintViolation: When ``xrdb -query`` fails while loading or unloading.
        """

        session = self._session
        self._reporter.debug(f"x-resource: ({resource}, {value})")
        if value == "" and not os.path.exists(resource):
            sep = resource.find(" ")
            if sep == -1:
                sep = resource.find(":")
            if sep == -1:
                self._reporter.warning(f"x-resource {resource} is not a valid string or file")
                return
            resource, value = resource[:sep], resource[sep + 1 :]
            self._reporter.debug(f"x-resource: corrected ({resource}, {value})")

        if self._mode in ("load", "unload"):
            options = CommandOptions(env=session.env, check=True, capture_output=True)
            try:
                run_command([session.config.xrdb_command, "-query"], options=options)
            except (FileNotFoundError, SubprocessExecutionError) as exc:
                raise ConstraintViolation(f"X11 resources cannot be edited, issue spotted\n{exc}") from exc

        if self._mode == "load":
            session.new_xresources[resource] = value
        elif self._mode == "unload":
            session.del_xresources[resource] = value
        else:
            self._display(f"x-resource\t{resource}\t{value}")

    # output ----------------------------------------------------------------

    def puts(self, *words: object, stream: str = "stdout", nonewline: bool = False) -> None:
        """Print ``words``; stdout text is deferred after the generated shell code.

        Raises:
            PrimitiveError: When ``stream`` is neither stdout nor stderr.
        """

        text = _words(words)
        self._reporter.debug(f"puts: {text} (stream={stream})")
        if stream == "stdout":
            self._session.stdout_puts.append((text, nonewline))
        elif stream == "stderr":
            self._reporter.report(text, nonewline=nonewline)
        else:
            raise PrimitiveError(f'can not find channel named "{stream}"')

    def print(self, *values: object, sep: str = " ", end: str = "\n", **_ignored: object) -> None:
        text = sep.join(str(value) for value in values) + end
        if text.endswith("\n"):
            self._reporter.report(text[:-1])
        else:
            self._reporter.report(text, nonewline=True)

    def report_warning(self, message: str) -> None:
        self._reporter.warning(str(message))

    def report_error(self, message: str) -> None:
        self._reporter.error(str(message))

    @staticmethod
    def is_win() -> bool:
        return platform.system() == "Windows"

    # early stop ------------------------------------------------------------

    @staticmethod
    def stop() -> None:
        raise ModulefileStop()

    @staticmethod
    def abort() -> None:
        raise ModulefileAbort()

    def exit(self, code: int = 0) -> None:
        """Abort the script; while loading, also skip every later evaluation."""

        self._reporter.debug(f"exit: ({code})")
        if self._mode == "load":
            self._reporter.debug("exit: Inhibit next modulefile interpretations")
            self._session.inhibit_interp = True
        raise ModulefileExit(code)

    # introspection ---------------------------------------------------------

    def module_info(self, what: str, more: str | None = None) -> ModuleInfoResult:
        """Return information about the current evaluation.

        Args:
            what: Information requested (``mode``, ``name``, ``symbols``...).
            more: Value compared against the information, or module queried.

        Returns:
            ModuleInfoResult: Requested value, or whether it equals ``more``.

        Raises:
            PrimitiveError: When ``what`` is not supported.
        """

        session = self._session
        mode = self._mode
        self._reporter.debug(f"module-info: {what} {more or ''}  mode={mode}")
        match what:
            case "mode":
                if more is None:
                    return mode
                return (
                    mode == more
                    or (more == "remove" and mode == "unload")
                    or (more in _SWITCH_MODES and session.command == "switch")
                )
            case "command":
                return session.command if more is None else session.command == more
            case "name":
                return session.module_name
            case "specified":
                return session.specified_name
            case "shell":
                return session.shell if more is None else session.shell == more
            case "shelltype":
                shell_type = session.shell_type.value
                return shell_type if more is None else shell_type == more
            case "flags":
                return 0
            case "user":
                return False if more is not None else ""
            case "alias":
                target = session.graph.resolve(more or "") or (more or "")
                return target if target != (more or "") else ""
            case "trace" | "tracepat":
                return ""
            case "type":
                return "python"
            case "symbols":
                name = self._module_name(more or "", relative=True)
                symbols = session.graph.symbols_of(name.full)
                if not symbols and name.version == DEFAULT_SYMBOL:
                    symbols = session.graph.symbols_of(name.name)
                return ":".join(symbols)
            case "version":
                full = self._module_name(more or "", relative=True).full
                return session.graph.resolve(full) or full
            case "loaded":
                full = self._module_name(more or "", relative=True).full
                return matching_loaded_names(session, full, "all")
            case _:
                raise PrimitiveError(f"module-info {what} not supported")

    def module_whatis(self, *text: str) -> None:
        session = self._session
        message = _words(text)
        self._reporter.debug(f"module-whatis: {message}  mode={self._mode}")
        if self._mode == "whatis":
            session.whatis.setdefault(session.module_name, []).append(message)
        else:
            self._display(f"module-whatis\t{message}")

    # resolution declarations -----------------------------------------------

    def module_version(self, target: str, *symbols: str) -> None:
        """Declare ``symbols`` as symbolic versions of ``target``."""

        session = self._session
        self._reporter.debug(f"module-version: executing module-version {target} {_words(symbols)}")
        name = self._module_name(target, relative=True)
        if name.full:
            try:
                duplicates = session.graph.add_version(name, symbols, source=session.modulefile)
            except ResolutionCycleError as exc:
                self._reporter.error(str(exc))
            else:
                for duplicate in duplicates:
                    self._reporter.warning(f"Symbolic version '{duplicate}' already defined")
        self._display(f"module-version\t{_words([target, *symbols])}")

    def module_alias(self, name: str, target: str) -> None:
        session = self._session
        alias = self._module_name(name).full
        mod = self._module_name(target, relative=True).full
        self._reporter.debug(f"module-alias: {alias} = {mod}")
        try:
            session.graph.add_alias(alias, mod, source=session.modulefile)
        except ResolutionCycleError as exc:
            self._reporter.error(str(exc))
        self._display(f"module-alias\t{name} {target}")

    def module_virtual(self, name: str, path: str) -> None:
        session = self._session
        mod = self._module_name(name).full
        modfile = session.absolute_path(path)
        self._reporter.debug(f"module-virtual: {mod} = {modfile}")
        session.graph.add_virtual(mod, modfile, source=session.modulefile)
        self._display(f"module-virtual\t{name} {path}")

    # nested commands -------------------------------------------------------

    def module(self, command: str, *args: str) -> None:
        """Run a ``module`` sub-command from within a script.

        Raises:
            SubModuleFailed: When a nested load or unload failed.
            PrimitiveError: When the sub-command is invalid or not allowed here.
        """

        self._engine.commands.module(command, [str(arg) for arg in args], top=False)


__all__ = [
    "MODULEFILE_VOCABULARY",
    "MODULERC_VOCABULARY",
    "ModuleInfoResult",
    "Primitives",
]
