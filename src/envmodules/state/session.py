# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-invocation session context shared by every engine component.

A :class:`Session` is created once per ``modulecmd`` run. It owns the working
copy of the environment, the pending mutations the renderer consumes at the
end of the run, the resolution graph, the loaded module registry and the
evaluation call stack (mode, module name, script path and command name).
Nothing is written back to ``os.environ``: subprocesses receive ``env``
explicitly.
"""

from __future__ import annotations

import os
import posixpath
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Final, Literal

from ..config.models import EngineConfig
from ..constants import LOADED_FILES_VAR, LOADED_MODULES_VAR, MODULEPATH_VAR, PATH_SEPARATOR
from ..core.logging.reporter import Reporter
from ..errors import InconsistentStateError, ModulePathUnsetError
from ..render.dialects import Shell, resolve_shell
from ..resolution.graph import ResolutionGraph
from .loaded import LoadedModules
from .settings import SettingsStack

MutationState = Literal["new", "del"]

_ENV_REF_RE: Final[re.Pattern[str]] = re.compile(r"\$[{]?([A-Za-z_][A-Za-z0-9_]*)[}]?")


@dataclass(slots=True)
class Session:
    """Mutable state of one engine invocation."""

    config: EngineConfig
    reporter: Reporter
    shell: str = "sh"
    env: dict[str, str] = field(default_factory=lambda: dict(os.environ))
    cwd: str = field(default_factory=os.getcwd)
    aliases: dict[str, str] = field(default_factory=dict)
    env_state: dict[str, MutationState] = field(default_factory=dict)
    alias_state: dict[str, MutationState] = field(default_factory=dict)
    new_xresources: dict[str, str] = field(default_factory=dict)
    del_xresources: dict[str, str] = field(default_factory=dict)
    change_dir: str | None = None
    stdout_puts: list[tuple[str, bool]] = field(default_factory=list)
    return_text: str | None = None
    return_false: bool = False
    auto_init: bool = False
    force: bool = False
    inhibit_interp: bool = False
    inhibit_display: bool = False
    show_oneperline: bool = False
    show_modtimes: bool = False
    show_filter: str = ""
    graph: ResolutionGraph = field(default_factory=ResolutionGraph)
    loaded: LoadedModules = field(default_factory=LoadedModules)
    uname_cache: dict[str, str] = field(default_factory=dict)
    whatis: dict[str, list[str]] = field(default_factory=dict)
    settings: SettingsStack = field(init=False)
    _modes: list[str] = field(default_factory=list)
    _module_names: list[str] = field(default_factory=list)
    _specified_names: list[str] = field(default_factory=list)
    _modulefiles: list[str] = field(default_factory=list)
    _commands: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.settings = SettingsStack(self)

    # shell -----------------------------------------------------------------

    @property
    def shell_type(self) -> Shell:
        return resolve_shell(self.shell)

    # evaluation call stack -------------------------------------------------

    @property
    def mode(self) -> str:
        return self._modes[-1] if self._modes else ""

    @property
    def module_name(self) -> str:
        return self._module_names[-1] if self._module_names else ""

    @property
    def specified_name(self) -> str:
        return self._specified_names[-1] if self._specified_names else ""

    @property
    def modulefile(self) -> str:
        """Path of the script currently evaluated, empty outside any evaluation."""

        return self._modulefiles[-1] if self._modulefiles else ""

    @property
    def command(self) -> str:
        return self._commands[-1] if self._commands else ""

    @property
    def depth(self) -> int:
        return len(self._modulefiles)

    @contextmanager
    def in_mode(self, mode: str) -> Iterator[None]:
        self._modes.append(mode)
        try:
            yield
        finally:
            self._modes.pop()

    @contextmanager
    def evaluating(self, module_name: str, specified_name: str | None = None) -> Iterator[None]:
        """Push the module name (and the name as requested) for the ``with`` block."""

        self._module_names.append(module_name)
        self._specified_names.append(module_name if specified_name is None else specified_name)
        try:
            yield
        finally:
            self._module_names.pop()
            self._specified_names.pop()

    @contextmanager
    def in_modulefile(self, modfile: str) -> Iterator[None]:
        self._modulefiles.append(modfile)
        try:
            yield
        finally:
            self._modulefiles.pop()

    @contextmanager
    def running(self, command: str) -> Iterator[None]:
        self._commands.append(command)
        try:
            yield
        finally:
            self._commands.pop()

    # environment -----------------------------------------------------------

    def set_env(self, var: str, value: str) -> None:
        self.reporter.debug(f"setenv: {var}={value}")
        self.env[var] = value

    def unset_env(self, var: str) -> None:
        if var in self.env:
            self.reporter.debug(f"unset-env: {var}")
            del self.env[var]

    def expand_env_refs(self, text: str) -> str:
        """Replace ``$VAR``/``${VAR}`` references by their value, unset ones by nothing."""

        return _ENV_REF_RE.sub(lambda match: self.env.get(match.group(1), ""), text)

    def absolute_path(self, path: str) -> str:
        """Return ``path`` made absolute.

        Relative paths are taken from the directory of the script being
        evaluated or, outside any evaluation, from the working directory.

        Args:
            path: Path to normalise.

        Returns:
            str: Absolute normalised path, empty when ``path`` is empty.
        """

        if path == "":
            return ""
        base = posixpath.dirname(self.modulefile) if self.modulefile else self.cwd
        joined = posixpath.normpath(posixpath.join(base, path))
        if joined.startswith("//"):
            joined = "/" + joined.lstrip("/")
        return joined

    def module_paths(self, *, required: bool = False, resolve: bool = True, absolute: bool = True) -> list[str]:
        """Return the enabled module paths from ``MODULEPATH``.

        Args:
            required: Raise when ``MODULEPATH`` is not defined.
            resolve: Expand environment variable references in each entry.
            absolute: Convert each entry to an absolute path.

        Returns:
            list[str]: Non-empty entries in priority order.

        Raises:
            ModulePathUnsetError: When ``required`` and ``MODULEPATH`` is unset.
        """

        raw = self.env.get(MODULEPATH_VAR)
        if raw is None:
            if required:
                raise ModulePathUnsetError()
            return []
        paths: list[str] = []
        for entry in raw.split(PATH_SEPARATOR):
            if entry == "":
                continue
            if resolve:
                entry = self.expand_env_refs(entry)
            if absolute:
                entry = self.absolute_path(entry)
            paths.append(entry)
        return paths

    def loaded_module_list(self, *, filter_empty: bool = True) -> list[str]:
        raw = self.env.get(LOADED_MODULES_VAR)
        if raw is None:
            return []
        return [mod for mod in raw.split(PATH_SEPARATOR) if mod != "" or not filter_empty]

    def loaded_file_list(self) -> list[str]:
        raw = self.env.get(LOADED_FILES_VAR)
        if raw is None:
            return []
        return [modfile for modfile in raw.split(PATH_SEPARATOR) if modfile != ""]

    def loaded_registry(self) -> LoadedModules:
        """Return the loaded module registry, building it from the environment once.

        Raises:
            InconsistentStateError: When ``LOADEDMODULES`` and ``_LMFILES_`` differ in length.
        """

        if not self.loaded.cached:
            modules = self.loaded_module_list()
            files = self.loaded_file_list()
            if len(modules) != len(files):
                raise InconsistentStateError(
                    "Loaded environment state is inconsistent\n"
                    f"  LOADEDMODULES={' '.join(modules)}\n  _LMFILES_={' '.join(files)}"
                )
            for mod, modfile in zip(modules, files, strict=True):
                self.loaded.add(mod, modfile)
            self.loaded.cached = True
            self.reporter.debug(f"cacheCurrentModules: {len(modules)} loaded")
        return self.loaded

    def module_name_from_file(self, modfile: str) -> str:
        """Return the module name of ``modfile`` relative to the enabled module paths."""

        for modpath in self.module_paths():
            if f"{modfile}/".startswith(f"{modpath}/"):
                return modfile[len(modpath) + 1 :]
        return ""

    def modulepath_of_file(self, modfile: str) -> str:
        for modpath in self.module_paths():
            if f"{modfile}/".startswith(f"{modpath}/"):
                return modpath
        return ""

    # pending mutations -----------------------------------------------------

    def mark_env(self, var: str, state: MutationState) -> None:
        self.env_state[var] = state

    def mark_alias(self, name: str, state: MutationState) -> None:
        self.alias_state[name] = state

    def has_pending_output(self) -> bool:
        """Return ``True`` when the renderer has something to emit besides the status."""

        return bool(
            self.auto_init
            or self.env_state
            or self.alias_state
            or self.new_xresources
            or self.del_xresources
            or self.change_dir is not None
            or self.stdout_puts
            or self.return_text is not None
        )


__all__ = ["MutationState", "Session"]
