# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Evaluation of modulefiles and rc files."""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING, Any

from ..errors import (
    ConstraintViolation,
    EnvModulesError,
    ModulefileAbort,
    ModulefileStop,
    ResolutionCycleError,
    SubModuleFailed,
)
from .context import ContextPool, Namespace
from .primitives import MODULEFILE_VOCABULARY, MODULERC_VOCABULARY, Primitives

if TYPE_CHECKING:
    from ..commands.dispatcher import Dispatcher
    from ..locator.locator import ModuleLocator
    from ..state.session import Session


def _describe(exc: BaseException) -> str:
    if isinstance(exc, EnvModulesError):
        return str(exc)
    return f"{type(exc).__name__}: {exc}"


class SandboxEngine:
    """Run scripts in pooled namespaces, one per nesting depth.

    ``locator`` and ``commands`` are bound by the dispatcher owning the
    engine; primitives reach module lookups and nested ``module`` calls
    through them.
    """

    locator: ModuleLocator
    commands: Dispatcher

    def __init__(self, session: Session) -> None:
        self._session = session
        self.primitives = Primitives(session, self)
        self._modulefile_pool = ContextPool(lambda: self.primitives.namespace(MODULEFILE_VOCABULARY))
        self._modulerc_pool = ContextPool(lambda: self.primitives.namespace(MODULERC_VOCABULARY))
        self._rc_sourced: dict[str, str] = {}

    def _variables(self, modfile: str, **extra: Any) -> dict[str, Any]:
        return {
            "ModulesCurrentModulefile": modfile,
            "__file__": modfile,
            "env": self.primitives.environment,
            **extra,
        }

    def execute_modulefile(self, modfile: str, *, must_have_cookie: bool = True) -> bool:
        """Evaluate the script at ``modfile`` in the current mode.

        Once a script called ``exit`` while loading, every later call is
        skipped and reported as a success.

        Args:
            modfile: Script to evaluate.
            must_have_cookie: Require the magic cookie on the first line.

        Returns:
            bool: ``True`` when the evaluation succeeded.
        """

        session = self._session
        reporter = session.reporter
        if session.inhibit_interp:
            reporter.debug(f"execute-modulefile: Skipping {modfile}")
            return True

        reporter.debug(f"execute-modulefile:  Starting {modfile}")
        with session.in_modulefile(modfile):
            content = self.locator.finder.read_module_content(
                modfile, report_issue=True, must_have_cookie=must_have_cookie
            )
            if content is None:
                return False
            namespace = self._modulefile_pool.acquire(session.depth, **self._variables(modfile))
            try:
                code = compile(content, modfile, "exec")
                exec(code, namespace)  # nosec B102
                self._run_mode_callback(namespace, modfile)
            except ModulefileStop:
                pass
            except ModulefileAbort:
                reporter.raise_error_count()
                return False
            except SubModuleFailed:
                return False
            except ConstraintViolation as exc:
                reporter.raise_error_count()
                reporter.report(f"WARNING: {exc}", style="yellow")
                return False
            except Exception as exc:  # noqa: BLE001
                reporter.internal_bug(_describe(exc), modfile)
                return False
        reporter.debug(f"Exiting {modfile}")
        return True

    def _run_mode_callback(self, namespace: Namespace, modfile: str) -> None:
        reporter = self._session.reporter
        match self._session.mode:
            case "help":
                callback = namespace.get("ModulesHelp")
                if callable(callback):
                    callback()
                else:
                    reporter.warning(f"Unable to find ModulesHelp in {modfile}.")
            case "display":
                callback = namespace.get("ModulesDisplay")
                if callable(callback):
                    callback()
            case "test":
                callback = namespace.get("ModulesTest")
                if not callable(callback):
                    reporter.warning(f"Unable to find ModulesTest in {modfile}.")
                elif callback():
                    reporter.report("Test result: PASS")
                else:
                    reporter.report("Test result: FAIL")
                    reporter.raise_error_count()

    def execute_modulerc(self, path: str) -> str:
        """Evaluate the rc file at ``path`` once per session.

        A ``.version`` file assigning ``ModulesVersion`` sets the default
        version of the directory holding it.

        Args:
            path: ``.modulerc`` or ``.version`` file.

        Returns:
            str: ``ModulesVersion`` value the file defined, possibly empty.
        """

        session = self._session
        reporter = session.reporter
        reporter.debug(f"execute-modulerc: {path}")
        if path in self._rc_sourced:
            return self._rc_sourced[path]

        modname = posixpath.dirname(session.module_name)
        version = ""
        inhibit_display = session.inhibit_display
        session.inhibit_display = True
        try:
            with session.in_modulefile(path):
                content = self.locator.finder.read_module_content(path)
                if content is not None:
                    reporter.debug(f"execute-modulerc: sourcing rc {path}")
                    namespace = self._modulerc_pool.acquire(
                        session.depth, **self._variables(path, ModulesVersion="")
                    )
                    try:
                        exec(compile(content, path, "exec"), namespace)  # nosec B102
                    except ModulefileStop:
                        pass
                    except ModulefileAbort:
                        reporter.raise_error_count()
                    except Exception as exc:  # noqa: BLE001
                        reporter.internal_bug(_describe(exc), path)
                    version = str(namespace.get("ModulesVersion") or "")

                if posixpath.basename(path) == session.config.version_filename and version:
                    self._set_default_version(modname, version, path)
        finally:
            session.inhibit_display = inhibit_display

        self._rc_sourced[path] = version
        return version

    def _set_default_version(self, modname: str, version: str, source: str) -> None:
        reporter = self._session.reporter
        if "/" in version:
            reporter.error(f"Invalid ModulesVersion '{version}' defined")
            return
        try:
            self._session.graph.set_resolution(f"{modname}/default", f"{modname}/{version}", "default", source=source)
        except ResolutionCycleError as exc:
            reporter.error(str(exc))


__all__ = ["SandboxEngine"]
