# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn the pending mutations of a session into code for the calling shell.

The renderer runs once, after the command completed. Everything it produces
is meant to be evaluated by the calling shell, so it is returned as text and
written to stdout by the caller; diagnostics still go through the reporter.
"""

from __future__ import annotations

import re
import sys
from typing import TYPE_CHECKING, Final

from ..core.escaping import char_escaped
from ..core.runtime.process import CommandOptions, SubprocessExecutionError, find_executable, run_command
from .autoinit import autoinit_definition, engine_argv
from .dialects import CshDialect, Dialect, Shell, dialect_for

if TYPE_CHECKING:
    from ..state.session import Session

_CSH_ARG_RE: Final[re.Pattern[str]] = re.compile(r"([^\\]|^)\$([0-9]+)")
_CSH_ALL_ARGS_RE: Final[re.Pattern[str]] = re.compile(r"([^\\]|^)\$\*")
_CSH_PATH_TAIL: Final[str] = ":/usr/bin:/bin"


class Renderer:
    """Render the pending mutations of ``session`` in the dialect of its shell."""

    def __init__(self, session: Session, *, stderr_tty: bool | None = None) -> None:
        self._session = session
        self._stderr_tty = sys.stderr.isatty() if stderr_tty is None else stderr_tty
        self._false_rendered = False

    @property
    def dialect(self) -> Dialect:
        return dialect_for(self._session.shell_type)

    def render_settings(self) -> str:
        """Return the code applying every pending mutation then the status.

        Returns:
            str: Newline terminated statements, empty when nothing is due.

        Raises:
            EnvModulesError: When ``autoinit`` was requested for a shell lacking it.
        """

        session = self._session
        reporter = session.reporter
        dialect = self.dialect
        reporter.debug("renderSettings: called.")

        lines: list[str] = []
        has_rendered = session.has_pending_output()
        if has_rendered:
            lines.extend(dialect.preamble)

        if session.auto_init:
            argv = engine_argv(session.config.autoinit_command)
            lines.append(autoinit_definition(session.shell_type, session.shell, argv, stderr_tty=self._stderr_tty))

        lines.extend(self._environment_lines(dialect))
        lines.extend(self._alias_lines(dialect))
        lines.extend(self._xresource_lines(dialect))

        if session.change_dir is not None:
            lines.extend(dialect.chdir(session.change_dir))

        text = "".join(f"{line}\n" for line in lines)
        text += self._stdout_text()

        if session.return_text is not None:
            reporter.debug("renderSettings: text value should be returned.")
            text += self.render_text(session.return_text)
        elif reporter.error_count > 0:
            reporter.debug(f"renderSettings: {reporter.error_count} error(s) detected.")
            text += self.render_false()
        elif session.return_false:
            reporter.debug("renderSettings: false value should be returned.")
            text += self.render_false()
        elif has_rendered:
            text += self.render_true()
        return text

    def _environment_lines(self, dialect: Dialect) -> list[str]:
        session = self._session
        lines: list[str] = []
        for var, state in session.env_state.items():
            if state == "del":
                lines.extend(dialect.unset(var))
            elif isinstance(dialect, CshDialect) and session.shell == "csh":
                lines.extend(dialect.assign_escaped(var, self._csh_value(var, session.env.get(var, ""))))
            else:
                lines.extend(dialect.assign(var, session.env.get(var, "")))
        return lines

    def _csh_value(self, var: str, value: str) -> str:
        limit = self._session.config.csh_limit
        escaped = char_escaped(value)
        if len(escaped) <= limit:
            return escaped
        reporter = self._session.reporter
        if var == "PATH":
            reporter.warning(f"PATH exceeds {limit} characters, truncating and appending /usr/bin:/bin ...")
            return escaped[:limit] + _CSH_PATH_TAIL
        reporter.warning(f"{var} exceeds {limit} characters, truncating...")
        return escaped[:limit]

    def _alias_lines(self, dialect: Dialect) -> list[str]:
        session = self._session
        lines: list[str] = []
        for name, state in session.alias_state.items():
            if state == "del":
                lines.extend(dialect.unalias(name))
                continue
            value = session.aliases.get(name, "")
            if dialect.shell is Shell.CSH:
                value = _CSH_ARG_RE.sub(r"\1!!:\2", value)
                value = _CSH_ALL_ARGS_RE.sub(r"\1!*", value)
            lines.extend(dialect.alias(name, value.replace("\\$", "$")))
        return lines

    def _xresource_lines(self, dialect: Dialect) -> list[str]:
        session = self._session
        if not session.new_xresources and not session.del_xresources:
            return []
        xrdb_name = session.config.xrdb_command
        xrdb = find_executable(xrdb_name, session.env) or xrdb_name
        lines: list[str] = list(dialect.xresource_preamble)
        for resource, value in session.new_xresources.items():
            if value == "":
                lines.extend(dialect.xrdb_merge_file(xrdb, resource))
            else:
                lines.extend(dialect.xrdb_merge_value(xrdb, resource, value))
        for resource in self._resources_to_delete(xrdb):
            lines.extend(dialect.xrdb_clear(xrdb, resource))
        return lines

    def _resources_to_delete(self, xrdb: str) -> list[str]:
        session = self._session
        resources: list[str] = []
        for resource, value in session.del_xresources.items():
            if value != "":
                resources.append(resource)
                continue
            # resource file: clear every resource it defines
            try:
                completed = run_command(
                    [xrdb, "-n", "load", resource],
                    options=CommandOptions(env=session.env, capture_output=True, discard_stdin=True),
                )
            except (OSError, SubprocessExecutionError) as exc:
                session.reporter.error(str(exc))
                continue
            resources.extend(line.split(":", 1)[0] for line in completed.stdout.splitlines() if line)
        return resources

    def _stdout_text(self) -> str:
        puts = self._session.stdout_puts
        if not puts:
            return ""
        text = "".join(chunk if nonewline else f"{chunk}\n" for chunk, nonewline in puts)
        if puts[-1][1]:
            text += "\n"
        return text

    def render_true(self) -> str:
        return f"{self.dialect.true_statement}\n"

    def render_false(self) -> str:
        """Return the false status statement, only the first time it is asked for."""

        if self._false_rendered:
            self._session.reporter.debug("renderFalse: false already rendered")
            return ""
        self._false_rendered = True
        return f"{self.dialect.false_statement}\n"

    def render_text(self, text: str) -> str:
        return "".join(f"{line}\n" for line in self.dialect.text(text))


__all__ = ["Renderer"]
