# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Diagnostic reporting channel shared by every engine component.

All human-readable output of the engine goes through a :class:`Reporter`:
warnings, errors, listings and the text printed by ``display``/``help``
commands. Generated shell code never does; it is written to stdout by the
renderer. The reporter keeps the error count that decides the final status
rendered for the calling shell.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Final, NoReturn

from ...errors import EnvModulesError
from ...runtime.console.manager import detect_tty, terminal_columns
from ..runtime.process import open_pipe
from .public import print_line, separator

DEFAULT_CONTACT: Final[str] = "root@localhost"
_NO_PAGER_COMMANDS: Final[frozenset[str]] = frozenset({"", "cat"})


@dataclass(slots=True)
class Reporter:
    """Write diagnostics to stderr, optionally through a pager."""

    use_color: bool = False
    debug_enabled: bool = False
    contact: str = DEFAULT_CONTACT
    error_count: int = 0
    inhibited: bool = False
    columns: int = field(default_factory=terminal_columns)
    _pager_command: list[str] = field(default_factory=list)
    _pager_env: dict[str, str] | None = None
    _start_pager: bool = False
    _pager: subprocess.Popen[str] | None = None

    def report(self, message: str, *, nonewline: bool = False, style: str | None = None) -> None:
        """Print ``message`` on the diagnostic channel.

        Args:
            message: Text to print.
            nonewline: Omit the trailing newline.
            style: Rich style applied when colour output is active.
        """

        if self._start_pager:
            self._start_pager = False
            self._open_pager()
        if self._pager is not None and self._pager.stdin is not None:
            try:
                self._pager.stdin.write(message if nonewline else f"{message}\n")
            except (BrokenPipeError, OSError):
                # pager quit early, remaining output is dropped
                self._pager = None
            return
        print_line(message, style=style, use_color=self.use_color, nonewline=nonewline)

    def debug(self, message: str) -> None:
        if self.debug_enabled:
            self.report(f"DEBUG {message}")

    def warning(self, message: str, *, nonewline: bool = False) -> None:
        if not self.inhibited:
            self.report(f"WARNING: {message}", nonewline=nonewline, style="yellow")

    def error(self, message: str, *, nonewline: bool = False) -> None:
        """Report an error and raise the error count unless reports are inhibited."""

        if not self.inhibited:
            self.error_count += 1
            self.report(f"ERROR: {message}", nonewline=nonewline, style="red")

    def internal_bug(self, message: str, modfile: str) -> None:
        """Report an unexpected failure of the script at ``modfile``."""

        if not self.inhibited:
            self.error_count += 1
            self.report(
                f"Module ERROR: {message}\n  In '{modfile}'\n  Please contact <{self.contact}>",
                style="red",
            )

    def issue(self, kind: str, message: str, path: str = "") -> None:
        """Report a locator issue, invalid scripts being framed as internal bugs."""

        if kind == "invalid":
            self.internal_bug(message, path)
        else:
            self.error(message)

    def raise_error_count(self) -> None:
        self.error_count += 1

    def fatal(self, message: str) -> NoReturn:
        """Count an error and abort the whole invocation with ``message``.

        Raises:
            EnvModulesError: Always.
        """

        self.error_count += 1
        raise EnvModulesError(message)

    def inhibit(self) -> None:
        """Silence warnings and errors, unless debugging is enabled."""

        if not self.debug_enabled:
            self.inhibited = True

    def reenable(self) -> None:
        self.inhibited = False

    @contextmanager
    def suppressed(self) -> Iterator[None]:
        """Inhibit reports for the duration of the ``with`` block."""

        previous = self.inhibited
        self.inhibit()
        try:
            yield
        finally:
            self.inhibited = previous

    def separator(self, title: str = "") -> None:
        self.report(separator(title, columns=self.columns))

    def version(self, release: str) -> None:
        self.report(f"Modules Release {release}")

    def init_pager(
        self,
        command: str,
        options: str,
        *,
        env: Mapping[str, str],
        asked: bool | None = None,
    ) -> None:
        """Decide whether diagnostics go through a pager.

        Args:
            command: Pager command from the configuration.
            options: Pager options from the configuration.
            env: Session environment, consulted for ``MODULES_PAGER``.
            asked: ``True`` for ``--paginate``, ``False`` for ``--no-pager``.
        """

        configured = os.path.basename(command) not in _NO_PAGER_COMMANDS
        use_pager = configured
        words = [command, *shlex.split(options)]

        override = env.get("MODULES_PAGER")
        if override is not None:
            if override != "":
                use_pager = True
                words = shlex.split(override)
            else:
                use_pager = False
                words = []
            self.debug(f"initPager: configure pager from MODULES_PAGER variable (use_pager={int(use_pager)})")

        if asked is True and not use_pager and configured:
            use_pager = True
        elif asked is False:
            use_pager = False

        if not words or os.path.basename(words[0]) in _NO_PAGER_COMMANDS:
            use_pager = False

        self._pager_command = words
        self._pager_env = dict(env)
        self._start_pager = use_pager and detect_tty()
        self.debug(f"initPager: start pager={int(self._start_pager)} cmd='{' '.join(words)}'")

    def _open_pager(self) -> None:
        try:
            self._pager = open_pipe(self._pager_command, env=self._pager_env)
        except OSError as exc:
            self.warning(str(exc))

    def close(self) -> None:
        """Flush and wait for the pager, if one was started."""

        pager, self._pager = self._pager, None
        if pager is None:
            return
        if pager.stdin is not None:
            try:
                pager.stdin.close()
            except OSError:
                self.debug("pager stdin already closed")
        pager.wait()


class ReporterLogHandler(logging.Handler):
    """Forward records of the engine's library loggers to ``DEBUG`` reports."""

    def __init__(self, reporter: Reporter) -> None:
        super().__init__(level=logging.DEBUG)
        self.reporter = reporter

    def emit(self, record: logging.LogRecord) -> None:
        self.reporter.debug(f"{record.name.rsplit('.', 1)[-1]}: {record.getMessage()}")


__all__ = ["DEFAULT_CONTACT", "Reporter", "ReporterLogHandler"]
