# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for the ``modulecmd`` command (logging, errors)."""

from __future__ import annotations

from dataclasses import dataclass

import typer

from ...core.logging import Reporter


class CLIError(RuntimeError):
    """Error raised when the command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter routing CLI-level messages to the session reporter and stdout."""

    reporter: Reporter

    def fail(self, message: str) -> None:
        """Report ``message`` as an error, whatever inhibition is in effect.

        Args:
            message: Text describing the failure state.
        """

        self.reporter.reenable()
        self.reporter.report(f"ERROR: {message}", style="red")

    def echo(self, message: str) -> None:
        """Write generated shell code to stdout, as is.

        Args:
            message: Newline terminated statements.
        """

        if message:
            typer.echo(message, nl=False)


def build_cli_logger(*, debug: bool = False, use_color: bool = False) -> CLILogger:
    """Return a ``CLILogger`` bound to a fresh reporter.

    Args:
        debug: Whether debug reports should be enabled.
        use_color: Whether diagnostics may be coloured on a terminal.

    Returns:
        CLILogger: Logger writing diagnostics through a new :class:`Reporter`.
    """

    return CLILogger(reporter=Reporter(use_color=use_color, debug_enabled=debug))


__all__ = ["CLIError", "CLILogger", "build_cli_logger"]
