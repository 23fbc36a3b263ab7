# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring the session, dispatcher and renderer."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Annotated

import typer

from ..commands.dispatcher import Dispatcher
from ..config import ConfigError, load_engine_config
from ..core.logging import Reporter, ReporterLogHandler
from ..errors import ArgumentError, EnvModulesError
from ..render import Renderer, resolve_shell
from ..runtime.console import detect_tty
from ..state.session import Session
from .core.shared import CLIError, CLILogger, build_cli_logger
from .options import Invocation, parse_invocation, release_quarantine
from .typer_ext import create_typer

_LIBRARY_LOGGER = "envmodules"

app = create_typer(
    name="modulecmd",
    help="Evaluate environment modules and print the shell code applying them.",
)


@contextmanager
def _library_logging(reporter: Reporter) -> Iterator[None]:
    """Forward library log records to debug reports while debugging is on."""

    if not reporter.debug_enabled:
        yield
        return
    logger = logging.getLogger(_LIBRARY_LOGGER)
    handler = ReporterLogHandler(reporter)
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)


def _build_session(argv: Sequence[str], env: dict[str, str], reporter: Reporter) -> Session:
    config = load_engine_config(env)
    reporter.contact = config.contact
    shell = argv[0] if argv else ""
    resolve_shell(shell)
    return Session(config=config, reporter=reporter, shell=shell, env=env)


def _execute(invocation: Invocation, session: Session, renderer: Renderer, logger: CLILogger) -> None:
    reporter = session.reporter
    config = session.config
    session.show_oneperline = invocation.show_oneperline
    session.show_modtimes = invocation.show_modtimes
    session.show_filter = invocation.show_filter
    reporter.init_pager(config.pager, config.pager_options, env=session.env, asked=invocation.paginate)
    release_quarantine(session.env, invocation.shell_type, warn=reporter.warning, debug=reporter.debug)

    dispatcher = Dispatcher(session)
    if invocation.show_help:
        dispatcher.help([])
        return
    if invocation.show_version:
        reporter.version(dispatcher.release)
        return

    dispatcher.run_global_rc()
    dispatcher.module(invocation.command, invocation.args, top=True)
    logger.echo(renderer.render_settings())


def run_modulecmd(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    stderr_tty: bool | None = None,
) -> int:
    """Run one ``modulecmd`` invocation.

    Generated shell code is written to stdout, diagnostics to stderr. A
    failed command still exits 0: its status reaches the calling shell
    through the rendered false statement. Only fatal errors exit non-zero.

    Args:
        argv: Command line without the program name, shell name first.
        env: Environment to start from; defaults to the process environment.
        stderr_tty: Override the terminal detection used by ``autoinit``.

    Returns:
        int: Process exit status.
    """

    environ = dict(os.environ if env is None else env)
    logger = build_cli_logger(use_color=detect_tty())
    reporter = logger.reporter
    renderer: Renderer | None = None
    try:
        try:
            session = _build_session(argv, environ, reporter)
            renderer = Renderer(session, stderr_tty=stderr_tty)
            invocation = parse_invocation(argv, warn=reporter.warning)
            reporter.debug_enabled = invocation.debug
            reporter.debug(f"CALLING modulecmd {' '.join(argv)}")
            with _library_logging(reporter):
                _execute(invocation, session, renderer, logger)
        except ArgumentError as exc:
            raise CLIError(str(exc), exit_code=exc.exit_code) from exc
        except ConfigError as exc:
            raise CLIError(f"Site configuration source failed\n{exc}") from exc
        except EnvModulesError as exc:
            raise CLIError(str(exc)) from exc
    except CLIError as exc:
        if renderer is not None:
            logger.echo(renderer.render_false())
        logger.fail(str(exc))
        reporter.close()
        return exc.exit_code
    reporter.close()
    return 0


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": [],
    },
)
def modulecmd(
    ctx: typer.Context,
    shell: Annotated[str, typer.Argument(help="Shell the generated code is meant for.", show_default=False)] = "",
) -> None:
    """Run a module sub-command and print the code applying its result.

    Raises:
        typer.Exit: Always raised to terminate with the invocation status.
    """

    raise typer.Exit(code=run_modulecmd([shell, *ctx.args]))


def main() -> None:
    """Console script entry point."""

    app()


__all__ = ["app", "main", "run_modulecmd"]
