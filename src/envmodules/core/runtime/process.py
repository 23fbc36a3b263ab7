# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Safe wrappers around ``subprocess`` execution."""

from __future__ import annotations

import shutil

# Bandit: subprocess usage is intentional, helper commands (uname, xrdb, the
# pager and modulefile ``system`` calls) all go through this module.
import subprocess  # nosec B404 suppression_valid: Helper command wrapper enforces list arguments.
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from subprocess import CompletedProcess


@dataclass(slots=True)
class CommandOptions:
    """Command execution options."""

    env: Mapping[str, str] | None = None
    check: bool = True
    capture_output: bool = False
    discard_stdin: bool = False
    stdout_to_stderr: bool = False


class SubprocessExecutionError(RuntimeError):
    """Raised when a subprocess exits with a non-zero status while ``check`` is true."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str | None,
        stderr: str | None,
    ) -> None:
        """Initialise the error with captured subprocess metadata.

        Args:
            command: Normalised command sequence that was executed.
            returncode: Exit status reported by the subprocess.
            stdout: Captured standard output stream.
            stderr: Captured standard error stream.
        """
        super().__init__(
            f"Command '{command[0]}' exited with status {returncode}. stderr: {stderr or '<none>'}",
        )
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def _stderr_fileno() -> int | None:
    try:
        return sys.stderr.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def find_executable(name: str, env: Mapping[str, str] | None = None) -> str | None:
    """Return the absolute path of ``name`` looked up on the ``PATH`` of ``env``."""

    search_path = env.get("PATH") if env is not None else None
    return shutil.which(name, path=search_path)


def _normalize_args(args: Sequence[str], env: Mapping[str, str] | None) -> list[str]:
    """Normalise the subprocess argument sequence.

    Args:
        args: Raw command arguments supplied by the caller.
        env: Environment whose ``PATH`` is used to resolve the executable.

    Returns:
        list[str]: Validated argument list suitable for subprocess execution.

    Raises:
        ValueError: If no arguments are provided.
        FileNotFoundError: If the executable cannot be resolved.
    """

    if not args:
        msg = "subprocess command requires at least one argument"
        raise ValueError(msg)

    head, *rest = args
    head_path = Path(head)
    if head_path.is_absolute():
        return [str(head_path), *rest]

    resolved = find_executable(head, env)
    if resolved is None:
        msg = f"Executable '{head}' was not found on PATH"
        raise FileNotFoundError(msg)
    return [resolved, *rest]


def run_command(
    args: Sequence[str],
    *,
    options: CommandOptions | None = None,
) -> CompletedProcess[str]:
    """Execute ``args`` after normalising the executable path.

    Args:
        args: Command and argument sequence to execute.
        options: Options configuring execution semantics.

    Returns:
        CompletedProcess: Subprocess execution metadata.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
        SubprocessExecutionError: When ``check`` is true and the process exits
            with a non-zero status.
    """

    resolved_options = options or CommandOptions()
    normalized = _normalize_args(args, resolved_options.env)

    stdout_target: int | None = None
    relay_stdout = False
    if resolved_options.capture_output:
        stdout_target = subprocess.PIPE
    elif resolved_options.stdout_to_stderr:
        stdout_target = _stderr_fileno()
        if stdout_target is None:
            stdout_target = subprocess.PIPE
            relay_stdout = True

    # Bandit: argument lists are passed directly without shell expansion.
    completed: CompletedProcess[str] = subprocess.run(  # nosec B603 - list arguments, no shell
        normalized,
        env=dict(resolved_options.env) if resolved_options.env is not None else None,
        check=False,
        stdout=stdout_target,
        stderr=subprocess.PIPE if resolved_options.capture_output else None,
        text=True,
        stdin=subprocess.DEVNULL if resolved_options.discard_stdin else None,
    )

    if relay_stdout and completed.stdout:
        sys.stderr.write(completed.stdout)

    if resolved_options.check and completed.returncode != 0:
        raise SubprocessExecutionError(
            normalized,
            completed.returncode,
            completed.stdout if isinstance(completed.stdout, str) else None,
            completed.stderr if isinstance(completed.stderr, str) else None,
        )

    return completed


def open_pipe(args: Sequence[str], *, env: Mapping[str, str] | None = None) -> subprocess.Popen[str]:
    """Start ``args`` with a writable stdin pipe and its output bound to stderr.

    Args:
        args: Command and argument sequence to start.
        env: Environment of the child process.

    Returns:
        subprocess.Popen[str]: Running process accepting text on stdin.

    Raises:
        FileNotFoundError: If the executable cannot be resolved on ``PATH``.
    """

    normalized = _normalize_args(args, env)
    return subprocess.Popen(  # nosec B603 - list arguments, no shell
        normalized,
        stdin=subprocess.PIPE,
        stdout=_stderr_fileno(),
        stderr=_stderr_fileno(),
        env=dict(env) if env is not None else None,
        text=True,
        bufsize=1,
    )


__all__ = [
    "CommandOptions",
    "SubprocessExecutionError",
    "find_executable",
    "open_pipe",
    "run_command",
]
