# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Runtime helpers (subprocess execution)."""

from .process import CommandOptions, SubprocessExecutionError, find_executable, open_pipe, run_command

__all__ = [
    "CommandOptions",
    "SubprocessExecutionError",
    "find_executable",
    "open_pipe",
    "run_command",
]
