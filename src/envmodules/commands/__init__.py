# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``module`` sub-commands."""

from __future__ import annotations

from .dispatcher import USAGE, Dispatcher
from .initfiles import InitFileEditor
from .parsing import TOP_LEVEL_ONLY, argument_count_error, normalize_command

__all__ = [
    "Dispatcher",
    "InitFileEditor",
    "TOP_LEVEL_ONLY",
    "USAGE",
    "argument_count_error",
    "normalize_command",
]
