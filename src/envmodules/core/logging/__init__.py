# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Diagnostic output helpers for the module engine."""

from __future__ import annotations

from .public import print_line, separator
from .reporter import DEFAULT_CONTACT, Reporter, ReporterLogHandler

__all__ = [
    "DEFAULT_CONTACT",
    "Reporter",
    "ReporterLogHandler",
    "print_line",
    "separator",
]
