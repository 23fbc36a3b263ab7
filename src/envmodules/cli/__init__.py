# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command line interface of the module engine."""

from __future__ import annotations

from .app import app, main, run_modulecmd

__all__ = ["app", "main", "run_modulecmd"]
