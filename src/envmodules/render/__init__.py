# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shell code generation for every supported dialect."""

from __future__ import annotations

from .dialects import DIALECTS, Dialect, Shell, dialect_for, resolve_shell
from .renderer import Renderer

__all__ = ["DIALECTS", "Dialect", "Renderer", "Shell", "dialect_for", "resolve_shell"]
