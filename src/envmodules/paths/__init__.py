# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reference-counted edition of delimiter-separated path variables."""

from __future__ import annotations

from .algebra import PathCommand, PathVariableState, Position, parse_path_arguments, read_path_state

__all__ = ["PathCommand", "PathVariableState", "Position", "parse_path_arguments", "read_path_state"]
