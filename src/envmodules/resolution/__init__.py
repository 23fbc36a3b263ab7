# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Module name resolution through aliases, symbolic versions and virtual modules."""

from __future__ import annotations

from .graph import (
    ModuleName,
    ResolutionGraph,
    is_full_path,
    is_hidden,
    is_virtual,
    same_root,
    split_module_name,
)

__all__ = [
    "ModuleName",
    "ResolutionGraph",
    "is_full_path",
    "is_hidden",
    "is_virtual",
    "same_root",
    "split_module_name",
]
