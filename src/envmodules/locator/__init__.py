# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Lookup of modulefiles across the enabled module paths."""

from __future__ import annotations

from .entries import (
    AliasEntry,
    DirectoryEntry,
    EntryMap,
    IssueEntry,
    ModuleEntry,
    ModulefileEntry,
    ModulercEntry,
    VersionEntry,
    VirtualEntry,
)
from .finder import ModuleFinder
from .locator import LocateResult, ModuleLocator

__all__ = [
    "AliasEntry",
    "DirectoryEntry",
    "EntryMap",
    "IssueEntry",
    "LocateResult",
    "ModuleEntry",
    "ModuleFinder",
    "ModuleLocator",
    "ModulefileEntry",
    "ModulercEntry",
    "VersionEntry",
    "VirtualEntry",
]
