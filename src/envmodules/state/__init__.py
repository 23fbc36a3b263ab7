# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Session state, loaded module registry and settings snapshots."""

from __future__ import annotations

from .loaded import LoadedModules, closest_loaded_name, matching_loaded_name, matching_loaded_names
from .session import MutationState, Session
from .settings import SettingsStack

__all__ = [
    "LoadedModules",
    "MutationState",
    "Session",
    "SettingsStack",
    "closest_loaded_name",
    "matching_loaded_name",
    "matching_loaded_names",
]
