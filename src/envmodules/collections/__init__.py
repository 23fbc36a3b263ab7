# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persistence of named module collections."""

from __future__ import annotations

from .store import (
    DEFAULT_COLLECTION,
    Collection,
    CollectionFile,
    CollectionStore,
    RestoreRunner,
    movement_between,
)

__all__ = [
    "Collection",
    "CollectionFile",
    "CollectionStore",
    "DEFAULT_COLLECTION",
    "RestoreRunner",
    "movement_between",
]
