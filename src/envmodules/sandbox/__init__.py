# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Sandboxed evaluation of modulefiles and rc files."""

from __future__ import annotations

from .context import ContextPool, EvaluationContext
from .engine import SandboxEngine
from .primitives import MODULEFILE_VOCABULARY, MODULERC_VOCABULARY, Primitives

__all__ = [
    "ContextPool",
    "EvaluationContext",
    "MODULEFILE_VOCABULARY",
    "MODULERC_VOCABULARY",
    "Primitives",
    "SandboxEngine",
]
