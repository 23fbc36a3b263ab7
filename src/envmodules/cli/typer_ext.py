# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer application factory for the ``modulecmd`` command."""

from __future__ import annotations

from typing import Any

import typer


def create_typer(**kwargs: Any) -> typer.Typer:
    """Return a Typer application with shell completion and rich tracebacks off.

    ``modulecmd`` output is evaluated by the calling shell, so neither the
    completion installer nor pretty exception pages may ever reach it.

    Args:
        **kwargs: Arguments forwarded to :class:`typer.Typer`; explicit values win.

    Returns:
        typer.Typer: Configured application.
    """

    kwargs.setdefault("add_completion", False)
    kwargs.setdefault("pretty_exceptions_enable", False)
    return typer.Typer(**kwargs)


__all__ = ["create_typer"]
