# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for sub-command abbreviations and argument count checks."""

from __future__ import annotations

import pytest

from envmodules.commands.parsing import TOP_LEVEL_ONLY, argument_count_error, normalize_command


@pytest.mark.parametrize(
    ("typed", "canonical"),
    [
        ("add", "load"),
        ("lo", "load"),
        ("rm", "unload"),
        ("unlo", "unload"),
        ("refresh", "reload"),
        ("swap", "switch"),
        ("show", "display"),
        ("av", "avail"),
        ("li", "list"),
        ("apropos", "search"),
        ("keyword", "search"),
        ("pu", "purge"),
        ("initlo", "initadd"),
        ("initp", "initprepend"),
        ("initunlo", "initrm"),
        ("initl", "initlist"),
        ("save", "save"),
    ],
)
def test_abbreviations(typed: str, canonical: str) -> None:
    assert normalize_command(typed, ["x"]) == (canonical, ["x"])


def test_empty_command_means_help() -> None:
    assert normalize_command("", ["ignored"]) == ("help", [])


@pytest.mark.parametrize(
    ("command", "args"),
    [
        ("unload", []),
        ("list", ["extra"]),
        ("switch", ["a", "b", "c"]),
        ("path", []),
        ("save", ["a", "b"]),
        ("initswitch", ["a"]),
        ("prepend-path", ["VAR"]),
    ],
)
def test_wrong_argument_counts(command: str, args: list[str]) -> None:
    assert argument_count_error(command, args) == f"Unexpected number of args for '{command}' command"


@pytest.mark.parametrize(
    ("command", "args"),
    [("load", []), ("switch", ["a"]), ("save", []), ("prepend-path", ["VAR", "/a"]), ("unknown", ["x"])],
)
def test_accepted_argument_counts(command: str, args: list[str]) -> None:
    assert argument_count_error(command, args) is None


def test_queries_are_top_level_only() -> None:
    assert {"path", "is-loaded", "autoinit"} <= TOP_LEVEL_ONLY
    assert "load" not in TOP_LEVEL_ONLY
