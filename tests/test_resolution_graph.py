# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for alias and symbolic version resolution."""

from __future__ import annotations

import pytest

from envmodules.errors import InvalidModuleNameError, ResolutionCycleError
from envmodules.resolution import ResolutionGraph, is_full_path, is_hidden, split_module_name


def test_alias_chain_resolves_to_endpoint() -> None:
    graph = ResolutionGraph()

    graph.add_alias("a", "b")
    graph.add_alias("b", "c/1.0")

    assert graph.resolve("a") == "c/1.0"
    assert graph.resolve("b") == "c/1.0"


def test_cycle_is_rejected_without_resolving() -> None:
    graph = ResolutionGraph()
    graph.add_alias("a", "b")

    with pytest.raises(ResolutionCycleError, match="Resolution loop on 'b' detected"):
        graph.add_alias("b", "a")

    assert graph.resolve("b") is None
    assert "b" not in graph.aliases


def test_self_alias_is_a_cycle() -> None:
    with pytest.raises(ResolutionCycleError):
        ResolutionGraph().add_alias("x", "x")


def test_default_symbol_registers_bare_name() -> None:
    graph = ResolutionGraph()

    graph.add_version(split_module_name("foo/1.0"), ["default"])

    assert graph.resolve("foo/default") == "foo/1.0"
    assert graph.resolve("foo") == "foo/1.0"
    assert graph.symbols_of("foo/1.0") == ["default"]


def test_default_moves_to_new_target() -> None:
    graph = ResolutionGraph()
    graph.add_version(split_module_name("foo/1.0"), ["default"])

    graph.set_resolution("foo/default", "foo/2.0", "default")

    assert graph.resolve("foo") == "foo/2.0"
    assert graph.symbols_of("foo/1.0") == []
    assert graph.symbols_of("foo/2.0") == ["default"]


def test_duplicate_symbol_is_reported() -> None:
    graph = ResolutionGraph()
    graph.add_version(split_module_name("foo/1.0"), ["stable"])

    duplicates = graph.add_version(split_module_name("foo/2.0"), ["stable"])

    assert duplicates == ["foo/stable"]
    assert graph.resolve("foo/stable") == "foo/1.0"


def test_symbols_follow_aliases_to_their_target() -> None:
    graph = ResolutionGraph()
    graph.add_alias("foo/latest", "bar/3.0")

    graph.add_version(split_module_name("foo/latest"), ["new"])

    assert graph.resolve("bar/new") == "bar/3.0"


def test_rc_definitions_snapshot() -> None:
    graph = ResolutionGraph()
    graph.add_alias("site", "foo/1.0", source="/etc/rc")

    graph.mark_rc_definitions()
    graph.add_alias("later", "foo/2.0")

    assert graph.rc_aliases == {"site": "foo/1.0"}


def test_split_module_name() -> None:
    assert split_module_name("foo/1.0/") == ("foo/1.0", "foo", "1.0")
    assert split_module_name("foo") == ("foo", "foo", "")
    assert split_module_name("/2.0", current_module="foo/1.0", current_file="/mp/foo/.modulerc") == (
        "foo/2.0",
        "foo",
        "2.0",
    )


def test_shorthand_outside_module_directory_is_invalid() -> None:
    with pytest.raises(InvalidModuleNameError):
        split_module_name("./1.0", current_module="/tmp/script", current_file="/tmp/script")


def test_name_predicates() -> None:
    assert is_full_path("/opt/mod")
    assert is_full_path("./mod")
    assert not is_full_path("foo/1.0")
    assert is_hidden("foo/.1.0")
    assert not is_hidden("foo/1.0")
