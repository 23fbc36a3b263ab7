# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for module lookup across module paths."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from envmodules.commands import Dispatcher
from envmodules.errors import ModulePathUnsetError
from envmodules.locator import AliasEntry, DirectoryEntry, IssueEntry, ModulefileEntry
from envmodules.state import Session


def test_highest_version_is_the_implicit_default(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.9")
    tree.add("foo/1.10")

    result = dispatcher.locator.path_to_module("foo")

    assert result.found
    assert result.name == "foo/1.10"
    assert result.path == f"{tree}/foo/1.10"


def test_version_file_sets_directory_default(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.9")
    tree.add("foo/1.10")
    tree.rc("foo", 'ModulesVersion = "1.9"\n', filename=".version")

    assert dispatcher.locator.path_to_module("foo").name == "foo/1.9"


def test_modulerc_declares_default_and_alias(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    tree.rc(
        "foo",
        """
        module_version("foo/1.0", "default")
        module_alias("foo/stable", "foo/2.0")
        """,
    )

    locator = dispatcher.locator
    assert locator.path_to_module("foo").name == "foo/1.0"
    assert locator.path_to_module("foo/stable").name == "foo/2.0"

    entries = locator.get_modules(str(tree), "foo")
    assert isinstance(entries["foo"], DirectoryEntry)
    assert entries["foo"].default == "1.0"
    assert isinstance(entries["foo/stable"], AliasEntry)
    assert isinstance(entries["foo/2.0"], ModulefileEntry)


def test_first_module_path_wins(tree, make_tree, make_session: Callable[..., Session]) -> None:
    other = make_tree("other")
    tree.add("foo/1.0")
    other.add("foo/1.0")
    session = make_session(MODULEPATH=f"{other}:{tree}")

    result = Dispatcher(session).locator.path_to_module("foo/1.0")

    assert result.path == f"{other}/foo/1.0"


def test_hidden_versions_are_not_defaults(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/.2.0")

    locator = dispatcher.locator
    assert locator.path_to_module("foo").name == "foo/1.0"
    assert locator.path_to_module("foo/.2.0").name == "foo/.2.0"
    assert "foo/.2.0" not in locator.get_modules(str(tree), "foo")


def test_unknown_module_is_reported(dispatcher: Dispatcher, capsys: pytest.CaptureFixture[str]) -> None:
    result = dispatcher.locator.path_to_module("nope")

    assert not result.found
    assert result.issue == "none"
    assert "ERROR: Unable to locate a modulefile for 'nope'" in capsys.readouterr().err
    assert dispatcher.session.reporter.error_count == 1


def test_missing_magic_cookie_is_an_invalid_script(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add("broken/1.0", "setenv('X', '1')\n", cookie=False)

    entries = dispatcher.locator.get_modules(str(tree), "broken")
    result = dispatcher.locator.path_to_module("broken/1.0")

    assert isinstance(entries["broken/1.0"], IssueEntry)
    assert result.issue == "invalid"
    err = capsys.readouterr().err
    assert "Module ERROR: Magic cookie '#%Module' missing" in err
    assert f"In '{tree}/broken/1.0'" in err


def test_full_path_lookup(tree, dispatcher: Dispatcher) -> None:
    script = tree.add("tools/1.0")

    result = dispatcher.locator.path_to_module(str(script))

    assert result.path == str(script)
    assert result.name == str(script)


def test_virtual_module_points_at_other_script(tree, tmp_path, dispatcher: Dispatcher) -> None:
    scripts = tmp_path / "scripts"
    scripts.mkdir()
    (scripts / "impl").write_text("#%Module\n", encoding="utf-8")
    tree.add("virt/0.1")
    tree.rc("virt", f'module_virtual("virt/1.0", "{scripts}/impl")\n')

    result = dispatcher.locator.path_to_module("virt/1.0")

    assert result.path == f"{scripts}/impl"
    assert result.name == "virt/1.0"


def test_ignored_directories_are_skipped(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/CVS/Entries")

    entries = dispatcher.locator.get_modules(str(tree), "foo")

    assert "foo/CVS" not in entries
    assert entries["foo"].children == ["1.0"]


def test_undefined_modulepath_is_fatal(make_session: Callable[..., Session]) -> None:
    dispatcher = Dispatcher(make_session(MODULEPATH=None))

    with pytest.raises(ModulePathUnsetError, match="No module path defined"):
        dispatcher.locator.path_to_module("foo")


def test_is_avail_is_silent(dispatcher: Dispatcher, capsys) -> None:
    assert not dispatcher.locator.is_avail("nope")
    assert capsys.readouterr().err == ""
    assert dispatcher.session.reporter.error_count == 0
