# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the edition of ``module load`` lines in shell startup files."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from envmodules.commands import Dispatcher
from envmodules.commands.initfiles import InitFileEditor, replace_in_list
from envmodules.errors import EnvModulesError
from envmodules.state import Session

BASHRC = "# setup\nmodule load foo bar # mine\nexport EDITOR=vi\n"


@pytest.fixture
def bashrc(home: Path) -> Path:
    path = home / ".bashrc"
    path.write_text(BASHRC, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    ("action", "modules", "expected"),
    [
        ("add", ["baz"], "module load foo bar baz # mine"),
        ("add", ["foo"], "module load bar foo # mine"),
        ("prepend", ["baz"], "module load baz foo bar # mine"),
        ("rm", ["foo"], "module load bar # mine"),
        ("switch", ["foo", "qux"], "module load qux bar # mine"),
        ("clear", [], "module load"),
    ],
)
def test_edit_actions(session: Session, bashrc: Path, action: str, modules: list[str], expected: str) -> None:
    InitFileEditor(session).run(action, modules)  # type: ignore[arg-type]

    lines = bashrc.read_text(encoding="utf-8").splitlines()
    assert lines == ["# setup", expected, "export EDITOR=vi"]


def test_list_reports_loaded_modules(session: Session, bashrc: Path, capsys) -> None:
    InitFileEditor(session).run("list")

    err = capsys.readouterr().err
    assert "sh initialization file $HOME/.bashrc loads modules:" in err
    assert "foo bar" in err
    assert bashrc.read_text(encoding="utf-8") == BASHRC


def test_add_removes_module_from_later_files(session: Session, home: Path) -> None:
    profile = home / ".profile"
    profile.write_text("module load a b\n", encoding="utf-8")
    bashrc = home / ".bashrc"
    bashrc.write_text("module load c a\n", encoding="utf-8")

    InitFileEditor(session).run("add", ["a"])

    assert profile.read_text(encoding="utf-8") == "module load b a\n"
    assert bashrc.read_text(encoding="utf-8") == "module load c\n"


def test_startup_files_follow_shell_order(session: Session, home: Path) -> None:
    names = [path.name for path in InitFileEditor(session).startup_files()]

    assert names == [".modules", ".bash_profile", ".bash_login", ".profile", ".bashrc"]


def test_missing_load_line_is_an_error(session: Session) -> None:
    with pytest.raises(EnvModulesError, match="Cannot find a 'module load' command in any of the 'sh' startup files"):
        InitFileEditor(session).run("add", ["foo"])


def test_shell_without_startup_files(make_session: Callable[..., Session]) -> None:
    with pytest.raises(EnvModulesError, match="No initialization file known for 'python' shell"):
        InitFileEditor(make_session("python")).run("list")


def test_init_command_goes_through_dispatcher(bashrc: Path, dispatcher: Dispatcher) -> None:
    dispatcher.module("initrm", ["bar"])

    assert "module load foo # mine" in bashrc.read_text(encoding="utf-8")


def test_replace_in_list() -> None:
    assert replace_in_list(["a", "b", "a"], "a") == ["b"]
    assert replace_in_list(["a", "b"], "a", "c") == ["c", "b"]
