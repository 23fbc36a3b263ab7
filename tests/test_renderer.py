# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for shell code generation."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from envmodules.errors import UnknownShellError
from envmodules.render import Renderer, Shell, dialect_for, resolve_shell
from envmodules.state import Session


def _pending(session: Session, **values: str) -> Session:
    for var, value in values.items():
        session.env[var] = value
        session.mark_env(var, "new")
    return session


@pytest.mark.parametrize(
    ("shell", "assign", "unset"),
    [
        (Shell.SH, ["FOO=bar; export FOO;"], ["unset FOO;"]),
        (Shell.CSH, ["setenv FOO bar;"], ["unsetenv FOO;"]),
        (Shell.FISH, ["set -xg FOO bar;"], ["set -e FOO;"]),
        (Shell.CMD, ["set FOO=bar"], ["set FOO="]),
        (Shell.TCL, ["set ::env(FOO) {bar};"], ["catch {unset ::env(FOO)};"]),
        (Shell.PERL, ["$ENV{'FOO'} = 'bar';"], ["delete $ENV{'FOO'};"]),
        (Shell.PYTHON, ["os.environ['FOO'] = 'bar'"], ["os.environ['FOO'] = ''", "del os.environ['FOO']"]),
        (Shell.RUBY, ["ENV['FOO'] = 'bar'"], ["ENV['FOO'] = nil"]),
        (Shell.LISP, ['(setenv "FOO" "bar")'], ['(setenv "FOO" nil)']),
        (Shell.CMAKE, ['set(ENV{FOO} "bar")'], ["unset(ENV{FOO})"]),
        (Shell.R, ["Sys.setenv('FOO'='bar')"], ["Sys.unsetenv('FOO')"]),
    ],
)
def test_dialect_statements(shell: Shell, assign: list[str], unset: list[str]) -> None:
    dialect = dialect_for(shell)

    assert dialect.assign("FOO", "bar") == assign
    assert dialect.unset("FOO") == unset


def test_shell_names_resolve_to_families() -> None:
    assert resolve_shell("bash") is Shell.SH
    assert resolve_shell("tcsh") is Shell.CSH
    with pytest.raises(UnknownShellError, match=r"Unknown shell type '\(bogus\)'"):
        resolve_shell("bogus")


def test_sh_settings_end_with_true_status(session: Session) -> None:
    _pending(session, FOO="a b")
    session.mark_env("OLD", "del")

    text = Renderer(session).render_settings()

    assert text == "FOO=a\\ b; export FOO;\nunset OLD;\ntest 0;\n"


def test_nothing_pending_renders_nothing(session: Session) -> None:
    assert Renderer(session).render_settings() == ""


def test_errors_render_false_status(session: Session) -> None:
    _pending(session, FOO="bar")
    session.reporter.error_count = 1

    text = Renderer(session).render_settings()

    assert text.endswith("test 0 = 1;\n")
    assert "test 0;" not in text


def test_false_status_is_rendered_once(session: Session) -> None:
    renderer = Renderer(session)

    assert renderer.render_false() == "test 0 = 1;\n"
    assert renderer.render_false() == ""


def test_return_false_without_pending_changes(session: Session) -> None:
    session.return_false = True

    assert Renderer(session).render_settings() == "test 0 = 1;\n"


def test_return_text_replaces_status(session: Session) -> None:
    session.return_text = "/mp/foo/1.0 /mp/bar/2.0"

    text = Renderer(session).render_settings()

    assert text == "echo '/mp/foo/1.0';\necho '/mp/bar/2.0';\n"


def test_python_output_has_preamble(make_session: Callable[..., Session]) -> None:
    session = _pending(make_session("python"), FOO="it's")

    text = Renderer(session).render_settings()

    assert text.splitlines() == ["import os", "os.environ['FOO'] = 'it\\'s'", "_mlstatus = True"]


def test_same_mutations_differ_per_shell(make_session: Callable[..., Session]) -> None:
    sh = Renderer(_pending(make_session("bash"), FOO="bar")).render_settings()
    csh = Renderer(_pending(make_session("tcsh"), FOO="bar")).render_settings()

    assert sh != csh
    assert csh == "setenv FOO bar;\ntest 0;\n"


def test_csh_truncates_long_values(make_session: Callable[..., Session], capsys) -> None:
    session = make_session("csh")
    session.config.csh_limit = 10
    _pending(session, PATH="/a/b/c/d/e/f/g", LONGVAR="x" * 20)

    text = Renderer(session).render_settings()

    assert "setenv PATH /a/b/c/d/e:/usr/bin:/bin;" in text
    assert f"setenv LONGVAR {'x' * 10};" in text
    err = capsys.readouterr().err
    assert "WARNING: PATH exceeds 10 characters, truncating and appending /usr/bin:/bin ..." in err
    assert "WARNING: LONGVAR exceeds 10 characters, truncating..." in err


def test_fish_splits_list_variables(make_session: Callable[..., Session]) -> None:
    session = _pending(make_session("fish"), PATH="/a:/b", OTHER="/a:/b")

    lines = Renderer(session).render_settings().splitlines()

    assert "set -xg PATH /a /b;" in lines
    assert "set -xg OTHER /a:/b;" in lines


def test_csh_alias_arguments_use_history_syntax(make_session: Callable[..., Session]) -> None:
    session = make_session("csh")
    session.aliases["g"] = "grep $1"
    session.mark_alias("g", "new")

    text = Renderer(session).render_settings()

    assert text.startswith("alias g grep\\ \\!\\!:1;")


def test_sh_alias_and_unalias(session: Session) -> None:
    session.aliases["ll"] = "ls -l"
    session.mark_alias("ll", "new")
    session.mark_alias("gone", "del")

    lines = Renderer(session).render_settings().splitlines()

    assert lines[:2] == ["alias ll=ls\\ -l;", "unalias gone;"]


def test_chdir_and_deferred_output(session: Session) -> None:
    session.change_dir = "/tmp/work"
    session.stdout_puts.extend([("first", False), ("partial", True)])

    text = Renderer(session).render_settings()

    assert text == "cd '/tmp/work';\nfirst\npartial\ntest 0;\n"


def test_xresource_statements(session: Session) -> None:
    session.config.xrdb_command = "/nonexistent/xrdb"
    session.new_xresources["Foo*bar"] = "1"
    session.del_xresources["Foo*gone"] = "1"

    lines = Renderer(session).render_settings().splitlines()

    assert 'echo "Foo*bar: 1" | /nonexistent/xrdb -merge;' in lines
    assert 'echo "Foo*gone:" | /nonexistent/xrdb -merge;' in lines
