# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for ``module`` sub-commands run at top level."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from envmodules.commands import Dispatcher
from envmodules.errors import EnvModulesError
from envmodules.render import Renderer
from envmodules.state import Session


def test_switch_replaces_module(tree, dispatcher: Dispatcher) -> None:
    tree.add("a/1.0", 'setenv("A", "1")\n')
    tree.add("b/1.0", 'setenv("B", "1")\n')
    dispatcher.load_modules(["a"])

    assert dispatcher.switch("a", "b")

    session = dispatcher.session
    assert session.loaded_module_list() == ["b/1.0"]
    assert session.env_state["A"] == "del"
    assert session.env["B"] == "1"


def test_switch_skips_load_when_unload_fails(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add(
        "old/1.0",
        """
        setenv("OLD", "1")
        if module_info("mode") == "unload":
            raise RuntimeError("cannot unload")
        """,
    )
    tree.add("new/1.0", 'setenv("NEW", "1")\n')
    dispatcher.load_modules(["old"])

    assert not dispatcher.switch("old", "new")

    session = dispatcher.session
    assert session.loaded_module_list() == ["old/1.0"]
    assert "NEW" not in session.env
    assert "Module ERROR: RuntimeError: cannot unload" in capsys.readouterr().err


def test_switch_single_name_moves_to_default_version(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    dispatcher.load_modules(["foo/1.0"])

    dispatcher.module("swap", ["foo"])

    assert dispatcher.session.loaded_module_list() == ["foo/2.0"]


def test_is_loaded_follows_default_symbol(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    tree.rc("foo", 'module_version("foo/1.0", "default")\n')
    session = dispatcher.session

    dispatcher.module("load", ["foo"])
    assert session.loaded_module_list() == ["foo/1.0"]

    dispatcher.module("is-loaded", ["foo"])
    assert not session.return_false
    dispatcher.module("is-loaded", ["foo/1.0"])
    assert not session.return_false
    dispatcher.module("is-loaded", ["bar"])
    assert session.return_false


def test_info_loaded_returns_full_names(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])

    dispatcher.module("info-loaded", ["foo"])

    assert dispatcher.session.return_text == "foo/1.0"


def test_use_and_unuse_edit_modulepath(tree, make_tree, dispatcher: Dispatcher) -> None:
    extra = make_tree("extra")
    later = make_tree("later")
    session = dispatcher.session

    dispatcher.module("use", [str(extra)])
    dispatcher.module("use", ["--append", str(later)])
    assert session.env["MODULEPATH"] == f"{extra}:{tree}:{later}"

    dispatcher.module("unuse", [str(extra), str(later)])
    assert session.env["MODULEPATH"] == str(tree)
    assert session.env_state["MODULEPATH"] == "new"


def test_use_missing_directory_is_an_error(dispatcher: Dispatcher, capsys) -> None:
    dispatcher.module("use", ["/nonexistent/modulefiles"])

    assert "ERROR: Directory '/nonexistent/modulefiles' not found" in capsys.readouterr().err
    assert dispatcher.session.reporter.error_count == 1


def test_path_and_paths_return_text(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    session = dispatcher.session

    dispatcher.module("path", ["foo"])
    assert session.return_text == f"{tree}/foo/2.0"

    dispatcher.module("paths", ["foo"])
    assert session.return_text == f"{tree}/foo/1.0 {tree}/foo/2.0"


def test_invalid_command_is_fatal(dispatcher: Dispatcher) -> None:
    with pytest.raises(EnvModulesError, match="Invalid command 'bogus'\nTry 'module --help'"):
        dispatcher.module("bogus", [])


def test_wrong_argument_count_is_fatal(dispatcher: Dispatcher) -> None:
    with pytest.raises(EnvModulesError, match="Unexpected number of args for 'unload' command"):
        dispatcher.module("unload", [])


def test_append_path_from_command_line(dispatcher: Dispatcher) -> None:
    dispatcher.module("append-path", ["TOOLPATH", "/opt/a", "/opt/b"])

    session = dispatcher.session
    assert session.env["TOOLPATH"] == "/opt/a:/opt/b"
    assert session.env_state["TOOLPATH"] == "new"


def test_purge_and_reload_keep_load_order(tree, dispatcher: Dispatcher) -> None:
    tree.add("a/1.0")
    tree.add("b/1.0")
    session = dispatcher.session
    dispatcher.load_modules(["a", "b"])

    dispatcher.module("reload", [])
    assert session.loaded_module_list() == ["a/1.0", "b/1.0"]

    dispatcher.module("purge", [])
    assert session.loaded_module_list() == []


def test_source_runs_script_without_cookie(tmp_path: Path, dispatcher: Dispatcher) -> None:
    script = tmp_path / "setup.py"
    script.write_text('setenv("SOURCED", "1")\n', encoding="utf-8")

    dispatcher.module("source", [str(script)])

    assert dispatcher.session.env["SOURCED"] == "1"


def test_source_missing_file_is_fatal(dispatcher: Dispatcher) -> None:
    with pytest.raises(EnvModulesError, match="File /nonexistent/setup.py does not exist"):
        dispatcher.module("source", ["/nonexistent/setup.py"])


def test_global_rc_aliases(tree, tmp_path: Path, make_session: Callable[..., Session]) -> None:
    tree.add("foo/1.0")
    rcfile = tmp_path / "rc"
    rcfile.write_text('module_alias("site", "foo/1.0")\n', encoding="utf-8")
    dispatcher = Dispatcher(make_session(MODULERCFILE=str(rcfile)))

    dispatcher.run_global_rc()

    assert dispatcher.session.graph.rc_aliases == {"site": "foo/1.0"}
    assert dispatcher.locator.path_to_module("site").path == f"{tree}/foo/1.0"


def test_avail_lists_modules_with_symbols(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    tree.add("bar/1.0")
    tree.rc("foo", 'module_version("foo/1.0", "default")\nmodule_alias("foo/stable", "foo/2.0")\n')

    dispatcher.module("avail", [])

    err = capsys.readouterr().err
    assert str(tree) in err
    assert "bar/1.0" in err
    assert "foo/1.0(default)" in err
    assert "foo/stable(@)" in err


def test_list_loaded(tree, dispatcher: Dispatcher, capsys) -> None:
    dispatcher.module("list", [])
    assert "No Modulefiles Currently Loaded." in capsys.readouterr().err

    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])
    dispatcher.module("list", [])

    err = capsys.readouterr().err
    assert "Currently Loaded Modulefiles:" in err
    assert "1) foo/1.0" in err


def test_search_and_whatis(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add("foo/1.0", 'module_whatis("Foo tools")\n')
    tree.add("bar/1.0", 'module_whatis("Bar library")\n')

    dispatcher.module("apropos", ["LIBRARY"])
    err = capsys.readouterr().err
    assert "bar/1.0: Bar library" in err
    assert "Foo tools" not in err

    dispatcher.module("whatis", ["foo"])
    assert "foo/1.0: Foo tools" in capsys.readouterr().err


def test_invalid_search_pattern_is_fatal(dispatcher: Dispatcher) -> None:
    with pytest.raises(EnvModulesError, match="Invalid search pattern"):
        dispatcher.search("", "(")


def test_help_without_modules_prints_usage(dispatcher: Dispatcher, capsys) -> None:
    dispatcher.module("help", [])

    err = capsys.readouterr().err
    assert "Modules Release 1.0.0" in err
    assert "Usage: module [options] [command] [args ...]" in err


def test_autoinit_defines_module_function(tmp_path: Path, dispatcher: Dispatcher) -> None:
    session = dispatcher.session

    dispatcher.module("autoinit", [])

    assert session.auto_init
    assert session.env["MODULESHOME"] == str(tmp_path / "moduleshome")
    assert session.env["LOADEDMODULES"] == ""
    assert "envmodules" in session.env["MODULES_CMD"]
    text = Renderer(session, stderr_tty=False).render_settings()
    assert text.startswith("module() {")
    assert "MODULESHOME=" in text
    assert text.endswith("test 0;\n")


def test_nested_module_command_in_display_mode(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add("app/1.0", 'module("use", "/opt/extra")\n')

    dispatcher.module("show", ["app"])

    assert "module use" in capsys.readouterr().err
    assert "MODULEPATH" not in dispatcher.session.env_state
