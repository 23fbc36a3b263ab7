# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for ``modulecmd`` command line parsing."""

from __future__ import annotations

import pytest

from envmodules.cli.options import Invocation, parse_invocation, release_quarantine
from envmodules.errors import ArgumentError, UnknownShellError
from envmodules.render import Shell


def _parse(*argv: str, warnings: list[str] | None = None) -> Invocation:
    sink = warnings if warnings is not None else []
    return parse_invocation(list(argv), warn=sink.append)


def test_switches_are_extracted_anywhere() -> None:
    invocation = _parse("bash", "avail", "-t", "foo", "-D", "--no-pager")

    assert invocation.shell == "bash"
    assert invocation.shell_type is Shell.SH
    assert invocation.command == "avail"
    assert invocation.args == ["foo"]
    assert invocation.debug
    assert invocation.show_oneperline
    assert invocation.paginate is False


def test_last_listing_format_wins() -> None:
    invocation = _parse("sh", "-t", "list", "-l")

    assert invocation.show_modtimes
    assert not invocation.show_oneperline


def test_subcommand_switches_are_passed_through() -> None:
    invocation = _parse("sh", "use", "--append", "/opt/mods")

    assert invocation.args == ["--append", "/opt/mods"]


def test_short_delim_after_path_command() -> None:
    invocation = _parse("sh", "append-path", "-d", ",", "VAR", "a,b")

    assert invocation.command == "append-path"
    assert invocation.args == ["-d", ",", "VAR", "a,b"]
    assert invocation.show_filter == ""


def test_default_filter_switch() -> None:
    assert _parse("sh", "avail", "-d").show_filter == "onlydefaults"
    assert _parse("sh", "avail", "--latest").show_filter == "onlylatest"


def test_unsupported_switches_warn() -> None:
    warnings: list[str] = []

    invocation = _parse("sh", "--force", "-u", "expert", "load", "foo", warnings=warnings)

    assert warnings == ["Unsupported option '--force'", "Unsupported option '-u'"]
    assert invocation.command == "load"
    assert invocation.args == ["foo"]


def test_invalid_switch_raises() -> None:
    with pytest.raises(ArgumentError, match="Invalid option '--bogus'"):
        _parse("sh", "load", "--bogus")


def test_unknown_shell_raises() -> None:
    with pytest.raises(UnknownShellError):
        _parse("powershell", "list")


def test_no_command_leaves_help_to_dispatcher() -> None:
    invocation = _parse("sh")

    assert invocation.command == ""
    assert invocation.args == []


def test_release_quarantine_restores_saved_values() -> None:
    env = {
        "MODULES_RUN_QUARANTINE": "LD_LIBRARY_PATH LD_PRELOAD 1BAD",
        "LD_LIBRARY_PATH": "/runenv",
        "LD_LIBRARY_PATH_modquar": "/saved",
        "LD_PRELOAD": "/runenv/lib.so",
    }
    warnings: list[str] = []

    release_quarantine(env, Shell.SH, warn=warnings.append, debug=lambda _msg: None)

    assert env["LD_LIBRARY_PATH"] == "/saved"
    assert env["LD_LIBRARY_PATH_modquar"] == "/saved"
    assert "LD_PRELOAD" not in env
    assert warnings == ["Bad variable name set in MODULES_RUN_QUARANTINE (1BAD)"]


def test_release_quarantine_ignored_for_csh() -> None:
    env = {"MODULES_RUN_QUARANTINE": "LD_PRELOAD", "LD_PRELOAD": "/lib.so"}

    release_quarantine(env, Shell.CSH, warn=lambda _msg: None, debug=lambda _msg: None)

    assert env["LD_PRELOAD"] == "/lib.so"
