# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""End-to-end tests of the ``modulecmd`` command line."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from envmodules.cli.app import app, run_modulecmd
from envmodules.cli.typer_ext import create_typer

runner = CliRunner()


def test_load_prints_shell_code(tree, cli_env: dict[str, str]) -> None:
    tree.add("foo/1.0", 'setenv("FOO", "bar")\n')

    result = runner.invoke(app, ["sh", "load", "foo"])

    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert "FOO=bar; export FOO;" in lines
    assert "LOADEDMODULES=foo/1.0; export LOADEDMODULES;" in lines
    assert lines[-1] == "test 0;"


def test_failed_load_renders_false_status(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["bash", "load", "missing"])

    assert result.exit_code == 0
    assert result.stdout == "test 0 = 1;\n"
    assert "ERROR: Unable to locate a modulefile for 'missing'" in result.stderr


def test_invalid_option_exits_non_zero(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["sh", "load", "--bogus"])

    assert result.exit_code == 1
    assert result.stdout == "test 0 = 1;\n"
    assert "ERROR: Invalid option '--bogus'" in result.stderr


def test_unknown_shell(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["powershell", "list"])

    assert result.exit_code == 1
    assert result.stdout == ""
    assert "ERROR: Unknown shell type '(powershell)'" in result.stderr


def test_version_switch(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["sh", "-V"])

    assert result.exit_code == 0
    assert result.stderr.startswith("Modules Release ")


def test_help_switch(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["sh", "--help"])

    assert result.exit_code == 0
    assert "Usage: module [options] [command] [args ...]" in result.stderr
    assert result.stdout == ""


def test_path_command_returns_text(tree, cli_env: dict[str, str]) -> None:
    modfile = tree.add("foo/1.0")

    result = runner.invoke(app, ["sh", "path", "foo"])

    assert result.stdout == f"echo '{modfile}';\n"


def test_debug_switch_traces_the_run(tree, cli_env: dict[str, str]) -> None:
    tree.add("foo/1.0")

    result = runner.invoke(app, ["sh", "-D", "load", "foo"])

    assert result.exit_code == 0
    assert "DEBUG CALLING modulecmd sh -D load foo" in result.stderr


def test_invalid_command_is_fatal(cli_env: dict[str, str]) -> None:
    result = runner.invoke(app, ["sh", "frobnicate"])

    assert result.exit_code == 1
    assert result.stdout == "test 0 = 1;\n"
    assert "ERROR: Invalid command 'frobnicate'" in result.stderr


def test_broken_site_configuration(tmp_path: Path, cli_env: dict[str, str], monkeypatch) -> None:
    site = tmp_path / "site.toml"
    site.write_text("csh_limit = -1\n", encoding="utf-8")
    monkeypatch.setenv("MODULES_SITECONFIG", str(site))

    result = runner.invoke(app, ["sh", "list"])

    assert result.exit_code == 1
    assert "ERROR: Site configuration source failed" in result.stderr


def test_run_modulecmd_with_explicit_environment(tree, cli_env: dict[str, str], capsys) -> None:
    tree.add("foo/1.0", 'set_alias("hi", "echo hi")\n')

    status = run_modulecmd(["zsh", "load", "foo"], env=cli_env)

    assert status == 0
    out = capsys.readouterr().out
    assert "alias hi=echo\\ hi;" in out.splitlines()


def test_quarantined_variable_is_released(tree, cli_env: dict[str, str], monkeypatch) -> None:
    tree.add("foo/1.0", 'setenv("SEEN", getenv("LD_PRELOAD"))\n')
    monkeypatch.setenv("MODULES_RUN_QUARANTINE", "LD_PRELOAD")
    monkeypatch.setenv("LD_PRELOAD", "")
    monkeypatch.setenv("LD_PRELOAD_modquar", "/lib/saved.so")

    result = runner.invoke(app, ["sh", "load", "foo"])

    assert "SEEN=/lib/saved.so; export SEEN;" in result.stdout.splitlines()


def test_create_typer_defaults_can_be_overridden() -> None:
    plain = create_typer(name="plain")
    custom = create_typer(name="custom", add_completion=True)

    assert plain._add_completion is False
    assert plain.pretty_exceptions_enable is False
    assert custom._add_completion is True
