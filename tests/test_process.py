# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the subprocess helpers."""

from __future__ import annotations

import pytest

from envmodules.core.runtime import CommandOptions, SubprocessExecutionError, run_command


def test_captured_output_is_returned() -> None:
    result = run_command(["/bin/sh", "-c", "echo hello"], options=CommandOptions(capture_output=True))

    assert result.returncode == 0
    assert result.stdout == "hello\n"


def test_checked_failure_raises() -> None:
    with pytest.raises(SubprocessExecutionError) as excinfo:
        run_command(["/bin/sh", "-c", "echo oops >&2; exit 4"], options=CommandOptions(capture_output=True))

    assert excinfo.value.returncode == 4
    assert excinfo.value.stderr == "oops\n"


def test_unchecked_failure_returns_status() -> None:
    result = run_command(["/bin/sh", "-c", "exit 3"], options=CommandOptions(check=False))

    assert result.returncode == 3


def test_stdout_is_relayed_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    options = CommandOptions(check=False, stdout_to_stderr=True)

    run_command(["/bin/sh", "-c", "echo relayed"], options=options)

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "relayed" in captured.err


def test_executable_is_looked_up_on_session_path() -> None:
    with pytest.raises(FileNotFoundError, match="not found on PATH"):
        run_command(["surely-not-installed-tool"], options=CommandOptions(env={"PATH": "/nonexistent"}))
