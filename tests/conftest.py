# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from textwrap import dedent

import pytest

from envmodules.commands import Dispatcher
from envmodules.config import load_engine_config
from envmodules.core.logging import Reporter
from envmodules.state import Session

_ENGINE_PREFIXES = ("MODULE", "LOADEDMODULES", "_LMFILES_")


class ModuleTree:
    """Write modulefiles and rc files below one module path directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        root.mkdir(parents=True, exist_ok=True)

    def add(self, name: str, body: str = "", *, cookie: bool = True) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        header = "#%Module\n" if cookie else ""
        path.write_text(header + dedent(body), encoding="utf-8")
        return path

    def rc(self, directory: str, body: str, *, filename: str = ".modulerc") -> Path:
        return self.add(f"{directory}/{filename}", body)

    def __str__(self) -> str:
        return str(self.root)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def tree(tmp_path: Path) -> ModuleTree:
    return ModuleTree(tmp_path / "modulefiles")


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[str], ModuleTree]:
    """Return a factory creating extra module path directories."""

    def _make(name: str) -> ModuleTree:
        return ModuleTree(tmp_path / name)

    return _make


@pytest.fixture
def environ(tmp_path: Path, home: Path, tree: ModuleTree) -> dict[str, str]:
    """Return an environment isolated from the host module setup."""

    return {
        "HOME": str(home),
        "MODULEPATH": str(tree),
        "MODULESHOME": str(tmp_path / "moduleshome"),
        "PATH": os.environ.get("PATH", "/usr/bin:/bin"),
    }


@pytest.fixture
def make_session(tmp_path: Path, environ: dict[str, str]) -> Callable[..., Session]:
    def _make(shell: str = "sh", **overrides: str | None) -> Session:
        env = dict(environ)
        for key, value in overrides.items():
            if value is None:
                env.pop(key, None)
            else:
                env[key] = value
        config = load_engine_config(env)
        return Session(config=config, reporter=Reporter(), shell=shell, env=env, cwd=str(tmp_path))

    return _make


@pytest.fixture
def session(make_session: Callable[..., Session]) -> Session:
    return make_session()


@pytest.fixture
def dispatcher(session: Session) -> Dispatcher:
    return Dispatcher(session, release="1.0.0")


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch, environ: dict[str, str]) -> dict[str, str]:
    """Replace the module related process environment with ``environ``."""

    for var in list(os.environ):
        if var.startswith(_ENGINE_PREFIXES) or var.endswith("_modshare"):
            monkeypatch.delenv(var, raising=False)
    for key, value in environ.items():
        monkeypatch.setenv(key, value)
    return environ
