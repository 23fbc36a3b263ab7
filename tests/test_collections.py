# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for saving, listing and restoring named collections."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from envmodules.collections import CollectionFile, CollectionStore, movement_between
from envmodules.commands import Dispatcher
from envmodules.errors import CollectionError, EnvModulesError
from envmodules.state import Session


class RecordingRunner:
    """Restore runner recording the commands it is asked to run."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str]]] = []

    def unload_modules(self, mods: Sequence[str]) -> None:
        self.calls.append(("unload", list(mods)))

    def unuse_paths(self, paths: Sequence[str]) -> None:
        self.calls.append(("unuse", list(paths)))

    def use_paths(self, paths: Sequence[str], *, append: bool) -> None:
        self.calls.append(("use", list(paths)))

    def load_modules(self, mods: Sequence[str]) -> None:
        self.calls.append(("load", list(mods)))


def test_save_writes_simplified_names(tree, home: Path, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo/1.0"])

    dispatcher.save()

    text = (home / ".module" / "default").read_text(encoding="utf-8")
    assert text == f"module use --append {tree}\nmodule load foo\n"


def test_pinned_versions_are_saved_as_loaded(tree, home: Path, make_session: Callable[..., Session]) -> None:
    tree.add("foo/1.0")
    dispatcher = Dispatcher(make_session(MODULES_COLLECTION_PIN_VERSION="1"))
    dispatcher.load_modules(["foo"])

    dispatcher.save("pinned")

    assert (home / ".module" / "pinned").read_text(encoding="utf-8").endswith("module load foo/1.0\n")


def test_non_default_version_is_not_simplified(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    tree.add("foo/2.0")
    dispatcher.load_modules(["foo/1.0"])

    assert dispatcher.collections.current().modules == ["foo/1.0"]


def test_restore_loads_into_fresh_session(tree, dispatcher: Dispatcher, make_session) -> None:
    tree.add("foo/1.0", 'setenv("FOO", "1")\n')
    tree.add("bar/1.0")
    dispatcher.load_modules(["foo", "bar"])
    dispatcher.save("work")

    fresh = Dispatcher(make_session())
    fresh.restore("work")

    assert fresh.session.loaded_module_list() == ["foo/1.0", "bar/1.0"]
    assert fresh.session.env["FOO"] == "1"


def test_restore_of_current_state_does_nothing(tree, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])
    dispatcher.save()
    runner = RecordingRunner()

    dispatcher.collections.restore("default", runner)

    assert runner.calls == []


def test_restore_keeps_common_prefix(tree, dispatcher: Dispatcher) -> None:
    for name in ("a", "b", "c"):
        tree.add(f"{name}/1.0")
    dispatcher.load_modules(["a", "b"])
    dispatcher.save()
    dispatcher.unload_modules(["b"])
    dispatcher.load_modules(["c"])
    runner = RecordingRunner()

    dispatcher.collections.restore("default", runner)

    assert runner.calls == [("unload", ["c"]), ("load", ["b"])]


def test_movement_between_lists() -> None:
    assert movement_between(["a", "b", "c"], ["a", "x"]) == (["b", "c"], ["x"])
    assert movement_between(["a"], ["a"]) == ([], [])
    assert movement_between([], ["a", "b"]) == ([], ["a", "b"])


def test_reader_accepts_hand_written_collections(tmp_path: Path, dispatcher: Dispatcher) -> None:
    path = tmp_path / "coll"
    path.write_text(
        "# my modules\nmodule use /p1\nuse --prepend /p0\nmodule load a b\nload c\n",
        encoding="utf-8",
    )

    collection = dispatcher.collections.read(CollectionFile(path, str(path)))

    assert collection.paths == ["/p0", "/p1"]
    assert collection.modules == ["a", "b", "c"]


def test_target_suffixes_collection_files(tree, home: Path, make_session, capsys) -> None:
    tree.add("foo/1.0")
    dispatcher = Dispatcher(make_session(MODULES_COLLECTION_TARGET="x86"))
    dispatcher.load_modules(["foo"])

    dispatcher.save()
    dispatcher.savelist()

    assert (home / ".module" / "default.x86").is_file()
    err = capsys.readouterr().err
    assert 'Named collection list (for target "x86"):' in err
    assert "1) default" in err
    assert "default.x86" not in err


def test_savelist_without_collections(dispatcher: Dispatcher, capsys) -> None:
    dispatcher.savelist()

    assert "No named collection." in capsys.readouterr().err


def test_saveshow_prints_content(tree, dispatcher: Dispatcher, capsys) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])
    dispatcher.save()

    dispatcher.saveshow()

    err = capsys.readouterr().err
    assert "module load foo" in err
    assert "/.module/default:" in err


def test_saverm_removes_collection(tree, home: Path, dispatcher: Dispatcher) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])
    dispatcher.save()

    dispatcher.saverm()

    assert not (home / ".module" / "default").exists()


@pytest.mark.parametrize(
    ("command", "name", "message"),
    [
        ("saverm", "/tmp/coll", "Command does not remove collection specified as filepath"),
        ("restore", "missing", "Collection missing cannot be found"),
        ("saveshow", "missing", "Collection missing cannot be found"),
        ("save", "", "Invalid empty collection name"),
    ],
)
def test_collection_command_errors(tree, dispatcher: Dispatcher, command: str, name: str, message: str) -> None:
    tree.add("foo/1.0")
    dispatcher.load_modules(["foo"])

    with pytest.raises(EnvModulesError, match=message):
        getattr(dispatcher, command)(name)


def test_nothing_to_save(make_session: Callable[..., Session]) -> None:
    dispatcher = Dispatcher(make_session(MODULEPATH=None))

    with pytest.raises(EnvModulesError, match="Nothing to save in a collection"):
        dispatcher.save()


def test_empty_collection_is_not_valid(home: Path, dispatcher: Dispatcher) -> None:
    (home / ".module").mkdir()
    (home / ".module" / "empty").write_text("# nothing\n", encoding="utf-8")

    with pytest.raises(CollectionError, match="empty is not a valid collection"):
        dispatcher.collections.read_valid("empty")


def test_home_is_required(make_session: Callable[..., Session], dispatcher: Dispatcher) -> None:
    session = make_session(HOME=None)
    store = CollectionStore(session, dispatcher.locator)

    with pytest.raises(CollectionError, match="HOME not defined"):
        store.collection_file("default")


def test_module_path_with_space_survives_save_and_restore(
    make_tree, home: Path, make_session: Callable[..., Session]
) -> None:
    spaced = make_tree("site modules")
    spaced.add("foo/1.0", 'setenv("FOO", "1")\n')
    dispatcher = Dispatcher(make_session(MODULEPATH=str(spaced)))
    dispatcher.load_modules(["foo"])

    dispatcher.save("spaced")

    text = (home / ".module" / "spaced").read_text(encoding="utf-8")
    assert text == f"module use --append {spaced.root.parent}/site\\ modules\nmodule load foo\n"

    fresh = Dispatcher(make_session(MODULEPATH=None))
    fresh.restore("spaced")

    assert fresh.session.env["MODULEPATH"] == str(spaced)
    assert fresh.session.loaded_module_list() == ["foo/1.0"]
