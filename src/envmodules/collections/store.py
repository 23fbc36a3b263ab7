# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Named collections of module paths and loaded modules.

A collection file lists ``module use --append <dir>`` lines followed by
``module load <mod>`` lines. Restoring one computes the smallest edit that
turns the current state into the stored one while keeping load order: the
common prefix of both lists is kept, the rest of the current list is
unloaded in reverse order and the rest of the stored list loaded in order.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final, Protocol

from ..core.escaping import char_escaped, char_unescaped
from ..constants import COLLECTION_PIN_VAR, COLLECTION_TARGET_VAR
from ..errors import CollectionError
from ..resolution.graph import is_full_path

if TYPE_CHECKING:
    from ..locator.locator import ModuleLocator
    from ..state.session import Session

DEFAULT_COLLECTION: Final[str] = "default"

_USE_RE: Final[re.Pattern[str]] = re.compile(r"^\s*(?:module\s+)?use\s+(.*)$")
_LOAD_RE: Final[re.Pattern[str]] = re.compile(r"^\s*(?:module\s+)?load\s+(.*)$")
_APPEND_FLAGS: Final[frozenset[str]] = frozenset({"--append", "-a", "-append"})
_PREPEND_FLAGS: Final[frozenset[str]] = frozenset({"--prepend", "-p", "-prepend"})
_WORD_SEP_RE: Final[re.Pattern[str]] = re.compile(r"(?<!\\)\s+")


class RestoreRunner(Protocol):
    """Commands a restore drives to reach the stored state."""

    def unload_modules(self, mods: Sequence[str]) -> object: ...

    def unuse_paths(self, paths: Sequence[str]) -> object: ...

    def use_paths(self, paths: Sequence[str], *, append: bool) -> object: ...

    def load_modules(self, mods: Sequence[str]) -> object: ...


@dataclass(frozen=True, slots=True)
class CollectionFile:
    """Location of a collection and the name used to describe it in messages."""

    path: Path
    description: str


@dataclass(slots=True)
class Collection:
    paths: list[str] = field(default_factory=list)
    modules: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.paths and not self.modules

    def format(self) -> str:
        """Return the text form written to collection files."""

        lines = [f"module use --append {char_escaped(path, ' ')}" for path in self.paths]
        lines.extend(f"module load {char_escaped(mod, ' ')}" for mod in self.modules)
        return "".join(f"{line}\n" for line in lines)


def _words(text: str) -> list[str]:
    """Split ``text`` on whitespace not preceded by a backslash."""

    return [char_unescaped(word, " ") for word in _WORD_SEP_RE.split(text.strip()) if word]


def movement_between(current: Sequence[str], target: Sequence[str]) -> tuple[list[str], list[str]]:
    """Return what to undo from ``current`` then do to reach ``target``.

    Both lists share their longest common prefix; everything after it is
    undone from ``current`` and done from ``target``.

    Args:
        current: Elements in their current order.
        target: Elements in the wanted order.

    Returns:
        tuple[list[str], list[str]]: Elements to undo, elements to do, both in list order.
    """

    prefix = 0
    for cur, tgt in zip(current, target, strict=False):
        if cur != tgt:
            break
        prefix += 1
    return list(current[prefix:]), list(target[prefix:])


class CollectionStore:
    """Read, write and restore collections for the current user."""

    def __init__(self, session: Session, locator: ModuleLocator) -> None:
        self._session = session
        self._locator = locator

    @property
    def target(self) -> str:
        return self._session.env.get(COLLECTION_TARGET_VAR, "")

    @property
    def pin_version(self) -> bool:
        return self._session.env.get(COLLECTION_PIN_VAR) == "1"

    def _root(self) -> Path:
        home = self._session.env.get("HOME")
        if home is None:
            raise CollectionError("HOME not defined")
        return self._session.config.collection_root(home)

    def collection_file(self, name: str) -> CollectionFile:
        """Return the file backing collection ``name``.

        A name containing ``/`` is a file path and ignores the target; any
        other name lives in the user's collection directory, suffixed with
        ``.<target>`` when a target is set.

        Raises:
            CollectionError: When ``name`` is empty or ``HOME`` is undefined.
        """

        if name == "":
            raise CollectionError("Invalid empty collection name")
        if "/" in name:
            return CollectionFile(Path(name), name)
        path = self._root() / name
        description = name
        if self.target:
            path = path.with_name(f"{path.name}.{self.target}")
            description = f'{name} (for target "{self.target}")'
        return CollectionFile(path, description)

    def find(self) -> list[Path]:
        """Return the saved collections matching the current target.

        Raises:
            CollectionError: When the collection directory cannot be read.
        """

        root = self._root()
        pattern = f"*.{self.target}" if self.target else "*"
        try:
            return [path for path in root.glob(pattern) if not path.name.startswith(".")]
        except OSError as exc:
            raise CollectionError(f"Cannot access collection directory.\n{exc}") from exc

    def display_name(self, path: Path) -> str:
        suffix = f".{self.target}" if self.target else ""
        name = path.name
        return name[: -len(suffix)] if suffix and name.endswith(suffix) else name

    def read(self, coll: CollectionFile) -> Collection:
        """Parse the collection file ``coll``.

        ``use`` lines append their paths unless a prepend flag precedes them;
        ``load`` lines may list several modules. Other lines are ignored.

        Raises:
            CollectionError: When the file cannot be read.
        """

        try:
            text = coll.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CollectionError(f"Collection {coll.description} cannot be read.\n{exc}") from exc

        collection = Collection()
        for line in text.splitlines():
            if match := _USE_RE.match(line):
                append = True
                front = 0
                for word in _words(match.group(1)):
                    if word in _APPEND_FLAGS:
                        append = True
                    elif word in _PREPEND_FLAGS:
                        append = False
                    else:
                        path = self._session.absolute_path(word)
                        if append:
                            collection.paths.append(path)
                        else:
                            collection.paths.insert(front, path)
                            front += 1
            elif match := _LOAD_RE.match(line):
                collection.modules.extend(_words(match.group(1)))
        return collection

    def read_valid(self, name: str) -> tuple[CollectionFile, Collection]:
        """Return the existing, non-empty collection ``name``.

        Raises:
            CollectionError: When the collection is missing, unreadable or empty.
        """

        coll = self.collection_file(name)
        if not coll.path.exists():
            raise CollectionError(f"Collection {coll.description} cannot be found")
        collection = self.read(coll)
        if collection.is_empty():
            raise CollectionError(f"{coll.description} is not a valid collection")
        return coll, collection

    def current(self) -> Collection:
        """Return the module paths and loaded modules as they would be saved."""

        session = self._session
        modules = session.loaded_module_list() if self.pin_version else self.simplified_loaded_modules()
        return Collection(paths=session.module_paths(resolve=False), modules=modules)

    def save(self, name: str = DEFAULT_COLLECTION) -> CollectionFile:
        """Write the current state as collection ``name``.

        Raises:
            CollectionError: When nothing is loaded or used, or the file cannot be written.
        """

        collection = self.current()
        if collection.is_empty():
            raise CollectionError("Nothing to save in a collection")
        coll = self.collection_file(name)
        directory = coll.path.parent
        if directory.exists() and not directory.is_dir():
            raise CollectionError(f"{directory} exists but is not a directory")
        self._session.reporter.debug(f"cmdModuleSave: Saving {coll.path}")
        try:
            directory.mkdir(parents=True, exist_ok=True)
            coll.path.write_text(collection.format(), encoding="utf-8")
        except OSError as exc:
            raise CollectionError(f"Collection {coll.description} cannot be saved.\n{exc}") from exc
        return coll

    def remove(self, name: str = DEFAULT_COLLECTION) -> None:
        """Delete collection ``name``.

        Raises:
            CollectionError: When ``name`` is a path, or the collection is missing
                or cannot be deleted.
        """

        if "/" in name:
            raise CollectionError("Command does not remove collection specified as filepath")
        coll = self.collection_file(name)
        if not coll.path.exists():
            raise CollectionError(f"Collection {coll.description} cannot be found")
        try:
            coll.path.unlink()
        except OSError as exc:
            raise CollectionError(f"Collection {coll.description} cannot be removed.\n{exc}") from exc

    def restore(self, name: str, runner: RestoreRunner) -> None:
        """Bring the session to the state stored in collection ``name``.

        Modules and paths are first undone, then the state is sampled again
        since unloading may have changed it, and the remaining elements are
        used and loaded.

        Raises:
            CollectionError: When the collection is missing, unreadable or empty.
        """

        session = self._session
        _, stored = self.read_valid(name)

        raw_before = session.loaded_module_list()
        simplified_before = self.simplified_loaded_modules()
        to_unload, _ = movement_between(simplified_before, stored.modules)
        to_unload_raw, _ = movement_between(raw_before, stored.modules)
        if len(to_unload) > len(to_unload_raw):
            to_unload = to_unload_raw
        to_unuse, _ = movement_between(session.module_paths(resolve=False), stored.paths)

        if to_unload:
            runner.unload_modules(list(reversed(to_unload)))
        if to_unuse:
            runner.unuse_paths(list(reversed(to_unuse)))

        simplified = self.simplified_loaded_modules(raw_before, simplified_before)
        _, to_load = movement_between(simplified, stored.modules)
        _, to_load_raw = movement_between(session.loaded_module_list(), stored.modules)
        if len(to_load) > len(to_load_raw):
            to_load = to_load_raw
        _, to_use = movement_between(session.module_paths(resolve=False), stored.paths)

        if to_use:
            runner.use_paths(to_use, append=True)
        if to_load:
            runner.load_modules(to_load)

    def simplified_loaded_modules(
        self,
        helper_raw: Sequence[str] = (),
        helper: Sequence[str] = (),
    ) -> list[str]:
        """Return the loaded modules with versions dropped where the default matches.

        ``foo/1.0`` becomes ``foo`` when ``foo`` resolves to the same script.
        The ``helper`` lists map raw names to names simplified earlier, for
        modules that can no longer be looked up.

        Args:
            helper_raw: Raw loaded names from a previous sampling.
            helper: Simplified names matching ``helper_raw``.

        Returns:
            list[str]: Simplified loaded module names in load order.
        """

        session = self._session
        modpaths = session.module_paths()
        registry = session.loaded_registry()
        simplified: list[str] = []
        for mod in session.loaded_module_list():
            if mod in helper_raw:
                simplified.append(helper[list(helper_raw).index(mod)])
            elif not is_full_path(mod) and modpaths:
                modfile = registry.file_of(mod)
                simple = mod
                parent = _parent(mod)
                while parent != ".":
                    with session.reporter.suppressed():
                        found = self._locator.path_to_module(parent, indir=modpaths)
                    if found.path != modfile:
                        break
                    simple = parent
                    parent = _parent(parent)
                simplified.append(simple)
            else:
                simplified.append(mod)
        return simplified


def _parent(name: str) -> str:
    head, sep, _ = name.rpartition("/")
    return head if sep and head else "."


__all__ = [
    "Collection",
    "CollectionFile",
    "CollectionStore",
    "DEFAULT_COLLECTION",
    "RestoreRunner",
    "movement_between",
]
