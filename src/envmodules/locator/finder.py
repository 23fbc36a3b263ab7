# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem scan of a module path directory."""

from __future__ import annotations

import glob
import os
import posixpath
from collections import deque
from fnmatch import fnmatchcase
from typing import Literal

from ..config.models import EngineConfig
from ..constants import MAGIC_COOKIE
from ..core.logging.reporter import Reporter
from .entries import (
    DirectoryEntry,
    EntryMap,
    IssueEntry,
    ModulefileEntry,
    ModulercEntry,
    access_error_entry,
)

Validity = Literal["true", "invalid", "accesserr"]
_COOKIE_BYTES = MAGIC_COOKIE.encode()


def access_issue(path: str, exc: OSError | None = None) -> str:
    """Return the message describing why ``path`` could not be read."""

    if exc is not None and exc.strerror:
        return f"{exc.strerror.capitalize()} on '{path}'"
    return f"Cannot access '{path}'"


class ModuleFinder:
    """Scan module path directories and validate scripts, caching results."""

    def __init__(self, config: EngineConfig, reporter: Reporter) -> None:
        self._config = config
        self._reporter = reporter
        self._validity: dict[str, tuple[Validity, str]] = {}
        self._mtimes: dict[str, float] = {}

    @property
    def rc_names(self) -> tuple[str, str]:
        return self._config.rc_filename, self._config.version_filename

    def check_valid_module(self, path: str) -> tuple[Validity, str]:
        """Return whether ``path`` starts with the magic cookie.

        Args:
            path: Script to inspect.

        Returns:
            tuple[Validity, str]: ``("true", "")`` for a valid script, otherwise
            ``"invalid"`` or ``"accesserr"`` with the reason.
        """

        if path in self._validity:
            return self._validity[path]
        self._reporter.debug(f"checkValidModule: {path}")
        try:
            with open(path, "rb") as handle:
                header = handle.read(len(_COOKIE_BYTES))
        except OSError as exc:
            result: tuple[Validity, str] = ("accesserr", access_issue(path, exc))
        else:
            if header == _COOKIE_BYTES:
                result = ("true", "")
            else:
                result = ("invalid", f"Magic cookie '{MAGIC_COOKIE}' missing")
        self._validity[path] = result
        return result

    def file_mtime(self, path: str) -> float:
        if path not in self._mtimes:
            self._mtimes[path] = os.path.getmtime(path)
        return self._mtimes[path]

    def read_module_content(self, path: str, *, report_issue: bool = False, must_have_cookie: bool = True) -> str | None:
        """Return the text of the script at ``path``.

        Args:
            path: Script to read.
            report_issue: Report an error when the file cannot be read.
            must_have_cookie: Require the magic cookie at the start of the file.

        Returns:
            str | None: File content, ``None`` when unreadable or invalid.
        """

        self._reporter.debug(f"readModuleContent: {path}")
        try:
            with open(path, encoding="utf-8", errors="surrogateescape") as handle:
                content = handle.read()
        except OSError as exc:
            if report_issue:
                self._reporter.error(access_issue(path, exc))
            return None
        if content.startswith(MAGIC_COOKIE) or not must_have_cookie:
            return content
        self._reporter.internal_bug(f"Magic cookie '{MAGIC_COOKIE}' missing", path)
        return None

    def _is_ignored_file(self, tail: str) -> bool:
        return any(fnmatchcase(tail, pattern) for pattern in self._config.ignored_file_patterns)

    def find_modules(
        self,
        directory: str,
        pattern: str = "",
        *,
        fetch_mtime: bool = False,
        fetch_hidden: bool = False,
    ) -> EntryMap:
        """Return every module-related element of ``directory`` matching ``pattern``.

        Matching directories are walked recursively. Each directory lists its
        valid children; ``.modulerc``/``.version`` files are reported as rc
        entries, and scripts lacking the magic cookie as issues.

        Args:
            directory: Module path directory to scan.
            pattern: Glob pattern matched against top-level names.
            fetch_mtime: Record the modification time of scripts.
            fetch_hidden: Also walk dot-prefixed elements.

        Returns:
            EntryMap: Entries keyed by their name relative to ``directory``.
        """

        self._reporter.debug(
            f"findModules: finding '{pattern}' in {directory} "
            f"(fetch_mtime={int(fetch_mtime)}, fetch_hidden={int(fetch_hidden)})"
        )
        try:
            queue = deque(sorted(glob.glob(pattern or "*", root_dir=directory)))
        except OSError:
            return {}

        entries: EntryMap = {}
        hidden: set[str] = set()
        rc_names = self.rc_names
        while queue:
            name = queue.popleft().rstrip("/")
            path = posixpath.join(directory, name)
            tail = posixpath.basename(name)
            add_ref_to_parent = False

            if os.path.isdir(path):
                if tail in self._config.ignored_dirs:
                    continue
                try:
                    with os.scandir(path) as scan:
                        children = sorted(entry.name for entry in scan)
                except OSError as exc:
                    entries[name] = access_error_entry(access_issue(path, exc), path)
                else:
                    entries[name] = DirectoryEntry()
                    for rc_name in rc_names:
                        rc_path = posixpath.join(path, rc_name)
                        if os.path.isfile(rc_path) and os.access(rc_path, os.R_OK):
                            queue.append(f"{name}/{rc_name}")
                    for child in children:
                        if not child.startswith("."):
                            queue.append(f"{name}/{child}")
                        elif fetch_hidden and child not in rc_names:
                            queue.append(f"{name}/{child}")
                            hidden.add(f"{name}/{child}")
                    add_ref_to_parent = True
            elif tail in rc_names:
                entries[name] = ModulercEntry()
            elif self._is_ignored_file(tail):
                continue
            else:
                validity, message = self.check_valid_module(path)
                if validity == "true":
                    mtime = self.file_mtime(path) if fetch_mtime else None
                    entries[name] = ModulefileEntry(mtime=mtime)
                    add_ref_to_parent = not (fetch_hidden and name in hidden)
                else:
                    entries[name] = IssueEntry(validity, message, path)

            if add_ref_to_parent:
                parent = entries.get(posixpath.dirname(name))
                if isinstance(parent, DirectoryEntry):
                    parent.children.append(tail)

        self._reporter.debug(f"findModules: found {' '.join(entries)}")
        return entries


__all__ = ["ModuleFinder", "Validity", "access_issue"]
