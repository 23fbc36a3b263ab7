# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tagged entries describing what a module path contains."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, TypeAlias

EntryKind = Literal["directory", "modulerc", "modulefile", "virtual", "alias", "version", "invalid", "accesserr"]


@dataclass(slots=True)
class DirectoryEntry:
    """Directory holding versions; ``default`` is set once the listing is complete."""

    kind: ClassVar[EntryKind] = "directory"
    children: list[str] = field(default_factory=list)
    default: str = ""


@dataclass(frozen=True, slots=True)
class ModulercEntry:
    """``.modulerc`` or ``.version`` file declaring aliases and versions."""

    kind: ClassVar[EntryKind] = "modulerc"


@dataclass(frozen=True, slots=True)
class ModulefileEntry:
    kind: ClassVar[EntryKind] = "modulefile"
    mtime: float | None = None


@dataclass(frozen=True, slots=True)
class VirtualEntry:
    """Module name backed by a script stored under another name."""

    kind: ClassVar[EntryKind] = "virtual"
    path: str
    mtime: float | None = None


@dataclass(frozen=True, slots=True)
class AliasEntry:
    kind: ClassVar[EntryKind] = "alias"
    target: str


@dataclass(frozen=True, slots=True)
class VersionEntry:
    kind: ClassVar[EntryKind] = "version"
    target: str


@dataclass(frozen=True, slots=True)
class IssueEntry:
    """Element that cannot be used: not a valid script or not readable."""

    kind: EntryKind
    message: str
    path: str


ModuleEntry: TypeAlias = (
    DirectoryEntry | ModulercEntry | ModulefileEntry | VirtualEntry | AliasEntry | VersionEntry | IssueEntry
)
EntryMap: TypeAlias = dict[str, ModuleEntry]


def invalid_entry(message: str, path: str) -> IssueEntry:
    return IssueEntry("invalid", message, path)


def access_error_entry(message: str, path: str) -> IssueEntry:
    return IssueEntry("accesserr", message, path)


__all__ = [
    "AliasEntry",
    "DirectoryEntry",
    "EntryKind",
    "EntryMap",
    "IssueEntry",
    "ModuleEntry",
    "ModulefileEntry",
    "ModulercEntry",
    "VersionEntry",
    "VirtualEntry",
    "access_error_entry",
    "invalid_entry",
]
