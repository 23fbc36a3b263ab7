# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Snapshot and rollback of the mutable session state around one evaluation."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .session import Session

TRACKED_ATTRIBUTES: Final[tuple[str, ...]] = (
    "env",
    "aliases",
    "env_state",
    "alias_state",
    "new_xresources",
    "del_xresources",
)

Snapshot = dict[str, dict[str, str]]


class SettingsStack:
    """Stack of snapshots of the environment, aliases and pending mutations.

    ``push`` is called before a module is evaluated. On failure the caller
    ``restore``s the top snapshot then ``pop``s it; on success it only pops,
    keeping every edit the module made.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._frames: list[Snapshot] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self) -> None:
        self._frames.append({name: dict(self._tracked(name)) for name in TRACKED_ATTRIBUTES})

    def pop(self) -> None:
        """Discard the most recent snapshot.

        Raises:
            IndexError: When the stack is empty.
        """

        self._frames.pop()

    def restore(self) -> None:
        """Replace the tracked state with the top snapshot, keeping it on the stack.

        Raises:
            IndexError: When the stack is empty.
        """

        frame = self._frames[-1]
        for name, saved in frame.items():
            target = self._tracked(name)
            target.clear()
            target.update(saved)

    def _tracked(self, name: str) -> MutableMapping[str, str]:
        value: MutableMapping[str, str] = getattr(self._session, name)
        return value


__all__ = ["Snapshot", "SettingsStack", "TRACKED_ATTRIBUTES"]
