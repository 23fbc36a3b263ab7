# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Edition of the ``module load`` lines found in shell startup files."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Final, Literal

from ..errors import EnvModulesError

if TYPE_CHECKING:
    from ..state.session import Session

InitAction = Literal["add", "prepend", "rm", "switch", "list", "clear"]

_SH_FILES: Final[tuple[str, ...]] = (".modules", ".bash_profile", ".bash_login", ".profile", ".bashrc")

STARTUP_FILES: Final[dict[str, tuple[str, ...]]] = {
    "csh": (".modules", ".cshrc", ".cshrc_variables", ".login"),
    "tcsh": (".modules", ".tcshrc", ".cshrc", ".cshrc_variables", ".login"),
    "sh": _SH_FILES,
    "bash": _SH_FILES,
    "ksh": _SH_FILES,
    "fish": (".modules", ".config/fish/config.fish"),
    "zsh": (".modules", ".zshrc", ".zshenv", ".zlogin"),
}

_LOAD_LINE_RE: Final[re.Pattern[str]] = re.compile(r"^([ \t]*module[ \t]+(?:load|add)[ \t]*)(.*)")
_COMMENT_RE: Final[re.Pattern[str]] = re.compile(r"([ \t]*#.+)")


def replace_in_list(items: Sequence[str], item: str, replacement: str = "") -> list[str]:
    """Return ``items`` with every ``item`` removed, or swapped for ``replacement``."""

    if replacement == "":
        return [elt for elt in items if elt != item]
    return [replacement if elt == item else elt for elt in items]


class InitFileEditor:
    """Apply ``init*`` commands to the startup files of the session shell."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def startup_files(self) -> list[Path]:
        """Return the candidate startup files in the order they are processed.

        Raises:
            EnvModulesError: When the shell has no known startup files or ``HOME`` is unset.
        """

        shell = self._session.shell
        names = STARTUP_FILES.get(shell)
        if names is None:
            raise EnvModulesError(f"No initialization file known for '{shell}' shell")
        home = self._session.env.get("HOME")
        if home is None:
            raise EnvModulesError("HOME not defined")
        return [Path(home) / name for name in names]

    def run(self, action: InitAction, modules: Sequence[str] = ()) -> None:
        """Edit (or list) the ``module load`` lines of the startup files.

        ``add`` and ``prepend`` update the first matching line then remove
        the named modules from later lines; ``rm`` and ``switch`` stop after
        the first line they changed.

        Args:
            action: Edition to perform.
            modules: Modules the edition applies to; two names for ``switch``.

        Raises:
            EnvModulesError: When a file cannot be written, or no ``module load``
                line exists for an edition.
        """

        session = self._session
        reporter = session.reporter
        current = action
        pending = True
        nomatch = True

        for path in self.startup_files():
            if not pending:
                break
            reporter.debug(f"cmdModuleInit: Looking at {path}")
            if not path.is_file():
                continue
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except OSError:
                continue

            rewritten: list[str] = []
            header_shown = False
            matched = False
            for line in lines:
                match = _LOAD_LINE_RE.match(line) if pending else None
                if match is None:
                    rewritten.append(line)
                    continue
                nomatch = False
                matched = True
                cmd, loaded = match.group(1), match.group(2)
                comment_match = _COMMENT_RE.search(loaded)
                comments = comment_match.group(1) if comment_match else ""
                loaded = re.sub(r"#.+", "", loaded)
                loaded_list = loaded.split()

                match current:
                    case "list":
                        if not header_shown:
                            reporter.report(f"{session.shell} initialization file $HOME/{path.name} loads modules:")
                            header_shown = True
                        reporter.report(f"\t{loaded}")
                    case "add" | "prepend":
                        for mod in modules:
                            loaded_list = replace_in_list(loaded_list, mod)
                        if current == "add":
                            rewritten.append(f"{cmd}{' '.join(loaded_list)} {' '.join(modules)}{comments}")
                        else:
                            rewritten.append(f"{cmd}{' '.join(modules)} {' '.join(loaded_list)}{comments}")
                        # later lines must not load the added modules again
                        current = "rm"
                    case "rm":
                        remaining = loaded_list
                        for mod in modules:
                            remaining = replace_in_list(remaining, mod)
                        if remaining:
                            rewritten.append(f"{cmd}{' '.join(remaining)}{comments}")
                        else:
                            rewritten.append(cmd.strip())
                        if len(remaining) < len(loaded_list):
                            pending = False
                    case "switch":
                        swapped = replace_in_list(loaded_list, modules[0], modules[1])
                        rewritten.append(f"{cmd}{' '.join(swapped)}{comments}")
                        if swapped != loaded_list:
                            pending = False
                    case "clear":
                        rewritten.append(cmd.strip())

            if current != "list" and matched:
                reporter.debug(f"cmdModuleInit: Writing {path}")
                try:
                    path.write_text("\n".join(rewritten) + "\n", encoding="utf-8")
                except OSError as exc:
                    raise EnvModulesError(f"Init file {path} cannot be written.\n{exc}") from exc

        if nomatch and current != "list":
            raise EnvModulesError(f"Cannot find a 'module load' command in any of the '{session.shell}' startup files")


__all__ = ["InitAction", "InitFileEditor", "STARTUP_FILES", "replace_in_list"]
