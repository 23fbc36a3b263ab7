# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatting of module, alias and collection listings."""

from __future__ import annotations

import math
import posixpath
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Literal

from ..core.sorting import dictionary_sorted
from ..locator.entries import AliasEntry, DirectoryEntry, ModulefileEntry, VirtualEntry

if TYPE_CHECKING:
    from ..core.logging.reporter import Reporter
    from ..locator.locator import ModuleLocator, SearchFlag
    from ..state.session import Session

ShowFilter = Literal["", "onlydefaults", "onlylatest"]
HeaderStyle = Literal["sepline", "terse", ""]

MTIME_FORMAT: Final[str] = "%Y/%m/%d %H:%M:%S"
_SUFFIX_LEN: Final[int] = 2
_INDEX_PREFIX_LEN: Final[int] = 4


def format_mtime(mtime: float | None) -> str:
    if mtime is None:
        return ""
    return time.strftime(MTIME_FORMAT, time.localtime(mtime))


def table_header(*titles: str) -> str:
    """Return the header line of a long listing, one dashed column per title."""

    columns: list[str] = []
    for index, title in enumerate(titles):
        if index == 0:
            width = 39 if len(titles) > 2 else 59
        else:
            width = 19
        column = f"- {title} "
        columns.append(column + "-" * (width - len(column)))
    return ".".join(columns)


def list_modules(
    session: Session,
    locator: ModuleLocator,
    directory: str,
    mod: str,
    *,
    show_flags: bool = True,
    show_filter: ShowFilter = "",
    search: Iterable[SearchFlag] = ("wild",),
) -> list[str]:
    """Return the display lines of the elements of ``directory`` matching ``mod``.

    Symbolic versions are shown in parentheses after their target, aliases
    carry an ``@`` tag. With ``show_filter`` only the default (or latest)
    element of each directory is kept.

    Args:
        session: Current session, its long/terse flags select the format.
        locator: Locator used to scan ``directory``.
        directory: Module path to list, empty for global rc definitions only.
        mod: Name prefix selecting the elements.
        show_flags: Decorate elements with their symbols and modification time.
        show_filter: ``onlydefaults`` or ``onlylatest`` to filter versions.
        search: Search flags forwarded to the locator.

    Returns:
        list[str]: Dictionary-sorted display lines.
    """

    graph = session.graph
    show_mtime = show_flags and session.show_modtimes
    mod_list = locator.get_modules(directory, mod, fetch_mtime=show_mtime, search=search)

    lines: list[str] = []
    for name in list(mod_list):
        entry = mod_list[name]
        elt = name
        if show_filter:
            if isinstance(entry, DirectoryEntry):
                chosen = entry.default if show_filter == "onlydefaults" else entry.children[-1]
                elt = f"{name}/{chosen}"
                if elt not in mod_list:
                    continue
                entry = mod_list[elt]
                if isinstance(entry, DirectoryEntry):
                    continue
            elif posixpath.dirname(name) != "":
                continue
            tags = graph.symbols_of(elt)
        else:
            tags = graph.symbols_of(elt)
            if isinstance(entry, DirectoryEntry) and not tags:
                continue

        tag_text = ":".join(tags)
        match entry:
            case DirectoryEntry():
                if not show_flags:
                    lines.append(elt)
                elif show_mtime:
                    lines.append(f"{elt:<40}{tag_text:<20}")
                else:
                    lines.append(f"{elt}({tag_text})")
            case ModulefileEntry(mtime=mtime) | VirtualEntry(mtime=mtime):
                if show_mtime:
                    lines.append(f"{elt:<40}{tag_text:<20}{format_mtime(mtime):>19}")
                elif show_flags and tags:
                    lines.append(f"{elt}({tag_text})")
                else:
                    lines.append(elt)
            case AliasEntry(target=target):
                if show_mtime:
                    lines.append(f"{f'{elt} -> {target}':<40}{tag_text:<20}")
                elif show_flags:
                    lines.append(f"{elt}({':'.join([*tags, '@'])})")
                else:
                    lines.append(elt)
            case _:
                # versions are listed along their target, issues are skipped
                pass

    result = dictionary_sorted(lines)
    session.reporter.debug(f"listModules: Returning {' '.join(result)}")
    return result


def _column_layout(lengths: Sequence[int], columns: int) -> tuple[int, int, list[int]]:
    """Return rows, columns and column widths of the widest grid fitting ``columns``.

    Elements fill the grid column by column. The row count grows until every
    row fits the terminal width; a single column is used when nothing fits.
    """

    count = len(lengths)
    for rows in range(1, count + 1):
        cols = math.ceil(count / rows)
        widths = [max(lengths[col * rows : (col + 1) * rows]) for col in range(cols)]
        if sum(widths) <= columns:
            return rows, cols, widths
    return count, 1, [max(lengths)]


@dataclass(slots=True)
class ElementListPrinter:
    """Print element lists on the reporter, separating consecutive lists."""

    reporter: Reporter
    columns: int
    _displayed: bool = False

    def display(
        self,
        elements: Sequence[str],
        *,
        header: str | None = None,
        header_style: HeaderStyle = "",
        one_per_line: bool = False,
        show_index: bool = False,
    ) -> None:
        """Print ``elements`` in columns, or one per line.

        Args:
            elements: Lines to print, nothing is printed when empty.
            header: Title printed before the list, ``None`` for no header.
            header_style: ``sepline`` frames the title in a separator line.
            one_per_line: Print each element on its own line.
            show_index: Number elements from 1.
        """

        reporter = self.reporter
        reporter.debug(
            f"displayElementList: header={header}, hstyle={header_style}, elt_cnt={len(elements)}, "
            f"one_per_line={int(one_per_line)}, display_idx={int(show_index)}"
        )
        if not elements:
            return

        if header is not None:
            if self._displayed:
                reporter.report("")
            self._displayed = True
            if header_style == "sepline":
                reporter.separator(header)
            else:
                reporter.report(f"{header}:")

        if one_per_line:
            if show_index:
                text = "".join(f"{index:2d}) {elt} \n" for index, elt in enumerate(elements, start=1))
            else:
                text = "\n".join(elements) + "\n"
            reporter.report(text, nonewline=True)
            return

        prefix = _INDEX_PREFIX_LEN if show_index else 0
        lengths = [len(elt) + _SUFFIX_LEN + prefix for elt in elements]
        rows, cols, widths = _column_layout(lengths, self.columns)
        reporter.debug(f"displayElementList: rows/cols={rows}/{cols}")

        out: list[str] = []
        for row in range(rows):
            cells: list[str] = []
            for col in range(cols):
                index = col * rows + row
                if index >= len(elements):
                    continue
                width = widths[col] - prefix
                cell = f"{elements[index]:<{width}}"
                cells.append(f"{index + 1:2d}) {cell}" if show_index else cell)
            out.append("".join(cells))
        reporter.report("".join(f"{line}\n" for line in out), nonewline=True)


__all__ = [
    "ElementListPrinter",
    "HeaderStyle",
    "MTIME_FORMAT",
    "ShowFilter",
    "format_mtime",
    "list_modules",
    "table_header",
]
