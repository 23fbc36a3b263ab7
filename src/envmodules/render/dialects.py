# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Output syntax of every supported target shell.

Each :class:`Dialect` turns one elementary mutation (assign a variable, remove
an alias, report a status...) into the statements its shell understands. The
renderer walks the pending mutations once and asks the dialect of the target
shell for each statement.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Final

from ..core.escaping import char_escaped
from ..errors import UnknownShellError


class Shell(str, Enum):
    """Closed set of output dialects."""

    SH = "sh"
    CSH = "csh"
    FISH = "fish"
    CMD = "cmd"
    TCL = "tcl"
    PERL = "perl"
    PYTHON = "python"
    RUBY = "ruby"
    LISP = "lisp"
    CMAKE = "cmake"
    R = "r"


SHELL_ALIASES: Final[dict[str, Shell]] = {
    "sh": Shell.SH,
    "bash": Shell.SH,
    "ksh": Shell.SH,
    "zsh": Shell.SH,
    "csh": Shell.CSH,
    "tcsh": Shell.CSH,
    "fish": Shell.FISH,
    "cmd": Shell.CMD,
    "tcl": Shell.TCL,
    "perl": Shell.PERL,
    "python": Shell.PYTHON,
    "ruby": Shell.RUBY,
    "lisp": Shell.LISP,
    "cmake": Shell.CMAKE,
    "r": Shell.R,
}


def resolve_shell(name: str) -> Shell:
    """Return the dialect family of the shell called ``name``.

    Raises:
        UnknownShellError: When ``name`` is not a supported shell.
    """

    try:
        return SHELL_ALIASES[name]
    except KeyError as exc:
        raise UnknownShellError(name) from exc


class Dialect:
    """Statements of a shell without aliases, directory change or xrdb support."""

    shell: ClassVar[Shell]
    preamble: ClassVar[tuple[str, ...]] = ()
    xresource_preamble: ClassVar[tuple[str, ...]] = ()
    true_statement: ClassVar[str]
    false_statement: ClassVar[str]

    def assign(self, var: str, value: str) -> list[str]:
        raise NotImplementedError

    def unset(self, var: str) -> list[str]:
        raise NotImplementedError

    def alias(self, name: str, value: str) -> list[str]:
        return []

    def unalias(self, name: str) -> list[str]:
        return []

    def chdir(self, path: str) -> list[str]:
        return []

    def text(self, text: str) -> list[str]:
        raise NotImplementedError

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return []

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        return []

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return []


class _PosixLikeDialect(Dialect):
    """Shared behaviour of sh, csh and fish."""

    true_statement = "test 0;"
    false_statement = "test 0 = 1;"

    def chdir(self, path: str) -> list[str]:
        return [f"cd '{path}';"]

    def text(self, text: str) -> list[str]:
        return [f"echo '{word}';" for word in text.split()]

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"{xrdb} -merge {path};"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        return [f'echo "{char_escaped(resource, chr(34))}: {char_escaped(value, chr(34))}" | {xrdb} -merge;']

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return [f'echo "{resource}:" | {xrdb} -merge;']


class ShDialect(_PosixLikeDialect):
    shell = Shell.SH

    def assign(self, var: str, value: str) -> list[str]:
        return [f"{var}={char_escaped(value)}; export {var};"]

    def unset(self, var: str) -> list[str]:
        return [f"unset {var};"]

    def alias(self, name: str, value: str) -> list[str]:
        return [f"alias {name}={char_escaped(value)};"]

    def unalias(self, name: str) -> list[str]:
        return [f"unalias {name};"]


class CshDialect(_PosixLikeDialect):
    shell = Shell.CSH

    def assign(self, var: str, value: str) -> list[str]:
        return self.assign_escaped(var, char_escaped(value))

    def assign_escaped(self, var: str, escaped: str) -> list[str]:
        """Return the assignment of an already escaped (and possibly truncated) value."""

        return [f"setenv {var} {escaped};"]

    def unset(self, var: str) -> list[str]:
        return [f"unsetenv {var};"]

    def alias(self, name: str, value: str) -> list[str]:
        return [f"alias {name} {char_escaped(value)};"]

    def unalias(self, name: str) -> list[str]:
        return [f"unalias {name};"]


class FishDialect(_PosixLikeDialect):
    shell = Shell.FISH

    # fish stores these as lists, items are given space separated
    list_variables: ClassVar[frozenset[str]] = frozenset({"PATH", "CDPATH", "MANPATH"})

    def assign(self, var: str, value: str) -> list[str]:
        escaped = char_escaped(value)
        if var in self.list_variables:
            escaped = escaped.replace(":", " ")
        return [f"set -xg {var} {escaped};"]

    def unset(self, var: str) -> list[str]:
        return [f"set -e {var};"]

    def alias(self, name: str, value: str) -> list[str]:
        return [f"alias {name} {char_escaped(value)};"]

    def unalias(self, name: str) -> list[str]:
        return [f"functions -e {name};"]


class CmdDialect(Dialect):
    shell = Shell.CMD
    true_statement = "set errorlevel=0"
    false_statement = "set errorlevel=1"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"set {var}={value}"]

    def unset(self, var: str) -> list[str]:
        return [f"set {var}="]

    def alias(self, name: str, value: str) -> list[str]:
        return [f"doskey {name}={value}"]

    def unalias(self, name: str) -> list[str]:
        return [f"doskey {name}="]

    def chdir(self, path: str) -> list[str]:
        return [f"cd {path}"]

    def text(self, text: str) -> list[str]:
        return [f"echo {word}" for word in text.split()]


class TclDialect(Dialect):
    shell = Shell.TCL
    true_statement = "set _mlstatus 1;"
    false_statement = "set _mlstatus 0;"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"set ::env({var}) {{{value}}};"]

    def unset(self, var: str) -> list[str]:
        return [f"catch {{unset ::env({var})}};"]

    def chdir(self, path: str) -> list[str]:
        return [f'cd "{path}";']

    def text(self, text: str) -> list[str]:
        return [f'set _mlstatus "{text}";']

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"exec {xrdb} -merge {path};"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        return self._pipe(xrdb, f"{char_escaped(resource, chr(34))}: {char_escaped(value, chr(34))}")

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return self._pipe(xrdb, f"{char_escaped(resource, chr(34))}:")

    @staticmethod
    def _pipe(xrdb: str, line: str) -> list[str]:
        return [
            f'set XRDBPIPE [open "|{xrdb} -merge" r+];',
            f'puts $XRDBPIPE "{line}";',
            "close $XRDBPIPE;",
            "unset XRDBPIPE;",
        ]


class PerlDialect(Dialect):
    shell = Shell.PERL
    true_statement = "$_mlstatus = 1;"
    false_statement = "$_mlstatus = 0;"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"$ENV{{'{var}'}} = '{char_escaped(value, chr(39))}';"]

    def unset(self, var: str) -> list[str]:
        return [f"delete $ENV{{'{var}'}};"]

    def chdir(self, path: str) -> list[str]:
        return [f"chdir '{path}';"]

    def text(self, text: str) -> list[str]:
        return [f"$_mlstatus = '{text}';"]

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f'system("{xrdb} -merge {path}");']

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        return self._pipe(xrdb, f"{char_escaped(resource, chr(34))}: {char_escaped(value, chr(34))}")

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return self._pipe(xrdb, f"{char_escaped(resource, chr(34))}:")

    @staticmethod
    def _pipe(xrdb: str, line: str) -> list[str]:
        return [f'open(XRDBPIPE, "|{xrdb} -merge");', f'print XRDBPIPE "{line}\\n";', "close XRDBPIPE;"]


class PythonDialect(Dialect):
    shell = Shell.PYTHON
    preamble = ("import os",)
    xresource_preamble = ("import subprocess",)
    true_statement = "_mlstatus = True"
    false_statement = "_mlstatus = False"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"os.environ['{var}'] = '{char_escaped(value, chr(39))}'"]

    def unset(self, var: str) -> list[str]:
        return [f"os.environ['{var}'] = ''", f"del os.environ['{var}']"]

    def chdir(self, path: str) -> list[str]:
        return [f"os.chdir('{path}')"]

    def text(self, text: str) -> list[str]:
        return [f"_mlstatus = '{text}'"]

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"subprocess.Popen(['{xrdb}', '-merge', '{char_escaped(path, chr(39))}'])"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        line = f"{char_escaped(resource, chr(39))}: {char_escaped(value, chr(39))}"
        return [f"subprocess.Popen(['{xrdb}', '-merge'], stdin=subprocess.PIPE).communicate(input='{line}\\n')"]

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        line = f"{char_escaped(resource, chr(39))}:"
        return [f"subprocess.Popen(['{xrdb}', '-merge'], stdin=subprocess.PIPE).communicate(input='{line}\\n')"]


class RubyDialect(Dialect):
    shell = Shell.RUBY
    xresource_preamble = ("require 'open3'",)
    true_statement = "_mlstatus = true"
    false_statement = "_mlstatus = false"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"ENV['{var}'] = '{char_escaped(value, chr(39))}'"]

    def unset(self, var: str) -> list[str]:
        return [f"ENV['{var}'] = nil"]

    def chdir(self, path: str) -> list[str]:
        return [f"Dir.chdir('{path}')"]

    def text(self, text: str) -> list[str]:
        return [f"_mlstatus = '{text}'"]

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"Open3.popen2('{xrdb} -merge {char_escaped(path, chr(39))}')"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        line = f"{char_escaped(resource, chr(39))}: {char_escaped(value, chr(39))}"
        return [f"Open3.popen2('{xrdb} -merge') {{|i,o,t| i.puts '{line}'}}"]

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return [f"Open3.popen2('{xrdb} -merge') {{|i,o,t| i.puts '{char_escaped(resource, chr(39))}:'}}"]


class LispDialect(Dialect):
    shell = Shell.LISP
    true_statement = "t"
    false_statement = "nil"

    def assign(self, var: str, value: str) -> list[str]:
        return [f'(setenv "{var}" "{char_escaped(value, chr(34))}")']

    def unset(self, var: str) -> list[str]:
        return [f'(setenv "{var}" nil)']

    def chdir(self, path: str) -> list[str]:
        return [f"(shell-command-to-string \"cd '{path}'\")"]

    def text(self, text: str) -> list[str]:
        return [f'(message "{text}")']

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f'(shell-command-to-string "{xrdb} -merge {path}")']

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        return [f'(shell-command-to-string "echo {resource}: {value} | {xrdb} -merge")']

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return [f'(shell-command-to-string "echo {resource}: | {xrdb} -merge")']


class CmakeDialect(Dialect):
    shell = Shell.CMAKE
    true_statement = "set(_mlstatus TRUE)"
    false_statement = "set(_mlstatus FALSE)"

    def assign(self, var: str, value: str) -> list[str]:
        return [f'set(ENV{{{var}}} "{char_escaped(value, chr(34))}")']

    def unset(self, var: str) -> list[str]:
        return [f"unset(ENV{{{var}}})"]

    def text(self, text: str) -> list[str]:
        return [f'set(_mlstatus "{text}")']

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"execute_process(COMMAND {xrdb} -merge {path})"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        line = f"{char_escaped(resource, chr(34))}: {char_escaped(value, chr(34))}"
        return [f'execute_process(COMMAND echo "{line}" COMMAND {xrdb} -merge)']

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return [f'execute_process(COMMAND echo "{char_escaped(resource, chr(34))}:" COMMAND {xrdb} -merge)']


class RDialect(Dialect):
    shell = Shell.R
    true_statement = "mlstatus <- TRUE"
    false_statement = "mlstatus <- FALSE"
    _quoted: ClassVar[str] = "\\'"

    def assign(self, var: str, value: str) -> list[str]:
        return [f"Sys.setenv('{var}'='{char_escaped(value, self._quoted)}')"]

    def unset(self, var: str) -> list[str]:
        return [f"Sys.unsetenv('{var}')"]

    def chdir(self, path: str) -> list[str]:
        return [f"setwd('{path}')"]

    def text(self, text: str) -> list[str]:
        return [f"mlstatus <- '{text}'"]

    def xrdb_merge_file(self, xrdb: str, path: str) -> list[str]:
        return [f"system('{xrdb} -merge {char_escaped(path, self._quoted)}')"]

    def xrdb_merge_value(self, xrdb: str, resource: str, value: str) -> list[str]:
        line = f"{char_escaped(resource, self._quoted)}: {char_escaped(value, self._quoted)}"
        return [f"system('{xrdb} -merge', input='{line}')"]

    def xrdb_clear(self, xrdb: str, resource: str) -> list[str]:
        return [f"system('{xrdb} -merge', input='{char_escaped(resource, self._quoted)}:')"]


DIALECTS: Final[dict[Shell, Dialect]] = {
    dialect.shell: dialect
    for dialect in (
        ShDialect(),
        CshDialect(),
        FishDialect(),
        CmdDialect(),
        TclDialect(),
        PerlDialect(),
        PythonDialect(),
        RubyDialect(),
        LispDialect(),
        CmakeDialect(),
        RDialect(),
    )
}


def dialect_for(shell: Shell) -> Dialect:
    return DIALECTS[shell]


__all__ = [
    "DIALECTS",
    "Dialect",
    "SHELL_ALIASES",
    "Shell",
    "dialect_for",
    "resolve_shell",
]
