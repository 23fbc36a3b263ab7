# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Definitions of the ``module`` command emitted by ``autoinit``.

Each shell receives a function (or alias) that runs the engine with its own
name as first argument and evaluates the produced code. Variables listed in
``MODULES_RUN_QUARANTINE`` are moved aside to ``<var>_modquar`` for the run
of the engine and replaced by their ``MODULES_RUNENV_<var>`` value.
"""

from __future__ import annotations

import shlex
import sys
from collections.abc import Sequence
from typing import Final

from ..errors import EnvModulesError
from .dialects import Shell

_CSH_PRE_HIST: Final[str] = "set _histchars = $histchars; unset histchars;"
_CSH_POST_HIST: Final[str] = "set histchars = $_histchars; unset _histchars;"
_CSH_PRE_PROMPT: Final[str] = 'set _prompt="$prompt"; set prompt="";'
_CSH_POST_PROMPT: Final[str] = 'set prompt="$_prompt"; unset _prompt;'
_CSH_PRE_EXIT: Final[str] = 'set _exit="$status";'
_CSH_POST_EXIT: Final[str] = "test 0 = $_exit"

_SH_TEMPLATE: Final[str] = """@FNAME@() {
   unset _mlre _mlIFS _mlshdbg;
   if [ "${MODULES_SILENT_SHELL_DEBUG:-0}" = '1' ]; then
      case "$-" in
         *v*x*) set +vx; _mlshdbg='vx' ;;
         *v*) set +v; _mlshdbg='v' ;;
         *x*) set +x; _mlshdbg='x' ;;
         *) _mlshdbg='' ;;
      esac;
   fi;
   if [ -n "${IFS+x}" ]; then
      _mlIFS=$IFS;
   fi;
   IFS=' ';
   for _mlv in ${@WSPLIT@MODULES_RUN_QUARANTINE:-}; do
      if [ "${_mlv}" = "${_mlv##*[!A-Za-z0-9_]}" -a "${_mlv}" = "${_mlv#[0-9]}" ]; then
         if [ -n "`eval 'echo ${'$_mlv'+x}'`" ]; then
            _mlre="${_mlre:-}${_mlv}_modquar='`eval 'echo ${'$_mlv'}'`' ";
         fi;
         _mlrv="MODULES_RUNENV_${_mlv}";
         _mlre="${_mlre:-}${_mlv}='`eval 'echo ${'$_mlrv':-}'`' ";
      fi;
   done;
   if [ -n "${_mlre:-}" ]; then
      eval `eval ${@WSPLIT@_mlre}@CMD@ @SHELL@ '"$@"'`;
   else
      eval `@CMD@ @SHELL@ "$@"`;
   fi;
   _mlstatus=$?;
   if [ -n "${_mlIFS+x}" ]; then
      IFS=$_mlIFS;
   else
      unset IFS;
   fi;
   if [ -n "${_mlshdbg:-}" ]; then
      set -$_mlshdbg;
   fi;
   unset _mlre _mlv _mlrv _mlIFS _mlshdbg;
   return $_mlstatus;
};"""

_SH_TTY_WRAPPER: Final[str] = '\nmodule() { _moduleraw "$@" 2>&1; };'

_FISH_TEMPLATE: Final[str] = """function @FNAME@
   set -l _mlre ''; set -l _mlv; set -l _mlrv;
   for _mlv in (string split ' ' $MODULES_RUN_QUARANTINE)
      if string match -r '^[A-Za-z_][A-Za-z0-9_]*$' $_mlv >/dev/null
         if set -q $_mlv
            set _mlre $_mlre$_mlv"_modquar='$$_mlv' "
         end
         set _mlrv "MODULES_RUNENV_$_mlv"
         set _mlre "$_mlre$_mlv='$$_mlrv' "
      end
   end
   if [ -n "$_mlre" ]
      set _mlre "env $_mlre"
   end
   eval $_mlre @CMD@ @SHELL@ (string escape -- $argv) | source -
end"""

_FISH_TTY_WRAPPER: Final[str] = """
function module
   _moduleraw $argv ^&1
end"""

_TCL_TEMPLATE: Final[str] = """proc module {args} {
   set _mlre {};
   if {[info exists ::env(MODULES_RUN_QUARANTINE)]} {
      foreach _mlv [split $::env(MODULES_RUN_QUARANTINE) " "] {
         if {[regexp {^[A-Za-z_][A-Za-z0-9_]*$} $_mlv]} {
            if {[info exists ::env($_mlv)]} {
               lappend _mlre "${_mlv}_modquar=$::env($_mlv)"
            }
            set _mlrv "MODULES_RUNENV_${_mlv}"
            if {[info exists ::env($_mlrv)]} {
               lappend _mlre "${_mlv}=$::env($_mlrv)"
            } else {
               lappend _mlre "${_mlv}="
            }
         }
      }
      if {[llength $_mlre] > 0} {
         set _mlre [linsert $_mlre 0 "env"]
      }
   }
   set _mlstatus 1;
   catch {eval exec $_mlre @TCLCMD@ "@SHELL@" $args 2>@stderr} script
   eval $script;
   return $_mlstatus
}"""

_PERL_TEMPLATE: Final[str] = """sub module {
   my $_mlre = '';
   if (defined $ENV{'MODULES_RUN_QUARANTINE'}) {
      foreach my $_mlv (split(' ', $ENV{'MODULES_RUN_QUARANTINE'})) {
         if ($_mlv =~ /^[A-Za-z_][A-Za-z0-9_]*$/) {
            if (defined $ENV{$_mlv}) {
               $_mlre .= "${_mlv}_modquar='$ENV{$_mlv}' ";
            }
            my $_mlrv = "MODULES_RUNENV_$_mlv";
            $_mlre .= "$_mlv='$ENV{$_mlrv}' ";
        }
      }
      if ($_mlre ne "") {
         $_mlre = "env $_mlre";
      }
   }
   my $args = '';
   if (@_ > 0) {
      $args = '"' . join('" "', @_) . '"';
   }
   my $_mlstatus = 1;
   eval `${_mlre}@CMD@ perl $args`;
   return $_mlstatus;
}"""

_PYTHON_TEMPLATE: Final[str] = """import re, subprocess
def module(*arguments):
   _mlre = os.environ.copy()
   if 'MODULES_RUN_QUARANTINE' in os.environ:
      for _mlv in os.environ['MODULES_RUN_QUARANTINE'].split():
         if re.match('^[A-Za-z_][A-Za-z0-9_]*$', _mlv):
            if _mlv in os.environ:
               _mlre[_mlv + '_modquar'] = os.environ[_mlv]
            _mlrv = 'MODULES_RUNENV_' + _mlv
            if _mlrv in os.environ:
               _mlre[_mlv] = os.environ[_mlrv]
            else:
               _mlre[_mlv] = ''
   _mlstatus = True
   exec(subprocess.Popen(@PYARGV@ + ['python'] + list(arguments), stdout=subprocess.PIPE, env=_mlre).communicate()[0])
   return _mlstatus"""

_RUBY_TEMPLATE: Final[str] = """class ENVModule
   def ENVModule.module(*args)
      _mlre = ''
      if ENV.has_key?('MODULES_RUN_QUARANTINE') then
         ENV['MODULES_RUN_QUARANTINE'].split(' ').each do |_mlv|
            if _mlv =~ /^[A-Za-z_][A-Za-z0-9_]*$/ then
               if ENV.has_key?(_mlv) then
                  _mlre << _mlv + "_modquar='" + ENV[_mlv].to_s + "' "
               end
               _mlrv = 'MODULES_RUNENV_' + _mlv
               _mlre << _mlv + "='" + ENV[_mlrv].to_s + "' "
            end
         end
         unless _mlre.empty?
            _mlre = 'env ' + _mlre
         end
      end
      if args[0].kind_of?(Array) then
         args = args[0]
      end
      if args.length == 0 then
         args = ''
      else
         args = "\\"#{args.join('" "')}\\""
      end
      _mlstatus = true
      eval `#{_mlre}@CMD@ ruby #{args}`
      return _mlstatus
   end
end"""

_CMAKE_HEAD: Final[str] = """function(module)
   cmake_policy(SET CMP0007 NEW)
   set(_mlre "")
   if(DEFINED ENV{MODULES_RUN_QUARANTINE})
      string(REPLACE " " ";" _mlv_list "$ENV{MODULES_RUN_QUARANTINE}")
      foreach(_mlv ${_mlv_list})
         if(${_mlv} MATCHES "^[A-Za-z_][A-Za-z0-9_]*$")
            if(DEFINED ENV{${_mlv}})
               set(_mlre "${_mlre}${_mlv}_modquar=$ENV{${_mlv}};")
            endif()
            set(_mlrv "MODULES_RUNENV_${_mlv}")
            set(_mlre "${_mlre}${_mlv}=$ENV{${_mlrv}};")
        endif()
      endforeach()
      if (NOT "${_mlre}" STREQUAL "")
         set(_mlre "env;${_mlre}")
      endif()
   endif()
   set(_mlstatus TRUE)
   execute_process(COMMAND mktemp -t moduleinit.cmake.XXXXXXXXXXXX
      OUTPUT_VARIABLE tempfile_name
      OUTPUT_STRIP_TRAILING_WHITESPACE)"""

_CMAKE_TAIL: Final[str] = """   endif()
   if(EXISTS ${tempfile_name})
      include(${tempfile_name})
      file(REMOVE ${tempfile_name})
   endif()
   set(module_result ${_mlstatus} PARENT_SCOPE)
endfunction(module)"""

_R_TEMPLATE: Final[str] = """module <- function(...){
   mlre <- ''
   if (!is.na(Sys.getenv('MODULES_RUN_QUARANTINE', unset=NA))) {
      for (mlv in strsplit(Sys.getenv('MODULES_RUN_QUARANTINE'), ' ')[[1]]) {
         if (grepl('^[A-Za-z_][A-Za-z0-9_]*$', mlv)) {
            if (!is.na(Sys.getenv(mlv, unset=NA))) {
               mlre <- paste0(mlre, mlv, "_modquar='", Sys.getenv(mlv), "' ")
            }
            mlrv <- paste0('MODULES_RUNENV_', mlv)
            mlre <- paste0(mlre, mlv, "='", Sys.getenv(mlrv), "' ")
         }
      }
      if (mlre != '') {
         mlre <- paste0('env ', mlre)
      }
   }
   arglist <- as.list(match.call())
   arglist[1] <- 'r'
   args <- paste0('"', paste0(arglist, collapse='" "'), '"')
   cmd <- paste(mlre, '@CMD@', args, sep=' ')
   mlstatus <- TRUE
   hndl <- pipe(cmd)
   eval(expr = parse(file=hndl))
   close(hndl)
   invisible(mlstatus)
}"""


def engine_argv(override: str | None = None) -> list[str]:
    """Return the command line that runs the engine.

    Args:
        override: Command configured by the site, split like a shell would.

    Returns:
        list[str]: Program and leading arguments, the shell name excluded.
    """

    if override:
        return shlex.split(override)
    return [sys.executable, "-m", "envmodules"]


def _fill(template: str, **values: str) -> str:
    text = template
    for key, value in values.items():
        text = text.replace(f"@{key}@", value)
    return text


def _csh_definition(cmd: str, shell: str) -> str:
    eval_cmd = f'eval "`{cmd} {shell} \\!*:q`";'
    variants = (
        ("$?histchars && $?prompt", [_CSH_PRE_HIST, _CSH_PRE_PROMPT, eval_cmd, _CSH_PRE_EXIT, _CSH_POST_HIST, _CSH_POST_PROMPT, _CSH_POST_EXIT]),
        ("$?histchars && ! $?prompt", [_CSH_PRE_HIST, eval_cmd, _CSH_PRE_EXIT, _CSH_POST_HIST, _CSH_POST_EXIT]),
        ("! $?histchars && $?prompt", [_CSH_PRE_PROMPT, eval_cmd, _CSH_PRE_EXIT, _CSH_POST_PROMPT, _CSH_POST_EXIT]),
    )
    lines = [f"if ( {test} ) alias module '{' '.join(parts)}' ;" for test, parts in variants]
    lines.append(f"if ( ! $?histchars && ! $?prompt ) alias module '{eval_cmd}' ;")
    return "\n".join(lines)


def _cmake_definition(cmd: str) -> str:
    pre_exec = f"\n      execute_process(COMMAND ${{_mlre}} {cmd} cmake "
    post_exec = "\n         OUTPUT_FILE ${tempfile_name})\n"
    # empty elements of ${ARGV} are skipped, short calls quote each element
    quoted = ['"${ARGV%d}"' % index for index in range(4)]
    parts = [_CMAKE_HEAD]
    for count in range(1, 5):
        keyword = "\n   if" if count == 1 else "   elseif"
        parts.append(f"{keyword}(${{ARGC}} EQUAL {count})")
        parts.append(pre_exec + " ".join(quoted[:count]) + post_exec)
    parts.extend(["   else()", f"{pre_exec}${{ARGV}}{post_exec}", _CMAKE_TAIL])
    return "".join(parts)


def autoinit_definition(shell_type: Shell, shell: str, argv: Sequence[str], *, stderr_tty: bool) -> str:
    """Return the code defining ``module`` in the target shell.

    Args:
        shell_type: Dialect family of the target shell.
        shell: Shell name as given on the command line.
        argv: Command line running the engine.
        stderr_tty: Whether the calling session has its stderr on a terminal;
            sh and fish then route diagnostics to stdout through a wrapper.

    Returns:
        str: Function or alias definition, without trailing newline.

    Raises:
        EnvModulesError: When the shell has no autoinit support.
    """

    cmd = shlex.join(argv)
    fname = "_moduleraw" if stderr_tty else "module"
    match shell_type:
        case Shell.SH:
            wsplit = "=" if shell == "zsh" else ""
            definition = _fill(_SH_TEMPLATE, FNAME=fname, WSPLIT=wsplit, CMD=cmd, SHELL=shell)
            return definition + _SH_TTY_WRAPPER if stderr_tty else definition
        case Shell.CSH:
            return _csh_definition(cmd, shell)
        case Shell.FISH:
            definition = _fill(_FISH_TEMPLATE, FNAME=fname, CMD=cmd, SHELL=shell)
            return definition + _FISH_TTY_WRAPPER if stderr_tty else definition
        case Shell.TCL:
            tcl_cmd = " ".join(f'"{word}"' for word in argv)
            return _fill(_TCL_TEMPLATE, TCLCMD=tcl_cmd, SHELL=shell)
        case Shell.PERL:
            return _fill(_PERL_TEMPLATE, CMD=cmd)
        case Shell.PYTHON:
            return _fill(_PYTHON_TEMPLATE, PYARGV=repr(list(argv)))
        case Shell.RUBY:
            return _fill(_RUBY_TEMPLATE, CMD=cmd)
        case Shell.CMAKE:
            return _cmake_definition(cmd)
        case Shell.R:
            return _fill(_R_TEMPLATE, CMD=cmd)
        case Shell.CMD:
            raise EnvModulesError("No autoinit mode available for 'cmd' shell")
        case Shell.LISP:
            raise EnvModulesError("lisp mode autoinit not yet implemented")
    raise EnvModulesError(f"No autoinit mode available for '{shell}' shell")


__all__ = ["autoinit_definition", "engine_argv"]
