# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the module engine."""

from __future__ import annotations


class EnvModulesError(RuntimeError):
    """Base class for errors raised by the module engine."""


class ArgumentError(EnvModulesError):
    """Raised when the command line or a command receives malformed arguments."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and an exit status.

        Args:
            message: Human-readable description of the invalid invocation.
            exit_code: Process exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


class UnknownShellError(ArgumentError):
    """Raised when the requested output shell is not supported."""

    def __init__(self, shell: str) -> None:
        super().__init__(f"Unknown shell type '({shell})'")
        self.shell = shell


class ModulePathUnsetError(EnvModulesError):
    """Raised when a command requires a module search path and none is defined."""

    def __init__(self) -> None:
        super().__init__("No module path defined")


class ResolutionCycleError(EnvModulesError):
    """Raised when alias or symbolic version resolution loops back on itself."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Resolution loop on '{name}' detected")
        self.name = name


class InvalidModuleNameError(EnvModulesError):
    """Raised when a shorthand module name cannot be expanded."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Invalid modulename '{name}' found")
        self.name = name


class InconsistentStateError(EnvModulesError):
    """Raised when loaded module bookkeeping variables disagree."""


class CollectionError(EnvModulesError):
    """Raised when a collection cannot be located, read or written."""


class PathArgumentError(EnvModulesError):
    """Raised when a path command receives invalid arguments."""


class ModulefileError(EnvModulesError):
    """Error raised while a modulefile is being evaluated."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PrimitiveError(ModulefileError):
    """Raised when a modulefile primitive is called with invalid arguments."""


class ConstraintViolation(ModulefileError):
    """Raised by ``conflict`` and ``prereq`` when a load constraint is not met."""


class SubModuleFailed(ModulefileError):
    """Raised when a nested ``module load``/``module unload`` call failed."""

    def __init__(self) -> None:
        super().__init__("SUB_FAILED")


class ModulefileSignal(BaseException):
    """Base for control-flow signals that end a modulefile evaluation early."""


class ModulefileStop(ModulefileSignal):
    """Stop evaluating the current modulefile without raising an error."""


class ModulefileAbort(ModulefileSignal):
    """Stop evaluating the current modulefile and treat it as failed."""


class ModulefileExit(ModulefileAbort):
    """Abort the current modulefile and carry the requested exit code."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code


__all__ = [
    "ArgumentError",
    "CollectionError",
    "ConstraintViolation",
    "EnvModulesError",
    "InconsistentStateError",
    "InvalidModuleNameError",
    "ModulePathUnsetError",
    "ModulefileAbort",
    "ModulefileError",
    "ModulefileExit",
    "ModulefileSignal",
    "ModulefileStop",
    "PathArgumentError",
    "PrimitiveError",
    "ResolutionCycleError",
    "SubModuleFailed",
    "UnknownShellError",
]
