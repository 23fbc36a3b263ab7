# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Constants shared across the module engine."""

from __future__ import annotations

import os
from typing import Final

MAGIC_COOKIE: Final[str] = "#%Module"
UNDEFINED_VALUE: Final[str] = "_UNDEFINED_"

MODULEPATH_VAR: Final[str] = "MODULEPATH"
LOADED_MODULES_VAR: Final[str] = "LOADEDMODULES"
LOADED_FILES_VAR: Final[str] = "_LMFILES_"
MODULESHOME_VAR: Final[str] = "MODULESHOME"
MODULERCFILE_VAR: Final[str] = "MODULERCFILE"
QUARANTINE_VAR: Final[str] = "MODULES_RUN_QUARANTINE"
QUARANTINE_SUFFIX: Final[str] = "_modquar"
PAGER_VAR: Final[str] = "MODULES_PAGER"
SITECONFIG_VAR: Final[str] = "MODULES_SITECONFIG"
CONTACT_VAR: Final[str] = "MODULECONTACT"
COLLECTION_TARGET_VAR: Final[str] = "MODULES_COLLECTION_TARGET"
COLLECTION_PIN_VAR: Final[str] = "MODULES_COLLECTION_PIN_VERSION"

REFCOUNT_SUFFIX: Final[str] = "_modshare"
REFCOUNT_DYLD_PREFIX: Final[str] = "MODULES_MODSHARE_"

PATH_SEPARATOR: Final[str] = os.pathsep
DEFAULT_DELIMITER: Final[str] = PATH_SEPARATOR

DEFAULT_SYMBOL: Final[str] = "default"
SHELL_ESCAPED_CHARS: Final[str] = " \\\t{}|<>!;#^$&*\"'`()"

__all__ = [
    "COLLECTION_PIN_VAR",
    "COLLECTION_TARGET_VAR",
    "CONTACT_VAR",
    "DEFAULT_DELIMITER",
    "DEFAULT_SYMBOL",
    "LOADED_FILES_VAR",
    "LOADED_MODULES_VAR",
    "MAGIC_COOKIE",
    "MODULEPATH_VAR",
    "MODULERCFILE_VAR",
    "MODULESHOME_VAR",
    "PAGER_VAR",
    "PATH_SEPARATOR",
    "QUARANTINE_SUFFIX",
    "QUARANTINE_VAR",
    "REFCOUNT_DYLD_PREFIX",
    "REFCOUNT_SUFFIX",
    "SHELL_ESCAPED_CHARS",
    "SITECONFIG_VAR",
    "UNDEFINED_VALUE",
]
