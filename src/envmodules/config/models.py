# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Pydantic models describing the engine configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOME: Final[Path] = Path("/usr/share/Modules")


class ConfigError(Exception):
    """Raised when configuration input is invalid."""


class EngineConfig(BaseModel):
    """Site settings of the module engine.

    Values come from built-in defaults, then the site TOML document, then
    the environment (``MODULESHOME``, ``MODULES_PAGER``, ``MODULECONTACT``).
    """

    model_config = ConfigDict(validate_assignment=True)

    home: Path = DEFAULT_HOME
    contact: str = "root@localhost"
    pager: str = "/usr/bin/less"
    pager_options: str = "-eFKRX"
    csh_limit: int = Field(default=4000, gt=0)
    collection_dir: Path = Path(".module")
    rc_filename: str = ".modulerc"
    version_filename: str = ".version"
    ignored_dirs: list[str] = Field(default_factory=lambda: ["CVS", "RCS", "SCCS", ".svn", ".git"])
    ignored_file_patterns: list[str] = Field(default_factory=lambda: ["*~", "*,v", "#*#"])
    xrdb_command: str = "xrdb"
    autoinit_command: str | None = None

    @field_validator("ignored_dirs", "ignored_file_patterns", mode="before")
    @classmethod
    def _coerce_string_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item for item in value.split() if item]
        return value

    @field_validator("rc_filename", "version_filename", "xrdb_command", mode="after")
    @classmethod
    def _require_non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value must not be empty")
        return value

    @property
    def site_rc(self) -> Path:
        return self.home / "etc" / "rc"

    @property
    def modulespath_file(self) -> Path:
        return self.home / "init" / ".modulespath"

    @property
    def init_modulerc(self) -> Path:
        return self.home / "init" / "modulerc"

    def collection_root(self, home_dir: str) -> Path:
        """Return the directory holding collections of the user whose home is ``home_dir``."""

        if self.collection_dir.is_absolute():
            return self.collection_dir
        return Path(home_dir) / self.collection_dir


__all__ = ["DEFAULT_HOME", "ConfigError", "EngineConfig"]
