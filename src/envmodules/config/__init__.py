# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Engine configuration loading."""

from __future__ import annotations

from .models import ConfigError, EngineConfig
from .sources import TomlConfigSource, load_engine_config, siteconfig_path

__all__ = ["ConfigError", "EngineConfig", "TomlConfigSource", "load_engine_config", "siteconfig_path"]
