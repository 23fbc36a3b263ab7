# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Site configuration sources (built-in defaults, TOML document, environment)."""

from __future__ import annotations

import copy
import re
import tomllib
from collections.abc import Iterable, Mapping, MutableMapping
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from ..constants import CONTACT_VAR, MODULESHOME_VAR, SITECONFIG_VAR
from .models import DEFAULT_HOME, ConfigError, EngineConfig

DEFAULT_INCLUDE_KEY: Final[str] = "include"
SITECONFIG_FILENAME: Final[str] = "siteconfig.toml"

_ENV_VAR_PATTERN = re.compile(r"\$(\w+)|\$\{([^}]+)\}")
_TOML_CACHE: dict[tuple[Path, int], Mapping[str, Any]] = {}


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], Mapping) and isinstance(value, Mapping):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


class TomlConfigSource:
    """Load configuration data from a TOML document with include support."""

    def __init__(
        self,
        path: Path,
        *,
        name: str | None = None,
        include_key: str = DEFAULT_INCLUDE_KEY,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._root_path = path
        self.name = name or str(path)
        self._include_key = include_key
        self._env: Mapping[str, str] = env if env is not None else {}

    def load(self) -> Mapping[str, Any]:
        return self._load(self._root_path, ())

    def _load(self, path: Path, stack: tuple[Path, ...]) -> Mapping[str, Any]:
        if not path.exists():
            return {}
        if path in stack:
            include_chain = " -> ".join(str(entry) for entry in (*stack, path))
            raise ConfigError(f"Circular include detected: {include_chain}")
        resolved = path.resolve()
        try:
            stat = resolved.stat()
            cache_key = (resolved, stat.st_mtime_ns)
            if cached := _TOML_CACHE.get(cache_key):
                data = copy.deepcopy(cached)
            else:
                with resolved.open("rb") as handle:
                    data = tomllib.load(handle)
                _TOML_CACHE[cache_key] = copy.deepcopy(data)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigError(f"{path}: {exc}") from exc
        if not isinstance(data, MutableMapping):
            raise ConfigError(f"Configuration at {path} must be a table")
        document: dict[str, Any] = dict(data)
        includes = document.pop(self._include_key, None)
        merged: dict[str, Any] = {}
        for include_path in self._coerce_includes(includes, path.parent):
            fragment = self._load(include_path, stack + (path,))
            merged = _deep_merge(merged, fragment)
        merged = _deep_merge(merged, document)
        return _expand_env(merged, self._env)

    def _coerce_includes(self, raw: Any, base_dir: Path) -> Iterable[Path]:
        if raw is None:
            return []
        if isinstance(raw, (str, Path)):
            return [self._resolve_path(Path(raw), base_dir)]
        if isinstance(raw, MutableMapping):
            return [self._resolve_path(Path(value), base_dir) for value in raw.values()]
        if isinstance(raw, Iterable):
            return [self._resolve_path(Path(item), base_dir) for item in raw]
        raise ConfigError(f"Unsupported include declaration: {raw!r}")

    @staticmethod
    def _resolve_path(path: Path, base_dir: Path) -> Path:
        return path if path.is_absolute() else (base_dir / path)

    def describe(self) -> str:
        return f"TOML configuration at {self.name}"


def siteconfig_path(env: Mapping[str, str]) -> Path:
    """Return the site configuration file designated by ``env``."""

    if explicit := env.get(SITECONFIG_VAR):
        return Path(explicit)
    home = env.get(MODULESHOME_VAR) or str(DEFAULT_HOME)
    return Path(home) / "etc" / SITECONFIG_FILENAME


def load_engine_config(env: Mapping[str, str]) -> EngineConfig:
    """Build the :class:`EngineConfig` applicable to the session environment.

    Args:
        env: Session environment used for the config location, ``$VAR``
            expansion and overrides.

    Returns:
        EngineConfig: Validated configuration.

    Raises:
        ConfigError: When the site document cannot be read or does not validate.
    """

    source = TomlConfigSource(siteconfig_path(env), env=env)
    payload: dict[str, Any] = dict(source.load())
    if home := env.get(MODULESHOME_VAR):
        payload["home"] = home
    if contact := env.get(CONTACT_VAR):
        payload["contact"] = contact
    try:
        return EngineConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"{source.describe()}: {exc}") from exc


__all__ = [
    "DEFAULT_INCLUDE_KEY",
    "SITECONFIG_FILENAME",
    "TomlConfigSource",
    "load_engine_config",
    "siteconfig_path",
]
