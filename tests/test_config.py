# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the site configuration loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from envmodules.config import ConfigError, EngineConfig, load_engine_config, siteconfig_path
from envmodules.config.models import DEFAULT_HOME


def test_defaults_without_site_document(tmp_path: Path) -> None:
    config = load_engine_config({"MODULESHOME": str(tmp_path)})

    assert config.home == tmp_path
    assert config.csh_limit == 4000
    assert config.rc_filename == ".modulerc"
    assert config.site_rc == tmp_path / "etc" / "rc"


def test_site_document_is_read_from_moduleshome(tmp_path: Path) -> None:
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "siteconfig.toml").write_text(
        'csh_limit = 2000\nignored_dirs = "CVS .hg"\ncontact = "site@example.org"\n',
        encoding="utf-8",
    )

    config = load_engine_config({"MODULESHOME": str(tmp_path)})

    assert config.csh_limit == 2000
    assert config.ignored_dirs == ["CVS", ".hg"]
    assert config.contact == "site@example.org"


def test_environment_overrides_document(tmp_path: Path) -> None:
    site = tmp_path / "site.toml"
    site.write_text('contact = "site@example.org"\nhome = "/opt/modules"\n', encoding="utf-8")

    config = load_engine_config({"MODULES_SITECONFIG": str(site), "MODULECONTACT": "me@example.org"})

    assert config.contact == "me@example.org"
    assert config.home == Path("/opt/modules")


def test_includes_and_variable_expansion(tmp_path: Path) -> None:
    (tmp_path / "base.toml").write_text('pager = "more"\nxrdb_command = "$XRDB"\n', encoding="utf-8")
    site = tmp_path / "site.toml"
    site.write_text('include = "base.toml"\npager = "less"\n', encoding="utf-8")

    config = load_engine_config({"MODULES_SITECONFIG": str(site), "XRDB": "/usr/X11/bin/xrdb"})

    assert config.pager == "less"
    assert config.xrdb_command == "/usr/X11/bin/xrdb"


def test_circular_include_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "a.toml").write_text('include = "b.toml"\n', encoding="utf-8")
    (tmp_path / "b.toml").write_text('include = "a.toml"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="Circular include detected"):
        load_engine_config({"MODULES_SITECONFIG": str(tmp_path / "a.toml")})


@pytest.mark.parametrize(
    "document",
    ["csh_limit = 0\n", 'rc_filename = " "\n', "csh_limit = [\n"],
)
def test_invalid_documents_raise_config_error(tmp_path: Path, document: str) -> None:
    site = tmp_path / "site.toml"
    site.write_text(document, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_engine_config({"MODULES_SITECONFIG": str(site)})


def test_siteconfig_path_defaults() -> None:
    assert siteconfig_path({}) == DEFAULT_HOME / "etc" / "siteconfig.toml"
    assert siteconfig_path({"MODULES_SITECONFIG": "/etc/mods.toml"}) == Path("/etc/mods.toml")


def test_collection_root_is_relative_to_home() -> None:
    config = EngineConfig()

    assert config.collection_root("/home/user") == Path("/home/user/.module")
