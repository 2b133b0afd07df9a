"""Tests for oasgen.config -- project file, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from oasgen.config import (
    PROJECT_CONFIG_FILENAME,
    _atomic_write,
    load_project_config,
    parse_lang_options,
    project_config_path,
    resolve_config,
    save_project_config,
)
from oasgen.exceptions import ConfigError, InvalidUsageError
from oasgen.models import GenerateConfig, ServiceStyle


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    """Temp file + rename."""

    def test_writes_and_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "file.json"
        _atomic_write(target, '{"a": 1}')
        assert target.read_text() == '{"a": 1}'

    def test_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("old")
        _atomic_write(target, "new")
        assert target.read_text() == "new"

    def test_failure_leaves_no_temp_file(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("original")
        with patch("oasgen.config.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                _atomic_write(target, "new")
        assert target.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


# ---------------------------------------------------------------------------
# Project file
# ---------------------------------------------------------------------------


class TestProjectConfig:
    """Loading and saving ``oasgen.json``."""

    def test_default_path(self, isolated_config: Path) -> None:
        assert project_config_path() == isolated_config / PROJECT_CONFIG_FILENAME

    def test_missing_file(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_load(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "oasgen.json", {"output_dir": "sdk"})
        assert load_project_config() == {"output_dir": "sdk"}

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "oasgen.json"
        path.write_text("{broken")
        with pytest.raises(ConfigError, match="Invalid project config"):
            load_project_config(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "oasgen.json"
        _write_json(path, ["a"])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config(path)

    def test_save_round_trip(self, tmp_path: Path) -> None:
        config = GenerateConfig(
            output_dir="out", service_style="by_tag", lang_options={"k": "v"}, strict=True
        )
        path = save_project_config(config, tmp_path / "oasgen.json")
        data = json.loads(path.read_text())
        assert data == {
            "output_dir": "out",
            "service_style": "by_tag",
            "include_docs": True,
            "lang_options": {"k": "v"},
        }


# ---------------------------------------------------------------------------
# --option parsing
# ---------------------------------------------------------------------------


class TestParseLangOptions:
    """Repeated KEY=VALUE flags."""

    def test_parses(self) -> None:
        assert parse_lang_options(["a=1", "b = two", "url=http://x?y=z"]) == {
            "a": "1",
            "b": " two",
            "url": "http://x?y=z",
        }

    def test_later_wins(self) -> None:
        assert parse_lang_options(["a=1", "a=2"]) == {"a": "2"}

    def test_empty_value_allowed(self) -> None:
        assert parse_lang_options(["a="]) == {"a": ""}

    def test_none(self) -> None:
        assert parse_lang_options(None) == {}

    @pytest.mark.parametrize("entry", ["novalue", "=x"])
    def test_invalid(self, entry: str) -> None:
        with pytest.raises(InvalidUsageError):
            parse_lang_options([entry])


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveConfig:
    """CLI > env > project file > defaults."""

    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config(environ={})
        assert config == GenerateConfig()
        assert config.output_dir == "generated"
        assert config.service_style is ServiceStyle.PER_SERVICE
        assert config.include_docs is True
        assert config.strict is False

    def test_project_file(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "oasgen.json",
            {"output_dir": "sdk", "service_style": "single_client", "include_docs": False},
        )
        config = resolve_config(environ={})
        assert config.output_dir == "sdk"
        assert config.service_style is ServiceStyle.SINGLE_CLIENT
        assert config.include_docs is False

    def test_env_beats_project(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "oasgen.json", {"output_dir": "sdk"})
        config = resolve_config(
            environ={
                "OASGEN_OUTPUT_DIR": "from-env",
                "OASGEN_SERVICE_STYLE": "by-tag",
                "OASGEN_INCLUDE_DOCS": "no",
            }
        )
        assert config.output_dir == "from-env"
        assert config.service_style is ServiceStyle.BY_TAG
        assert config.include_docs is False

    def test_cli_beats_env(self, isolated_config: Path) -> None:
        config = resolve_config(
            cli_output_dir="from-cli",
            cli_include_docs=True,
            cli_strict=True,
            environ={"OASGEN_OUTPUT_DIR": "from-env", "OASGEN_INCLUDE_DOCS": "0"},
        )
        assert config.output_dir == "from-cli"
        assert config.include_docs is True
        assert config.strict is True

    def test_lang_options_merge_per_key(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "oasgen.json",
            {"lang_options": {"package_name": "from-file", "base_url": "http://file"}},
        )
        config = resolve_config(cli_lang_options={"package_name": "from-cli"}, environ={})
        assert config.lang_options == {"package_name": "from-cli", "base_url": "http://file"}

    def test_explicit_project_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.json"
        _write_json(path, {"output_dir": "custom"})
        assert resolve_config(project_path=path, environ={}).output_dir == "custom"

    def test_invalid_env_boolean(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="OASGEN_INCLUDE_DOCS"):
            resolve_config(environ={"OASGEN_INCLUDE_DOCS": "maybe"})

    def test_invalid_style(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config(cli_service_style="by_planet", environ={})

    def test_invalid_lang_options_in_file(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "oasgen.json", {"lang_options": ["a"]})
        with pytest.raises(ConfigError, match="lang_options"):
            resolve_config(environ={})

    def test_reads_os_environ_by_default(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OASGEN_OUTPUT_DIR", "os-env")
        assert resolve_config().output_dir == "os-env"
