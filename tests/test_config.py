"""Tests for specsplit.config -- discovery precedence, loading, atomic writes, XDG paths."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from specsplit.config import (
    _atomic_write,
    find_config_file,
    get_data_dir,
    load_modularize_config,
    parse_modularize_config,
    save_modularize_config,
)
from specsplit.exceptions import ConfigError
from specsplit.models import ModularizeConfig


def _write_yaml(path: Path, data: object) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


_VALID = {
    "paths": {"output": "./out", "main_file_name": "openapi"},
    "naming": {"components": "camelCase", "paths": "snake_case"},
    "affixes": {"enabled": True, "suffixes": {"schemas": "Schema"}},
}


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestDataDir:
    def test_xdg_data_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specsplit.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg"))
        result = get_data_dir()
        assert result == tmp_path / "xdg" / "specsplit"
        assert result.is_dir()

    def test_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specsplit.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        with patch("pathlib.Path.home", return_value=tmp_path):
            result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "specsplit"

    def test_non_xdg_platform(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("specsplit.config._is_xdg_platform", lambda: False)
        with patch("pathlib.Path.home", return_value=tmp_path):
            result = get_data_dir()
        assert result == tmp_path / ".specsplit"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_parents_and_writes(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "dir" / "specsplit.yaml"
        _atomic_write(target, "paths: {}\n")
        assert target.read_text(encoding="utf-8") == "paths: {}\n"

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "specsplit.yaml"
        target.write_text("old", encoding="utf-8")
        _atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "new"

    def test_no_temp_file_left_on_failure(self, tmp_path: Path) -> None:
        target = tmp_path / "specsplit.yaml"
        with patch("specsplit.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                _atomic_write(target, "data")
        assert os.listdir(tmp_path) == []


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestFindConfigFile:
    def test_nothing_found(self, isolated_config: Path) -> None:
        assert find_config_file() is None

    def test_explicit_wins(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        explicit = _write_yaml(isolated_config / "explicit.yaml", _VALID)
        env = _write_yaml(isolated_config / "env.yaml", _VALID)
        _write_yaml(isolated_config / "specsplit.yaml", _VALID)
        monkeypatch.setenv("SPECSPLIT_CONFIG", str(env))
        assert find_config_file(explicit) == explicit

    def test_explicit_missing(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="Config file not found"):
            find_config_file(isolated_config / "nope.yaml")

    def test_env_beats_project_files(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env = _write_yaml(isolated_config / "env.yaml", _VALID)
        _write_yaml(isolated_config / "specsplit.yaml", _VALID)
        monkeypatch.setenv("SPECSPLIT_CONFIG", str(env))
        assert find_config_file() == env

    def test_env_missing(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SPECSPLIT_CONFIG", str(isolated_config / "gone.yaml"))
        with pytest.raises(ConfigError, match="SPECSPLIT_CONFIG"):
            find_config_file()

    def test_project_file_order(self, isolated_config: Path) -> None:
        nested = _write_yaml(isolated_config / "config" / "modularize.yaml", _VALID)
        assert find_config_file().resolve() == nested.resolve()
        top = _write_yaml(isolated_config / "specsplit.yaml", _VALID)
        assert find_config_file().resolve() == top.resolve()


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadModularizeConfig:
    def test_defaults_when_no_file(self, isolated_config: Path) -> None:
        assert load_modularize_config() == ModularizeConfig()

    def test_loads_declared_values(self, isolated_config: Path) -> None:
        path = _write_yaml(isolated_config / "specsplit.yaml", _VALID)
        config = load_modularize_config(path)
        assert config.paths.output == "./out"
        assert config.paths.main_file_name == "openapi"
        assert config.naming.components == "camelCase"
        assert config.affixes.suffixes == {"schemas": "Schema"}
        # Undeclared optional sections fall back to defaults.
        assert config.behavior.clean_output is True

    @pytest.mark.parametrize("section", ["paths", "naming", "affixes"])
    def test_missing_required_section(self, isolated_config: Path, section: str) -> None:
        data = {k: v for k, v in _VALID.items() if k != section}
        path = _write_yaml(isolated_config / "specsplit.yaml", data)
        with pytest.raises(ConfigError, match=f"missing required section.*{section}"):
            load_modularize_config(path)

    def test_invalid_yaml(self, isolated_config: Path) -> None:
        path = isolated_config / "specsplit.yaml"
        path.write_text("paths: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_modularize_config(path)

    def test_not_a_mapping(self, isolated_config: Path) -> None:
        path = _write_yaml(isolated_config / "specsplit.yaml", ["paths"])
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_modularize_config(path)

    def test_invalid_value(self) -> None:
        data = dict(_VALID, advanced={"file_extension": ".txt"})
        with pytest.raises(ConfigError, match="unsupported file extension"):
            parse_modularize_config(data, "inline")

    def test_config_error_exit_code(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            parse_modularize_config({}, "inline")
        assert exc_info.value.exit_code == 4


class TestSaveModularizeConfig:
    def test_round_trip(self, tmp_path: Path) -> None:
        original = parse_modularize_config(_VALID)
        path = tmp_path / "specsplit.yaml"
        save_modularize_config(original, path)
        assert load_modularize_config(path) == original

    def test_saved_file_declares_required_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "specsplit.yaml"
        save_modularize_config(ModularizeConfig(), path)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        for section in ModularizeConfig.REQUIRED_SECTIONS:
            assert section in data
