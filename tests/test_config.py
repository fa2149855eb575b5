"""Tests for skelkit.config – YAML and environment configuration."""

from pathlib import Path

import pytest
import yaml

from skelkit.catalog import default_catalog
from skelkit.config import InstallerConfig, load_config
from skelkit.state import STATE_FILENAME


class TestInstallerConfig:
    def test_defaults(self) -> None:
        cfg = InstallerConfig()
        assert cfg.catalog_path is None
        assert cfg.state_filename == STATE_FILENAME
        assert cfg.default_layout == "flat"
        assert cfg.log_level == "INFO"
        assert cfg.load_catalog() is default_catalog()

    def test_from_env(self) -> None:
        cfg = InstallerConfig.from_env({
            "SKELKIT_STATE_FILE": ".state.json",
            "SKELKIT_DEFAULT_LAYOUT": "modular",
            "SKELKIT_LOG_DIR": "/tmp/skelkit-test-logs",
            "SKELKIT_LOG_LEVEL": "debug",
        })
        assert cfg.state_filename == ".state.json"
        assert cfg.default_layout == "modular"
        assert cfg.log_dir == "/tmp/skelkit-test-logs"
        assert cfg.log_level == "DEBUG"

    def test_from_env_blank_values(self) -> None:
        cfg = InstallerConfig.from_env({"SKELKIT_CATALOG": "  ", "SKELKIT_STATE_FILE": ""})
        assert cfg.catalog_path is None
        assert cfg.state_filename == STATE_FILENAME

    def test_yaml_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "skelkit.yaml"
        InstallerConfig(default_layout="modular", log_level="WARNING").to_yaml(path)
        cfg = InstallerConfig.from_yaml(path)
        assert cfg.default_layout == "modular"
        assert cfg.log_level == "WARNING"

    def test_relative_catalog_path(self, tmp_path: Path) -> None:
        path = tmp_path / "skelkit.yaml"
        path.write_text(yaml.safe_dump({"catalog": "catalog.yaml"}))
        cfg = InstallerConfig.from_yaml(path)
        assert cfg.catalog_path == str(tmp_path / "catalog.yaml")

    def test_missing_catalog(self, tmp_path: Path) -> None:
        cfg = InstallerConfig(catalog_path=str(tmp_path / "nope.yaml"))
        with pytest.raises(FileNotFoundError):
            cfg.load_catalog()

    def test_custom_catalog(self, tmp_path: Path) -> None:
        catalog_path = tmp_path / "catalog.yaml"
        catalog_path.write_text(yaml.safe_dump({
            "questions": [{"id": "router", "options": [{"code": 1, "name": "Only"}]}],
        }))
        cfg = InstallerConfig(catalog_path=str(catalog_path))
        assert cfg.load_catalog().question_ids == ["router"]


class TestLoadConfig:
    def test_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("SKELKIT_DEFAULT_LAYOUT", "modular")
        assert load_config().default_layout == "modular"

    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "skelkit.yaml"
        path.write_text("state_file: .custom-state.json\n")
        assert load_config(path).state_filename == ".custom-state.json"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
