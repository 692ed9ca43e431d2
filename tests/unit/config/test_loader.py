"""Unit tests for openadr_overlay.config.loader module."""

import os
from pathlib import Path

import pytest
import yaml

from openadr_overlay.config.loader import (
    config_exists,
    create_default_config,
    ensure_config_dir,
    load_config,
)
from openadr_overlay.config.models import OpenADRConfig
from openadr_overlay.core.errors import ConfigError

ENV_VARS = (
    "OPENADR_VTN_URL",
    "OPENADR_VEN_ID",
    "OPENADR_PROGRAM_ID",
    "OPENADR_LOG_LEVEL",
    "OPENADR_LOG_MODE",
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~ at a temporary directory and clear OPENADR_* variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.dump(
            {
                "vtn": {"base_url": "https://vtn.example/"},
                "ven": {"ven_id": "VEN-42", "poll_interval_seconds": 5},
            }
        )
    )
    return path


class TestEnsureConfigDir:
    def test_creates_subdirectories(self, tmp_path: Path) -> None:
        config_dir = ensure_config_dir(tmp_path / ".openadr")
        assert (config_dir / "data").is_dir()
        assert (config_dir / "logs").is_dir()


class TestCreateDefaultConfig:
    """Test writing the default configuration."""

    def test_writes_loadable_defaults(self, tmp_path: Path) -> None:
        path = create_default_config(tmp_path / ".openadr")

        assert config_exists(tmp_path / ".openadr")
        assert load_config(path, use_env=False) == OpenADRConfig()

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        create_default_config(tmp_path)
        with pytest.raises(ConfigError, match="already exists"):
            create_default_config(tmp_path)

    def test_overwrite_flag(self, tmp_path: Path) -> None:
        path = create_default_config(tmp_path)
        path.write_text("vtn: {base_url: http://changed}\n")

        create_default_config(tmp_path, overwrite=True)

        assert load_config(path, use_env=False).vtn.base_url == "http://localhost:8080"


class TestLoadConfig:
    """Test loading and validation."""

    def test_loads_file_values(self, config_file: Path) -> None:
        config = load_config(config_file, use_env=False)

        assert config.vtn.base_url == "https://vtn.example"
        assert config.ven.ven_id == "VEN-42"
        assert config.ven.poll_interval_seconds == 5
        assert config.ven.program_id == "residential-demand-response"

    def test_missing_default_file_yields_defaults(self) -> None:
        assert load_config(use_env=False) == OpenADRConfig()

    def test_missing_explicit_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml", use_env=False)

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("vtn: [unclosed\n")
        with pytest.raises(ConfigError, match="parse"):
            load_config(path, use_env=False)

    def test_non_mapping_root_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path, use_env=False)

    def test_validation_errors_name_the_field(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"ven": {"poll_interval_seconds": -1}}))

        with pytest.raises(ConfigError) as exc_info:
            load_config(path, use_env=False)

        assert "ven.poll_interval_seconds" in exc_info.value.message
        assert exc_info.value.config_file == str(path)


class TestEnvironmentOverrides:
    """Test OPENADR_* overrides."""

    def test_env_overrides_file(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENADR_VEN_ID", "VEN-ENV")
        monkeypatch.setenv("OPENADR_LOG_LEVEL", "debug")

        config = load_config(config_file)

        assert config.ven.ven_id == "VEN-ENV"
        assert config.logging.level == "debug"
        assert config.vtn.base_url == "https://vtn.example"

    def test_use_env_false_ignores_env(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("OPENADR_VEN_ID", "VEN-ENV")
        assert load_config(config_file, use_env=False).ven.ven_id == "VEN-42"

    def test_dotenv_in_config_dir_is_read(self, isolated_home: Path) -> None:
        config_dir = isolated_home / ".openadr"
        config_dir.mkdir()
        (config_dir / ".env").write_text("OPENADR_PROGRAM_ID=from-dotenv\n")

        try:
            config = load_config()
        finally:
            os.environ.pop("OPENADR_PROGRAM_ID", None)

        assert config.ven.program_id == "from-dotenv"

    def test_invalid_env_value_is_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENADR_LOG_MODE", "loud")
        with pytest.raises(ConfigError, match="logging.mode"):
            load_config()
