"""Unit tests for openadr_overlay.config.models module."""

from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
import pytest

from openadr_overlay.config.models import (
    LoggingConfig,
    OpenADRConfig,
    OverlayConfig,
    VENConfig,
    VTNConfig,
    get_config_dir,
    get_default_config,
)


class TestVTNConfig:
    """Test VTNConfig validation."""

    def test_defaults(self) -> None:
        config = VTNConfig()
        assert config.base_url == "http://localhost:8080"
        assert config.max_retries == 3

    def test_trailing_slash_is_stripped(self) -> None:
        assert VTNConfig(base_url="https://vtn.example/api/").base_url == "https://vtn.example/api"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(PydanticValidationError):
            VTNConfig(timeout_seconds=0)

    def test_at_least_one_attempt(self) -> None:
        with pytest.raises(PydanticValidationError):
            VTNConfig(max_retries=0)


class TestVENConfig:
    """Test VENConfig validation."""

    def test_defaults(self) -> None:
        config = VENConfig()
        assert config.poll_interval_seconds == 10.0
        assert config.report_timestamp_bucket_seconds == 60

    @pytest.mark.parametrize("field", ["ven_id", "program_id"])
    def test_identity_must_not_be_blank(self, field: str) -> None:
        with pytest.raises(PydanticValidationError, match="must not be blank"):
            VENConfig(**{field: "   "})

    def test_poll_interval_must_be_positive(self) -> None:
        with pytest.raises(PydanticValidationError):
            VENConfig(poll_interval_seconds=0)

    def test_is_frozen(self) -> None:
        config = VENConfig()
        with pytest.raises(PydanticValidationError):
            config.ven_id = "other"  # type: ignore[misc]


class TestOverlayConfig:
    def test_contract_artifact_is_expanded(self) -> None:
        config = OverlayConfig(contract_artifact="~/contracts/OpenADR.json")
        assert config.contract_artifact == str(Path.home() / "contracts" / "OpenADR.json")

    def test_names(self) -> None:
        config = OverlayConfig()
        assert (config.topic, config.service) == ("tm_openADR", "ls_openADR")


class TestLoggingConfig:
    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(PydanticValidationError):
            LoggingConfig(level="verbose")  # type: ignore[arg-type]

    def test_max_log_days_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            LoggingConfig(max_log_days=0)


class TestOpenADRConfig:
    """Test the top-level configuration."""

    def test_default_config_has_every_section(self) -> None:
        config = get_default_config()
        assert isinstance(config, OpenADRConfig)
        assert set(config.model_dump()) == {"vtn", "ven", "overlay", "persistence", "logging"}

    def test_resolve_relative_path(self) -> None:
        config = OpenADRConfig()
        assert config.resolve_path("data/openadr.db") == get_config_dir() / "data" / "openadr.db"

    def test_resolve_absolute_path(self, tmp_path: Path) -> None:
        assert OpenADRConfig().resolve_path(str(tmp_path / "x.db")) == tmp_path / "x.db"

    def test_config_dir(self) -> None:
        assert get_config_dir() == Path.home() / ".openadr"
