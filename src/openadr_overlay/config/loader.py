"""Configuration loading for the OpenADR overlay.

Functions:
    load_config: Load configuration from ~/.openadr/config.yaml
    create_default_config: Write a default config.yaml
    ensure_config_dir: Ensure ~/.openadr/ and its subdirectories exist
    config_exists: Check whether config.yaml exists
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
import yaml

from openadr_overlay.config.models import OpenADRConfig, get_config_dir, get_default_config
from openadr_overlay.core.errors import ConfigError

# Environment variables that override config.yaml entries
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "OPENADR_VTN_URL": ("vtn", "base_url"),
    "OPENADR_VEN_ID": ("ven", "ven_id"),
    "OPENADR_PROGRAM_ID": ("ven", "program_id"),
    "OPENADR_LOG_LEVEL": ("logging", "level"),
    "OPENADR_LOG_MODE": ("logging", "mode"),
}


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create the configuration directory with data/ and logs/ inside."""
    config_dir = config_dir or get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "data").mkdir(exist_ok=True)
    (config_dir / "logs").mkdir(exist_ok=True)
    return config_dir


def create_default_config(config_dir: Path | None = None, *, overwrite: bool = False) -> Path:
    """Write config.yaml with default values.

    Returns:
        Path of the written file.

    Raises:
        ConfigError: If the file exists and overwrite is False.
    """
    config_dir = ensure_config_dir(config_dir)
    config_path = config_dir / "config.yaml"
    if config_path.exists() and not overwrite:
        raise ConfigError(
            f"Configuration file already exists: {config_path}",
            config_file=str(config_path),
        )

    with config_path.open("w") as f:
        yaml.dump(
            get_default_config().model_dump(mode="json"),
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
    return config_path


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name, "").strip()
        if value:
            config_dict.setdefault(section, {})[key] = value
    return config_dict


def load_config(config_path: Path | None = None, *, use_env: bool = True) -> OpenADRConfig:
    """Load and validate configuration.

    A missing default config file yields the default configuration; a
    missing explicit path is an error. OPENADR_* environment variables
    (including those from a .env file) override file values.

    Raises:
        ConfigError: If the file is missing, malformed, or fails validation.
    """
    if use_env:
        load_dotenv()
        load_dotenv(get_config_dir() / ".env")

    explicit = config_path is not None
    config_path = config_path or get_config_dir() / "config.yaml"

    config_dict: Any = {}
    if config_path.exists():
        try:
            with config_path.open() as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(
                f"Failed to parse configuration file: {e}",
                config_file=str(config_path),
                details={"yaml_error": str(e)},
            ) from e
    elif explicit:
        raise ConfigError(
            f"Configuration file not found: {config_path}. "
            "Run `openadr config init` to create a default configuration.",
            config_file=str(config_path),
        )

    if not isinstance(config_dict, dict):
        raise ConfigError(
            "Configuration root must be a mapping", config_file=str(config_path)
        )
    if use_env:
        config_dict = _apply_env_overrides(config_dict)

    try:
        return OpenADRConfig.model_validate(config_dict)
    except PydanticValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")
        raise ConfigError(
            "Configuration validation failed:\n" + "\n".join(error_messages),
            config_file=str(config_path),
            details={"validation_errors": e.errors()},
        ) from e


def config_exists(config_dir: Path | None = None) -> bool:
    return ((config_dir or get_config_dir()) / "config.yaml").exists()
