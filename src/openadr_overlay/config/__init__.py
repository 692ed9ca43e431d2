"""Configuration module for the OpenADR overlay.

Configuration is stored in ~/.openadr/config.yaml.

Usage:
    from openadr_overlay.config import load_config

    config = load_config()
    interval = config.ven.poll_interval_seconds
"""

from openadr_overlay.config.loader import (
    config_exists,
    create_default_config,
    ensure_config_dir,
    load_config,
)
from openadr_overlay.config.models import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    LoggingConfig,
    OpenADRConfig,
    OverlayConfig,
    PersistenceConfig,
    VENConfig,
    VTNConfig,
    get_config_dir,
    get_default_config,
)

__all__ = [
    # Models
    "OpenADRConfig",
    "VTNConfig",
    "VENConfig",
    "OverlayConfig",
    "PersistenceConfig",
    "LoggingConfig",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    # Loader functions
    "load_config",
    "create_default_config",
    "ensure_config_dir",
    "config_exists",
    # Model helpers
    "get_config_dir",
    "get_default_config",
]
