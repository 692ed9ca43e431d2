"""Observability module - structured logging."""

from openadr_overlay.observability.logging import (
    LOG_MODE_ENV,
    bind_context,
    clear_context,
    configure_logging,
    get_current_config,
    get_logger,
    is_configured,
    reset_logging,
    set_console_logging,
    unbind_context,
)

__all__ = [
    "LOG_MODE_ENV",
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "get_current_config",
    "is_configured",
    "reset_logging",
    "set_console_logging",
]
