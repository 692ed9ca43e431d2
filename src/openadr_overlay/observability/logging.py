"""Structured logging configuration for the OpenADR overlay.

Configures structlog once per process. Development mode renders a
human-readable console; production mode emits JSON lines. Either mode can
additionally write JSON to a daily rotated file.

Standard log keys:
- ven_id: VEN identity
- program_id: Subscribed program
- key: Event output as "txid-outputIndex"
- report_id: Report idempotency token

Event naming convention:
- Use dot.notation (e.g., "admission.output.admitted", "ven.report.applied")
- Format: domain.entity.verb_past_tense

Usage:
    from openadr_overlay.observability import configure_logging, get_logger, bind_context

    configure_logging(config.logging)
    bind_context(ven_id="VEN-1", program_id="residential-demand-response")

    log = get_logger(__name__)
    log.info("ven.poll.completed", dispatched=1)
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

import structlog

from openadr_overlay.config.models import LoggingConfig, get_config_dir

LOG_MODE_ENV = "OPENADR_LOG_MODE"
REDACTED = "<REDACTED>"

_SENSITIVE_KEYS = frozenset({"token", "secret", "api_key", "apikey", "authorization", "password"})
_STRUCTLOG_KEYS = frozenset({"event", "level", "timestamp", "filename", "lineno"})

_configured: bool = False
_current_config: LoggingConfig | None = None
_console_logging_enabled: bool = True


def _get_mode_from_env() -> str:
    """Return "prod" when OPENADR_LOG_MODE=prod, otherwise "dev"."""
    return "prod" if os.environ.get(LOG_MODE_ENV, "dev").lower() == "prod" else "dev"


def _get_log_level(level_str: str) -> int:
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
    }
    return level_map.get(level_str.upper(), logging.INFO)


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower().replace("-", "_")
    return any(marker in lowered for marker in _SENSITIVE_KEYS)


def _mask_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if _is_sensitive_key(str(k)) else _mask_value(v) for k, v in value.items()
        }
    return value


def _mask_sensitive_data(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that redacts credentials by key name, recursively."""
    for key, value in list(event_dict.items()):
        if key in _STRUCTLOG_KEYS:
            continue
        if _is_sensitive_key(key):
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = _mask_value(value)
    return event_dict


def _get_shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        _mask_sensitive_data,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _get_processors(mode: str) -> list[Any]:
    processors = _get_shared_processors()
    if mode == "dev":
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def _setup_file_handler(config: LoggingConfig, log_dir: Path) -> TimedRotatingFileHandler | None:
    if not config.file_logging:
        return None
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_dir / "openadr.log"),
        when="midnight",
        interval=1,
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(_get_log_level(config.level))
    return handler


def set_console_logging(enabled: bool) -> None:
    """Enable or disable console log output (the CLI turns it off for tables)."""
    global _console_logging_enabled
    _console_logging_enabled = enabled


def is_console_logging_enabled() -> bool:
    return _console_logging_enabled


class _FileWritingPrintLogger:
    """Prints rendered lines to stderr and mirrors them to a file handler."""

    def __init__(self, file_handler: TimedRotatingFileHandler | None = None) -> None:
        self._file_handler = file_handler

    def _log(self, message: str, level: int = logging.INFO) -> None:
        if _console_logging_enabled:
            print(message, file=sys.stderr)
        if self._file_handler is not None:
            record = logging.LogRecord(
                name="openadr",
                level=level,
                pathname="",
                lineno=0,
                msg=message,
                args=(),
                exc_info=None,
            )
            self._file_handler.emit(record)

    def msg(self, message: str) -> None:
        self._log(message, logging.INFO)

    __call__ = msg
    info = msg

    def debug(self, message: str) -> None:
        self._log(message, logging.DEBUG)

    def warning(self, message: str) -> None:
        self._log(message, logging.WARNING)

    warn = warning

    def error(self, message: str) -> None:
        self._log(message, logging.ERROR)

    exception = error

    def critical(self, message: str) -> None:
        self._log(message, logging.CRITICAL)

    fatal = critical


class _FileWritingPrintLoggerFactory:
    def __init__(self, file_handler: TimedRotatingFileHandler | None = None) -> None:
        self._file_handler = file_handler

    def __call__(self, *_args: Any) -> _FileWritingPrintLogger:
        return _FileWritingPrintLogger(self._file_handler)


def configure_logging(config: LoggingConfig | None = None, *, log_dir: Path | None = None) -> None:
    """Configure structlog for the application.

    Call once at startup. Reconfiguring replaces the previous setup.

    Args:
        config: Logging section of the configuration. When None, defaults
            are used with the mode taken from OPENADR_LOG_MODE.
        log_dir: Directory for rotated log files. Defaults to log_path
            resolved against ~/.openadr/.
    """
    global _configured, _current_config

    if config is None:
        config = LoggingConfig(mode=_get_mode_from_env())
    _current_config = config

    log_level = _get_log_level(config.level)
    if log_dir is None:
        log_path = Path(config.log_path).expanduser()
        log_dir = log_path if log_path.is_absolute() else get_config_dir() / log_path

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    file_handler = _setup_file_handler(config, log_dir)
    if file_handler is not None:
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=_get_processors(config.mode),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_FileWritingPrintLoggerFactory(file_handler),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Return a bound logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind keys to every subsequent log entry in the current async context.

    Never bind credentials; they would be redacted anyway.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_current_config() -> LoggingConfig | None:
    return _current_config


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Forget the current configuration. Intended for tests."""
    global _configured, _current_config
    _configured = False
    _current_config = None
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
