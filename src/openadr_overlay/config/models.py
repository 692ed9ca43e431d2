"""Pydantic models for OpenADR overlay configuration.

Classes:
    VTNConfig: VTN HTTP endpoint, timeouts and retry policy
    VENConfig: VEN identity, program subscription and polling
    OverlayConfig: Topic and lookup service names
    PersistenceConfig: Storage configuration
    LoggingConfig: Logging configuration
    OpenADRConfig: Top-level configuration combining all sections
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_POLL_INTERVAL_SECONDS = 10.0


class VTNConfig(BaseModel, frozen=True):
    """VTN (overlay service) HTTP configuration.

    Attributes:
        base_url: Base URL for /vens, /reports and /lookup
        timeout_seconds: Per-request timeout
        max_retries: Attempts per request for transient failures
        retry_wait_initial: First backoff delay in seconds
        retry_wait_max: Backoff ceiling in seconds
        retry_wait_jitter: Maximum random jitter added to each backoff
    """

    base_url: str = "http://localhost:8080"
    timeout_seconds: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_wait_initial: float = Field(default=0.5, ge=0)
    retry_wait_max: float = Field(default=5.0, ge=0)
    retry_wait_jitter: float = Field(default=1.0, ge=0)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class VENConfig(BaseModel, frozen=True):
    """VEN client configuration.

    Attributes:
        ven_id: Identity announced at registration and on reports
        program_id: Program to subscribe to
        poll_interval_seconds: Delay between poll ticks
        dedup_max_entries: Upper bound of the dispatched-event cache
        report_timestamp_bucket_seconds: Width of the timestamp bucket used
            to treat two reports as the same report
    """

    ven_id: str = "VEN-1"
    program_id: str = "residential-demand-response"
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    dedup_max_entries: int = Field(default=4096, ge=1)
    report_timestamp_bucket_seconds: int = Field(default=60, ge=1)

    @field_validator("ven_id", "program_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be blank"
            raise ValueError(msg)
        return v


class OverlayConfig(BaseModel, frozen=True):
    """Overlay names.

    Attributes:
        topic: Topic the topic manager admits into
        service: Lookup service name
        lookup_url: Base URL of a remote lookup service; the VTN base URL
            is used when unset
        contract_artifact: Optional compiled contract artifact to build the
            contract schema from; the built-in schema is used when unset
    """

    topic: str = "tm_openADR"
    service: str = "ls_openADR"
    lookup_url: str | None = None
    contract_artifact: str | None = None

    @field_validator("contract_artifact")
    @classmethod
    def expand_artifact_path(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return str(Path(v).expanduser())


class PersistenceConfig(BaseModel, frozen=True):
    """Persistence configuration.

    Attributes:
        database_path: SQLite event index (relative to config dir)
        journal_path: SQLite report journal (relative to config dir)
        journal_enabled: Whether VEN report activity is journaled
    """

    database_path: str = "data/openadr.db"
    journal_path: str = "data/journal.db"
    journal_enabled: bool = True


class LoggingConfig(BaseModel, frozen=True):
    """Logging configuration.

    Attributes:
        level: Log level
        mode: dev (console renderer) or prod (JSON)
        log_path: Path to log directory (relative to config dir)
        file_logging: Whether to also write JSON logs to daily rotated files
        max_log_days: Number of rotated log files to keep
    """

    level: Literal["debug", "info", "warning", "error"] = "info"
    mode: Literal["dev", "prod"] = "dev"
    log_path: str = "logs"
    file_logging: bool = False
    max_log_days: int = Field(default=7, ge=1, le=365)


class OpenADRConfig(BaseModel, frozen=True):
    """Top-level configuration, validated against ~/.openadr/config.yaml."""

    vtn: VTNConfig = Field(default_factory=VTNConfig)
    ven: VENConfig = Field(default_factory=VENConfig)
    overlay: OverlayConfig = Field(default_factory=OverlayConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def resolve_path(self, relative: str) -> Path:
        """Resolve a config-relative path against the config directory."""
        path = Path(relative).expanduser()
        return path if path.is_absolute() else get_config_dir() / path


def get_default_config() -> OpenADRConfig:
    return OpenADRConfig()


def get_config_dir() -> Path:
    """Return ~/.openadr/"""
    return Path.home() / ".openadr"
