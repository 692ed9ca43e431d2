"""Core module - shared types and errors."""

from openadr_overlay.core.errors import (
    ConfigError,
    DecodeError,
    EventClosedError,
    LedgerError,
    OpenADRError,
    PersistenceError,
    RegistrationError,
    ReportNotAppliedError,
    ReportSubmissionError,
    UnsupportedQueryError,
    ValidationError,
    VTNError,
)
from openadr_overlay.core.types import (
    Clock,
    EventKey,
    EventStatus,
    Result,
    UnixSeconds,
    unix_now,
)

__all__ = [
    # Types
    "Result",
    "EventKey",
    "EventStatus",
    "UnixSeconds",
    "Clock",
    "unix_now",
    # Errors
    "OpenADRError",
    "ConfigError",
    "PersistenceError",
    "ValidationError",
    "DecodeError",
    "UnsupportedQueryError",
    "LedgerError",
    "EventClosedError",
    "VTNError",
    "RegistrationError",
    "ReportSubmissionError",
    "ReportNotAppliedError",
]
