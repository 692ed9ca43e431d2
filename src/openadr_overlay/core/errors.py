"""Error hierarchy for the OpenADR overlay.

These exceptions are raised for unexpected errors and double as the error
types carried by Result for expected failures.

Exception Hierarchy:
    OpenADRError (base)
    ├── ConfigError            - Configuration file and validation issues
    ├── PersistenceError       - Database and storage issues
    ├── ValidationError        - Field validation failures
    ├── DecodeError            - Script is not a valid OpenADR contract state
    ├── UnsupportedQueryError  - Lookup question has an unrecognised shape
    ├── LedgerError            - Output resolution or successor publication failed
    │   └── EventClosedError       - Event output spent without a continuation
    ├── VTNError               - VTN HTTP endpoint failures
    │   ├── RegistrationError      - POST /vens rejected or unreachable
    │   └── ReportSubmissionError  - POST /reports rejected or unreachable
    └── ReportNotAppliedError  - Report accepted by the VTN but not written on-chain
"""

from __future__ import annotations

from typing import Any


class OpenADRError(Exception):
    """Base exception for all OpenADR overlay errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigError(OpenADRError):
    """Error from configuration loading or validation.

    Attributes:
        config_key: The configuration key that caused the error.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class PersistenceError(OpenADRError):
    """Error from database and storage operations.

    Attributes:
        operation: The operation that failed (e.g., "insert", "select").
        table: The database table involved if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation
        self.table = table


class ValidationError(OpenADRError):
    """Error raised when a value fails a domain rule.

    Attributes:
        field: The field that failed validation.
        value: The offending value.
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field
        self.value = value

    def __str__(self) -> str:
        base = self.message
        if self.field:
            base = f"{base} (field: {self.field}, value: {self.value!r})"
        if self.details:
            base = f"{base} (details: {self.details})"
        return base


class DecodeError(OpenADRError):
    """A locking script does not carry OpenADR contract state.

    This is the common case for ordinary ledger outputs, so callers
    treat it as "skip", not as a failure of the surrounding operation.

    Attributes:
        offset: Byte offset in the script where decoding stopped, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        offset: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.offset = offset


class UnsupportedQueryError(OpenADRError):
    """A lookup question the lookup service cannot answer.

    Attributes:
        service: The service name the question was addressed to.
        query: The raw query payload.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        query: Any | None = None,
    ) -> None:
        super().__init__(message, {"service": service} if service else None)
        self.service = service
        self.query = query


class LedgerError(OpenADRError):
    """Error resolving or publishing ledger outputs.

    Attributes:
        key: The "txid-outputIndex" string of the output involved.
    """

    def __init__(
        self,
        message: str,
        *,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.key = key


class EventClosedError(LedgerError):
    """An event output was spent by a transaction that does not continue it.

    The event has no live output left to write reports to.
    """


class VTNError(OpenADRError):
    """Error talking to the VTN HTTP API.

    Attributes:
        endpoint: Path of the endpoint (e.g., "/vens").
        status_code: HTTP status code when a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code

    @classmethod
    def from_exception(cls, exc: Exception, *, endpoint: str) -> VTNError:
        """Wrap a transport-level exception, preserving the cause."""
        error = cls(
            f"Request to {endpoint} failed: {exc}",
            endpoint=endpoint,
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class RegistrationError(VTNError):
    """The VTN did not accept the VEN registration."""


class ReportSubmissionError(VTNError):
    """The VTN did not accept a report. Nothing was written on-chain."""


class ReportNotAppliedError(OpenADRError):
    """A report reached the VTN but could not be applied to contract state.

    The report is recorded externally and missing on-chain. Callers keep
    the attached report to retry application later.

    Attributes:
        report: The report that needs reconciliation.
        retryable: False when retrying cannot help (the event is closed or
            its state is malformed); such reports are not queued.
    """

    def __init__(
        self,
        message: str,
        *,
        report: Any,
        retryable: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.report = report
        self.retryable = retryable
