"""Event payload variants and the embedded report log.

Payload bytes are UTF-8 JSON objects. They are parsed once, at the codec
boundary, into one of:

    SimplePayload(level)   - SIMPLE events
    PricePayload(price)    - PRICE events
    UnknownPayload(raw)    - anything else, including malformed JSON

Every JSON payload may carry a "reports" list. Entries are only ever
appended; append_report() refuses to add a report that is already present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

from openadr_overlay.contract.models import EventType
from openadr_overlay.core.errors import ValidationError
from openadr_overlay.core.types import UnixSeconds

REPORTS_KEY = "reports"

Number = int | float


@dataclass(frozen=True, slots=True)
class ReportEntry:
    """One entry of a payload's report log.

    Attributes:
        report_type: Tag such as "SIMPLE_LEVEL" or "LOAD_REDUCTION".
        report_value: String-encoded value.
        ven_id: Identity of the reporting VEN.
        timestamp: When the report was made, unix seconds.
        report_id: Idempotency token chosen by the reporter.
    """

    report_type: str
    report_value: str
    ven_id: str
    timestamp: UnixSeconds
    report_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "reportType": self.report_type,
            "reportValue": self.report_value,
            "venID": self.ven_id,
            "timestamp": self.timestamp,
        }
        if self.report_id is not None:
            data["reportID"] = self.report_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportEntry:
        return cls(
            report_type=str(data["reportType"]),
            report_value=str(data["reportValue"]),
            ven_id=str(data["venID"]),
            timestamp=int(data["timestamp"]),
            report_id=data.get("reportID"),
        )

    def matches(self, other: ReportEntry, bucket_seconds: int) -> bool:
        """True when both entries describe the same logical report.

        Reports match on an equal idempotency token, or on equal type,
        value and VEN with timestamps in the same bucket.
        """
        if self.report_id is not None and self.report_id == other.report_id:
            return True
        return (
            self.report_type == other.report_type
            and self.report_value == other.report_value
            and self.ven_id == other.ven_id
            and self.timestamp // bucket_seconds == other.timestamp // bucket_seconds
        )


@dataclass(frozen=True, slots=True)
class SimplePayload:
    level: Number
    reports: tuple[ReportEntry, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PricePayload:
    price: Number
    reports: tuple[ReportEntry, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UnknownPayload:
    raw: bytes
    reports: tuple[ReportEntry, ...] = ()


EventPayload = SimplePayload | PricePayload | UnknownPayload


def decode_payload(event_type: str, raw: bytes) -> EventPayload:
    """Parse payload bytes into the variant for event_type.

    Never raises: unparseable input becomes UnknownPayload.
    """
    document = _load_object(raw)
    if document is None:
        return UnknownPayload(raw=raw)

    reports = _parse_reports(document)
    extra = {k: v for k, v in document.items() if k != REPORTS_KEY}

    match event_type:
        case EventType.SIMPLE:
            level = extra.pop("level", None)
            if _is_number(level):
                return SimplePayload(level=level, reports=reports, extra=extra)
        case EventType.PRICE:
            price = extra.pop("price", None)
            if _is_number(price):
                return PricePayload(price=price, reports=reports, extra=extra)
    return UnknownPayload(raw=raw, reports=reports)


def encode_payload(document: dict[str, Any]) -> bytes:
    """Serialize a payload document to compact UTF-8 JSON."""
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def report_log(raw: bytes) -> tuple[ReportEntry, ...]:
    """Return the report log embedded in raw payload bytes."""
    document = _load_object(raw)
    return _parse_reports(document) if document is not None else ()


def append_report(raw: bytes, entry: ReportEntry, *, bucket_seconds: int = 60) -> bytes | None:
    """Append entry to the payload's report log.

    Args:
        raw: Current payload bytes.
        entry: Report to append.
        bucket_seconds: Width of the timestamp bucket used for matching.

    Returns:
        The new payload bytes, or None if an equivalent report is already
        in the log.

    Raises:
        ValidationError: If the payload is not a JSON object or its report
            log is malformed.
    """
    document = _load_object(raw)
    if document is None:
        raise ValidationError("Payload is not a JSON object", field="payload")

    existing = document.get(REPORTS_KEY, [])
    if not isinstance(existing, list):
        raise ValidationError("Payload report log is not a list", field=REPORTS_KEY)

    if any(other.matches(entry, bucket_seconds) for other in _parse_reports(document)):
        return None

    document[REPORTS_KEY] = [*existing, entry.to_dict()]
    return encode_payload(document)


def _load_object(raw: bytes) -> dict[str, Any] | None:
    try:
        document = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return document if isinstance(document, dict) else None


def _parse_reports(document: dict[str, Any]) -> tuple[ReportEntry, ...]:
    entries = document.get(REPORTS_KEY)
    if not isinstance(entries, list):
        return ()
    parsed: list[ReportEntry] = []
    for item in entries:
        # Entries written by other tools may be partial; skip those
        if not isinstance(item, dict):
            continue
        try:
            parsed.append(ReportEntry.from_dict(item))
        except (KeyError, TypeError, ValueError):
            continue
    return tuple(parsed)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)
