"""Report model and its VTN wire form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from openadr_overlay.contract.payload import ReportEntry
from openadr_overlay.core.types import EventKey, UnixSeconds

LOAD_REDUCTION = "LOAD_REDUCTION"
SIMPLE_LEVEL = "SIMPLE_LEVEL"
PRICE = "PRICE"

RESOURCE_NAME = "VEN_RESOURCE"


@dataclass(frozen=True, slots=True)
class Report:
    """A VEN's response to an event.

    Attributes:
        event_key: Output of the event being reported against.
        report_type: Tag such as LOAD_REDUCTION.
        report_value: String-encoded value.
        ven_id: Identity of the reporting VEN.
        timestamp: Unix seconds when the report was made.
        report_id: Idempotency token. Retrying with the same token never
            produces a second report log entry.
    """

    event_key: EventKey
    report_type: str
    report_value: str
    ven_id: str
    timestamp: UnixSeconds
    report_id: str = field(default_factory=lambda: uuid4().hex)

    def to_entry(self) -> ReportEntry:
        return ReportEntry(
            report_type=self.report_type,
            report_value=self.report_value,
            ven_id=self.ven_id,
            timestamp=self.timestamp,
            report_id=self.report_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "eventKey": self.event_key.to_dict(),
            "reportType": self.report_type,
            "reportValue": self.report_value,
            "venID": self.ven_id,
            "timestamp": self.timestamp,
            "reportID": self.report_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Report:
        return cls(
            event_key=EventKey.from_dict(data["eventKey"]),
            report_type=data["reportType"],
            report_value=data["reportValue"],
            ven_id=data["venID"],
            timestamp=int(data["timestamp"]),
            report_id=data["reportID"],
        )

    def to_vtn_body(self, program_id: str) -> dict[str, Any]:
        """Build the POST /reports request body."""
        return {
            "reportName": f"{self.report_type}_{self.report_id}",
            "programID": program_id,
            "eventID": str(self.event_key),
            "clientName": self.ven_id,
            "resources": [
                {
                    "resourceName": RESOURCE_NAME,
                    "intervals": [
                        {
                            "id": 0,
                            "payloads": [
                                {"type": self.report_type, "values": [self.report_value]}
                            ],
                        }
                    ],
                }
            ],
        }
