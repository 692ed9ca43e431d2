"""Base journal event.

Journal events are immutable records of VEN report activity. They follow
the dot.notation.past_tense naming convention, e.g. "report.applied".
"""

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class BaseEvent(BaseModel, frozen=True):
    """Base class for journal events.

    Attributes:
        id: Unique event identifier (UUID).
        type: Event type, e.g. "report.submitted".
        timestamp: When the event occurred (UTC).
        aggregate_type: Kind of thing the event is about, e.g. "report".
        aggregate_id: Identifier of that thing.
        data: Event-specific payload.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    aggregate_type: str
    aggregate_id: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to a row for the journal table."""
        return {
            "id": self.id,
            "event_type": self.type,
            "timestamp": self.timestamp,
            "aggregate_type": self.aggregate_type,
            "aggregate_id": self.aggregate_id,
            "payload": self.data,
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> "BaseEvent":
        return cls(
            id=row["id"],
            type=row["event_type"],
            timestamp=row["timestamp"],
            aggregate_type=row["aggregate_type"],
            aggregate_id=row["aggregate_id"],
            data=row["payload"],
        )
