"""Value types for OpenADR contract state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from openadr_overlay.core.types import UnixSeconds


class EventType(StrEnum):
    """Event types this node knows how to act on.

    Contract state stores the type as free text; values outside this enum
    are carried through untouched and ignored by dispatch.
    """

    SIMPLE = "SIMPLE"
    PRICE = "PRICE"


@dataclass(frozen=True, slots=True)
class EventFields:
    """The five state fields of an OpenADR contract output, in script order.

    Attributes:
        event_type: Free-text event type, usually an EventType value.
        program_id: Program the event belongs to.
        start_time: Window start in unix seconds.
        duration: Window length in seconds.
        payload: Application-defined payload bytes (UTF-8 JSON by convention).
    """

    event_type: str
    program_id: str
    start_time: UnixSeconds
    duration: int
    payload: bytes = b""

    @property
    def end_time(self) -> UnixSeconds:
        return self.start_time + self.duration

    def is_within_window(self, now: UnixSeconds) -> bool:
        """True when start_time <= now < start_time + duration."""
        return self.start_time <= now < self.end_time

    def same_event(self, other: EventFields) -> bool:
        """True when other carries the same event, whatever its payload."""
        return (
            self.event_type == other.event_type
            and self.program_id == other.program_id
            and self.start_time == other.start_time
            and self.duration == other.duration
        )

    def with_payload(self, payload: bytes) -> EventFields:
        """Copy with a new payload; every other field is kept."""
        return EventFields(
            event_type=self.event_type,
            program_id=self.program_id,
            start_time=self.start_time,
            duration=self.duration,
            payload=payload,
        )
