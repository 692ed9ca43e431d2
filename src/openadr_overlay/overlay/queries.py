"""Lookup question models.

A lookup question names a service and carries a free-form query object:

    {"service": "ls_openADR", "query": {"findAll": true}}
    {"service": "ls_openADR", "query": {"programID": "p1", "active": true}}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from openadr_overlay.core.errors import UnsupportedQueryError

LOOKUP_SERVICE = "ls_openADR"


class LookupQuery(BaseModel):
    """Query object of a lookup question.

    Attributes:
        find_all: Return every indexed event.
        active: When present (any value), return events active now.
        program_id: Narrow an active query to one program.
        event_type: Narrow an active query to one event type.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    find_all: bool | None = Field(default=None, alias="findAll")
    active: bool | None = None
    program_id: str | None = Field(default=None, alias="programID")
    event_type: str | None = Field(default=None, alias="eventType")

    @property
    def wants_active(self) -> bool:
        """True when "active" was given, whatever its value, null included."""
        return "active" in self.model_fields_set

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k == "active"}


class LookupQuestion(BaseModel):
    """A question addressed to a lookup service."""

    model_config = ConfigDict(frozen=True)

    service: str = LOOKUP_SERVICE
    query: LookupQuery

    @classmethod
    def find_all(cls, *, service: str = LOOKUP_SERVICE) -> LookupQuestion:
        return cls(service=service, query=LookupQuery(find_all=True))

    @classmethod
    def active_events(
        cls,
        program_id: str | None = None,
        event_type: str | None = None,
        *,
        service: str = LOOKUP_SERVICE,
    ) -> LookupQuestion:
        return cls(
            service=service,
            query=LookupQuery(active=True, program_id=program_id, event_type=event_type),
        )

    @classmethod
    def parse(cls, data: Any) -> LookupQuestion:
        """Validate a raw question.

        Raises:
            UnsupportedQueryError: If data is not a well-formed question.
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            service = data.get("service") if isinstance(data, dict) else None
            raise UnsupportedQueryError(
                f"Malformed lookup question: {e.error_count()} validation error(s)",
                service=service,
                query=data,
            ) from e

    def to_dict(self) -> dict[str, Any]:
        return {"service": self.service, "query": self.query.to_dict()}
