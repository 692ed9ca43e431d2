"""LookupResolver protocol and the in-process resolver."""

from __future__ import annotations

from typing import Protocol

from openadr_overlay.core.types import EventKey
from openadr_overlay.overlay.lookup_service import OpenADRLookupService
from openadr_overlay.overlay.queries import LookupQuestion


class LookupResolver(Protocol):
    """Sends lookup questions to wherever the lookup service lives."""

    async def query(self, question: LookupQuestion) -> list[EventKey]:
        ...


class LocalLookupResolver:
    """Resolver that calls an OpenADRLookupService in the same process."""

    def __init__(self, service: OpenADRLookupService) -> None:
        self._service = service

    async def query(self, question: LookupQuestion) -> list[EventKey]:
        return await self._service.lookup(question)
