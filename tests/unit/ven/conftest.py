"""Fixtures for VEN tests: a scripted VTN and an in-memory overlay."""

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
import itertools
import json
from typing import Any

import httpx
import pytest

from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.memory import InMemoryLedger
from openadr_overlay.overlay.engine import OverlayEngine
from openadr_overlay.overlay.lookup_service import OpenADRLookupService
from openadr_overlay.overlay.topic_manager import OpenADRTopicManager
from openadr_overlay.ven.vtn_client import VTNClient

NOW = 1500
VTN_URL = "http://vtn.test"


@dataclass
class ScriptedVTN:
    """Answers each path from a queue of status codes, 201 once exhausted."""

    statuses: dict[str, list[int]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.statuses.get(request.url.path)
        status = queue.pop(0) if queue else 201
        return httpx.Response(status, json={"status": status})

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


@pytest.fixture
def scripted_vtn() -> ScriptedVTN:
    return ScriptedVTN()


@pytest.fixture
async def vtn(scripted_vtn: ScriptedVTN) -> AsyncIterator[VTNClient]:
    """VTNClient bound to the scripted VTN, retrying without waits."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(scripted_vtn.handler))
    yield VTNClient(
        VTN_URL,
        client=client,
        max_retries=3,
        retry_wait_initial=0,
        retry_wait_max=0,
        retry_wait_jitter=0,
    )
    await client.aclose()


@pytest.fixture
def ledger() -> InMemoryLedger:
    return InMemoryLedger()


@pytest.fixture
def lookup_service(event_store, codec, ledger) -> OpenADRLookupService:
    """Lookup service fed by an overlay engine that follows the ledger."""
    service = OpenADRLookupService(event_store, codec, clock=lambda: NOW)
    OverlayEngine(OpenADRTopicManager(codec), service).attach(ledger)
    return service


@pytest.fixture
def publish_event(ledger, make_fields, make_event_tx) -> Callable[..., Any]:
    """Submit a single-output event transaction; returns its EventKey."""
    counter = itertools.count()

    async def _publish(**field_overrides: Any):
        tx = make_event_tx(make_fields(**field_overrides), funding_index=next(counter))
        return EventKey(await ledger.submit(tx), 0)

    return _publish
