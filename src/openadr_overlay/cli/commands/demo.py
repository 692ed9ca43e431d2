"""Demo command.

Runs the whole pipeline in one process: a SIMPLE event is published to an
in-memory ledger, admitted and indexed by the overlay, picked up by a VEN,
and reported to a stub VTN and back onto the ledger.
"""

import asyncio
from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Annotated

import httpx
import typer

from openadr_overlay.cli.formatters import console
from openadr_overlay.cli.formatters.panels import print_success
from openadr_overlay.cli.formatters.tables import (
    create_events_table,
    create_reports_table,
    print_table,
)
from openadr_overlay.cli.wiring import load_cli_config
from openadr_overlay.config import OverlayConfig
from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.models import EventFields, EventType
from openadr_overlay.contract.payload import ReportEntry, encode_payload, report_log
from openadr_overlay.contract.schema import ContractSchema
from openadr_overlay.core.types import EventKey, unix_now
from openadr_overlay.ledger.memory import InMemoryLedger
from openadr_overlay.ledger.transaction import Transaction, TransactionInput, TransactionOutput
from openadr_overlay.observability import configure_logging, set_console_logging
from openadr_overlay.overlay.engine import OverlayEngine
from openadr_overlay.overlay.lookup_service import OpenADRLookupService
from openadr_overlay.overlay.resolver import LocalLookupResolver
from openadr_overlay.overlay.topic_manager import OpenADRTopicManager
from openadr_overlay.persistence.event_store import EventRecord, EventStore
from openadr_overlay.ven.client import VENClient
from openadr_overlay.ven.vtn_client import VTNClient

DEMO_PROGRAM = "residential-demand-response"
DEMO_VTN_URL = "http://vtn.demo"
FUNDING_TXID = "0" * 64
EVENT_SATOSHIS = 1000


@dataclass
class DemoOutcome:
    """What the scenario produced."""

    event_key: EventKey
    latest_key: EventKey
    dispatched: int
    records: list[EventRecord]
    reports: tuple[ReportEntry, ...]
    vtn_requests: list[tuple[str, str]] = field(default_factory=list)


def _stub_vtn(requests: list[tuple[str, str]]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.method, request.url.path))
        body = json.loads(request.content or b"{}")
        return httpx.Response(201, json={"id": f"{request.url.path.strip('/')}-1", **body})

    return httpx.MockTransport(handler)


async def run_demo(
    *,
    level: int = 2,
    duration: int = 3600,
    program_id: str = DEMO_PROGRAM,
    ven_id: str = "VEN-DEMO",
    database_url: str = "sqlite+aiosqlite:///:memory:",
    overlay: OverlayConfig | None = None,
) -> DemoOutcome:
    """Publish one SIMPLE event and let a VEN respond to it."""
    overlay = overlay or OverlayConfig()
    codec = ContractCodec(ContractSchema.default())
    store = EventStore(database_url)
    await store.initialize()

    ledger = InMemoryLedger()
    lookup_service = OpenADRLookupService(
        store, codec, topic=overlay.topic, service=overlay.service
    )
    topic_manager = OpenADRTopicManager(codec, topic=overlay.topic)
    OverlayEngine(topic_manager, lookup_service).attach(ledger)

    fields = EventFields(
        event_type=EventType.SIMPLE,
        program_id=program_id,
        start_time=unix_now(),
        duration=duration,
        payload=encode_payload({"level": level}),
    )
    event_tx = Transaction(
        inputs=(TransactionInput(prev_txid=FUNDING_TXID, prev_index=0),),
        outputs=(TransactionOutput(satoshis=EVENT_SATOSHIS, locking_script=codec.encode(fields)),),
    )
    event_key = EventKey(await ledger.submit(event_tx), 0)

    requests: list[tuple[str, str]] = []
    http_client = httpx.AsyncClient(transport=_stub_vtn(requests))
    ven = VENClient(
        ven_id=ven_id,
        program_id=program_id,
        vtn=VTNClient(DEMO_VTN_URL, client=http_client),
        resolver=LocalLookupResolver(lookup_service),
        ledger=ledger,
        codec=codec,
        poll_interval=3600,
        service=overlay.service,
    )
    try:
        await ven.initialize()
        dispatched = await ven.poll_once()
    finally:
        await ven.stop()
        await http_client.aclose()

    latest_key = ven.latest_output(event_key)
    latest = await ledger.get_output(latest_key)
    records = await store.list_records()
    await store.close()

    return DemoOutcome(
        event_key=event_key,
        latest_key=latest_key,
        dispatched=dispatched,
        records=records,
        reports=report_log(codec.decode(latest.locking_script).payload),
        vtn_requests=requests,
    )


def demo(
    level: Annotated[int, typer.Option("--level", "-l", help="SIMPLE event level.")] = 2,
    duration: Annotated[
        int, typer.Option("--duration", "-d", help="Event duration in seconds.", min=1)
    ] = 3600,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show log output.")] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml (overlay names)."),
    ] = None,
) -> None:
    """Create a SIMPLE event, index it, and let a VEN report on it."""
    config = load_cli_config(config_path)
    configure_logging()
    set_console_logging(verbose)

    outcome = asyncio.run(run_demo(level=level, duration=duration, overlay=config.overlay))

    console.print(f"[highlight]Event[/] {outcome.event_key}")
    for method, path in outcome.vtn_requests:
        console.print(f"  [muted]VTN {method} {path}[/]")
    print_table(create_events_table(outcome.records, title="Event index"))
    print_table(create_reports_table(outcome.reports, title=f"Report log of {outcome.latest_key}"))
    print_success(f"Dispatched {outcome.dispatched} event(s)", title="Demo complete")


__all__ = ["demo", "run_demo", "DemoOutcome"]
