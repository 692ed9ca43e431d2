"""Shared fixtures for OpenADR overlay unit tests."""

from collections.abc import Callable
from typing import Any

import pytest

from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.models import EventFields
from openadr_overlay.contract.payload import encode_payload
from openadr_overlay.contract.schema import ContractSchema
from openadr_overlay.ledger.transaction import Transaction, TransactionInput, TransactionOutput
from openadr_overlay.persistence.event_store import EventStore

PROGRAM = "residential-demand-response"
FUNDING_TXID = "ab" * 32


@pytest.fixture
def codec() -> ContractCodec:
    return ContractCodec(ContractSchema.default())


@pytest.fixture
def make_fields() -> Callable[..., EventFields]:
    """Factory for EventFields with SIMPLE defaults."""

    def _make(
        event_type: str = "SIMPLE",
        program_id: str = PROGRAM,
        start_time: int = 1000,
        duration: int = 3600,
        payload: dict[str, Any] | bytes | None = None,
    ) -> EventFields:
        if payload is None:
            payload = {"level": 2}
        raw = payload if isinstance(payload, bytes) else encode_payload(payload)
        return EventFields(
            event_type=event_type,
            program_id=program_id,
            start_time=start_time,
            duration=duration,
            payload=raw,
        )

    return _make


@pytest.fixture
def make_event_tx(codec: ContractCodec) -> Callable[..., Transaction]:
    """Factory for a transaction whose outputs carry the given fields.

    Plain bytes in `outputs` are used as locking scripts unchanged.
    """

    def _make(*outputs: EventFields | bytes, funding_index: int = 0) -> Transaction:
        return Transaction(
            inputs=(TransactionInput(prev_txid=FUNDING_TXID, prev_index=funding_index),),
            outputs=tuple(
                TransactionOutput(
                    satoshis=1000,
                    locking_script=out if isinstance(out, bytes) else codec.encode(out),
                )
                for out in outputs
            ),
        )

    return _make


@pytest.fixture
async def event_store(tmp_path):
    """EventStore backed by a temporary SQLite file."""
    store = EventStore(f"sqlite+aiosqlite:///{tmp_path / 'events.db'}")
    await store.initialize()
    yield store
    await store.close()
