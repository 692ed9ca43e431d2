"""Lookup service - ledger callbacks in, event keys out.

The overlay host calls output_added / output_spent / output_deleted as
outputs enter and leave the topic; consumers call lookup(). Only the
tm_openADR topic is handled, every other topic is ignored.
"""

from __future__ import annotations

from typing import Any

import structlog

from openadr_overlay import __version__
from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.core.errors import DecodeError, UnsupportedQueryError
from openadr_overlay.core.types import Clock, EventKey, EventStatus, unix_now
from openadr_overlay.overlay.queries import LOOKUP_SERVICE, LookupQuestion
from openadr_overlay.overlay.topic_manager import TOPIC
from openadr_overlay.persistence.event_store import EventRecord, EventStore

log = structlog.get_logger(__name__)


class OpenADRLookupService:
    """Indexes admitted outputs into an EventStore and answers queries.

    Usage:
        service = OpenADRLookupService(store, codec)
        await service.output_added(txid, 0, script, "tm_openADR")
        keys = await service.lookup({"service": "ls_openADR", "query": {"active": True}})
    """

    def __init__(
        self,
        store: EventStore,
        codec: ContractCodec,
        *,
        topic: str = TOPIC,
        service: str = LOOKUP_SERVICE,
        clock: Clock = unix_now,
    ) -> None:
        self._store = store
        self._codec = codec
        self._clock = clock
        self.topic = topic
        self.service = service

    async def output_added(
        self, txid: str, output_index: int, output_script: bytes, topic: str
    ) -> None:
        """Index an output the topic manager admitted.

        Scripts that fail to decode are logged and skipped.
        """
        if topic != self.topic:
            return
        try:
            fields = self._codec.decode(output_script)
        except DecodeError as e:
            log.warning(
                "lookup.output.decode_failed",
                txid=txid,
                output_index=output_index,
                reason=e.message,
            )
            return

        key = _event_key(txid, output_index)
        if key is None:
            return
        inserted = await self._store.insert(EventRecord(key=key, fields=fields))
        if inserted:
            log.info(
                "lookup.output.indexed",
                key=str(key),
                event_type=fields.event_type,
                program_id=fields.program_id,
            )

    async def output_spent(self, txid: str, output_index: int, topic: str) -> None:
        if topic != self.topic:
            return
        key = _event_key(txid, output_index)
        if key is not None:
            await self._mark(key, EventStatus.SPENT)

    async def output_deleted(self, txid: str, output_index: int, topic: str) -> None:
        if topic != self.topic:
            return
        key = _event_key(txid, output_index)
        if key is not None:
            await self._mark(key, EventStatus.DELETED)

    async def _mark(self, key: EventKey, status: EventStatus) -> None:
        changed = await self._store.set_status(key, status)
        if changed:
            log.info("lookup.output.status_changed", key=str(key), status=status.value)

    async def lookup(self, question: LookupQuestion | dict[str, Any]) -> list[EventKey]:
        """Answer a lookup question.

        findAll returns every indexed key. A query with "active" present
        returns keys active now, narrowed by programID and eventType when
        given.

        Raises:
            UnsupportedQueryError: For other services or query shapes.
        """
        parsed = LookupQuestion.parse(question)
        if parsed.service != self.service:
            raise UnsupportedQueryError(
                f"Lookup service not supported: {parsed.service}",
                service=parsed.service,
                query=parsed.query.to_dict(),
            )

        query = parsed.query
        if query.find_all:
            return await self._store.list_all()
        if query.wants_active:
            return await self._store.list_active(
                self._clock(),
                program_id=query.program_id,
                event_type=query.event_type,
            )
        raise UnsupportedQueryError(
            "Unsupported query", service=parsed.service, query=query.to_dict()
        )

    def get_documentation(self) -> str:
        return (
            "# OpenADR Lookup Service\n\n"
            "Send questions to `ls_openADR` with one of:\n"
            "- `{\"findAll\": true}`: every indexed OpenADR event\n"
            "- `{\"active\": true, \"programID\": ..., \"eventType\": ...}`: events\n"
            "  whose window contains the current time and that are not spent;\n"
            "  programID and eventType are optional filters\n\n"
            "Answers are lists of `{txid, outputIndex}`.\n"
        )

    def get_metadata(self) -> dict[str, str]:
        return {
            "name": "OpenADR Lookup Service",
            "short_description": "Query demand response events on the ledger",
            "version": __version__,
        }


def _event_key(txid: str, output_index: int) -> EventKey | None:
    # Hosts may hand over upper-case txids
    try:
        return EventKey(txid.lower(), output_index)
    except ValueError as e:
        log.warning(
            "lookup.output.invalid_key", txid=txid, output_index=output_index, reason=str(e)
        )
        return None
