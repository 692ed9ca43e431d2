"""VENClient - polls for active events, dispatches them, and reports back.

Lifecycle:

    UNINITIALIZED --initialize()--> REGISTERING --registered--> POLLING
          |                              |                          |
          +---------stop()---------------+----failure / stop()------+--> TERMINATED

Each tick asks the lookup resolver for active events of the subscribed
program, resolves and decodes every new key, and dispatches it by payload
variant. Reports go to the VTN first and onto the ledger second; a report
that only made it through the first phase is kept for reconcile().
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import uuid4
import weakref

from cachetools import LRUCache
import structlog

from openadr_overlay.config.models import DEFAULT_POLL_INTERVAL_SECONDS, VENConfig
from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.models import EventFields
from openadr_overlay.contract.payload import (
    EventPayload,
    PricePayload,
    SimplePayload,
    UnknownPayload,
    append_report,
    decode_payload,
)
from openadr_overlay.core.errors import (
    DecodeError,
    EventClosedError,
    LedgerError,
    OpenADRError,
    ReportNotAppliedError,
    ReportSubmissionError,
    ValidationError,
    VTNError,
)
from openadr_overlay.core.types import Clock, EventKey, Result, unix_now
from openadr_overlay.events.base import BaseEvent
from openadr_overlay.events.reports import (
    report_abandoned,
    report_applied,
    report_apply_failed,
    report_submitted,
)
from openadr_overlay.ledger.protocols import LedgerClient
from openadr_overlay.overlay.queries import LOOKUP_SERVICE, LookupQuestion
from openadr_overlay.overlay.resolver import LookupResolver
from openadr_overlay.ven.recency import RecentEvents
from openadr_overlay.ven.reports import LOAD_REDUCTION, PRICE, SIMPLE_LEVEL, Report
from openadr_overlay.ven.vtn_client import VTNClient

if TYPE_CHECKING:
    from openadr_overlay.persistence.journal import ReportJournal

log = structlog.get_logger(__name__)

# Publish attempts per report when other VENs keep moving the chain tip
PUBLISH_ATTEMPTS = 3


class VENState(StrEnum):
    UNINITIALIZED = "uninitialized"
    REGISTERING = "registering"
    POLLING = "polling"
    TERMINATED = "terminated"


@dataclass(frozen=True, slots=True)
class OpenADREvent:
    """An active event as the VEN sees it.

    Attributes:
        key: Output the event was read from.
        fields: Decoded contract state.
        payload: Payload parsed into its variant.
    """

    key: EventKey
    fields: EventFields
    payload: EventPayload

    @property
    def event_type(self) -> str:
        return self.fields.event_type

    @property
    def program_id(self) -> str:
        return self.fields.program_id


@dataclass(frozen=True, slots=True)
class ReportReceipt:
    """Outcome of a report that reached both the VTN and the ledger.

    Attributes:
        report: The report as sent.
        successor: Output carrying the updated report log, or None when the
            log already held an equivalent entry and nothing was published.
    """

    report: Report
    successor: EventKey | None


ReportResult = Result[ReportReceipt, ReportSubmissionError | ReportNotAppliedError]


class VENClient:
    """Polling consumer of OpenADR events for one VEN and one program.

    Usage:
        ven = VENClient(
            ven_id="VEN-1",
            program_id="residential-demand-response",
            vtn=vtn_client,
            resolver=resolver,
            ledger=ledger,
            codec=codec,
        )
        await ven.initialize()
        ...
        await ven.stop()
    """

    def __init__(
        self,
        *,
        ven_id: str,
        program_id: str,
        vtn: VTNClient,
        resolver: LookupResolver,
        ledger: LedgerClient,
        codec: ContractCodec,
        journal: ReportJournal | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        dedup_max_entries: int = 4096,
        bucket_seconds: int = 60,
        service: str = LOOKUP_SERVICE,
        clock: Clock = unix_now,
    ) -> None:
        self.ven_id = ven_id
        self.program_id = program_id
        self._service = service
        self._vtn = vtn
        self._resolver = resolver
        self._ledger = ledger
        self._codec = codec
        self._journal = journal
        self._poll_interval = poll_interval
        self._bucket_seconds = bucket_seconds
        self._clock = clock

        self._state = VENState.UNINITIALIZED
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._tick_in_flight = False

        self._recent = RecentEvents(dedup_max_entries, clock=clock)
        # Original event key -> newest output carrying its report log
        self._successors: LRUCache[EventKey, EventKey] = LRUCache(maxsize=dedup_max_entries)
        self._event_locks: weakref.WeakValueDictionary[EventKey, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self.pending_reconciliation: list[Report] = []

    @classmethod
    def from_config(
        cls,
        config: VENConfig,
        *,
        vtn: VTNClient,
        resolver: LookupResolver,
        ledger: LedgerClient,
        codec: ContractCodec,
        journal: ReportJournal | None = None,
        service: str = LOOKUP_SERVICE,
        clock: Clock = unix_now,
    ) -> VENClient:
        return cls(
            ven_id=config.ven_id,
            program_id=config.program_id,
            vtn=vtn,
            resolver=resolver,
            ledger=ledger,
            codec=codec,
            journal=journal,
            poll_interval=config.poll_interval_seconds,
            dedup_max_entries=config.dedup_max_entries,
            bucket_seconds=config.report_timestamp_bucket_seconds,
            service=service,
            clock=clock,
        )

    @property
    def state(self) -> VENState:
        return self._state

    async def initialize(self) -> None:
        """Register with the VTN and start polling.

        Raises:
            RuntimeError: If the client was already initialized or stopped.
            RegistrationError: If registration fails. The client is then
                TERMINATED and no poll loop is started.
        """
        if self._state is not VENState.UNINITIALIZED:
            msg = f"initialize() called in state {self._state.value}"
            raise RuntimeError(msg)

        self._state = VENState.REGISTERING
        try:
            await self._vtn.register(self.ven_id, self.program_id)
        except VTNError as e:
            self._state = VENState.TERMINATED
            log.error("ven.registration.failed", ven_id=self.ven_id, error=e.message)
            raise

        if self._stop_event.is_set():
            # stop() arrived while registering
            self._state = VENState.TERMINATED
            return

        if self._journal is not None:
            for report in await self._journal.pending():
                self._add_pending(report)

        self._state = VENState.POLLING
        self._task = asyncio.create_task(self._run())
        log.info(
            "ven.initialized",
            ven_id=self.ven_id,
            program_id=self.program_id,
            poll_interval=self._poll_interval,
            pending_reports=len(self.pending_reconciliation),
        )

    async def stop(self) -> None:
        """Stop polling. Waits for an in-flight tick; safe to call repeatedly."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        if self._state is not VENState.TERMINATED:
            self._state = VENState.TERMINATED
            log.info("ven.stopped", ven_id=self.ven_id)

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                log.error("ven.poll.failed", ven_id=self.ven_id, error=str(e))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
            except TimeoutError:
                continue

    async def poll_once(self) -> int:
        """Run one poll tick.

        Skipped when a previous tick is still running. A key that cannot be
        resolved or decoded is logged and skipped; lookup errors abandon the
        tick and propagate.

        Returns:
            Number of events dispatched.
        """
        if self._tick_in_flight:
            log.debug("ven.poll.skipped", ven_id=self.ven_id, reason="tick in flight")
            return 0
        self._tick_in_flight = True
        try:
            return await self._poll()
        finally:
            self._tick_in_flight = False

    async def _poll(self) -> int:
        keys = await self._resolver.query(
            LookupQuestion.active_events(program_id=self.program_id, service=self._service)
        )
        dispatched = 0
        for key in keys:
            if key in self._recent:
                continue
            try:
                event = await self._resolve_event(key)
            except (LedgerError, DecodeError) as e:
                # Left out of the recency cache so a later tick retries it
                log.warning("ven.event.resolve_failed", key=str(key), error=e.message)
                continue
            if self._already_reported(event):
                log.debug("ven.event.already_reported", key=str(key))
            else:
                await self.dispatch(event)
                dispatched += 1
            self._recent.add(key, event.fields.end_time)
        return dispatched

    async def _resolve_event(self, key: EventKey) -> OpenADREvent:
        output = await self._ledger.get_output(key)
        fields = self._codec.decode(output.locking_script)
        return OpenADREvent(
            key=key,
            fields=fields,
            payload=decode_payload(fields.event_type, fields.payload),
        )

    def _already_reported(self, event: OpenADREvent) -> bool:
        return any(entry.ven_id == self.ven_id for entry in event.payload.reports)

    async def dispatch(self, event: OpenADREvent) -> None:
        """Route an event to the handler for its payload variant."""
        log.info(
            "ven.event.dispatched",
            key=str(event.key),
            event_type=event.event_type,
            program_id=event.program_id,
        )
        match event.payload:
            case SimplePayload():
                result = await self.handle_simple_event(event, event.payload)
            case PricePayload():
                result = await self.handle_price_event(event, event.payload)
            case UnknownPayload():
                log.info(
                    "ven.event.unhandled",
                    key=str(event.key),
                    event_type=event.event_type,
                )
                return
        if result.is_err:
            log.warning("ven.event.report_failed", key=str(event.key), error=str(result.error))

    async def handle_simple_event(
        self, event: OpenADREvent, payload: SimplePayload
    ) -> ReportResult:
        log.info("ven.event.simple", key=str(event.key), level=payload.level)
        return await self.send_event_report(event.key, SIMPLE_LEVEL, str(payload.level))

    async def handle_price_event(self, event: OpenADREvent, payload: PricePayload) -> ReportResult:
        log.info("ven.event.price", key=str(event.key), price=payload.price)
        return await self.send_event_report(event.key, PRICE, str(payload.price))

    async def send_event_report(
        self,
        event_key: EventKey,
        report_type: str,
        report_value: str,
        *,
        report_id: str | None = None,
    ) -> ReportResult:
        """Report on an event to the VTN, then record it in the event's report log.

        Retrying with the same report_id is safe: the VTN sees the same
        Idempotency-Key and the report log is not appended twice.

        Returns:
            Ok(ReportReceipt) when both phases succeed.
            Err(ReportSubmissionError) when the VTN did not accept the
                report; nothing else happened.
            Err(ReportNotAppliedError) when the VTN accepted the report but
                it could not be written on-chain. The report is queued in
                pending_reconciliation when the error is retryable, and
                dropped when the event is closed or its state is malformed.
        """
        report = Report(
            event_key=event_key,
            report_type=report_type,
            report_value=report_value,
            ven_id=self.ven_id,
            timestamp=self._clock(),
            report_id=report_id or uuid4().hex,
        )

        try:
            await self._vtn.submit_report(report, self.program_id)
        except ReportSubmissionError as e:
            return Result.err(e)
        await self._journal_append(report_submitted(report))

        return await self._apply(report)

    async def submit_load_reduction_report(
        self, event_key: EventKey, percentage: float, *, report_id: str | None = None
    ) -> ReportResult:
        return await self.send_event_report(
            event_key, LOAD_REDUCTION, str(percentage), report_id=report_id
        )

    async def reconcile(self) -> list[ReportReceipt]:
        """Retry on-chain application of every pending report.

        Reports that apply, or that can never apply, are removed from
        pending_reconciliation; the rest stay queued.

        Returns:
            Receipts of the reports applied by this call.
        """
        receipts: list[ReportReceipt] = []
        for report in list(self.pending_reconciliation):
            result = await self._apply(report)
            if result.is_ok:
                receipts.append(result.value)
        if receipts:
            log.info(
                "ven.reconcile.completed",
                applied=len(receipts),
                pending=len(self.pending_reconciliation),
            )
        return receipts

    async def _apply(self, report: Report) -> Result[ReportReceipt, ReportNotAppliedError]:
        try:
            successor = await self._apply_on_chain(report)
        except (EventClosedError, DecodeError, ValidationError) as e:
            log.error(
                "ven.report.abandoned",
                key=str(report.event_key),
                report_id=report.report_id,
                error=e.message,
            )
            self._drop_pending(report)
            await self._journal_append(report_abandoned(report, e.message))
            return Result.err(self._not_applied(report, e, retryable=False))
        except LedgerError as e:
            log.error(
                "ven.report.not_applied",
                key=str(report.event_key),
                report_id=report.report_id,
                error=e.message,
            )
            self._add_pending(report)
            await self._journal_append(report_apply_failed(report, e.message))
            return Result.err(self._not_applied(report, e, retryable=True))

        self._drop_pending(report)
        await self._journal_append(report_applied(report, successor))
        return Result.ok(ReportReceipt(report=report, successor=successor))

    @staticmethod
    def _not_applied(
        report: Report, cause: OpenADRError, *, retryable: bool
    ) -> ReportNotAppliedError:
        return ReportNotAppliedError(
            f"Report accepted by the VTN but not applied on-chain: {cause.message}",
            report=report,
            retryable=retryable,
            details={"cause": type(cause).__name__},
        )

    async def _apply_on_chain(self, report: Report) -> EventKey | None:
        """Append report to the newest report log of its event.

        Other VENs extend the same chain, so the newest output is found by
        following spends from the last output this client knows about.

        Returns:
            Key of the published successor, or None if the log already held
            an equivalent entry.

        Raises:
            EventClosedError: If the event's output was spent without a
                continuation.
        """
        origin = report.event_key
        lock = self._event_locks.get(origin)
        if lock is None:
            lock = asyncio.Lock()
            self._event_locks[origin] = lock

        async with lock:
            current = self._successors.get(origin, origin)
            attempt = 1
            while True:
                current, fields = await self._chain_tip(current)
                updated = append_report(
                    fields.payload, report.to_entry(), bucket_seconds=self._bucket_seconds
                )
                if updated is None:
                    self._successors[origin] = current
                    log.info(
                        "ven.report.already_applied", key=str(current), report_id=report.report_id
                    )
                    return None

                new_fields = fields.with_payload(updated)
                try:
                    successor = await self._ledger.publish_successor(
                        current, self._codec.encode(new_fields)
                    )
                except LedgerError:
                    # Another VEN may have extended the chain since the tip was read
                    raced = await self._ledger.spending_transaction(current) is not None
                    if not raced or attempt >= PUBLISH_ATTEMPTS:
                        raise
                    log.info("ven.report.tip_moved", key=str(current), attempt=attempt)
                    attempt += 1
                    continue

                self._successors[origin] = successor
                self._recent.add(successor, new_fields.end_time)
                log.info(
                    "ven.report.applied",
                    key=str(current),
                    successor=str(successor),
                    report_id=report.report_id,
                )
                return successor

    async def _chain_tip(self, key: EventKey) -> tuple[EventKey, EventFields]:
        """Follow spends from key to the unspent output carrying the same event."""
        fields = self._codec.decode((await self._ledger.get_output(key)).locking_script)
        while (spender := await self._ledger.spending_transaction(key)) is not None:
            for index, output in enumerate(spender.outputs):
                decoded = self._codec.try_decode(output.locking_script)
                if decoded.is_ok and decoded.value.same_event(fields):
                    key, fields = EventKey(spender.txid, index), decoded.value
                    break
            else:
                raise EventClosedError(
                    "Event output was spent without a continuation", key=str(key)
                )
        return key, fields

    def _add_pending(self, report: Report) -> None:
        if all(p.report_id != report.report_id for p in self.pending_reconciliation):
            self.pending_reconciliation.append(report)

    def _drop_pending(self, report: Report) -> None:
        self.pending_reconciliation = [
            p for p in self.pending_reconciliation if p.report_id != report.report_id
        ]

    async def _journal_append(self, event: BaseEvent) -> None:
        if self._journal is None:
            return
        try:
            await self._journal.append(event)
        except OpenADRError as e:
            log.warning("ven.journal.append_failed", event_type=event.type, error=e.message)

    def latest_output(self, event_key: EventKey) -> EventKey:
        """Newest output known to carry event_key's report log."""
        return self._successors.get(event_key, event_key)

    @property
    def recent_events(self) -> RecentEvents:
        return self._recent
