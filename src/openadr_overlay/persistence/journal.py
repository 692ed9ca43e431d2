"""ReportJournal - append-only log of VEN report activity.

Provides async append and replay over the journal table using SQLAlchemy
Core with an aiosqlite backend. pending() replays the log to find reports
the VTN accepted that never reached contract state.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from openadr_overlay.core.errors import PersistenceError
from openadr_overlay.events.base import BaseEvent
from openadr_overlay.events.reports import REPORT_ABANDONED, REPORT_APPLIED, REPORT_SUBMITTED
from openadr_overlay.persistence.schema import journal_table, metadata
from openadr_overlay.ven.reports import Report


class ReportJournal:
    """Journal for persisting and replaying report events.

    Usage:
        journal = ReportJournal("sqlite+aiosqlite:///journal.db")
        await journal.initialize()

        await journal.append(report_submitted(report))
        stuck = await journal.pending()

        await journal.close()
    """

    def __init__(self, database_url: str | None = None) -> None:
        if database_url is None:
            db_path = Path.home() / ".openadr" / "journal.db"
            db_path.parent.mkdir(parents=True, exist_ok=True)
            database_url = f"sqlite+aiosqlite:///{db_path}"
        self._database_url = database_url
        self._engine: AsyncEngine | None = None

    async def initialize(self) -> None:
        """Connect and create tables if needed. Safe to call repeatedly."""
        if self._engine is None:
            self._engine = create_async_engine(self._database_url, echo=False)
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def append(self, event: BaseEvent) -> None:
        """Append one event.

        Raises:
            PersistenceError: If the insert fails.
        """
        if self._engine is None:
            raise PersistenceError(
                "ReportJournal not initialized. Call initialize() first.",
                operation="append",
            )
        try:
            async with self._engine.begin() as conn:
                await conn.execute(journal_table.insert().values(**event.to_db_dict()))
        except Exception as e:
            raise PersistenceError(
                f"Failed to append journal event: {e}",
                operation="insert",
                table="journal",
                details={"event_id": event.id, "event_type": event.type},
            ) from e

    async def replay(self, aggregate_type: str, aggregate_id: str | None = None) -> list[BaseEvent]:
        """Return events for an aggregate type, optionally one aggregate, in order.

        Raises:
            PersistenceError: If the query fails.
        """
        if self._engine is None:
            raise PersistenceError(
                "ReportJournal not initialized. Call initialize() first.",
                operation="replay",
            )
        query = select(journal_table).where(journal_table.c.aggregate_type == aggregate_type)
        if aggregate_id is not None:
            query = query.where(journal_table.c.aggregate_id == aggregate_id)
        # timestamp + id keeps replay deterministic at equal timestamps
        query = query.order_by(journal_table.c.timestamp, journal_table.c.id)
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(query)
                rows = result.mappings().all()
        except Exception as e:
            raise PersistenceError(
                f"Failed to replay journal: {e}",
                operation="select",
                table="journal",
                details={"aggregate_type": aggregate_type, "aggregate_id": aggregate_id},
            ) from e
        return [BaseEvent.from_db_row(dict(row)) for row in rows]

    async def pending(self) -> list[Report]:
        """Reports submitted to the VTN that were neither applied nor abandoned."""
        submitted: dict[str, Report] = {}
        settled: set[str] = set()
        for event in await self.replay("report"):
            if event.type == REPORT_SUBMITTED:
                submitted.setdefault(event.aggregate_id, Report.from_dict(event.data))
            elif event.type in (REPORT_APPLIED, REPORT_ABANDONED):
                settled.add(event.aggregate_id)
        return [report for report_id, report in submitted.items() if report_id not in settled]

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
