"""EventStore - keyed index of admitted OpenADR event outputs.

Uses SQLAlchemy Core with an aiosqlite backend. Every operation addresses
a record by its (txid, output_index) key and is safe to repeat: inserting
an existing key and updating an unknown key are both no-ops, which lets
ledger callbacks be replayed without locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from sqlalchemy import and_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
import structlog

from openadr_overlay.contract.models import EventFields
from openadr_overlay.core.errors import PersistenceError, ValidationError
from openadr_overlay.core.types import EventKey, EventStatus, UnixSeconds
from openadr_overlay.persistence.schema import metadata, openadr_events_table

log = structlog.get_logger(__name__)

_TABLE = "openadr_events"


@dataclass(frozen=True, slots=True)
class EventRecord:
    """One indexed event output.

    Attributes:
        key: (txid, output_index) identity.
        fields: Decoded contract state at admission time.
        status: Lifecycle status; never returns to ACTIVE once left.
        created_at: When the record was indexed.
    """

    key: EventKey
    fields: EventFields
    status: EventStatus = EventStatus.ACTIVE
    created_at: datetime | None = None

    def is_active_at(self, now: UnixSeconds) -> bool:
        """Status is ACTIVE and now falls inside the event window."""
        return self.status is EventStatus.ACTIVE and self.fields.is_within_window(now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "txid": self.key.txid,
            "output_index": self.key.output_index,
            "event_type": self.fields.event_type,
            "program_id": self.fields.program_id,
            "start_time": self.fields.start_time,
            "duration": self.fields.duration,
            "payload": self.fields.payload,
            "status": self.status.value,
            "created_at": self.created_at or datetime.now(UTC),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> EventRecord:
        return cls(
            key=EventKey(row["txid"], row["output_index"]),
            fields=EventFields(
                event_type=row["event_type"],
                program_id=row["program_id"],
                start_time=row["start_time"],
                duration=row["duration"],
                payload=row["payload"],
            ),
            status=EventStatus(row["status"]),
            created_at=row["created_at"],
        )


class EventStore:
    """Persistent index of event records.

    Usage:
        store = EventStore("sqlite+aiosqlite:///events.db")
        await store.initialize()

        await store.insert(EventRecord(key, fields))
        await store.set_status(key, EventStatus.SPENT)
        keys = await store.list_active(now)

        await store.close()
    """

    def __init__(self, database_url: str | None = None) -> None:
        """Initialize EventStore with a database URL.

        Args:
            database_url: SQLAlchemy async database URL. Defaults to
                sqlite+aiosqlite:///~/.openadr/openadr.db
        """
        if database_url is None:
            db_path = Path.home() / ".openadr" / "openadr.db"
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

    def _require_engine(self, operation: str) -> AsyncEngine:
        if self._engine is None:
            raise PersistenceError(
                "EventStore not initialized. Call initialize() first.",
                operation=operation,
            )
        return self._engine

    async def insert(self, record: EventRecord) -> bool:
        """Index a newly admitted event.

        Inserting a key that already exists changes nothing.

        Returns:
            True if a row was written, False if the key was already indexed.

        Raises:
            ValidationError: If the record is not ACTIVE.
            PersistenceError: If the database operation fails.
        """
        if record.status is not EventStatus.ACTIVE:
            raise ValidationError(
                "Only active records can be inserted", field="status", value=record.status
            )
        engine = self._require_engine("insert")
        key = record.key
        try:
            async with engine.begin() as conn:
                existing = await conn.execute(
                    select(openadr_events_table.c.id).where(_key_clause(key))
                )
                if existing.first() is not None:
                    log.debug("store.event.insert_skipped", key=str(key))
                    return False
                await conn.execute(openadr_events_table.insert().values(**record.to_db_dict()))
        except IntegrityError:
            # A concurrent insert won the unique constraint
            log.debug("store.event.insert_skipped", key=str(key))
            return False
        except Exception as e:
            raise PersistenceError(
                f"Failed to insert event: {e}",
                operation="insert",
                table=_TABLE,
                details={"key": str(key)},
            ) from e
        return True

    async def set_status(self, key: EventKey, status: EventStatus) -> bool:
        """Move an active record to SPENT or DELETED.

        Unknown keys and records that already left ACTIVE are left alone.

        Returns:
            True if a record changed status.

        Raises:
            ValidationError: If status is ACTIVE.
            PersistenceError: If the database operation fails.
        """
        if status is EventStatus.ACTIVE:
            raise ValidationError(
                "Records cannot be moved back to active", field="status", value=status
            )
        engine = self._require_engine("update")
        try:
            async with engine.begin() as conn:
                result = await conn.execute(
                    update(openadr_events_table)
                    .where(_key_clause(key))
                    .where(openadr_events_table.c.status == EventStatus.ACTIVE.value)
                    .values(status=status.value)
                )
        except Exception as e:
            raise PersistenceError(
                f"Failed to update event status: {e}",
                operation="update",
                table=_TABLE,
                details={"key": str(key), "status": status.value},
            ) from e
        return result.rowcount > 0

    async def get(self, key: EventKey) -> EventRecord | None:
        """Return the full record for key, or None."""
        engine = self._require_engine("select")
        try:
            async with engine.begin() as conn:
                result = await conn.execute(
                    select(openadr_events_table).where(_key_clause(key))
                )
                row = result.mappings().first()
        except Exception as e:
            raise PersistenceError(
                f"Failed to load event: {e}",
                operation="select",
                table=_TABLE,
                details={"key": str(key)},
            ) from e
        return EventRecord.from_db_row(dict(row)) if row is not None else None

    async def list_all(self) -> list[EventKey]:
        """Return the keys of every record, in insertion order."""
        return await self._select_keys([], operation="list_all")

    async def list_active(
        self,
        now: UnixSeconds,
        *,
        program_id: str | None = None,
        event_type: str | None = None,
    ) -> list[EventKey]:
        """Return keys of records that are active at now, in insertion order.

        A record qualifies when its status is ACTIVE and
        start_time <= now < start_time + duration.

        Args:
            now: Reference instant in unix seconds.
            program_id: Only include records for this program.
            event_type: Only include records of this event type.
        """
        table = openadr_events_table
        conditions = [
            table.c.status == EventStatus.ACTIVE.value,
            table.c.start_time <= now,
            table.c.start_time + table.c.duration > now,
        ]
        if program_id is not None:
            conditions.append(table.c.program_id == program_id)
        if event_type is not None:
            conditions.append(table.c.event_type == event_type)
        return await self._select_keys(conditions, operation="list_active")

    async def _select_keys(self, conditions: list[Any], *, operation: str) -> list[EventKey]:
        engine = self._require_engine(operation)
        table = openadr_events_table
        query = select(table.c.txid, table.c.output_index).order_by(table.c.id)
        if conditions:
            query = query.where(and_(*conditions))
        try:
            async with engine.begin() as conn:
                result = await conn.execute(query)
                rows = result.all()
        except Exception as e:
            raise PersistenceError(
                f"Failed to query events: {e}",
                operation=operation,
                table=_TABLE,
            ) from e
        return [EventKey(row.txid, row.output_index) for row in rows]

    async def list_records(self, *, status: EventStatus | None = None) -> list[EventRecord]:
        """Return full records in insertion order, optionally of one status."""
        engine = self._require_engine("list_records")
        query = select(openadr_events_table).order_by(openadr_events_table.c.id)
        if status is not None:
            query = query.where(openadr_events_table.c.status == status.value)
        try:
            async with engine.begin() as conn:
                result = await conn.execute(query)
                rows = result.mappings().all()
        except Exception as e:
            raise PersistenceError(
                f"Failed to list events: {e}",
                operation="list_records",
                table=_TABLE,
            ) from e
        return [EventRecord.from_db_row(dict(row)) for row in rows]

    async def close(self) -> None:
        """Dispose of the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None


def _key_clause(key: EventKey) -> Any:
    return and_(
        openadr_events_table.c.txid == key.txid,
        openadr_events_table.c.output_index == key.output_index,
    )
