"""Database schema definitions using SQLAlchemy Core.

Tables:
    openadr_events: one row per admitted event output, keyed by
        (txid, output_index). The surrogate id preserves insertion order.
    journal: append-only log of VEN report activity.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    text,
)

metadata = MetaData()

openadr_events_table = Table(
    "openadr_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("txid", String(64), nullable=False),
    Column("output_index", Integer, nullable=False),
    Column("event_type", String(100), nullable=False),
    Column("program_id", String(200), nullable=False),
    Column("start_time", BigInteger, nullable=False),
    Column("duration", BigInteger, nullable=False),
    Column("payload", LargeBinary, nullable=False),
    # active | spent | deleted
    Column("status", String(16), nullable=False, server_default=text("'active'")),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    UniqueConstraint("txid", "output_index", name="uq_openadr_events_outpoint"),
    Index("ix_openadr_events_status_window", "status", "start_time"),
    Index("ix_openadr_events_program_id", "program_id"),
)

journal_table = Table(
    "journal",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("aggregate_type", String(100), nullable=False),
    # Report idempotency token or "txid-outputIndex"
    Column("aggregate_id", String(100), nullable=False),
    # dot.notation.past_tense, e.g. "report.applied"
    Column("event_type", String(200), nullable=False),
    Column("payload", JSON, nullable=False),
    Column(
        "timestamp",
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    Index("ix_journal_aggregate", "aggregate_type", "aggregate_id"),
    Index("ix_journal_event_type", "event_type"),
    Index("ix_journal_timestamp", "timestamp"),
)
