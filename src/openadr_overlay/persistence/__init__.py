"""Persistence module - event index and report journal."""

from openadr_overlay.persistence.event_store import EventRecord, EventStore
from openadr_overlay.persistence.journal import ReportJournal
from openadr_overlay.persistence.schema import journal_table, metadata, openadr_events_table

__all__ = [
    "EventRecord",
    "EventStore",
    "ReportJournal",
    "journal_table",
    "metadata",
    "openadr_events_table",
]
