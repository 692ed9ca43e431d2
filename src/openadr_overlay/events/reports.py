"""Report lifecycle events for the journal.

A report is submitted to the VTN first and applied on-chain second. The
journal records both steps so reports stuck between them can be found
again after a restart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from openadr_overlay.events.base import BaseEvent

if TYPE_CHECKING:
    from openadr_overlay.core.types import EventKey
    from openadr_overlay.ven.reports import Report

REPORT_SUBMITTED = "report.submitted"
REPORT_APPLIED = "report.applied"
REPORT_APPLY_FAILED = "report.apply_failed"
REPORT_ABANDONED = "report.abandoned"


def report_submitted(report: Report) -> BaseEvent:
    """Create event once the VTN accepted a report."""
    return BaseEvent(
        type=REPORT_SUBMITTED,
        aggregate_type="report",
        aggregate_id=report.report_id,
        data=report.to_dict(),
    )


def report_applied(report: Report, successor: EventKey | None) -> BaseEvent:
    """Create event once a report is reflected in contract state.

    successor is None when the report log already held an equivalent entry.
    """
    return BaseEvent(
        type=REPORT_APPLIED,
        aggregate_type="report",
        aggregate_id=report.report_id,
        data={
            **report.to_dict(),
            "successor": successor.to_dict() if successor is not None else None,
        },
    )


def report_apply_failed(report: Report, reason: str) -> BaseEvent:
    """Create event when on-chain application failed after VTN acceptance."""
    return BaseEvent(
        type=REPORT_APPLY_FAILED,
        aggregate_type="report",
        aggregate_id=report.report_id,
        data={**report.to_dict(), "reason": reason},
    )


def report_abandoned(report: Report, reason: str) -> BaseEvent:
    """Create event when a report can never be applied on-chain."""
    return BaseEvent(
        type=REPORT_ABANDONED,
        aggregate_type="report",
        aggregate_id=report.report_id,
        data={**report.to_dict(), "reason": reason},
    )
