"""Journal event definitions."""

from openadr_overlay.events.base import BaseEvent
from openadr_overlay.events.reports import (
    REPORT_ABANDONED,
    REPORT_APPLIED,
    REPORT_APPLY_FAILED,
    REPORT_SUBMITTED,
    report_abandoned,
    report_applied,
    report_apply_failed,
    report_submitted,
)

__all__ = [
    "BaseEvent",
    "REPORT_SUBMITTED",
    "REPORT_APPLIED",
    "REPORT_APPLY_FAILED",
    "REPORT_ABANDONED",
    "report_submitted",
    "report_applied",
    "report_apply_failed",
    "report_abandoned",
]
