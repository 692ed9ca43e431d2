"""Rich tables for structured data display."""

from typing import Any

from rich.table import Table

from openadr_overlay.cli.formatters import console
from openadr_overlay.contract.payload import ReportEntry
from openadr_overlay.core.types import EventStatus
from openadr_overlay.persistence.event_store import EventRecord


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    border_style: str = "blue",
    header_style: str = "bold cyan",
) -> Table:
    """Create a Rich Table with the project's styling."""
    return Table(
        title=title,
        show_header=show_header,
        border_style=border_style,
        header_style=header_style,
        row_styles=["", "dim"],
    )


def create_key_value_table(data: dict[str, Any], title: str | None = None) -> Table:
    table = create_table(title, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    return table


_STATUS_STYLES = {
    EventStatus.ACTIVE: "success",
    EventStatus.SPENT: "muted",
    EventStatus.DELETED: "warning",
}


def create_events_table(records: list[EventRecord], title: str | None = None) -> Table:
    """One row per indexed event: key, type, program, window, status."""
    table = create_table(title)
    table.add_column("Output", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Program")
    table.add_column("Start", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Status", justify="center")
    for record in records:
        style = _STATUS_STYLES[record.status]
        table.add_row(
            f"{record.key.txid[:16]}…-{record.key.output_index}",
            record.fields.event_type,
            record.fields.program_id,
            str(record.fields.start_time),
            f"{record.fields.duration}s",
            f"[{style}]{record.status.value}[/]",
        )
    return table


def create_reports_table(entries: tuple[ReportEntry, ...], title: str | None = None) -> Table:
    table = create_table(title)
    table.add_column("Type", style="cyan")
    table.add_column("Value")
    table.add_column("VEN")
    table.add_column("Timestamp", justify="right")
    table.add_column("Report ID", style="muted")
    for entry in entries:
        table.add_row(
            entry.report_type,
            entry.report_value,
            entry.ven_id,
            str(entry.timestamp),
            entry.report_id or "",
        )
    return table


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "create_table",
    "create_key_value_table",
    "create_events_table",
    "create_reports_table",
    "print_table",
]
