"""Index command group.

Inspect the SQLite event index written by the lookup service.
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from openadr_overlay.cli.formatters import console
from openadr_overlay.cli.formatters.tables import create_events_table, print_table
from openadr_overlay.cli.wiring import load_cli_config, sqlite_url
from openadr_overlay.core.types import unix_now
from openadr_overlay.persistence.event_store import EventRecord, EventStore

app = typer.Typer(
    name="index",
    help="Inspect the OpenADR event index.",
    no_args_is_help=True,
)


async def _load_records(
    database_url: str, *, active: bool, program_id: str | None
) -> list[EventRecord]:
    store = EventStore(database_url)
    await store.initialize()
    try:
        records = await store.list_records()
    finally:
        await store.close()
    now = unix_now()
    if active:
        records = [r for r in records if r.is_active_at(now)]
    if program_id is not None:
        records = [r for r in records if r.fields.program_id == program_id]
    return records


@app.command("list")
def list_events(
    active: Annotated[
        bool,
        typer.Option("--active", "-a", help="Only events active now."),
    ] = False,
    program_id: Annotated[
        str | None,
        typer.Option("--program", "-p", help="Only events of this program."),
    ] = None,
    database: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the index database."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """List indexed events."""
    config = load_cli_config(config_path)
    db_path = database or config.resolve_path(config.persistence.database_path)
    records = asyncio.run(
        _load_records(sqlite_url(db_path), active=active, program_id=program_id)
    )
    if not records:
        console.print("[muted]No events indexed.[/]")
        return
    print_table(create_events_table(records, title="Active events" if active else "Events"))


__all__ = ["app"]
