"""VEN command group.

Run a VEN client against a VTN and a remote lookup service.
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from openadr_overlay.cli.formatters import console
from openadr_overlay.cli.formatters.panels import print_error, print_info
from openadr_overlay.cli.wiring import build_codec, load_cli_config, sqlite_url
from openadr_overlay.config import OpenADRConfig
from openadr_overlay.core.errors import RegistrationError
from openadr_overlay.ledger.cache import TransactionCache
from openadr_overlay.observability import bind_context, configure_logging
from openadr_overlay.persistence.journal import ReportJournal
from openadr_overlay.ven.client import VENClient
from openadr_overlay.ven.vtn_client import HttpLookupResolver, VTNClient

app = typer.Typer(
    name="ven",
    help="Run a VEN client.",
    no_args_is_help=True,
)


async def _run_ven(config: OpenADRConfig) -> None:
    transactions = TransactionCache()
    vtn = VTNClient.from_config(config.vtn)
    resolver = HttpLookupResolver.from_config(
        config.vtn,
        base_url=config.overlay.lookup_url or config.vtn.base_url,
        transactions=transactions,
    )
    journal: ReportJournal | None = None
    if config.persistence.journal_enabled:
        journal = ReportJournal(
            sqlite_url(config.resolve_path(config.persistence.journal_path))
        )
        await journal.initialize()

    ven = VENClient.from_config(
        config.ven,
        vtn=vtn,
        resolver=resolver,
        ledger=transactions,
        codec=build_codec(config),
        journal=journal,
        service=config.overlay.service,
    )
    try:
        await ven.initialize()
        console.print(
            f"[success]VEN {config.ven.ven_id} polling program "
            f"{config.ven.program_id} every {config.ven.poll_interval_seconds}s[/]"
        )
        await asyncio.Event().wait()
    finally:
        await ven.stop()
        await vtn.aclose()
        await resolver.aclose()
        if journal is not None:
            await journal.close()


@app.command()
def run(
    ven_id: Annotated[
        str | None,
        typer.Option("--ven-id", help="VEN identity (overrides ven.ven_id)."),
    ] = None,
    program_id: Annotated[
        str | None,
        typer.Option("--program", "-p", help="Program to subscribe to (overrides ven.program_id)."),
    ] = None,
    vtn_url: Annotated[
        str | None,
        typer.Option("--vtn-url", help="VTN base URL (overrides vtn.base_url)."),
    ] = None,
    interval: Annotated[
        float | None,
        typer.Option("--interval", "-i", help="Poll interval in seconds.", min=0.1),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """Register with the VTN and poll for active events until interrupted."""
    config = load_cli_config(config_path)
    ven_updates = {
        k: v
        for k, v in {
            "ven_id": ven_id,
            "program_id": program_id,
            "poll_interval_seconds": interval,
        }.items()
        if v is not None
    }
    config = config.model_copy(
        update={
            "ven": config.ven.model_copy(update=ven_updates),
            "vtn": config.vtn.model_copy(update={"base_url": vtn_url.rstrip("/")})
            if vtn_url
            else config.vtn,
        }
    )

    configure_logging(config.logging)
    bind_context(ven_id=config.ven.ven_id, program_id=config.ven.program_id)

    try:
        asyncio.run(_run_ven(config))
    except RegistrationError as e:
        print_error(e.message, title="Registration Failed")
        raise typer.Exit(1) from e
    except KeyboardInterrupt:
        print_info("VEN stopped.")


__all__ = ["app"]
