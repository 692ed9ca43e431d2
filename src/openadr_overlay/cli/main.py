"""openadr CLI main entry point.

Defines the Typer application and registers the command groups.
"""

from typing import Annotated

import typer

from openadr_overlay import __version__
from openadr_overlay.cli.commands import config, demo, index, ven
from openadr_overlay.cli.formatters import console

app = typer.Typer(
    name="openadr",
    help="OpenADR overlay - demand response events on a ledger-backed overlay",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(config.app, name="config")
app.add_typer(index.app, name="index")
app.add_typer(ven.app, name="ven")
app.command(name="demo")(demo.demo)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]openadr-overlay[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """OpenADR overlay.

    Use [bold cyan]openadr COMMAND --help[/] for command-specific help.
    """


__all__ = ["app", "main"]
