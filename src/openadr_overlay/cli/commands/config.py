"""Config command group.

Create and inspect ~/.openadr/config.yaml.
"""

from pathlib import Path
from typing import Annotated

import typer

from openadr_overlay.cli.formatters.panels import print_error, print_success
from openadr_overlay.cli.formatters.tables import create_key_value_table, print_table
from openadr_overlay.cli.wiring import load_cli_config
from openadr_overlay.config import create_default_config, get_config_dir
from openadr_overlay.core.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage OpenADR overlay configuration.",
    no_args_is_help=True,
)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config.yaml (default: ~/.openadr/config.yaml)."),
]


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config.yaml."),
    ] = False,
    config_dir: Annotated[
        Path | None,
        typer.Option("--dir", help="Directory to create the configuration in."),
    ] = None,
) -> None:
    """Write a default configuration file."""
    try:
        path = create_default_config(config_dir, overwrite=force)
    except ConfigError as e:
        print_error(f"{e.message}\nUse --force to overwrite.", title="Config Exists")
        raise typer.Exit(1) from e
    print_success(f"Configuration written to {path}")


@app.command()
def show(
    section: Annotated[
        str | None,
        typer.Argument(help="Section to display (vtn, ven, overlay, persistence, logging)."),
    ] = None,
    config_path: ConfigOption = None,
) -> None:
    """Display the effective configuration."""
    config = load_cli_config(config_path)
    data = config.model_dump(mode="json")
    if section is not None:
        if section not in data:
            print_error(f"Unknown section: {section}. Choose from {', '.join(data)}.")
            raise typer.Exit(1)
        data = {section: data[section]}

    for name, values in data.items():
        print_table(create_key_value_table(values, title=name))
    if section is None:
        print_table(create_key_value_table({"config_dir": get_config_dir()}, title="paths"))


__all__ = ["app"]
