"""Builds runtime objects from configuration for CLI commands."""

from pathlib import Path

import typer

from openadr_overlay.cli.formatters.panels import print_error
from openadr_overlay.config import OpenADRConfig, load_config
from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.schema import ContractSchema
from openadr_overlay.core.errors import ConfigError


def sqlite_url(path: Path) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{path}"


def load_cli_config(config_path: Path | None) -> OpenADRConfig:
    """Load configuration, exiting with status 1 on a ConfigError."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        print_error(e.message, title="Configuration Error")
        raise typer.Exit(1) from e


def build_codec(config: OpenADRConfig) -> ContractCodec:
    """Codec for the configured contract artifact, or the built-in schema."""
    artifact = config.overlay.contract_artifact
    if artifact is None:
        return ContractCodec(ContractSchema.default())
    try:
        return ContractCodec(ContractSchema.from_artifact(Path(artifact)))
    except ConfigError as e:
        print_error(e.message, title="Contract Artifact Error")
        raise typer.Exit(1) from e
