"""OpenADR overlay - demand response events on a ledger-backed overlay.

Producers publish event state as ledger outputs; the topic manager admits
them, the lookup service indexes them, and VEN clients poll for active
events, act on them, and report back.

Example:
    # Using CLI
    openadr config init
    openadr demo
    openadr ven run --ven-id VEN-1 --program residential-demand-response

    # Using Python
    from openadr_overlay.contract import ContractCodec, ContractSchema
    from openadr_overlay.overlay import OpenADRTopicManager
"""

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the openadr CLI."""
    from openadr_overlay.cli.main import app

    app()
