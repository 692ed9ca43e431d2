"""Protocols for the ledger collaborator consumed by the VEN client."""

from typing import Protocol

from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.transaction import Transaction, TransactionOutput


class LedgerClient(Protocol):
    """Resolves outputs and publishes contract state continuations.

    Implementations wrap a wallet and a broadcaster. get_output and
    publish_successor raise LedgerError on failure.
    """

    async def get_output(self, key: EventKey) -> TransactionOutput:
        """Return the output identified by key."""
        ...

    async def spending_transaction(self, key: EventKey) -> Transaction | None:
        """Return the transaction that spent key, or None if it is unspent or unknown."""
        ...

    async def publish_successor(self, key: EventKey, locking_script: bytes) -> EventKey:
        """Spend the output at key into a single output carrying locking_script.

        The successor keeps the satoshi value of the spent output.

        Returns:
            Key of the new output.
        """
        ...
