"""Read-only ledger view fed by lookup answers.

A remote lookup service may ship each answer with the transaction that
created the output ("rawTx", hex). Caching those lets a VEN resolve the
outputs it is told about without a wallet. Publishing needs a wallet, so
this ledger refuses it and reports stay queued for reconciliation.
"""

from __future__ import annotations

from cachetools import LRUCache

from openadr_overlay.core.errors import LedgerError
from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.transaction import Transaction, TransactionOutput


class TransactionCache:
    """LedgerClient that resolves outputs from transactions it was given."""

    def __init__(self, maxsize: int = 1024) -> None:
        self._transactions: LRUCache[str, Transaction] = LRUCache(maxsize=maxsize)

    def add(self, tx: Transaction) -> str:
        txid = tx.txid
        self._transactions[txid] = tx
        return txid

    def __contains__(self, txid: object) -> bool:
        return txid in self._transactions

    async def get_output(self, key: EventKey) -> TransactionOutput:
        tx = self._transactions.get(key.txid)
        if tx is None:
            raise LedgerError("Transaction not in cache", key=str(key))
        if key.output_index >= len(tx.outputs):
            raise LedgerError(f"Transaction has {len(tx.outputs)} outputs", key=str(key))
        return tx.outputs[key.output_index]

    async def spending_transaction(self, key: EventKey) -> Transaction | None:
        # Spends are not observed here
        return None

    async def publish_successor(self, key: EventKey, locking_script: bytes) -> EventKey:
        raise LedgerError("No wallet configured to publish successor outputs", key=str(key))
