"""In-process ledger used by the demo command and by tests."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from openadr_overlay.core.errors import LedgerError
from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.transaction import Transaction, TransactionInput, TransactionOutput

log = structlog.get_logger(__name__)

TransactionListener = Callable[[Transaction], Awaitable[None]]


class InMemoryLedger:
    """A LedgerClient that keeps every transaction in memory.

    Outputs can be spent once. Listeners registered with subscribe() are
    awaited for each accepted transaction, in order, which lets an overlay
    engine observe the ledger the way a real host would.

    Usage:
        ledger = InMemoryLedger()
        txid = await ledger.submit(tx)
        output = await ledger.get_output(EventKey(txid, 0))
    """

    def __init__(self) -> None:
        self._transactions: dict[str, Transaction] = {}
        self._spent: dict[EventKey, str] = {}
        self._listeners: list[TransactionListener] = []
        self._lock = asyncio.Lock()

    def subscribe(self, listener: TransactionListener) -> None:
        self._listeners.append(listener)

    def get_transaction(self, txid: str) -> Transaction | None:
        return self._transactions.get(txid)

    def is_spent(self, key: EventKey) -> bool:
        return key in self._spent

    async def submit(self, tx: Transaction) -> str:
        """Accept a transaction, spending every known outpoint it references.

        Raises:
            LedgerError: If an input spends an output that is already spent.
        """
        async with self._lock:
            txid = tx.txid
            if txid in self._transactions:
                return txid
            for tx_in in tx.inputs:
                outpoint = tx_in.outpoint
                if outpoint in self._spent:
                    raise LedgerError(
                        "Output already spent",
                        key=str(outpoint),
                        details={"spent_by": self._spent[outpoint]},
                    )
            for tx_in in tx.inputs:
                self._spent[tx_in.outpoint] = txid
            self._transactions[txid] = tx
            log.debug("ledger.transaction.accepted", txid=txid, outputs=len(tx.outputs))

        for listener in self._listeners:
            await listener(tx)
        return txid

    async def get_output(self, key: EventKey) -> TransactionOutput:
        tx = self._transactions.get(key.txid)
        if tx is None:
            raise LedgerError("Unknown transaction", key=str(key))
        if key.output_index >= len(tx.outputs):
            raise LedgerError(
                f"Transaction has {len(tx.outputs)} outputs", key=str(key)
            )
        return tx.outputs[key.output_index]

    async def spending_transaction(self, key: EventKey) -> Transaction | None:
        spender = self._spent.get(key)
        return self._transactions.get(spender) if spender is not None else None

    async def publish_successor(self, key: EventKey, locking_script: bytes) -> EventKey:
        original = await self.get_output(key)
        successor = Transaction(
            inputs=(TransactionInput(prev_txid=key.txid, prev_index=key.output_index),),
            outputs=(TransactionOutput(satoshis=original.satoshis, locking_script=locking_script),),
        )
        txid = await self.submit(successor)
        return EventKey(txid, 0)
