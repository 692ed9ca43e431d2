"""Ledger collaborators: transaction format, client protocol, in-memory ledger."""

from openadr_overlay.ledger.cache import TransactionCache
from openadr_overlay.ledger.memory import InMemoryLedger
from openadr_overlay.ledger.protocols import LedgerClient
from openadr_overlay.ledger.transaction import Transaction, TransactionInput, TransactionOutput

__all__ = [
    "InMemoryLedger",
    "LedgerClient",
    "Transaction",
    "TransactionInput",
    "TransactionOutput",
    "TransactionCache",
]
