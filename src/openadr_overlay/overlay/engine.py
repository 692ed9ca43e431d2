"""Overlay engine - feeds ledger transactions through admission and indexing.

This is the host side of the topic manager and lookup service contract:
for each transaction it reports spent topic outputs, asks the topic
manager which new outputs to admit, and hands those to the lookup
service. Replaying a transaction is harmless.
"""

from __future__ import annotations

import structlog

from openadr_overlay.core.errors import DecodeError
from openadr_overlay.core.types import EventKey
from openadr_overlay.ledger.memory import InMemoryLedger
from openadr_overlay.ledger.transaction import Transaction
from openadr_overlay.overlay.lookup_service import OpenADRLookupService
from openadr_overlay.overlay.topic_manager import AdmittanceInstructions, OpenADRTopicManager

log = structlog.get_logger(__name__)


class OverlayEngine:
    """Runs transactions through one topic manager and one lookup service.

    Usage:
        engine = OverlayEngine(topic_manager, lookup_service)
        engine.attach(ledger)      # or call submit() directly
        await engine.submit(raw_tx)
    """

    def __init__(
        self,
        topic_manager: OpenADRTopicManager,
        lookup_service: OpenADRLookupService,
    ) -> None:
        self._topic_manager = topic_manager
        self._lookup_service = lookup_service
        self._in_topic: set[EventKey] = set()

    @property
    def topic(self) -> str:
        return self._topic_manager.topic

    def attach(self, ledger: InMemoryLedger) -> None:
        """Submit every transaction the ledger accepts from now on."""
        ledger.subscribe(self._on_transaction)

    async def _on_transaction(self, tx: Transaction) -> None:
        await self.submit(tx)

    async def submit(self, transaction: bytes | Transaction) -> AdmittanceInstructions:
        """Process one transaction.

        Returns:
            The topic manager's admittance instructions.
        """
        if isinstance(transaction, Transaction):
            parsed = transaction
        else:
            try:
                parsed = Transaction.from_bytes(transaction)
            except DecodeError:
                # Let the topic manager log and reject it
                return self._topic_manager.identify_admissible_outputs(transaction, ())

        txid = parsed.txid
        previous_coins: list[int] = []
        for input_index, tx_in in enumerate(parsed.inputs):
            outpoint = tx_in.outpoint
            if outpoint in self._in_topic:
                previous_coins.append(input_index)
                await self._lookup_service.output_spent(
                    outpoint.txid, outpoint.output_index, self.topic
                )
                self._in_topic.discard(outpoint)

        instructions = self._topic_manager.identify_admissible_outputs(
            parsed, tuple(previous_coins)
        )
        for output_index in instructions.outputs_to_admit:
            await self._lookup_service.output_added(
                txid,
                output_index,
                parsed.outputs[output_index].locking_script,
                self.topic,
            )
            self._in_topic.add(EventKey(txid, output_index))

        log.debug(
            "overlay.transaction.processed",
            txid=txid,
            admitted=len(instructions.outputs_to_admit),
            spent=len(previous_coins),
        )
        return instructions

    async def delete(self, key: EventKey) -> None:
        """Drop an output from the topic without it being spent (e.g. a reorg)."""
        await self._lookup_service.output_deleted(key.txid, key.output_index, self.topic)
        self._in_topic.discard(key)
