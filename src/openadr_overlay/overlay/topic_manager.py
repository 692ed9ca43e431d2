"""Topic manager - decides which transaction outputs carry OpenADR events.

Admission never raises into the ingestion pipeline. An output that does
not decode is simply not an OpenADR output; a transaction that cannot be
parsed admits nothing.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Any

import structlog

from openadr_overlay import __version__
from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.core.errors import DecodeError
from openadr_overlay.ledger.transaction import Transaction

log = structlog.get_logger(__name__)

TOPIC = "tm_openADR"


@dataclass(frozen=True, slots=True)
class AdmittanceInstructions:
    """Result of admission for one transaction.

    Attributes:
        outputs_to_admit: Admitted output indices, ascending.
        coins_to_retain: The previous coins passed in, unchanged.
    """

    outputs_to_admit: tuple[int, ...]
    coins_to_retain: Collection[Any]


class OpenADRTopicManager:
    """Admits outputs whose script decodes to OpenADR contract state.

    An output is admitted when it decodes and both eventType and
    programID are non-empty.
    """

    def __init__(self, codec: ContractCodec, *, topic: str = TOPIC) -> None:
        self._codec = codec
        self.topic = topic

    def identify_admissible_outputs(
        self,
        transaction: bytes | Transaction,
        previous_coins: Collection[Any],
    ) -> AdmittanceInstructions:
        """Return the outputs of transaction that should join the topic.

        Args:
            transaction: Serialized or already parsed transaction.
            previous_coins: Coin references retained from earlier
                admissions; returned untouched.
        """
        if isinstance(transaction, Transaction):
            parsed = transaction
        else:
            try:
                parsed = Transaction.from_bytes(transaction)
            except (DecodeError, TypeError) as e:
                log.error("admission.transaction.malformed", topic=self.topic, reason=str(e))
                return AdmittanceInstructions(outputs_to_admit=(), coins_to_retain=previous_coins)

        admitted: list[int] = []
        for index, output in enumerate(parsed.outputs):
            result = self._codec.try_decode(output.locking_script)
            if result.is_err:
                continue
            fields = result.value
            if not fields.event_type or not fields.program_id:
                log.debug("admission.output.rejected", output_index=index, reason="empty field")
                continue
            log.info(
                "admission.output.admitted",
                output_index=index,
                event_type=fields.event_type,
                program_id=fields.program_id,
            )
            admitted.append(index)

        return AdmittanceInstructions(
            outputs_to_admit=tuple(admitted), coins_to_retain=previous_coins
        )

    def get_documentation(self) -> str:
        return (
            "# OpenADR Topic Manager\n\n"
            "Admits transaction outputs that carry OpenADR demand response event\n"
            "state. An output is admitted when its locking script decodes as an\n"
            "OpenADR contract with a non-empty event type and program ID.\n"
        )

    def get_metadata(self) -> dict[str, str]:
        return {
            "name": "OpenADR Topic Manager",
            "short_description": "Processes demand response events on the ledger",
            "version": __version__,
        }
