"""Serialized transaction format.

Only what the overlay needs: enumerate outputs, spend an outpoint, and
compute a txid. Signing and broadcast belong to the wallet and are not
modelled here.

Wire layout (all integers little-endian):
    version:u32 | varint n_in | inputs | varint n_out | outputs | lock_time:u32
    input  = prev_txid[32, reversed] | prev_index:u32 | varint len | script | sequence:u32
    output = satoshis:u64 | varint len | script
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import struct

from openadr_overlay.core.errors import DecodeError
from openadr_overlay.core.types import EventKey

FINAL_SEQUENCE = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class TransactionInput:
    prev_txid: str
    prev_index: int
    unlocking_script: bytes = b""
    sequence: int = FINAL_SEQUENCE

    @property
    def outpoint(self) -> EventKey:
        return EventKey(self.prev_txid, self.prev_index)


@dataclass(frozen=True, slots=True)
class TransactionOutput:
    satoshis: int
    locking_script: bytes


@dataclass(frozen=True, slots=True)
class Transaction:
    """A parsed transaction.

    Attributes:
        inputs: Spent outpoints with their unlocking scripts.
        outputs: New outputs in index order.
        version: Transaction format version.
        lock_time: Earliest time or block the transaction is final.
    """

    inputs: tuple[TransactionInput, ...] = ()
    outputs: tuple[TransactionOutput, ...] = ()
    version: int = 1
    lock_time: int = 0

    @property
    def txid(self) -> str:
        """Double SHA-256 of the serialization, displayed byte-reversed."""
        digest = hashlib.sha256(hashlib.sha256(self.to_bytes()).digest()).digest()
        return digest[::-1].hex()

    def key(self, output_index: int) -> EventKey:
        return EventKey(self.txid, output_index)

    def to_bytes(self) -> bytes:
        parts = [struct.pack("<I", self.version), _encode_varint(len(self.inputs))]
        for tx_in in self.inputs:
            parts.append(bytes.fromhex(tx_in.prev_txid)[::-1])
            parts.append(struct.pack("<I", tx_in.prev_index))
            parts.append(_encode_varint(len(tx_in.unlocking_script)))
            parts.append(tx_in.unlocking_script)
            parts.append(struct.pack("<I", tx_in.sequence))
        parts.append(_encode_varint(len(self.outputs)))
        for tx_out in self.outputs:
            parts.append(struct.pack("<Q", tx_out.satoshis))
            parts.append(_encode_varint(len(tx_out.locking_script)))
            parts.append(tx_out.locking_script)
        parts.append(struct.pack("<I", self.lock_time))
        return b"".join(parts)

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, raw: bytes) -> Transaction:
        """Parse a serialized transaction.

        Raises:
            DecodeError: If the bytes are truncated, carry trailing data,
                or otherwise do not form a transaction.
        """
        reader = _Reader(raw)
        version = reader.u32()
        inputs = []
        for _ in range(reader.varint()):
            prev_txid = reader.take(32)[::-1].hex()
            prev_index = reader.u32()
            script = reader.take(reader.varint())
            inputs.append(
                TransactionInput(
                    prev_txid=prev_txid,
                    prev_index=prev_index,
                    unlocking_script=script,
                    sequence=reader.u32(),
                )
            )
        outputs = []
        for _ in range(reader.varint()):
            satoshis = reader.u64()
            outputs.append(
                TransactionOutput(satoshis=satoshis, locking_script=reader.take(reader.varint()))
            )
        lock_time = reader.u32()
        reader.finish()
        return cls(
            inputs=tuple(inputs), outputs=tuple(outputs), version=version, lock_time=lock_time
        )

    @classmethod
    def from_hex(cls, data: str) -> Transaction:
        try:
            raw = bytes.fromhex(data)
        except ValueError as e:
            raise DecodeError(f"Transaction hex is invalid: {e}") from e
        return cls.from_bytes(raw)


def _encode_varint(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


class _Reader:
    """Bounds-checked cursor over transaction bytes."""

    def __init__(self, raw: bytes) -> None:
        self._raw = raw
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._raw):
            raise DecodeError(
                f"Transaction truncated: need {size} bytes at offset {self._pos}",
                offset=self._pos,
            )
        chunk = self._raw[self._pos:end]
        self._pos = end
        return chunk

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def varint(self) -> int:
        prefix = self.take(1)[0]
        if prefix < 0xFD:
            return prefix
        if prefix == 0xFD:
            return struct.unpack("<H", self.take(2))[0]
        if prefix == 0xFE:
            return self.u32()
        return self.u64()

    def finish(self) -> None:
        if self._pos != len(self._raw):
            raise DecodeError(
                f"{len(self._raw) - self._pos} trailing bytes after transaction",
                offset=self._pos,
            )
