"""ContractCodec - OpenADR contract state to and from locking scripts.

Script layout:

    code_prefix | OP_RETURN | push(eventType) | push(programID)
        | push(num(startTime)) | push(num(duration)) | push(payload)
        | uint32le(state length) | state version byte

The state length counts the bytes of the five pushes. Decoding accepts
exactly what encoding produces, so encode(decode(x)) == x holds for every
script decode() accepts.
"""

from __future__ import annotations

import struct

from openadr_overlay.contract.models import EventFields
from openadr_overlay.contract.schema import OP_RETURN, ContractSchema
from openadr_overlay.contract.script import decode_num, decode_push, encode_num, encode_push
from openadr_overlay.core.errors import DecodeError, ValidationError
from openadr_overlay.core.types import Result

_TRAILER_SIZE = 5  # uint32 state length + version byte


class ContractCodec:
    """Encodes and decodes OpenADR contract state for one schema.

    Usage:
        codec = ContractCodec(ContractSchema.default())
        script = codec.encode(fields)
        result = codec.try_decode(script)
    """

    def __init__(self, schema: ContractSchema) -> None:
        self._schema = schema

    @property
    def schema(self) -> ContractSchema:
        return self._schema

    def encode(self, fields: EventFields) -> bytes:
        """Serialize contract state into a locking script.

        Raises:
            ValidationError: If a field is outside its valid range.
        """
        _validate(fields)
        state = b"".join(
            (
                encode_push(fields.event_type.encode("utf-8")),
                encode_push(fields.program_id.encode("utf-8")),
                encode_push(encode_num(fields.start_time)),
                encode_push(encode_num(fields.duration)),
                encode_push(fields.payload),
            )
        )
        return b"".join(
            (
                self._schema.code_prefix,
                bytes([OP_RETURN]),
                state,
                struct.pack("<I", len(state)),
                bytes([self._schema.state_version]),
            )
        )

    def decode(self, script: bytes) -> EventFields:
        """Parse contract state from a locking script.

        Raises:
            DecodeError: If the script does not follow the schema layout.
        """
        prefix = self._schema.code_prefix
        if not script.startswith(prefix):
            raise DecodeError("Script does not start with the contract code prefix", offset=0)

        op_return_at = len(prefix)
        if len(script) < op_return_at + 1 + _TRAILER_SIZE or script[op_return_at] != OP_RETURN:
            raise DecodeError("Missing OP_RETURN state separator", offset=op_return_at)

        if script[-1] != self._schema.state_version:
            raise DecodeError(
                f"Unsupported state version {script[-1]}", offset=len(script) - 1
            )

        state_start = op_return_at + 1
        state_end = len(script) - _TRAILER_SIZE
        (declared,) = struct.unpack_from("<I", script, state_end)
        if declared != state_end - state_start:
            raise DecodeError(
                f"State length mismatch: declared {declared}, found {state_end - state_start}",
                offset=state_end,
            )

        state = script[:state_end]
        pushes: list[bytes] = []
        cursor = state_start
        for _ in self._schema.fields:
            data, cursor = decode_push(state, cursor)
            pushes.append(data)
        if cursor != state_end:
            raise DecodeError("Unexpected bytes after the state fields", offset=cursor)

        raw_type, raw_program, raw_start, raw_duration, payload = pushes
        try:
            event_type = raw_type.decode("utf-8")
            program_id = raw_program.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"State text is not valid UTF-8: {e}") from e

        start_time = decode_num(raw_start)
        duration = decode_num(raw_duration)
        if start_time < 0:
            raise DecodeError(f"startTime must be non-negative, got {start_time}")
        if duration <= 0:
            raise DecodeError(f"duration must be positive, got {duration}")

        return EventFields(
            event_type=event_type,
            program_id=program_id,
            start_time=start_time,
            duration=duration,
            payload=payload,
        )

    def try_decode(self, script: bytes) -> Result[EventFields, DecodeError]:
        """decode() returning a Result instead of raising."""
        try:
            return Result.ok(self.decode(script))
        except DecodeError as e:
            return Result.err(e)


def _validate(fields: EventFields) -> None:
    if fields.start_time < 0:
        raise ValidationError(
            "startTime must be non-negative", field="start_time", value=fields.start_time
        )
    if fields.duration <= 0:
        raise ValidationError("duration must be positive", field="duration", value=fields.duration)
