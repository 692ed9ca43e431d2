"""Unit tests for openadr_overlay.contract.codec module."""

import struct

import pytest

from openadr_overlay.contract.codec import ContractCodec
from openadr_overlay.contract.models import EventFields
from openadr_overlay.contract.schema import OP_RETURN, ContractSchema
from openadr_overlay.core.errors import DecodeError, ValidationError


class TestEncode:
    """Test ContractCodec.encode."""

    def test_script_layout(self, codec: ContractCodec, make_fields) -> None:
        """Script is prefix, OP_RETURN, state pushes, length and version."""
        script = codec.encode(make_fields())
        prefix = codec.schema.code_prefix

        assert script.startswith(prefix)
        assert script[len(prefix)] == OP_RETURN
        assert script[-1] == codec.schema.state_version
        (declared,) = struct.unpack("<I", script[-5:-1])
        assert declared == len(script) - len(prefix) - 1 - 5

    def test_rejects_non_positive_duration(self, codec: ContractCodec, make_fields) -> None:
        with pytest.raises(ValidationError, match="duration"):
            codec.encode(make_fields(duration=0))

    def test_rejects_negative_start_time(self, codec: ContractCodec, make_fields) -> None:
        with pytest.raises(ValidationError, match="startTime"):
            codec.encode(make_fields(start_time=-1))


class TestDecode:
    """Test ContractCodec.decode."""

    def test_round_trip(self, codec: ContractCodec, make_fields) -> None:
        fields = make_fields(event_type="PRICE", payload={"price": 0.25}, start_time=1_700_000_000)
        assert codec.decode(codec.encode(fields)) == fields

    def test_empty_payload_and_text_fields(self, codec: ContractCodec) -> None:
        """Empty strings survive as OP_0 pushes."""
        fields = EventFields(event_type="", program_id="", start_time=0, duration=1, payload=b"")
        assert codec.decode(codec.encode(fields)) == fields

    def test_reencoding_a_decoded_script_is_identity(
        self, codec: ContractCodec, make_fields
    ) -> None:
        script = codec.encode(make_fields(payload={"level": 3, "reports": []}))
        assert codec.encode(codec.decode(script)) == script

    def test_rejects_foreign_prefix(self, codec: ContractCodec) -> None:
        with pytest.raises(DecodeError, match="prefix"):
            codec.decode(b"\x76\xa9\x14" + b"\x00" * 20 + b"\x88\xac")

    def test_rejects_wrong_state_version(self, codec: ContractCodec, make_fields) -> None:
        script = codec.encode(make_fields())
        with pytest.raises(DecodeError, match="version"):
            codec.decode(script[:-1] + b"\x07")

    def test_rejects_length_mismatch(self, codec: ContractCodec, make_fields) -> None:
        script = bytearray(codec.encode(make_fields()))
        script[-5] ^= 0x01
        with pytest.raises(DecodeError, match="length"):
            codec.decode(bytes(script))

    def test_rejects_non_minimal_push_inside_state(self, codec: ContractCodec) -> None:
        """A program ID pushed with OP_PUSHDATA1 is not a canonical encoding."""
        state = b"".join(
            (
                b"\x06SIMPLE",
                b"\x4c\x02p1",
                b"\x02\xe8\x03",
                b"\x02\x10\x0e",
                b"\x00",
            )
        )
        prefix = codec.schema.code_prefix
        script = prefix + bytes([OP_RETURN]) + state + struct.pack("<I", len(state)) + b"\x00"

        with pytest.raises(DecodeError, match="Non-minimal"):
            codec.decode(script)

    def test_rejects_zero_duration_on_decode(self, codec: ContractCodec) -> None:
        state = b"\x06SIMPLE\x02p1\x02\xe8\x03\x00\x00"
        prefix = codec.schema.code_prefix
        script = prefix + bytes([OP_RETURN]) + state + struct.pack("<I", len(state)) + b"\x00"

        with pytest.raises(DecodeError, match="duration"):
            codec.decode(script)

    def test_try_decode_returns_result(self, codec: ContractCodec, make_fields) -> None:
        ok = codec.try_decode(codec.encode(make_fields()))
        err = codec.try_decode(b"\x51")

        assert ok.is_ok
        assert err.is_err
        assert isinstance(err.error, DecodeError)


class TestCustomSchema:
    def test_codec_uses_schema_prefix(self, make_fields) -> None:
        schema = ContractSchema(name="Custom", code_prefix=b"\x51\x75", state_version=2)
        codec = ContractCodec(schema)
        script = codec.encode(make_fields())

        assert script.startswith(b"\x51\x75\x6a")
        assert script[-1] == 2
        assert codec.decode(script) == make_fields()

    def test_scripts_from_other_schema_are_rejected(
        self, codec: ContractCodec, make_fields
    ) -> None:
        other = ContractCodec(ContractSchema(code_prefix=b"\x51\x75"))
        with pytest.raises(DecodeError):
            codec.decode(other.encode(make_fields()))
