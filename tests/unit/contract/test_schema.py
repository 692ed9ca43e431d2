"""Unit tests for openadr_overlay.contract.schema module."""

import json
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError
import pytest

from openadr_overlay.contract.schema import OP_DROP, STATE_FIELDS, ContractSchema
from openadr_overlay.core.errors import ConfigError


class TestContractSchema:
    """Test schema defaults and validation."""

    def test_default_prefix_pushes_and_drops_code_hash(self) -> None:
        schema = ContractSchema.default()
        assert schema.code_prefix[0] == 32
        assert len(schema.code_prefix) == 34
        assert schema.code_prefix[-1] == OP_DROP
        assert schema.fields == STATE_FIELDS

    def test_default_is_stable(self) -> None:
        assert ContractSchema.default() == ContractSchema.default()

    def test_rejects_other_field_order(self) -> None:
        with pytest.raises(PydanticValidationError):
            ContractSchema(fields=("programID", "eventType", "startTime", "duration", "payload"))

    def test_rejects_prefix_ending_in_op_return(self) -> None:
        with pytest.raises(PydanticValidationError):
            ContractSchema(code_prefix=b"\x51\x6a")

    def test_is_frozen(self) -> None:
        schema = ContractSchema.default()
        with pytest.raises(PydanticValidationError):
            schema.state_version = 3  # type: ignore[misc]


class TestArtifact:
    """Test loading schemas from compiled artifacts."""

    def test_round_trip_through_file(self, tmp_path: Path) -> None:
        schema = ContractSchema(name="OpenADR", code_prefix=b"\x51\x75", state_version=1)
        path = tmp_path / "OpenADR.json"
        path.write_text(json.dumps(schema.to_artifact()))

        assert ContractSchema.from_artifact(path) == schema

    def test_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            ContractSchema.from_artifact(tmp_path / "missing.json")

    def test_non_object_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="JSON object"):
            ContractSchema.from_artifact(path)

    def test_missing_hex_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"contract": "OpenADR"}))
        with pytest.raises(ConfigError, match="Invalid contract artifact") as exc_info:
            ContractSchema.from_artifact(path)
        assert exc_info.value.config_file == str(path)
