"""Contract schema registry.

A ContractSchema describes the stateful OpenADR contract: the fixed code
prefix every event output starts with, the order of its state fields, and
the trailing state version byte. It is built once at startup, either from
the built-in definition or from a compiled artifact file, and passed to
every ContractCodec explicitly.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from openadr_overlay.core.errors import ConfigError

# Opcodes used by the state layout
OP_DROP = 0x75
OP_RETURN = 0x6A

STATE_FIELDS: tuple[str, ...] = ("eventType", "programID", "startTime", "duration", "payload")


def _builtin_code_prefix() -> bytes:
    """Push the 32-byte contract code hash and drop it again."""
    code_hash = hashlib.sha256(b"OpenADRContract.updateEventOnChain(bytes)").digest()
    return bytes([len(code_hash)]) + code_hash + bytes([OP_DROP])


class ContractSchema(BaseModel, frozen=True):
    """Immutable description of the OpenADR contract state layout.

    Attributes:
        name: Contract name as it appears in the artifact.
        code_prefix: Script bytes preceding OP_RETURN and the state pushes.
        fields: State field names in serialization order.
        state_version: Trailing byte identifying the state layout revision.
    """

    name: str = "OpenADR"
    code_prefix: bytes = Field(default_factory=_builtin_code_prefix)
    fields: tuple[str, ...] = STATE_FIELDS
    state_version: int = Field(default=0, ge=0, le=255)

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if v != STATE_FIELDS:
            msg = f"State fields must be {list(STATE_FIELDS)}, got {list(v)}"
            raise ValueError(msg)
        return v

    @field_validator("code_prefix")
    @classmethod
    def validate_code_prefix(cls, v: bytes) -> bytes:
        if not v:
            msg = "code_prefix must not be empty"
            raise ValueError(msg)
        if v[-1] == OP_RETURN:
            msg = "code_prefix must not end with OP_RETURN"
            raise ValueError(msg)
        return v

    @classmethod
    def default(cls) -> ContractSchema:
        """Return the built-in OpenADR contract schema."""
        return cls()

    @classmethod
    def from_artifact(cls, path: Path) -> ContractSchema:
        """Load a schema from a compiled contract artifact.

        The artifact is a JSON object with "contract", "hex" (the code
        prefix), and optionally "stateProps" and "stateVersion".

        Raises:
            ConfigError: If the file is missing, unreadable, or invalid.
        """
        try:
            data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigError(
                f"Contract artifact not found: {path}", config_file=str(path)
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(
                f"Failed to read contract artifact: {e}", config_file=str(path)
            ) from e
        if not isinstance(data, dict):
            raise ConfigError("Contract artifact must be a JSON object", config_file=str(path))

        try:
            fields = tuple(prop["name"] for prop in data.get("stateProps", [])) or STATE_FIELDS
            return cls(
                name=data["contract"],
                code_prefix=bytes.fromhex(data["hex"]),
                fields=fields,
                state_version=int(data.get("stateVersion", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid contract artifact: {e}",
                config_file=str(path),
                details={"keys": sorted(data)},
            ) from e

    def to_artifact(self) -> dict[str, Any]:
        """Serialize to the artifact layout read by from_artifact()."""
        return {
            "contract": self.name,
            "hex": self.code_prefix.hex(),
            "stateProps": [{"name": name} for name in self.fields],
            "stateVersion": self.state_version,
        }
