"""Core types for the OpenADR overlay.

This module provides:
- Result[T, E]: a value for expected failures (decode misses, VTN rejections)
- EventKey: the (txid, outputIndex) pair that identifies an event output
- EventStatus: lifecycle status of an indexed event
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
import time
from typing import Any, cast


@dataclass(frozen=True, slots=True)
class Result[T, E]:
    """Either a success value (Ok) or an error (Err).

    Expected failures travel as Result; exceptions stay reserved for bugs
    and fatal paths.

    Usage:
        result = codec.try_decode(script)
        if result.is_ok:
            fields = result.value
        else:
            log.debug("codec.decode.skipped", reason=result.error.message)
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        """Create a successful Result."""
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        """Create a failed Result."""
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"

    @property
    def value(self) -> T:
        """Return the Ok value. Raises ValueError on Err."""
        if not self._is_ok:
            msg = "Cannot access value on Err result"
            raise ValueError(msg)
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """Return the Err value. Raises ValueError on Ok."""
        if self._is_ok:
            msg = "Cannot access error on Ok result"
            raise ValueError(msg)
        return cast(E, self._error)

    def unwrap(self) -> T:
        """Return the Ok value or raise ValueError carrying the error text."""
        if self._is_ok:
            return cast(T, self._value)
        raise ValueError(str(self._error))

    def unwrap_or(self, default: T) -> T:
        if self._is_ok:
            return cast(T, self._value)
        return default

    def map[U](self, fn: Callable[[T], U]) -> Result[U, E]:
        """Transform the Ok value, passing Err through unchanged."""
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return Result.err(cast(E, self._error))

    def map_err[F](self, fn: Callable[[E], F]) -> Result[T, F]:
        """Transform the Err value, passing Ok through unchanged."""
        if self._is_ok:
            return Result.ok(cast(T, self._value))
        return Result.err(fn(cast(E, self._error)))

    def and_then[U](self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain a Result-producing step onto an Ok value."""
        if self._is_ok:
            return fn(cast(T, self._value))
        return Result.err(cast(E, self._error))


class EventStatus(StrEnum):
    """Lifecycle of an indexed event output.

    The only transitions are ACTIVE -> SPENT and ACTIVE -> DELETED.
    """

    ACTIVE = "active"
    SPENT = "spent"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True, order=True)
class EventKey:
    """Composite identity of an event output.

    Attributes:
        txid: Transaction id as 64 lowercase hex characters.
        output_index: Zero-based output position in the transaction.
    """

    txid: str
    output_index: int

    def __post_init__(self) -> None:
        if len(self.txid) != 64 or any(c not in "0123456789abcdef" for c in self.txid):
            msg = f"txid must be 64 lowercase hex characters, got {self.txid!r}"
            raise ValueError(msg)
        if self.output_index < 0:
            msg = f"output_index must be non-negative, got {self.output_index}"
            raise ValueError(msg)

    def __str__(self) -> str:
        return f"{self.txid}-{self.output_index}"

    def to_dict(self) -> dict[str, Any]:
        """Wire form used by lookup answers."""
        return {"txid": self.txid, "outputIndex": self.output_index}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventKey:
        return cls(txid=str(data["txid"]).lower(), output_index=int(data["outputIndex"]))


UnixSeconds = int
"""Type alias for timestamps expressed as whole seconds since the epoch."""

Clock = Callable[[], UnixSeconds]


def unix_now() -> UnixSeconds:
    return int(time.time())
