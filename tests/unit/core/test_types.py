"""Unit tests for openadr_overlay.core.types module."""

import pytest

from openadr_overlay.core.types import EventKey, EventStatus, Result

TXID = "0f" * 32


class TestResult:
    """Test Result construction and combinators."""

    def test_ok_holds_value(self) -> None:
        """Result.ok(value) is Ok and exposes the value."""
        result: Result[int, str] = Result.ok(42)

        assert result.is_ok is True
        assert result.is_err is False
        assert result.value == 42

    def test_err_holds_error(self) -> None:
        """Result.err(error) is Err and exposes the error."""
        result: Result[int, str] = Result.err("boom")

        assert result.is_err is True
        assert result.error == "boom"

    def test_value_on_err_raises(self) -> None:
        """Accessing .value on Err raises ValueError."""
        with pytest.raises(ValueError, match="Err"):
            _ = Result.err("boom").value

    def test_error_on_ok_raises(self) -> None:
        with pytest.raises(ValueError, match="Ok"):
            _ = Result.ok(1).error

    def test_unwrap_or_returns_default_on_err(self) -> None:
        assert Result.err("boom").unwrap_or(7) == 7
        assert Result.ok(3).unwrap_or(7) == 3

    def test_unwrap_raises_with_error_text(self) -> None:
        with pytest.raises(ValueError, match="boom"):
            Result.err("boom").unwrap()

    def test_map_transforms_ok_only(self) -> None:
        assert Result.ok(2).map(lambda x: x * 10).value == 20
        assert Result.err("e").map(lambda x: x * 10).error == "e"

    def test_map_err_transforms_err_only(self) -> None:
        assert Result.err("e").map_err(str.upper).error == "E"
        assert Result.ok(1).map_err(str.upper).value == 1

    def test_and_then_chains(self) -> None:
        def half(x: int) -> Result[int, str]:
            return Result.ok(x // 2) if x % 2 == 0 else Result.err("odd")

        assert Result.ok(8).and_then(half).and_then(half).value == 2
        assert Result.ok(6).and_then(half).and_then(half).error == "odd"

    def test_repr(self) -> None:
        assert repr(Result.ok(1)) == "Ok(1)"
        assert repr(Result.err("x")) == "Err('x')"


class TestEventKey:
    """Test EventKey validation and wire forms."""

    def test_str_is_txid_dash_index(self) -> None:
        assert str(EventKey(TXID, 3)) == f"{TXID}-3"

    def test_rejects_short_txid(self) -> None:
        with pytest.raises(ValueError, match="64 lowercase hex"):
            EventKey("abc", 0)

    def test_rejects_uppercase_txid(self) -> None:
        with pytest.raises(ValueError):
            EventKey(TXID.upper(), 0)

    def test_rejects_negative_index(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            EventKey(TXID, -1)

    def test_dict_round_trip(self) -> None:
        key = EventKey(TXID, 1)
        assert key.to_dict() == {"txid": TXID, "outputIndex": 1}
        assert EventKey.from_dict(key.to_dict()) == key

    def test_from_dict_lowercases_txid(self) -> None:
        assert EventKey.from_dict({"txid": TXID.upper(), "outputIndex": 0}) == EventKey(TXID, 0)

    def test_keys_are_hashable_and_ordered(self) -> None:
        a, b = EventKey(TXID, 0), EventKey(TXID, 1)
        assert len({a, b, EventKey(TXID, 0)}) == 2
        assert sorted([b, a]) == [a, b]


class TestEventStatus:
    def test_values(self) -> None:
        assert [s.value for s in EventStatus] == ["active", "spent", "deleted"]
