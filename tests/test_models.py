"""Tests for shared models: hour flooring, directions, fills, queries."""

from decimal import Decimal

import pytest

from fillcache.models import CacheStats, Direction, Query, QueryType, floor_to_hour


class TestFloorToHour:
    def test_exact_hour_unchanged(self) -> None:
        assert floor_to_hour(7200) == 7200

    def test_inside_hour(self) -> None:
        assert floor_to_hour(3601) == 3600
        assert floor_to_hour(7199) == 3600

    def test_zero(self) -> None:
        assert floor_to_hour(0) == 0

    def test_negative_rounds_down(self) -> None:
        """Negative timestamps floor toward minus infinity."""
        assert floor_to_hour(-1) == -3600
        assert floor_to_hour(-3600) == -3600


class TestDirection:
    def test_from_sign(self) -> None:
        assert Direction.from_sign(1) is Direction.BUY
        assert Direction.from_sign(-1) is Direction.SELL

    def test_from_side_case_insensitive(self) -> None:
        assert Direction.from_side("Buy") is Direction.BUY
        assert Direction.from_side("sell") is Direction.SELL

    def test_from_side_unknown_raises(self) -> None:
        with pytest.raises(ValueError):
            Direction.from_side("hold")

    def test_signed_value(self) -> None:
        assert int(Direction.BUY) == 1
        assert int(Direction.SELL) == -1


class TestFill:
    def test_notional_is_exact_decimal(self, make_fill) -> None:
        fill = make_fill(1, 10, quantity="0.1", price="0.2")
        assert fill.notional == Decimal("0.02")

    def test_fill_is_frozen(self, make_fill) -> None:
        fill = make_fill(1, 10)
        with pytest.raises(AttributeError):
            fill.time = 20  # type: ignore[misc]


class TestQuery:
    def test_hour_properties(self) -> None:
        query = Query(QueryType.COUNT, 3500, 3700)
        assert query.start_hour == 0
        assert query.end_hour == 3600


class TestCacheStats:
    def test_megabytes(self) -> None:
        stats = CacheStats(bucket_count=1, total_fills=2, max_fills_in_bucket=2, approx_bytes=2_500_000)
        assert stats.approx_megabytes == 2.5
