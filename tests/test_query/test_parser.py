"""Tests for query parsing and result rendering."""

from decimal import Decimal

import pytest

from fillcache.exceptions import MalformedQuery, QueryError, UnknownQueryType
from fillcache.models import QueryType
from fillcache.query.parser import format_result, parse_query


class TestParseQuery:
    def test_valid_query(self) -> None:
        query = parse_query("B 0 3600")
        assert query.query_type is QueryType.BUYS
        assert query.start_time == 0
        assert query.end_time == 3600

    def test_extra_whitespace_and_newline(self) -> None:
        query = parse_query("  V\t100   200\n")
        assert query.query_type is QueryType.VOLUME
        assert (query.start_time, query.end_time) == (100, 200)

    @pytest.mark.parametrize("raw", ["", "B", "B 0", "B 0 1 2"])
    def test_wrong_token_count(self, raw: str) -> None:
        with pytest.raises(MalformedQuery) as exc_info:
            parse_query(raw)
        assert exc_info.value.component == "query"

    def test_bad_start_time(self) -> None:
        with pytest.raises(MalformedQuery) as exc_info:
            parse_query("B abc 10")
        assert exc_info.value.component == "start_time"

    def test_bad_end_time(self) -> None:
        with pytest.raises(MalformedQuery) as exc_info:
            parse_query("B 10 1.5")
        assert exc_info.value.component == "end_time"

    def test_underscore_integer_rejected(self) -> None:
        with pytest.raises(MalformedQuery):
            parse_query("B 1_000 2000")

    def test_signed_integers(self) -> None:
        query = parse_query("C -10 +20")
        assert (query.start_time, query.end_time) == (-10, 20)

    def test_unknown_type(self) -> None:
        with pytest.raises(UnknownQueryType) as exc_info:
            parse_query("X 0 10")
        assert exc_info.value.component == "type"
        assert exc_info.value.query_type == "X"

    def test_lowercase_type_is_unknown(self) -> None:
        with pytest.raises(UnknownQueryType):
            parse_query("b 0 10")

    def test_errors_share_base(self) -> None:
        with pytest.raises(QueryError):
            parse_query("Z 0 10")


class TestFormatResult:
    def test_integer(self) -> None:
        assert format_result(7) == "7"

    def test_decimal_keeps_scale(self) -> None:
        assert format_result(Decimal("25.00")) == "25.00"

    def test_decimal_never_scientific(self) -> None:
        assert format_result(Decimal("1E+3")) == "1000"
        assert format_result(Decimal("0E-8")) == "0.00000000"

    def test_zero(self) -> None:
        assert format_result(Decimal("0")) == "0"
