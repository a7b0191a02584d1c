"""Tests for the line-oriented QuerySession and cache reporting."""

import io

import pytest

from fillcache.exceptions import FetchFailed, MalformedQuery
from fillcache.models import CacheStats, Direction
from fillcache.query.evaluator import QueryEvaluator
from fillcache.session import QuerySession, format_cache_report


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def session(fake_source, output, make_fill) -> QuerySession:
    fake_source.fills = [
        make_fill(1, 100, Direction.BUY, quantity="2", price="10"),
        make_fill(2, 200, Direction.SELL, quantity="1", price="5"),
        make_fill(3, 3601, Direction.BUY),
    ]
    return QuerySession(QueryEvaluator(fake_source), output=output)


class TestQuerySession:
    @pytest.mark.asyncio
    async def test_writes_one_line_per_query(self, session, output) -> None:
        await session.run(["B 0 3600\n", "S 0 3600\n", "C 0 3600\n", "V 0 3600\n"])
        assert output.getvalue() == "1\n1\n2\n25\n"

    @pytest.mark.asyncio
    async def test_skips_blank_lines(self, session, output) -> None:
        await session.run(["\n", "   \n", "B 0 3600\n"])
        assert output.getvalue() == "1\n"

    @pytest.mark.asyncio
    async def test_failed_query_is_skipped(self, session, output) -> None:
        await session.run(["B 0\n", "X 0 10\n", "C 0 3600\n"])
        assert output.getvalue() == "2\n"

    @pytest.mark.asyncio
    async def test_stop_on_error_propagates(self, fake_source, output) -> None:
        session = QuerySession(QueryEvaluator(fake_source), output=output, stop_on_error=True)
        with pytest.raises(MalformedQuery):
            await session.run(["C 0 10\n", "B 0\n", "C 0 10\n"])
        assert output.getvalue() == "0\n"

    @pytest.mark.asyncio
    async def test_fetch_failure_continues(self, failing_source, output) -> None:
        session = QuerySession(QueryEvaluator(failing_source), output=output)
        assert await session.handle_line("B 0 3600") is None
        assert output.getvalue() == ""

    @pytest.mark.asyncio
    async def test_fetch_failure_stops_when_configured(self, failing_source, output) -> None:
        session = QuerySession(QueryEvaluator(failing_source), output=output, stop_on_error=True)
        with pytest.raises(FetchFailed):
            await session.handle_line("B 0 3600")

    @pytest.mark.asyncio
    async def test_accepts_async_iterable(self, session, output) -> None:
        async def lines():
            yield "B 0 3600"
            yield "V 0 3600"

        await session.run(lines())
        assert output.getvalue() == "1\n25\n"

    @pytest.mark.asyncio
    async def test_handle_line_returns_rendered_value(self, session) -> None:
        assert await session.handle_line("V 0 100") == "20"


class TestFormatCacheReport:
    def test_report_contents(self) -> None:
        stats = CacheStats(
            bucket_count=2,
            total_fills=30,
            max_fills_in_bucket=20,
            approx_bytes=1_500_000,
        )
        report = format_cache_report(stats)
        assert "Number of hours cached: 2" in report
        assert "Total fills stored: 30" in report
        assert "Maximum fills in a single hour: 20" in report
        assert "1500000 bytes (1.50 MB)" in report
