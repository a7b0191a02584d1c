"""Line-oriented query session.

Feeds query lines to a QueryEvaluator one at a time, writes one result
line per successful query, and reports cache statistics when the input
is exhausted.
"""

import sys
from collections.abc import AsyncIterable, Iterable
from typing import TextIO

from fillcache.exceptions import FillCacheError
from fillcache.logging import get_logger
from fillcache.models import CacheStats
from fillcache.query.evaluator import QueryEvaluator
from fillcache.query.parser import format_result

logger = get_logger(__name__)


def format_cache_report(stats: CacheStats) -> str:
    """Render a cache statistics snapshot as a human-readable block."""
    return (
        "Cache Statistics:\n"
        f"    Number of hours cached: {stats.bucket_count}\n"
        f"    Total fills stored: {stats.total_fills}\n"
        f"    Maximum fills in a single hour: {stats.max_fills_in_bucket}\n"
        f"    Approximate memory usage: {stats.approx_bytes} bytes "
        f"({stats.approx_megabytes:.2f} MB)"
    )


class QuerySession:
    """Runs queries from a line source through an evaluator.

    Failed queries are logged and skipped unless ``stop_on_error`` is set,
    in which case the error propagates and ends the session.

    Args:
        evaluator: The query evaluator (owns cache and counters).
        output: Stream receiving one result line per query (stdout by default).
        stop_on_error: Re-raise the first query failure instead of continuing.
    """

    def __init__(
        self,
        evaluator: QueryEvaluator,
        output: TextIO | None = None,
        stop_on_error: bool = False,
    ) -> None:
        self._evaluator = evaluator
        self._output = output if output is not None else sys.stdout
        self._stop_on_error = stop_on_error

    async def handle_line(self, line: str) -> str | None:
        """Process one input line, returning the rendered result.

        Returns None for blank lines and for failed queries when
        failures are not fatal.
        """
        if not line.strip():
            return None

        try:
            value = await self._evaluator.process_query(line)
        except FillCacheError as e:
            logger.warning(
                "query_failed",
                query=line.strip(),
                error=str(e),
                error_type=type(e).__name__,
                cause=repr(e.__cause__) if e.__cause__ is not None else None,
            )
            if self._stop_on_error:
                raise
            return None

        rendered = format_result(value)
        self._output.write(rendered + "\n")
        self._output.flush()
        return rendered

    async def run(self, lines: Iterable[str] | AsyncIterable[str]) -> None:
        """Process every line, then log the cache report and hit-rate summary."""
        logger.info("starting_query_processing")
        try:
            if isinstance(lines, AsyncIterable):
                async for line in lines:
                    await self.handle_line(line)
            else:
                for line in lines:
                    await self.handle_line(line)
        finally:
            self.log_summary()

    def log_summary(self) -> None:
        counters = self._evaluator.counters
        logger.info("cache_report", report=format_cache_report(self._evaluator.stats()))
        logger.info(
            "session_complete",
            queries=counters.queries,
            failures=counters.failures,
            cache_hits=counters.hits,
            api_calls=counters.misses,
            hit_rate_pct=round(counters.hit_rate * 100, 2),
        )
