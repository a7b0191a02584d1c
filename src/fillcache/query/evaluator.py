"""Read-through range query evaluator over the hourly bucket cache.

Each query touches at most two hour buckets: the hour containing its start
and the hour containing its end. Buckets are served from the BucketCache or
fetched from the FillSource on a miss and stored for later queries, so
repeated queries into the same hour cost no further fetches.

Range policy: a fill matches when ``start_time < fill.time <= end_time``.

Counting queries (B/S/C) count each sequence number once. Volume (V) sums
``quantity * price`` over every matching fill record, duplicates included.
This split is the established output contract; changing it would change
reported volumes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from fillcache.cache.bucket_cache import Bucket, BucketCache
from fillcache.exceptions import FetchFailed, FillCacheError
from fillcache.logging import get_logger
from fillcache.models import HOUR_SECONDS, CacheStats, Direction, Fill, Query, QueryType
from fillcache.query.parser import parse_query
from fillcache.sources.client import FillSource

logger = get_logger(__name__)


@dataclass
class QueryCounters:
    """Per-evaluator session counters."""

    hits: int = 0
    misses: int = 0  # one per source fetch
    queries: int = 0
    failures: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Fraction of bucket lookups served from cache (0.0 before any lookup)."""
        if self.lookups == 0:
            return 0.0
        return self.hits / self.lookups


@dataclass(frozen=True)
class FillAggregate:
    """Aggregates over the fills matching one query range."""

    buys: int
    sells: int
    volume: Decimal

    @property
    def count(self) -> int:
        return self.buys + self.sells

    def value_for(self, query_type: QueryType) -> int | Decimal:
        """Select the aggregate a query type asks for."""
        if query_type is QueryType.BUYS:
            return self.buys
        if query_type is QueryType.SELLS:
            return self.sells
        if query_type is QueryType.COUNT:
            return self.count
        return self.volume


def aggregate_fills(fills: Iterable[Fill], start_time: int, end_time: int) -> FillAggregate:
    """Filter fills to (start_time, end_time] and aggregate them.

    The first fill seen for a sequence number is the one counted as a buy
    or sell; later fills with the same sequence number are skipped for
    counting but still contribute to volume.

    Args:
        fills: Candidate fills, in bucket order.
        start_time: Exclusive lower bound (Unix seconds).
        end_time: Inclusive upper bound (Unix seconds).
    """
    buys = 0
    sells = 0
    volume = Decimal("0")
    seen: set[int] = set()

    for fill in fills:
        if not start_time < fill.time <= end_time:
            continue
        if fill.sequence_number not in seen:
            seen.add(fill.sequence_number)
            if fill.direction is Direction.BUY:
                buys += 1
            else:
                sells += 1
        volume += fill.notional

    return FillAggregate(buys=buys, sells=sells, volume=volume)


class QueryEvaluator:
    """Parses queries, resolves their hour buckets and computes aggregates.

    Owns its cache and counters; nothing is shared at module level.
    Queries are processed one at a time by a single task.

    Args:
        source: Fill source consulted on cache misses.
        cache: Bucket cache to read through (a new 168-hour cache if omitted).
    """

    def __init__(self, source: FillSource, cache: BucketCache | None = None) -> None:
        self._source = source
        self._cache = cache if cache is not None else BucketCache()
        self._counters = QueryCounters()

    @property
    def cache(self) -> BucketCache:
        return self._cache

    @property
    def counters(self) -> QueryCounters:
        return self._counters

    def stats(self) -> CacheStats:
        return self._cache.size_stats()

    async def process_query(self, raw: str) -> int | Decimal:
        """Parse and evaluate one query line.

        Parsing finishes before any cache access, so a malformed query
        leaves the cache untouched.

        Raises:
            MalformedQuery: Bad token count or timestamp.
            UnknownQueryType: Type not in {B, S, C, V}.
            FetchFailed: The fill source failed on a cache miss.
        """
        logger.debug("processing_query", query=raw.strip())
        try:
            query = parse_query(raw)
            result = await self.evaluate(query)
        except FillCacheError:
            self._counters.failures += 1
            raise

        self._counters.queries += 1
        return result

    async def evaluate(self, query: Query) -> int | Decimal:
        """Evaluate an already parsed query."""
        start_hour = query.start_hour
        end_hour = query.end_hour

        fills: list[Fill] = list(await self._resolve_bucket(start_hour))
        if end_hour != start_hour:
            fills.extend(await self._resolve_bucket(end_hour))

        aggregate = aggregate_fills(fills, query.start_time, query.end_time)
        return aggregate.value_for(query.query_type)

    async def _resolve_bucket(self, hour_start: int) -> Bucket:
        """Serve an hour bucket from cache, fetching and storing it on a miss."""
        bucket = self._cache.get(hour_start)
        if bucket is not None:
            logger.debug("cache_hit", hour_start=hour_start)
            self._counters.hits += 1
            return bucket

        logger.debug("cache_miss", hour_start=hour_start)
        window_end = hour_start + HOUR_SECONDS
        try:
            fills = await self._source.fetch_fills(hour_start, window_end)
        except Exception as e:
            raise FetchFailed(hour_start, window_end) from e

        self._counters.misses += 1
        return self._cache.put(hour_start, fills)
