"""Fixed-capacity LRU cache mapping hour-start timestamps to fill buckets.

A bucket holds every fill recorded in one hour-aligned window. Buckets are
stored as tuples and never mutated in place: a re-fetched hour replaces its
bucket wholesale. Capacity pressure is the only removal path; there is no
time-based expiry.
"""

import sys
from collections import OrderedDict
from collections.abc import Iterable

from fillcache.logging import get_logger
from fillcache.models import CacheStats, Fill

logger = get_logger(__name__)

Bucket = tuple[Fill, ...]


class BucketCache:
    """LRU cache of hourly buckets with a fixed bucket capacity.

    Entries are kept in an OrderedDict ordered from least to most recently
    used. Both ``get`` hits and ``put`` move an entry to the MRU end; an
    insert of a new key at capacity first evicts the entry at the LRU end.

    Args:
        capacity: Maximum number of buckets held (default 168, one week).
    """

    def __init__(self, capacity: int = 168) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._buckets: OrderedDict[int, Bucket] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, hour_start: object) -> bool:
        """Membership test. Does not refresh recency."""
        return hour_start in self._buckets

    def keys(self) -> list[int]:
        """Return cached hour keys ordered least to most recently used."""
        return list(self._buckets)

    def get(self, hour_start: int) -> Bucket | None:
        """Return the bucket for an hour and mark it most recently used.

        Returns None on a miss without touching cache state.
        """
        bucket = self._buckets.get(hour_start)
        if bucket is None:
            return None
        self._buckets.move_to_end(hour_start)
        return bucket

    def put(self, hour_start: int, fills: Iterable[Fill]) -> Bucket:
        """Insert or replace the bucket for an hour, marking it most recently used.

        Replacing an existing hour never evicts. Inserting a new hour at
        capacity evicts the least recently used bucket first.

        Returns:
            The stored (immutable) bucket.
        """
        bucket = tuple(fills)
        if hour_start in self._buckets:
            self._buckets[hour_start] = bucket
            self._buckets.move_to_end(hour_start)
            return bucket

        if len(self._buckets) >= self._capacity:
            evicted_hour, evicted = self._buckets.popitem(last=False)
            logger.debug(
                "bucket_evicted",
                hour_start=evicted_hour,
                fills=len(evicted),
            )

        self._buckets[hour_start] = bucket
        return bucket

    def size_stats(self) -> CacheStats:
        """Compute an occupancy snapshot without affecting recency.

        Byte counts are approximate: container overhead plus the shallow
        size of each key, bucket tuple and fill.
        """
        total_fills = 0
        max_fills = 0
        total_bytes = sys.getsizeof(self._buckets)

        for hour_start, bucket in self._buckets.items():
            total_fills += len(bucket)
            max_fills = max(max_fills, len(bucket))
            total_bytes += sys.getsizeof(hour_start)
            total_bytes += sys.getsizeof(bucket)
            total_bytes += sum(sys.getsizeof(fill) for fill in bucket)

        return CacheStats(
            bucket_count=len(self._buckets),
            total_fills=total_fills,
            max_fills_in_bucket=max_fills,
            approx_bytes=total_bytes,
        )
