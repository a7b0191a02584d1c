"""Bounded, recency-ordered cache of hourly fill buckets."""

from fillcache.cache.bucket_cache import Bucket, BucketCache

__all__ = ["Bucket", "BucketCache"]
