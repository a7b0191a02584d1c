"""Entry point for the hourly fill cache.

Reads ``TYPE START END`` queries from stdin, one per line, and prints one
result per query to stdout. Logs go to stderr.

Component wiring order (in build_source / run):
1. AppSettings (configuration)
2. Logging setup
3. FillSource (exchange, database replay, or exchange recorded to database)
4. BucketCache (sized from CACHE_CAPACITY)
5. QueryEvaluator
6. QuerySession (stdin loop)
"""

import asyncio
import sys

from fillcache.cache.bucket_cache import BucketCache
from fillcache.config import AppSettings
from fillcache.logging import get_logger, setup_logging
from fillcache.query.evaluator import QueryEvaluator
from fillcache.session import QuerySession
from fillcache.sources.client import FillSource
from fillcache.sources.database import FillDatabase
from fillcache.sources.exchange_source import ExchangeFillSource
from fillcache.sources.store import FillStore, RecordingFillSource


def build_source(settings: AppSettings) -> FillSource:
    """Create the fill source selected by SOURCE_KIND / SOURCE_RECORD.

    Does NOT connect it; the caller owns the source lifecycle.
    """
    if settings.source.kind == "database":
        return FillStore(FillDatabase(settings.source.db_path))

    exchange_source = ExchangeFillSource(settings.exchange, settings.source)
    if settings.source.record:
        return RecordingFillSource(
            exchange_source, FillStore(FillDatabase(settings.source.db_path))
        )
    return exchange_source


async def run(settings: AppSettings | None = None) -> None:
    """Run a query session over stdin with the configured source."""
    # 1. Load settings
    settings = settings if settings is not None else AppSettings()

    # 2. Setup logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("fillcache.main")

    # 3-6. Build components
    source = build_source(settings)
    cache = BucketCache(settings.cache.capacity)
    evaluator = QueryEvaluator(source, cache)
    session = QuerySession(evaluator, stop_on_error=settings.session.stop_on_error)

    logger.info(
        "fillcache_starting",
        source=settings.source.kind,
        record=settings.source.record,
        capacity=settings.cache.capacity,
    )

    async with source:
        await session.run(sys.stdin)

    logger.info("fillcache_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
