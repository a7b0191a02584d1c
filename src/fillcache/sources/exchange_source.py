"""Exchange public trade history as a fill source, via ccxt async.

Pages forward through ``fetch_trades`` for one symbol across the requested
window, retrying each page with exponential backoff.

Implementation notes:
- ccxt timestamps are milliseconds; fill times are whole seconds (floored)
- ``until`` bounds each page request so pages never run past the window
- the window ends on an empty page or when a page adds nothing past the cursor
- a full page inside one millisecond is logged and skipped past (time paging limit)
- trade ids must be integers since they become fill sequence numbers
"""

import asyncio
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

import ccxt.async_support as ccxt_async

from fillcache.config import ExchangeSettings, SourceSettings
from fillcache.exceptions import FillConversionError
from fillcache.logging import get_logger
from fillcache.models import Direction, Fill
from fillcache.sources.client import FillSource

logger = get_logger(__name__)


def trade_to_fill(trade: dict) -> Fill:
    """Convert a ccxt unified trade dict into a Fill.

    Raises:
        FillConversionError: Missing fields, non-integer id or unknown side.
    """
    try:
        return Fill(
            sequence_number=int(str(trade["id"])),
            direction=Direction.from_side(trade["side"]),
            quantity=Decimal(str(trade["amount"])),
            price=Decimal(str(trade["price"])),
            time=int(trade["timestamp"]) // 1000,
        )
    except (KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise FillConversionError(f"Cannot convert trade {trade.get('id')!r}: {e}") from e


class ExchangeFillSource(FillSource):
    """Fetches public trades for one symbol from a ccxt exchange.

    Usage:
        async with ExchangeFillSource(exchange_settings, source_settings) as source:
            fills = await source.fetch_fills(1700000000, 1700003600)

    Args:
        exchange_settings: Exchange id, symbol and credentials.
        source_settings: Page size and retry policy.
        exchange: Pre-built ccxt exchange (tests inject mocks here).
    """

    def __init__(
        self,
        exchange_settings: ExchangeSettings,
        source_settings: SourceSettings,
        exchange: Any | None = None,
    ) -> None:
        self._exchange_settings = exchange_settings
        self._settings = source_settings
        self._exchange = exchange if exchange is not None else self._build_exchange()

    def _build_exchange(self) -> Any:
        exchange_class = getattr(ccxt_async, self._exchange_settings.exchange_id)
        config: dict = {"enableRateLimit": True}
        api_key = self._exchange_settings.api_key.get_secret_value()
        if api_key:
            config["apiKey"] = api_key
            config["secret"] = self._exchange_settings.api_secret.get_secret_value()
        exchange = exchange_class(config)
        if self._exchange_settings.sandbox:
            exchange.set_sandbox_mode(True)
        return exchange

    @property
    def symbol(self) -> str:
        return self._exchange_settings.symbol

    async def connect(self) -> None:
        """Load markets so symbol lookups resolve."""
        logger.info(
            "connecting_to_exchange",
            exchange=self._exchange_settings.exchange_id,
            symbol=self.symbol,
        )
        markets = await self._fetch_with_retry(self._exchange.load_markets)
        logger.info("exchange_connected", market_count=len(markets))

    async def close(self) -> None:
        """Clean up ccxt async resources. Must be called to avoid leaking sessions."""
        await self._exchange.close()
        logger.info("exchange_connection_closed")

    async def fetch_fills(self, window_start: int, window_end: int) -> list[Fill]:
        """Page forward through public trades in ``[window_start, window_end)``."""
        since_ms = window_start * 1000
        until_ms = window_end * 1000
        limit = self._settings.page_limit
        fills: list[Fill] = []
        page_seen: set[int] = set()
        cursor = since_ms
        pages = 0

        while cursor < until_ms:
            batch = await self._fetch_with_retry(
                self._exchange.fetch_trades,
                self.symbol,
                since=cursor,
                limit=limit,
                params={"until": until_ms - 1},
            )
            pages += 1
            if not batch:
                break

            for trade in batch:
                fill = trade_to_fill(trade)
                # Page overlap repeats, not distinct fill records
                if fill.sequence_number in page_seen:
                    continue
                if window_start <= fill.time < window_end:
                    page_seen.add(fill.sequence_number)
                    fills.append(fill)

            # Exchanges may cap pages below ``limit``, so a short page does not
            # end the window; only an empty page or a stalled cursor does.
            newest_ms = max(int(t["timestamp"]) for t in batch)
            if newest_ms > cursor:
                # Trades sharing newest_ms may straddle pages, so re-request that ms
                cursor = newest_ms
            elif newest_ms == cursor and len(batch) >= limit:
                # A full page inside one millisecond cannot be paged by time
                logger.warning(
                    "page_truncated_at_millisecond",
                    symbol=self.symbol,
                    timestamp_ms=cursor,
                    page_limit=limit,
                )
                cursor += 1
            else:
                break

            await asyncio.sleep(self._settings.fetch_batch_delay)

        logger.debug(
            "exchange_window_fetched",
            symbol=self.symbol,
            window_start=window_start,
            fills=len(fills),
            pages=pages,
        )
        return fills

    async def _fetch_with_retry(
        self, fetch_fn: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """Execute a fetch function with exponential backoff retry.

        Delays grow as base, 2x, 4x, ... and are tripled for rate limit
        errors. Re-raises on final failure.
        """
        max_retries = max(self._settings.max_retries, 1)
        base_delay = self._settings.retry_base_delay

        for attempt in range(max_retries):
            try:
                return await fetch_fn(*args, **kwargs)
            except Exception as e:
                if attempt == max_retries - 1:
                    logger.error(
                        "fetch_failed_permanently",
                        error=str(e),
                        attempts=max_retries,
                    )
                    raise

                delay = base_delay * (2**attempt)

                if isinstance(e, ccxt_async.RateLimitExceeded):
                    delay *= 3
                    logger.warning(
                        "rate_limit_exceeded",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                    )
                else:
                    logger.warning(
                        "fetch_retry",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        delay=delay,
                        error=str(e),
                    )

                await asyncio.sleep(delay)

        raise AssertionError("unreachable")
