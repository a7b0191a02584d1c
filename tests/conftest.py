"""Shared test fixtures for the hourly fill cache."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from fillcache.config import AppSettings, CacheSettings, ExchangeSettings, SourceSettings
from fillcache.models import Direction, Fill


def _make_fill(
    seq: int,
    time: int,
    direction: Direction = Direction.BUY,
    quantity: str = "1",
    price: str = "100",
) -> Fill:
    """Build a Fill with Decimal quantity/price from string literals."""
    return Fill(
        sequence_number=seq,
        direction=direction,
        quantity=Decimal(quantity),
        price=Decimal(price),
        time=time,
    )


class FakeFillSource:
    """In-memory fill source that records every window it is asked for."""

    def __init__(self, fills: list[Fill] | None = None) -> None:
        self.fills = list(fills or [])
        self.calls: list[tuple[int, int]] = []

    async def fetch_fills(self, window_start: int, window_end: int) -> list[Fill]:
        self.calls.append((window_start, window_end))
        return [f for f in self.fills if window_start <= f.time < window_end]


@pytest.fixture
def make_fill():
    """Factory building Fills from string quantity/price literals."""
    return _make_fill


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (fast retries, small pages)."""
    return AppSettings(
        log_level="DEBUG",
        cache=CacheSettings(capacity=168),
        source=SourceSettings(
            kind="exchange",
            page_limit=3,
            max_retries=3,
            retry_base_delay=0.0,
            fetch_batch_delay=0.0,
        ),
        exchange=ExchangeSettings(exchange_id="binance", symbol="BTC/USDT"),
    )


@pytest.fixture
def fake_source() -> FakeFillSource:
    """Empty in-memory fill source; tests append to ``fake_source.fills``."""
    return FakeFillSource()


@pytest.fixture
def failing_source() -> AsyncMock:
    """Fill source whose fetch always raises."""
    source = AsyncMock()
    source.fetch_fills = AsyncMock(side_effect=ConnectionError("upstream down"))
    return source
