"""Fill sources consulted by the evaluator on cache misses.

Provides the abstract FillSource contract, a ccxt-backed exchange source,
and a SQLite fill store that can record and replay hour windows.
"""

from fillcache.sources.client import FillSource
from fillcache.sources.database import FillDatabase
from fillcache.sources.exchange_source import ExchangeFillSource, trade_to_fill
from fillcache.sources.store import FillStore, RecordingFillSource

__all__ = [
    "ExchangeFillSource",
    "FillDatabase",
    "FillSource",
    "FillStore",
    "RecordingFillSource",
    "trade_to_fill",
]
