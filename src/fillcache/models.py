"""Shared data models for the hourly fill cache.

CRITICAL: quantity, price and volume values use Decimal. Never use float:
rounding error in traded-volume sums is not acceptable.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

HOUR_SECONDS = 3600


def floor_to_hour(timestamp: int) -> int:
    """Round a timestamp (seconds) down to the start of its hour."""
    return timestamp - (timestamp % HOUR_SECONDS)


class Direction(int, Enum):
    """Trade direction, stored as the signed sign used by fill feeds."""

    BUY = 1
    SELL = -1

    @classmethod
    def from_sign(cls, sign: int) -> "Direction":
        """Map a positive sign to BUY and anything else to SELL."""
        return cls.BUY if sign > 0 else cls.SELL

    @classmethod
    def from_side(cls, side: str) -> "Direction":
        """Map a ccxt-style side string ("buy"/"sell") to a Direction."""
        normalized = side.strip().lower()
        if normalized == "buy":
            return cls.BUY
        if normalized == "sell":
            return cls.SELL
        raise ValueError(f"Unknown trade side: {side!r}")


@dataclass(frozen=True, slots=True)
class Fill:
    """A single recorded trade event.

    ``sequence_number`` identifies the logical trade. The same trade may be
    reported more than once, so counting queries deduplicate on it.
    """

    sequence_number: int
    direction: Direction
    quantity: Decimal
    price: Decimal
    time: int  # Unix seconds

    @property
    def notional(self) -> Decimal:
        """Traded value of this fill: quantity * price."""
        return self.quantity * self.price


class QueryType(str, Enum):
    """Aggregate requested by a query."""

    BUYS = "B"
    SELLS = "S"
    COUNT = "C"
    VOLUME = "V"


@dataclass(frozen=True)
class Query:
    """A parsed range query over (start_time, end_time]."""

    query_type: QueryType
    start_time: int
    end_time: int

    @property
    def start_hour(self) -> int:
        return floor_to_hour(self.start_time)

    @property
    def end_hour(self) -> int:
        return floor_to_hour(self.end_time)


@dataclass(frozen=True)
class CacheStats:
    """Read-only snapshot of bucket cache occupancy."""

    bucket_count: int
    total_fills: int
    max_fills_in_bucket: int
    approx_bytes: int

    @property
    def approx_megabytes(self) -> float:
        return self.approx_bytes / 1_000_000
