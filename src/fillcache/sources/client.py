"""Abstract fill source interface.

The query evaluator depends only on this contract, keeping exchange and
storage details isolated in the concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Self

from fillcache.models import Fill


class FillSource(ABC):
    """Abstract base class for fill sources consulted on cache misses."""

    async def connect(self) -> None:
        """Acquire resources (connections, market metadata). No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    @abstractmethod
    async def fetch_fills(self, window_start: int, window_end: int) -> list[Fill]:
        """Return every fill with ``window_start <= time < window_end``.

        Times are Unix seconds. The evaluator always asks for one whole
        hour. Errors propagate to the caller; sources own their own retry
        and timeout policy.
        """
        ...

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
