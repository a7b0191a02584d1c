"""SQLite-backed fill store usable as a fill source.

CRITICAL: quantity and price are stored as TEXT and restored as Decimal on read.
"""

from collections.abc import Iterable
from decimal import Decimal

from fillcache.logging import get_logger
from fillcache.models import Direction, Fill
from fillcache.sources.client import FillSource
from fillcache.sources.database import FillDatabase

logger = get_logger(__name__)


class FillStore(FillSource):
    """Typed read/write access to recorded fills.

    Serves hour windows on cache misses, which makes a recorded session
    replayable offline. The store connects its database on ``connect()``
    unless it is already connected.
    """

    def __init__(self, database: FillDatabase) -> None:
        self._database = database

    async def connect(self) -> None:
        if not self._database.is_connected:
            await self._database.connect()

    async def close(self) -> None:
        await self._database.close()

    async def insert_fills(self, fills: Iterable[Fill]) -> int:
        """Append fill records, keeping repeats of the same sequence number.

        Every record is kept because volume sums each fill record, so a
        replayed window must match what the upstream delivered.
        Returns the number of inserted rows.
        """
        inserted = await self._insert_rows(fills)
        await self._database.db.commit()
        logger.debug("inserted_fills", inserted=inserted)
        return inserted

    async def replace_window(
        self, window_start: int, window_end: int, fills: Iterable[Fill]
    ) -> int:
        """Replace every recorded fill in ``[window_start, window_end)`` in one transaction.

        Re-recording a window (e.g. after the cache evicted and re-fetched
        it) overwrites the earlier copy instead of duplicating it.
        Returns the number of inserted rows.
        """
        await self._database.db.execute(
            "DELETE FROM fills WHERE time >= ? AND time < ?",
            (window_start, window_end),
        )
        inserted = await self._insert_rows(
            f for f in fills if window_start <= f.time < window_end
        )
        await self._database.db.commit()
        logger.debug(
            "window_replaced",
            window_start=window_start,
            window_end=window_end,
            inserted=inserted,
        )
        return inserted

    async def _insert_rows(self, fills: Iterable[Fill]) -> int:
        data = [
            (
                fill.sequence_number,
                int(fill.direction),
                str(fill.quantity),
                str(fill.price),
                fill.time,
            )
            for fill in fills
        ]
        if not data:
            return 0

        await self._database.db.executemany(
            "INSERT INTO fills "
            "(sequence_number, direction, quantity, price, time) "
            "VALUES (?, ?, ?, ?, ?)",
            data,
        )
        return len(data)

    async def fetch_fills(self, window_start: int, window_end: int) -> list[Fill]:
        """Return recorded fills with ``window_start <= time < window_end`` in time order."""
        cursor = await self._database.db.execute(
            "SELECT sequence_number, direction, quantity, price, time FROM fills "
            "WHERE time >= ? AND time < ? ORDER BY time, rowid",
            (window_start, window_end),
        )
        rows = await cursor.fetchall()
        return [
            Fill(
                sequence_number=row[0],
                direction=Direction.from_sign(row[1]),
                quantity=Decimal(row[2]),
                price=Decimal(row[3]),
                time=row[4],
            )
            for row in rows
        ]

    async def count_fills(self) -> int:
        cursor = await self._database.db.execute("SELECT COUNT(*) FROM fills")
        row = await cursor.fetchone()
        return row[0] if row else 0


class RecordingFillSource(FillSource):
    """Fetches from an upstream source and records the result in a FillStore.

    A window is returned only after it has been written, so a failed write
    fails the fetch. Each window replaces any earlier recording of it, and
    repeated fill records are kept so replayed volumes match live ones.
    """

    def __init__(self, upstream: FillSource, store: FillStore) -> None:
        self._upstream = upstream
        self._store = store

    async def connect(self) -> None:
        await self._store.connect()
        await self._upstream.connect()

    async def close(self) -> None:
        try:
            await self._upstream.close()
        finally:
            await self._store.close()

    async def fetch_fills(self, window_start: int, window_end: int) -> list[Fill]:
        fills = await self._upstream.fetch_fills(window_start, window_end)
        inserted = await self._store.replace_window(window_start, window_end, fills)
        logger.debug(
            "window_recorded",
            window_start=window_start,
            fills=len(fills),
            inserted=inserted,
        )
        return fills
