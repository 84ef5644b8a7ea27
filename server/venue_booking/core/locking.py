"""Per-venue serialization for booking check-then-write sequences."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class VenueLockRegistry:
    """
    Serializes booking mutations per venue.

    Holds an in-process asyncio lock per venue and, on PostgreSQL, a
    transaction-scoped advisory lock so that other processes are serialized
    as well. The advisory lock is released when the surrounding transaction
    commits or rolls back, so callers must finish their transaction inside
    the ``hold`` block.

    A venue's lock is dropped once no request holds or waits on it.
    """

    def __init__(self) -> None:
        # venue_id -> (lock, number of holders and waiters)
        self._locks: dict[UUID, tuple[asyncio.Lock, int]] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _acquire_slot(self, venue_id: UUID) -> asyncio.Lock:
        lock, users = self._locks.get(venue_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[venue_id] = (lock, users + 1)
        return lock

    def _release_slot(self, venue_id: UUID) -> None:
        lock, users = self._locks[venue_id]
        if users == 1:
            del self._locks[venue_id]
        else:
            self._locks[venue_id] = (lock, users - 1)

    @asynccontextmanager
    async def hold(self, db: AsyncSession, venue_id: UUID) -> AsyncIterator[None]:
        """Acquire the venue's locks for the duration of the block."""
        lock = self._acquire_slot(venue_id)
        try:
            async with lock:
                if db.bind is not None and db.bind.dialect.name == "postgresql":
                    await db.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:lock_key))"),
                        {"lock_key": f"venue:{venue_id}"}
                    )

                logger.debug(
                    "Acquired venue lock",
                    extra={"venue_id": str(venue_id)}
                )

                yield
        finally:
            self._release_slot(venue_id)
