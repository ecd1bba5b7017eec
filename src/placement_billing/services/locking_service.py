"""Run-level locking for billing generation."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from placement_billing.database import (
    STORE_ERRORS,
    StoreUnavailableError,
    acquire_advisory_lock,
    release_advisory_lock,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


def run_lock_key(year: int, month: int) -> str:
    """Lock key shared by every run for the same billing month."""
    return f"billing:{year:04d}-{month:02d}"


class BillingRunLocker:
    """Serializes batch runs for the same (year, month).

    Within one process an asyncio.Lock per month is held for the whole run.
    When an engine on PostgreSQL is supplied, a session-level advisory lock
    is also taken on a dedicated connection so runs in other processes wait
    as well. A second run simply re-derives and overwrites the same lines.
    """

    def __init__(self, engine: AsyncEngine | None = None):
        self.engine = engine
        self._locks: dict[tuple[int, int], asyncio.Lock] = {}

    def _lock_for(self, year: int, month: int) -> asyncio.Lock:
        key = (year, month)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def is_locked(self, year: int, month: int) -> bool:
        lock = self._locks.get((year, month))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, year: int, month: int) -> AsyncIterator[None]:
        """Hold the run lock for (year, month) until the block exits."""
        key = run_lock_key(year, month)
        lock = self._lock_for(year, month)
        if lock.locked():
            logger.info("Waiting for in-flight billing run %s", key)

        async with lock:
            if self.engine is None or self.engine.dialect.name != "postgresql":
                yield
                return

            conn = None
            try:
                conn = await self.engine.connect()
                await acquire_advisory_lock(conn, key)
            except STORE_ERRORS as exc:
                if conn is not None:
                    await conn.close()
                raise StoreUnavailableError("acquire_run_lock", str(exc)) from exc

            try:
                yield
            finally:
                try:
                    await release_advisory_lock(conn, key)
                except STORE_ERRORS:
                    # Session-level locks are dropped with the connection anyway
                    logger.warning("Could not release run lock %s", key, exc_info=True)
                finally:
                    await conn.close()
