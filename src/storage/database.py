"""
asyncpg pool shared by every repository.

Sessions run with ``timezone=UTC`` so ``timestamptz`` values come back
aware and comparable with the waterlines the timeline API hands out.
Repositories call the ``execute``/``fetch*`` helpers for single
statements and ``transaction()`` when several writes must land together
(timeline rebuild).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import asyncpg

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

APPLICATION_NAME = "pin-timeline"


class Database:
    """
    Owner of the connection pool.

    Usage:
        db = Database()
        await db.connect()
        pins = await db.fetch("SELECT * FROM pins WHERE account_id = $1", account_id)
        await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        settings = get_settings()
        self._dsn = database_url or str(settings.database_url)
        self._pool_bounds = (
            min_size or settings.db_pool_min_size,
            max_size or settings.db_pool_max_size,
        )
        self._command_timeout = settings.db_command_timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Open the pool. Connection errors are logged and re-raised."""
        min_size, max_size = self._pool_bounds
        try:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=min_size,
                max_size=max_size,
                command_timeout=self._command_timeout,
                server_settings={
                    "application_name": APPLICATION_NAME,
                    "timezone": "UTC",
                },
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"Could not open PostgreSQL pool: {e}")
            raise
        logger.info(f"PostgreSQL pool ready ({min_size}-{max_size} connections)")

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("PostgreSQL pool closed")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Yield a connection inside a transaction.

        Repository methods accept this connection as ``conn=``:

            async with db.transaction() as conn:
                await timeline.delete_by_author(account_id, conn=conn)
                await timeline.insert_entries(entries, conn=conn)

        The transaction rolls back if the block raises.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Run a write and return its status tag (``INSERT 0 3``, ``DELETE 1``)."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """Return True when ``SELECT 1`` succeeds."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return False


def affected_rows(status: str) -> int:
    """Row count from a status tag: ``"DELETE 3"`` -> 3, ``"INSERT 0 2"`` -> 2."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError):
        return 0


_database: Database | None = None


async def get_database() -> Database:
    """Return the process-wide Database, connecting it on first use."""
    global _database

    if _database is None:
        _database = Database()
        await _database.connect()

    return _database


async def close_database() -> None:
    global _database

    if _database is not None:
        await _database.close()
        _database = None
