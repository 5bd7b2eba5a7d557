"""Async Postgres pool backing check-in persistence"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from goalmate.config import DATABASE_URL

logger = logging.getLogger(__name__)

# One user per process, so a small pool is enough
POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 4


class Database:
    """Owns the connection pool; open it with init_pool() before use"""

    def __init__(self, connection_string: str = DATABASE_URL):
        self.connection_string = connection_string
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def init_pool(self) -> None:
        logger.info(f"Opening check-in database pool (max {POOL_MAX_SIZE} connections)")
        pool = AsyncConnectionPool(
            self.connection_string,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            open=False
        )
        await pool.open()
        self._pool = pool

    async def close_pool(self) -> None:
        if self._pool is None:
            return
        logger.info("Closing check-in database pool")
        await self._pool.close()
        self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[psycopg.AsyncConnection]:
        """Borrow a pooled connection with dict rows"""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn


db = Database()
