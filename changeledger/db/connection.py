"""Async SQLite access for the update ledger.

Writes commit as they are issued, unless they run inside transaction(),
which groups them into one commit and rolls them all back if anything in
the block raises. All requests share one connection, so other tasks wait
for an open transaction to finish before reading; they never see its
uncommitted rows.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from changeledger.db.schema import SCHEMA_SQL


class Database:
    """Single aiosqlite connection shared by every request."""

    def __init__(self, connection: aiosqlite.Connection, path: str = ":memory:") -> None:
        self._conn = connection
        self._path = path
        self._lock = asyncio.Lock()
        self._txn_owner: asyncio.Task | None = None

    @classmethod
    async def connect(
        cls, path: str = "changeledger.db", *, busy_timeout_ms: int = 5000
    ) -> "Database":
        """Open the ledger at `path` in WAL mode and create the schema if missing."""
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        db = cls(conn, path)
        await db._ensure_schema()
        return db

    @property
    def path(self) -> str:
        return self._path

    async def _ensure_schema(self) -> None:
        """Create tables and indexes if they don't exist. Idempotent."""
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group every write issued by the current task into one commit.

        Nested use joins the outer transaction.
        """
        if self._owns_transaction():
            yield
            return
        async with self._lock:
            self._txn_owner = asyncio.current_task()
            try:
                yield
            except BaseException:
                await self._conn.rollback()
                raise
            else:
                await self._conn.commit()
            finally:
                self._txn_owner = None

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        """Execute a write. Commits at once outside a transaction."""
        if self._owns_transaction():
            return await self._conn.execute(sql, params or ())
        async with self._lock:
            cursor = await self._conn.execute(sql, params or ())
            await self._conn.commit()
            return cursor

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        async with self._committed_view():
            cursor = await self._conn.execute(sql, params or ())
            return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        async with self._committed_view():
            cursor = await self._conn.execute(sql, params or ())
            return list(await cursor.fetchall())

    async def close(self) -> None:
        await self._conn.close()

    @asynccontextmanager
    async def _committed_view(self) -> AsyncIterator[None]:
        """Reads inside the owning transaction see its own writes; others wait for it."""
        if self._owns_transaction():
            yield
            return
        async with self._lock:
            yield

    def _owns_transaction(self) -> bool:
        return self._txn_owner is not None and self._txn_owner is asyncio.current_task()
