"""Integration tests for database connection and schema."""

import asyncio
import os
import tempfile

import pytest

from changeledger.db.connection import Database


class TestDatabaseConnection:
    async def test_connect_creates_tables(self):
        """Database.connect creates update_events and entity_state tables."""
        db = await Database.connect(":memory:")
        try:
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            table_names = {row["name"] for row in rows}
            assert "update_events" in table_names
            assert "entity_state" in table_names
        finally:
            await db.close()

    async def test_wal_mode_on_file_database(self):
        """File-based database uses WAL journal mode."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "test.db")
            db = await Database.connect(path)
            try:
                row = await db.fetchone("PRAGMA journal_mode")
                assert row is not None
                assert row["journal_mode"] == "wal"
            finally:
                await db.close()

    async def test_schema_idempotent(self):
        """Calling _ensure_schema twice does not error."""
        db = await Database.connect(":memory:")
        try:
            await db._ensure_schema()
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='index' AND name LIKE 'idx_update_events%'"
            )
            assert len(rows) == 2
        finally:
            await db.close()

    async def test_data_persists_across_connections(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "test.db")
            db = await Database.connect(path)
            await db.execute(
                "INSERT INTO update_events (entity_type, year, number, update_type, occurred_at) "
                "VALUES ('calendar', 2024, 1, 'published', '2024-03-01T10:00:00.000000+00:00')"
            )
            await db.close()

            db = await Database.connect(path)
            try:
                row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
                assert row["cnt"] == 1
            finally:
                await db.close()


class TestTransactions:
    INSERT = (
        "INSERT INTO update_events (entity_type, year, number, update_type, occurred_at) "
        "VALUES ('calendar', 2024, ?, 'published', '2024-03-01T10:00:00.000000+00:00')"
    )

    async def test_commits_on_exit(self, db):
        async with db.transaction():
            await db.execute(self.INSERT, (1,))
            await db.execute(self.INSERT, (2,))
        row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
        assert row["cnt"] == 2

    async def test_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            async with db.transaction():
                await db.execute(self.INSERT, (1,))
                raise RuntimeError("boom")
        row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
        assert row["cnt"] == 0

    async def test_nested_joins_outer(self, db):
        with pytest.raises(RuntimeError):
            async with db.transaction():
                async with db.transaction():
                    await db.execute(self.INSERT, (1,))
                raise RuntimeError("boom")
        row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
        assert row["cnt"] == 0

    async def test_concurrent_read_never_sees_uncommitted_rows(self, db):
        inserted = asyncio.Event()

        async def failing_import():
            async with db.transaction():
                await db.execute(self.INSERT, (1,))
                inserted.set()
                await asyncio.sleep(0.05)
                raise RuntimeError("abort import")

        async def reader():
            await inserted.wait()
            row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
            return row["cnt"]

        import_result, seen = await asyncio.gather(
            failing_import(), reader(), return_exceptions=True
        )
        assert isinstance(import_result, RuntimeError)
        assert seen == 0

    async def test_concurrent_read_sees_whole_committed_batch(self, db):
        inserted = asyncio.Event()

        async def importer():
            async with db.transaction():
                await db.execute(self.INSERT, (1,))
                inserted.set()
                await asyncio.sleep(0.05)
                await db.execute(self.INSERT, (2,))

        async def reader():
            await inserted.wait()
            row = await db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
            return row["cnt"]

        _, seen = await asyncio.gather(importer(), reader())
        assert seen == 2
