"""Append-only update event store backed by SQLite.

This is the reference UpdateEvent Store. The query engine only reads from it
through fetch_events() and fetch_current_summary(); append() and append_many()
are the ingest side used by the importer.
"""

import json
from collections.abc import Sequence
from datetime import datetime

import aiosqlite

from changeledger.db.connection import Database
from changeledger.models import EntityId, UpdateEvent, UpdateSummary, UpdateType, to_utc
from changeledger.updates.timerange import TimeInterval


class UpdateEventStore:
    """Append-only ledger of update events, plus the latest summary per entity."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def append(self, event: UpdateEvent) -> int:
        """Append an event and return the assigned sequence_num.

        When the event carries a detail, the entity's current summary is
        replaced if this event is at least as recent as the stored one.
        """
        try:
            async with self._db.transaction():
                return await self._insert(event)
        except aiosqlite.Error as e:
            raise StoreUnavailableError("append") from e

    async def append_many(self, events: Sequence[UpdateEvent]) -> list[int]:
        """Append events in order as one unit. Either all are stored or none."""
        try:
            async with self._db.transaction():
                return [await self._insert(event) for event in events]
        except aiosqlite.Error as e:
            raise StoreUnavailableError("append_many") from e

    async def _insert(self, event: UpdateEvent) -> int:
        cursor = await self._db.execute(
            """
            INSERT INTO update_events
                (entity_type, year, number, update_type, occurred_at, detail)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                event.entity_id.entity_type,
                event.entity_id.year,
                event.entity_id.number,
                event.update_type.value,
                format_timestamp(event.occurred_at),
                event.detail.model_dump_json() if event.detail is not None else None,
            ),
        )
        if event.detail is not None:
            await self._db.execute(
                """
                INSERT INTO entity_state (entity_type, year, number, summary, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (entity_type, year, number) DO UPDATE SET
                    summary = excluded.summary,
                    updated_at = excluded.updated_at
                WHERE excluded.updated_at >= entity_state.updated_at
                """,
                (
                    event.entity_id.entity_type,
                    event.entity_id.year,
                    event.entity_id.number,
                    event.detail.model_dump_json(),
                    format_timestamp(event.occurred_at),
                ),
            )
        assert cursor.lastrowid is not None
        return cursor.lastrowid

    async def fetch_events(
        self,
        update_type: UpdateType,
        interval: TimeInterval,
        *,
        entity_type: str | None = None,
        entity_id: EntityId | None = None,
    ) -> list[UpdateEvent]:
        """Get matching events, unordered and unpaginated.

        Interval membership is applied with the interval's own
        inclusive/exclusive bounds.
        """
        clauses = [
            "update_type = ?",
            "occurred_at >= ?" if interval.start_inclusive else "occurred_at > ?",
            "occurred_at <= ?" if interval.end_inclusive else "occurred_at < ?",
        ]
        params: list[str | int] = [
            update_type.value,
            format_timestamp(interval.start),
            format_timestamp(interval.end),
        ]

        if entity_id is not None:
            clauses.append("entity_type = ? AND year = ? AND number = ?")
            params.extend([entity_id.entity_type, entity_id.year, entity_id.number])
        elif entity_type is not None:
            clauses.append("entity_type = ?")
            params.append(entity_type)

        sql = f"SELECT * FROM update_events WHERE {' AND '.join(clauses)}"
        try:
            rows = await self._db.fetchall(sql, tuple(params))
        except aiosqlite.Error as e:
            raise StoreUnavailableError("fetch_events") from e
        return [self._row_to_event(row) for row in rows]

    async def fetch_current_summary(self, entity_id: EntityId) -> UpdateSummary | None:
        """Latest known summary of an entity, or None if nothing was recorded."""
        try:
            row = await self._db.fetchone(
                "SELECT summary FROM entity_state "
                "WHERE entity_type = ? AND year = ? AND number = ?",
                (entity_id.entity_type, entity_id.year, entity_id.number),
            )
        except aiosqlite.Error as e:
            raise StoreUnavailableError("fetch_current_summary") from e
        if row is None:
            return None
        return UpdateSummary.model_validate_json(row["summary"])

    async def count(self) -> int:
        """Total number of stored events."""
        try:
            row = await self._db.fetchone("SELECT COUNT(*) AS cnt FROM update_events")
        except aiosqlite.Error as e:
            raise StoreUnavailableError("count") from e
        assert row is not None
        return row["cnt"]

    @staticmethod
    def _row_to_event(row) -> UpdateEvent:
        """Convert a database row to an UpdateEvent."""
        return UpdateEvent(
            entity_id=EntityId(
                entity_type=row["entity_type"],
                year=row["year"],
                number=row["number"],
            ),
            update_type=UpdateType(row["update_type"]),
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            detail=UpdateSummary.model_validate(json.loads(row["detail"]))
            if row["detail"]
            else None,
            sequence_num=row["sequence_num"],
        )


def format_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string; lexical order equals chronological order."""
    return to_utc(value).isoformat(timespec="microseconds")


class StoreUnavailableError(Exception):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Update store unavailable during {operation}")
