"""Shared test helpers."""

from datetime import UTC, datetime, timedelta
from typing import Any

from changeledger.events.store import UpdateEventStore
from changeledger.models import EntityId, UpdateEvent, UpdateSummary, UpdateType

# The fixed "now" every clock-dependent test runs against.
NOW = datetime(2024, 3, 8, 12, 0, tzinfo=UTC)

T_10 = datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
T_11 = T_10 + timedelta(hours=1)
T_12 = T_10 + timedelta(hours=2)


def make_entity_id(
    number: int = 1, year: int = 2024, entity_type: str = "calendar"
) -> EntityId:
    return EntityId(entity_type=entity_type, year=year, number=number)


def make_summary(action: str = "UPDATE", **fields: Any) -> UpdateSummary:
    return UpdateSummary(
        action=action,
        table="calendar",
        fields=fields or {"status": "active"},
        source_id="SOBI.D240301.T100000.TXT",
    )


def make_update_event(
    occurred_at: datetime = T_10,
    number: int = 1,
    year: int = 2024,
    entity_type: str = "calendar",
    update_type: UpdateType = UpdateType.PUBLISHED,
    detail: UpdateSummary | None = None,
    sequence_num: int | None = None,
) -> UpdateEvent:
    """Create an UpdateEvent for testing."""
    return UpdateEvent(
        entity_id=make_entity_id(number=number, year=year, entity_type=entity_type),
        update_type=update_type,
        occurred_at=occurred_at,
        detail=detail,
        sequence_num=sequence_num,
    )


async def seed_events(store: UpdateEventStore, events: list[UpdateEvent]) -> list[int]:
    """Append events in order and return their sequence numbers."""
    return [await store.append(event) for event in events]


class StaticEventSource:
    """In-memory stand-in for the store. Returns events as given, unfiltered."""

    def __init__(
        self,
        events: list[UpdateEvent] | None = None,
        summaries: dict[EntityId, UpdateSummary] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.events = events or []
        self.summaries = summaries or {}
        self.error = error
        self.fetch_calls = 0

    async def fetch_events(self, update_type, interval, *, entity_type=None, entity_id=None):
        self.fetch_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.events)

    async def fetch_current_summary(self, entity_id: EntityId) -> UpdateSummary | None:
        if self.error is not None:
            raise self.error
        return self.summaries.get(entity_id)
