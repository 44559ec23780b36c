"""Update query engine: filter, order and paginate the update ledger.

Every call is computed fresh against the store; the engine keeps no caches
and performs no writes. Results are ordered by occurred_at in the requested
direction, with ties broken by entity id ascending (and then by store
sequence) regardless of that direction.
"""

import logging
from collections.abc import Iterable

from changeledger.events.projector import RecordKind, ResultProjector
from changeledger.events.store import UpdateEventStore
from changeledger.models import (
    EntityId,
    SortOrder,
    UpdateDigest,
    UpdateEvent,
    UpdateToken,
    UpdateType,
)
from changeledger.updates.pagination import LimitOffset, Page
from changeledger.updates.timerange import TimeInterval

logger = logging.getLogger(__name__)

_PAGE_TYPES: dict[RecordKind, type[Page]] = {
    "token": Page[UpdateToken],
    "digest": Page[UpdateDigest],
}


class UpdateQueryEngine:
    """Answers "what changed in this window" over the update event store."""

    def __init__(self, store: UpdateEventStore, projector: ResultProjector) -> None:
        self._store = store
        self._projector = projector

    async def query_updates_in_range(
        self,
        update_type: UpdateType,
        interval: TimeInterval,
        entity_type: str | None = None,
        order: SortOrder = SortOrder.DESC,
        limit_offset: LimitOffset = LimitOffset.ALL,
    ) -> Page[UpdateToken]:
        """Tokens for every matching update, one page at a time."""
        return await self._query(
            "token", update_type, interval, entity_type, None, order, limit_offset
        )

    async def query_digests_in_range(
        self,
        update_type: UpdateType,
        interval: TimeInterval,
        entity_type: str | None = None,
        order: SortOrder = SortOrder.DESC,
        limit_offset: LimitOffset = LimitOffset.ALL,
    ) -> Page[UpdateDigest]:
        """Digests for every matching update, one page at a time."""
        return await self._query(
            "digest", update_type, interval, entity_type, None, order, limit_offset
        )

    async def query_updates_for_entity(
        self,
        update_type: UpdateType,
        entity_id: EntityId,
        interval: TimeInterval,
        order: SortOrder = SortOrder.DESC,
        limit_offset: LimitOffset = LimitOffset.ALL,
    ) -> Page[UpdateDigest]:
        """Full update history of one entity as digests.

        limit_offset is not applied: entity histories are returned whole and
        the page reports LimitOffset.ALL.
        """
        if limit_offset != LimitOffset.ALL:
            logger.debug(
                "Ignoring %s for single-entity query on %s", limit_offset, entity_id
            )
        return await self._query(
            "digest",
            update_type,
            interval,
            entity_id.entity_type,
            entity_id,
            order,
            LimitOffset.ALL,
        )

    async def _query(
        self,
        kind: RecordKind,
        update_type: UpdateType,
        interval: TimeInterval,
        entity_type: str | None,
        entity_id: EntityId | None,
        order: SortOrder,
        limit_offset: LimitOffset,
    ) -> Page:
        page_cls = _PAGE_TYPES[kind]
        if interval.is_empty:
            return page_cls.empty(limit_offset)

        events = await self._store.fetch_events(
            update_type, interval, entity_type=entity_type, entity_id=entity_id
        )
        matching = sort_events(
            (
                e
                for e in events
                if e.update_type == update_type
                and interval.contains(e.occurred_at)
                and (entity_type is None or e.entity_id.entity_type == entity_type)
                and (entity_id is None or e.entity_id == entity_id)
            ),
            order,
        )
        total = len(matching)
        window = limit_offset.window(matching)

        logger.debug(
            "%s query type=%s scope=%s interval=%s order=%s: total=%d, returning %d (%s)",
            kind,
            update_type,
            entity_id or entity_type or "*",
            interval,
            order,
            total,
            len(window),
            limit_offset,
        )

        results = await self._projector.project(window, kind)
        return page_cls.of(results, total, limit_offset)


def sort_events(events: Iterable[UpdateEvent], order: SortOrder) -> list[UpdateEvent]:
    """Order by occurred_at, breaking ties by entity id then sequence, both ascending."""
    ordered = sorted(
        events,
        key=lambda e: (e.entity_id.sort_key(), e.sequence_num or 0),
    )
    # Stable, so the ascending tie-break survives a descending primary sort.
    ordered.sort(key=lambda e: e.occurred_at, reverse=order is SortOrder.DESC)
    return ordered
