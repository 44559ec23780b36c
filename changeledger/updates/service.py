"""Update feed service: the caller-facing update listing operations.

Resolves request options into an interval and hands them to the query
engine. Errors from the resolver and the store propagate unchanged.
"""

from changeledger.models import EntityId, UpdateDigest, UpdateRecord
from changeledger.updates.engine import UpdateQueryEngine
from changeledger.updates.pagination import Page
from changeledger.updates.schemas import EntityUpdateQueryOptions, UpdateQueryOptions
from changeledger.updates.timerange import TimeRangeResolver


class UpdateFeedService:
    """Global update feed and per-entity update history."""

    def __init__(self, engine: UpdateQueryEngine, resolver: TimeRangeResolver) -> None:
        self._engine = engine
        self._resolver = resolver

    async def list_updates(
        self,
        entity_type: str | None,
        options: UpdateQueryOptions,
    ) -> Page[UpdateRecord]:
        """Updates to all entities of a type (or of every type) within the window.

        options.detail selects digests over tokens.
        """
        interval = self._resolver.resolve(options.from_, options.to)
        query = (
            self._engine.query_digests_in_range
            if options.detail
            else self._engine.query_updates_in_range
        )
        page = await query(
            options.update_type,
            interval,
            entity_type,
            options.order,
            options.limit_offset,
        )
        return Page[UpdateRecord].of(page.results, page.total, page.limit_offset)

    async def list_updates_for_entity(
        self,
        entity_id: EntityId,
        options: EntityUpdateQueryOptions,
    ) -> Page[UpdateDigest]:
        """Every update to one entity, spanning all retention unless bounded."""
        interval = self._resolver.resolve_entity_history(options.from_, options.to)
        return await self._engine.query_updates_for_entity(
            options.update_type,
            entity_id,
            interval,
            options.order,
            options.limit_offset,
        )
