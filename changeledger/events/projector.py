"""Result projector: maps update events onto output records.

Tokens carry only the entity and time. Digests also carry a summary of what
changed; when the stored event has none, the entity's current summary is
looked up instead and an empty summary stands in if that lookup fails.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Literal, Protocol

from changeledger.models import (
    EntityId,
    UpdateDigest,
    UpdateEvent,
    UpdateSummary,
    UpdateToken,
)

logger = logging.getLogger(__name__)

RecordKind = Literal["token", "digest"]


class SummarySource(Protocol):
    async def fetch_current_summary(self, entity_id: EntityId) -> UpdateSummary | None: ...


class ResultProjector:
    """Projects a windowed, already-ordered event sequence. Order is preserved."""

    def __init__(self, summaries: SummarySource) -> None:
        self._summaries = summaries
        self._handlers: dict[RecordKind, Callable[[UpdateEvent], Awaitable[UpdateToken | UpdateDigest]]] = {
            "token": self._to_token,
            "digest": self._to_digest,
        }

    async def project(
        self, events: Sequence[UpdateEvent], kind: RecordKind
    ) -> list[UpdateToken] | list[UpdateDigest]:
        """Project a batch of events into records of one kind."""
        handler = self._handlers[kind]
        return [await handler(event) for event in events]

    async def _to_token(self, event: UpdateEvent) -> UpdateToken:
        return UpdateToken(entity_id=event.entity_id, occurred_at=event.occurred_at)

    async def _to_digest(self, event: UpdateEvent) -> UpdateDigest:
        detail = event.detail
        if detail is None:
            detail = await self._enrich(event.entity_id)
        return UpdateDigest(
            entity_id=event.entity_id,
            occurred_at=event.occurred_at,
            detail=detail,
        )

    async def _enrich(self, entity_id: EntityId) -> UpdateSummary:
        """Best-effort lookup of the entity's current summary. Never raises."""
        try:
            summary = await self._summaries.fetch_current_summary(entity_id)
        except Exception:
            logger.warning(
                "Summary lookup failed for %s, using empty summary", entity_id,
                exc_info=True,
            )
            return UpdateSummary()
        return summary if summary is not None else UpdateSummary()
