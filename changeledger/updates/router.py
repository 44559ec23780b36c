"""Update feed API routes.

    (GET) /api/updates[/{from}[/{to}]]                          all entity types
    (GET) /api/{entity_type}/updates[/{from}[/{to}]]            one entity type
    (GET) /api/{entity_type}/{year}/{number}/updates[/{from}/{to}]

Where 'from' and 'to' are ISO dates or date-times. The feed defaults to the
past 7 days; with only 'from' it runs to now. An entity's history defaults to
everything the store retains.

Query parameters:   type (processed|published, default published)
                    detail (bool, feed only) - digests instead of tokens
                    order (asc|desc, default desc) - by update time
                    limit (int or "all", default 100), offset (int, default 0)
                    Entity histories accept limit/offset but are never paginated.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from changeledger.events.store import StoreUnavailableError
from changeledger.models import EntityId, InvalidParameterError, UpdateDigest, UpdateRecord
from changeledger.updates.pagination import Page
from changeledger.updates.schemas import EntityUpdateQueryOptions, UpdateQueryOptions
from changeledger.updates.service import UpdateFeedService
from changeledger.updates.timerange import InvalidRangeError, InvalidTimestampError

router = APIRouter(prefix="/api", tags=["updates"])


def get_update_feed_service() -> UpdateFeedService:
    """Dependency placeholder, overridden at startup."""
    raise RuntimeError("UpdateFeedService not configured")


async def _list_updates(
    service: UpdateFeedService,
    entity_type: str | None,
    from_: str | None,
    to: str | None,
    type: str | None,
    detail: bool,
    order: str | None,
    limit: str | None,
    offset: str | None,
) -> Page[UpdateRecord]:
    try:
        options = UpdateQueryOptions.from_params(
            type=type, from_=from_, to=to, detail=detail,
            order=order, limit=limit, offset=offset,
        )
        return await service.list_updates(entity_type, options)
    except (InvalidTimestampError, InvalidParameterError, InvalidRangeError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail="Update store unavailable") from e


async def _list_entity_updates(
    service: UpdateFeedService,
    entity_type: str,
    year: int,
    number: int,
    from_: str | None,
    to: str | None,
    type: str | None,
    order: str | None,
    limit: str | None,
    offset: str | None,
) -> Page[UpdateDigest]:
    try:
        entity_id = EntityId(entity_type=entity_type, year=year, number=number)
    except ValueError as e:
        raise HTTPException(
            status_code=400, detail=f"Invalid entity: {entity_type}/{year}/{number}"
        ) from e
    try:
        options = EntityUpdateQueryOptions.from_params(
            type=type, from_=from_, to=to, order=order, limit=limit, offset=offset,
        )
        return await service.list_updates_for_entity(entity_id, options)
    except (InvalidTimestampError, InvalidParameterError, InvalidRangeError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail="Update store unavailable") from e


# -- All entity types --


@router.get("/updates")
async def get_all_updates(
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    return await _list_updates(service, None, None, None, type, detail, order, limit, offset)


@router.get("/updates/{from_}")
async def get_all_updates_since(
    from_: str,
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    return await _list_updates(service, None, from_, None, type, detail, order, limit, offset)


@router.get("/updates/{from_}/{to}")
async def get_all_updates_during(
    from_: str,
    to: str,
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    return await _list_updates(service, None, from_, to, type, detail, order, limit, offset)


# -- One entity type --


@router.get("/{entity_type}/updates")
async def get_updates(
    entity_type: str,
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    """Updates to entities of one type during the past 7 days."""
    return await _list_updates(
        service, entity_type, None, None, type, detail, order, limit, offset
    )


@router.get("/{entity_type}/updates/{from_}")
async def get_updates_since(
    entity_type: str,
    from_: str,
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    """Updates to entities of one type from 'from' until now."""
    return await _list_updates(
        service, entity_type, from_, None, type, detail, order, limit, offset
    )


@router.get("/{entity_type}/updates/{from_}/{to}")
async def get_updates_during(
    entity_type: str,
    from_: str,
    to: str,
    type: str | None = Query(None),
    detail: bool = Query(False),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateRecord]:
    """Updates to entities of one type during (from, to]."""
    return await _list_updates(
        service, entity_type, from_, to, type, detail, order, limit, offset
    )


# -- One entity --


@router.get("/{entity_type}/{year}/{number}/updates")
async def get_entity_updates(
    entity_type: str,
    year: int,
    number: int,
    type: str | None = Query(None),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateDigest]:
    """Every retained update to one entity."""
    return await _list_entity_updates(
        service, entity_type, year, number, None, None, type, order, limit, offset
    )


@router.get("/{entity_type}/{year}/{number}/updates/{from_}/{to}")
async def get_entity_updates_during(
    entity_type: str,
    year: int,
    number: int,
    from_: str,
    to: str,
    type: str | None = Query(None),
    order: str | None = Query(None),
    limit: str | None = Query(None),
    offset: str | None = Query(None),
    service: UpdateFeedService = Depends(get_update_feed_service),
) -> Page[UpdateDigest]:
    """Updates to one entity during (from, to]."""
    return await _list_entity_updates(
        service, entity_type, year, number, from_, to, type, order, limit, offset
    )
