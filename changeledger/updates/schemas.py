"""Option sets for the update feed endpoints.

Each request builds exactly one options object with every setting resolved
to an explicit value; nothing downstream deals with missing parameters.
"""

from pydantic import BaseModel, ConfigDict

from changeledger.models import InvalidParameterError, SortOrder, UpdateType
from changeledger.updates.pagination import LimitOffset

DEFAULT_FEED_LIMIT = 100
UNBOUNDED_LIMIT = "all"


class UpdateQueryOptions(BaseModel):
    """Options of the global update feed."""

    model_config = ConfigDict(frozen=True)

    update_type: UpdateType = UpdateType.PUBLISHED
    from_: str | None = None
    to: str | None = None
    detail: bool = False
    order: SortOrder = SortOrder.DESC
    limit_offset: LimitOffset = LimitOffset(limit=DEFAULT_FEED_LIMIT, offset=0)

    @classmethod
    def from_params(
        cls,
        *,
        type: str | None = None,
        from_: str | None = None,
        to: str | None = None,
        detail: bool = False,
        order: str | None = None,
        limit: str | None = None,
        offset: str | None = None,
    ) -> "UpdateQueryOptions":
        return cls(
            update_type=UpdateType.from_param(type) if type else UpdateType.PUBLISHED,
            from_=from_,
            to=to,
            detail=detail,
            order=SortOrder.from_param(order) if order else SortOrder.DESC,
            limit_offset=parse_limit_offset(limit, offset, DEFAULT_FEED_LIMIT),
        )


class EntityUpdateQueryOptions(BaseModel):
    """Options of a single entity's update history. Always unbounded."""

    model_config = ConfigDict(frozen=True)

    update_type: UpdateType = UpdateType.PUBLISHED
    from_: str | None = None
    to: str | None = None
    order: SortOrder = SortOrder.DESC
    limit_offset: LimitOffset = LimitOffset.ALL

    @classmethod
    def from_params(
        cls,
        *,
        type: str | None = None,
        from_: str | None = None,
        to: str | None = None,
        order: str | None = None,
        limit: str | None = None,
        offset: str | None = None,
    ) -> "EntityUpdateQueryOptions":
        # limit/offset are still validated so malformed values are reported.
        parse_limit_offset(limit, offset, None)
        return cls(
            update_type=UpdateType.from_param(type) if type else UpdateType.PUBLISHED,
            from_=from_,
            to=to,
            order=SortOrder.from_param(order) if order else SortOrder.DESC,
        )


def parse_limit_offset(
    limit: str | None, offset: str | None, default_limit: int | None
) -> LimitOffset:
    """Parse raw limit/offset values. limit accepts "all" for no limit."""
    if limit is None or limit == "":
        parsed_limit = default_limit
    elif limit.strip().lower() == UNBOUNDED_LIMIT:
        parsed_limit = None
    else:
        parsed_limit = _non_negative_int("limit", limit)

    parsed_offset = 0 if offset is None or offset == "" else _non_negative_int("offset", offset)
    return LimitOffset(limit=parsed_limit, offset=parsed_offset)


def _non_negative_int(param: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise InvalidParameterError(param, raw)
    if value < 0:
        raise InvalidParameterError(param, raw)
    return value
