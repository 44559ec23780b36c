"""Limit/offset windows and the paginated result envelope."""

from collections.abc import Sequence
from typing import ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class LimitOffset(BaseModel):
    """A pagination window. limit=None means unbounded."""

    model_config = ConfigDict(frozen=True)

    ALL: ClassVar["LimitOffset"]

    limit: int | None = Field(default=None, ge=0)
    offset: int = Field(default=0, ge=0)

    @property
    def unbounded(self) -> bool:
        return self.limit is None

    def window(self, items: Sequence[T]) -> list[T]:
        """Skip `offset` items, then take up to `limit` (or everything)."""
        if self.limit is None:
            return list(items[self.offset:])
        return list(items[self.offset:self.offset + self.limit])


LimitOffset.ALL = LimitOffset(limit=None, offset=0)


class Page(BaseModel, Generic[T]):
    """One page of results plus the unpaginated match count.

    Build through Page.of(), which enforces the envelope invariants.
    """

    results: list[T]
    total: int
    limit_offset: LimitOffset

    @classmethod
    def of(cls, results: Sequence[T], total: int, limit_offset: LimitOffset) -> "Page[T]":
        results = list(results)
        if total < 0:
            raise ConsistencyError(f"Negative total: {total}")
        if total < len(results):
            raise ConsistencyError(
                f"Total {total} is smaller than the page size {len(results)}"
            )
        if limit_offset.limit is not None and len(results) > limit_offset.limit:
            raise ConsistencyError(
                f"Page holds {len(results)} results but the limit is {limit_offset.limit}"
            )
        return cls(results=results, total=total, limit_offset=limit_offset)

    @classmethod
    def empty(cls, limit_offset: LimitOffset) -> "Page[T]":
        return cls(results=[], total=0, limit_offset=limit_offset)


class ConsistencyError(Exception):
    """An envelope invariant was violated. Signals a bug, never bad input."""
