"""Canonical data structures for the update ledger.

Defined once here, referenced everywhere else. An UpdateEvent is the stored
fact that an entity changed; UpdateToken and UpdateDigest are the two output
projections of that fact, united under UpdateRecord.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class UpdateType(StrEnum):
    """Which lane of the ledger an update was recorded in."""

    PROCESSED = "processed"
    PUBLISHED = "published"

    @classmethod
    def from_param(cls, value: str) -> "UpdateType":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidParameterError("type", value)


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def from_param(cls, value: str) -> "SortOrder":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidParameterError("order", value)


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class EntityId(BaseModel):
    """Composite id of a versioned entity, e.g. calendar 12 of 2024.

    Ordered by (entity_type, year, number) so ties between events sharing a
    timestamp always resolve the same way.
    """

    model_config = ConfigDict(frozen=True)

    entity_type: str = Field(pattern=r"^[a-z][a-z_]*$")
    year: int
    number: int

    def sort_key(self) -> tuple[str, int, int]:
        return (self.entity_type, self.year, self.number)

    def __lt__(self, other: "EntityId") -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "EntityId") -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "EntityId") -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "EntityId") -> bool:
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        return f"{self.entity_type}/{self.year}/{self.number}"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class UpdateSummary(BaseModel):
    """What changed. All-default instance is the empty placeholder summary."""

    model_config = ConfigDict(frozen=True)

    action: str = ""
    table: str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
    source_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.action or self.table or self.fields or self.source_id)


class UpdateEvent(BaseModel):
    """Immutable record of one change. Stored in the update_events table."""

    model_config = ConfigDict(frozen=True)

    entity_id: EntityId
    update_type: UpdateType
    occurred_at: datetime
    detail: UpdateSummary | None = None
    sequence_num: int | None = None  # assigned by DB on insert

    @field_validator("occurred_at")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return to_utc(value)


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------


class UpdateToken(BaseModel):
    kind: Literal["token"] = "token"
    entity_id: EntityId
    occurred_at: datetime


class UpdateDigest(BaseModel):
    kind: Literal["digest"] = "digest"
    entity_id: EntityId
    occurred_at: datetime
    detail: UpdateSummary


UpdateRecord = Annotated[UpdateToken | UpdateDigest, Field(discriminator="kind")]


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class InvalidParameterError(Exception):
    def __init__(self, param: str, value: object) -> None:
        self.param = param
        self.value = value
        super().__init__(f"Invalid value for '{param}': {value!r}")
