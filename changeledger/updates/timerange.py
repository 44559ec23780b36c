"""Time intervals and the resolver that turns request bounds into them.

Every interval handed to the query engine comes from here. Bounds are aware
UTC datetimes; the caller-facing convention is open-closed, (from, to].
"""

from datetime import UTC, datetime, timedelta
from typing import Protocol

from pydantic import BaseModel, ConfigDict, model_validator

from changeledger.models import to_utc

DEFAULT_FEED_WINDOW = timedelta(days=7)

# Bounds of the per-entity history when the caller gives none.
LONG_AGO = datetime(1970, 1, 1, tzinfo=UTC)
THE_FUTURE = datetime(2999, 12, 31, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Clocks
# ---------------------------------------------------------------------------


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Reads the UTC wall clock on every call."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Returns a settable instant. Used in tests to pin "now"."""

    def __init__(self, instant: datetime) -> None:
        self._instant = to_utc(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = to_utc(instant)

    def advance(self, delta: timedelta) -> None:
        self._instant += delta


# ---------------------------------------------------------------------------
# Interval
# ---------------------------------------------------------------------------


class TimeInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime
    start_inclusive: bool = False
    end_inclusive: bool = True

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: dict) -> dict:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("start", "end"):
                if isinstance(data.get(key), datetime):
                    data[key] = to_utc(data[key])
            start, end = data.get("start"), data.get("end")
            if isinstance(start, datetime) and isinstance(end, datetime) and start > end:
                raise InvalidRangeError(start, end)
        return data

    @classmethod
    def open_closed(cls, start: datetime, end: datetime) -> "TimeInterval":
        return cls(start=start, end=end, start_inclusive=False, end_inclusive=True)

    @classmethod
    def closed(cls, start: datetime, end: datetime) -> "TimeInterval":
        return cls(start=start, end=end, start_inclusive=True, end_inclusive=True)

    @classmethod
    def closed_open(cls, start: datetime, end: datetime) -> "TimeInterval":
        return cls(start=start, end=end, start_inclusive=True, end_inclusive=False)

    @classmethod
    def open(cls, start: datetime, end: datetime) -> "TimeInterval":
        return cls(start=start, end=end, start_inclusive=False, end_inclusive=False)

    @property
    def is_empty(self) -> bool:
        """True when no instant can satisfy both bounds."""
        return self.start == self.end and not (self.start_inclusive and self.end_inclusive)

    def contains(self, ts: datetime) -> bool:
        ts = to_utc(ts)
        if ts < self.start or ts > self.end:
            return False
        if ts == self.start and not self.start_inclusive:
            return False
        if ts == self.end and not self.end_inclusive:
            return False
        return True

    def __str__(self) -> str:
        left = "[" if self.start_inclusive else "("
        right = "]" if self.end_inclusive else ")"
        return f"{left}{self.start.isoformat()}, {self.end.isoformat()}{right}"


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class TimeRangeResolver:
    """Turns optional from/to strings into an open-closed TimeInterval."""

    def __init__(self, clock: Clock, window: timedelta = DEFAULT_FEED_WINDOW) -> None:
        self._clock = clock
        self._window = window

    def resolve(self, from_: str | None = None, to: str | None = None) -> TimeInterval:
        """Resolve bounds for the global feed.

        Both absent: (now - window, now]. Only from: (from, now]. "now" is
        read from the clock on every call.
        """
        if from_ is None and to is not None:
            end = parse_timestamp(to, "to")
            try:
                start = end - self._window
            except OverflowError:
                raise InvalidTimestampError("to", to)
            return TimeInterval.open_closed(start, end)
        now = self._clock.now()
        start = parse_timestamp(from_, "from") if from_ is not None else now - self._window
        end = parse_timestamp(to, "to") if to is not None else now
        return TimeInterval.open_closed(start, end)

    def resolve_entity_history(
        self, from_: str | None = None, to: str | None = None
    ) -> TimeInterval:
        """Resolve bounds for a single entity's history, spanning all retention by default."""
        start = parse_timestamp(from_, "from") if from_ is not None else LONG_AGO
        end = parse_timestamp(to, "to") if to is not None else THE_FUTURE
        return TimeInterval.open_closed(start, end)


def parse_timestamp(raw: str, param: str) -> datetime:
    """Parse an ISO-8601 date or date-time into an aware UTC datetime.

    Raises InvalidTimestampError naming `param` if the string does not parse
    or falls outside the datetime range once shifted to UTC.
    """
    try:
        return to_utc(datetime.fromisoformat(raw.strip()))
    except (ValueError, OverflowError, AttributeError):
        raise InvalidTimestampError(param, raw)


class InvalidTimestampError(Exception):
    def __init__(self, param: str, value: object) -> None:
        self.param = param
        self.value = value
        super().__init__(f"Invalid timestamp for '{param}': {value!r}")


class InvalidRangeError(Exception):
    def __init__(self, start: datetime, end: datetime) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid range: 'from' ({start.isoformat()}) is after 'to' ({end.isoformat()})"
        )
