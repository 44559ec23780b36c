"""Update ledger storage and result projection."""

from changeledger.events.projector import ResultProjector
from changeledger.events.store import StoreUnavailableError, UpdateEventStore

__all__ = ["ResultProjector", "StoreUnavailableError", "UpdateEventStore"]
