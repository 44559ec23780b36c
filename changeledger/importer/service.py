"""ImportService: parses update record files and appends them to the store.

Accepted input is either a JSON array of records or JSON lines, one record
per line. A record looks like:

    {"entity_type": "calendar", "year": 2024, "number": 12,
     "update_type": "published", "occurred_at": "2024-03-01T10:00:00Z",
     "detail": {"action": "UPDATE", "table": "calendar", "fields": {...}}}

A file is all-or-nothing: any malformed record rejects the whole file before
anything is written.
"""

import json
import logging

from pydantic import BaseModel, ValidationError

from changeledger.events.store import UpdateEventStore
from changeledger.importer.schemas import ImportPreviewResponse, ImportResponse
from changeledger.models import EntityId, UpdateEvent, UpdateSummary, UpdateType
from changeledger.updates.timerange import InvalidTimestampError, parse_timestamp

logger = logging.getLogger(__name__)


class ImportedUpdate(BaseModel):
    """One record as it appears in an import file."""

    entity_type: str
    year: int
    number: int
    update_type: UpdateType = UpdateType.PUBLISHED
    occurred_at: str
    detail: UpdateSummary | None = None


class ImportService:
    def __init__(self, store: UpdateEventStore) -> None:
        self._store = store

    def preview(self, content: bytes) -> ImportPreviewResponse:
        """Parse the file and describe it without writing anything."""
        events = parse_update_records(content)
        times = [e.occurred_at for e in events]
        return ImportPreviewResponse(
            record_count=len(events),
            entity_types=sorted({e.entity_id.entity_type for e in events}),
            update_types=sorted({e.update_type.value for e in events}),
            earliest=min(times) if times else None,
            latest=max(times) if times else None,
        )

    async def import_updates(self, content: bytes) -> ImportResponse:
        """Append every record in file order, as a single unit."""
        events = parse_update_records(content)
        sequence_nums = await self._store.append_many(events)
        logger.info("Imported %d update events", len(sequence_nums))
        return ImportResponse(
            imported=len(sequence_nums),
            first_sequence_num=sequence_nums[0] if sequence_nums else None,
            last_sequence_num=sequence_nums[-1] if sequence_nums else None,
        )


def parse_update_records(content: bytes) -> list[UpdateEvent]:
    """Parse a JSON array or JSON-lines document into UpdateEvents."""
    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ImportFormatError("File is not valid UTF-8") from e

    stripped = text.strip()
    if not stripped:
        return []

    if stripped.startswith("["):
        try:
            raw_records = json.loads(stripped)
        except json.JSONDecodeError as e:
            raise ImportFormatError(f"Invalid JSON: {e}") from e
        numbered = list(enumerate(raw_records, start=1))
    else:
        numbered = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                numbered.append((line_no, json.loads(line)))
            except json.JSONDecodeError as e:
                raise ImportFormatError(f"Line {line_no}: invalid JSON: {e}") from e

    return [_to_event(position, raw) for position, raw in numbered]


def _to_event(position: int, raw: object) -> UpdateEvent:
    try:
        record = ImportedUpdate.model_validate(raw)
        return UpdateEvent(
            entity_id=EntityId(
                entity_type=record.entity_type, year=record.year, number=record.number
            ),
            update_type=record.update_type,
            occurred_at=parse_timestamp(record.occurred_at, "occurred_at"),
            detail=record.detail,
        )
    except (ValidationError, InvalidTimestampError) as e:
        raise ImportFormatError(f"Record {position}: {e}") from e


class ImportFormatError(Exception):
    pass
