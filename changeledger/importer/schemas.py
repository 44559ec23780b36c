"""Pydantic schemas for the import API."""

from datetime import datetime

from pydantic import BaseModel


class ImportPreviewResponse(BaseModel):
    record_count: int
    entity_types: list[str]
    update_types: list[str]
    earliest: datetime | None
    latest: datetime | None


class ImportResponse(BaseModel):
    imported: int
    first_sequence_num: int | None
    last_sequence_num: int | None
