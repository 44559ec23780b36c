"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency.

Timestamps are stored as fixed-width UTC ISO strings
(YYYY-MM-DDTHH:MM:SS.ffffff+00:00) so that string comparison in SQL is
chronological comparison.
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS update_events (
    sequence_num INTEGER PRIMARY KEY AUTOINCREMENT,
    entity_type TEXT NOT NULL,
    year INTEGER NOT NULL,
    number INTEGER NOT NULL,
    update_type TEXT NOT NULL,
    occurred_at TEXT NOT NULL,
    detail TEXT
);

CREATE INDEX IF NOT EXISTS idx_update_events_type_time
    ON update_events(update_type, occurred_at);
CREATE INDEX IF NOT EXISTS idx_update_events_entity
    ON update_events(entity_type, year, number);

CREATE TABLE IF NOT EXISTS entity_state (
    entity_type TEXT NOT NULL,
    year INTEGER NOT NULL,
    number INTEGER NOT NULL,
    summary TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (entity_type, year, number)
);
"""
