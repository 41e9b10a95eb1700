"""SQLite storage for search-quality telemetry events."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from job_discovery.models.search import ResponseMeta

logger = logging.getLogger(__name__)

# Newest entries kept; older ones are evicted first
MAX_ENTRIES = 20

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS search_events (
    seq              INTEGER PRIMARY KEY AUTOINCREMENT,
    telemetry_id     TEXT NOT NULL UNIQUE,
    conversation_id  TEXT,
    timestamp        TEXT NOT NULL,
    broadened_search INTEGER,
    low_result_count INTEGER,
    requested_count  INTEGER
);
"""


class TelemetryEntry(BaseModel):
    """One recorded search event."""

    id: str
    conversation_id: str | None = None
    timestamp: str
    broadened_search: bool | None = None
    low_result_count: int | None = None
    requested_count: int | None = None


def is_interesting(meta: ResponseMeta | None) -> bool:
    """Only fallback searches and sparse results are worth recording.

    lowResultCount is only set by the response assembler when the count
    fell below the engine's configured threshold.
    """
    if meta is None or not meta.telemetry_id:
        return False
    return bool(meta.broadened_search) or meta.low_result_count is not None


class TelemetryRepository:
    """Bounded FIFO log of interesting search events, deduplicated by telemetry ID."""

    def __init__(self, db_path: str = "telemetry.db", max_entries: int = MAX_ENTRIES) -> None:
        self.db_path = db_path
        self.max_entries = max_entries
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def record(self, meta: ResponseMeta | None) -> bool:
        """Store the event if it qualifies. Returns True if a row was written."""
        if not is_interesting(meta):
            return False

        cursor = self._conn.execute(
            """
            INSERT OR IGNORE INTO search_events (
                telemetry_id, conversation_id, timestamp,
                broadened_search, low_result_count, requested_count
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                meta.telemetry_id,
                meta.conversation_id,
                datetime.now(timezone.utc).isoformat(),
                None if meta.broadened_search is None else int(meta.broadened_search),
                meta.low_result_count,
                meta.requested_count,
            ),
        )
        if cursor.rowcount == 0:
            logger.debug("Telemetry event %s already recorded", meta.telemetry_id)
            return False

        self._conn.execute(
            """
            DELETE FROM search_events WHERE seq NOT IN (
                SELECT seq FROM search_events ORDER BY seq DESC LIMIT ?
            )
            """,
            (self.max_entries,),
        )
        self._conn.commit()
        logger.info("Recorded telemetry event %s", meta.telemetry_id)
        return True

    def recent(self, limit: int = MAX_ENTRIES) -> list[TelemetryEntry]:
        """Stored events, newest first."""
        rows = self._conn.execute(
            "SELECT * FROM search_events ORDER BY seq DESC LIMIT ?", (limit,)
        ).fetchall()
        return [
            TelemetryEntry(
                id=row["telemetry_id"],
                conversation_id=row["conversation_id"],
                timestamp=row["timestamp"],
                broadened_search=None if row["broadened_search"] is None else bool(row["broadened_search"]),
                low_result_count=row["low_result_count"],
                requested_count=row["requested_count"],
            )
            for row in rows
        ]
