"""SQLite implementation of the queue history repository."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import TYPE_CHECKING, Any

from party_queue.domain.queue.entities import QueueHistoryEntry, TrackInfo
from party_queue.domain.queue.repository import QueueHistoryRepository
from party_queue.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteQueueHistoryRepository(QueueHistoryRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def record(self, entry: QueueHistoryEntry) -> bool:
        try:
            await self._db.execute(
                """
                INSERT INTO queue_history (
                    id, queue_entry_id, spotify_id, track_json, added_by, added_at,
                    played_at, played_by, actual_duration_ms, was_skipped,
                    skip_reason, requested_by, notes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.queue_entry_id,
                    entry.track.spotify_id,
                    entry.track.model_dump_json(),
                    entry.added_by,
                    UtcDateTime(entry.added_at).iso,
                    UtcDateTime(entry.played_at).iso,
                    entry.played_by,
                    entry.actual_duration_ms,
                    int(entry.was_skipped),
                    entry.skip_reason,
                    entry.requested_by,
                    entry.notes,
                ),
            )
        except sqlite3.IntegrityError:
            logger.debug("History for queue entry %s already recorded", entry.queue_entry_id)
            return False
        return True

    async def get_recent(self, limit: int = 50) -> list[QueueHistoryEntry]:
        rows = await self._db.fetch_all(
            """
            SELECT * FROM queue_history
            ORDER BY played_at DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [self._row_to_history(row) for row in rows]

    async def get_by_queue_entry(self, queue_entry_id: str) -> QueueHistoryEntry | None:
        row = await self._db.fetch_one(
            "SELECT * FROM queue_history WHERE queue_entry_id = ?",
            (queue_entry_id,),
        )
        return self._row_to_history(row) if row else None

    async def played_since(self, spotify_id: str, since: datetime) -> bool:
        row = await self._db.fetch_one(
            """
            SELECT 1 FROM queue_history
            WHERE spotify_id = ? AND played_at >= ?
            LIMIT 1
            """,
            (spotify_id, UtcDateTime(since).iso),
        )
        return row is not None

    def _row_to_history(self, row: dict[str, Any]) -> QueueHistoryEntry:
        return QueueHistoryEntry(
            id=row["id"],
            queue_entry_id=row["queue_entry_id"],
            track=TrackInfo.model_validate_json(row["track_json"]),
            added_by=row["added_by"],
            added_at=UtcDateTime.from_iso(row["added_at"]).dt,
            played_at=UtcDateTime.from_iso(row["played_at"]).dt,
            played_by=row.get("played_by"),
            actual_duration_ms=row.get("actual_duration_ms"),
            was_skipped=bool(row["was_skipped"]),
            skip_reason=row.get("skip_reason"),
            requested_by=row.get("requested_by"),
            notes=row.get("notes"),
        )
