"""SQLite implementation of the live queue repository."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from party_queue.domain.queue.entities import QueueEntry, TrackInfo
from party_queue.domain.queue.repository import QueueRepository
from party_queue.domain.queue.value_objects import PositionUpdate, QueueStatus
from party_queue.domain.shared.datetime_utils import UtcDateTime, from_iso, to_iso

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_INSERT_SQL = """
    INSERT INTO queue_entries (
        id, spotify_id, track_json, added_by, added_at, position, status,
        played_at, skipped_at, skip_reason, requested_by, notes, priority
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_PATCHABLE_COLUMNS = frozenset(
    {
        "position",
        "status",
        "played_at",
        "skipped_at",
        "skip_reason",
        "requested_by",
        "notes",
        "priority",
    }
)


class SQLiteQueueRepository(QueueRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def insert(self, entry: QueueEntry) -> None:
        await self._db.execute(_INSERT_SQL, self._entry_to_params(entry))

    async def insert_many(self, entries: Sequence[QueueEntry]) -> None:
        if not entries:
            return
        async with self._db.transaction() as conn:
            await conn.executemany(_INSERT_SQL, [self._entry_to_params(e) for e in entries])

    async def get(self, entry_id: str) -> QueueEntry | None:
        row = await self._db.fetch_one("SELECT * FROM queue_entries WHERE id = ?", (entry_id,))
        return self._row_to_entry(row) if row else None

    async def patch(self, entry_id: str, **fields: Any) -> None:
        if not fields:
            return
        unknown = set(fields) - _PATCHABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot patch queue entry fields: {sorted(unknown)}")

        assignments = ", ".join(f"{column} = ?" for column in fields)
        values = tuple(self._to_column_value(v) for v in fields.values())
        await self._db.execute(
            f"UPDATE queue_entries SET {assignments} WHERE id = ?",  # noqa: S608
            (*values, entry_id),
        )

    async def delete(self, entry_id: str) -> bool:
        cursor = await self._db.execute("DELETE FROM queue_entries WHERE id = ?", (entry_id,))
        return cursor.rowcount > 0

    async def delete_all(self) -> int:
        cursor = await self._db.execute("DELETE FROM queue_entries")
        return max(cursor.rowcount, 0)

    async def list_ordered(self) -> list[QueueEntry]:
        rows = await self._db.fetch_all(
            "SELECT * FROM queue_entries ORDER BY position ASC, added_at ASC"
        )
        return [self._row_to_entry(row) for row in rows]

    async def list_by_status(self, status: QueueStatus) -> list[QueueEntry]:
        rows = await self._db.fetch_all(
            """
            SELECT * FROM queue_entries
            WHERE status = ?
            ORDER BY position ASC, added_at ASC
            """,
            (status.value,),
        )
        return [self._row_to_entry(row) for row in rows]

    async def first_by_status(self, status: QueueStatus) -> QueueEntry | None:
        row = await self._db.fetch_one(
            """
            SELECT * FROM queue_entries
            WHERE status = ?
            ORDER BY position ASC, added_at ASC
            LIMIT 1
            """,
            (status.value,),
        )
        return self._row_to_entry(row) if row else None

    async def count_by_status(self, status: QueueStatus) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) as count FROM queue_entries WHERE status = ?",
            (status.value,),
        )
        return row["count"] if row else 0

    async def find_by_spotify_id(
        self, spotify_id: str, status: QueueStatus | None = None
    ) -> list[QueueEntry]:
        if status is None:
            rows = await self._db.fetch_all(
                "SELECT * FROM queue_entries WHERE spotify_id = ? ORDER BY position ASC",
                (spotify_id,),
            )
        else:
            rows = await self._db.fetch_all(
                """
                SELECT * FROM queue_entries
                WHERE spotify_id = ? AND status = ?
                ORDER BY position ASC
                """,
                (spotify_id, status.value),
            )
        return [self._row_to_entry(row) for row in rows]

    async def get_at_position(self, position: int, status: QueueStatus) -> QueueEntry | None:
        row = await self._db.fetch_one(
            "SELECT * FROM queue_entries WHERE position = ? AND status = ? LIMIT 1",
            (position, status.value),
        )
        return self._row_to_entry(row) if row else None

    async def max_position(self) -> int | None:
        row = await self._db.fetch_one("SELECT MAX(position) as max_position FROM queue_entries")
        return row["max_position"] if row else None

    async def apply_positions(self, updates: Sequence[PositionUpdate]) -> int:
        if not updates:
            return 0
        async with self._db.transaction() as conn:
            for update in updates:
                await conn.execute(
                    "UPDATE queue_entries SET position = ? WHERE id = ?",
                    (update.new_position, update.entry_id),
                )
        logger.debug("Applied %d queue position updates", len(updates))
        return len(updates)

    @staticmethod
    def _to_column_value(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, datetime):
            return UtcDateTime(value).iso
        return value

    def _row_to_entry(self, row: dict[str, Any]) -> QueueEntry:
        return QueueEntry(
            id=row["id"],
            track=TrackInfo.model_validate_json(row["track_json"]),
            added_by=row["added_by"],
            added_at=UtcDateTime.from_iso(row["added_at"]).dt,
            position=row["position"],
            status=QueueStatus(row["status"]),
            played_at=from_iso(row.get("played_at")),
            skipped_at=from_iso(row.get("skipped_at")),
            skip_reason=row.get("skip_reason"),
            requested_by=row.get("requested_by"),
            notes=row.get("notes"),
            priority=row.get("priority"),
        )

    def _entry_to_params(self, entry: QueueEntry) -> tuple:
        return (
            entry.id,
            entry.spotify_id,
            entry.track.model_dump_json(),
            entry.added_by,
            UtcDateTime(entry.added_at).iso,
            entry.position,
            entry.status.value,
            to_iso(entry.played_at),
            to_iso(entry.skipped_at),
            entry.skip_reason,
            entry.requested_by,
            entry.notes,
            entry.priority,
        )
