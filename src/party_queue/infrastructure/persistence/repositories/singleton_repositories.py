"""SQLite implementations for the now-playing and queue-settings singletons.

Both records live under a well-known primary key so that creation is an
atomic insert-if-absent rather than a read followed by a write.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from party_queue.domain.queue.entities import Device, NowPlaying, QueueSettings, TrackInfo
from party_queue.domain.queue.repository import NowPlayingRepository, QueueSettingsRepository
from party_queue.domain.shared.constants import SingletonKeys
from party_queue.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteNowPlayingRepository(NowPlayingRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self) -> NowPlaying | None:
        row = await self._db.fetch_one(
            "SELECT * FROM now_playing WHERE key = ?",
            (SingletonKeys.NOW_PLAYING,),
        )
        return self._row_to_now_playing(row) if row else None

    async def upsert(self, now_playing: NowPlaying) -> bool:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM now_playing WHERE key = ?", (SingletonKeys.NOW_PLAYING,)
            )
            existed = await cursor.fetchone() is not None
            await conn.execute(
                """
                INSERT INTO now_playing (
                    key, spotify_id, track_json, progress_ms, is_playing, timestamp,
                    device_json, shuffle_state, repeat_state, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    spotify_id = excluded.spotify_id,
                    track_json = excluded.track_json,
                    progress_ms = excluded.progress_ms,
                    is_playing = excluded.is_playing,
                    timestamp = excluded.timestamp,
                    device_json = excluded.device_json,
                    shuffle_state = excluded.shuffle_state,
                    repeat_state = excluded.repeat_state,
                    updated_at = excluded.updated_at
                """,
                (
                    SingletonKeys.NOW_PLAYING,
                    now_playing.spotify_id,
                    now_playing.track.model_dump_json(),
                    now_playing.progress_ms,
                    int(now_playing.is_playing),
                    UtcDateTime(now_playing.timestamp).iso,
                    now_playing.device.model_dump_json(),
                    None if now_playing.shuffle_state is None else int(now_playing.shuffle_state),
                    now_playing.repeat_state,
                    UtcDateTime(now_playing.updated_at).iso,
                ),
            )
        return existed

    async def clear(self) -> bool:
        cursor = await self._db.execute(
            "DELETE FROM now_playing WHERE key = ?", (SingletonKeys.NOW_PLAYING,)
        )
        return cursor.rowcount > 0

    def _row_to_now_playing(self, row: dict[str, Any]) -> NowPlaying:
        shuffle = row.get("shuffle_state")
        return NowPlaying(
            track=TrackInfo.model_validate_json(row["track_json"]),
            progress_ms=row["progress_ms"],
            is_playing=bool(row["is_playing"]),
            timestamp=UtcDateTime.from_iso(row["timestamp"]).dt,
            device=Device.model_validate_json(row["device_json"]),
            shuffle_state=None if shuffle is None else bool(shuffle),
            repeat_state=row.get("repeat_state"),
            updated_at=UtcDateTime.from_iso(row["updated_at"]).dt,
        )


class SQLiteQueueSettingsRepository(QueueSettingsRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self) -> QueueSettings | None:
        row = await self._db.fetch_one(
            "SELECT * FROM queue_settings WHERE key = ?",
            (SingletonKeys.QUEUE_SETTINGS,),
        )
        return self._row_to_settings(row) if row else None

    async def insert_if_absent(self, settings: QueueSettings) -> bool:
        cursor = await self._db.execute(
            """
            INSERT INTO queue_settings (
                key, max_queue_size, allow_duplicates, duplicate_threshold_minutes,
                auto_skip_threshold, max_song_duration_ms, restricted_users_json,
                is_paused, is_locked, updated_by, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(key) DO NOTHING
            """,
            self._settings_to_params(settings),
        )
        return cursor.rowcount > 0

    async def save(self, settings: QueueSettings) -> None:
        await self._db.execute(
            """
            INSERT INTO queue_settings (
                key, max_queue_size, allow_duplicates, duplicate_threshold_minutes,
                auto_skip_threshold, max_song_duration_ms, restricted_users_json,
                is_paused, is_locked, updated_by, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                max_queue_size = excluded.max_queue_size,
                allow_duplicates = excluded.allow_duplicates,
                duplicate_threshold_minutes = excluded.duplicate_threshold_minutes,
                auto_skip_threshold = excluded.auto_skip_threshold,
                max_song_duration_ms = excluded.max_song_duration_ms,
                restricted_users_json = excluded.restricted_users_json,
                is_paused = excluded.is_paused,
                is_locked = excluded.is_locked,
                updated_by = excluded.updated_by,
                updated_at = excluded.updated_at
            """,
            self._settings_to_params(settings),
        )

    def _settings_to_params(self, settings: QueueSettings) -> tuple:
        return (
            SingletonKeys.QUEUE_SETTINGS,
            settings.max_queue_size,
            int(settings.allow_duplicates),
            settings.duplicate_threshold_minutes,
            settings.auto_skip_threshold,
            settings.max_song_duration_ms,
            json.dumps(list(settings.restricted_users)),
            int(settings.is_paused),
            int(settings.is_locked),
            settings.updated_by,
            UtcDateTime(settings.updated_at).iso,
        )

    def _row_to_settings(self, row: dict[str, Any]) -> QueueSettings:
        return QueueSettings(
            max_queue_size=row["max_queue_size"],
            allow_duplicates=bool(row["allow_duplicates"]),
            duplicate_threshold_minutes=row.get("duplicate_threshold_minutes"),
            auto_skip_threshold=row.get("auto_skip_threshold"),
            max_song_duration_ms=row.get("max_song_duration_ms"),
            restricted_users=tuple(json.loads(row["restricted_users_json"] or "[]")),
            is_paused=bool(row["is_paused"]),
            is_locked=bool(row["is_locked"]),
            updated_by=row["updated_by"],
            updated_at=UtcDateTime.from_iso(row["updated_at"]).dt,
        )
