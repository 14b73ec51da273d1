"""SQLite implementation of the playlist repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from party_queue.domain.playlists.entities import Playlist, PlaylistTrack
from party_queue.domain.playlists.repository import PlaylistRepository
from party_queue.domain.queue.entities import TrackInfo
from party_queue.domain.shared.datetime_utils import UtcDateTime

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLitePlaylistRepository(PlaylistRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, playlist_id: str) -> Playlist | None:
        row = await self._db.fetch_one("SELECT * FROM playlists WHERE id = ?", (playlist_id,))
        if row is None:
            return None
        return await self._load(row)

    async def save(self, playlist: Playlist) -> None:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO playlists (
                    id, name, description, image, is_public, owner_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    image = excluded.image,
                    is_public = excluded.is_public,
                    updated_at = excluded.updated_at
                """,
                (
                    playlist.id,
                    playlist.name,
                    playlist.description,
                    playlist.image,
                    int(playlist.is_public),
                    playlist.owner_id,
                    UtcDateTime(playlist.created_at).iso,
                    UtcDateTime(playlist.updated_at).iso,
                ),
            )

            # The embedded list is rewritten whole; row position is list index.
            await conn.execute(
                "DELETE FROM playlist_tracks WHERE playlist_id = ?",
                (playlist.id,),
            )
            await conn.executemany(
                """
                INSERT INTO playlist_tracks (
                    playlist_id, position, spotify_id, track_json, added_at, added_by
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        playlist.id,
                        position,
                        item.spotify_id,
                        item.track.model_dump_json(),
                        UtcDateTime(item.added_at).iso,
                        item.added_by,
                    )
                    for position, item in enumerate(playlist.tracks)
                ],
            )

        logger.debug("Saved playlist %s with %d tracks", playlist.id, playlist.track_count)

    async def delete(self, playlist_id: str) -> bool:
        async with self._db.transaction() as conn:
            await conn.execute(
                "DELETE FROM playlist_tracks WHERE playlist_id = ?",
                (playlist_id,),
            )
            cursor = await conn.execute("DELETE FROM playlists WHERE id = ?", (playlist_id,))
            deleted = cursor.rowcount > 0
        return deleted

    async def list_by_owner(self, owner_id: str) -> list[Playlist]:
        rows = await self._db.fetch_all(
            "SELECT * FROM playlists WHERE owner_id = ? ORDER BY created_at ASC",
            (owner_id,),
        )
        return [await self._load(row) for row in rows]

    async def list_public(self) -> list[Playlist]:
        rows = await self._db.fetch_all(
            "SELECT * FROM playlists WHERE is_public = 1 ORDER BY created_at ASC"
        )
        return [await self._load(row) for row in rows]

    async def delete_by_owner(self, owner_id: str) -> int:
        async with self._db.transaction() as conn:
            await conn.execute(
                """
                DELETE FROM playlist_tracks
                WHERE playlist_id IN (SELECT id FROM playlists WHERE owner_id = ?)
                """,
                (owner_id,),
            )
            cursor = await conn.execute("DELETE FROM playlists WHERE owner_id = ?", (owner_id,))
            count = max(cursor.rowcount, 0)
        return count

    async def _load(self, row: dict[str, Any]) -> Playlist:
        track_rows = await self._db.fetch_all(
            """
            SELECT * FROM playlist_tracks
            WHERE playlist_id = ?
            ORDER BY position ASC
            """,
            (row["id"],),
        )
        return Playlist(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            image=row.get("image"),
            is_public=bool(row["is_public"]),
            owner_id=row["owner_id"],
            tracks=[self._row_to_track(r) for r in track_rows],
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
            updated_at=UtcDateTime.from_iso(row["updated_at"]).dt,
        )

    def _row_to_track(self, row: dict[str, Any]) -> PlaylistTrack:
        return PlaylistTrack(
            track=TrackInfo.model_validate_json(row["track_json"]),
            added_at=UtcDateTime.from_iso(row["added_at"]).dt,
            added_by=row.get("added_by"),
        )
