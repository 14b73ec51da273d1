"""Playlist Engine - owner-scoped playlists with an embedded ordered track list."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import uuid4

from ...domain.playlists.entities import Playlist
from ...domain.queue.entities import TrackInfo
from ...domain.queue.value_objects import DenyReason
from ...domain.shared.exceptions import EntityNotFoundError, PolicyDeniedError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.playlists.repository import PlaylistRepository
    from ...domain.users.repository import UserRepository

logger = logging.getLogger(__name__)

_UNSET = object()


class PlaylistService:
    def __init__(
        self,
        *,
        playlist_repository: PlaylistRepository,
        user_repository: UserRepository,
    ) -> None:
        self._playlist_repo = playlist_repository
        self._user_repo = user_repository

    async def create(
        self,
        name: str,
        owner_id: str,
        *,
        is_public: bool = False,
        description: str | None = None,
        image: str | None = None,
    ) -> Playlist:
        owner = await self._user_repo.get(owner_id)
        if owner is None:
            raise EntityNotFoundError("User", owner_id)

        playlist = Playlist(
            id=str(uuid4()),
            name=name,
            description=description,
            image=image,
            is_public=is_public,
            owner_id=owner.id,
        )
        await self._playlist_repo.save(playlist)
        logger.info(LogTemplates.PLAYLIST_CREATED, playlist.name, playlist.id, owner.id)
        return playlist

    async def get(self, playlist_id: str) -> Playlist | None:
        return await self._playlist_repo.get(playlist_id)

    async def get_user_playlists(self, owner_id: str) -> list[Playlist]:
        return await self._playlist_repo.list_by_owner(owner_id)

    async def get_public_playlists(self) -> list[Playlist]:
        return await self._playlist_repo.list_public()

    async def update(
        self,
        playlist_id: str,
        actor_id: str,
        *,
        name: str | None = None,
        description: str | None | object = _UNSET,
        image: str | None | object = _UNSET,
        is_public: bool | None = None,
    ) -> Playlist:
        """Patch only the given fields. ``description``/``image`` accept None to clear them."""
        playlist = await self._get_owned(playlist_id, actor_id)

        changes: dict[str, object] = {}
        if name is not None:
            changes["name"] = name
        if description is not _UNSET:
            changes["description"] = description
        if image is not _UNSET:
            changes["image"] = image
        if is_public is not None:
            changes["is_public"] = is_public

        if not changes:
            return playlist

        updated = Playlist.model_validate({**playlist.model_dump(), **changes})
        updated.touch()
        await self._playlist_repo.save(updated)
        logger.info(LogTemplates.PLAYLIST_UPDATED, playlist_id, ", ".join(sorted(changes)))
        return updated

    async def delete(self, playlist_id: str, actor_id: str) -> None:
        await self._get_owned(playlist_id, actor_id)
        await self._playlist_repo.delete(playlist_id)
        logger.info(LogTemplates.PLAYLIST_DELETED, playlist_id)

    async def add_track(self, playlist_id: str, actor_id: str, track: TrackInfo) -> int:
        """Append a track and return its index.

        Raises:
            AlreadyExistsError: If the playlist already contains the track.
        """
        playlist = await self._get_owned(playlist_id, actor_id)
        index = playlist.add_track(track, added_by=actor_id)
        await self._playlist_repo.save(playlist)
        logger.info(LogTemplates.PLAYLIST_TRACK_ADDED, track.name, playlist_id, index)
        return index

    async def remove_track(self, playlist_id: str, actor_id: str, spotify_id: str) -> None:
        playlist = await self._get_owned(playlist_id, actor_id)
        playlist.remove_track(spotify_id)
        await self._playlist_repo.save(playlist)
        logger.info(LogTemplates.PLAYLIST_TRACK_REMOVED, spotify_id, playlist_id)

    async def bulk_add(
        self, playlist_id: str, actor_id: str, tracks: Sequence[TrackInfo]
    ) -> int:
        """Append tracks not already present and return how many were added."""
        playlist = await self._get_owned(playlist_id, actor_id)
        added = playlist.add_many(tracks, added_by=actor_id)
        if added:
            await self._playlist_repo.save(playlist)
        logger.info(LogTemplates.PLAYLIST_BULK_ADDED, added, len(tracks), playlist_id)
        return added

    async def reorder(
        self, playlist_id: str, actor_id: str, from_index: int, to_index: int
    ) -> Playlist:
        playlist = await self._get_owned(playlist_id, actor_id)
        if from_index == to_index and 0 <= from_index < playlist.track_count:
            return playlist

        playlist.move_track(from_index, to_index)
        await self._playlist_repo.save(playlist)
        logger.info(LogTemplates.PLAYLIST_REORDERED, playlist_id, from_index, to_index)
        return playlist

    async def _get_owned(self, playlist_id: str, actor_id: str) -> Playlist:
        playlist = await self._playlist_repo.get(playlist_id)
        if playlist is None:
            raise EntityNotFoundError("Playlist", playlist_id)
        if not playlist.is_owned_by(actor_id):
            raise PolicyDeniedError(
                DenyReason.FORBIDDEN.value, ErrorMessages.PLAYLIST_OWNER_REQUIRED
            )
        return playlist
