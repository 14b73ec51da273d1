"""Playlist aggregate: a user-owned, embedded ordered list of tracks."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from party_queue.domain.queue.entities import TrackInfo
from party_queue.domain.shared.datetime_utils import utcnow
from party_queue.domain.shared.exceptions import (
    AlreadyExistsError,
    EntityNotFoundError,
    ValidationError,
)
from party_queue.domain.shared.messages import ErrorMessages
from party_queue.domain.shared.types import NonEmptyStr, TrackNameStr, UtcDatetimeField


class PlaylistTrack(BaseModel):
    """A track inside a playlist. Its index in ``Playlist.tracks`` is its position."""

    track: TrackInfo
    added_at: UtcDatetimeField = Field(default_factory=utcnow)
    added_by: str | None = None

    @property
    def spotify_id(self) -> str:
        return self.track.spotify_id


class Playlist(BaseModel):
    """Aggregate root for a playlist owned by a single user."""

    id: NonEmptyStr
    name: TrackNameStr
    description: str | None = None
    image: str | None = None
    is_public: bool = False
    owner_id: NonEmptyStr
    tracks: list[PlaylistTrack] = Field(default_factory=list)
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def total_duration_ms(self) -> int:
        return sum(item.track.duration_ms for item in self.tracks)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def contains(self, spotify_id: str) -> bool:
        return any(item.spotify_id == spotify_id for item in self.tracks)

    def index_of(self, spotify_id: str) -> int | None:
        for index, item in enumerate(self.tracks):
            if item.spotify_id == spotify_id:
                return index
        return None

    def add_track(self, track: TrackInfo, added_by: str | None = None) -> int:
        """Append a track and return its index."""
        if self.contains(track.spotify_id):
            raise AlreadyExistsError(
                "Track",
                track.spotify_id,
                message=f'"{track.name}" is already in playlist "{self.name}"',
            )
        self.tracks.append(PlaylistTrack(track=track, added_by=added_by))
        self.touch()
        return len(self.tracks) - 1

    def remove_track(self, spotify_id: str) -> PlaylistTrack:
        index = self.index_of(spotify_id)
        if index is None:
            raise EntityNotFoundError(
                "PlaylistTrack",
                spotify_id,
                message=ErrorMessages.TRACK_NOT_IN_PLAYLIST.format(
                    spotify_id=spotify_id, playlist_id=self.id
                ),
            )
        item = self.tracks.pop(index)
        self.touch()
        return item

    def add_many(self, tracks: Iterable[TrackInfo], added_by: str | None = None) -> int:
        """Append tracks not already present; duplicates within the batch are skipped too."""
        seen = {item.spotify_id for item in self.tracks}
        added = 0
        for track in tracks:
            if track.spotify_id in seen:
                continue
            self.tracks.append(PlaylistTrack(track=track, added_by=added_by))
            seen.add(track.spotify_id)
            added += 1
        if added:
            self.touch()
        return added

    def move_track(self, from_index: int, to_index: int) -> None:
        """Splice: remove at ``from_index`` and insert at ``to_index``."""
        high = len(self.tracks) - 1
        if not 0 <= from_index <= high:
            raise EntityNotFoundError(
                "PlaylistTrack",
                from_index,
                message=ErrorMessages.PLAYLIST_INDEX_OUT_OF_RANGE.format(
                    index=from_index, high=high
                ),
            )
        if not 0 <= to_index <= high:
            raise ValidationError(
                ErrorMessages.PLAYLIST_INDEX_OUT_OF_RANGE.format(index=to_index, high=high),
                field="to_index",
            )

        item = self.tracks.pop(from_index)
        self.tracks.insert(to_index, item)
        self.touch()
