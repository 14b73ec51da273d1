"""Core domain entities for the queue bounded context."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from party_queue.domain.queue.value_objects import QueueStatus
from party_queue.domain.shared.datetime_utils import utcnow
from party_queue.domain.shared.types import (
    DurationMs,
    MaxQueueSize,
    NonEmptyStr,
    NonNegativeInt,
    PercentInt,
    PositionInt,
    PositiveInt,
    SpotifyIdStr,
    TrackNameStr,
    UtcDatetimeField,
)


class Artist(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    uri: str = ""
    href: str = ""
    external_url: str = ""


class AlbumImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    height: NonNegativeInt | None = None
    width: NonNegativeInt | None = None


class Album(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    album_type: str = "album"
    uri: str = ""
    href: str = ""
    external_url: str = ""
    release_date: str = ""
    total_tracks: NonNegativeInt = 0
    images: tuple[AlbumImage, ...] = ()


class TrackInfo(BaseModel):
    """Immutable track metadata as reported by the catalog."""

    model_config = ConfigDict(frozen=True)

    spotify_id: SpotifyIdStr
    name: TrackNameStr
    uri: NonEmptyStr
    href: str = ""
    external_url: str = ""
    duration_ms: DurationMs = 0
    explicit: bool = False
    popularity: NonNegativeInt | None = None
    preview_url: str | None = None
    track_number: NonNegativeInt | None = None
    disc_number: NonNegativeInt | None = None
    is_local: bool | None = None
    is_playable: bool | None = None
    artists: tuple[Artist, ...] = ()
    album: Album | None = None

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)

    @property
    def display_title(self) -> str:
        if self.artists:
            return f"{self.name} - {self.artist_names}"
        return self.name


class QueueEntry(BaseModel):
    """A user-submitted track occupying a slot in the shared queue."""

    id: NonEmptyStr
    track: TrackInfo
    added_by: NonEmptyStr
    added_at: UtcDatetimeField = Field(default_factory=utcnow)
    position: PositionInt
    status: QueueStatus = QueueStatus.PENDING

    played_at: UtcDatetimeField | None = None
    skipped_at: UtcDatetimeField | None = None
    skip_reason: str | None = None

    requested_by: str | None = None
    notes: str | None = None
    priority: int | None = None

    @property
    def spotify_id(self) -> str:
        return self.track.spotify_id

    @property
    def is_pending(self) -> bool:
        return self.status == QueueStatus.PENDING

    @property
    def is_playing(self) -> bool:
        return self.status == QueueStatus.PLAYING

    def to_history(
        self,
        *,
        history_id: str,
        was_skipped: bool,
        skip_reason: str | None = None,
        finished_at: datetime | None = None,
        played_by: str | None = None,
    ) -> QueueHistoryEntry:
        """Build the archival copy written when this entry leaves the live queue."""
        finished_at = finished_at or utcnow()
        actual_duration_ms = None
        if self.played_at is not None:
            actual_duration_ms = max(0, int((finished_at - self.played_at).total_seconds() * 1000))

        return QueueHistoryEntry(
            id=history_id,
            queue_entry_id=self.id,
            track=self.track,
            added_by=self.added_by,
            added_at=self.added_at,
            played_at=self.played_at or finished_at,
            played_by=played_by,
            actual_duration_ms=actual_duration_ms,
            was_skipped=was_skipped,
            skip_reason=skip_reason,
            requested_by=self.requested_by,
            notes=self.notes,
        )


class QueueHistoryEntry(BaseModel):
    """Immutable archival copy of a queue entry that was played or skipped."""

    model_config = ConfigDict(frozen=True)

    id: NonEmptyStr
    queue_entry_id: NonEmptyStr
    track: TrackInfo
    added_by: NonEmptyStr
    added_at: UtcDatetimeField
    played_at: UtcDatetimeField
    played_by: str | None = None
    actual_duration_ms: NonNegativeInt | None = None
    was_skipped: bool = False
    skip_reason: str | None = None
    requested_by: str | None = None
    notes: str | None = None


class Device(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    type: str = ""
    is_active: bool = False
    volume_percent: PercentInt = 0


class NowPlaying(BaseModel):
    """Singleton snapshot of what the external playback source is playing."""

    track: TrackInfo
    progress_ms: NonNegativeInt = 0
    is_playing: bool = False
    timestamp: UtcDatetimeField = Field(default_factory=utcnow)
    device: Device = Field(default_factory=Device)
    shuffle_state: bool | None = None
    repeat_state: str | None = None
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def spotify_id(self) -> str:
        return self.track.spotify_id


class QueueSettings(BaseModel):
    """Singleton moderation policy consulted before every queue mutation."""

    max_queue_size: MaxQueueSize = 50
    allow_duplicates: bool = False
    duplicate_threshold_minutes: PositiveInt | None = None
    auto_skip_threshold: PositiveInt | None = None
    max_song_duration_ms: PositiveInt | None = None
    restricted_users: tuple[str, ...] = ()
    is_paused: bool = False
    is_locked: bool = False
    updated_by: NonEmptyStr = "system"
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)

    def is_restricted(self, user: str) -> bool:
        return user in self.restricted_users

    def exceeds_duration(self, track: TrackInfo) -> bool:
        if self.max_song_duration_ms is None:
            return False
        return track.duration_ms > self.max_song_duration_ms

    @property
    def duplicate_window(self) -> timedelta | None:
        if self.duplicate_threshold_minutes is None:
            return None
        return timedelta(minutes=self.duplicate_threshold_minutes)
