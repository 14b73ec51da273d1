"""Port interface for the external playback source (e.g. a Spotify player)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from party_queue.domain.queue.entities import Device, TrackInfo
from party_queue.domain.shared.datetime_utils import utcnow
from party_queue.domain.shared.types import NonEmptyStr, NonNegativeInt, UtcDatetimeField


class PlaybackSnapshot(BaseModel):
    """What the playback source reports as currently playing."""

    model_config = ConfigDict(frozen=True)

    track: TrackInfo
    progress_ms: NonNegativeInt = 0
    is_playing: bool = False
    timestamp: UtcDatetimeField = Field(default_factory=utcnow)
    device: Device = Field(default_factory=Device)
    shuffle_state: bool | None = None
    repeat_state: str | None = None


class UpcomingQueue(BaseModel):
    """The playback source's own upcoming list, independent of the user queue."""

    model_config = ConfigDict(frozen=True)

    currently_playing: TrackInfo | None = None
    queue: tuple[TrackInfo, ...] = ()

    @property
    def spotify_ids(self) -> set[str]:
        return {track.spotify_id for track in self.queue}


class PlaybackSource(ABC):
    """Interface to the player that actually plays audio."""

    @abstractmethod
    async def get_now_playing(self) -> PlaybackSnapshot | None:
        """Current playback, or None when nothing is playing."""
        ...

    @abstractmethod
    async def get_upcoming_queue(self) -> UpcomingQueue:
        """The source's upcoming list."""
        ...

    @abstractmethod
    async def enqueue(self, track_uri: NonEmptyStr) -> bool:
        """Append a track to the source's own queue.

        Returns:
            True if the source accepted the track.
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
