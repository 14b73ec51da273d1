"""DTOs for the queue application services."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.queue.entities import NowPlaying, QueueEntry, TrackInfo
from ...domain.shared.types import NonNegativeInt


class BulkEnqueueResult(BaseModel):
    added_count: NonNegativeInt = 0
    ids: list[str] = []


class QueueView(BaseModel):
    """Three presentation bands: what plays now, what users asked for, what the player has."""

    now_playing: NowPlaying | None = None
    user_queue: list[QueueEntry] = []
    system_queue: list[TrackInfo] = []

    @property
    def total_length(self) -> int:
        return len(self.user_queue) + len(self.system_queue)

    @property
    def total_duration_ms(self) -> int:
        return sum(e.track.duration_ms for e in self.user_queue) + sum(
            t.duration_ms for t in self.system_queue
        )
