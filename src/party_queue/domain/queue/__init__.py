"""
Queue Bounded Context

Domain logic for the shared playback queue: entries, history, the
now-playing and settings singletons, and dense position arithmetic.
"""

from party_queue.domain.queue.entities import (
    Album,
    AlbumImage,
    Artist,
    Device,
    NowPlaying,
    QueueEntry,
    QueueHistoryEntry,
    QueueSettings,
    TrackInfo,
)
from party_queue.domain.queue.services import PositionAllocator
from party_queue.domain.queue.value_objects import (
    DenyReason,
    GateAction,
    PositionUpdate,
    QueueStatus,
)

__all__ = [
    # Entities
    "Artist",
    "Album",
    "AlbumImage",
    "TrackInfo",
    "QueueEntry",
    "QueueHistoryEntry",
    "Device",
    "NowPlaying",
    "QueueSettings",
    # Value Objects
    "QueueStatus",
    "PositionUpdate",
    "GateAction",
    "DenyReason",
    # Services
    "PositionAllocator",
]
