"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters.
"""

from party_queue.application.interfaces.playback_source import (
    PlaybackSnapshot,
    PlaybackSource,
    UpcomingQueue,
)

__all__ = [
    "PlaybackSource",
    "PlaybackSnapshot",
    "UpcomingQueue",
]
