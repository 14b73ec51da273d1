"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories)
- Spotify (playback source over the Web API)
"""

from party_queue.infrastructure.persistence.database import Database
from party_queue.infrastructure.spotify.playback_source import SpotifyPlaybackSource

__all__ = [
    "Database",
    "SpotifyPlaybackSource",
]
