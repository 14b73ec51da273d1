"""
Playlists Bounded Context

User-owned ordered track lists, independent of the shared queue.
"""

from party_queue.domain.playlists.entities import Playlist, PlaylistTrack
from party_queue.domain.playlists.repository import PlaylistRepository

__all__ = [
    "Playlist",
    "PlaylistTrack",
    "PlaylistRepository",
]
