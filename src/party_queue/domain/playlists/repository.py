"""
Playlist Domain Repository Interface

Playlists are persisted as aggregates: ``save`` writes the playlist row and
its full ordered track list together.
"""

from abc import ABC, abstractmethod

from party_queue.domain.playlists.entities import Playlist


class PlaylistRepository(ABC):
    """Abstract repository for playlist aggregates."""

    @abstractmethod
    async def get(self, playlist_id: str) -> Playlist | None:
        """Retrieve a playlist with its tracks in order."""
        ...

    @abstractmethod
    async def save(self, playlist: Playlist) -> None:
        """Insert or replace a playlist and its track list."""
        ...

    @abstractmethod
    async def delete(self, playlist_id: str) -> bool:
        """Delete a playlist and its tracks.

        Returns:
            True if the playlist was deleted, False if it didn't exist.
        """
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> list[Playlist]:
        ...

    @abstractmethod
    async def list_public(self) -> list[Playlist]:
        ...

    @abstractmethod
    async def delete_by_owner(self, owner_id: str) -> int:
        """Delete every playlist owned by a user and return the count."""
        ...
