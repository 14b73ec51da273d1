"""
Queue Domain Repository Interfaces

Abstract base classes defining the contracts for data persistence.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from party_queue.domain.queue.entities import (
    NowPlaying,
    QueueEntry,
    QueueHistoryEntry,
    QueueSettings,
)
from party_queue.domain.queue.value_objects import PositionUpdate, QueueStatus


class QueueRepository(ABC):
    """Abstract repository for the live queue partition.

    Every method is a single store operation except ``apply_positions``,
    which applies a batch of position patches sequentially.
    """

    @abstractmethod
    async def insert(self, entry: QueueEntry) -> None:
        """Insert a new entry."""
        ...

    @abstractmethod
    async def insert_many(self, entries: Sequence[QueueEntry]) -> None:
        """Insert several entries in one transaction."""
        ...

    @abstractmethod
    async def get(self, entry_id: str) -> QueueEntry | None:
        """Retrieve an entry by id."""
        ...

    @abstractmethod
    async def patch(self, entry_id: str, **fields: Any) -> None:
        """Overwrite the given fields of an entry.

        Args:
            entry_id: The entry to patch.
            **fields: Field names of ``QueueEntry`` mapped to new values.
        """
        ...

    @abstractmethod
    async def delete(self, entry_id: str) -> bool:
        """Delete an entry.

        Returns:
            True if the entry was deleted, False if it didn't exist.
        """
        ...

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every entry and return the count removed."""
        ...

    @abstractmethod
    async def list_ordered(self) -> list[QueueEntry]:
        """All entries ordered ascending by position."""
        ...

    @abstractmethod
    async def list_by_status(self, status: QueueStatus) -> list[QueueEntry]:
        """Entries with the given status, ordered ascending by position."""
        ...

    @abstractmethod
    async def first_by_status(self, status: QueueStatus) -> QueueEntry | None:
        """The lowest-positioned entry with the given status."""
        ...

    @abstractmethod
    async def count_by_status(self, status: QueueStatus) -> int:
        ...

    @abstractmethod
    async def find_by_spotify_id(
        self, spotify_id: str, status: QueueStatus | None = None
    ) -> list[QueueEntry]:
        """Entries for a track, optionally filtered by status."""
        ...

    @abstractmethod
    async def get_at_position(self, position: int, status: QueueStatus) -> QueueEntry | None:
        ...

    @abstractmethod
    async def max_position(self) -> int | None:
        """Highest position in use, or None if the queue is empty."""
        ...

    @abstractmethod
    async def apply_positions(self, updates: Sequence[PositionUpdate]) -> int:
        """Apply position patches in order and return the number applied."""
        ...


class QueueHistoryRepository(ABC):
    """Abstract repository for archived queue entries."""

    @abstractmethod
    async def record(self, entry: QueueHistoryEntry) -> bool:
        """Insert a history entry.

        Returns:
            False if an entry archiving the same queue entry already exists.
        """
        ...

    @abstractmethod
    async def get_recent(self, limit: int = 50) -> list[QueueHistoryEntry]:
        """History entries, newest ``played_at`` first."""
        ...

    @abstractmethod
    async def get_by_queue_entry(self, queue_entry_id: str) -> QueueHistoryEntry | None:
        ...

    @abstractmethod
    async def played_since(self, spotify_id: str, since: datetime) -> bool:
        """Whether the track was archived at or after ``since``."""
        ...


class NowPlayingRepository(ABC):
    """Abstract repository for the now-playing singleton."""

    @abstractmethod
    async def get(self) -> NowPlaying | None:
        ...

    @abstractmethod
    async def upsert(self, now_playing: NowPlaying) -> bool:
        """Create or replace the singleton.

        Returns:
            True if an existing record was updated, False if it was created.
        """
        ...

    @abstractmethod
    async def clear(self) -> bool:
        """Remove the singleton. Returns True if something was removed."""
        ...


class QueueSettingsRepository(ABC):
    """Abstract repository for the moderation-policy singleton."""

    @abstractmethod
    async def get(self) -> QueueSettings | None:
        ...

    @abstractmethod
    async def insert_if_absent(self, settings: QueueSettings) -> bool:
        """Create the singleton unless it already exists.

        Returns:
            True if this call created the record.
        """
        ...

    @abstractmethod
    async def save(self, settings: QueueSettings) -> None:
        ...

