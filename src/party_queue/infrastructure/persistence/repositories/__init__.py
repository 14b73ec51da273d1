"""SQLite repository implementations."""

from party_queue.infrastructure.persistence.repositories.history_repository import (
    SQLiteQueueHistoryRepository,
)
from party_queue.infrastructure.persistence.repositories.playlist_repository import (
    SQLitePlaylistRepository,
)
from party_queue.infrastructure.persistence.repositories.queue_repository import (
    SQLiteQueueRepository,
)
from party_queue.infrastructure.persistence.repositories.singleton_repositories import (
    SQLiteNowPlayingRepository,
    SQLiteQueueSettingsRepository,
)
from party_queue.infrastructure.persistence.repositories.user_repository import (
    SQLiteUserRepository,
)

__all__ = [
    "SQLiteQueueRepository",
    "SQLiteQueueHistoryRepository",
    "SQLiteNowPlayingRepository",
    "SQLiteQueueSettingsRepository",
    "SQLiteUserRepository",
    "SQLitePlaylistRepository",
]
