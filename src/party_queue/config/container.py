"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for repositories, services and the playback source.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.playback_source import PlaybackSource
    from ..application.services.playlist_service import PlaylistService
    from ..application.services.queue_service import QueueService
    from ..application.services.reconciliation import ReconciliationService
    from ..application.services.settings_gate import SettingsGate
    from ..application.services.user_service import UserService
    from ..domain.playlists.repository import PlaylistRepository
    from ..domain.queue.repository import (
        NowPlayingRepository,
        QueueHistoryRepository,
        QueueRepository,
        QueueSettingsRepository,
    )
    from ..domain.users.repository import UserRepository
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. A playback source
    may be supplied up front (tests do); otherwise the Spotify one is built
    from settings.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _queue_repository: QueueRepository | None = None
    _history_repository: QueueHistoryRepository | None = None
    _now_playing_repository: NowPlayingRepository | None = None
    _settings_repository: QueueSettingsRepository | None = None
    _user_repository: UserRepository | None = None
    _playlist_repository: PlaylistRepository | None = None

    # Infrastructure adapters
    _playback_source: PlaybackSource | None = None

    # Application services
    _settings_gate: SettingsGate | None = None
    _queue_service: QueueService | None = None
    _playlist_service: PlaylistService | None = None
    _user_service: UserService | None = None
    _reconciliation_service: ReconciliationService | None = None

    def set_playback_source(self, source: PlaybackSource) -> None:
        self._playback_source = source

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def queue_repository(self) -> QueueRepository:
        if self._queue_repository is None:
            from ..infrastructure.persistence.repositories.queue_repository import (
                SQLiteQueueRepository,
            )

            self._queue_repository = SQLiteQueueRepository(self.database)
        return self._queue_repository

    @property
    def history_repository(self) -> QueueHistoryRepository:
        if self._history_repository is None:
            from ..infrastructure.persistence.repositories.history_repository import (
                SQLiteQueueHistoryRepository,
            )

            self._history_repository = SQLiteQueueHistoryRepository(self.database)
        return self._history_repository

    @property
    def now_playing_repository(self) -> NowPlayingRepository:
        if self._now_playing_repository is None:
            from ..infrastructure.persistence.repositories.singleton_repositories import (
                SQLiteNowPlayingRepository,
            )

            self._now_playing_repository = SQLiteNowPlayingRepository(self.database)
        return self._now_playing_repository

    @property
    def settings_repository(self) -> QueueSettingsRepository:
        if self._settings_repository is None:
            from ..infrastructure.persistence.repositories.singleton_repositories import (
                SQLiteQueueSettingsRepository,
            )

            self._settings_repository = SQLiteQueueSettingsRepository(self.database)
        return self._settings_repository

    @property
    def user_repository(self) -> UserRepository:
        if self._user_repository is None:
            from ..infrastructure.persistence.repositories.user_repository import (
                SQLiteUserRepository,
            )

            self._user_repository = SQLiteUserRepository(self.database)
        return self._user_repository

    @property
    def playlist_repository(self) -> PlaylistRepository:
        if self._playlist_repository is None:
            from ..infrastructure.persistence.repositories.playlist_repository import (
                SQLitePlaylistRepository,
            )

            self._playlist_repository = SQLitePlaylistRepository(self.database)
        return self._playlist_repository

    # === Infrastructure Adapters ===

    @property
    def playback_source(self) -> PlaybackSource:
        """Get the playback source."""
        if self._playback_source is None:
            from ..infrastructure.spotify.playback_source import SpotifyPlaybackSource

            self._playback_source = SpotifyPlaybackSource(self.settings.spotify)
        return self._playback_source

    # === Application Services ===

    @property
    def settings_gate(self) -> SettingsGate:
        if self._settings_gate is None:
            from ..application.services.settings_gate import SettingsGate

            self._settings_gate = SettingsGate(
                settings_repository=self.settings_repository,
                queue_repository=self.queue_repository,
                history_repository=self.history_repository,
                user_repository=self.user_repository,
                defaults=self.settings.queue,
            )
        return self._settings_gate

    @property
    def queue_service(self) -> QueueService:
        if self._queue_service is None:
            from ..application.services.queue_service import QueueService

            self._queue_service = QueueService(
                queue_repository=self.queue_repository,
                history_repository=self.history_repository,
                now_playing_repository=self.now_playing_repository,
                user_repository=self.user_repository,
                settings_gate=self.settings_gate,
                history_limit=self.settings.queue.default_history_limit,
            )
        return self._queue_service

    @property
    def playlist_service(self) -> PlaylistService:
        if self._playlist_service is None:
            from ..application.services.playlist_service import PlaylistService

            self._playlist_service = PlaylistService(
                playlist_repository=self.playlist_repository,
                user_repository=self.user_repository,
            )
        return self._playlist_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            from ..application.services.user_service import UserService

            self._user_service = UserService(
                user_repository=self.user_repository,
                playlist_repository=self.playlist_repository,
            )
        return self._user_service

    @property
    def reconciliation_service(self) -> ReconciliationService:
        if self._reconciliation_service is None:
            from ..application.services.reconciliation import ReconciliationService

            self._reconciliation_service = ReconciliationService(
                playback_source=self.playback_source,
                queue_service=self.queue_service,
                settings_gate=self.settings_gate,
                settings=self.settings.reconciliation,
            )
        return self._reconciliation_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize all async resources."""
        await self.database.initialize()
        await self.settings_gate.initialize_settings()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        try:
            if self._reconciliation_service is not None:
                await self._reconciliation_service.stop()
        except Exception as exc:
            logger.warning("Failed stopping reconciliation scheduler: %r", exc)

        try:
            if self._playback_source is not None:
                await self._playback_source.close()
        except Exception as exc:
            logger.warning("Failed closing playback source: %r", exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
