import pytest
import pytest_asyncio

# ============================================================================
# Event Bus
# ============================================================================


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Give every test its own event bus."""
    from party_queue.domain.shared.events import reset_event_bus

    reset_event_bus()
    yield
    reset_event_bus()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from party_queue.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def queue_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.queue_repository import (
        SQLiteQueueRepository,
    )

    return SQLiteQueueRepository(in_memory_database)


@pytest_asyncio.fixture
async def history_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.history_repository import (
        SQLiteQueueHistoryRepository,
    )

    return SQLiteQueueHistoryRepository(in_memory_database)


@pytest_asyncio.fixture
async def now_playing_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.singleton_repositories import (
        SQLiteNowPlayingRepository,
    )

    return SQLiteNowPlayingRepository(in_memory_database)


@pytest_asyncio.fixture
async def settings_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.singleton_repositories import (
        SQLiteQueueSettingsRepository,
    )

    return SQLiteQueueSettingsRepository(in_memory_database)


@pytest_asyncio.fixture
async def user_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.user_repository import (
        SQLiteUserRepository,
    )

    return SQLiteUserRepository(in_memory_database)


@pytest_asyncio.fixture
async def playlist_repository(in_memory_database):
    from party_queue.infrastructure.persistence.repositories.playlist_repository import (
        SQLitePlaylistRepository,
    )

    return SQLitePlaylistRepository(in_memory_database)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def settings_gate(settings_repository, queue_repository, history_repository, user_repository):
    from party_queue.application.services.settings_gate import SettingsGate

    return SettingsGate(
        settings_repository=settings_repository,
        queue_repository=queue_repository,
        history_repository=history_repository,
        user_repository=user_repository,
    )


@pytest_asyncio.fixture
async def queue_service(
    queue_repository, history_repository, now_playing_repository, user_repository, settings_gate
):
    from party_queue.application.services.queue_service import QueueService

    return QueueService(
        queue_repository=queue_repository,
        history_repository=history_repository,
        now_playing_repository=now_playing_repository,
        user_repository=user_repository,
        settings_gate=settings_gate,
    )


@pytest_asyncio.fixture
async def playlist_service(playlist_repository, user_repository):
    from party_queue.application.services.playlist_service import PlaylistService

    return PlaylistService(playlist_repository=playlist_repository, user_repository=user_repository)


@pytest_asyncio.fixture
async def user_service(user_repository, playlist_repository):
    from party_queue.application.services.user_service import UserService

    return UserService(user_repository=user_repository, playlist_repository=playlist_repository)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_track(spotify_id: str, name: str | None = None, duration_ms: int = 180_000):
    from party_queue.domain.queue.entities import Album, Artist, TrackInfo

    return TrackInfo(
        spotify_id=spotify_id,
        name=name or f"Track {spotify_id}",
        uri=f"spotify:track:{spotify_id}",
        duration_ms=duration_ms,
        artists=(Artist(id=f"artist-{spotify_id}", name="Test Artist"),),
        album=Album(id=f"album-{spotify_id}", name="Test Album"),
    )


@pytest.fixture
def track_factory():
    """Build ``TrackInfo`` objects from a Spotify id."""
    return make_track


@pytest.fixture
def sample_track():
    return make_track("track-a", "Song A")


@pytest_asyncio.fixture
async def alice(user_service, user_repository):
    """A regular submitter."""
    user_id = await user_service.upsert_user("alice@example.com", "Alice")
    return await user_repository.get(user_id)


@pytest_asyncio.fixture
async def admin(user_service, user_repository):
    """A moderator."""
    from party_queue.domain.users.entities import UserRole

    user_id = await user_service.upsert_user("admin@example.com", "Admin")
    return await user_service.update_role(user_id, UserRole.ADMIN)
