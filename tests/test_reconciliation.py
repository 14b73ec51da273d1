"""Tests for playback-source reconciliation."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from conftest import make_track
from party_queue.application.interfaces.playback_source import (
    PlaybackSnapshot,
    PlaybackSource,
    UpcomingQueue,
)
from party_queue.application.services.reconciliation import ReconciliationService
from party_queue.config.settings import ReconciliationSettings
from party_queue.domain.queue.value_objects import PositionUpdate, QueueStatus
from party_queue.domain.shared.exceptions import PlaybackSourceError


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePlaybackSource(PlaybackSource):
    def __init__(self) -> None:
        self.snapshot: PlaybackSnapshot | None = None
        self.upcoming = UpcomingQueue()
        self.enqueued: list[str] = []
        self.accept = True

    def play(self, spotify_id: str | None, *, is_playing: bool = True) -> None:
        if spotify_id is None:
            self.snapshot = None
        else:
            self.snapshot = PlaybackSnapshot(track=make_track(spotify_id), is_playing=is_playing)

    async def get_now_playing(self) -> PlaybackSnapshot | None:
        return self.snapshot

    async def get_upcoming_queue(self) -> UpcomingQueue:
        return self.upcoming

    async def enqueue(self, track_uri: str) -> bool:
        if self.accept:
            self.enqueued.append(track_uri)
        return self.accept


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return FakePlaybackSource()


def _build(source, queue_service, settings_gate, clock, **overrides) -> ReconciliationService:
    settings = ReconciliationSettings(
        **{"poll_interval_seconds": 30, "min_poll_interval_seconds": 5, **overrides}
    )
    return ReconciliationService(
        playback_source=source,
        queue_service=queue_service,
        settings_gate=settings_gate,
        settings=settings,
        clock=clock,
    )


@pytest_asyncio.fixture
async def reconciler(source, queue_service, settings_gate, clock):
    service = _build(source, queue_service, settings_gate, clock)
    yield service
    if service.is_running:
        await service.stop()


class TestRateLimit:
    async def test_second_call_too_soon_returns_none(self, reconciler, clock):
        assert await reconciler.sync() is not None

        clock.advance(4.9)
        assert await reconciler.sync() is None

        clock.advance(0.1)
        assert await reconciler.sync() is not None

    async def test_force_bypasses_rate_limit(self, reconciler):
        await reconciler.sync()
        assert await reconciler.sync(force=True) is not None


class TestNowPlaying:
    async def test_mirrors_source_track(self, reconciler, source, queue_service):
        source.play("ext-1")

        report = await reconciler.sync()

        assert report.now_playing_spotify_id == "ext-1"
        assert (await queue_service.get_now_playing()).spotify_id == "ext-1"

    async def test_nothing_playing_clears_and_archives(
        self, reconciler, source, queue_service, alice, clock
    ):
        """Should clear now-playing and archive the entry that was playing."""
        entry = await queue_service.enqueue(make_track("a"), alice.email)
        source.play("a")
        await reconciler.sync()
        assert (await queue_service.get_current_entry()).id == entry.id

        source.play(None)
        clock.advance(10)
        report = await reconciler.sync()

        assert report.archived == [entry.id]
        assert await queue_service.get_now_playing() is None
        assert await queue_service.get_queue() == []
        history = await queue_service.get_queue_history()
        assert history[0].queue_entry_id == entry.id
        assert history[0].was_skipped is False


class TestPromotion:
    async def test_promotes_matching_pending_entry(self, reconciler, source, queue_service, alice):
        await queue_service.enqueue(make_track("a"), alice.email)
        target = await queue_service.enqueue(make_track("b"), alice.email)
        source.play("b")

        report = await reconciler.sync()

        assert report.promoted == target.id
        current = await queue_service.get_current_entry()
        assert current.id == target.id
        assert current.position == 1
        assert report.positions_ok is True

    async def test_gap_in_live_positions_is_reported(
        self, reconciler, source, queue_service, queue_repository, alice
    ):
        await queue_service.enqueue(make_track("a"), alice.email)
        stray = await queue_service.enqueue(make_track("b"), alice.email)
        await queue_repository.apply_positions([PositionUpdate(stray.id, 1, 5)])
        source.play("a")

        report = await reconciler.sync()

        assert report.promoted is not None
        assert report.positions_ok is False
        assert report.ok

    async def test_track_change_archives_previous_and_promotes_next(
        self, reconciler, source, queue_service, alice, clock
    ):
        first = await queue_service.enqueue(make_track("a"), alice.email)
        second = await queue_service.enqueue(make_track("b"), alice.email)
        source.play("a")
        await reconciler.sync()

        source.play("b")
        clock.advance(10)
        report = await reconciler.sync()

        assert report.archived == [first.id]
        assert report.promoted == second.id
        current = await queue_service.get_current_entry()
        assert current.id == second.id
        assert current.position == 0

    async def test_unknown_track_promotes_nothing(self, reconciler, source, queue_service, alice):
        await queue_service.enqueue(make_track("a"), alice.email)
        source.play("radio-track")

        report = await reconciler.sync()

        assert report.promoted is None
        assert await queue_service.get_current_entry() is None
        assert report.positions_ok is None

    async def test_same_track_keeps_entry_playing(
        self, reconciler, source, queue_service, alice, clock
    ):
        entry = await queue_service.enqueue(make_track("a"), alice.email)
        source.play("a")
        await reconciler.sync()

        clock.advance(10)
        report = await reconciler.sync()

        assert report.archived == []
        assert report.promoted is None
        assert (await queue_service.get_current_entry()).id == entry.id


class TestQueueView:
    async def test_filters_system_queue(self, reconciler, source, queue_service, alice):
        """System band drops anything already playing or in the user queue."""
        await queue_service.enqueue(make_track("user-1"), alice.email)
        source.play("now")
        source.upcoming = UpcomingQueue(
            currently_playing=make_track("now"),
            queue=tuple(make_track(i) for i in ("now", "user-1", "sys-1", "sys-1", "sys-2")),
        )
        await reconciler.sync()

        view = await reconciler.get_queue_view()

        assert view.now_playing.spotify_id == "now"
        assert [e.spotify_id for e in view.user_queue] == ["user-1"]
        assert [t.spotify_id for t in view.system_queue] == ["sys-1", "sys-2"]
        assert view.total_length == 3
        assert view.total_duration_ms == 3 * 180_000

    async def test_playing_entry_not_in_user_band(self, reconciler, source, queue_service, alice):
        await queue_service.enqueue(make_track("a"), alice.email)
        await queue_service.enqueue(make_track("b"), alice.email)
        source.play("a")
        await reconciler.sync()

        view = await reconciler.get_queue_view()

        assert [e.spotify_id for e in view.user_queue] == ["b"]


class TestForwarding:
    async def test_forwards_head_once(self, reconciler, source, queue_service, alice, clock):
        await queue_service.enqueue(make_track("a"), alice.email)
        await queue_service.enqueue(make_track("b"), alice.email)

        report = await reconciler.sync()
        clock.advance(10)
        await reconciler.sync()

        assert report.forwarded is not None
        assert source.enqueued == ["spotify:track:a"]

    async def test_skips_head_already_upcoming(self, reconciler, source, queue_service, alice):
        await queue_service.enqueue(make_track("a"), alice.email)
        source.upcoming = UpcomingQueue(queue=(make_track("a"),))

        report = await reconciler.sync()

        assert report.forwarded is None
        assert source.enqueued == []

    async def test_paused_queue_is_not_forwarded(
        self, reconciler, source, queue_service, settings_gate, admin, alice
    ):
        await settings_gate.update_settings(admin.email, is_paused=True)
        await queue_service.enqueue(make_track("a"), alice.email)

        report = await reconciler.sync()

        assert report.forwarded is None
        assert source.enqueued == []

    async def test_forwarding_disabled(self, source, queue_service, settings_gate, clock, alice):
        service = _build(source, queue_service, settings_gate, clock, forward_to_source=False)
        await queue_service.enqueue(make_track("a"), alice.email)

        await service.sync()

        assert source.enqueued == []

    async def test_rejected_forward_is_retried(
        self, reconciler, source, queue_service, alice, clock
    ):
        await queue_service.enqueue(make_track("a"), alice.email)
        source.accept = False
        await reconciler.sync()

        source.accept = True
        clock.advance(10)
        report = await reconciler.sync()

        assert report.forwarded is not None
        assert source.enqueued == ["spotify:track:a"]


class TestFailures:
    async def test_source_failure_is_reported_not_raised(
        self, queue_service, settings_gate, clock, alice
    ):
        source = AsyncMock(spec=PlaybackSource)
        source.get_now_playing.side_effect = PlaybackSourceError("down", status_code=503)
        source.get_upcoming_queue.return_value = UpcomingQueue()
        source.enqueue.return_value = True
        await queue_service.enqueue(make_track("a"), alice.email)
        service = _build(source, queue_service, settings_gate, clock)

        report = await service.sync()

        assert not report.ok
        assert report.errors[0].startswith("get_now_playing")
        source.enqueue.assert_awaited_once_with("spotify:track:a")

    async def test_now_playing_untouched_when_source_fails(
        self, queue_service, settings_gate, clock, source
    ):
        service = _build(source, queue_service, settings_gate, clock)
        source.play("a")
        await service.sync()

        source.get_now_playing = AsyncMock(side_effect=PlaybackSourceError("down"))
        clock.advance(10)
        await service.sync()

        assert (await queue_service.get_now_playing()).spotify_id == "a"


class TestScheduler:
    async def test_start_and_stop(self, source, queue_service, settings_gate):
        service = _build(
            source,
            queue_service,
            settings_gate,
            clock=lambda: asyncio.get_running_loop().time(),
            poll_interval_seconds=60,
            min_poll_interval_seconds=0,
        )

        service.start()
        assert service.is_running
        await asyncio.sleep(0.05)
        await service.stop()

        assert not service.is_running

    async def test_queue_change_wakes_scheduler(self, source, queue_service, settings_gate, alice):
        """Should run a sync soon after a queue mutation instead of a full interval."""
        service = _build(
            source,
            queue_service,
            settings_gate,
            clock=lambda: asyncio.get_running_loop().time(),
            poll_interval_seconds=60,
            min_poll_interval_seconds=0,
        )
        service.start()
        try:
            await asyncio.sleep(0.05)
            await queue_service.enqueue(make_track("a"), alice.email)

            for _ in range(50):
                if source.enqueued:
                    break
                await asyncio.sleep(0.02)
        finally:
            await service.stop()

        assert source.enqueued == ["spotify:track:a"]
