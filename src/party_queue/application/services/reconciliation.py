"""Reconciliation between the external playback source and the local queue.

The reconciler never rewrites the queue in bulk. Each sync:

1. mirrors the source's current track into the now-playing singleton
   (clearing it when nothing plays),
2. promotes a pending entry to ``playing`` when the source is playing its
   track, archiving whichever entry was playing before, then checks that
   live positions are still dense,
3. remembers the source's upcoming list so the queue view can show it
   minus anything users already queued,
4. forwards the head of the user queue to the source unless the queue is
   paused.

Failures of a single step are logged and recorded on the report; the
remaining steps still run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel

from ...domain.queue.value_objects import QueueStatus
from ...domain.shared.events import QueueChanged, get_event_bus
from ...domain.shared.messages import LogTemplates
from ..interfaces.playback_source import PlaybackSnapshot, UpcomingQueue
from .queue_models import QueueView

if TYPE_CHECKING:
    from ...config.settings import ReconciliationSettings
    from ..interfaces.playback_source import PlaybackSource
    from .queue_service import QueueService
    from .settings_gate import SettingsGate

logger = logging.getLogger(__name__)


class SyncReport(BaseModel):
    now_playing_spotify_id: str | None = None
    promoted: str | None = None
    archived: list[str] = []
    forwarded: str | None = None
    positions_ok: bool | None = None
    errors: list[str] = []

    @property
    def ok(self) -> bool:
        return not self.errors


class ReconciliationService:
    def __init__(
        self,
        *,
        playback_source: PlaybackSource,
        queue_service: QueueService,
        settings_gate: SettingsGate,
        settings: ReconciliationSettings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = playback_source
        self._queue = queue_service
        self._gate = settings_gate
        self._settings = settings
        self._clock = clock

        self._last_poll: float | None = None
        self._upcoming = UpcomingQueue()
        self._forwarded: set[str] = set()
        self._sync_lock = asyncio.Lock()
        self._invalidated = asyncio.Event()
        self._running = False
        self._task: asyncio.Task | None = None

    # ---- Sync ----

    async def sync(self, *, force: bool = False) -> SyncReport | None:
        """Run one reconciliation pass.

        Returns:
            The report, or None when called again before the minimum
            poll interval has elapsed (and ``force`` is not set).
        """
        async with self._sync_lock:
            now = self._clock()
            min_interval = self._settings.min_poll_interval_seconds
            if not force and self._last_poll is not None:
                elapsed = now - self._last_poll
                if elapsed < min_interval:
                    logger.debug(LogTemplates.RECONCILE_RATE_LIMITED, elapsed, min_interval)
                    return None
            self._last_poll = now

            report = SyncReport()

            snapshot_ok = True
            snapshot: PlaybackSnapshot | None = None
            try:
                snapshot = await self._source.get_now_playing()
            except Exception as e:
                snapshot_ok = False
                self._record_failure(report, "get_now_playing", e)

            if snapshot_ok:
                await self._apply_now_playing(snapshot, report)
                await self._reconcile_entries(snapshot, report)
                if report.promoted or report.archived:
                    await self._check_positions(report)

            try:
                self._upcoming = await self._source.get_upcoming_queue()
            except Exception as e:
                self._record_failure(report, "get_upcoming_queue", e)

            await self._forward_head(snapshot, report)

        logger.debug(
            LogTemplates.RECONCILE_COMPLETED,
            report.promoted,
            report.archived,
            report.forwarded,
            len(report.errors),
        )
        return report

    async def _apply_now_playing(
        self, snapshot: PlaybackSnapshot | None, report: SyncReport
    ) -> None:
        try:
            await self._queue.sync_now_playing(snapshot)
        except Exception as e:
            self._record_failure(report, "sync_now_playing", e)
            return

        if snapshot is None:
            logger.debug(LogTemplates.RECONCILE_NOW_PLAYING_CLEARED)
        else:
            report.now_playing_spotify_id = snapshot.track.spotify_id
            logger.debug(
                LogTemplates.RECONCILE_NOW_PLAYING_UPDATED,
                snapshot.track.display_title,
                snapshot.is_playing,
            )

    async def _reconcile_entries(
        self, snapshot: PlaybackSnapshot | None, report: SyncReport
    ) -> None:
        try:
            current = await self._queue.get_current_entry()
            external_id = snapshot.track.spotify_id if snapshot is not None else None

            if current is not None and current.spotify_id != external_id:
                await self._queue.transition_status(current.id, QueueStatus.PLAYED)
                self._forwarded.discard(current.id)
                report.archived.append(current.id)
                logger.info(LogTemplates.RECONCILE_CONSUMED, current.track.name)
                current = None

            if external_id is None or current is not None:
                return

            match = await self._queue.find_pending_by_spotify_id(external_id)
            if match is not None:
                await self._queue.transition_status(match.id, QueueStatus.PLAYING)
                report.promoted = match.id
                logger.info(LogTemplates.RECONCILE_PROMOTED, match.track.name)
        except Exception as e:
            self._record_failure(report, "reconcile_entries", e)

    async def _check_positions(self, report: SyncReport) -> None:
        try:
            report.positions_ok = await self._queue.verify_positions()
        except Exception as e:
            self._record_failure(report, "verify_positions", e)

    async def _forward_head(self, snapshot: PlaybackSnapshot | None, report: SyncReport) -> None:
        if not self._settings.forward_to_source:
            return

        try:
            settings = await self._gate.get_settings()
            if settings.is_paused:
                return

            pending = await self._queue.get_pending_queue()
            self._forwarded &= {e.id for e in pending}
            if not pending:
                return

            head = pending[0]
            if head.id in self._forwarded:
                return
            if snapshot is not None and snapshot.track.spotify_id == head.spotify_id:
                return
            if head.spotify_id in self._upcoming.spotify_ids:
                return

            if await self._source.enqueue(head.track.uri):
                self._forwarded.add(head.id)
                report.forwarded = head.id
                logger.info(LogTemplates.RECONCILE_FORWARDED, head.track.name)
        except Exception as e:
            self._record_failure(report, "forward_head", e)

    @staticmethod
    def _record_failure(report: SyncReport, step: str, error: Exception) -> None:
        logger.warning(LogTemplates.RECONCILE_STEP_FAILED, step, error)
        report.errors.append(f"{step}: {error}")

    # ---- Presentation ----

    async def get_queue_view(self) -> QueueView:
        """Now playing, the user queue, and the source's upcoming list minus both."""
        now_playing = await self._queue.get_now_playing()
        user_queue = await self._queue.get_pending_queue()

        hidden = {e.spotify_id for e in user_queue}
        if now_playing is not None:
            hidden.add(now_playing.spotify_id)

        system_queue = []
        for track in self._upcoming.queue:
            if track.spotify_id in hidden:
                continue
            hidden.add(track.spotify_id)
            system_queue.append(track)

        return QueueView(now_playing=now_playing, user_queue=user_queue, system_queue=system_queue)

    @property
    def upcoming(self) -> UpcomingQueue:
        return self._upcoming

    # ---- Scheduler ----

    def invalidate(self) -> None:
        """Ask the scheduler to sync soon instead of waiting a full interval."""
        self._invalidated.set()

    async def _on_queue_changed(self, event: QueueChanged) -> None:
        self.invalidate()

    def start(self) -> None:
        if self._running:
            logger.warning(LogTemplates.RECONCILE_ALREADY_RUNNING)
            return

        self._running = True
        get_event_bus().subscribe(QueueChanged, self._on_queue_changed)
        self._task = asyncio.create_task(self._run_loop())
        logger.info(LogTemplates.RECONCILE_STARTED, self._settings.poll_interval_seconds)

    async def stop(self) -> None:
        self._running = False
        get_event_bus().unsubscribe(QueueChanged, self._on_queue_changed)

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info(LogTemplates.RECONCILE_STOPPED)

    @property
    def is_running(self) -> bool:
        return self._running

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.sync()
            except Exception:
                logger.exception(LogTemplates.RECONCILE_LOOP_ERROR)

            try:
                await self._wait_for_next_poll()
            except asyncio.CancelledError:
                break

    async def _wait_for_next_poll(self) -> None:
        try:
            await asyncio.wait_for(
                self._invalidated.wait(), timeout=self._settings.poll_interval_seconds
            )
        except TimeoutError:
            return
        finally:
            self._invalidated.clear()

        # Woken early: still honour the minimum spacing between polls.
        if self._last_poll is not None:
            remaining = self._settings.min_poll_interval_seconds - (
                self._clock() - self._last_poll
            )
            if remaining > 0:
                await asyncio.sleep(remaining)
