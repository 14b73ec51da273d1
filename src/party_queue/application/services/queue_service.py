"""Queue Engine - enqueue, removal, reorder and status transitions of the shared queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import uuid4

from ...domain.queue.entities import NowPlaying, QueueEntry, QueueHistoryEntry, TrackInfo
from ...domain.queue.services import PositionAllocator
from ...domain.queue.value_objects import GateAction, QueueStatus
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.events import NowPlayingChanged, QueueChanged, get_event_bus
from ...domain.shared.exceptions import (
    EntityNotFoundError,
    InvalidStateError,
    ValidationError,
)
from ...domain.shared.messages import ErrorMessages, LogTemplates
from .queue_models import BulkEnqueueResult
from .settings_gate import GateContext

if TYPE_CHECKING:
    from ...application.interfaces.playback_source import PlaybackSnapshot
    from ...domain.queue.repository import (
        NowPlayingRepository,
        QueueHistoryRepository,
        QueueRepository,
    )
    from ...domain.users.entities import User
    from ...domain.users.repository import UserRepository
    from .settings_gate import SettingsGate

logger = logging.getLogger(__name__)


class QueueService:
    """Owns every structural and status mutation of the live queue.

    Mutations are serialised through one lock so that a position read and
    the writes derived from it are never interleaved with another mutation
    in this process.
    """

    def __init__(
        self,
        *,
        queue_repository: QueueRepository,
        history_repository: QueueHistoryRepository,
        now_playing_repository: NowPlayingRepository,
        user_repository: UserRepository,
        settings_gate: SettingsGate,
        history_limit: int = 50,
    ) -> None:
        self._queue_repo = queue_repository
        self._history_repo = history_repository
        self._now_playing_repo = now_playing_repository
        self._user_repo = user_repository
        self._gate = settings_gate
        self._history_limit = history_limit
        self._lock = asyncio.Lock()

    # ---- Mutations ----

    async def enqueue(
        self,
        track: TrackInfo,
        submitter: str,
        *,
        requested_by: str | None = None,
        notes: str | None = None,
        priority: int | None = None,
    ) -> QueueEntry:
        """Append a track to the end of the queue.

        Args:
            track: Track metadata to queue.
            submitter: Email of the submitting user.

        Raises:
            EntityNotFoundError: If the submitter does not exist.
            PolicyDeniedError: If the settings gate rejects the submission.
        """
        user = await self._require_user(submitter)

        async with self._lock:
            await self._gate.require(GateAction.ENQUEUE, GateContext(submitter=user, track=track))

            entry = QueueEntry(
                id=str(uuid4()),
                track=track,
                added_by=user.id,
                position=await self._next_position(),
                requested_by=requested_by,
                notes=notes,
                priority=priority,
            )
            await self._queue_repo.insert(entry)

        logger.info(LogTemplates.QUEUE_ENQUEUED, track.name, entry.position, user.email)
        await self._publish_changed("enqueue", entry.id)
        return entry

    async def bulk_enqueue(
        self,
        tracks: Sequence[TrackInfo],
        submitter: str,
        *,
        clear_existing: bool = False,
    ) -> BulkEnqueueResult:
        """Append many tracks with sequential positions.

        With ``clear_existing`` every live entry is deleted first. Otherwise
        tracks already in the queue (or repeated within ``tracks``) are skipped.
        """
        user = await self._require_user(submitter)

        async with self._lock:
            await self._gate.require(GateAction.BULK_ENQUEUE, GateContext(submitter=user))

            if clear_existing:
                cleared = await self._queue_repo.delete_all()
                logger.info(LogTemplates.QUEUE_CLEARED, cleared)
                seen: set[str] = set()
            else:
                seen = {e.spotify_id for e in await self._queue_repo.list_ordered()}

            to_add: list[TrackInfo] = []
            for track in tracks:
                if track.spotify_id in seen:
                    continue
                seen.add(track.spotify_id)
                to_add.append(track)

            start = await self._next_position()
            positions = PositionAllocator.sequential(start, len(to_add))
            entries = [
                QueueEntry(id=str(uuid4()), track=track, added_by=user.id, position=position)
                for track, position in zip(to_add, positions, strict=True)
            ]
            await self._queue_repo.insert_many(entries)

        logger.info(LogTemplates.QUEUE_BULK_ENQUEUED, len(entries), len(tracks), user.email)
        if entries or clear_existing:
            await self._publish_changed("bulk_enqueue")
        return BulkEnqueueResult(added_count=len(entries), ids=[e.id for e in entries])

    async def transition_status(
        self,
        entry_id: str,
        new_status: QueueStatus,
        *,
        skip_reason: str | None = None,
        played_by: str | None = None,
    ) -> QueueEntry:
        """Move an entry through its lifecycle.

        ``played``/``skipped`` archive the entry to history, delete it and
        close the gap it leaves. The history row is written before the
        delete, so a failure in between leaves the entry live with its
        history already recorded; retrying the transition is safe because
        history is keyed by entry id.

        Raises:
            EntityNotFoundError: If the entry does not exist.
            InvalidStateError: If another entry is already playing.
        """
        async with self._lock:
            entry = await self._queue_repo.get(entry_id)
            if entry is None:
                raise EntityNotFoundError("QueueEntry", entry_id)

            await self._gate.require(GateAction.TRANSITION)
            old_status = entry.status

            if new_status.is_terminal:
                await self._archive(
                    entry,
                    was_skipped=new_status == QueueStatus.SKIPPED,
                    skip_reason=skip_reason,
                    played_by=played_by,
                )
                result = entry.model_copy(update={"status": new_status})
            elif new_status == QueueStatus.PLAYING:
                result = await self._mark_playing(entry)
            else:
                await self._queue_repo.patch(entry.id, status=new_status, played_at=None)
                result = entry.model_copy(update={"status": new_status, "played_at": None})

        logger.info(
            LogTemplates.QUEUE_STATUS_CHANGED, entry.id, old_status.value, new_status.value
        )
        await self._publish_changed("transition", entry.id)
        return result

    async def remove(self, entry_id: str, remover: str) -> QueueEntry:
        """Remove a pending entry and close the gap it leaves.

        Raises:
            EntityNotFoundError: If the entry or the remover does not exist.
            InvalidStateError: If the entry is not pending.
            PolicyDeniedError: If the queue is locked.
        """
        async with self._lock:
            entry = await self._queue_repo.get(entry_id)
            if entry is None:
                raise EntityNotFoundError("QueueEntry", entry_id)

            user = await self._require_user(remover)

            if not entry.is_pending:
                raise InvalidStateError(
                    "remove", entry.status.value, ErrorMessages.ONLY_PENDING_REMOVABLE
                )

            await self._gate.require(GateAction.REMOVE, GateContext(submitter=user))

            await self._queue_repo.delete(entry.id)
            await self._compact_after(entry.position)

        logger.info(LogTemplates.QUEUE_REMOVED, entry.track.name, entry.position, user.email)
        await self._publish_changed("remove", entry.id)
        return entry

    async def reorder(self, from_position: int, to_position: int) -> bool:
        """Move the pending entry at ``from_position`` to ``to_position``.

        Returns:
            False for a no-op move, True otherwise.

        Raises:
            PolicyDeniedError: If the queue is locked.
            EntityNotFoundError: If no pending entry occupies ``from_position``.
            ValidationError: If ``to_position`` is outside the pending slots.
        """
        async with self._lock:
            await self._gate.require(GateAction.REORDER)

            moved = await self._queue_repo.get_at_position(from_position, QueueStatus.PENDING)
            if moved is None:
                raise EntityNotFoundError(
                    "QueueEntry",
                    from_position,
                    message=ErrorMessages.NO_PENDING_AT_POSITION.format(position=from_position),
                )

            # The playing entry keeps its slot; moves stay inside the pending partition.
            pending = await self._queue_repo.list_by_status(QueueStatus.PENDING)
            slots = {e.position for e in pending}
            low, high = min(slots), max(slots)
            if not low <= to_position <= high:
                raise ValidationError(
                    ErrorMessages.TARGET_POSITION_OUT_OF_RANGE.format(
                        position=to_position, low=low, high=high
                    ),
                    field="to_position",
                )
            if to_position not in slots:
                raise ValidationError(
                    ErrorMessages.TARGET_POSITION_NOT_PENDING.format(position=to_position),
                    field="to_position",
                )

            updates = PositionAllocator.shift_for_move(pending, from_position, to_position)
            if not updates:
                return False
            await self._queue_repo.apply_positions(updates)

        logger.info(LogTemplates.QUEUE_REORDERED, from_position, to_position)
        await self._publish_changed("reorder", moved.id)
        return True

    async def sync_now_playing(self, snapshot: PlaybackSnapshot | None) -> NowPlaying | None:
        """Upsert the now-playing singleton from a playback snapshot, or clear it on None."""
        if snapshot is None:
            cleared = await self._now_playing_repo.clear()
            if cleared:
                await get_event_bus().publish(NowPlayingChanged())
            return None

        now_playing = NowPlaying(
            track=snapshot.track,
            progress_ms=snapshot.progress_ms,
            is_playing=snapshot.is_playing,
            timestamp=snapshot.timestamp,
            device=snapshot.device,
            shuffle_state=snapshot.shuffle_state,
            repeat_state=snapshot.repeat_state,
        )
        previous = await self._now_playing_repo.get()
        await self._now_playing_repo.upsert(now_playing)

        if (
            previous is None
            or previous.spotify_id != now_playing.spotify_id
            or previous.is_playing != now_playing.is_playing
        ):
            await get_event_bus().publish(
                NowPlayingChanged(
                    spotify_id=now_playing.spotify_id, is_playing=now_playing.is_playing
                )
            )
        return now_playing

    # ---- Reads ----

    async def get_queue(self) -> list[QueueEntry]:
        return await self._queue_repo.list_ordered()

    async def get_pending_queue(self) -> list[QueueEntry]:
        return await self._queue_repo.list_by_status(QueueStatus.PENDING)

    async def get_current_entry(self) -> QueueEntry | None:
        return await self._queue_repo.first_by_status(QueueStatus.PLAYING)

    async def get_now_playing(self) -> NowPlaying | None:
        return await self._now_playing_repo.get()

    async def get_queue_history(self, limit: int | None = None) -> list[QueueHistoryEntry]:
        return await self._history_repo.get_recent(
            self._history_limit if limit is None else limit
        )

    async def find_pending_by_spotify_id(self, spotify_id: str) -> QueueEntry | None:
        entries = await self._queue_repo.find_by_spotify_id(spotify_id, QueueStatus.PENDING)
        return entries[0] if entries else None

    async def verify_positions(self) -> bool:
        """Check that live positions are dense from the base."""
        positions = [e.position for e in await self._queue_repo.list_ordered()]
        ok = PositionAllocator.is_contiguous(positions)
        if not ok:
            logger.warning(LogTemplates.QUEUE_POSITIONS_INCONSISTENT, positions)
        return ok

    # ---- Internals (callers hold the lock) ----

    async def _require_user(self, email: str) -> User:
        user = await self._user_repo.get_by_email(email)
        if user is None:
            raise EntityNotFoundError("User", email)
        return user

    async def _next_position(self) -> int:
        highest = await self._queue_repo.max_position()
        return PositionAllocator.next_position([] if highest is None else [highest])

    async def _mark_playing(self, entry: QueueEntry) -> QueueEntry:
        current = await self._queue_repo.first_by_status(QueueStatus.PLAYING)
        if current is not None and current.id != entry.id:
            raise InvalidStateError(
                "play",
                entry.status.value,
                ErrorMessages.ANOTHER_TRACK_PLAYING.format(name=current.track.name),
            )
        if entry.is_playing:
            return entry

        played_at = utcnow()
        await self._queue_repo.patch(entry.id, status=QueueStatus.PLAYING, played_at=played_at)
        return entry.model_copy(update={"status": QueueStatus.PLAYING, "played_at": played_at})

    async def _archive(
        self,
        entry: QueueEntry,
        *,
        was_skipped: bool,
        skip_reason: str | None,
        played_by: str | None,
    ) -> None:
        history = entry.to_history(
            history_id=str(uuid4()),
            was_skipped=was_skipped,
            skip_reason=skip_reason,
            played_by=played_by,
        )
        await self._history_repo.record(history)
        await self._queue_repo.delete(entry.id)
        await self._compact_after(entry.position)
        logger.info(LogTemplates.QUEUE_ARCHIVED, entry.track.name, was_skipped)

    async def _compact_after(self, removed_position: int) -> None:
        remaining = await self._queue_repo.list_ordered()
        updates = PositionAllocator.compact_after(remaining, removed_position)
        applied = await self._queue_repo.apply_positions(updates)
        if applied:
            logger.debug(LogTemplates.QUEUE_POSITIONS_REPAIRED, applied, removed_position)

    async def _publish_changed(self, operation: str, entry_id: str | None = None) -> None:
        pending = await self._queue_repo.count_by_status(QueueStatus.PENDING)
        await get_event_bus().publish(
            QueueChanged(operation=operation, entry_id=entry_id, pending_count=pending)
        )
