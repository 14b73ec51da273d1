"""Settings Gate - moderation policy consulted before every queue mutation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from ...domain.queue.entities import QueueSettings, TrackInfo
from ...domain.queue.value_objects import DenyReason, GateAction, QueueStatus
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.events import QueueSettingsChanged, get_event_bus
from ...domain.shared.exceptions import EntityNotFoundError, PolicyDeniedError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.users.entities import User

if TYPE_CHECKING:
    from ...config.settings import QueueDefaultsSettings
    from ...domain.queue.repository import (
        QueueHistoryRepository,
        QueueRepository,
        QueueSettingsRepository,
    )
    from ...domain.users.repository import UserRepository

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {
        "max_queue_size",
        "allow_duplicates",
        "duplicate_threshold_minutes",
        "auto_skip_threshold",
        "max_song_duration_ms",
        "restricted_users",
        "is_paused",
        "is_locked",
    }
)


class GateDecision(BaseModel):
    allowed: bool
    reason: DenyReason | None = None
    message: str = ""

    @classmethod
    def allow(cls) -> GateDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> GateDecision:
        return cls(allowed=False, reason=reason, message=message)


@dataclass(frozen=True)
class GateContext:
    """What the gate needs to know about the mutation being attempted."""

    submitter: User | None = None
    track: TrackInfo | None = None


class SettingsGate:
    """Evaluates queue mutations against the singleton queue settings."""

    def __init__(
        self,
        *,
        settings_repository: QueueSettingsRepository,
        queue_repository: QueueRepository,
        history_repository: QueueHistoryRepository,
        user_repository: UserRepository,
        defaults: QueueDefaultsSettings | None = None,
    ) -> None:
        self._settings_repo = settings_repository
        self._queue_repo = queue_repository
        self._history_repo = history_repository
        self._user_repo = user_repository
        self._defaults = defaults

    # ---- Settings singleton ----

    def _default_settings(self, updated_by: str) -> QueueSettings:
        if self._defaults is None:
            return QueueSettings(
                duplicate_threshold_minutes=30,
                auto_skip_threshold=3,
                max_song_duration_ms=600_000,
                updated_by=updated_by,
            )
        return QueueSettings(
            max_queue_size=self._defaults.max_queue_size,
            allow_duplicates=self._defaults.allow_duplicates,
            duplicate_threshold_minutes=self._defaults.duplicate_threshold_minutes,
            auto_skip_threshold=self._defaults.auto_skip_threshold,
            max_song_duration_ms=self._defaults.max_song_duration_ms,
            updated_by=updated_by,
        )

    async def initialize_settings(self, updated_by: str = "system") -> QueueSettings:
        """Create the default settings unless they already exist; return the stored record."""
        created = await self._settings_repo.insert_if_absent(self._default_settings(updated_by))
        if created:
            logger.info(LogTemplates.SETTINGS_INITIALIZED, updated_by)

        settings = await self._settings_repo.get()
        if settings is None:
            # Only reachable if the record was deleted between the two calls.
            settings = self._default_settings(updated_by)
            await self._settings_repo.save(settings)
        return settings

    async def get_settings(self) -> QueueSettings:
        settings = await self._settings_repo.get()
        if settings is None:
            settings = await self.initialize_settings()
        return settings

    async def update_settings(self, updated_by: str, **fields: Any) -> QueueSettings:
        """Patch the provided fields only; ``updated_by``/``updated_at`` always refresh.

        Args:
            updated_by: Email of the moderator making the change.
            **fields: Any subset of the updatable ``QueueSettings`` fields.

        Raises:
            EntityNotFoundError: If the updater does not exist.
            PolicyDeniedError: If the updater is not a moderator.
        """
        user = await self._user_repo.get_by_email(updated_by)
        if user is None:
            raise EntityNotFoundError("User", updated_by)
        if not user.is_moderator:
            raise PolicyDeniedError(DenyReason.FORBIDDEN.value, ErrorMessages.MODERATOR_REQUIRED)

        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown queue settings fields: {sorted(unknown)}")
        if "restricted_users" in fields:
            fields["restricted_users"] = tuple(fields["restricted_users"])

        current = await self.get_settings()
        updated = QueueSettings.model_validate(
            {
                **current.model_dump(),
                **fields,
                "updated_by": updated_by,
                "updated_at": utcnow(),
            }
        )
        await self._settings_repo.save(updated)

        changed = tuple(sorted(fields))
        logger.info(LogTemplates.SETTINGS_UPDATED, updated_by, ", ".join(changed))
        await get_event_bus().publish(QueueSettingsChanged(updated_by=updated_by, fields=changed))
        return updated

    # ---- Policy evaluation ----

    async def evaluate(self, action: GateAction, context: GateContext | None = None) -> GateDecision:
        context = context or GateContext()
        settings = await self.get_settings()

        if action == GateAction.TRANSITION:
            return GateDecision.allow()

        if settings.is_locked:
            return GateDecision.deny(DenyReason.LOCKED, ErrorMessages.QUEUE_LOCKED)

        if action != GateAction.ENQUEUE:
            return GateDecision.allow()

        return await self._evaluate_enqueue(settings, context)

    async def _evaluate_enqueue(
        self, settings: QueueSettings, context: GateContext
    ) -> GateDecision:
        pending = await self._queue_repo.count_by_status(QueueStatus.PENDING)
        if pending >= settings.max_queue_size:
            return GateDecision.deny(
                DenyReason.FULL,
                ErrorMessages.QUEUE_FULL.format(max_size=settings.max_queue_size),
            )

        track = context.track
        if track is not None and not settings.allow_duplicates:
            existing = await self._queue_repo.find_by_spotify_id(
                track.spotify_id, QueueStatus.PENDING
            )
            if existing:
                return GateDecision.deny(DenyReason.DUPLICATE, ErrorMessages.TRACK_ALREADY_QUEUED)

        submitter = context.submitter
        if submitter is not None and (
            settings.is_restricted(submitter.id) or settings.is_restricted(submitter.email)
        ):
            return GateDecision.deny(DenyReason.RESTRICTED, ErrorMessages.USER_RESTRICTED)

        if track is None:
            return GateDecision.allow()

        if settings.exceeds_duration(track):
            max_minutes = (settings.max_song_duration_ms or 0) // 60_000
            return GateDecision.deny(
                DenyReason.TOO_LONG, ErrorMessages.TRACK_TOO_LONG.format(max_minutes=max_minutes)
            )

        window = settings.duplicate_window
        if not settings.allow_duplicates and window is not None:
            if await self._history_repo.played_since(track.spotify_id, utcnow() - window):
                return GateDecision.deny(
                    DenyReason.RECENTLY_PLAYED,
                    ErrorMessages.TRACK_RECENTLY_PLAYED.format(
                        minutes=settings.duplicate_threshold_minutes
                    ),
                )

        return GateDecision.allow()

    async def require(self, action: GateAction, context: GateContext | None = None) -> None:
        """Evaluate and raise ``PolicyDeniedError`` on denial."""
        decision = await self.evaluate(action, context)
        if decision.allowed:
            return

        reason = decision.reason or DenyReason.FORBIDDEN
        who = context.submitter.email if context and context.submitter else "-"
        logger.info(LogTemplates.GATE_DENIED, action.value, who, reason.value)
        raise PolicyDeniedError(reason.value, decision.message)
