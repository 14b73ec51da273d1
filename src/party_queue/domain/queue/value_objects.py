"""Immutable value objects for the queue bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class QueueStatus(Enum):
    """Lifecycle of a queue entry.

    - PENDING -> PLAYING (promoted by reconciliation or a moderator)
    - PLAYING -> PENDING (put back)
    - PENDING | PLAYING -> PLAYED | SKIPPED (archived to history, entry deleted)
    """

    PENDING = "pending"
    PLAYING = "playing"
    PLAYED = "played"
    SKIPPED = "skipped"

    @property
    def is_live(self) -> bool:
        """Live entries occupy a slot in the ordered partition."""
        return self in {QueueStatus.PENDING, QueueStatus.PLAYING}

    @property
    def is_terminal(self) -> bool:
        return self in {QueueStatus.PLAYED, QueueStatus.SKIPPED}


@dataclass(frozen=True)
class PositionUpdate:
    """A single position patch produced by the position allocator."""

    entry_id: str
    old_position: int
    new_position: int


class GateAction(Enum):
    """Queue mutations the settings gate is consulted for."""

    ENQUEUE = "enqueue"
    BULK_ENQUEUE = "bulk_enqueue"
    REMOVE = "remove"
    REORDER = "reorder"
    TRANSITION = "transition"


class DenyReason(Enum):
    """Machine-readable reasons a policy check can fail."""

    LOCKED = "locked"
    FULL = "full"
    DUPLICATE = "duplicate"
    RESTRICTED = "restricted"
    TOO_LONG = "too_long"
    RECENTLY_PLAYED = "recently_played"
    FORBIDDEN = "forbidden"

