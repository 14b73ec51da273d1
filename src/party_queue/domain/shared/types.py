"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across bounded contexts is defined here once,
so models can simply annotate their fields::

    from party_queue.domain.shared.types import NonEmptyStr, PositionInt

    class MyModel(BaseModel):
        name: NonEmptyStr
        position: PositionInt
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

PositiveInt = Annotated[int, Field(gt=0)]
"""Integer > 0."""

PercentInt = Annotated[int, Field(ge=0, le=100)]
"""Integer in [0, 100], used for device volume."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

TrackNameStr = Annotated[str, Field(min_length=1, max_length=500)]
"""Track or playlist name: 1-500 characters."""

SpotifyIdStr = Annotated[str, Field(min_length=1, max_length=64)]
"""Spotify base-62 identifier (track, artist, album)."""

EmailStr = Annotated[str, Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")]
"""Minimal e-mail shape check; identity is owned by the external provider."""


# ── Domain-specific numeric constraints ─────────────────────────────

DurationMs = Annotated[int, Field(ge=0, le=86_400_000)]
"""Track duration in milliseconds: 0 … 24 hours."""

PositionInt = Annotated[int, Field(ge=0)]
"""Zero-based ordering position within a partition."""

MaxQueueSize = Annotated[int, Field(gt=0, le=1000)]
"""Maximum pending queue size: 1 … 1 000."""

HistoryLimit = Annotated[int, Field(gt=0, le=500)]
"""Number of history rows to return: 1 … 500."""


# ── Datetime constraints ────────────────────────────────────────────

def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if isinstance(v, datetime):
        if v.tzinfo is None:
            raise ValueError("datetime must be timezone-aware (UTC)")
        return v.astimezone(UTC)
    return v


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
