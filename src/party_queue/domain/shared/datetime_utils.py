"""Date/time helpers.

Goal: centralize all date/time serialization + parsing.

- Always store and operate on timezone-aware UTC datetimes.
- Store timestamps as ISO 8601 strings in the database.
- Convert to/from Unix milliseconds at the playback-source boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from party_queue.domain.shared.messages import ErrorMessages


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    """A tiny value-object wrapper around a timezone-aware UTC `datetime`."""

    dt: datetime

    def __post_init__(self) -> None:
        if self.dt.tzinfo is None:
            raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
        # Normalize to UTC
        object.__setattr__(self, "dt", self.dt.astimezone(UTC))

    # ---- Constructors ----

    @classmethod
    def now(cls) -> UtcDateTime:
        return cls(datetime.now(UTC))

    @classmethod
    def from_iso(cls, value: str) -> UtcDateTime:
        # Accepts: '...+00:00' or '...Z'
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return cls(datetime.fromisoformat(value))

    @classmethod
    def from_unix_millis(cls, millis: int) -> UtcDateTime:
        return cls(datetime.fromtimestamp(int(millis) / 1000, tz=UTC))

    # ---- Computed fields / formats ----

    @property
    def iso(self) -> str:
        """RFC3339/ISO8601 with explicit offset (+00:00) and fixed microsecond width."""
        return self.dt.isoformat(timespec="microseconds")

    @property
    def unix_millis(self) -> int:
        return int(self.dt.timestamp() * 1000)


def utcnow() -> datetime:
    """Return a timezone-aware datetime in UTC."""
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    """Serialize an optional datetime for storage."""
    if value is None:
        return None
    return UtcDateTime(value).iso


def from_iso(value: str | None) -> datetime | None:
    """Parse an optional stored timestamp."""
    if not value:
        return None
    return UtcDateTime.from_iso(value).dt
