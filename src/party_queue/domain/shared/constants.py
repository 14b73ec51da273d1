"""Centralized constants for singleton keys, ordering, SQLite pragmas and API paths.

This module provides reusable constants that reduce magic strings and improve maintainability.
"""

from __future__ import annotations


class SingletonKeys:
    """Well-known primary keys for process-wide singleton records."""

    NOW_PLAYING = "current"
    QUEUE_SETTINGS = "global"


class Ordering:
    """Ordering constants shared by every positioned partition."""

    POSITION_BASE = 0


class SQLPragmas:
    """SQLite PRAGMA statements."""

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"


class SpotifyEndpoints:
    """Spotify Web API paths used by the playback source."""

    PLAYER = "/me/player"
    QUEUE = "/me/player/queue"
