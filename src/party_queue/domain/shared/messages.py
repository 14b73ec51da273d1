"""Centralized message constants for error messages, validation, and log output."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Track Validation Errors

    # Policy Denials (shown to users, keep them human-readable)
    QUEUE_LOCKED = "Queue is currently locked"
    QUEUE_FULL = "Queue is full (max {max_size} tracks)"
    TRACK_ALREADY_QUEUED = "Track already in queue"
    USER_RESTRICTED = "You are not allowed to add tracks to the queue"
    TRACK_TOO_LONG = "Track is longer than the allowed maximum of {max_minutes} minutes"
    TRACK_RECENTLY_PLAYED = "Track was already played in the last {minutes} minutes"
    MODERATOR_REQUIRED = "Only moderators can change queue settings"
    PLAYLIST_OWNER_REQUIRED = "Only the playlist owner can modify this playlist"

    # Queue State Errors
    ONLY_PENDING_REMOVABLE = "Can only remove pending tracks"
    ANOTHER_TRACK_PLAYING = "'{name}' is already playing"
    NO_PENDING_AT_POSITION = "No pending track at position {position}"
    TARGET_POSITION_OUT_OF_RANGE = "Target position {position} is outside the queue ({low}..{high})"
    TARGET_POSITION_NOT_PENDING = "Position {position} is not held by a pending track"

    # Playlist Errors
    PLAYLIST_INDEX_OUT_OF_RANGE = "Playlist index {index} is out of range (0..{high})"
    TRACK_NOT_IN_PLAYLIST = "Track '{spotify_id}' is not in playlist {playlist_id}"

    # Identity Errors
    INVALID_ROLE = "Invalid role: {role}. Must be one of {valid_roles}"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Configuration Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"
    SPOTIFY_TOKEN_NOT_SET = "SPOTIFY__ACCESS_TOKEN is required to run the reconciliation worker"

    # Playback Source Errors
    PLAYBACK_SOURCE_HTTP_ERROR = "Playback source returned HTTP {status} for {path}"
    PLAYBACK_SOURCE_UNREACHABLE = "Playback source request to {path} failed: {error}"
    PLAYBACK_SOURCE_BAD_PAYLOAD = "Playback source returned an unexpected payload for {path}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Application Lifecycle
    APP_STARTING = "Starting party queue worker (environment: {environment})"
    APP_STOPPED = "Party queue worker stopped"
    APP_FATAL_ERROR = "Fatal error in party queue worker: %s"

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Queue Operations
    QUEUE_ENQUEUED = "Enqueued '%s' at position %s (submitted by %s)"
    QUEUE_BULK_ENQUEUED = "Bulk enqueued %d of %d tracks (submitted by %s)"
    QUEUE_CLEARED = "Cleared %d entries from the queue"
    QUEUE_REMOVED = "Removed '%s' from position %s (removed by %s)"
    QUEUE_REORDERED = "Moved queue entry from position %s to %s"
    QUEUE_STATUS_CHANGED = "Queue entry %s changed status %s -> %s"
    QUEUE_ARCHIVED = "Archived '%s' to history (skipped=%s)"
    QUEUE_POSITIONS_REPAIRED = "Repaired %d queue positions after position %s"
    QUEUE_POSITIONS_INCONSISTENT = "Queue positions are not contiguous: %s"

    # Settings Gate
    GATE_DENIED = "Settings gate denied %s for %s: %s"
    SETTINGS_INITIALIZED = "Initialized default queue settings (by %s)"
    SETTINGS_UPDATED = "Queue settings updated by %s: %s"

    # Playlists
    PLAYLIST_CREATED = "Created playlist '%s' (%s) for owner %s"
    PLAYLIST_UPDATED = "Updated playlist %s: %s"
    PLAYLIST_DELETED = "Deleted playlist %s"
    PLAYLIST_TRACK_ADDED = "Added '%s' to playlist %s at index %d"
    PLAYLIST_TRACK_REMOVED = "Removed %s from playlist %s"
    PLAYLIST_BULK_ADDED = "Bulk added %d of %d tracks to playlist %s"
    PLAYLIST_REORDERED = "Moved playlist %s track from index %d to %d"

    # Users
    USER_CREATED = "Created user %s (%s)"
    USER_LOGGED_IN = "Updated user %s on login"
    USER_ROLE_CHANGED = "Changed role of user %s to %s"
    USER_DELETED = "Deleted user %s and %d owned playlists"

    # Reconciliation
    RECONCILE_STARTED = "Reconciliation scheduler started (every %.1fs)"
    RECONCILE_STOPPED = "Reconciliation scheduler stopped"
    RECONCILE_ALREADY_RUNNING = "Reconciliation scheduler is already running"
    RECONCILE_RATE_LIMITED = "Skipping sync, last poll was %.2fs ago (minimum %.2fs)"
    RECONCILE_NOW_PLAYING_CLEARED = "Playback source reports nothing playing, cleared now playing"
    RECONCILE_NOW_PLAYING_UPDATED = "Now playing: '%s' (playing=%s)"
    RECONCILE_PROMOTED = "Promoted queue entry '%s' to playing"
    RECONCILE_CONSUMED = "Archived finished queue entry '%s'"
    RECONCILE_FORWARDED = "Forwarded '%s' to the playback source"
    RECONCILE_STEP_FAILED = "Reconciliation step '%s' failed: %r"
    RECONCILE_COMPLETED = "Sync completed: promoted=%s archived=%s forwarded=%s errors=%d"
    RECONCILE_LOOP_ERROR = "Error in reconciliation loop"

    # Playback Source
    SPOTIFY_REQUEST_FAILED = "Spotify request %s %s failed: %s"
    SPOTIFY_NOTHING_PLAYING = "Spotify reports no active playback"
