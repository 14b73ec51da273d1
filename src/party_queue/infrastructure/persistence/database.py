"""SQLite database with per-operation connections and WAL mode."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from party_queue.domain.shared.constants import SQLPragmas
from party_queue.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import DatabaseSettings

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, settings: DatabaseSettings | None = None) -> None:
        if url.startswith("sqlite:///"):
            self._db_path = url[10:]
        else:
            self._db_path = url

        self._initialized = False
        self._keepalive_conn: aiosqlite.Connection | None = None
        self._busy_timeout = settings.busy_timeout_ms if settings else 5000
        self._connection_timeout = settings.connection_timeout_s if settings else 10

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._initialized:
            return

        if self._db_path != ":memory:":
            db_dir = Path(self._db_path).parent
            db_dir.mkdir(parents=True, exist_ok=True)

        # The shared in-memory DB is destroyed once its last connection closes.
        if self._db_path == ":memory:" and self._keepalive_conn is None:
            self._keepalive_conn = await self._connect()

        conn = self._keepalive_conn
        if conn is None:
            async with self.transaction() as conn2:
                await self._ensure_schema(conn2)
        else:
            await self._ensure_schema(conn)
            await conn.commit()

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _ensure_schema(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL DEFAULT '',
                image TEXT,
                role TEXT NOT NULL DEFAULT 'user',
                external_id TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                last_login_at TEXT
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_users_external_id ON users(external_id)"
        )
        await conn.execute("CREATE INDEX IF NOT EXISTS idx_users_role ON users(role)")

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS queue_entries (
                id TEXT PRIMARY KEY,
                spotify_id TEXT NOT NULL,
                track_json TEXT NOT NULL,
                added_by TEXT NOT NULL,
                added_at TEXT NOT NULL,
                position INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                played_at TEXT,
                skipped_at TEXT,
                skip_reason TEXT,
                requested_by TEXT,
                notes TEXT,
                priority INTEGER
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_entries_position ON queue_entries(position)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_entries_status ON queue_entries(status, position)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_entries_spotify_id ON queue_entries(spotify_id)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_entries_added_by ON queue_entries(added_by)"
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS queue_history (
                id TEXT PRIMARY KEY,
                queue_entry_id TEXT NOT NULL UNIQUE,
                spotify_id TEXT NOT NULL,
                track_json TEXT NOT NULL,
                added_by TEXT NOT NULL,
                added_at TEXT NOT NULL,
                played_at TEXT NOT NULL,
                played_by TEXT,
                actual_duration_ms INTEGER,
                was_skipped INTEGER NOT NULL DEFAULT 0,
                skip_reason TEXT,
                requested_by TEXT,
                notes TEXT
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_history_played_at ON queue_history(played_at)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_queue_history_spotify_id "
            "ON queue_history(spotify_id, played_at)"
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS now_playing (
                key TEXT PRIMARY KEY,
                spotify_id TEXT NOT NULL,
                track_json TEXT NOT NULL,
                progress_ms INTEGER NOT NULL DEFAULT 0,
                is_playing INTEGER NOT NULL DEFAULT 0,
                timestamp TEXT NOT NULL,
                device_json TEXT NOT NULL,
                shuffle_state INTEGER,
                repeat_state TEXT,
                updated_at TEXT NOT NULL
            )
            """
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS queue_settings (
                key TEXT PRIMARY KEY,
                max_queue_size INTEGER NOT NULL,
                allow_duplicates INTEGER NOT NULL DEFAULT 0,
                duplicate_threshold_minutes INTEGER,
                auto_skip_threshold INTEGER,
                max_song_duration_ms INTEGER,
                restricted_users_json TEXT NOT NULL DEFAULT '[]',
                is_paused INTEGER NOT NULL DEFAULT 0,
                is_locked INTEGER NOT NULL DEFAULT 0,
                updated_by TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS playlists (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT,
                image TEXT,
                is_public INTEGER NOT NULL DEFAULT 0,
                owner_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_playlists_owner_id ON playlists(owner_id)"
        )
        await conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_playlists_is_public ON playlists(is_public)"
        )

        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS playlist_tracks (
                playlist_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                spotify_id TEXT NOT NULL,
                track_json TEXT NOT NULL,
                added_at TEXT NOT NULL,
                added_by TEXT,
                PRIMARY KEY (playlist_id, position),
                FOREIGN KEY(playlist_id) REFERENCES playlists(id) ON DELETE CASCADE
            )
            """
        )

    async def _connect(self) -> aiosqlite.Connection:
        # ":memory:" is per-connection, so use a shared URI across connections.
        if self._db_path == ":memory:":
            db_path = "file:party-queue?mode=memory&cache=shared"
            uri = True
        else:
            db_path = self._db_path
            uri = False

        conn = await aiosqlite.connect(
            db_path,
            # Timestamps are stored as ISO 8601 text with a 'T' separator.
            detect_types=0,
            uri=uri,
            timeout=self._connection_timeout,
        )
        conn.row_factory = aiosqlite.Row

        await conn.execute(SQLPragmas.JOURNAL_MODE_WAL)
        await conn.execute(SQLPragmas.FOREIGN_KEYS_ON)
        await conn.execute(SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout))

        return conn

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        conn = await self._connect()
        try:
            yield conn
        except Exception:
            try:
                await conn.rollback()
            except aiosqlite.Error:
                logger.debug("Rollback failed on a connection being discarded")
            raise
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a transaction context manager with auto-commit/rollback."""
        async with self.connection() as conn:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def execute(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> aiosqlite.Cursor:
        """Execute a SQL statement.

        Note:
            This always runs in its own transaction. If you need multiple
            statements to commit/rollback together, use `transaction()` and the
            returned connection directly.
        """
        async with self.transaction() as conn:
            if parameters is not None:
                cursor = await conn.execute(sql, parameters)
            else:
                cursor = await conn.execute(sql)
            return cursor

    async def fetch_one(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        """Fetch a single row."""
        async with self.connection() as conn:
            if parameters is not None:
                cursor = await conn.execute(sql, parameters)
            else:
                cursor = await conn.execute(sql)
            row = await cursor.fetchone()
            return dict(row) if row else None

    async def fetch_all(
        self, sql: str, parameters: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch all rows."""
        async with self.connection() as conn:
            if parameters is not None:
                cursor = await conn.execute(sql, parameters)
            else:
                cursor = await conn.execute(sql)
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def close(self) -> None:
        """Close the database manager.

        For file-based DBs this is mostly a no-op. For in-memory DBs we also
        close the keepalive connection, which discards the data.
        """
        if self._keepalive_conn is not None:
            try:
                await self._keepalive_conn.close()
            finally:
                self._keepalive_conn = None
        self._initialized = False
        logger.info(LogTemplates.DATABASE_CLOSED)
