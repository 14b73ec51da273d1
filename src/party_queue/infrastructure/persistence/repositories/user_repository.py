"""SQLite implementation of the user repository."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from party_queue.domain.shared.datetime_utils import UtcDateTime, from_iso, to_iso
from party_queue.domain.users.entities import User, UserRole
from party_queue.domain.users.repository import UserRepository

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)

_PATCHABLE_COLUMNS = frozenset(
    {"email", "name", "image", "role", "external_id", "updated_at", "last_login_at"}
)


class SQLiteUserRepository(UserRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def get(self, user_id: str) -> User | None:
        row = await self._db.fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return self._row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> User | None:
        row = await self._db.fetch_one("SELECT * FROM users WHERE email = ?", (email,))
        return self._row_to_user(row) if row else None

    async def get_by_external_id(self, external_id: str) -> User | None:
        row = await self._db.fetch_one(
            "SELECT * FROM users WHERE external_id = ? LIMIT 1", (external_id,)
        )
        return self._row_to_user(row) if row else None

    async def insert(self, user: User) -> None:
        await self._db.execute(
            """
            INSERT INTO users (
                id, email, name, image, role, external_id,
                created_at, updated_at, last_login_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user.id,
                user.email,
                user.name,
                user.image,
                user.role.value,
                user.external_id,
                UtcDateTime(user.created_at).iso,
                UtcDateTime(user.updated_at).iso,
                to_iso(user.last_login_at),
            ),
        )

    async def patch(self, user_id: str, **fields: Any) -> None:
        if not fields:
            return
        unknown = set(fields) - _PATCHABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot patch user fields: {sorted(unknown)}")

        assignments = ", ".join(f"{column} = ?" for column in fields)
        values = []
        for value in fields.values():
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, datetime):
                value = UtcDateTime(value).iso
            values.append(value)

        await self._db.execute(
            f"UPDATE users SET {assignments} WHERE id = ?",  # noqa: S608
            (*values, user_id),
        )

    async def delete(self, user_id: str) -> bool:
        cursor = await self._db.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return cursor.rowcount > 0

    async def list_by_role(self, role: UserRole) -> list[User]:
        rows = await self._db.fetch_all(
            "SELECT * FROM users WHERE role = ? ORDER BY created_at ASC", (role.value,)
        )
        return [self._row_to_user(row) for row in rows]

    async def list_all(self) -> list[User]:
        rows = await self._db.fetch_all("SELECT * FROM users ORDER BY created_at ASC")
        return [self._row_to_user(row) for row in rows]

    def _row_to_user(self, row: dict[str, Any]) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            image=row.get("image"),
            role=UserRole(row["role"]),
            external_id=row.get("external_id"),
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
            updated_at=UtcDateTime.from_iso(row["updated_at"]).dt,
            last_login_at=from_iso(row.get("last_login_at")),
        )
