"""Identity entities as seen by the queue core."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from party_queue.domain.shared.datetime_utils import utcnow
from party_queue.domain.shared.types import EmailStr, NonEmptyStr, UtcDatetimeField


class UserRole(Enum):
    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"

    @property
    def is_moderator(self) -> bool:
        return self == UserRole.ADMIN


class User(BaseModel):
    """An authenticated submitter. Identity itself is owned by the login provider."""

    id: NonEmptyStr
    email: EmailStr
    name: str = ""
    image: str | None = None
    role: UserRole = UserRole.USER
    external_id: str | None = None
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    updated_at: UtcDatetimeField = Field(default_factory=utcnow)
    last_login_at: UtcDatetimeField | None = None

    @property
    def is_moderator(self) -> bool:
        return self.role.is_moderator
