"""Identity collaborator - users known to the queue, keyed by login e-mail."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import uuid4

from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.exceptions import EntityNotFoundError, ValidationError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ...domain.users.entities import User, UserRole

if TYPE_CHECKING:
    from ...domain.playlists.repository import PlaylistRepository
    from ...domain.users.repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        playlist_repository: PlaylistRepository,
    ) -> None:
        self._user_repo = user_repository
        self._playlist_repo = playlist_repository

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._user_repo.get_by_email(email)

    async def get_user_by_id(self, user_id: str) -> User | None:
        return await self._user_repo.get(user_id)

    async def get_user_by_external_id(self, external_id: str) -> User | None:
        return await self._user_repo.get_by_external_id(external_id)

    async def list_users(self) -> list[User]:
        return await self._user_repo.list_all()

    async def upsert_user(
        self,
        email: str,
        name: str,
        image: str | None = None,
        external_id: str | None = None,
    ) -> str:
        """Create the user on first login, otherwise refresh their profile.

        Returns:
            The user id.
        """
        now = utcnow()
        existing = await self._user_repo.get_by_email(email)
        if existing is not None:
            changes: dict[str, object] = {"name": name, "updated_at": now, "last_login_at": now}
            # Fields the identity provider left out keep their stored value.
            if image is not None:
                changes["image"] = image
            if external_id is not None:
                changes["external_id"] = external_id
            await self._user_repo.patch(existing.id, **changes)
            logger.debug(LogTemplates.USER_LOGGED_IN, existing.id)
            return existing.id

        user = User(
            id=str(uuid4()),
            email=email,
            name=name,
            image=image,
            role=UserRole.USER,
            external_id=external_id,
            created_at=now,
            updated_at=now,
            last_login_at=now,
        )
        await self._user_repo.insert(user)
        logger.info(LogTemplates.USER_CREATED, user.id, user.email)
        return user.id

    async def update_role(self, user_id: str, role: UserRole | str) -> User:
        if not isinstance(role, UserRole):
            try:
                role = UserRole(role)
            except ValueError as e:
                raise ValidationError(
                    ErrorMessages.INVALID_ROLE.format(
                        role=role, valid_roles=[r.value for r in UserRole]
                    ),
                    field="role",
                ) from e

        await self._require(user_id)
        await self._user_repo.patch(user_id, role=role, updated_at=utcnow())
        logger.info(LogTemplates.USER_ROLE_CHANGED, user_id, role.value)
        return await self._require(user_id)

    async def update_profile(
        self, user_id: str, *, name: str | None = None, image: str | None = None
    ) -> User:
        await self._require(user_id)

        fields: dict[str, object] = {"updated_at": utcnow()}
        if name is not None:
            fields["name"] = name
        if image is not None:
            fields["image"] = image
        await self._user_repo.patch(user_id, **fields)
        return await self._require(user_id)

    async def delete_user(self, user_id: str) -> int:
        """Delete the user's playlists, then the user.

        Returns:
            The number of playlists deleted.
        """
        await self._require(user_id)
        deleted_playlists = await self._playlist_repo.delete_by_owner(user_id)
        await self._user_repo.delete(user_id)
        logger.info(LogTemplates.USER_DELETED, user_id, deleted_playlists)
        return deleted_playlists

    async def _require(self, user_id: str) -> User:
        user = await self._user_repo.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user
