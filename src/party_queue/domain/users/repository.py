"""Users Domain Repository Interface."""

from abc import ABC, abstractmethod
from typing import Any

from party_queue.domain.users.entities import User, UserRole


class UserRepository(ABC):
    """Abstract repository for users."""

    @abstractmethod
    async def get(self, user_id: str) -> User | None:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> User | None:
        ...

    @abstractmethod
    async def get_by_external_id(self, external_id: str) -> User | None:
        ...

    @abstractmethod
    async def insert(self, user: User) -> None:
        ...

    @abstractmethod
    async def patch(self, user_id: str, **fields: Any) -> None:
        ...

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        ...

    @abstractmethod
    async def list_by_role(self, role: UserRole) -> list[User]:
        ...

    @abstractmethod
    async def list_all(self) -> list[User]:
        ...
