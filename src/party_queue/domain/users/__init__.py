"""
Users Bounded Context

Identities and roles supplied by the external login provider.
"""

from party_queue.domain.users.entities import User, UserRole
from party_queue.domain.users.repository import UserRepository

__all__ = [
    "User",
    "UserRole",
    "UserRepository",
]
