"""
Shared Domain Kernel

Contains types, messages and exceptions shared across all bounded contexts.
"""

from party_queue.domain.shared.exceptions import (
    AlreadyExistsError,
    DomainError,
    EntityNotFoundError,
    InvalidStateError,
    PlaybackSourceError,
    PolicyDeniedError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "EntityNotFoundError",
    "PolicyDeniedError",
    "InvalidStateError",
    "AlreadyExistsError",
    "PlaybackSourceError",
]
