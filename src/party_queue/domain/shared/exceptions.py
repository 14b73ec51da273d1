"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    """Raised when a referenced user, entry, playlist or position does not exist."""

    def __init__(self, entity_type: str, identifier: str | int, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg, code="ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class PolicyDeniedError(DomainError):
    """Raised when the settings gate (or an ownership rule) rejects an action.

    ``reason`` is a stable machine-readable value (``locked``, ``full``,
    ``duplicate`` ...); ``message`` is the human-readable explanation.
    """

    def __init__(self, reason: str, message: str | None = None) -> None:
        msg = message or f"Action denied: {reason}"
        super().__init__(msg, code="POLICY_DENIED")
        self.reason = reason


class InvalidStateError(DomainError):
    """Raised when an operation requires an entry in a status it is not in."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_STATE")
        self.operation = operation
        self.current_state = current_state


class AlreadyExistsError(DomainError):
    """Raised when adding a track that a playlist already contains."""

    def __init__(self, entity_type: str, identifier: str, message: str | None = None) -> None:
        msg = message or f"{entity_type} '{identifier}' already exists"
        super().__init__(msg, code="ALREADY_EXISTS")
        self.entity_type = entity_type
        self.identifier = identifier


class PlaybackSourceError(DomainError):
    """Raised when the external playback source cannot be reached or answers badly."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, code="PLAYBACK_SOURCE_ERROR")
        self.status_code = status_code
