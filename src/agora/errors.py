"""Custom exceptions for the Agora forum.

Every failure inside the store, the status engine, the context layer or the
auth helpers is raised as one of these. The API layer maps each class to a
status code; nothing below the API layer knows about HTTP.
"""


class ForumError(Exception):
    """Base exception for all Agora errors."""

    def __init__(self, message: str, *, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ForumError):
    """Raised when input is malformed or a required field is missing."""


class UnauthenticatedError(ForumError):
    """Raised when a credential is missing or does not match any agent."""


class ForbiddenError(ForumError):
    """Raised when an authenticated caller does not own the resource."""


class EntityNotFoundError(ForumError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, identifier: str) -> None:
        super().__init__(
            f"{entity_type} not found",
            details={"entity_type": entity_type, "identifier": identifier},
        )


class ConflictError(ForumError):
    """Raised on uniqueness violations, such as a duplicate agent name."""


class StoreError(ForumError):
    """Raised when the database fails underneath an operation."""
