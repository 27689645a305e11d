"""Error vocabulary raised by the review domain and its services."""
from __future__ import annotations


class DomainError(Exception):
    """Base class for every error the review core raises on purpose."""

    code = "DOMAIN_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class EntityNotFoundError(DomainError, LookupError):
    """Raised when a lookup by identifier matches nothing."""

    code = "ENTITY_NOT_FOUND"

    def __init__(self, entity_name: str, entity_id: str) -> None:
        super().__init__(f"{entity_name} with id '{entity_id}' not found")
        self.entity_name = entity_name
        self.entity_id = entity_id


class ReviewNotFoundError(EntityNotFoundError):
    def __init__(self, review_id: str) -> None:
        super().__init__("Review", review_id)


class InvalidOperationError(DomainError, ValueError):
    """Raised when an operation is not allowed in the entity's current state."""

    code = "INVALID_OPERATION"


class InvalidReviewTransitionError(InvalidOperationError):
    """Raised when a review is asked to leave a terminal status."""

    code = "INVALID_REVIEW_TRANSITION"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Invalid review transition: '{current}' -> '{target}'")
        self.current = current
        self.target = target


class ConcurrentModificationError(InvalidOperationError):
    """Raised by storage when a terminal review would be overwritten."""

    code = "CONCURRENT_MODIFICATION"


__all__ = [
    "ConcurrentModificationError",
    "DomainError",
    "EntityNotFoundError",
    "InvalidOperationError",
    "InvalidReviewTransitionError",
    "ReviewNotFoundError",
]
