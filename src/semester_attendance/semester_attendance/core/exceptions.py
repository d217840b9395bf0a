class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a semester, course or record id does not resolve."""


class StorageError(DomainError):
    """Raised when the entity store fails to read or write.

    Writes are rolled back before this is raised, so callers may retry.
    """
