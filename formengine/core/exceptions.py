"""
Custom Exceptions - Form Scoring & Access Engine
formengine/core/exceptions.py

Two families: RepositoryException for remote store / cache failures and
ValidationException for caller input rejected before any write.
"""

from typing import List, Optional


class RepositoryException(Exception):
    """Base exception for remote store operations."""

    pass


class EntityNotFoundException(RepositoryException):
    """Entity not found in the store."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class FormNotFoundException(EntityNotFoundException):
    """Form is not present in the local cache."""

    def __init__(self, form_id: str):
        super().__init__("Form", form_id)


class ResponseNotFoundException(EntityNotFoundException):
    """Response record is not present in the local cache."""

    def __init__(self, response_id: str):
        super().__init__("Response", response_id)


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    def __init__(self, message: str = "Entity already exists"):
        self.message = message
        super().__init__(message)


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        self.message = message
        super().__init__(message)


class RemoteStoreUnavailableException(RepositoryException):
    """Remote store unreachable and no local snapshot to fall back on."""

    def __init__(self, message: str = "Remote store unavailable and no cached snapshot exists"):
        self.message = message
        super().__init__(message)


class StorageQuotaExceededException(RepositoryException):
    """Local cache refused a write because it is out of space."""

    def __init__(self, key: str, message: Optional[str] = None):
        self.key = key
        self.message = message or f"Storage quota exceeded while writing '{key}'"
        super().__init__(self.message)


# =============================================================================
# CALLER INPUT
# =============================================================================


class ValidationException(Exception):
    """Caller input rejected before any write; local state untouched."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ScoreRangeValidationException(ValidationException):
    """Score ranges payload is not a list at all."""

    def __init__(self, message: str = "Score ranges must be a list"):
        super().__init__(message, field="score_ranges")


class EmailValidationException(ValidationException):
    """One or more collaborator / allowed-user emails are malformed."""

    def __init__(self, field: str, invalid: List[str]):
        self.invalid = invalid
        super().__init__(
            f"Invalid email address(es) in {field}: {', '.join(invalid)}",
            field=field,
        )


class EmptyResponseSetException(ValidationException):
    """Submission carried no answers."""

    def __init__(self):
        super().__init__("Response set is empty", field="responses")


class MissingRequiredAnswersException(ValidationException):
    """Submission is missing answers for required fields."""

    def __init__(self, field_ids: List[str]):
        self.field_ids = field_ids
        super().__init__(
            f"Missing answers for required fields: {', '.join(field_ids)}",
            field="responses",
        )


class AccessListException(ValidationException):
    """Allow-list change not applicable to this form."""

    pass


class ResubmissionNotAllowedException(ValidationException):
    """Form or caller does not permit editing an earlier response."""

    def __init__(self, message: str = "Editing this response is not allowed"):
        super().__init__(message, field="response_id")
