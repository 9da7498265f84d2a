"""
Core Package - Form Scoring & Access Engine
formengine/core/__init__.py

Core infrastructure: exceptions, validation, logging. Dependency getters
live in formengine.core.dependencies and are imported from there.
"""

from formengine.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    EntityNotFoundException,
    FormNotFoundException,
    RemoteStoreUnavailableException,
    RepositoryException,
    ResponseNotFoundException,
    StorageQuotaExceededException,
    ValidationException,
)

__all__ = [
    "DatabaseConnectionException",
    "DuplicateEntityException",
    "EntityNotFoundException",
    "FormNotFoundException",
    "RemoteStoreUnavailableException",
    "RepositoryException",
    "ResponseNotFoundException",
    "StorageQuotaExceededException",
    "ValidationException",
]
