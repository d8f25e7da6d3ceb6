"""
Storage Services Package

Provides abstract interfaces and the in-memory implementation.
"""

from finance_control.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    EntityStorageInterface,
    StorageError,
    StorageNotFoundError,
)
from finance_control.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryEntityStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "EntityStorageInterface",
    # Exceptions
    "DuplicateError",
    "StorageError",
    "StorageNotFoundError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryEntityStorage",
]
