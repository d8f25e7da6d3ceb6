"""
Abstract Storage Interface

DESIGN DECISION: Services and the query dispatcher only ever talk to these
interfaces. This allows us to:
1. Use in-memory storage for tests and local runs
2. Plug in a real database later without touching business logic
3. Keep filtering generic: storage receives a predicate, not a query language

The interface is intentionally small. It is not an ORM; it offers the
create / read / update / delete / find-by-predicate operations the core needs.
"""

from abc import ABC, abstractmethod
from typing import Callable, Generic, Iterable, Optional, TypeVar
from uuid import UUID

from finance_control.models.audit import AuditEvent


T = TypeVar("T")

EntityPredicate = Callable[[T], bool]
Ordering = Callable[[Iterable[T]], list[T]]


class EntityStorageInterface(ABC, Generic[T]):
    """
    Abstract interface for one entity collection.

    Entities carry an integer `id` assigned by storage on create.
    """

    @abstractmethod
    async def create(self, entity: T) -> T:
        """
        Store a new entity.

        Returns:
            A copy of the stored entity, with its id assigned
        """
        pass

    @abstractmethod
    async def get(self, entity_id: int) -> Optional[T]:
        """
        Retrieve an entity by id.

        Returns:
            The entity if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, entity: T) -> T:
        """
        Replace a stored entity as a whole.

        Raises:
            StorageNotFoundError: If no entity has this id
        """
        pass

    @abstractmethod
    async def delete(self, entity_id: int) -> bool:
        """
        Delete an entity by id.

        Returns:
            True if something was deleted
        """
        pass

    @abstractmethod
    async def find(self, predicate: EntityPredicate) -> list[T]:
        """All entities matching the predicate, in id order."""
        pass

    @abstractmethod
    async def find_page(
        self,
        predicate: EntityPredicate,
        order: Ordering,
        offset: int,
        limit: int,
    ) -> tuple[list[T], int]:
        """
        One ordered slice of the matching entities.

        Returns:
            (entities in the slice, total number of matching entities)
        """
        pass

    @abstractmethod
    async def exists(self, predicate: EntityPredicate) -> bool:
        """True if at least one entity matches."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events sharing a correlation id, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """Events about one entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageNotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert an entity whose id is already taken."""
    pass
