"""
In-Memory Storage

Backs the API when no database is configured, and every test.

Stored entities are pydantic models; reads and writes exchange deep copies
so a caller mutating a returned object never changes what is stored.
"""

import asyncio
from itertools import count
from typing import Generic, Optional
from uuid import UUID

from pydantic import BaseModel

from finance_control.models.audit import AuditEvent
from finance_control.models.common import utc_now
from finance_control.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    EntityPredicate,
    EntityStorageInterface,
    Ordering,
    StorageNotFoundError,
    T,
)


class InMemoryEntityStorage(EntityStorageInterface[T], Generic[T]):
    """Dictionary-backed entity collection with sequential ids."""

    def __init__(self, entity_name: str = "entity"):
        self.entity_name = entity_name
        self._rows: dict[int, BaseModel] = {}
        self._ids = count(1)
        self._lock = asyncio.Lock()

    @staticmethod
    def _copy(entity):
        return entity.model_copy(deep=True)

    async def create(self, entity: T) -> T:
        async with self._lock:
            entity_id = getattr(entity, "id", None)
            if entity_id is None:
                entity_id = next(self._ids)
            elif entity_id in self._rows:
                raise DuplicateError(f"{self.entity_name} {entity_id} already exists")
            stored = entity.model_copy(update={"id": entity_id}, deep=True)
            self._rows[entity_id] = stored
            return self._copy(stored)

    async def get(self, entity_id: int) -> Optional[T]:
        row = self._rows.get(entity_id)
        return self._copy(row) if row is not None else None

    async def update(self, entity: T) -> T:
        async with self._lock:
            if entity.id not in self._rows:
                raise StorageNotFoundError(f"{self.entity_name} {entity.id} not found")
            changes = {}
            if "updated_at" in type(entity).model_fields:
                changes["updated_at"] = utc_now()
            stored = entity.model_copy(update=changes, deep=True)
            self._rows[entity.id] = stored
            return self._copy(stored)

    async def delete(self, entity_id: int) -> bool:
        async with self._lock:
            return self._rows.pop(entity_id, None) is not None

    def _matching(self, predicate: EntityPredicate) -> list:
        return [row for _, row in sorted(self._rows.items()) if predicate(row)]

    async def find(self, predicate: EntityPredicate) -> list[T]:
        return [self._copy(row) for row in self._matching(predicate)]

    async def find_page(
        self,
        predicate: EntityPredicate,
        order: Ordering,
        offset: int,
        limit: int,
    ) -> tuple[list[T], int]:
        matching = order(self._matching(predicate))
        window = matching[offset:offset + limit]
        return [self._copy(row) for row in window], len(matching)

    async def exists(self, predicate: EntityPredicate) -> bool:
        return any(predicate(row) for row in self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(self, entity_type: str, entity_id: int) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
