"""Helpers shared by the domain services."""

from typing import Any, Callable, Optional

from finance_control.errors import ConflictError, NotFoundError
from finance_control.services.storage.interface import EntityStorageInterface


async def get_owned(
    storage: EntityStorageInterface,
    owner_id: int,
    entity_id: int,
    entity_name: str,
) -> Any:
    """
    Fetch an entity belonging to `owner_id`.

    Another user's entity is reported exactly like a missing one.
    """
    entity = await storage.get(entity_id)
    if entity is None or entity.user_id != owner_id:
        raise NotFoundError(entity_name, entity_id)
    return entity


async def ensure_unique_name(
    storage: EntityStorageInterface,
    owner_id: int,
    name: str,
    entity_name: str,
    exclude_id: Optional[int] = None,
    scope: Callable[[Any], bool] = lambda e: True,
) -> None:
    """Names are unique per owner, ignoring case."""
    folded = name.casefold()

    def clashes(entity: Any) -> bool:
        return (
            entity.user_id == owner_id
            and entity.id != exclude_id
            and entity.name.casefold() == folded
            and scope(entity)
        )

    if await storage.exists(clashes):
        raise ConflictError(entity_name, "name", name)
