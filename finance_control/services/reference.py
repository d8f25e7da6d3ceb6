"""
Reference Data Service

Categories, subcategories and responsible parties: create and fetch.
Listing goes through the query dispatcher like every other resource.
"""

from typing import Optional

from finance_control.audit.logger import AuditLogger
from finance_control.models.audit import AuditEventType
from finance_control.models.reference import (
    NamedRequest,
    ResponsibleParty,
    SubcategoryRequest,
    TransactionCategory,
    TransactionSubcategory,
)
from finance_control.services.common import ensure_unique_name, get_owned
from finance_control.services.storage.interface import EntityStorageInterface


class ReferenceDataService:
    def __init__(
        self,
        categories: EntityStorageInterface[TransactionCategory],
        subcategories: EntityStorageInterface[TransactionSubcategory],
        responsibles: EntityStorageInterface[ResponsibleParty],
        audit: Optional[AuditLogger] = None,
    ):
        self.categories = categories
        self.subcategories = subcategories
        self.responsibles = responsibles
        self.audit = audit or AuditLogger()

    async def create_category(self, owner_id: int, request: NamedRequest) -> TransactionCategory:
        await ensure_unique_name(self.categories, owner_id, request.name, "TransactionCategory")
        category = await self.categories.create(
            TransactionCategory(user_id=owner_id, name=request.name)
        )
        await self._created("transaction_category", category.id, owner_id)
        return category

    async def create_subcategory(
        self,
        owner_id: int,
        request: SubcategoryRequest,
    ) -> TransactionSubcategory:
        """Subcategory names are unique within their category."""
        await get_owned(self.categories, owner_id, request.category_id, "TransactionCategory")
        await ensure_unique_name(
            self.subcategories,
            owner_id,
            request.name,
            "TransactionSubcategory",
            scope=lambda s: s.category_id == request.category_id,
        )
        subcategory = await self.subcategories.create(
            TransactionSubcategory(
                user_id=owner_id,
                category_id=request.category_id,
                name=request.name,
            )
        )
        await self._created("transaction_subcategory", subcategory.id, owner_id)
        return subcategory

    async def create_responsible(self, owner_id: int, request: NamedRequest) -> ResponsibleParty:
        await ensure_unique_name(self.responsibles, owner_id, request.name, "ResponsibleParty")
        responsible = await self.responsibles.create(
            ResponsibleParty(user_id=owner_id, name=request.name)
        )
        await self._created("responsible", responsible.id, owner_id)
        return responsible

    async def _created(self, entity_type: str, entity_id: int, owner_id: int) -> None:
        await self.audit.log_entity_written(
            AuditEventType.REFERENCE_CREATED, entity_type, entity_id, owner_id
        )
