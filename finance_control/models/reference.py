"""
Reference Data Models

Categories, subcategories and responsible parties are owned by a user and
referenced by transactions. Names are unique per owner, ignoring case.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from finance_control.models.common import ApiModel, utc_now


class NamedRequest(ApiModel):
    """Body for creating a category or a responsible party."""

    name: str = Field(..., min_length=1, max_length=100)


class SubcategoryRequest(NamedRequest):
    """Body for creating a subcategory."""

    category_id: int


class TransactionCategory(ApiModel):
    id: Optional[int] = None
    user_id: int
    name: str = Field(..., min_length=1, max_length=100)
    created_at: datetime = Field(default_factory=utc_now)


class TransactionSubcategory(ApiModel):
    id: Optional[int] = None
    user_id: int
    category_id: int
    name: str = Field(..., min_length=1, max_length=100)
    created_at: datetime = Field(default_factory=utc_now)


class ResponsibleParty(ApiModel):
    """Someone who can carry a share of a transaction, e.g. a household member."""

    id: Optional[int] = None
    user_id: int
    name: str = Field(..., min_length=1, max_length=100)
    created_at: datetime = Field(default_factory=utc_now)
