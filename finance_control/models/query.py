"""
Query Result Models

PageRequest and Page are computed per request and never persisted.
"""

from enum import Enum
from math import ceil
from typing import Any

from pydantic import Field

from finance_control.models.common import ApiModel


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PageRequest(ApiModel):
    """Normalized page/size pair."""

    page: int = Field(default=0, ge=0)
    size: int = Field(..., ge=1)

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size


class Page(ApiModel):
    """
    One page of a list query.

    Serializes as {content, totalElements, totalPages, first, last,
    numberOfElements, page, size}.
    """

    content: list[Any] = Field(default_factory=list)
    total_elements: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    first: bool
    last: bool
    number_of_elements: int = Field(..., ge=0)
    page: int = Field(..., ge=0)
    size: int = Field(..., ge=1)

    @classmethod
    def of(cls, content: list[Any], request: PageRequest, total_elements: int) -> "Page":
        """Build a page and its metadata from the storage total."""
        total_pages = ceil(total_elements / request.size) if total_elements else 0
        return cls(
            content=content,
            total_elements=total_elements,
            total_pages=total_pages,
            first=request.page == 0,
            last=request.page >= total_pages - 1,
            number_of_elements=len(content),
            page=request.page,
            size=request.size,
        )
