"""
Pager

Normalizes `page`/`size` and leaves total-count metadata to `Page.of`.
Paging never fails: bad values are corrected, not rejected.
"""

from typing import Optional

from finance_control.config.settings import PaginationSettings
from finance_control.models.query import PageRequest


def _to_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


class Pager:
    """Page/size normalization against the configured defaults."""

    def __init__(self, settings: PaginationSettings):
        self.settings = settings

    def normalize_page(self, raw: Optional[str]) -> int:
        page = _to_int(raw)
        if page is None or page < 0:
            return 0
        return page

    def normalize_size(self, raw: Optional[str]) -> int:
        size = _to_int(raw)
        if size is None or size <= 0:
            return self.settings.default_page_size
        return min(size, self.settings.max_page_size)

    def request(self, page: Optional[str] = None, size: Optional[str] = None) -> PageRequest:
        return PageRequest(
            page=self.normalize_page(page),
            size=self.normalize_size(size),
        )
