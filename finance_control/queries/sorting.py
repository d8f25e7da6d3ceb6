"""
Sort Resolver

Validates `sortBy`/`sortDirection` against a per-resource allow-list and
produces a deterministic ordering.

DESIGN DECISION: Sorting is fail-open. An unknown `sortBy` falls back to the
resource default instead of rejecting the request, and any direction other
than `desc` means ascending. The default is always a stable field (the id).

Ordering rules:
- Ties are broken by `id` ascending, whatever the direction.
- Entities whose sort value is None always come last.
- Text compares case-insensitively.
"""

from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, Iterable, Mapping, Optional

from finance_control.models.query import SortDirection


Accessor = Callable[[Any], Any]

_by_id = attrgetter("id")


def _sort_key(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


@dataclass(frozen=True)
class SortOrder:
    """A validated (field, direction) pair plus how to read the field."""

    field: str
    direction: SortDirection
    key: Accessor

    @property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC

    def apply(self, items: Iterable[Any]) -> list[Any]:
        """Return the items sorted; the input is left untouched."""
        ordered = sorted(items, key=lambda e: (_by_id(e) is None, _by_id(e) or 0))

        present = [e for e in ordered if self.key(e) is not None]
        missing = [e for e in ordered if self.key(e) is None]

        # sorted() is stable, so the id order survives among equal values
        # even with reverse=True.
        present.sort(key=lambda e: _sort_key(self.key(e)), reverse=self.descending)
        return present + missing


class SortResolver:
    """
    Per-resource sort configuration.

    Args:
        sortable: API field name -> accessor, e.g. {"amount": attrgetter("amount")}
        default_field: field used when `sortBy` is absent or unknown
    """

    def __init__(self, sortable: Mapping[str, Accessor], default_field: str = "id"):
        if default_field not in sortable:
            sortable = {**sortable, default_field: attrgetter(default_field)}
        self.sortable = dict(sortable)
        self.default_field = default_field
        self._folded = {name.casefold(): name for name in self.sortable}

    def resolve_field(self, sort_by: Optional[str]) -> str:
        if not sort_by:
            return self.default_field
        if sort_by in self.sortable:
            return sort_by
        return self._folded.get(sort_by.casefold(), self.default_field)

    @staticmethod
    def resolve_direction(sort_direction: Optional[str]) -> SortDirection:
        if sort_direction and sort_direction.strip().lower() == "desc":
            return SortDirection.DESC
        return SortDirection.ASC

    def resolve(
        self,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ) -> SortOrder:
        field = self.resolve_field(sort_by)
        return SortOrder(
            field=field,
            direction=self.resolve_direction(sort_direction),
            key=self.sortable[field],
        )
