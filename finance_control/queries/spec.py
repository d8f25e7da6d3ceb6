"""
QuerySpec

The normalized form of one list request: built per request by
`QueryDispatcher.parse` and discarded once the response is produced.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from finance_control.models.query import PageRequest
from finance_control.queries.params import Params
from finance_control.queries.predicates import Predicate
from finance_control.queries.sorting import SortOrder


class QuerySpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    predicate: Predicate
    sort: SortOrder
    page: PageRequest
    data: Optional[str] = None
    params: Params

    @property
    def is_metadata(self) -> bool:
        return self.data is not None
