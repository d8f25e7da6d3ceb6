"""
Query engine: predicate builder, sort resolver, pager and the dispatcher
that ties them together for every list endpoint.
"""

from finance_control.queries.dispatcher import (
    MetadataContext,
    MetadataView,
    QueryDispatcher,
    ResourceDescriptor,
)
from finance_control.queries.paging import Pager
from finance_control.queries.params import (
    enum_parser,
    normalize_params,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
    parse_text,
)
from finance_control.queries.predicates import (
    CustomFilter,
    ExactFilter,
    Filter,
    MembershipFilter,
    Predicate,
    PredicateBuilder,
    RangeFilter,
    SearchFilter,
)
from finance_control.queries.sorting import SortOrder, SortResolver
from finance_control.queries.spec import QuerySpec

__all__ = [
    "CustomFilter",
    "ExactFilter",
    "Filter",
    "MembershipFilter",
    "MetadataContext",
    "MetadataView",
    "Pager",
    "Predicate",
    "PredicateBuilder",
    "QueryDispatcher",
    "QuerySpec",
    "RangeFilter",
    "ResourceDescriptor",
    "SearchFilter",
    "SortOrder",
    "SortResolver",
    "enum_parser",
    "normalize_params",
    "parse_bool",
    "parse_date",
    "parse_decimal",
    "parse_int",
    "parse_text",
]
