"""
Tests for the query engine: predicate builder, sort resolver, pager and
query dispatcher.
"""

import asyncio
from datetime import date
from decimal import Decimal
from operator import attrgetter

import pytest

from finance_control.config.settings import MetadataSettings, PaginationSettings
from finance_control.errors import ErrorReason, ValidationError
from finance_control.models.query import Page, SortDirection
from finance_control.models.transaction import TransactionSource, TransactionType
from finance_control.queries.dispatcher import (
    MetadataView,
    QueryDispatcher,
    ResourceDescriptor,
)
from finance_control.queries.paging import Pager
from finance_control.queries.params import (
    enum_parser,
    normalize_params,
    parse_date,
    parse_decimal,
    parse_int,
)
from finance_control.queries.predicates import (
    CustomFilter,
    ExactFilter,
    MembershipFilter,
    Predicate,
    PredicateBuilder,
    RangeFilter,
    SearchFilter,
)
from finance_control.queries.sorting import SortResolver
from finance_control.resources import transaction_resource
from finance_control.services.storage.memory import InMemoryEntityStorage

from factories import make_transaction


@pytest.fixture
def transactions():
    return [
        make_transaction(1, amount="50.00", description="Groceries", source=TransactionSource.PIX),
        make_transaction(2, amount="120.00", description="Electricity bill", source=TransactionSource.CREDIT_CARD,
                         on=date(2024, 2, 1)),
        make_transaction(3, amount="3000.00", type=TransactionType.INCOME, description="Salary",
                         source=TransactionSource.BANK_TRANSACTION, on=date(2024, 2, 5), category_id=2),
        make_transaction(4, amount="75.00", description="Restaurant", source=TransactionSource.CASH,
                         on=date(2024, 3, 10), responsible_id=2),
    ]


def run(params, items):
    predicate = transaction_resource().filters.build(normalize_params(params))
    return [t.id for t in items if predicate(t)]


class TestPredicateBuilder:
    """Parameter map -> predicate."""

    def test_no_parameters_match_everything(self, transactions):
        """Test that an empty parameter map is an open filter."""
        assert run({}, transactions) == [1, 2, 3, 4]

    def test_unknown_and_blank_parameters_are_ignored(self, transactions):
        """Test forward compatibility with unknown names and blank values."""
        assert run({"color": "blue", "type": "  ", "minAmount": ""}, transactions) == [1, 2, 3, 4]

    def test_exact_enum_is_case_insensitive(self, transactions):
        """Test enum equality."""
        assert run({"type": "income"}, transactions) == [3]

    def test_range_is_inclusive(self, transactions):
        """Test both bounds are inclusive."""
        assert run({"minAmount": "75", "maxAmount": "120.00"}, transactions) == [2, 4]

    def test_single_bound(self, transactions):
        """Test that either bound may be omitted."""
        assert run({"startDate": "2024-02-05"}, transactions) == [3, 4]
        assert run({"endDate": "2024-01-31"}, transactions) == [1]

    def test_inverted_range_is_empty(self, transactions):
        """Test minAmount > maxAmount returns nothing instead of failing."""
        assert run({"minAmount": "100", "maxAmount": "50"}, transactions) == []

    def test_membership_is_or_combined(self, transactions):
        """Test repeated and comma-separated values."""
        assert run({"source": ["PIX", "CASH"]}, transactions) == [1, 4]
        assert run({"source": "pix,credit_card"}, transactions) == [1, 2]

    def test_search_is_case_insensitive_substring(self, transactions):
        """Test free text search."""
        assert run({"search": "BILL"}, transactions) == [2]

    def test_filters_are_and_combined(self, transactions):
        """Test distinct filters narrow each other."""
        assert run({"type": "EXPENSE", "minAmount": "60"}, transactions) == [2, 4]

    def test_custom_responsible_filter(self, transactions):
        """Test matching any responsibility entry."""
        assert run({"responsibleId": "2"}, transactions) == [4]

    def test_unparseable_value_is_rejected(self, transactions):
        """Test that a bad value for a known parameter names it."""
        with pytest.raises(ValidationError) as exc:
            run({"minAmount": "abc"}, transactions)
        assert exc.value.reason == ErrorReason.INVALID_PARAMETER
        assert exc.value.field_errors[0].field == "minAmount"
        assert exc.value.field_errors[0].rejected_value == "abc"

    def test_unknown_enum_value_is_rejected(self, transactions):
        """Test that an unknown enum token is a validation error."""
        with pytest.raises(ValidationError):
            run({"type": "TRANSFER"}, transactions)

    def test_predicate_composition(self):
        """Test &, | and ~ on predicates."""
        positive = Predicate(lambda x: x > 0, "positive")
        even = Predicate(lambda x: x % 2 == 0, "even")
        assert [x for x in range(-2, 5) if (positive & even)(x)] == [2, 4]
        assert [x for x in range(-2, 5) if (positive | even)(x)] == [-2, 0, 1, 2, 3, 4]
        assert [x for x in range(-2, 3) if (~positive)(x)] == [-2, -1, 0]
        assert Predicate.always()(object())

    def test_filter_building_blocks(self):
        """Test filters outside a resource registry."""
        builder = PredicateBuilder([
            ExactFilter("id", attrgetter("id"), parse_int),
            MembershipFilter("type", attrgetter("type"), enum_parser(TransactionType)),
            RangeFilter("from", "to", attrgetter("transaction_date"), parse_date),
            SearchFilter([attrgetter("description")], param="q"),
            CustomFilter("cheap", lambda flag: (lambda t: (t.amount < 100) == (flag == "yes"))),
        ])
        assert builder.parameters == ("id", "type", "from", "to", "q", "cheap")
        items = [make_transaction(1, amount="10.00"), make_transaction(2, amount="500.00")]
        predicate = builder.build(normalize_params({"cheap": "yes", "q": "groc"}))
        assert [t.id for t in items if predicate(t)] == [1]

    def test_range_excludes_missing_values(self):
        """Test that entities without the field never match a bounded range."""
        range_filter = RangeFilter("min", "max", attrgetter("value"), parse_decimal)
        predicate = range_filter.build({"min": ["1"]})

        class Row:
            value = None

        assert not predicate(Row())


class TestSortResolver:
    """sortBy / sortDirection handling."""

    def test_unknown_field_falls_back_to_default(self, transactions):
        """Test that a typo does not fail the request."""
        order = transaction_resource().sort.resolve("doesNotExist", "desc")
        assert order.field == "id"
        assert order.direction == SortDirection.DESC

    def test_direction_defaults_to_ascending(self):
        """Test that anything but desc is ascending."""
        resolver = SortResolver({"id": attrgetter("id")})
        assert resolver.resolve(None, None).direction == SortDirection.ASC
        assert resolver.resolve("id", "DESC").direction == SortDirection.DESC
        assert resolver.resolve("id", "sideways").direction == SortDirection.ASC

    def test_field_names_match_case_insensitively(self):
        """Test sortBy=AMOUNT resolves to amount."""
        assert transaction_resource().sort.resolve("AMOUNT").field == "amount"

    def test_ties_broken_by_id(self):
        """Test deterministic order for equal values in both directions."""
        items = [
            make_transaction(3, amount="10.00"),
            make_transaction(1, amount="10.00"),
            make_transaction(2, amount="20.00"),
        ]
        resolver = transaction_resource().sort
        assert [t.id for t in resolver.resolve("amount", "asc").apply(items)] == [1, 3, 2]
        assert [t.id for t in resolver.resolve("amount", "desc").apply(items)] == [2, 1, 3]

    def test_none_values_sort_last(self):
        """Test that missing values trail in both directions."""

        class Row:
            def __init__(self, id, value):
                self.id = id
                self.value = value

        rows = [Row(1, None), Row(2, 5), Row(3, 1)]
        resolver = SortResolver({"value": attrgetter("value")})
        assert [r.id for r in resolver.resolve("value").apply(rows)] == [3, 2, 1]
        assert [r.id for r in resolver.resolve("value", "desc").apply(rows)] == [2, 3, 1]

    def test_text_sorts_case_insensitively(self):
        """Test that description order ignores case."""
        items = [
            make_transaction(1, description="banana"),
            make_transaction(2, description="Apple"),
            make_transaction(3, description="cherry"),
        ]
        order = transaction_resource().sort.resolve("description")
        assert [t.id for t in order.apply(items)] == [2, 1, 3]


class TestPager:
    """page / size normalization."""

    @pytest.fixture
    def pager(self):
        return Pager(PaginationSettings(default_page_size=20, max_page_size=100))

    def test_defaults(self, pager):
        request = pager.request()
        assert (request.page, request.size) == (0, 20)

    def test_negative_page_is_first_page(self, pager):
        """Test page=-1 behaves as page=0."""
        assert pager.request(page="-1").page == 0
        assert pager.request(page="abc").page == 0

    @pytest.mark.parametrize("size", ["0", "-5", "lots"])
    def test_bad_size_uses_default(self, pager, size):
        """Test size <= 0 or garbage behaves as the configured default."""
        assert pager.request(size=size).size == 20

    def test_size_is_clamped(self, pager):
        """Test size above the maximum is clamped."""
        assert pager.request(size="1000").size == 100

    def test_offset(self, pager):
        request = pager.request(page="3", size="15")
        assert request.offset == 45
        assert request.limit == 15


class TestQueryDispatcher:
    """List and metadata routing."""

    @pytest.fixture
    def dispatcher(self):
        return QueryDispatcher(
            PaginationSettings(default_page_size=2, max_page_size=100),
            MetadataSettings(),
        )

    @pytest.fixture
    def storage(self, transactions):
        storage = InMemoryEntityStorage("transaction")
        for t in transactions:
            asyncio.run(storage.create(t))
        asyncio.run(storage.create(make_transaction(99, user_id=2, description="Not mine")))
        return storage

    def test_list_path_returns_page(self, dispatcher, storage):
        """Test filter -> sort -> page -> fetch."""
        page = asyncio.run(dispatcher.dispatch(
            transaction_resource(), storage, 1, {"sortBy": "amount", "sortDirection": "desc"}
        ))
        assert isinstance(page, Page)
        assert [t.id for t in page.content] == [3, 2]
        assert page.total_elements == 4
        assert page.total_pages == 2
        assert page.first and not page.last

    def test_results_are_owner_scoped(self, dispatcher, storage):
        """Test that another user's rows never appear."""
        page = asyncio.run(dispatcher.dispatch(transaction_resource(), storage, 2, {}))
        assert [t.id for t in page.content] == [99]

    def test_page_beyond_end_is_empty(self, dispatcher, storage):
        page = asyncio.run(dispatcher.dispatch(transaction_resource(), storage, 1, {"page": "5"}))
        assert page.content == []
        assert page.last

    def test_unknown_metadata_token(self, dispatcher, storage):
        """Test data=unknown-token names the token."""
        with pytest.raises(ValidationError) as exc:
            asyncio.run(dispatcher.dispatch(transaction_resource(), storage, 1, {"data": "unknown-token"}))
        assert exc.value.reason == ErrorReason.UNSUPPORTED_METADATA_TYPE
        assert "unknown-token" in exc.value.message
        assert exc.value.field_errors[0].field == "data"

    def test_missing_mandatory_parameter(self, dispatcher, storage):
        """Test data=by-category without categoryId names the parameter."""
        with pytest.raises(ValidationError) as exc:
            asyncio.run(dispatcher.dispatch(transaction_resource(), storage, 1, {"data": "by-category"}))
        assert exc.value.reason == ErrorReason.MISSING_PARAMETER
        assert exc.value.field_errors[0].field == "categoryId"

    def test_mandatory_parameters_checked_before_fetch(self, dispatcher):
        """Test that nothing is read when a required parameter is missing."""

        class ExplodingStorage(InMemoryEntityStorage):
            async def find(self, predicate):
                raise AssertionError("storage must not be queried")

        with pytest.raises(ValidationError):
            asyncio.run(dispatcher.dispatch(
                transaction_resource(), ExplodingStorage(), 1,
                {"data": "metrics", "startDate": "2024-01-01"},
            ))

    def test_metadata_sees_filtered_collection(self, dispatcher, storage):
        """Test that list filters apply to metadata views."""
        count = asyncio.run(dispatcher.dispatch(
            transaction_resource(), storage, 1, {"data": "count", "type": "EXPENSE"}
        ))
        assert count == 3

    def test_async_metadata_handler(self, dispatcher, storage):
        """Test that views may be coroutines."""

        async def total(items, ctx):
            return sum(t.amount for t in items)

        descriptor = ResourceDescriptor(
            "transactions",
            PredicateBuilder([]),
            SortResolver({"id": attrgetter("id")}),
            {"total": MetadataView(total)},
        )
        result = asyncio.run(dispatcher.dispatch(descriptor, storage, 1, {"data": "total"}))
        assert result == Decimal("3245.00")

    def test_ranking_limit_is_clamped(self, dispatcher, storage):
        """Test limit parsing for ranking views."""
        seen = {}

        def capture(items, ctx):
            seen["limit"] = ctx.limit()
            return seen["limit"]

        descriptor = ResourceDescriptor(
            "x", PredicateBuilder([]), SortResolver({"id": attrgetter("id")}),
            {"rank": MetadataView(capture)},
        )
        for raw, expected in (("5", 5), ("0", 1), ("500", 50), ("abc", 10)):
            asyncio.run(dispatcher.dispatch(descriptor, storage, 1, {"data": "rank", "limit": raw}))
            assert seen["limit"] == expected
