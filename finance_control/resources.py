"""
Resource Descriptors

Each list endpoint is configuration, not a subclass: one ResourceDescriptor
per resource declares its filters, sortable fields and `data` views, and the
QueryDispatcher does the rest.

Parameter names are the API's camelCase names.
"""

from datetime import date
from operator import attrgetter

from finance_control.aggregators import dashboard as dashboard_views
from finance_control.aggregators import goals as goal_views
from finance_control.aggregators import investments as investment_views
from finance_control.aggregators import reference as reference_views
from finance_control.aggregators import transactions as transaction_views
from finance_control.models.goal import FinancialGoal, GoalStatus, GoalType
from finance_control.models.investment import InvestmentSubtype, InvestmentType
from finance_control.models.transaction import (
    Transaction,
    TransactionSource,
    TransactionSubtype,
    TransactionType,
)
from finance_control.queries.dispatcher import MetadataView, ResourceDescriptor
from finance_control.queries.params import (
    enum_parser,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
)
from finance_control.queries.predicates import (
    CustomFilter,
    ExactFilter,
    MembershipFilter,
    PredicateBuilder,
    RangeFilter,
    SearchFilter,
)
from finance_control.queries.sorting import SortResolver
from finance_control.services.storage.interface import EntityStorageInterface


# =============================================================================
# TRANSACTIONS
# =============================================================================

def _has_responsible(responsible_id: int):
    return lambda t: any(r.responsible_id == responsible_id for r in t.responsibilities)


def _transaction_filters() -> PredicateBuilder:
    return PredicateBuilder([
        ExactFilter("type", attrgetter("type"), enum_parser(TransactionType)),
        ExactFilter("subtype", attrgetter("subtype"), enum_parser(TransactionSubtype)),
        MembershipFilter("source", attrgetter("source"), enum_parser(TransactionSource)),
        ExactFilter("categoryId", attrgetter("category_id"), parse_int),
        ExactFilter("subcategoryId", attrgetter("subcategory_id"), parse_int),
        ExactFilter("sourceEntityId", attrgetter("source_entity_id"), parse_int),
        CustomFilter("responsibleId", _has_responsible, parse_int),
        RangeFilter("startDate", "endDate", attrgetter("transaction_date"), parse_date),
        RangeFilter("minAmount", "maxAmount", attrgetter("amount"), parse_decimal),
        SearchFilter([attrgetter("description")]),
        ExactFilter("reconciled", attrgetter("reconciled"), parse_bool),
        ExactFilter("installments", attrgetter("installments"), parse_int),
    ])


def transaction_resource() -> ResourceDescriptor:
    filters = _transaction_filters()
    sort = SortResolver({
        "id": attrgetter("id"),
        "date": attrgetter("transaction_date"),
        "amount": attrgetter("amount"),
        "description": attrgetter("description"),
        "type": attrgetter("type"),
        "source": attrgetter("source"),
        "categoryId": attrgetter("category_id"),
        "createdAt": attrgetter("created_at"),
        "reconciliationDate": attrgetter("reconciliation_date"),
        "installmentNumber": attrgetter("installment_number"),
    })
    metadata = {
        "types": MetadataView(lambda items, ctx: transaction_views.distinct_types(items)),
        "sources": MetadataView(lambda items, ctx: transaction_views.distinct_sources(items)),
        "categories": MetadataView(lambda items, ctx: transaction_views.distinct_categories(items)),
        "count": MetadataView(lambda items, ctx: transaction_views.count(items)),
        "monthly-summary": MetadataView(
            lambda items, ctx: transaction_views.monthly_summary(items)
        ),
        "metrics": MetadataView(
            lambda items, ctx: transaction_views.metrics(
                items,
                ctx.require("startDate", parse_date),
                ctx.require("endDate", parse_date),
            ),
            required=("startDate", "endDate"),
        ),
        "by-category": MetadataView(
            lambda items, ctx: transaction_views.category_totals(
                items, ctx.require("categoryId", parse_int)
            ),
            required=("categoryId",),
        ),
        "responsible-summary": MetadataView(
            lambda items, ctx: transaction_views.responsible_summary(
                items, ctx.optional("responsibleId", parse_int)
            )
        ),
    }
    return ResourceDescriptor("transactions", filters, sort, metadata)


# =============================================================================
# GOALS
# =============================================================================

def goal_resource() -> ResourceDescriptor:
    filters = PredicateBuilder([
        ExactFilter("goalType", attrgetter("goal_type"), enum_parser(GoalType)),
        ExactFilter("status", attrgetter("status"), enum_parser(GoalStatus)),
        ExactFilter("priority", attrgetter("priority"), parse_int),
        RangeFilter("minTargetAmount", "maxTargetAmount", attrgetter("target_amount"), parse_decimal),
        RangeFilter("deadlineStart", "deadlineEnd", attrgetter("deadline"), parse_date),
        SearchFilter([attrgetter("name"), attrgetter("description")]),
    ])
    sort = SortResolver({
        "id": attrgetter("id"),
        "name": attrgetter("name"),
        "targetAmount": attrgetter("target_amount"),
        "currentAmount": attrgetter("current_amount"),
        "progressPercentage": attrgetter("progress_percentage"),
        "deadline": attrgetter("deadline"),
        "priority": attrgetter("priority"),
        "createdAt": attrgetter("created_at"),
    })
    metadata = {
        "types": MetadataView(lambda items, ctx: goal_views.distinct_types(items)),
        "count": MetadataView(lambda items, ctx: goal_views.count(items)),
        "status-summary": MetadataView(lambda items, ctx: goal_views.status_summary(items)),
        "active": MetadataView(lambda items, ctx: goal_views.active(items)),
        "completed": MetadataView(lambda items, ctx: goal_views.completed(items)),
    }
    return ResourceDescriptor("goals", filters, sort, metadata)


# =============================================================================
# INVESTMENTS
# =============================================================================

def investment_resource() -> ResourceDescriptor:
    filters = PredicateBuilder([
        ExactFilter("type", attrgetter("investment_type"), enum_parser(InvestmentType)),
        ExactFilter("subtype", attrgetter("investment_subtype"), enum_parser(InvestmentSubtype)),
        ExactFilter("ticker", attrgetter("ticker"), ignore_case=True),
        ExactFilter("sector", attrgetter("sector"), ignore_case=True),
        ExactFilter("industry", attrgetter("industry"), ignore_case=True),
        MembershipFilter("exchange", attrgetter("exchange"), str.upper),
        ExactFilter("isActive", attrgetter("is_active"), parse_bool),
        RangeFilter("minPrice", "maxPrice", attrgetter("current_price"), parse_decimal),
        RangeFilter("minDividendYield", "maxDividendYield", attrgetter("dividend_yield"), parse_decimal),
        SearchFilter([attrgetter("ticker"), attrgetter("name")]),
    ])
    sort = SortResolver({
        "id": attrgetter("id"),
        "ticker": attrgetter("ticker"),
        "name": attrgetter("name"),
        "currentPrice": attrgetter("current_price"),
        "marketValue": attrgetter("market_value"),
        "profit": attrgetter("profit"),
        "dayChangePercentage": attrgetter("day_change_percentage"),
        "dividendYield": attrgetter("dividend_yield"),
        "createdAt": attrgetter("created_at"),
    })
    metadata = {
        "sectors": MetadataView(lambda items, ctx: investment_views.distinct_sectors(items)),
        "industries": MetadataView(lambda items, ctx: investment_views.distinct_industries(items)),
        "types": MetadataView(lambda items, ctx: investment_views.distinct_types(items)),
        "subtypes": MetadataView(
            lambda items, ctx: investment_views.distinct_subtypes(
                items, ctx.require("type", enum_parser(InvestmentType))
            ),
            required=("type",),
        ),
        "exchanges": MetadataView(lambda items, ctx: investment_views.exchanges(ctx.settings)),
        "top-performers": MetadataView(
            lambda items, ctx: investment_views.top_performers(items, ctx.limit())
        ),
        "worst-performers": MetadataView(
            lambda items, ctx: investment_views.worst_performers(items, ctx.limit())
        ),
        "top-dividend-yield": MetadataView(
            lambda items, ctx: investment_views.top_dividend_yield(items, ctx.limit())
        ),
        "portfolio-summary": MetadataView(
            lambda items, ctx: investment_views.portfolio_summary(items)
        ),
    }
    return ResourceDescriptor("investments", filters, sort, metadata)


# =============================================================================
# REFERENCE DATA
# =============================================================================

_name_sort = {
    "id": attrgetter("id"),
    "name": attrgetter("name"),
    "createdAt": attrgetter("created_at"),
}


def category_resource(transactions: EntityStorageInterface[Transaction]) -> ResourceDescriptor:
    """`usage-stats` reads the caller's transactions as well as the categories."""

    async def usage_stats(items, ctx):
        owned = await transactions.find(lambda t: t.user_id == ctx.owner_id)
        return reference_views.usage_stats(items, owned)

    metadata = {
        "all": MetadataView(lambda items, ctx: reference_views.all_items(items)),
        "count": MetadataView(lambda items, ctx: reference_views.count(items)),
        "usage-stats": MetadataView(usage_stats),
    }
    filters = PredicateBuilder([SearchFilter([attrgetter("name")])])
    return ResourceDescriptor("transaction-categories", filters, SortResolver(_name_sort), metadata)


def subcategory_resource() -> ResourceDescriptor:
    filters = PredicateBuilder([
        ExactFilter("categoryId", attrgetter("category_id"), parse_int),
        SearchFilter([attrgetter("name")]),
    ])
    sort = SortResolver({**_name_sort, "categoryId": attrgetter("category_id")})
    metadata = {
        "all": MetadataView(lambda items, ctx: reference_views.all_items(items)),
        "by-category": MetadataView(
            lambda items, ctx: reference_views.subcategories_by_category(
                items, ctx.require("categoryId", parse_int)
            ),
            required=("categoryId",),
        ),
        "count": MetadataView(lambda items, ctx: reference_views.count(items)),
        "count-by-category": MetadataView(
            lambda items, ctx: reference_views.count_by_category(
                items, ctx.require("categoryId", parse_int)
            ),
            required=("categoryId",),
        ),
    }
    return ResourceDescriptor("transaction-subcategories", filters, sort, metadata)


def responsible_resource() -> ResourceDescriptor:
    metadata = {
        "all": MetadataView(lambda items, ctx: reference_views.all_items(items)),
        "count": MetadataView(lambda items, ctx: reference_views.count(items)),
    }
    filters = PredicateBuilder([SearchFilter([attrgetter("name")])])
    return ResourceDescriptor("responsibles", filters, SortResolver(_name_sort), metadata)


# =============================================================================
# DASHBOARD
# =============================================================================

MAX_TREND_MONTHS = 120


def _months(raw: str) -> int:
    value = parse_int(raw)
    if not 1 <= value <= MAX_TREND_MONTHS:
        raise ValueError(f"months must be between 1 and {MAX_TREND_MONTHS}")
    return value


def _as_of(ctx) -> date:
    return ctx.optional("asOf", parse_date, default=date.today())


def dashboard_resource(goals: EntityStorageInterface[FinancialGoal]) -> ResourceDescriptor:
    """
    Dashboard views over the caller's transactions.

    Every view is a `data` token; `asOf` (default today) fixes the current
    month. The transaction filters narrow what the views see. `summary` also
    reads the caller's goals.
    """

    async def summary(items, ctx):
        owned = await goals.find(lambda g: g.user_id == ctx.owner_id)
        return dashboard_views.summary(items, owned, _as_of(ctx))

    def spending_categories(items, ctx):
        as_of = _as_of(ctx)
        start = ctx.optional("startDate", parse_date, default=dashboard_views.month_start(as_of))
        end = ctx.optional("endDate", parse_date, default=dashboard_views.month_end(as_of))
        return dashboard_views.top_spending_categories(items, start, end, ctx.limit())

    metadata = {
        "summary": MetadataView(summary),
        "metrics": MetadataView(
            lambda items, ctx: dashboard_views.period_metrics(
                items,
                ctx.require("startDate", parse_date),
                ctx.require("endDate", parse_date),
            ),
            required=("startDate", "endDate"),
        ),
        "spending-categories": MetadataView(spending_categories),
        "monthly-trends": MetadataView(
            lambda items, ctx: dashboard_views.monthly_trends(
                items, _as_of(ctx), ctx.optional("months", _months, default=12)
            )
        ),
        "current-month-metrics": MetadataView(
            lambda items, ctx: dashboard_views.current_month_metrics(items, _as_of(ctx))
        ),
        "year-to-date-metrics": MetadataView(
            lambda items, ctx: dashboard_views.year_to_date_metrics(items, _as_of(ctx))
        ),
    }
    sort = SortResolver({"id": attrgetter("id"), "date": attrgetter("transaction_date")})
    return ResourceDescriptor("dashboard", _transaction_filters(), sort, metadata)
