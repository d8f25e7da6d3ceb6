"""
Investment Metadata Aggregators

Distinct-value views, rankings and the portfolio summary.

Rankings:
- Holdings without the ranked metric (no prices, no dividend yield) are
  left out rather than treated as zero.
- Ties are broken by id ascending so the output is deterministic.
"""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional

from pydantic import Field

from finance_control.config.settings import MetadataSettings
from finance_control.models.common import ApiModel
from finance_control.models.investment import (
    Investment,
    InvestmentSubtype,
    InvestmentType,
)


ZERO = Decimal("0.00")


class TypeBreakdown(ApiModel):
    investment_type: InvestmentType
    count: int = 0
    market_value: Decimal = ZERO
    total_cost: Decimal = ZERO
    profit: Decimal = ZERO
    portfolio_percentage: Decimal = ZERO


class PortfolioSummary(ApiModel):
    total_market_value: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_profit: Decimal = ZERO
    profit_percentage: Decimal = ZERO
    total_investments: int = 0
    by_type: list[TypeBreakdown] = Field(default_factory=list)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return (part / whole * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _distinct_text(values) -> list[str]:
    unique = {v for v in values if v}
    return sorted(unique, key=str.casefold)


def distinct_sectors(investments: list[Investment]) -> list[str]:
    return _distinct_text(i.sector for i in investments)


def distinct_industries(investments: list[Investment]) -> list[str]:
    return _distinct_text(i.industry for i in investments)


def distinct_types(investments: list[Investment]) -> list[InvestmentType]:
    return sorted({i.investment_type for i in investments}, key=lambda v: v.value)


def distinct_subtypes(
    investments: list[Investment],
    investment_type: InvestmentType,
) -> list[InvestmentSubtype]:
    """Subtypes in use among holdings of one type."""
    return sorted(
        {
            i.investment_subtype for i in investments
            if i.investment_type == investment_type and i.investment_subtype is not None
        },
        key=lambda v: v.value,
    )


def exchanges(settings: MetadataSettings) -> list[str]:
    return settings.exchanges_list


def rank(
    investments: list[Investment],
    metric: Callable[[Investment], Optional[Any]],
    limit: int,
    descending: bool = True,
) -> list[Investment]:
    """Top `limit` holdings by a metric, skipping holdings without it."""
    scored = [(metric(i), i) for i in investments]
    scored = [(value, i) for value, i in scored if value is not None]
    # Two stable passes: id first, then the metric.
    scored.sort(key=lambda pair: pair[1].id)
    scored.sort(key=lambda pair: pair[0], reverse=descending)
    return [i for _, i in scored[:limit]]


def top_performers(investments: list[Investment], limit: int) -> list[Investment]:
    return rank(investments, lambda i: i.day_change_percentage, limit, descending=True)


def worst_performers(investments: list[Investment], limit: int) -> list[Investment]:
    return rank(investments, lambda i: i.day_change_percentage, limit, descending=False)


def top_dividend_yield(investments: list[Investment], limit: int) -> list[Investment]:
    return rank(investments, lambda i: i.dividend_yield, limit, descending=True)


def portfolio_summary(investments: list[Investment]) -> PortfolioSummary:
    """Portfolio totals plus a breakdown per investment type."""
    market_value = sum((i.market_value for i in investments), ZERO)
    cost = sum((i.total_cost for i in investments), ZERO)
    profit = market_value - cost

    groups: dict[InvestmentType, list[Investment]] = defaultdict(list)
    for i in investments:
        groups[i.investment_type].append(i)

    breakdown = []
    for investment_type in sorted(groups, key=lambda v: v.value):
        members = groups[investment_type]
        type_value = sum((i.market_value for i in members), ZERO)
        type_cost = sum((i.total_cost for i in members), ZERO)
        breakdown.append(TypeBreakdown(
            investment_type=investment_type,
            count=len(members),
            market_value=type_value,
            total_cost=type_cost,
            profit=type_value - type_cost,
            portfolio_percentage=_percent(type_value, market_value),
        ))

    return PortfolioSummary(
        total_market_value=market_value,
        total_cost=cost,
        total_profit=profit,
        profit_percentage=_percent(profit, cost),
        total_investments=len(investments),
        by_type=breakdown,
    )
