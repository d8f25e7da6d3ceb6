"""
Dashboard Aggregators

Period views over an owner's transactions (and, for the summary, goals):
period metrics, top spending categories, monthly trends and the combined
summary. Like the other aggregators these are pure functions; the reference
day (`as_of`) is always passed in.

Percentages carry two places, rounded half-up.
"""

import calendar
from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import Field

from finance_control.aggregators.transactions import ZERO, income_and_expense
from finance_control.models.common import ApiModel, add_months, to_cents
from finance_control.models.goal import FinancialGoal, GoalStatus
from finance_control.models.transaction import Transaction, TransactionType


SUMMARY_TOP_CATEGORIES = 5
SUMMARY_TREND_MONTHS = 12


class FinancialMetrics(ApiModel):
    period_start: date
    period_end: date
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    balance: Decimal = ZERO
    savings_rate: Decimal = ZERO
    transaction_count: int = 0
    income_count: int = 0
    expense_count: int = 0
    average_transaction_amount: Decimal = ZERO
    largest_transaction: Optional[Decimal] = None
    smallest_transaction: Optional[Decimal] = None


class CategorySpending(ApiModel):
    category_id: int
    amount: Decimal = ZERO
    percentage: Decimal = ZERO
    transaction_count: int = 0


class MonthlyTrend(ApiModel):
    month: str = Field(..., description="YYYY-MM")
    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO
    transaction_count: int = 0


class GoalProgress(ApiModel):
    goal_id: int
    name: str
    progress_percentage: Decimal
    remaining_amount: Decimal
    deadline: Optional[date] = None


class DashboardSummary(ApiModel):
    """Current month at a glance, with the year so far and goal progress."""

    as_of: date
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    monthly_balance: Decimal = ZERO
    savings_rate: Decimal = ZERO
    net_worth: Decimal = ZERO
    total_transactions: int = 0
    pending_reconciliations: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    total_goal_progress: Decimal = ZERO
    top_spending_categories: list[CategorySpending] = Field(default_factory=list)
    monthly_trends: list[MonthlyTrend] = Field(default_factory=list)
    goal_progress: list[GoalProgress] = Field(default_factory=list)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return (part / whole * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _in_period(transactions: list[Transaction], start: date, end: date) -> list[Transaction]:
    return [t for t in transactions if start <= t.transaction_date <= end]


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def savings_rate(income: Decimal, expense: Decimal) -> Decimal:
    """Share of income left after expenses, in percent; 0 without income."""
    return _percent(income - expense, income)


def period_metrics(transactions: list[Transaction], start: date, end: date) -> FinancialMetrics:
    in_period = _in_period(transactions, start, end)
    income, expense = income_and_expense(in_period)
    amounts = [t.amount for t in in_period]
    incomes = sum(1 for t in in_period if t.type == TransactionType.INCOME)

    return FinancialMetrics(
        period_start=start,
        period_end=end,
        total_income=income,
        total_expense=expense,
        balance=income - expense,
        savings_rate=savings_rate(income, expense),
        transaction_count=len(in_period),
        income_count=incomes,
        expense_count=len(in_period) - incomes,
        average_transaction_amount=to_cents(sum(amounts) / len(amounts)) if amounts else ZERO,
        largest_transaction=max(amounts, default=None),
        smallest_transaction=min(amounts, default=None),
    )


def current_month_metrics(transactions: list[Transaction], as_of: date) -> FinancialMetrics:
    return period_metrics(transactions, month_start(as_of), month_end(as_of))


def year_to_date_metrics(transactions: list[Transaction], as_of: date) -> FinancialMetrics:
    return period_metrics(transactions, date(as_of.year, 1, 1), as_of)


def top_spending_categories(
    transactions: list[Transaction],
    start: date,
    end: date,
    limit: int,
) -> list[CategorySpending]:
    """Expense totals per category within the period, largest first."""
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[int, int] = defaultdict(int)
    for t in _in_period(transactions, start, end):
        if t.type != TransactionType.EXPENSE:
            continue
        totals[t.category_id] += t.amount
        counts[t.category_id] += 1

    overall = sum(totals.values(), ZERO)
    ranked = sorted(totals, key=lambda category_id: (-totals[category_id], category_id))
    return [
        CategorySpending(
            category_id=category_id,
            amount=totals[category_id],
            percentage=_percent(totals[category_id], overall),
            transaction_count=counts[category_id],
        )
        for category_id in ranked[:limit]
    ]


def monthly_trends(transactions: list[Transaction], as_of: date, months: int) -> list[MonthlyTrend]:
    """
    One entry per month for the `months` months ending with `as_of`'s month,
    oldest first. Months without transactions are present with zeros.
    """
    trends = []
    first = add_months(month_start(as_of), -(months - 1))
    for offset in range(months):
        start = add_months(first, offset)
        in_month = _in_period(transactions, start, month_end(start))
        income, expense = income_and_expense(in_month)
        trends.append(MonthlyTrend(
            month=start.strftime("%Y-%m"),
            income=income,
            expense=expense,
            balance=income - expense,
            transaction_count=len(in_month),
        ))
    return trends


def summary(
    transactions: list[Transaction],
    goals: list[FinancialGoal],
    as_of: date,
) -> DashboardSummary:
    month = current_month_metrics(transactions, as_of)
    year = year_to_date_metrics(transactions, as_of)
    active = [g for g in goals if g.status == GoalStatus.ACTIVE]

    total_progress = ZERO
    if active:
        progress = sum((g.progress_percentage for g in active), ZERO) / len(active)
        total_progress = progress.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return DashboardSummary(
        as_of=as_of,
        total_income=month.total_income,
        total_expense=month.total_expense,
        monthly_balance=month.balance,
        savings_rate=month.savings_rate,
        net_worth=year.balance,
        total_transactions=len(transactions),
        pending_reconciliations=sum(1 for t in transactions if not t.reconciled),
        active_goals=len(active),
        completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        total_goal_progress=total_progress,
        top_spending_categories=top_spending_categories(
            transactions, month.period_start, month.period_end, SUMMARY_TOP_CATEGORIES
        ),
        monthly_trends=monthly_trends(transactions, as_of, SUMMARY_TREND_MONTHS),
        goal_progress=[
            GoalProgress(
                goal_id=g.id,
                name=g.name,
                progress_percentage=g.progress_percentage,
                remaining_amount=g.remaining_amount,
                deadline=g.deadline,
            )
            for g in active
        ],
    )
