"""
Transaction Metadata Aggregators

Pure functions over an owner-scoped, filter-applied list of transactions.
Every function accepts an empty list and returns an empty or zero result.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import Field

from finance_control.models.common import ApiModel, to_cents
from finance_control.models.transaction import (
    Transaction,
    TransactionSource,
    TransactionType,
)


ZERO = Decimal("0.00")


class MonthlySummary(ApiModel):
    month: str = Field(..., description="YYYY-MM")
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO
    count: int = 0


class TransactionMetrics(ApiModel):
    start_date: date
    end_date: date
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    balance: Decimal = ZERO
    transaction_count: int = 0
    average_expense: Decimal = ZERO


class CategoryTotals(ApiModel):
    category_id: int
    count: int = 0
    total: Decimal = ZERO
    income: Decimal = ZERO
    expense: Decimal = ZERO


class ResponsibleSummary(ApiModel):
    """One party's share across the scoped transactions."""

    responsible_id: int
    total_amount: Decimal = ZERO
    income_amount: Decimal = ZERO
    expense_amount: Decimal = ZERO
    transaction_count: int = 0


def income_and_expense(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    income = expense = ZERO
    for t in transactions:
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expense += t.amount
    return income, expense


def distinct_types(transactions: list[Transaction]) -> list[TransactionType]:
    return sorted({t.type for t in transactions}, key=lambda v: v.value)


def distinct_sources(transactions: list[Transaction]) -> list[TransactionSource]:
    return sorted({t.source for t in transactions}, key=lambda v: v.value)


def distinct_categories(transactions: list[Transaction]) -> list[int]:
    return sorted({t.category_id for t in transactions})


def count(transactions: list[Transaction]) -> int:
    return len(transactions)


def monthly_summary(transactions: list[Transaction]) -> list[MonthlySummary]:
    """Income, expense and net per YYYY-MM, oldest month first."""
    buckets: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        buckets[t.month].append(t)

    summaries = []
    for month in sorted(buckets):
        income, expense = income_and_expense(buckets[month])
        summaries.append(MonthlySummary(
            month=month,
            income=income,
            expense=expense,
            net=income - expense,
            count=len(buckets[month]),
        ))
    return summaries


def metrics(transactions: list[Transaction], start: date, end: date) -> TransactionMetrics:
    """Totals for transactions dated within [start, end]."""
    in_range = [t for t in transactions if start <= t.transaction_date <= end]
    income, expense = income_and_expense(in_range)
    expenses = sum(1 for t in in_range if t.type == TransactionType.EXPENSE)

    return TransactionMetrics(
        start_date=start,
        end_date=end,
        total_income=income,
        total_expense=expense,
        balance=income - expense,
        transaction_count=len(in_range),
        average_expense=to_cents(expense / expenses) if expenses else ZERO,
    )


def category_totals(transactions: list[Transaction], category_id: int) -> CategoryTotals:
    in_category = [t for t in transactions if t.category_id == category_id]
    income, expense = income_and_expense(in_category)
    return CategoryTotals(
        category_id=category_id,
        count=len(in_category),
        total=income + expense,
        income=income,
        expense=expense,
    )


def responsible_summary(
    transactions: list[Transaction],
    responsible_id: Optional[int] = None,
) -> list[ResponsibleSummary]:
    """
    Calculated amounts per responsible party, ordered by party id.

    A transaction counts once per party even if the party appears in more
    than one of its entries.
    """
    summaries: dict[int, ResponsibleSummary] = {}
    for t in transactions:
        seen = set()
        for r in t.responsibilities:
            if responsible_id is not None and r.responsible_id != responsible_id:
                continue
            summary = summaries.setdefault(
                r.responsible_id, ResponsibleSummary(responsible_id=r.responsible_id)
            )
            summary.total_amount += r.calculated_amount
            if t.type == TransactionType.INCOME:
                summary.income_amount += r.calculated_amount
            else:
                summary.expense_amount += r.calculated_amount
            if r.responsible_id not in seen:
                summary.transaction_count += 1
                seen.add(r.responsible_id)
    return [summaries[key] for key in sorted(summaries)]
