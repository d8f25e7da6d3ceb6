"""Reference data metadata aggregators (categories, subcategories, responsibles)."""

from collections import Counter
from decimal import Decimal
from typing import Any

from finance_control.models.common import ApiModel
from finance_control.models.reference import TransactionCategory, TransactionSubcategory
from finance_control.models.transaction import Transaction


class CategoryUsage(ApiModel):
    category_id: int
    name: str
    transaction_count: int = 0
    total_amount: Decimal = Decimal("0.00")


def all_items(items: list[Any]) -> list[Any]:
    return list(items)


def count(items: list[Any]) -> int:
    return len(items)


def usage_stats(
    categories: list[TransactionCategory],
    transactions: list[Transaction],
) -> list[CategoryUsage]:
    """Transactions per category, most used first, unused categories included."""
    counts = Counter(t.category_id for t in transactions)
    totals: dict[int, Decimal] = {}
    for t in transactions:
        totals[t.category_id] = totals.get(t.category_id, Decimal("0.00")) + t.amount

    usage = [
        CategoryUsage(
            category_id=c.id,
            name=c.name,
            transaction_count=counts.get(c.id, 0),
            total_amount=totals.get(c.id, Decimal("0.00")),
        )
        for c in categories
    ]
    usage.sort(key=lambda u: (-u.transaction_count, u.category_id))
    return usage


def subcategories_by_category(
    subcategories: list[TransactionSubcategory],
    category_id: int,
) -> list[TransactionSubcategory]:
    return [s for s in subcategories if s.category_id == category_id]


def count_by_category(subcategories: list[TransactionSubcategory], category_id: int) -> int:
    return len(subcategories_by_category(subcategories, category_id))
