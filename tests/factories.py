"""Builders for stored entities used across the tests."""

from datetime import date
from decimal import Decimal

from finance_control.models.investment import Investment, InvestmentType
from finance_control.models.transaction import (
    Responsibility,
    Transaction,
    TransactionSource,
    TransactionSubtype,
    TransactionType,
)


def make_transaction(
    id: int,
    amount: str = "100.00",
    type: TransactionType = TransactionType.EXPENSE,
    on: date = date(2024, 1, 15),
    category_id: int = 1,
    user_id: int = 1,
    description: str = "Groceries",
    source: TransactionSource = TransactionSource.PIX,
    responsible_id: int = 1,
    reconciled: bool = False,
) -> Transaction:
    """A stored transaction with a single 100% responsibility."""
    return Transaction(
        reconciled=reconciled,
        id=id,
        user_id=user_id,
        type=type,
        subtype=TransactionSubtype.VARIABLE,
        source=source,
        description=description,
        amount=Decimal(amount),
        transaction_date=on,
        category_id=category_id,
        responsibilities=[
            Responsibility(
                responsible_id=responsible_id,
                percentage=Decimal("100"),
                calculated_amount=Decimal(amount),
            )
        ],
    )


def make_investment(
    id: int,
    ticker: str,
    investment_type: InvestmentType = InvestmentType.STOCK,
    quantity: str = "10",
    average_price: str = "10.00",
    current_price: str = None,
    previous_close: str = None,
    dividend_yield: str = None,
    sector: str = None,
    user_id: int = 1,
) -> Investment:
    def dec(value):
        return Decimal(value) if value is not None else None

    return Investment(
        id=id,
        user_id=user_id,
        ticker=ticker,
        investment_type=investment_type,
        quantity=Decimal(quantity),
        average_price=Decimal(average_price),
        current_price=dec(current_price),
        previous_close=dec(previous_close),
        dividend_yield=dec(dividend_yield),
        sector=sector,
    )
