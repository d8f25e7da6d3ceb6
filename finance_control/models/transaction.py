"""
Transaction Models

A transaction exclusively owns an ordered, flat list of Responsibility
records. Responsibilities have no identity of their own: they are addressed
by position and replaced as a whole whenever the transaction is updated.

DESIGN DECISION: `calculated_amount` is never accepted from a client.
Request models carry ResponsibilityInput, and only the allocator produces
Responsibility records.

Reconciliation against a bank statement is tracked on the transaction itself
and only changes through the reconcile operation; a full update keeps it.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from finance_control.models.common import ApiModel, utc_now


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money flow."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionSubtype(str, Enum):
    """Whether the transaction recurs with a fixed value."""
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"


class TransactionSource(str, Enum):
    """Payment channel."""
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    BANK_TRANSACTION = "BANK_TRANSACTION"
    PIX = "PIX"
    CASH = "CASH"
    OTHER = "OTHER"


# =============================================================================
# RESPONSIBILITIES
# =============================================================================

class ResponsibilityInput(ApiModel):
    """
    One entry of the `responsibilities` array in a create/update request.

    Fields are optional here so the allocator can report missing values
    with field-level detail instead of a generic parsing failure.
    """

    responsible_id: Optional[int] = Field(
        default=None,
        description="Responsible party this share belongs to"
    )
    percentage: Optional[Decimal] = Field(
        default=None,
        description="Share of the amount, 0 < p <= 100"
    )
    notes: Optional[str] = Field(
        default=None,
        max_length=500
    )
    calculated_amount: Optional[Decimal] = Field(
        default=None,
        description="Informational only; always recomputed"
    )


class Responsibility(ApiModel):
    """A party's share of a transaction, as persisted."""

    responsible_id: int
    percentage: Decimal = Field(..., gt=0, le=100)
    calculated_amount: Decimal
    notes: Optional[str] = Field(default=None, max_length=500)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionRequest(ApiModel):
    """Body of POST /transactions and PUT /transactions/{id}."""

    type: TransactionType
    subtype: TransactionSubtype = TransactionSubtype.VARIABLE
    source: TransactionSource
    description: str = Field(
        ...,
        min_length=1,
        max_length=255
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        max_digits=19,
        decimal_places=2,
        description="Transaction amount"
    )
    transaction_date: date = Field(
        default_factory=date.today,
        alias="date"
    )
    category_id: int
    subcategory_id: Optional[int] = None
    source_entity_id: Optional[int] = None
    installments: Optional[int] = Field(
        default=None,
        ge=1,
        le=480,
        description="Number of installments, if the purchase was split"
    )
    responsibilities: list[ResponsibilityInput] = Field(default_factory=list)


class TransactionReconciliationRequest(ApiModel):
    """Body of PUT /transactions/{id}/reconcile."""

    reconciled_amount: Decimal = Field(
        ...,
        ge=0,
        max_digits=19,
        decimal_places=2,
        description="Amount that actually left or reached the account"
    )
    reconciliation_date: date = Field(default_factory=date.today)
    reconciled: bool = True
    reconciliation_notes: Optional[str] = Field(default=None, max_length=1000)
    bank_reference: Optional[str] = Field(default=None, max_length=100)
    external_reference: Optional[str] = Field(default=None, max_length=100)


class Transaction(ApiModel):
    """A stored income or expense."""

    id: Optional[int] = None
    user_id: int

    type: TransactionType
    subtype: TransactionSubtype
    source: TransactionSource
    description: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=19, decimal_places=2)
    transaction_date: date = Field(..., alias="date")

    category_id: int
    subcategory_id: Optional[int] = None
    source_entity_id: Optional[int] = None
    installments: Optional[int] = Field(default=None, ge=1)
    installment_number: Optional[int] = Field(default=None, ge=1)

    responsibilities: list[Responsibility] = Field(..., min_length=1)

    reconciled: bool = False
    reconciled_amount: Optional[Decimal] = None
    reconciliation_date: Optional[date] = None
    reconciliation_notes: Optional[str] = Field(default=None, max_length=1000)
    bank_reference: Optional[str] = Field(default=None, max_length=100)
    external_reference: Optional[str] = Field(default=None, max_length=100)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_allocation(self) -> 'Transaction':
        """Calculated amounts must add up to the amount exactly."""
        allocated = sum(
            (r.calculated_amount for r in self.responsibilities),
            Decimal("0"),
        )
        if allocated != self.amount:
            raise ValueError(
                f"Responsibility amounts ({allocated}) do not add up to "
                f"the transaction amount ({self.amount})"
            )
        return self

    @property
    def signed_amount(self) -> Decimal:
        """Amount with expenses negative."""
        return self.amount if self.type == TransactionType.INCOME else -self.amount

    @property
    def month(self) -> str:
        """Month bucket as YYYY-MM."""
        return self.transaction_date.strftime("%Y-%m")

    @property
    def reconciliation_difference(self) -> Optional[Decimal]:
        """Reconciled minus booked amount, once reconciled."""
        if self.reconciled_amount is None:
            return None
        return self.reconciled_amount - self.amount
