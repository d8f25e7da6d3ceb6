"""
Responsibility Allocator

Splits a transaction amount across responsible parties by percentage.

Validation order:
1. The list must not be empty (MISSING_RESPONSIBILITY)
2. Every entry needs a responsible party and a percentage in (0, 100]
   (all offending entries are reported together)
3. Percentages must add up to 100 within the configured tolerance
   (PERCENTAGE_MISMATCH, reporting the actual total)

Computation:
- calculated = amount * percentage / 100, rounded HALF_UP to currency places
- Rounding can leave the total off by a few minimal units. The entry with the
  largest percentage (the first one on ties) absorbs the signed residual, so
  the calculated amounts always add up to the amount exactly.

DESIGN DECISION: Only Decimal arithmetic is used. A float never touches a
percentage or an amount.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Sequence

from finance_control.config.settings import AllocationSettings
from finance_control.errors import ErrorReason, FieldError, ValidationError
from finance_control.models.transaction import Responsibility, ResponsibilityInput


HUNDRED = Decimal("100")


class ResponsibilityAllocator:
    """Validates responsibility inputs and computes their amounts."""

    def __init__(self, settings: AllocationSettings):
        self.tolerance = settings.percentage_tolerance
        self.quantum = settings.quantum

    def validate(self, inputs: Sequence[ResponsibilityInput]) -> Decimal:
        """
        Check the inputs and return the percentage total.

        Raises:
            ValidationError: with the reason of the first failing rule
        """
        if not inputs:
            raise ValidationError.for_field(
                "responsibilities",
                "At least one responsibility is required",
                rejected_value=[],
                reason=ErrorReason.MISSING_RESPONSIBILITY,
            )

        field_errors: list[FieldError] = []
        reason = None
        for index, entry in enumerate(inputs):
            if entry.responsible_id is None:
                field_errors.append(FieldError(
                    field=f"responsibilities[{index}].responsibleId",
                    message="Responsible party is required",
                ))
                reason = reason or ErrorReason.MISSING_RESPONSIBLE

            percentage = entry.percentage
            if percentage is None or percentage <= 0 or percentage > HUNDRED:
                field_errors.append(FieldError(
                    field=f"responsibilities[{index}].percentage",
                    message="Percentage must be greater than 0 and at most 100",
                    rejected_value=percentage,
                ))
                reason = reason or ErrorReason.INVALID_PERCENTAGE

        if field_errors:
            raise ValidationError(
                "Invalid responsibility entries",
                reason=reason,
                field_errors=field_errors,
            )

        total = sum((entry.percentage for entry in inputs), Decimal("0"))
        if abs(total - HUNDRED) > self.tolerance:
            raise ValidationError.for_field(
                "responsibilities",
                f"Responsibility percentages must add up to 100, got {total}",
                rejected_value=total,
                reason=ErrorReason.PERCENTAGE_MISMATCH,
            )
        return total

    def share(self, amount: Decimal, percentage: Decimal) -> Decimal:
        """amount * percentage / 100, rounded half-up."""
        return (amount * percentage / HUNDRED).quantize(self.quantum, rounding=ROUND_HALF_UP)

    def split_evenly(self, amount: Decimal, parts: int) -> list[Decimal]:
        """
        Split `amount` into `parts` shares of the same size, rounded down to
        currency places. The first share takes the remainder.
        """
        base = (amount / parts).quantize(self.quantum, rounding=ROUND_DOWN)
        shares = [base] * parts
        shares[0] += amount - base * parts
        return shares

    def allocate(
        self,
        amount: Decimal,
        inputs: Sequence[ResponsibilityInput],
    ) -> list[Responsibility]:
        """
        Validate and compute the full responsibility list.

        Any `calculated_amount` present on the inputs is ignored.
        """
        self.validate(inputs)

        amounts = [self.share(amount, entry.percentage) for entry in inputs]

        residual = amount - sum(amounts, Decimal("0"))
        if residual:
            # max() keeps the first of equal percentages
            absorber = max(range(len(inputs)), key=lambda i: inputs[i].percentage)
            amounts[absorber] += residual

        return [
            Responsibility(
                responsible_id=entry.responsible_id,
                percentage=entry.percentage,
                calculated_amount=calculated,
                notes=entry.notes,
            )
            for entry, calculated in zip(inputs, amounts)
        ]
