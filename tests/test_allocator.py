"""
Tests for the responsibility allocator.

The calculated amounts must always add up to the transaction amount exactly,
and every rejection must name its reason.
"""

from decimal import Decimal

import pytest

from finance_control.allocation.allocator import ResponsibilityAllocator
from finance_control.config.settings import AllocationSettings
from finance_control.errors import ErrorCode, ErrorReason, ValidationError
from finance_control.models.transaction import ResponsibilityInput


@pytest.fixture
def allocator():
    return ResponsibilityAllocator(AllocationSettings(percentage_tolerance="0.01", currency_places=2))


def entries(*percentages, start_id: int = 1) -> list[ResponsibilityInput]:
    return [
        ResponsibilityInput(responsible_id=start_id + i, percentage=Decimal(p))
        for i, p in enumerate(percentages)
    ]


def amounts(result) -> list[Decimal]:
    return [r.calculated_amount for r in result]


class TestAllocationScenarios:
    """Documented allocation scenarios."""

    def test_sixty_forty(self, allocator):
        """Test 1000.00 split 60/40."""
        result = allocator.allocate(Decimal("1000.00"), entries("60", "40"))
        assert amounts(result) == [Decimal("600.00"), Decimal("400.00")]
        assert sum(amounts(result)) == Decimal("1000.00")

    def test_thirds_with_explicit_remainder(self, allocator):
        """Test 100.00 split 33.33/33.33/33.34."""
        result = allocator.allocate(Decimal("100.00"), entries("33.33", "33.33", "33.34"))
        assert amounts(result) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(amounts(result)) == Decimal("100.00")

    def test_single_party_takes_everything(self, allocator):
        """Test that 100% always yields the amount itself."""
        for amount in ("0.01", "19.99", "1234567.89"):
            result = allocator.allocate(Decimal(amount), entries("100"))
            assert amounts(result) == [Decimal(amount)]

    def test_request_calculated_amount_is_ignored(self, allocator):
        """Test that a client-supplied calculated amount is recomputed."""
        inputs = [
            ResponsibilityInput(
                responsible_id=1,
                percentage=Decimal("100"),
                calculated_amount=Decimal("1.00"),
                notes="mine",
            )
        ]
        result = allocator.allocate(Decimal("50.00"), inputs)
        assert result[0].calculated_amount == Decimal("50.00")
        assert result[0].notes == "mine"


class TestResidualCorrection:
    """Rounding residue is absorbed by exactly one entry."""

    def test_equal_thirds_of_ten(self, allocator):
        """Test 10.00 split in three equal (within tolerance) parts."""
        result = allocator.allocate(Decimal("10.00"), entries("33.33", "33.33", "33.33"))
        # 3.333 -> 3.33 each, residual +0.01 goes to the first of the tied entries
        assert amounts(result) == [Decimal("3.34"), Decimal("3.33"), Decimal("3.33")]
        assert sum(amounts(result)) == Decimal("10.00")

    def test_largest_percentage_absorbs(self, allocator):
        """Test that the largest share takes the residue, not the first one."""
        result = allocator.allocate(Decimal("0.05"), entries("25", "50", "25"))
        # 0.0125 -> 0.01, 0.025 -> 0.03, 0.0125 -> 0.01 => 0.05, no residue
        assert sum(amounts(result)) == Decimal("0.05")

        result = allocator.allocate(Decimal("0.10"), entries("33.33", "33.34", "33.33"))
        # 0.033333 -> 0.03, 0.03334 -> 0.03, 0.03333 -> 0.03 => residue +0.01
        assert amounts(result) == [Decimal("0.03"), Decimal("0.04"), Decimal("0.03")]

    def test_negative_residual(self, allocator):
        """Test that a sum rounding above the amount is corrected downwards."""
        result = allocator.allocate(Decimal("0.03"), entries("50", "50"))
        # 0.015 -> 0.02 twice => 0.04, residue -0.01 on the first entry
        assert amounts(result) == [Decimal("0.01"), Decimal("0.02")]

    def test_half_up_rounding(self, allocator):
        """Test that halves round away from zero."""
        assert allocator.share(Decimal("0.05"), Decimal("50")) == Decimal("0.03")
        assert allocator.share(Decimal("0.01"), Decimal("50")) == Decimal("0.01")

    @pytest.mark.parametrize("amount", ["0.01", "0.07", "1.00", "99.99", "1000.01"])
    def test_sum_always_matches(self, allocator, amount):
        """Test the exact-sum invariant over awkward splits."""
        result = allocator.allocate(Decimal(amount), entries("14.29", "14.29", "14.28", "57.14"))
        assert sum(amounts(result)) == Decimal(amount)


class TestAllocationRejections:
    """Every invalid list is rejected with a reason before any write."""

    def test_empty_list(self, allocator):
        """Test MISSING_RESPONSIBILITY."""
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), [])
        assert exc.value.code == ErrorCode.VALIDATION_ERROR
        assert exc.value.reason == ErrorReason.MISSING_RESPONSIBILITY

    def test_percentage_sum_mismatch(self, allocator):
        """Test PERCENTAGE_MISMATCH reports the actual total."""
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), entries("60", "30"))
        assert exc.value.reason == ErrorReason.PERCENTAGE_MISMATCH
        assert "90" in exc.value.message
        assert exc.value.field_errors[0].rejected_value == Decimal("90")

    def test_tolerance_boundary(self, allocator):
        """Test that 0.01 off is accepted and 0.02 off is not."""
        assert allocator.allocate(Decimal("10.00"), entries("60", "39.99"))
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), entries("60", "39.98"))
        assert exc.value.reason == ErrorReason.PERCENTAGE_MISMATCH

    @pytest.mark.parametrize("bad", ["0", "-5", "100.01"])
    def test_percentage_out_of_range(self, allocator, bad):
        """Test INVALID_PERCENTAGE with the offending position."""
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), entries("50", bad))
        assert exc.value.reason == ErrorReason.INVALID_PERCENTAGE
        assert exc.value.field_errors[0].field == "responsibilities[1].percentage"

    def test_missing_responsible(self, allocator):
        """Test MISSING_RESPONSIBLE for a null party reference."""
        inputs = [ResponsibilityInput(responsible_id=None, percentage=Decimal("100"))]
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), inputs)
        assert exc.value.reason == ErrorReason.MISSING_RESPONSIBLE
        assert exc.value.field_errors[0].field == "responsibilities[0].responsibleId"

    def test_all_entry_errors_reported_together(self, allocator):
        """Test that every bad entry shows up in the field errors."""
        inputs = [
            ResponsibilityInput(responsible_id=None, percentage=Decimal("50")),
            ResponsibilityInput(responsible_id=2, percentage=None),
        ]
        with pytest.raises(ValidationError) as exc:
            allocator.allocate(Decimal("10.00"), inputs)
        fields = [fe.field for fe in exc.value.field_errors]
        assert fields == ["responsibilities[0].responsibleId", "responsibilities[1].percentage"]


class TestEvenSplit:
    """Installment amounts."""

    def test_exact_split(self, allocator):
        assert allocator.split_evenly(Decimal("300.00"), 3) == [Decimal("100.00")] * 3

    def test_first_share_takes_the_remainder(self, allocator):
        """Test that the shares add up to the amount to the cent."""
        shares = allocator.split_evenly(Decimal("100.00"), 3)
        assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
        assert sum(shares) == Decimal("100.00")
