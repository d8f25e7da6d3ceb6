"""Goal metadata aggregators."""

from decimal import ROUND_HALF_UP, Decimal

from finance_control.models.common import ApiModel
from finance_control.models.goal import FinancialGoal, GoalStatus, GoalType


ZERO = Decimal("0.00")


class GoalStatusSummary(ApiModel):
    total_goals: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    total_target_amount: Decimal = ZERO
    total_current_amount: Decimal = ZERO
    overall_progress: Decimal = ZERO


def distinct_types(goals: list[FinancialGoal]) -> list[GoalType]:
    return sorted({g.goal_type for g in goals}, key=lambda v: v.value)


def count(goals: list[FinancialGoal]) -> int:
    return len(goals)


def status_summary(goals: list[FinancialGoal]) -> GoalStatusSummary:
    target = sum((g.target_amount for g in goals), ZERO)
    current = sum((g.current_amount for g in goals), ZERO)
    progress = ZERO
    if target:
        progress = (current / target * 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    return GoalStatusSummary(
        total_goals=len(goals),
        active_goals=sum(1 for g in goals if g.status == GoalStatus.ACTIVE),
        completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED),
        total_target_amount=target,
        total_current_amount=current,
        overall_progress=progress,
    )


def active(goals: list[FinancialGoal]) -> list[FinancialGoal]:
    """Active goals, nearest deadline first; goals without a deadline last."""
    selected = [g for g in goals if g.status == GoalStatus.ACTIVE]
    return sorted(selected, key=lambda g: (g.deadline is None, g.deadline or 0, g.id))


def completed(goals: list[FinancialGoal]) -> list[FinancialGoal]:
    return [g for g in goals if g.status == GoalStatus.COMPLETED]
