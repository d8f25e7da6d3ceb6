"""
Financial Goal Models

Goals have a lifecycle independent from transactions. Their progress only
changes through explicit operations (full update, add an amount, complete,
reactivate). Completing a goal may record how it ended: the final amount,
the completion date and free-form notes.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from finance_control.models.common import ApiModel, utc_now


class GoalType(str, Enum):
    """What the goal is saving towards."""
    SAVINGS = "SAVINGS"
    INVESTMENT = "INVESTMENT"
    DEBT_PAYOFF = "DEBT_PAYOFF"


class GoalStatus(str, Enum):
    """Goal status. A goal becomes COMPLETED when it reaches its target."""
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class GoalRequest(ApiModel):
    """Body of POST /goals and PUT /goals/{id}."""

    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=1000)
    goal_type: GoalType
    target_amount: Decimal = Field(..., gt=0, max_digits=19, decimal_places=2)
    current_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        max_digits=19,
        decimal_places=2
    )
    deadline: Optional[date] = None
    priority: int = Field(
        default=3,
        ge=1,
        le=5,
        description="1 = highest priority"
    )


class GoalCompletionRequest(ApiModel):
    """Optional body of POST /goals/{id}/complete."""

    final_amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        max_digits=19,
        decimal_places=2,
        description="Replaces the current amount when given"
    )
    completion_date: Optional[date] = Field(default=None, description="Defaults to today")
    notes: Optional[str] = Field(default=None, max_length=1000)


class FinancialGoal(ApiModel):
    """A stored financial goal."""

    id: Optional[int] = None
    user_id: int

    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = None
    goal_type: GoalType
    target_amount: Decimal = Field(..., gt=0)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE
    priority: int = Field(default=3, ge=1, le=5)
    completion_date: Optional[date] = None
    completion_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @computed_field
    @property
    def progress_percentage(self) -> Decimal:
        """Progress towards the target, in percent with two places."""
        if self.target_amount == 0:
            return Decimal("0.00")
        ratio = (self.current_amount / self.target_amount) * 100
        return ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @computed_field
    @property
    def remaining_amount(self) -> Decimal:
        """Amount still missing; zero once the target is reached."""
        return max(self.target_amount - self.current_amount, Decimal("0"))

    @property
    def target_reached(self) -> bool:
        return self.current_amount >= self.target_amount

    def mark_completed(self, on: Optional[date] = None, notes: Optional[str] = None) -> None:
        self.status = GoalStatus.COMPLETED
        self.completion_date = on or self.completion_date or date.today()
        if notes is not None:
            self.completion_notes = notes

    def mark_active(self) -> None:
        self.status = GoalStatus.ACTIVE
        self.completion_date = None
        self.completion_notes = None
