"""
Goal Service

Goals change only through explicit operations: full update, adding progress,
completing and reactivating. Adding progress that reaches the target
completes the goal. Completion details (date, notes) live only as long as
the goal stays COMPLETED; reactivating clears them.
"""

from decimal import Decimal
from typing import Optional

from finance_control.audit.logger import AuditLogger
from finance_control.errors import ErrorReason, ValidationError
from finance_control.models.audit import AuditEventType
from finance_control.models.common import utc_now
from finance_control.models.goal import (
    FinancialGoal,
    GoalCompletionRequest,
    GoalRequest,
    GoalStatus,
)
from finance_control.services.common import ensure_unique_name, get_owned
from finance_control.services.storage.interface import EntityStorageInterface


ENTITY = "goal"


class GoalService:
    def __init__(
        self,
        goals: EntityStorageInterface[FinancialGoal],
        audit: Optional[AuditLogger] = None,
    ):
        self.goals = goals
        self.audit = audit or AuditLogger()

    async def get(self, owner_id: int, goal_id: int) -> FinancialGoal:
        return await get_owned(self.goals, owner_id, goal_id, "FinancialGoal")

    async def create(self, owner_id: int, request: GoalRequest) -> FinancialGoal:
        await ensure_unique_name(self.goals, owner_id, request.name, "FinancialGoal")
        goal = FinancialGoal(user_id=owner_id, **request.model_dump())
        if goal.target_reached:
            goal.mark_completed()

        goal = await self.goals.create(goal)
        await self.audit.log_entity_written(AuditEventType.GOAL_CREATED, ENTITY, goal.id, owner_id)
        return goal

    async def update(self, owner_id: int, goal_id: int, request: GoalRequest) -> FinancialGoal:
        """
        Replace the goal's editable fields.

        An edit that touches the current or target amount re-derives the
        status from them: reaching the target completes the goal, falling
        short of it reopens a completed one. Other edits keep the status.
        """
        existing = await self.get(owner_id, goal_id)
        await ensure_unique_name(
            self.goals, owner_id, request.name, "FinancialGoal", exclude_id=goal_id
        )
        goal = existing.model_copy(update=request.model_dump())
        amounts_changed = (
            goal.current_amount != existing.current_amount
            or goal.target_amount != existing.target_amount
        )
        if goal.target_reached:
            goal.mark_completed()
        elif amounts_changed and goal.status == GoalStatus.COMPLETED:
            goal.mark_active()
        goal.updated_at = utc_now()

        goal = await self.goals.update(goal)
        await self.audit.log_entity_written(
            AuditEventType.GOAL_UPDATED,
            ENTITY,
            goal.id,
            owner_id,
            details={"status": goal.status.value},
        )
        return goal

    async def delete(self, owner_id: int, goal_id: int) -> None:
        await self.get(owner_id, goal_id)
        await self.goals.delete(goal_id)
        await self.audit.log_entity_written(AuditEventType.GOAL_DELETED, ENTITY, goal_id, owner_id)

    async def update_progress(self, owner_id: int, goal_id: int, amount: Decimal) -> FinancialGoal:
        """Add `amount` to the current amount, completing the goal at its target."""
        if amount is None or amount <= 0:
            raise ValidationError.for_field(
                "amount",
                "Progress amount must be greater than zero",
                rejected_value=amount,
                reason=ErrorReason.INVALID_PARAMETER,
            )

        goal = await self.get(owner_id, goal_id)
        goal.current_amount += amount
        if goal.target_reached:
            goal.mark_completed()

        goal = await self.goals.update(goal)
        await self.audit.log_entity_written(
            AuditEventType.GOAL_PROGRESS_UPDATED,
            ENTITY,
            goal.id,
            owner_id,
            details={"added": str(amount), "current_amount": str(goal.current_amount)},
        )
        return goal

    async def complete(
        self,
        owner_id: int,
        goal_id: int,
        request: Optional[GoalCompletionRequest] = None,
    ) -> FinancialGoal:
        """
        Mark the goal completed, whether or not it reached its target.

        A final amount, when given, replaces the current amount. The
        completion date defaults to today.
        """
        request = request or GoalCompletionRequest()
        goal = await self.get(owner_id, goal_id)
        previous = goal.status

        if request.final_amount is not None:
            goal.current_amount = request.final_amount
        goal.mark_completed(on=request.completion_date, notes=request.notes)
        return await self._save_status(owner_id, goal, previous)

    async def reactivate(self, owner_id: int, goal_id: int) -> FinancialGoal:
        """Reopen the goal and forget how it was completed."""
        goal = await self.get(owner_id, goal_id)
        previous = goal.status
        goal.mark_active()
        return await self._save_status(owner_id, goal, previous)

    async def _save_status(
        self,
        owner_id: int,
        goal: FinancialGoal,
        previous: GoalStatus,
    ) -> FinancialGoal:
        goal.updated_at = utc_now()
        goal = await self.goals.update(goal)

        details = {"from": previous.value, "to": goal.status.value}
        if goal.completion_date is not None:
            details["completion_date"] = goal.completion_date.isoformat()
        await self.audit.log_entity_written(
            AuditEventType.GOAL_STATUS_CHANGED, ENTITY, goal.id, owner_id, details=details
        )
        return goal
