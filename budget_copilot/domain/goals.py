"""Goal progress - percent complete, on-track flag, projected completion and monthly target"""

import math
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Optional

from budget_copilot.domain.exceptions import InactiveGoalError, MalformedEntityError
from budget_copilot.domain.models import Goal, GoalProgress
from budget_copilot.domain.policy import DEFAULT_POLICY

DAYS_PER_MONTH = 30


def compute_goal_progress(
    goal: Goal,
    today: date,
    contribution_cents: int = 0,
    tolerance: float = DEFAULT_POLICY.goal_on_track_tolerance,
) -> GoalProgress:
    """
    Progress for a goal, optionally as if ``contribution_cents`` were added.

    Requirements:
    - progress = min(current / target, 1) * 100
    - no target date: on track, nothing projected
    - with a target date: on track when progress >= expected progress * tolerance,
      where expected progress is the elapsed share of the goal's duration
    - projected completion extrapolates the average daily contribution since
      the start date (days elapsed floored at 1); zero rate projects nothing
    - recommended monthly = ceil(remaining / max(months remaining, 1))

    Raises:
        MalformedEntityError: target amount is not positive, or current amount is negative
    """
    if goal.target_amount_cents is None or goal.target_amount_cents <= 0:
        raise MalformedEntityError("goal", goal.goal_id, f"invalid target {goal.target_amount_cents!r}")
    if goal.current_amount_cents is None or goal.current_amount_cents < 0:
        raise MalformedEntityError("goal", goal.goal_id, f"invalid current amount {goal.current_amount_cents!r}")

    current = goal.current_amount_cents + contribution_cents
    target = goal.target_amount_cents
    progress_percent = min(current / target, 1.0) * 100

    if goal.target_date is None:
        return GoalProgress(
            progress_percent=progress_percent,
            on_track=True,
            projected_completion_date=None,
            recommended_monthly_contribution_cents=0,
        )

    total_days = (goal.target_date - goal.start_date).days
    elapsed_days = (today - goal.start_date).days
    if total_days > 0:
        expected_progress = min(max(elapsed_days / total_days, 0.0), 1.0) * 100
    else:
        expected_progress = 100.0
    on_track = progress_percent >= expected_progress * tolerance

    remaining = max(0, target - current)
    daily_rate = current / max(elapsed_days, 1)
    projected: Optional[date] = None
    if daily_rate > 0:
        projected = today + timedelta(days=math.ceil(remaining / daily_rate))

    months_remaining = max((goal.target_date - today).days / DAYS_PER_MONTH, 1)
    recommended = math.ceil(remaining / months_remaining)

    return GoalProgress(
        progress_percent=progress_percent,
        on_track=on_track,
        projected_completion_date=projected,
        recommended_monthly_contribution_cents=recommended,
    )


def apply_contribution(goal: Goal, amount_cents: int, now: datetime) -> Goal:
    """
    Add a contribution and refresh the goal's derived progress.

    Reaching the target marks the goal completed.

    Raises:
        InactiveGoalError: goal is not active
        MalformedEntityError: amount is not a positive integer
    """
    if goal.status != "active":
        raise InactiveGoalError(f"Goal {goal.goal_id} is {goal.status}")
    if not isinstance(amount_cents, int) or isinstance(amount_cents, bool) or amount_cents <= 0:
        raise MalformedEntityError("contribution", goal.goal_id, f"invalid amount {amount_cents!r}")

    updated = replace(goal, current_amount_cents=goal.current_amount_cents + amount_cents)
    updated.progress = compute_goal_progress(updated, now.date())
    if updated.current_amount_cents >= updated.target_amount_cents:
        updated.status = "completed"
        updated.completed_at = now
    return updated
