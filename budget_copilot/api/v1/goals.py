"""Goal endpoints - progress and contributions"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from budget_copilot.api.dependencies import get_clock, get_goal_store, get_policy, get_request_id
from budget_copilot.api.v1.schemas import ContributionRequest, GoalProgressResponse
from budget_copilot.domain.exceptions import GoalNotFoundError, InactiveGoalError, MalformedEntityError
from budget_copilot.domain.goals import apply_contribution, compute_goal_progress
from budget_copilot.domain.models import Goal
from budget_copilot.domain.policy import EnginePolicy
from budget_copilot.infrastructure.database.repositories import SqlGoalStore
from budget_copilot.utils.clock import Clock

router = APIRouter()


def _owned_goal(store: SqlGoalStore, goal_id: str, user_id: str) -> Goal:
    goal = store.get(goal_id)
    if goal is None or goal.user_id != user_id:
        raise GoalNotFoundError(f"Goal {goal_id} not found")
    return goal


@router.get("/goals/{goal_id}/progress", response_model=GoalProgressResponse)
def get_goal_progress(
    goal_id: str,
    user_id: str = Query(..., min_length=1),
    contribution_cents: int = Query(0, ge=0, description="Preview the effect of a contribution"),
    store: SqlGoalStore = Depends(get_goal_store),
    clock: Clock = Depends(get_clock),
    policy: EnginePolicy = Depends(get_policy),
):
    try:
        goal = _owned_goal(store, goal_id, user_id)
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Goal not found")

    try:
        progress = compute_goal_progress(goal, clock.now().date(), contribution_cents, policy.goal_on_track_tolerance)
    except MalformedEntityError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return GoalProgressResponse.from_domain(goal, progress)


@router.post("/goals/{goal_id}/contribute", response_model=GoalProgressResponse)
def contribute_to_goal(
    goal_id: str,
    request_body: ContributionRequest,
    request: Request,
    store: SqlGoalStore = Depends(get_goal_store),
    clock: Clock = Depends(get_clock),
):
    """
    Add a contribution and persist the refreshed progress.

    Raises:
        404 if the goal is unknown or not the user's, 409 if it is not active
    """
    request_id = get_request_id(request)
    try:
        goal = _owned_goal(store, goal_id, request_body.user_id)
        updated = apply_contribution(goal, request_body.amount_cents, clock.now())
    except GoalNotFoundError:
        raise HTTPException(status_code=404, detail="Goal not found")
    except InactiveGoalError as e:
        logging.info(f"Contribution rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))
    except MalformedEntityError as e:
        raise HTTPException(status_code=422, detail=str(e))

    store.save(updated)
    logging.info(
        "Goal contribution",
        extra={
            "request_id": request_id,
            "goal_id": goal_id,
            "status": updated.status,
            "progress_percent": updated.progress.progress_percent,
        },
    )
    return GoalProgressResponse.from_domain(updated, updated.progress)
