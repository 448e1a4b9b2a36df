"""GET /v1/decision/history - Fetch user's decision history"""

from fastapi import APIRouter, Depends, Query

from budget_copilot.api.dependencies import get_clock, get_state_machine
from budget_copilot.api.v1.schemas import HistoryItem, HistoryResponse
from budget_copilot.domain.state_machine import DecisionStateMachine
from budget_copilot.utils.clock import Clock

router = APIRouter()


@router.get("/decision/history", response_model=HistoryResponse)
def get_decision_history(
    user_id: str = Query(..., description="User identifier"),
    limit: int = Query(20, ge=1, le=100),
    state_machine: DecisionStateMachine = Depends(get_state_machine),
    clock: Clock = Depends(get_clock),
):
    """
    Retrieve recent decisions for a user, newest first.

    Returns:
        Decisions with their lifecycle status as of now
    """
    now = clock.now()
    history_items = [
        HistoryItem(
            decision_id=d.decision_id,
            risk_level=d.risk_level.value,
            command_type=d.primary_command.type.value,
            command_text=d.primary_command.text,
            status=d.status(now).value,
            computed_at=d.computed_at,
            acknowledged_at=d.acknowledged_at,
        )
        for d in state_machine.history(user_id, limit=limit)
    ]

    return HistoryResponse(user_id=user_id, decisions=history_items)
