"""POST /v1/recompute - recompute a decision when upstream facts changed"""

import logging

from fastapi import APIRouter, Depends, Request

from budget_copilot.api.dependencies import get_clock, get_request_id, get_state_machine
from budget_copilot.api.v1.decision import run_compute
from budget_copilot.api.v1.schemas import DecisionResponse, RecomputeRequest, RecomputeResponse
from budget_copilot.domain.recompute import ProposedChanges, should_recompute
from budget_copilot.domain.state_machine import DecisionStateMachine
from budget_copilot.infrastructure.observability.metrics import record_recompute_check
from budget_copilot.utils.clock import Clock

router = APIRouter()


@router.post("/recompute", response_model=RecomputeResponse)
def recompute_decision(
    request_body: RecomputeRequest,
    request: Request,
    state_machine: DecisionStateMachine = Depends(get_state_machine),
    clock: Clock = Depends(get_clock),
):
    """
    Evaluate a confirmed change set and recompute the decision if any fact changed.

    The changes themselves are applied by the caller before this is invoked.
    """
    changes = ProposedChanges(
        new_transactions=tuple(request_body.new_transactions),
        transaction_updates=tuple(request_body.transaction_updates),
        transaction_deletions=tuple(request_body.transaction_deletions),
        income_change=request_body.income_change,
        debt_changes=tuple(request_body.debt_changes),
        bill_changes=tuple(request_body.bill_changes),
        file_import=request_body.file_import,
    )
    triggered = should_recompute(changes)
    record_recompute_check(triggered)

    request_id = get_request_id(request)
    logging.info(
        "Recompute check",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "triggered": triggered,
            "categories": list(changes.changed_categories()),
        },
    )

    response = RecomputeResponse(recompute=triggered, changed_categories=list(changes.changed_categories()))
    if triggered:
        decision = run_compute(state_machine, request_body.user_id, request_id)
        response.decision = DecisionResponse.from_domain(decision, clock.now())
    return response
