"""Decision endpoints - compute, read current, acknowledge"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from budget_copilot.api.dependencies import get_clock, get_request_id, get_state_machine
from budget_copilot.api.v1.schemas import (
    AcknowledgeRequest,
    AcknowledgeResponse,
    ComputeRequest,
    CurrentDecisionResponse,
    DecisionResponse,
)
from budget_copilot.domain.exceptions import (
    ConcurrentComputeConflictError,
    DecisionNotFoundError,
    InsufficientDataError,
)
from budget_copilot.domain.models import Decision
from budget_copilot.domain.state_machine import DecisionStateMachine
from budget_copilot.infrastructure.observability.logging import log_decision
from budget_copilot.infrastructure.observability.metrics import (
    acknowledgement_counter,
    compute_duration_histogram,
    lock_conflict_counter,
    record_decision,
)
from budget_copilot.utils.clock import Clock

router = APIRouter()

RETRY_AFTER_SECONDS = "1"


def run_compute(state_machine: DecisionStateMachine, user_id: str, request_id: str) -> Decision:
    """
    Compute a decision and translate engine failures to HTTP errors.

    Shared by the compute, get-or-compute and recompute endpoints.
    """
    start_time = time.time()
    try:
        decision = state_machine.compute(user_id)
    except ConcurrentComputeConflictError as e:
        lock_conflict_counter.inc()
        logging.warning(f"Compute conflict: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(
            status_code=409,
            detail="A decision is already being computed for this user",
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    except InsufficientDataError as e:
        logging.warning(f"Insufficient data: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=422, detail=str(e))

    duration = time.time() - start_time
    compute_duration_histogram.observe(duration)

    excluded = decision.basis.signals("excluded:")
    for entry in excluded:
        logging.warning(
            "Malformed entity excluded",
            extra={"request_id": request_id, "user_id": user_id, "signal": entry.signal, "reason": entry.value},
        )
    record_decision(
        decision.risk_level.value,
        decision.primary_command.type.value,
        [entry.signal.split(":")[1] for entry in excluded],
    )
    log_decision(
        user_id=user_id,
        decision_id=decision.decision_id,
        risk_level=decision.risk_level.value,
        command_type=decision.primary_command.type.value,
        excluded_count=len(excluded),
        duration_ms=duration * 1000,
        request_id=request_id,
    )
    return decision


@router.post("/decision/compute", response_model=DecisionResponse)
def compute_decision(
    request_body: ComputeRequest,
    request: Request,
    state_machine: DecisionStateMachine = Depends(get_state_machine),
    clock: Clock = Depends(get_clock),
):
    """
    Compute a fresh decision for the user.

    Flow:
    1. Take the user's compute lock
    2. Read the snapshot, project runway and debts, classify risk, pick the command
    3. Persist decision, runway audit row and debt projections together
    """
    decision = run_compute(state_machine, request_body.user_id, get_request_id(request))
    return DecisionResponse.from_domain(decision, clock.now())


@router.get("/decision", response_model=CurrentDecisionResponse)
def get_current_decision(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    compute_if_missing: bool = Query(False, description="Compute when no unexpired decision exists"),
    state_machine: DecisionStateMachine = Depends(get_state_machine),
    clock: Clock = Depends(get_clock),
):
    """Return the current decision, or null when none exists or it has expired"""
    decision = state_machine.get_current(user_id)
    if decision is None and compute_if_missing:
        decision = run_compute(state_machine, user_id, get_request_id(request))
    if decision is None:
        return CurrentDecisionResponse(user_id=user_id, decision=None)
    return CurrentDecisionResponse(user_id=user_id, decision=DecisionResponse.from_domain(decision, clock.now()))


@router.post("/decision/{decision_id}/acknowledge", response_model=AcknowledgeResponse)
def acknowledge_decision(
    decision_id: str,
    request_body: AcknowledgeRequest,
    request: Request,
    state_machine: DecisionStateMachine = Depends(get_state_machine),
    clock: Clock = Depends(get_clock),
):
    """
    Acknowledge a decision.

    Re-acknowledging, and acknowledging a superseded decision, both succeed;
    ``outcome`` says which case applied.
    """
    request_id = get_request_id(request)
    try:
        result = state_machine.acknowledge(decision_id, request_body.user_id)
    except DecisionNotFoundError as e:
        logging.info(f"Acknowledge rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail="Decision not found")

    acknowledgement_counter.labels(outcome=result.outcome.value).inc()
    logging.info(
        "Decision acknowledge",
        extra={
            "request_id": request_id,
            "user_id": request_body.user_id,
            "decision_id": decision_id,
            "outcome": result.outcome.value,
        },
    )
    return AcknowledgeResponse(
        outcome=result.outcome.value,
        decision=DecisionResponse.from_domain(result.decision, clock.now()),
    )
