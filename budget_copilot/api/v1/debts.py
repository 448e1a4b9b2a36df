"""GET /v1/debts/strategies - avalanche and snowball payoff orderings"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from budget_copilot.api.dependencies import get_clock, get_policy, get_request_id, get_snapshot_reader
from budget_copilot.api.v1.schemas import DebtProjectionSchema, DebtStrategiesResponse
from budget_copilot.domain.debts import danger_band, days_saved_by_extra, payoff_strategies, project_debt
from budget_copilot.domain.exceptions import MalformedEntityError
from budget_copilot.domain.policy import EnginePolicy
from budget_copilot.infrastructure.database.repositories import SqlSnapshotReader
from budget_copilot.infrastructure.observability.metrics import excluded_entity_counter
from budget_copilot.utils.clock import Clock

router = APIRouter()


def _step(order: int, projection, days_saved: Optional[int]) -> DebtProjectionSchema:
    return DebtProjectionSchema(
        order=order,
        debt_id=projection.debt_id,
        name=projection.name,
        balance_cents=projection.current_balance_cents,
        apr_percent=projection.apr_percent,
        minimum_payment_cents=projection.minimum_payment_cents,
        payoff_date=projection.payoff_date,
        months_to_payoff=projection.months_to_payoff,
        total_projected_interest_cents=projection.total_projected_interest_cents,
        danger_score=projection.danger_score,
        danger_band=danger_band(projection.danger_score),
        negative_amortization=projection.negative_amortization,
        days_saved_by_extra=days_saved,
    )


@router.get("/debts/strategies", response_model=DebtStrategiesResponse)
def get_debt_strategies(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    extra_payment_cents: int = Query(0, ge=0, description="Extra monthly amount to test against each debt"),
    reader: SqlSnapshotReader = Depends(get_snapshot_reader),
    clock: Clock = Depends(get_clock),
    policy: EnginePolicy = Depends(get_policy),
):
    """
    Project every active debt and order them for payoff.

    Malformed debts are left out, as in a decision computation.
    """
    today = clock.now().date()
    snapshot = reader.read(user_id, today, policy.runway.lookback_days)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="No financial data for user")

    projections = []
    days_saved: Dict[str, Optional[int]] = {}
    for debt in snapshot.debts:
        try:
            projections.append(project_debt(debt, today, policy=policy.debt))
        except MalformedEntityError as e:
            excluded_entity_counter.labels(kind=e.kind).inc()
            logging.warning(f"Debt excluded: {e}", extra={"request_id": get_request_id(request)})
            continue
        if extra_payment_cents > 0:
            days_saved[debt.debt_id] = days_saved_by_extra(debt, extra_payment_cents, today, policy.debt)

    strategies = payoff_strategies(projections)
    return DebtStrategiesResponse(
        user_id=user_id,
        total_debt_cents=strategies.total_debt_cents,
        total_minimum_payment_cents=strategies.total_minimum_payment_cents,
        total_projected_interest_cents=strategies.total_projected_interest_cents,
        extra_payment_cents=extra_payment_cents,
        avalanche=[_step(s.order, s.projection, days_saved.get(s.projection.debt_id)) for s in strategies.avalanche],
        snowball=[_step(s.order, s.projection, days_saved.get(s.projection.debt_id)) for s in strategies.snowball],
    )
