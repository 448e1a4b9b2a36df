"""Pydantic schemas for API request/response validation"""

import datetime as dt
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from budget_copilot.domain.models import Decision, Goal, GoalProgress


class ComputeRequest(BaseModel):
    """Request body for POST /v1/decision/compute"""

    user_id: str = Field(..., min_length=1, description="User identifier")


class AcknowledgeRequest(BaseModel):
    user_id: str = Field(..., min_length=1, description="Owner of the decision")


class PrimaryCommandSchema(BaseModel):
    type: str
    text: str
    amount_cents: Optional[int] = None
    target: Optional[str] = None
    date: Optional[dt.date] = None


class NextActionSchema(BaseModel):
    text: str
    reference: str


class DecisionResponse(BaseModel):
    """A decision as shown to its owner; the basis trace is never exposed"""

    decision_id: str
    user_id: str
    risk_level: str
    status: str
    primary_command: PrimaryCommandSchema
    warnings: List[str]
    next_action: NextActionSchema
    computed_at: datetime
    expires_at: datetime
    is_locked: bool
    acknowledged_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, decision: Decision, now: datetime) -> "DecisionResponse":
        command = decision.primary_command
        return cls(
            decision_id=decision.decision_id,
            user_id=decision.user_id,
            risk_level=decision.risk_level.value,
            status=decision.status(now).value,
            primary_command=PrimaryCommandSchema(
                type=command.type.value,
                text=command.text,
                amount_cents=command.amount_cents,
                target=command.target,
                date=command.date,
            ),
            warnings=list(decision.warnings),
            next_action=NextActionSchema(text=decision.next_action.text, reference=decision.next_action.reference),
            computed_at=decision.computed_at,
            expires_at=decision.expires_at,
            is_locked=decision.is_locked,
            acknowledged_at=decision.acknowledged_at,
        )


class CurrentDecisionResponse(BaseModel):
    """Response for GET /v1/decision; ``decision`` is null when nothing is current"""

    user_id: str
    decision: Optional[DecisionResponse] = None


class AcknowledgeResponse(BaseModel):
    outcome: str  # acknowledged | already_acknowledged | superseded
    decision: DecisionResponse


class HistoryItem(BaseModel):
    """Single decision in history"""

    decision_id: str
    risk_level: str
    command_type: str
    command_text: str
    status: str
    computed_at: datetime
    acknowledged_at: Optional[datetime] = None


class HistoryResponse(BaseModel):
    """Response for GET /v1/decision/history"""

    user_id: str
    decisions: List[HistoryItem]


class RecomputeRequest(BaseModel):
    """Change set reported by an upstream collaborator"""

    user_id: str = Field(..., min_length=1)
    new_transactions: List[Dict[str, Any]] = Field(default_factory=list)
    transaction_updates: List[Dict[str, Any]] = Field(default_factory=list)
    transaction_deletions: List[str] = Field(default_factory=list)
    income_change: Optional[Dict[str, Any]] = None
    debt_changes: List[Dict[str, Any]] = Field(default_factory=list)
    bill_changes: List[Dict[str, Any]] = Field(default_factory=list)
    file_import: Optional[Dict[str, Any]] = None


class RecomputeResponse(BaseModel):
    recompute: bool
    changed_categories: List[str]
    decision: Optional[DecisionResponse] = None


class DebtProjectionSchema(BaseModel):
    order: int
    debt_id: str
    name: str
    balance_cents: int
    apr_percent: float
    minimum_payment_cents: int
    payoff_date: Optional[date] = None
    months_to_payoff: Optional[int] = None
    total_projected_interest_cents: int
    danger_score: int
    danger_band: str
    negative_amortization: bool
    days_saved_by_extra: Optional[int] = None


class DebtStrategiesResponse(BaseModel):
    user_id: str
    total_debt_cents: int
    total_minimum_payment_cents: int
    total_projected_interest_cents: int
    extra_payment_cents: int
    avalanche: List[DebtProjectionSchema]
    snowball: List[DebtProjectionSchema]


class ContributionRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Contribution in cents")


class GoalProgressResponse(BaseModel):
    goal_id: str
    name: str
    status: str
    target_amount_cents: int
    current_amount_cents: int
    progress_percent: float
    on_track: bool
    projected_completion_date: Optional[date] = None
    recommended_monthly_contribution_cents: int

    @classmethod
    def from_domain(cls, goal: Goal, progress: GoalProgress) -> "GoalProgressResponse":
        return cls(
            goal_id=goal.goal_id,
            name=goal.name,
            status=goal.status,
            target_amount_cents=goal.target_amount_cents,
            current_amount_cents=goal.current_amount_cents,
            progress_percent=progress.progress_percent,
            on_track=progress.on_track,
            projected_completion_date=progress.projected_completion_date,
            recommended_monthly_contribution_cents=progress.recommended_monthly_contribution_cents,
        )
