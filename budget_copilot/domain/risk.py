"""Risk classification - ordinal decision table over runway, obligations and debt danger"""

from dataclasses import dataclass
from typing import Iterable, Optional

from budget_copilot.domain.models import DebtProjection, RiskLevel, RunwayProjection
from budget_copilot.domain.policy import DEFAULT_POLICY, RiskThresholds


@dataclass(frozen=True)
class RiskInputs:
    """
    Everything the risk table looks at.

    ``days_until_zero`` of None means cash never runs out inside the horizon.
    """

    days_until_zero: Optional[int]
    days_until_income: int
    cash_balance_cents: int
    upcoming_obligations_total_cents: int
    upcoming_obligations_count: int
    max_danger_score: int = 0
    negative_amortization: bool = False

    @classmethod
    def from_projections(cls, runway: RunwayProjection, debts: Iterable[DebtProjection]) -> "RiskInputs":
        debts = list(debts)
        return cls(
            days_until_zero=runway.days_until_zero,
            days_until_income=runway.days_until_income,
            cash_balance_cents=runway.current_balance_cents,
            upcoming_obligations_total_cents=runway.upcoming_bills_total_cents,
            upcoming_obligations_count=runway.upcoming_bills_count,
            max_danger_score=max((d.danger_score for d in debts), default=0),
            negative_amortization=any(d.negative_amortization for d in debts),
        )


def _runs_out_within(days_until_zero: Optional[int], days: int) -> bool:
    return days_until_zero is not None and days_until_zero <= days


def classify_risk(inputs: RiskInputs, thresholds: RiskThresholds = DEFAULT_POLICY.risk) -> RiskLevel:
    """
    Map inputs to one risk level. Rules are checked from most to least severe:

    - critical: cash gone within ``critical_days`` or any debt negatively amortizing
    - danger:   cash gone within ``danger_days`` or before the next income arrives
    - warning:  cash gone within ``warning_days`` or a debt at/above the high danger score
    - caution:  cash gone within ``caution_days`` or obligations above the
                configured share of the current balance
    - safe:     otherwise

    Every runway rule is of the form "days_until_zero <= k", so a shorter
    runway can never produce a lower level.
    """
    dtz = inputs.days_until_zero

    if _runs_out_within(dtz, thresholds.critical_days) or inputs.negative_amortization:
        return RiskLevel.CRITICAL

    if _runs_out_within(dtz, thresholds.danger_days) or _runs_out_within(dtz, inputs.days_until_income - 1):
        return RiskLevel.DANGER

    if _runs_out_within(dtz, thresholds.warning_days) or inputs.max_danger_score >= thresholds.high_danger_score:
        return RiskLevel.WARNING

    obligation_limit = inputs.cash_balance_cents * thresholds.caution_obligation_ratio
    if _runs_out_within(dtz, thresholds.caution_days) or (
        inputs.upcoming_obligations_count > 0 and inputs.upcoming_obligations_total_cents > obligation_limit
    ):
        return RiskLevel.CAUTION

    return RiskLevel.SAFE
