"""Debt payoff projection - payoff ("death") date, projected interest and danger score"""

import math
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple

from budget_copilot.domain.exceptions import MalformedEntityError
from budget_copilot.domain.models import Debt, DebtProjection
from budget_copilot.domain.policy import DEFAULT_POLICY, DebtPolicy
from budget_copilot.utils.date_utils import add_months, days_between

# Interest reported for a debt that never pays off covers this many months
NEGATIVE_AMORTIZATION_REPORT_MONTHS = 12


@dataclass(frozen=True)
class PayoffSchedule:
    months: Optional[int]
    total_interest_cents: int
    negative_amortization: bool = False
    exceeded_cap: bool = False


@dataclass(frozen=True)
class StrategyStep:
    order: int
    projection: DebtProjection


@dataclass(frozen=True)
class PayoffStrategies:
    avalanche: Tuple[StrategyStep, ...]
    snowball: Tuple[StrategyStep, ...]
    total_debt_cents: int
    total_minimum_payment_cents: int
    total_projected_interest_cents: int


def validate_debt(debt: Debt) -> None:
    """
    Raises:
        MalformedEntityError: balance not integer cents, APR outside 0-100,
            or negative / non-integer minimum payment
    """
    if not isinstance(debt.balance_cents, int) or isinstance(debt.balance_cents, bool):
        raise MalformedEntityError("debt", debt.debt_id, f"invalid balance {debt.balance_cents!r}")
    if not isinstance(debt.apr_percent, (int, float)) or isinstance(debt.apr_percent, bool):
        raise MalformedEntityError("debt", debt.debt_id, f"invalid APR {debt.apr_percent!r}")
    if math.isnan(debt.apr_percent) or not 0 <= debt.apr_percent <= 100:
        raise MalformedEntityError("debt", debt.debt_id, f"APR out of range {debt.apr_percent!r}")
    minimum = debt.minimum_payment_cents
    if minimum is not None and (not isinstance(minimum, int) or isinstance(minimum, bool) or minimum < 0):
        raise MalformedEntityError("debt", debt.debt_id, f"invalid minimum payment {minimum!r}")


def monthly_rate(apr_percent: float) -> Decimal:
    return Decimal(str(apr_percent)) / Decimal(100) / Decimal(12)


def monthly_interest_cents(balance_cents: int, apr_percent: float) -> int:
    """First month's interest, rounded up to whole cents"""
    if balance_cents <= 0:
        return 0
    return int((Decimal(balance_cents) * monthly_rate(apr_percent)).to_integral_value(rounding=ROUND_CEILING))


def effective_minimum_payment(debt: Debt, policy: DebtPolicy = DEFAULT_POLICY.debt) -> int:
    """Stored minimum, or a percentage of the balance when none is recorded"""
    if debt.minimum_payment_cents is not None:
        return debt.minimum_payment_cents
    if debt.balance_cents <= 0:
        return 0
    return math.ceil(debt.balance_cents * policy.fallback_minimum_percent / 100)


def simulate_payoff(
    balance_cents: int,
    apr_percent: float,
    payment_cents: int,
    max_months: int = DEFAULT_POLICY.debt.max_months,
) -> PayoffSchedule:
    """
    Month-by-month amortization.

    Negative amortization (payment at or below the first month's interest) is
    reported immediately instead of iterating to the cap. If a shrinking
    balance is still unresolved at the cap, the remaining months come from the
    closed-form annuity formula so the payoff stays finite.
    """
    if balance_cents <= 0:
        return PayoffSchedule(months=0, total_interest_cents=0)

    rate = monthly_rate(apr_percent)
    exact_interest = Decimal(balance_cents) * rate

    if payment_cents <= exact_interest:
        # Principal never decreases; report a year of accrual for context
        remaining = balance_cents
        accrued = 0
        for _ in range(NEGATIVE_AMORTIZATION_REPORT_MONTHS):
            interest = int((Decimal(remaining) * rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))
            accrued += interest
            remaining = remaining + interest - payment_cents
        return PayoffSchedule(months=None, total_interest_cents=accrued, negative_amortization=True)

    if rate == 0:
        return PayoffSchedule(months=-(-balance_cents // payment_cents), total_interest_cents=0)

    remaining = balance_cents
    total_interest = 0
    months = 0
    while remaining > 0 and months < max_months:
        interest = int((Decimal(remaining) * rate).quantize(Decimal(1), rounding=ROUND_HALF_UP))
        total_interest += interest
        remaining = remaining + interest - payment_cents
        months += 1

    if remaining <= 0:
        return PayoffSchedule(months=months, total_interest_cents=total_interest)

    # n = -ln(1 - rB/P) / ln(1 + r)
    r = float(rate)
    ratio = min(r * balance_cents / payment_cents, 1 - 1e-12)
    total_months = math.ceil(-math.log(1 - ratio) / math.log(1 + r))
    total_months = max(total_months, months + 1)
    closed_form_interest = max(0, payment_cents * total_months - balance_cents)
    return PayoffSchedule(
        months=total_months,
        total_interest_cents=max(total_interest, closed_form_interest),
        exceeded_cap=True,
    )


def danger_score(
    balance_cents: int,
    apr_percent: float,
    payment_cents: int,
    months_to_payoff: Optional[int],
    negative_amortization: bool,
    policy: DebtPolicy = DEFAULT_POLICY.debt,
) -> int:
    """
    0-100 composite of three normalized signals:

    - APR relative to the benchmark APR
    - balance / payment, i.e. naive months to clear, relative to the benchmark
    - months until projected payoff relative to the benchmark horizon

    Weighted sum, clamped. Negative amortization is pinned to 100.
    """
    if balance_cents <= 0:
        return 0
    if negative_amortization or months_to_payoff is None or payment_cents <= 0:
        return 100

    apr_signal = min(apr_percent / policy.apr_benchmark_percent, 1.0)
    ratio_signal = min((balance_cents / payment_cents) / policy.ratio_benchmark_months, 1.0)
    payoff_signal = min(months_to_payoff / policy.payoff_benchmark_months, 1.0)

    score = 100 * (
        policy.apr_weight * apr_signal
        + policy.ratio_weight * ratio_signal
        + policy.payoff_weight * payoff_signal
    )
    return max(0, min(100, round(score)))


def danger_band(score: int) -> str:
    if score < 30:
        return "low"
    elif score < 60:
        return "moderate"
    elif score < 85:
        return "high"
    else:
        return "severe"


def project_debt(
    debt: Debt,
    as_of: date,
    extra_payment_cents: int = 0,
    policy: DebtPolicy = DEFAULT_POLICY.debt,
) -> DebtProjection:
    """
    Project one debt under its minimum payment plus any extra amount.

    Raises:
        MalformedEntityError: the debt record fails validation
    """
    validate_debt(debt)

    payment = effective_minimum_payment(debt, policy) + max(0, extra_payment_cents)
    schedule = simulate_payoff(debt.balance_cents, debt.apr_percent, payment, policy.max_months)
    score = danger_score(
        debt.balance_cents,
        debt.apr_percent,
        payment,
        schedule.months,
        schedule.negative_amortization,
        policy,
    )

    return DebtProjection(
        debt_id=debt.debt_id,
        name=debt.name,
        current_balance_cents=debt.balance_cents,
        apr_percent=debt.apr_percent,
        minimum_payment_cents=payment,
        monthly_interest_cents=monthly_interest_cents(debt.balance_cents, debt.apr_percent),
        payoff_date=add_months(as_of, schedule.months) if schedule.months is not None else None,
        months_to_payoff=schedule.months,
        total_projected_interest_cents=schedule.total_interest_cents,
        danger_score=score,
        negative_amortization=schedule.negative_amortization,
        next_due_date=debt.next_due_date,
    )


def days_saved_by_extra(
    debt: Debt,
    extra_payment_cents: int,
    as_of: date,
    policy: DebtPolicy = DEFAULT_POLICY.debt,
) -> Optional[int]:
    """Days an extra monthly amount pulls the payoff date forward (None if not comparable)"""
    baseline = project_debt(debt, as_of, policy=policy)
    accelerated = project_debt(debt, as_of, extra_payment_cents, policy)
    if baseline.payoff_date is None or accelerated.payoff_date is None:
        return None
    return days_between(accelerated.payoff_date, baseline.payoff_date)


def rank_avalanche(projections: Iterable[DebtProjection]) -> List[DebtProjection]:
    """Highest APR first; ties go to the smaller balance for a quick win"""
    return sorted(projections, key=lambda p: (-p.apr_percent, p.current_balance_cents, p.debt_id))


def rank_snowball(projections: Iterable[DebtProjection]) -> List[DebtProjection]:
    """Smallest balance first; ties go to the higher APR"""
    return sorted(projections, key=lambda p: (p.current_balance_cents, -p.apr_percent, p.debt_id))


def payoff_strategies(projections: Iterable[DebtProjection]) -> PayoffStrategies:
    """Avalanche and snowball orderings over debts that still carry a balance"""
    active = [p for p in projections if p.current_balance_cents > 0]
    return PayoffStrategies(
        avalanche=tuple(StrategyStep(i + 1, p) for i, p in enumerate(rank_avalanche(active))),
        snowball=tuple(StrategyStep(i + 1, p) for i, p in enumerate(rank_snowball(active))),
        total_debt_cents=sum(p.current_balance_cents for p in active),
        total_minimum_payment_cents=sum(p.minimum_payment_cents for p in active),
        total_projected_interest_cents=sum(p.total_projected_interest_cents for p in active),
    )
