"""Cash runway projection - burn rate, days until zero and safe-to-spend"""

from collections import defaultdict
from datetime import date, timedelta
from statistics import median_high
from typing import Dict, Iterable, List, Optional, Sequence

from budget_copilot.domain.exceptions import InvalidBalanceError, MalformedEntityError
from budget_copilot.domain.models import (
    Obligation,
    RunwayProjection,
    ScheduledBill,
    ScheduledIncome,
    Transaction,
)
from budget_copilot.domain.policy import DEFAULT_POLICY, RunwayPolicy
from budget_copilot.utils.date_utils import add_months, days_between, generate_date_range

# Calendar step per frequency: ("days", n) or ("months", n)
FREQUENCY_STEPS = {
    "weekly": ("days", 7),
    "biweekly": ("days", 14),
    "semimonthly": ("days", 15),
    "monthly": ("months", 1),
    "quarterly": ("months", 3),
    "annually": ("months", 12),
}

MAX_OCCURRENCES = 400


def expand_occurrences(anchor: date, frequency: str, window_start: date, window_end: date) -> List[date]:
    """
    Dates of a recurring event that fall inside [window_start, window_end].

    The anchor is the stored next due/pay date. Stale anchors (in the past)
    are rolled forward; monthly steps are taken from the anchor so that a
    bill due on the 31st stays at month end instead of drifting.
    """
    if frequency not in FREQUENCY_STEPS:
        raise ValueError(f"unknown frequency {frequency!r}")

    unit, step = FREQUENCY_STEPS[frequency]
    dates = []
    for k in range(MAX_OCCURRENCES):
        if unit == "days":
            occurrence = anchor + timedelta(days=k * step)
        else:
            occurrence = add_months(anchor, k * step)
        if occurrence > window_end:
            break
        if occurrence >= window_start:
            dates.append(occurrence)
    return dates


def bill_obligations(bill: ScheduledBill, as_of: date, horizon_days: int) -> List[Obligation]:
    """
    Expand one scheduled bill across the horizon.

    Raises:
        MalformedEntityError: amount not positive integer cents, missing due date
            or unknown frequency
    """
    if not isinstance(bill.amount_cents, int) or isinstance(bill.amount_cents, bool) or bill.amount_cents <= 0:
        raise MalformedEntityError("bill", bill.bill_id, f"invalid amount {bill.amount_cents!r}")
    if bill.next_due_date is None:
        raise MalformedEntityError("bill", bill.bill_id, "missing next due date")
    if bill.frequency not in FREQUENCY_STEPS:
        raise MalformedEntityError("bill", bill.bill_id, f"unknown frequency {bill.frequency!r}")

    horizon_end = as_of + timedelta(days=horizon_days)
    # An overdue bill is still owed: it posts today
    if bill.next_due_date < as_of:
        overdue = [Obligation(bill.bill_id, bill.name, bill.amount_cents, as_of)]
        rest = expand_occurrences(bill.next_due_date, bill.frequency, as_of + timedelta(days=1), horizon_end)
        return overdue + [Obligation(bill.bill_id, bill.name, bill.amount_cents, d) for d in rest]

    return [
        Obligation(bill.bill_id, bill.name, bill.amount_cents, d)
        for d in expand_occurrences(bill.next_due_date, bill.frequency, as_of, horizon_end)
    ]


def income_dates(income: ScheduledIncome, as_of: date, horizon_days: int) -> List[date]:
    """Upcoming pay dates strictly after today (today's pay is already in the balance)"""
    if income.next_pay_date is None:
        raise MalformedEntityError("income", income.income_id, "missing next pay date")
    if income.frequency not in FREQUENCY_STEPS:
        raise MalformedEntityError("income", income.income_id, f"unknown frequency {income.frequency!r}")
    return expand_occurrences(
        income.next_pay_date,
        income.frequency,
        as_of + timedelta(days=1),
        as_of + timedelta(days=horizon_days * 2),
    )


def next_income_date(pay_dates: Iterable[date], as_of: date, policy: RunwayPolicy = DEFAULT_POLICY.runway) -> date:
    """Earliest upcoming pay date, or the default interval when nothing is scheduled"""
    upcoming = [d for d in pay_dates if d > as_of]
    if upcoming:
        return min(upcoming)
    return as_of + timedelta(days=policy.default_income_interval_days)


def daily_outflows(transactions: Sequence[Transaction], as_of: date, lookback_days: int) -> List[int]:
    """
    Zero-filled daily expense totals over the trailing window ending yesterday.

    The series starts at the first transaction inside the window so that a
    new user's short history is not diluted by days before they signed up.
    Today is excluded because it is still in progress.
    """
    window_start = as_of - timedelta(days=lookback_days)
    window_end = as_of - timedelta(days=1)
    in_window = [t for t in transactions if window_start <= t.date <= window_end]
    if not in_window:
        return []

    totals: Dict[date, int] = defaultdict(int)
    for txn in in_window:
        if txn.type == "expense":
            totals[txn.date] += abs(txn.amount_cents)

    first_day = min(t.date for t in in_window)
    return [totals.get(day, 0) for day in generate_date_range(first_day, window_end)]


def robust_daily_burn(observations: Sequence[int], rolling_window: int = 7) -> int:
    """
    Median-based daily burn in integer cents.

    With at least one full week of history the median is taken over rolling
    7-day sums, which keeps a weekly grocery run from reading as zero spend
    while still ignoring a single outsized purchase. Shorter histories use the
    plain daily median. Division rounds up (conservative).
    """
    if not observations:
        return 0
    if len(observations) < rolling_window:
        return int(median_high(observations))

    sums = [sum(observations[i : i + rolling_window]) for i in range(len(observations) - rolling_window + 1)]
    return -(-int(median_high(sums)) // rolling_window)


def project_runway(
    current_balance_cents: int,
    obligations: Sequence[Obligation],
    daily_observations: Sequence[int],
    as_of: date,
    next_income: Optional[date] = None,
    policy: RunwayPolicy = DEFAULT_POLICY.runway,
) -> RunwayProjection:
    """
    Simulate cash day by day and derive safe-to-spend.

    All balance arithmetic is integer cents.

    Raises:
        InvalidBalanceError: current balance missing or not an integer
    """
    if current_balance_cents is None or isinstance(current_balance_cents, bool) or not isinstance(
        current_balance_cents, int
    ):
        raise InvalidBalanceError(f"current balance must be integer cents, got {current_balance_cents!r}")

    horizon_end = as_of + timedelta(days=policy.horizon_days)
    income_date = next_income or as_of + timedelta(days=policy.default_income_interval_days)
    days_until_income = max(1, days_between(as_of, income_date))

    has_spending = any(v > 0 for v in daily_observations)
    daily_burn = robust_daily_burn(daily_observations, policy.rolling_window_days) if has_spending else 0
    low_confidence = not has_spending or len(daily_observations) < policy.rolling_window_days

    in_horizon = [o for o in obligations if as_of <= o.due_date <= horizon_end]
    due_by_date: Dict[date, int] = defaultdict(int)
    for obligation in in_horizon:
        due_by_date[obligation.due_date] += obligation.amount_cents

    # Day 0 posts what is due today; each later day also burns
    balance = current_balance_cents - due_by_date.get(as_of, 0)
    days_until_zero = 0 if balance <= 0 else None
    lowest_before_income = balance
    for day in range(1, policy.horizon_days + 1):
        balance -= daily_burn + due_by_date.get(as_of + timedelta(days=day), 0)
        if days_until_zero is None and balance <= 0:
            days_until_zero = day
        if day < days_until_income:
            lowest_before_income = min(lowest_before_income, balance)

    obligations_before_income = sum(o.amount_cents for o in in_horizon if o.due_date <= income_date)

    if current_balance_cents <= 0:
        safe_today = 0
        safe_week = 0
    else:
        safe_today = max(0, current_balance_cents - obligations_before_income - policy.safety_buffer_cents)
        safe_week = min(safe_today, safe_today * 7 // days_until_income)

    return RunwayProjection(
        current_balance_cents=current_balance_cents,
        daily_burn_rate_cents=daily_burn,
        weekly_burn_rate_cents=daily_burn * 7,
        days_until_zero=days_until_zero,
        zero_date=as_of + timedelta(days=days_until_zero) if days_until_zero is not None else None,
        safe_to_spend_today_cents=safe_today,
        safe_to_spend_week_cents=safe_week,
        upcoming_bills_total_cents=sum(o.amount_cents for o in in_horizon),
        upcoming_bills_count=len(in_horizon),
        next_income_date=income_date,
        days_until_income=days_until_income,
        obligations_before_income_cents=obligations_before_income,
        projected_shortfall_cents=max(0, -lowest_before_income),
        low_confidence=low_confidence,
    )
