"""Command generation - one primary instruction plus up to two warnings, from templates only"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence, Tuple

from budget_copilot.domain.models import (
    CommandType,
    DebtProjection,
    NextAction,
    Obligation,
    PrimaryCommand,
    RiskLevel,
    RunwayProjection,
)
from budget_copilot.domain.policy import DEFAULT_POLICY, EnginePolicy
from budget_copilot.utils.date_utils import days_between


@dataclass(frozen=True)
class CommandPlan:
    primary_command: PrimaryCommand
    next_action: NextAction
    warnings: Tuple[str, ...]
    path: str


@dataclass(frozen=True)
class WarningCandidate:
    severity: int
    text: str


def format_cents(cents: int) -> str:
    """Integer cents to "$1,234.56" without touching floats"""
    dollars, remainder = divmod(abs(cents), 100)
    return f"${dollars:,}.{remainder:02d}"


def format_date(value: date) -> str:
    return f"{value:%a} {value:%b} {value.day}"


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def interest_cover_amount(debt: DebtProjection) -> int:
    """Smallest whole-dollar payment that beats this month's interest"""
    return (debt.monthly_interest_cents // 100 + 1) * 100


def daily_allowance(runway: RunwayProjection) -> int:
    available = runway.current_balance_cents - runway.obligations_before_income_cents
    return max(0, available // runway.days_until_income)


def _first_bill_before_income(obligations: Sequence[Obligation], runway: RunwayProjection, as_of: date) -> Optional[Obligation]:
    upcoming = [o for o in obligations if as_of <= o.due_date <= runway.next_income_date]
    return min(upcoming, key=lambda o: (o.due_date, o.name), default=None)


def _freeze_or_pay(
    runway: RunwayProjection,
    ranked_debts: Sequence[DebtProjection],
    obligations: Sequence[Obligation],
    as_of: date,
) -> Tuple[PrimaryCommand, NextAction, str]:
    available = runway.current_balance_cents - runway.obligations_before_income_cents

    for debt in ranked_debts:
        if not debt.negative_amortization:
            continue
        amount = interest_cover_amount(debt)
        if 0 < amount <= available:
            due = debt.next_due_date
            by = f"by {format_date(due)}" if due else "this cycle"
            return (
                PrimaryCommand(
                    type=CommandType.PAY,
                    text=f"Pay {format_cents(amount)} to {debt.name} {by}. Anything less and the balance keeps growing.",
                    amount_cents=amount,
                    target=debt.name,
                    date=due,
                ),
                NextAction(text="Mark as paid", reference=f"debts/{debt.debt_id}"),
                "NEGATIVE_AMORTIZATION_PAY",
            )

    if available < 0:
        deficit = -available
        return (
            PrimaryCommand(
                type=CommandType.FREEZE,
                text=(
                    f"FREEZE all spending. You are {format_cents(deficit)} short for upcoming bills. "
                    "Any purchase now means a missed payment."
                ),
                amount_cents=deficit,
            ),
            NextAction(text="See which bills to defer", reference="bills"),
            "CRITICAL_DEFICIT",
        )

    daily = daily_allowance(runway)
    bill = _first_bill_before_income(obligations, runway, as_of)
    at_risk = bill.name if bill else "your bills"
    return (
        PrimaryCommand(
            type=CommandType.FREEZE,
            text=(
                f"Do not exceed {format_cents(daily)}/day until {format_date(runway.next_income_date)}. "
                f"Going over means {at_risk} gets missed."
            ),
            amount_cents=daily,
            date=runway.next_income_date,
        ),
        NextAction(text="I understand", reference="dashboard"),
        "DAILY_LIMIT",
    )


def _pay_or_save(
    runway: RunwayProjection,
    ranked_debts: Sequence[DebtProjection],
    as_of: date,
) -> Tuple[PrimaryCommand, NextAction, str]:
    available = runway.current_balance_cents - runway.obligations_before_income_cents
    top = next((d for d in ranked_debts if d.current_balance_cents > 0), None)

    if (
        top is not None
        and top.next_due_date is not None
        and as_of <= top.next_due_date <= runway.next_income_date
        and 0 < top.minimum_payment_cents <= available
    ):
        return (
            PrimaryCommand(
                type=CommandType.PAY,
                text=(
                    f"Pay the {format_cents(top.minimum_payment_cents)} minimum to {top.name} "
                    f"by {format_date(top.next_due_date)}. Missing it adds fees and damages your credit."
                ),
                amount_cents=top.minimum_payment_cents,
                target=top.name,
                date=top.next_due_date,
            ),
            NextAction(text="Mark as paid", reference=f"debts/{top.debt_id}"),
            "DEBT_MINIMUM",
        )

    amount = max(runway.obligations_before_income_cents, runway.weekly_burn_rate_cents)
    return (
        PrimaryCommand(
            type=CommandType.SAVE,
            text=(
                f"Set aside {format_cents(amount)} before {format_date(runway.next_income_date)} "
                f"and keep spending under {format_cents(daily_allowance(runway))}/day."
            ),
            amount_cents=amount,
            date=runway.next_income_date,
        ),
        NextAction(text="Review upcoming bills", reference="bills"),
        "WARNING_SAVE",
    )


def _caution_save(runway: RunwayProjection, obligations: Sequence[Obligation], as_of: date, horizon_days: int):
    if runway.upcoming_bills_count > 0:
        first_due = min(o.due_date for o in obligations if o.due_date >= as_of)
        text = (
            f"Set aside {format_cents(runway.upcoming_bills_total_cents)} for "
            f"{plural(runway.upcoming_bills_count, 'bill')} due in the next {horizon_days} days. "
            f"Avoid large purchases until {format_date(first_due)}."
        )
        amount = runway.upcoming_bills_total_cents
    else:
        amount = runway.weekly_burn_rate_cents
        text = (
            f"Set aside {format_cents(amount)} this week. "
            f"At the current pace cash lasts {plural(runway.days_until_zero or 0, 'day')}."
        )
    return (
        PrimaryCommand(type=CommandType.SAVE, text=text, amount_cents=amount),
        NextAction(text="Review upcoming bills", reference="bills"),
        "CAUTION_SAVE",
    )


def _spend_or_wait(runway: RunwayProjection, caution_days: int):
    if runway.low_confidence:
        return (
            PrimaryCommand(
                type=CommandType.WAIT,
                text=(
                    "Hold off on new commitments until more spending is recorded. "
                    f"Up to {format_cents(runway.safe_to_spend_today_cents)} is free after bills today."
                ),
            ),
            NextAction(text="Add recent transactions", reference="transactions"),
            "INSUFFICIENT_HISTORY",
        )
    return (
        PrimaryCommand(
            type=CommandType.SPEND,
            text=(
                f"You can spend {format_cents(runway.safe_to_spend_week_cents)} this week. "
                f"This keeps all bills covered and your runway above {caution_days} days."
            ),
            amount_cents=runway.safe_to_spend_week_cents,
        ),
        NextAction(text="Got it", reference="dashboard"),
        "SAFE_SPEND",
    )


def build_warnings(
    runway: RunwayProjection,
    ranked_debts: Sequence[DebtProjection],
    obligations: Sequence[Obligation],
    as_of: date,
    policy: EnginePolicy = DEFAULT_POLICY,
) -> Tuple[str, ...]:
    """
    Candidates: largest bill close to due, most dangerous debt, projected
    shortfall. Deduplicated, most severe first, truncated.
    """
    candidates: List[WarningCandidate] = []

    if runway.projected_shortfall_cents > 0:
        candidates.append(
            WarningCandidate(
                severity=5,
                text=(
                    f"Cash runs {format_cents(runway.projected_shortfall_cents)} short before "
                    f"your next income on {format_date(runway.next_income_date)}."
                ),
            )
        )

    window = [o for o in obligations if 0 <= days_between(as_of, o.due_date) <= policy.decision.bill_warning_days]
    if window:
        bill = min(window, key=lambda o: (-o.amount_cents, o.due_date, o.name))
        due_through = sum(o.amount_cents for o in obligations if as_of <= o.due_date <= bill.due_date)
        covered = runway.current_balance_cents - due_through >= 0
        days = days_between(as_of, bill.due_date)
        when = "today" if days == 0 else f"in {plural(days, 'day')}"
        candidates.append(
            WarningCandidate(
                severity=1 if covered else 4,
                text=(
                    f"{bill.name} ({format_cents(bill.amount_cents)}) due {when}. "
                    + ("You're covered." if covered else "You cannot cover it.")
                ),
            )
        )

    risky = [d for d in ranked_debts if d.negative_amortization or d.danger_score >= policy.decision.debt_warning_score]
    if risky:
        debt = max(risky, key=lambda d: (d.danger_score, d.apr_percent, d.debt_id))
        if debt.negative_amortization:
            text = f"{debt.name}: the payment does not cover interest, so the balance grows every month."
            severity = 4
        else:
            text = (
                f"{debt.name} has a danger score of {debt.danger_score}. "
                f"At the current payment it is paid off in {debt.payoff_date:%b %Y}."
            )
            severity = 2
        candidates.append(WarningCandidate(severity=severity, text=text))

    seen = set()
    unique = []
    for candidate in sorted(candidates, key=lambda c: -c.severity):
        if candidate.text not in seen:
            seen.add(candidate.text)
            unique.append(candidate.text)
    return tuple(unique[: policy.decision.max_warnings])


def generate_command(
    risk_level: RiskLevel,
    runway: RunwayProjection,
    ranked_debts: Sequence[DebtProjection],
    obligations: Sequence[Obligation],
    as_of: date,
    policy: EnginePolicy = DEFAULT_POLICY,
) -> CommandPlan:
    """
    Priority table keyed by risk level:

    - critical / danger: pay a negatively amortizing debt if this cycle's cash
      covers it, otherwise freeze
    - warning: pay the top-ranked debt's minimum if due before income, otherwise save
    - caution: save
    - safe: spend the weekly safe amount, or wait when history is too thin
    """
    if risk_level in (RiskLevel.CRITICAL, RiskLevel.DANGER):
        command, action, path = _freeze_or_pay(runway, ranked_debts, obligations, as_of)
    elif risk_level == RiskLevel.WARNING:
        command, action, path = _pay_or_save(runway, ranked_debts, as_of)
    elif risk_level == RiskLevel.CAUTION:
        command, action, path = _caution_save(runway, obligations, as_of, policy.runway.horizon_days)
    else:
        command, action, path = _spend_or_wait(runway, policy.risk.caution_days)

    return CommandPlan(
        primary_command=command,
        next_action=action,
        warnings=build_warnings(runway, ranked_debts, obligations, as_of, policy),
        path=path,
    )
