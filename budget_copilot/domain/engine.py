"""Decision engine - snapshot in, fully built decision draft out. No I/O, no clock."""

from dataclasses import dataclass, replace
from typing import List, Tuple

from budget_copilot.domain.commands import generate_command
from budget_copilot.domain.debts import project_debt, rank_avalanche
from budget_copilot.domain.exceptions import InsufficientDataError, MalformedEntityError
from budget_copilot.domain.models import (
    Account,
    BasisEntry,
    DebtProjection,
    DecisionBasis,
    DecisionDraft,
    FinancialSnapshot,
    Obligation,
    RunwayProjection,
    Transaction,
)
from budget_copilot.domain.policy import DEFAULT_POLICY, EnginePolicy
from budget_copilot.domain.risk import RiskInputs, classify_risk
from budget_copilot.domain.runway import (
    bill_obligations,
    daily_outflows,
    income_dates,
    next_income_date,
    project_runway,
)

DECISION_VERSION = "v1.0.0"


@dataclass(frozen=True)
class ExcludedEntity:
    kind: str
    entity_id: str
    reason: str


@dataclass(frozen=True)
class EngineResult:
    draft: DecisionDraft
    runway: RunwayProjection
    debt_projections: Tuple[DebtProjection, ...]
    obligations: Tuple[Obligation, ...]
    excluded: Tuple[ExcludedEntity, ...]


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_account(account: Account) -> None:
    if account.balance_cents is not None and not _is_int(account.balance_cents):
        raise MalformedEntityError("account", account.account_id, f"invalid balance {account.balance_cents!r}")


def validate_transaction(txn: Transaction) -> None:
    if txn.type not in ("income", "expense"):
        raise MalformedEntityError("transaction", txn.transaction_id, f"unknown type {txn.type!r}")
    if not _is_int(txn.amount_cents):
        raise MalformedEntityError("transaction", txn.transaction_id, f"invalid amount {txn.amount_cents!r}")
    if txn.date is None:
        raise MalformedEntityError("transaction", txn.transaction_id, "missing date")


def _excluded(error: MalformedEntityError) -> ExcludedEntity:
    return ExcludedEntity(kind=error.kind, entity_id=error.entity_id, reason=error.reason)


def _build_basis(
    runway: RunwayProjection,
    risk_inputs: RiskInputs,
    ranked: List[DebtProjection],
    plan_path: str,
    risk_level: str,
    excluded: List[ExcludedEntity],
    policy: EnginePolicy,
) -> DecisionBasis:
    entries = [
        BasisEntry("cash_balance_cents", risk_inputs.cash_balance_cents, 1.0),
        BasisEntry("days_until_zero", risk_inputs.days_until_zero, 1.0),
        BasisEntry("days_until_income", risk_inputs.days_until_income, 1.0),
        BasisEntry("upcoming_bills_total_cents", risk_inputs.upcoming_obligations_total_cents, 1.0),
        BasisEntry("upcoming_bills_count", risk_inputs.upcoming_obligations_count, 1.0),
        BasisEntry("max_danger_score", risk_inputs.max_danger_score, 1.0),
        BasisEntry("negative_amortization", risk_inputs.negative_amortization, 1.0),
        BasisEntry("daily_burn_rate_cents", runway.daily_burn_rate_cents),
        BasisEntry("burn_low_confidence", runway.low_confidence),
        BasisEntry("obligations_before_income_cents", runway.obligations_before_income_cents),
        BasisEntry("safe_to_spend_today_cents", runway.safe_to_spend_today_cents),
        BasisEntry("safe_to_spend_week_cents", runway.safe_to_spend_week_cents),
        BasisEntry("projected_shortfall_cents", runway.projected_shortfall_cents),
    ]
    for debt in ranked:
        entries.append(BasisEntry(f"debt:{debt.debt_id}:apr_percent", debt.apr_percent, policy.debt.apr_weight))
        entries.append(
            BasisEntry(f"debt:{debt.debt_id}:months_to_payoff", debt.months_to_payoff, policy.debt.payoff_weight)
        )
        entries.append(BasisEntry(f"debt:{debt.debt_id}:danger_score", debt.danger_score))
    for item in excluded:
        entries.append(BasisEntry(f"excluded:{item.kind}:{item.entity_id}", item.reason))
    entries.append(BasisEntry("risk_level", risk_level))
    entries.append(BasisEntry("path", plan_path))
    return DecisionBasis(version=DECISION_VERSION, entries=tuple(entries))


def build_decision(snapshot: FinancialSnapshot, policy: EnginePolicy = DEFAULT_POLICY) -> EngineResult:
    """
    Run runway, debt, risk and command steps over one snapshot.

    A malformed record is dropped from the computation and listed in the
    basis; it never aborts the run.

    Raises:
        InsufficientDataError: no snapshot, or no accounts and no transactions
    """
    if snapshot is None or not snapshot.has_data:
        raise InsufficientDataError("No accounts or transactions available")

    as_of = snapshot.as_of
    excluded: List[ExcludedEntity] = []

    accounts = []
    for account in snapshot.accounts:
        try:
            validate_account(account)
            accounts.append(account)
        except MalformedEntityError as e:
            excluded.append(_excluded(e))

    transactions = []
    for txn in snapshot.transactions:
        try:
            validate_transaction(txn)
            transactions.append(txn)
        except MalformedEntityError as e:
            excluded.append(_excluded(e))

    obligations: List[Obligation] = []
    for bill in snapshot.bills:
        try:
            obligations.extend(bill_obligations(bill, as_of, policy.runway.horizon_days))
        except MalformedEntityError as e:
            excluded.append(_excluded(e))
    obligations.sort(key=lambda o: (o.due_date, o.name, o.source_id))

    pay_dates = []
    for income in snapshot.incomes:
        try:
            pay_dates.extend(income_dates(income, as_of, policy.runway.horizon_days))
        except MalformedEntityError as e:
            excluded.append(_excluded(e))

    projections: List[DebtProjection] = []
    for debt in snapshot.debts:
        try:
            projections.append(project_debt(debt, as_of, policy=policy.debt))
        except MalformedEntityError as e:
            excluded.append(_excluded(e))

    clean = replace(snapshot, accounts=tuple(accounts), transactions=tuple(transactions))
    runway = project_runway(
        clean.cash_balance_cents,
        obligations,
        daily_outflows(clean.transactions, as_of, policy.runway.lookback_days),
        as_of,
        next_income_date(pay_dates, as_of, policy.runway),
        policy.runway,
    )

    ranked = rank_avalanche(projections)
    risk_inputs = RiskInputs.from_projections(runway, ranked)
    risk_level = classify_risk(risk_inputs, policy.risk)
    plan = generate_command(risk_level, runway, ranked, obligations, as_of, policy)

    draft = DecisionDraft(
        risk_level=risk_level,
        primary_command=plan.primary_command,
        warnings=plan.warnings,
        next_action=plan.next_action,
        basis=_build_basis(runway, risk_inputs, ranked, plan.path, risk_level.value, excluded, policy),
    )
    return EngineResult(
        draft=draft,
        runway=runway,
        debt_projections=tuple(ranked),
        obligations=tuple(obligations),
        excluded=tuple(excluded),
    )
