"""Data access layer - SQL implementations of the snapshot, decision and goal ports"""

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from budget_copilot.domain.exceptions import StorageError
from budget_copilot.domain.models import (
    Account,
    BasisEntry,
    CommandType,
    Debt,
    DebtProjection,
    Decision,
    DecisionBasis,
    FinancialSnapshot,
    Goal,
    GoalProgress,
    NextAction,
    PrimaryCommand,
    RiskLevel,
    RunwayProjection,
    ScheduledBill,
    ScheduledIncome,
    Transaction,
)
from budget_copilot.infrastructure.database.models import (
    AccountRecord,
    DebtRecord,
    DecisionRecord,
    GoalRecord,
    RunwaySnapshotRecord,
    ScheduledBillRecord,
    ScheduledIncomeRecord,
    TransactionRecord,
)
from budget_copilot.utils.date_utils import from_epoch_ms, to_epoch_ms

logger = logging.getLogger(__name__)


class SqlSnapshotReader:
    """Reads the active facts for one user; no business logic"""

    def __init__(self, db: Session):
        self.db = db

    def read(self, user_id: str, as_of: date, lookback_days: int) -> Optional[FinancialSnapshot]:
        try:
            accounts = (
                self.db.query(AccountRecord)
                .filter(AccountRecord.user_id == user_id, AccountRecord.is_active.is_(True))
                .all()
            )
            transactions = (
                self.db.query(TransactionRecord)
                .filter(
                    TransactionRecord.user_id == user_id,
                    TransactionRecord.date >= as_of - timedelta(days=lookback_days),
                    TransactionRecord.date <= as_of,
                )
                .all()
            )
            debts = self.db.query(DebtRecord).filter(DebtRecord.user_id == user_id, DebtRecord.is_active.is_(True)).all()
            bills = (
                self.db.query(ScheduledBillRecord)
                .filter(ScheduledBillRecord.user_id == user_id, ScheduledBillRecord.is_active.is_(True))
                .all()
            )
            incomes = (
                self.db.query(ScheduledIncomeRecord)
                .filter(ScheduledIncomeRecord.user_id == user_id, ScheduledIncomeRecord.is_active.is_(True))
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read snapshot for user {user_id}") from e

        if not (accounts or transactions or debts or bills or incomes):
            return None

        return FinancialSnapshot(
            user_id=user_id,
            as_of=as_of,
            accounts=[Account(a.id, a.type, a.balance_cents) for a in accounts],
            transactions=[
                Transaction(t.id, t.date, t.amount_cents, t.type, t.description or "", t.category) for t in transactions
            ],
            debts=[
                Debt(
                    debt_id=d.id,
                    name=d.name,
                    balance_cents=d.balance_cents,
                    apr_percent=d.apr_percent,
                    minimum_payment_cents=d.minimum_payment_cents,
                    next_due_date=d.next_due_date,
                    type=d.type,
                )
                for d in debts
            ],
            bills=[ScheduledBill(b.id, b.name, b.amount_cents, b.next_due_date, b.frequency) for b in bills],
            incomes=[ScheduledIncome(i.id, i.name, i.amount_cents, i.next_pay_date, i.frequency) for i in incomes],
        )


def _basis_to_json(basis: DecisionBasis) -> dict:
    return {
        "version": basis.version,
        "entries": [{"signal": e.signal, "value": e.value, "weight": e.weight} for e in basis.entries],
    }


def _basis_from_json(payload: dict) -> DecisionBasis:
    return DecisionBasis(
        version=payload["version"],
        entries=tuple(BasisEntry(e["signal"], e["value"], e["weight"]) for e in payload["entries"]),
    )


def _to_domain(record: DecisionRecord) -> Decision:
    return Decision(
        decision_id=record.id,
        user_id=record.user_id,
        risk_level=RiskLevel(record.risk_level),
        primary_command=PrimaryCommand(
            type=CommandType(record.command_type),
            text=record.command_text,
            amount_cents=record.command_amount_cents,
            target=record.command_target,
            date=record.command_date,
        ),
        warnings=tuple(record.warnings),
        next_action=NextAction(text=record.next_action_text, reference=record.next_action_reference),
        basis=_basis_from_json(record.decision_basis),
        computed_at=from_epoch_ms(record.computed_at),
        expires_at=from_epoch_ms(record.expires_at),
        is_locked=record.is_locked,
        acknowledged_at=from_epoch_ms(record.acknowledged_at) if record.acknowledged_at is not None else None,
    )


class SqlDecisionStore:
    """Repository for decisions, their runway audit rows and debt projection fields"""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, decision: Decision, runway: RunwayProjection, debt_projections: Sequence[DebtProjection]) -> None:
        """Write everything in one transaction; on failure nothing is visible"""
        computed_ms = to_epoch_ms(decision.computed_at)
        command = decision.primary_command
        try:
            self.db.add(
                DecisionRecord(
                    id=decision.decision_id,
                    user_id=decision.user_id,
                    risk_level=decision.risk_level.value,
                    command_type=command.type.value,
                    command_text=command.text,
                    command_amount_cents=command.amount_cents,
                    command_target=command.target,
                    command_date=command.date,
                    warnings=list(decision.warnings),
                    next_action_text=decision.next_action.text,
                    next_action_reference=decision.next_action.reference,
                    decision_basis=_basis_to_json(decision.basis),
                    computed_at=computed_ms,
                    expires_at=to_epoch_ms(decision.expires_at),
                    is_locked=decision.is_locked,
                )
            )
            self.db.flush()  # Decision row must exist before its runway row references it
            self.db.add(
                RunwaySnapshotRecord(
                    decision_id=decision.decision_id,
                    user_id=decision.user_id,
                    current_balance_cents=runway.current_balance_cents,
                    daily_burn_rate_cents=runway.daily_burn_rate_cents,
                    weekly_burn_rate_cents=runway.weekly_burn_rate_cents,
                    days_until_zero=runway.days_until_zero,
                    zero_date=runway.zero_date,
                    safe_to_spend_today_cents=runway.safe_to_spend_today_cents,
                    safe_to_spend_week_cents=runway.safe_to_spend_week_cents,
                    upcoming_bills_total_cents=runway.upcoming_bills_total_cents,
                    upcoming_bills_count=runway.upcoming_bills_count,
                    computed_at=computed_ms,
                )
            )
            for projection in debt_projections:
                self.db.query(DebtRecord).filter(DebtRecord.id == projection.debt_id).update(
                    {
                        DebtRecord.projected_payoff_date: projection.payoff_date,
                        DebtRecord.projected_total_interest_cents: projection.total_projected_interest_cents,
                        DebtRecord.danger_score: projection.danger_score,
                        DebtRecord.projection_updated_at: computed_ms,
                    },
                    synchronize_session=False,
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Decision insert failed", extra={"user_id": decision.user_id, "error": str(e)})
            raise StorageError(f"Failed to persist decision for user {decision.user_id}") from e

    def get(self, decision_id: str) -> Optional[Decision]:
        try:
            record = self.db.query(DecisionRecord).filter(DecisionRecord.id == decision_id).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read decision {decision_id}") from e
        return _to_domain(record) if record is not None else None

    def latest_for_user(self, user_id: str) -> Optional[Decision]:
        try:
            record = (
                self.db.query(DecisionRecord)
                .filter(DecisionRecord.user_id == user_id)
                .order_by(DecisionRecord.computed_at.desc(), DecisionRecord.seq.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read latest decision for user {user_id}") from e
        return _to_domain(record) if record is not None else None

    def acknowledge_if_current(self, decision_id: str, user_id: str, at: datetime) -> bool:
        """
        Single conditional UPDATE: the row is touched only while it is the
        user's latest decision, unexpired and unacknowledged.

        Returns:
            True if this call set acknowledged_at
        """
        at_ms = to_epoch_ms(at)
        latest = aliased(DecisionRecord)
        latest_id = (
            self.db.query(latest.id)
            .filter(latest.user_id == user_id)
            .order_by(latest.computed_at.desc(), latest.seq.desc())
            .limit(1)
            .scalar_subquery()
        )
        try:
            updated = (
                self.db.query(DecisionRecord)
                .filter(
                    DecisionRecord.id == decision_id,
                    DecisionRecord.user_id == user_id,
                    DecisionRecord.acknowledged_at.is_(None),
                    DecisionRecord.expires_at >= at_ms,
                    DecisionRecord.id == latest_id,
                )
                .update({DecisionRecord.acknowledged_at: at_ms}, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to acknowledge decision {decision_id}") from e
        return updated == 1

    def history(self, user_id: str, limit: int = 20) -> List[Decision]:
        try:
            records = (
                self.db.query(DecisionRecord)
                .filter(DecisionRecord.user_id == user_id)
                .order_by(DecisionRecord.computed_at.desc(), DecisionRecord.seq.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read decision history for user {user_id}") from e
        return [_to_domain(r) for r in records]


class SqlGoalStore:
    """Repository for goals and their derived progress columns"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, goal_id: str) -> Optional[Goal]:
        try:
            record = self.db.query(GoalRecord).filter(GoalRecord.id == goal_id).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to read goal {goal_id}") from e
        if record is None:
            return None

        progress = None
        if record.progress_percent is not None:
            progress = GoalProgress(
                progress_percent=record.progress_percent,
                on_track=bool(record.on_track),
                projected_completion_date=record.projected_completion_date,
                recommended_monthly_contribution_cents=record.recommended_monthly_contribution_cents or 0,
            )
        return Goal(
            goal_id=record.id,
            user_id=record.user_id,
            name=record.name,
            target_amount_cents=record.target_amount_cents,
            current_amount_cents=record.current_amount_cents,
            start_date=record.start_date,
            target_date=record.target_date,
            status=record.status,
            completed_at=from_epoch_ms(record.completed_at) if record.completed_at is not None else None,
            progress=progress,
        )

    def save(self, goal: Goal) -> None:
        try:
            record = self.db.query(GoalRecord).filter(GoalRecord.id == goal.goal_id).first()
            if record is None:
                record = GoalRecord(id=goal.goal_id)
                self.db.add(record)
            record.user_id = goal.user_id
            record.name = goal.name
            record.target_amount_cents = goal.target_amount_cents
            record.current_amount_cents = goal.current_amount_cents
            record.start_date = goal.start_date
            record.target_date = goal.target_date
            record.status = goal.status
            record.completed_at = to_epoch_ms(goal.completed_at) if goal.completed_at is not None else None
            if goal.progress is not None:
                record.progress_percent = goal.progress.progress_percent
                record.on_track = goal.progress.on_track
                record.projected_completion_date = goal.progress.projected_completion_date
                record.recommended_monthly_contribution_cents = goal.progress.recommended_monthly_contribution_cents
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Failed to save goal {goal.goal_id}") from e
