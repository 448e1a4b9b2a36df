"""SQLAlchemy ORM models for snapshot facts, decisions and their audit rows"""

import uuid

from sqlalchemy import JSON, BigInteger, Boolean, Column, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


# Timestamps are stored as integer epoch milliseconds (UTC)


class AccountRecord(Base):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False, default="")
    type = Column(Text, nullable=False)  # checking | savings | credit | cash
    balance_cents = Column(BigInteger, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    type = Column(Text, nullable=False)  # income | expense
    description = Column(Text, nullable=False, default="")
    category = Column(Text, nullable=True)


class DebtRecord(Base):
    """Active debt plus the latest projection, overwritten on every computation"""

    __tablename__ = "debts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text, nullable=False, default="other")
    balance_cents = Column(BigInteger, nullable=True)
    apr_percent = Column(Float, nullable=True)
    minimum_payment_cents = Column(BigInteger, nullable=True)
    next_due_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    projected_payoff_date = Column(Date, nullable=True)
    projected_total_interest_cents = Column(BigInteger, nullable=True)
    danger_score = Column(Integer, nullable=True)
    projection_updated_at = Column(BigInteger, nullable=True)


class ScheduledBillRecord(Base):
    __tablename__ = "scheduled_bills"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=True)
    next_due_date = Column(Date, nullable=True)
    frequency = Column(Text, nullable=False, default="monthly")
    is_active = Column(Boolean, nullable=False, default=True)


class ScheduledIncomeRecord(Base):
    __tablename__ = "scheduled_income"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=True)
    next_pay_date = Column(Date, nullable=True)
    frequency = Column(Text, nullable=False, default="biweekly")
    is_active = Column(Boolean, nullable=False, default=True)


class GoalRecord(Base):
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    target_amount_cents = Column(BigInteger, nullable=False)
    current_amount_cents = Column(BigInteger, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    target_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="active")
    completed_at = Column(BigInteger, nullable=True)

    progress_percent = Column(Float, nullable=True)
    on_track = Column(Boolean, nullable=True)
    projected_completion_date = Column(Date, nullable=True)
    recommended_monthly_contribution_cents = Column(BigInteger, nullable=True)


class DecisionRecord(Base):
    """
    One computed decision. Rows are never updated except for acknowledged_at.

    ``seq`` orders rows computed within the same millisecond.
    """

    __tablename__ = "decisions"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(36), nullable=False, unique=True, index=True)
    user_id = Column(Text, nullable=False, index=True)
    risk_level = Column(Text, nullable=False)
    command_type = Column(Text, nullable=False)
    command_text = Column(Text, nullable=False)
    command_amount_cents = Column(BigInteger, nullable=True)
    command_target = Column(Text, nullable=True)
    command_date = Column(Date, nullable=True)
    warnings = Column(JSON, nullable=False)
    next_action_text = Column(Text, nullable=False)
    next_action_reference = Column(Text, nullable=False)
    decision_basis = Column(JSON, nullable=False)
    computed_at = Column(BigInteger, nullable=False, index=True)
    expires_at = Column(BigInteger, nullable=False)
    is_locked = Column(Boolean, nullable=False, default=True)
    acknowledged_at = Column(BigInteger, nullable=True)


class RunwaySnapshotRecord(Base):
    """Runway figures behind one decision, inserted with it for audit"""

    __tablename__ = "runway_snapshots"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    decision_id = Column(String(36), ForeignKey("decisions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Text, nullable=False, index=True)
    current_balance_cents = Column(BigInteger, nullable=False)
    daily_burn_rate_cents = Column(BigInteger, nullable=False)
    weekly_burn_rate_cents = Column(BigInteger, nullable=False)
    days_until_zero = Column(Integer, nullable=True)
    zero_date = Column(Date, nullable=True)
    safe_to_spend_today_cents = Column(BigInteger, nullable=False)
    safe_to_spend_week_cents = Column(BigInteger, nullable=False)
    upcoming_bills_total_cents = Column(BigInteger, nullable=False)
    upcoming_bills_count = Column(Integer, nullable=False)
    computed_at = Column(BigInteger, nullable=False)
