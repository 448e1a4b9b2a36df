"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple, Union

CASH_ACCOUNT_TYPES = ("checking", "savings", "cash")


class RiskLevel(str, Enum):
    """Ordinal risk scale, least to most severe"""

    SAFE = "safe"
    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(RiskLevel).index(self)


class CommandType(str, Enum):
    PAY = "pay"
    SAVE = "save"
    SPEND = "spend"
    FREEZE = "freeze"
    WAIT = "wait"


class DecisionStatus(str, Enum):
    COMPUTED = "computed"
    ACKNOWLEDGED = "acknowledged"
    EXPIRED = "expired"


class AcknowledgeOutcome(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    ALREADY_ACKNOWLEDGED = "already_acknowledged"
    SUPERSEDED = "superseded"


# ---------------------------------------------------------------------------
# Snapshot inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Account:
    account_id: str
    type: str  # checking | savings | credit | cash
    balance_cents: int


@dataclass(frozen=True)
class Transaction:
    """Posted account transaction; amount is always a positive magnitude"""

    transaction_id: str
    date: date
    amount_cents: int
    type: str  # "income" or "expense"
    description: str = ""
    category: Optional[str] = None


@dataclass(frozen=True)
class Debt:
    debt_id: str
    name: str
    balance_cents: int
    apr_percent: float
    minimum_payment_cents: Optional[int] = None
    next_due_date: Optional[date] = None
    type: str = "other"


@dataclass(frozen=True)
class ScheduledBill:
    bill_id: str
    name: str
    amount_cents: int
    next_due_date: Optional[date]
    frequency: str = "monthly"


@dataclass(frozen=True)
class ScheduledIncome:
    income_id: str
    name: str
    amount_cents: int
    next_pay_date: Optional[date]
    frequency: str = "monthly"


def _transaction_order(txn: "Transaction") -> tuple:
    # Undated records sort last; they are excluded later, not here
    return (txn.date is None, txn.date or date.min, str(txn.transaction_id))


@dataclass(frozen=True)
class FinancialSnapshot:
    """Everything one computation needs, read once and never mutated"""

    user_id: str
    as_of: date
    accounts: Tuple[Account, ...] = ()
    transactions: Tuple[Transaction, ...] = ()
    debts: Tuple[Debt, ...] = ()
    bills: Tuple[ScheduledBill, ...] = ()
    incomes: Tuple[ScheduledIncome, ...] = ()

    def __post_init__(self):
        # Normalise any sequences to tuples and keep transactions time-ordered
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(
            self,
            "transactions",
            tuple(sorted(self.transactions, key=_transaction_order)),
        )
        object.__setattr__(self, "debts", tuple(self.debts))
        object.__setattr__(self, "bills", tuple(self.bills))
        object.__setattr__(self, "incomes", tuple(self.incomes))

    @property
    def has_data(self) -> bool:
        return bool(self.accounts) or bool(self.transactions)

    @property
    def cash_balance_cents(self) -> int:
        """
        Cash across checking, savings and cash accounts.

        Only when no cash account has a recorded balance does this fall back
        to income minus expenses over the transactions in the snapshot. A
        recorded zero is a real balance.
        """
        recorded = [
            a.balance_cents for a in self.accounts if a.type in CASH_ACCOUNT_TYPES and a.balance_cents is not None
        ]
        if recorded or not self.transactions:
            return sum(recorded)
        income = sum(abs(t.amount_cents) for t in self.transactions if t.type == "income")
        expenses = sum(abs(t.amount_cents) for t in self.transactions if t.type == "expense")
        return income - expenses


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Obligation:
    """One dated occurrence of a scheduled bill"""

    source_id: str
    name: str
    amount_cents: int
    due_date: date


@dataclass(frozen=True)
class RunwayProjection:
    current_balance_cents: int
    daily_burn_rate_cents: int
    weekly_burn_rate_cents: int
    days_until_zero: Optional[int]
    zero_date: Optional[date]
    safe_to_spend_today_cents: int
    safe_to_spend_week_cents: int
    upcoming_bills_total_cents: int
    upcoming_bills_count: int
    next_income_date: date
    days_until_income: int
    obligations_before_income_cents: int
    projected_shortfall_cents: int = 0
    low_confidence: bool = False


@dataclass(frozen=True)
class DebtProjection:
    debt_id: str
    name: str
    current_balance_cents: int
    apr_percent: float
    minimum_payment_cents: int
    monthly_interest_cents: int
    payoff_date: Optional[date]  # None: never paid off under current terms
    months_to_payoff: Optional[int]
    total_projected_interest_cents: int
    danger_score: int
    negative_amortization: bool = False
    next_due_date: Optional[date] = None


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrimaryCommand:
    type: CommandType
    text: str
    amount_cents: Optional[int] = None
    target: Optional[str] = None
    date: Optional[date] = None


@dataclass(frozen=True)
class NextAction:
    text: str
    reference: str


BasisValue = Union[int, float, str, bool, None]


@dataclass(frozen=True)
class BasisEntry:
    """One signal that fed the decision, with the weight it carried"""

    signal: str
    value: BasisValue
    weight: float = 0.0


@dataclass(frozen=True)
class DecisionBasis:
    """Internal trace of how a decision was reached; never shown to users"""

    version: str
    entries: Tuple[BasisEntry, ...] = ()

    def get(self, signal: str) -> BasisValue:
        for entry in self.entries:
            if entry.signal == signal:
                return entry.value
        raise KeyError(signal)

    def signals(self, prefix: str) -> Tuple[BasisEntry, ...]:
        return tuple(e for e in self.entries if e.signal.startswith(prefix))


@dataclass(frozen=True)
class DecisionDraft:
    """Engine output before it is stamped with identity and timestamps"""

    risk_level: RiskLevel
    primary_command: PrimaryCommand
    warnings: Tuple[str, ...]
    next_action: NextAction
    basis: DecisionBasis


@dataclass(frozen=True)
class Decision:
    decision_id: str
    user_id: str
    risk_level: RiskLevel
    primary_command: PrimaryCommand
    warnings: Tuple[str, ...]
    next_action: NextAction
    basis: DecisionBasis
    computed_at: datetime
    expires_at: datetime
    is_locked: bool = True
    acknowledged_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def status(self, now: datetime) -> DecisionStatus:
        if self.acknowledged_at is not None:
            return DecisionStatus.ACKNOWLEDGED
        if self.is_expired(now):
            return DecisionStatus.EXPIRED
        return DecisionStatus.COMPUTED

    def acknowledge(self, at: datetime) -> "Decision":
        return replace(self, acknowledged_at=at)


@dataclass(frozen=True)
class Acknowledgement:
    decision: Decision
    outcome: AcknowledgeOutcome


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@dataclass
class Goal:
    goal_id: str
    user_id: str
    name: str
    target_amount_cents: int
    current_amount_cents: int
    start_date: date
    target_date: Optional[date] = None
    status: str = "active"  # active | completed | paused | abandoned
    completed_at: Optional[datetime] = None
    progress: Optional["GoalProgress"] = field(default=None, compare=False)


@dataclass(frozen=True)
class GoalProgress:
    progress_percent: float
    on_track: bool
    projected_completion_date: Optional[date]
    recommended_monthly_contribution_cents: int
