"""Thread-safe in-memory implementations of the storage ports"""

import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from budget_copilot.domain.models import (
    Account,
    Debt,
    DebtProjection,
    Decision,
    FinancialSnapshot,
    Goal,
    RunwayProjection,
    ScheduledBill,
    ScheduledIncome,
    Transaction,
)


@dataclass
class UserFacts:
    accounts: List[Account] = field(default_factory=list)
    transactions: List[Transaction] = field(default_factory=list)
    debts: List[Debt] = field(default_factory=list)
    bills: List[ScheduledBill] = field(default_factory=list)
    incomes: List[ScheduledIncome] = field(default_factory=list)


class InMemorySnapshotReader:
    def __init__(self):
        self._facts: Dict[str, UserFacts] = {}
        self._lock = threading.Lock()

    def add(
        self,
        user_id: str,
        accounts: Iterable[Account] = (),
        transactions: Iterable[Transaction] = (),
        debts: Iterable[Debt] = (),
        bills: Iterable[ScheduledBill] = (),
        incomes: Iterable[ScheduledIncome] = (),
    ) -> None:
        """Record facts for a user; the stored lists are only touched under the lock"""
        with self._lock:
            facts = self._facts.setdefault(user_id, UserFacts())
            facts.accounts.extend(accounts)
            facts.transactions.extend(transactions)
            facts.debts.extend(debts)
            facts.bills.extend(bills)
            facts.incomes.extend(incomes)

    def read(self, user_id: str, as_of: date, lookback_days: int) -> Optional[FinancialSnapshot]:
        with self._lock:
            facts = self._facts.get(user_id)
            if facts is None:
                return None
            window_start = as_of - timedelta(days=lookback_days)
            return FinancialSnapshot(
                user_id=user_id,
                as_of=as_of,
                accounts=tuple(facts.accounts),
                transactions=tuple(t for t in facts.transactions if t.date is None or window_start <= t.date <= as_of),
                debts=tuple(facts.debts),
                bills=tuple(facts.bills),
                incomes=tuple(facts.incomes),
            )


class InMemoryDecisionStore:
    """
    Decisions kept in insertion order.

    Every method runs under one lock, so insert and the conditional
    acknowledge are atomic with respect to each other.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._decisions: List[Decision] = []
        self.runway_snapshots: List[Tuple[str, RunwayProjection]] = []
        self.debt_projections: Dict[str, DebtProjection] = {}

    def insert(self, decision: Decision, runway: RunwayProjection, debt_projections: Sequence[DebtProjection]) -> None:
        with self._lock:
            self._decisions.append(decision)
            self.runway_snapshots.append((decision.user_id, runway))
            for projection in debt_projections:
                self.debt_projections[projection.debt_id] = projection

    def _index(self, decision_id: str) -> Optional[int]:
        for i, decision in enumerate(self._decisions):
            if decision.decision_id == decision_id:
                return i
        return None

    def _latest(self, user_id: str) -> Optional[Decision]:
        owned = [(d.computed_at, seq, d) for seq, d in enumerate(self._decisions) if d.user_id == user_id]
        if not owned:
            return None
        return max(owned, key=lambda item: (item[0], item[1]))[2]

    def get(self, decision_id: str) -> Optional[Decision]:
        with self._lock:
            index = self._index(decision_id)
            return None if index is None else self._decisions[index]

    def latest_for_user(self, user_id: str) -> Optional[Decision]:
        with self._lock:
            return self._latest(user_id)

    def acknowledge_if_current(self, decision_id: str, user_id: str, at: datetime) -> bool:
        with self._lock:
            latest = self._latest(user_id)
            if latest is None or latest.decision_id != decision_id:
                return False
            if latest.acknowledged_at is not None or latest.is_expired(at):
                return False
            self._decisions[self._index(decision_id)] = latest.acknowledge(at)
            return True

    def history(self, user_id: str, limit: int = 20) -> List[Decision]:
        with self._lock:
            owned = [(d.computed_at, seq, d) for seq, d in enumerate(self._decisions) if d.user_id == user_id]
            owned.sort(key=lambda item: (item[0], item[1]), reverse=True)
            return [d for _, _, d in owned[:limit]]


class InMemoryGoalStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._goals: Dict[str, Goal] = {}

    def get(self, goal_id: str) -> Optional[Goal]:
        with self._lock:
            return self._goals.get(goal_id)

    def save(self, goal: Goal) -> None:
        with self._lock:
            self._goals[goal.goal_id] = goal
