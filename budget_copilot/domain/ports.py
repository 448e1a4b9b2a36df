"""Collaborator interfaces the decision engine depends on"""

from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

from budget_copilot.domain.models import Decision, DebtProjection, FinancialSnapshot, Goal, RunwayProjection


class SnapshotReader(Protocol):
    """Reads the facts one computation needs. Pure read, no business logic."""

    def read(self, user_id: str, as_of: date, lookback_days: int) -> Optional[FinancialSnapshot]:
        """Return None when no snapshot is available for the user"""
        ...


class DecisionStore(Protocol):
    def insert(
        self,
        decision: Decision,
        runway: RunwayProjection,
        debt_projections: Sequence[DebtProjection],
    ) -> None:
        """Write the decision, its runway audit row and debt projection fields as one unit"""
        ...

    def get(self, decision_id: str) -> Optional[Decision]:
        ...

    def latest_for_user(self, user_id: str) -> Optional[Decision]:
        """Most recent by computed_at, insertion order breaking ties; expiry not applied"""
        ...

    def acknowledge_if_current(self, decision_id: str, user_id: str, at: datetime) -> bool:
        """Set acknowledged_at only if the decision is the user's latest, unexpired and unacknowledged"""
        ...

    def history(self, user_id: str, limit: int = 20) -> List[Decision]:
        ...


class GoalStore(Protocol):
    def get(self, goal_id: str) -> Optional[Goal]:
        ...

    def save(self, goal: Goal) -> None:
        ...
