"""Decision lifecycle - compute, current-decision selection, expiry and acknowledgement"""

import uuid
from datetime import timedelta
from typing import List, Optional

from budget_copilot.domain.engine import build_decision
from budget_copilot.domain.exceptions import DecisionNotFoundError
from budget_copilot.domain.locks import UserLocks
from budget_copilot.domain.models import AcknowledgeOutcome, Acknowledgement, Decision
from budget_copilot.domain.policy import DEFAULT_POLICY, EnginePolicy
from budget_copilot.domain.ports import DecisionStore, SnapshotReader
from budget_copilot.utils.clock import Clock


class DecisionStateMachine:
    """
    Owns the persisted decision records of every user.

    A decision is ``computed`` when written, then either ``acknowledged`` or
    ``expired``. The current decision is the user's most recently computed
    one whose expiry has not passed; older rows stay for history.
    """

    def __init__(
        self,
        snapshot_reader: SnapshotReader,
        store: DecisionStore,
        clock: Clock,
        policy: EnginePolicy = DEFAULT_POLICY,
        locks: Optional[UserLocks] = None,
        lock_timeout_seconds: float = 5.0,
    ):
        self._reader = snapshot_reader
        self._store = store
        self._clock = clock
        self._policy = policy
        self._locks = locks if locks is not None else UserLocks()
        self._lock_timeout = lock_timeout_seconds

    def compute(self, user_id: str) -> Decision:
        """
        Build a fresh decision for the user and persist it.

        The decision is fully assembled before anything is written; the store
        inserts it together with the runway audit row and debt projection
        fields as one unit.

        Raises:
            ConcurrentComputeConflictError: another computation holds the user's lock
            InsufficientDataError: no snapshot, accounts or transactions
            StorageError: the store failed; nothing was written
        """
        with self._locks.hold(user_id, self._lock_timeout):
            now = self._clock.now()
            snapshot = self._reader.read(user_id, now.date(), self._policy.runway.lookback_days)
            result = build_decision(snapshot, self._policy)
            draft = result.draft

            decision = Decision(
                decision_id=str(uuid.uuid4()),
                user_id=user_id,
                risk_level=draft.risk_level,
                primary_command=draft.primary_command,
                warnings=draft.warnings,
                next_action=draft.next_action,
                basis=draft.basis,
                computed_at=now,
                expires_at=now + timedelta(hours=self._policy.decision.validity_hours),
            )
            self._store.insert(decision, result.runway, result.debt_projections)
            return decision

    def get_current(self, user_id: str) -> Optional[Decision]:
        """Latest decision for the user, or None when there is none or it has expired"""
        latest = self._store.latest_for_user(user_id)
        if latest is None or latest.is_expired(self._clock.now()):
            return None
        return latest

    def get_or_compute(self, user_id: str) -> Decision:
        current = self.get_current(user_id)
        if current is not None:
            return current
        return self.compute(user_id)

    def acknowledge(self, decision_id: str, user_id: str) -> Acknowledgement:
        """
        Mark a decision as acknowledged by its owner.

        Only the current decision can be acknowledged. Re-acknowledging is a
        success, and so is acknowledging a decision that a newer computation
        (or expiry) has superseded; the outcome tells the two apart.

        Raises:
            DecisionNotFoundError: unknown decision or owned by another user
        """
        decision = self._store.get(decision_id)
        if decision is None or decision.user_id != user_id:
            raise DecisionNotFoundError(f"Decision {decision_id} not found")

        if decision.acknowledged_at is not None:
            return Acknowledgement(decision=decision, outcome=AcknowledgeOutcome.ALREADY_ACKNOWLEDGED)

        now = self._clock.now()
        if self._store.acknowledge_if_current(decision_id, user_id, now):
            return Acknowledgement(decision=decision.acknowledge(now), outcome=AcknowledgeOutcome.ACKNOWLEDGED)

        # Lost the conditional update: either a concurrent acknowledge won or
        # the decision is no longer current
        refreshed = self._store.get(decision_id) or decision
        if refreshed.acknowledged_at is not None:
            return Acknowledgement(decision=refreshed, outcome=AcknowledgeOutcome.ALREADY_ACKNOWLEDGED)
        return Acknowledgement(decision=refreshed, outcome=AcknowledgeOutcome.SUPERSEDED)

    def history(self, user_id: str, limit: int = 20) -> List[Decision]:
        return self._store.history(user_id, limit=limit)
