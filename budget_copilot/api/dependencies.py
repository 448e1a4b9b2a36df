"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from budget_copilot.config import settings
from budget_copilot.domain.locks import UserLocks
from budget_copilot.domain.policy import EnginePolicy
from budget_copilot.domain.state_machine import DecisionStateMachine
from budget_copilot.infrastructure.database.repositories import SqlDecisionStore, SqlGoalStore, SqlSnapshotReader
from budget_copilot.infrastructure.database.session import get_db
from budget_copilot.utils.clock import Clock, SystemClock

# Shared by every request in the process so compute is serialized per user
user_locks = UserLocks()

_system_clock = SystemClock()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    return _system_clock


def get_policy() -> EnginePolicy:
    return settings.engine_policy()


def get_snapshot_reader(db: Session = Depends(get_db)) -> SqlSnapshotReader:
    return SqlSnapshotReader(db)


def get_goal_store(db: Session = Depends(get_db)) -> SqlGoalStore:
    return SqlGoalStore(db)


def get_state_machine(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    policy: EnginePolicy = Depends(get_policy),
) -> DecisionStateMachine:
    """Provide a state machine bound to this request's session"""
    return DecisionStateMachine(
        snapshot_reader=SqlSnapshotReader(db),
        store=SqlDecisionStore(db),
        clock=clock,
        policy=policy,
        locks=user_locks,
        lock_timeout_seconds=settings.compute_lock_timeout_seconds,
    )
