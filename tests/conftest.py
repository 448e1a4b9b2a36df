"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime, timedelta, timezone
from typing import Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from budget_copilot.api.dependencies import get_clock
from budget_copilot.api.main import create_app
from budget_copilot.domain.models import (
    Account,
    Debt,
    FinancialSnapshot,
    ScheduledBill,
    ScheduledIncome,
    Transaction,
)
from budget_copilot.infrastructure.database.models import (
    AccountRecord,
    Base,
    DebtRecord,
    GoalRecord,
    ScheduledBillRecord,
    ScheduledIncomeRecord,
    TransactionRecord,
)
from budget_copilot.infrastructure.database.session import get_db
from budget_copilot.utils.clock import FixedClock


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday 2 March 2026, 09:00 UTC
NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, clock: FixedClock) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app)


def daily_expenses(amount_cents: int, days: int, end: date = TODAY, prefix: str = "exp") -> List[Transaction]:
    """One expense per day for ``days`` days, ending the day before ``end``"""
    return [
        Transaction(
            transaction_id=f"{prefix}_{i}",
            date=end - timedelta(days=days - i),
            amount_cents=amount_cents,
            type="expense",
            description="Groceries",
            category="groceries",
        )
        for i in range(days)
    ]


@pytest.fixture
def make_snapshot():
    """Build a snapshot with sensible defaults: one checking account, 30 days of steady spending"""

    def _make(
        balance_cents: int = 50_000,
        daily_spend_cents: int = 4_000,
        history_days: int = 30,
        debts: Optional[List[Debt]] = None,
        bills: Optional[List[ScheduledBill]] = None,
        incomes: Optional[List[ScheduledIncome]] = None,
        transactions: Optional[List[Transaction]] = None,
        accounts: Optional[List[Account]] = None,
        user_id: str = "user_1",
        as_of: date = TODAY,
    ) -> FinancialSnapshot:
        if transactions is None:
            transactions = daily_expenses(daily_spend_cents, history_days, as_of) if history_days else []
        if accounts is None:
            accounts = [Account("acct_checking", "checking", balance_cents)]
        return FinancialSnapshot(
            user_id=user_id,
            as_of=as_of,
            accounts=accounts,
            transactions=transactions,
            debts=debts or [],
            bills=bills or [],
            incomes=incomes or [],
        )

    return _make


@pytest.fixture
def rent_crunch(make_snapshot) -> FinancialSnapshot:
    """$500 cash, $40/day spending, $300 rent due in 5 days, no debts, no scheduled income"""
    return make_snapshot(
        balance_cents=50_000,
        daily_spend_cents=4_000,
        bills=[ScheduledBill("bill_rent", "Rent", 30_000, TODAY + timedelta(days=5), "monthly")],
    )


@pytest.fixture
def seed_user(db: Session):
    """Write a user's accounts, history, bills, income and debts to the test database"""

    def _seed(
        user_id: str = "user_1",
        balance_cents: int = 50_000,
        daily_spend_cents: int = 4_000,
        history_days: int = 30,
        bills=(),
        debts=(),
        incomes=(),
    ) -> None:
        db.add(AccountRecord(id=f"{user_id}_checking", user_id=user_id, name="Checking", type="checking",
                             balance_cents=balance_cents))
        for txn in daily_expenses(daily_spend_cents, history_days, TODAY, prefix=user_id):
            db.add(TransactionRecord(id=txn.transaction_id, user_id=user_id, date=txn.date,
                                     amount_cents=txn.amount_cents, type=txn.type, description=txn.description,
                                     category=txn.category))
        for bill in bills:
            db.add(ScheduledBillRecord(user_id=user_id, **bill))
        for debt in debts:
            db.add(DebtRecord(user_id=user_id, **debt))
        for income in incomes:
            db.add(ScheduledIncomeRecord(user_id=user_id, **income))
        db.commit()

    return _seed


@pytest.fixture
def seed_goal(db: Session):
    def _seed(goal_id: str = "goal_1", user_id: str = "user_1", status: str = "active", **overrides) -> None:
        values = dict(
            id=goal_id,
            user_id=user_id,
            name="Emergency fund",
            target_amount_cents=100_000,
            current_amount_cents=50_000,
            start_date=TODAY - timedelta(days=50),
            target_date=TODAY + timedelta(days=50),
            status=status,
        )
        values.update(overrides)
        db.add(GoalRecord(**values))
        db.commit()

    return _seed
