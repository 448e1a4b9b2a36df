"""Unit tests for debt payoff projection, danger scoring and strategy ranking"""

import pytest
from datetime import date

from budget_copilot.domain.debts import (
    danger_band,
    danger_score,
    days_saved_by_extra,
    effective_minimum_payment,
    monthly_interest_cents,
    payoff_strategies,
    project_debt,
    rank_avalanche,
    rank_snowball,
    simulate_payoff,
)
from budget_copilot.domain.exceptions import MalformedEntityError
from budget_copilot.domain.models import Debt
from budget_copilot.utils.date_utils import add_months

AS_OF = date(2026, 3, 2)


def test_payment_above_interest_pays_off():
    debt = Debt("card", "Visa", 100_000, 24.0, minimum_payment_cents=5_000)

    projection = project_debt(debt, AS_OF)

    assert projection.monthly_interest_cents == 2_000
    assert projection.negative_amortization is False
    assert projection.months_to_payoff is not None
    assert 0 < projection.months_to_payoff < 600
    assert projection.payoff_date == add_months(AS_OF, projection.months_to_payoff)
    assert projection.total_projected_interest_cents > 0
    assert 0 <= projection.danger_score < 100


def test_payment_at_interest_is_negative_amortization():
    debt = Debt("card", "Store card", 100_000, 24.0, minimum_payment_cents=2_000)

    projection = project_debt(debt, AS_OF)

    assert projection.negative_amortization is True
    assert projection.payoff_date is None
    assert projection.months_to_payoff is None
    assert projection.danger_score == 100
    assert danger_band(projection.danger_score) == "severe"


def test_payment_below_interest_reports_a_year_of_accrual():
    schedule = simulate_payoff(100_000, 24.0, 1_000)

    assert schedule.negative_amortization is True
    assert schedule.months is None
    assert schedule.total_interest_cents > 12 * 2_000


def test_zero_apr_pays_off_linearly():
    schedule = simulate_payoff(10_000, 0.0, 3_000)

    assert schedule.months == 4
    assert schedule.total_interest_cents == 0


def test_zero_apr_with_zero_payment_never_pays_off():
    projection = project_debt(Debt("loan", "Family loan", 10_000, 0.0, minimum_payment_cents=0), AS_OF)

    assert projection.payoff_date is None
    assert projection.danger_score == 100


def test_paid_off_debt_scores_zero():
    projection = project_debt(Debt("old", "Closed card", 0, 19.9, minimum_payment_cents=0), AS_OF)

    assert projection.months_to_payoff == 0
    assert projection.danger_score == 0


def test_iteration_cap_falls_back_to_closed_form():
    """Payment one cent above interest: amortizes, but past the 600 month cap"""
    schedule = simulate_payoff(10_000_000, 24.0, 200_001)

    assert schedule.negative_amortization is False
    assert schedule.exceeded_cap is True
    assert schedule.months > 600


def test_missing_minimum_falls_back_to_two_percent():
    debt = Debt("card", "Visa", 123_456, 18.0)

    assert effective_minimum_payment(debt) == 2_470


def test_monthly_interest_rounds_up():
    assert monthly_interest_cents(100_001, 24.0) == 2_001


def test_danger_score_components():
    # 0% APR, 60 months of 1,000 against 60,000: ratio 0.5, payoff 1.0
    assert danger_score(60_000, 0.0, 1_000, 60, False) == 45


def test_danger_score_caps_each_signal():
    assert danger_score(1_000_000, 35.0, 1_000, 900, False) == 100


@pytest.mark.parametrize(
    "score, band",
    [(0, "low"), (29, "low"), (30, "moderate"), (59, "moderate"), (60, "high"), (84, "high"), (85, "severe")],
)
def test_danger_bands(score, band):
    assert danger_band(score) == band


def test_extra_payment_pulls_payoff_forward():
    debt = Debt("loan", "Car loan", 60_000, 0.0, minimum_payment_cents=1_000)

    saved = days_saved_by_extra(debt, 1_000, AS_OF)

    # 60 months down to 30
    assert saved == (date(2031, 3, 2) - date(2028, 9, 2)).days


def test_extra_payment_on_growing_debt_is_not_comparable():
    debt = Debt("card", "Store card", 100_000, 24.0, minimum_payment_cents=1_000)

    assert days_saved_by_extra(debt, 500, AS_OF) is None


@pytest.mark.parametrize(
    "debt",
    [
        Debt("d1", "No balance", None, 20.0, 1_000),
        Debt("d2", "Float balance", 1_000.5, 20.0, 1_000),
        Debt("d3", "Wild APR", 1_000, 250.0, 1_000),
        Debt("d4", "Negative minimum", 1_000, 20.0, -5),
    ],
)
def test_malformed_debt_is_rejected(debt):
    with pytest.raises(MalformedEntityError) as exc_info:
        project_debt(debt, AS_OF)

    assert exc_info.value.kind == "debt"
    assert exc_info.value.entity_id == debt.debt_id


@pytest.fixture
def three_debts():
    return [
        project_debt(Debt("car", "Car loan", 800_000, 6.5, 20_000), AS_OF),
        project_debt(Debt("visa", "Visa", 300_000, 29.99, 9_000), AS_OF),
        project_debt(Debt("store", "Store card", 40_000, 24.99, 2_500), AS_OF),
    ]


def test_avalanche_orders_by_apr_then_balance(three_debts):
    assert [p.debt_id for p in rank_avalanche(three_debts)] == ["visa", "store", "car"]


def test_snowball_orders_by_balance(three_debts):
    assert [p.debt_id for p in rank_snowball(three_debts)] == ["store", "visa", "car"]


def test_snowball_breaks_balance_ties_by_apr():
    debts = [
        project_debt(Debt("low", "Low APR", 50_000, 5.0, 2_000), AS_OF),
        project_debt(Debt("high", "High APR", 50_000, 22.0, 2_000), AS_OF),
    ]

    assert [p.debt_id for p in rank_snowball(debts)] == ["high", "low"]


def test_payoff_strategies_summarize_active_debts(three_debts):
    paid = project_debt(Debt("paid", "Paid off", 0, 10.0, 0), AS_OF)

    strategies = payoff_strategies(three_debts + [paid])

    assert [s.order for s in strategies.avalanche] == [1, 2, 3]
    assert strategies.total_debt_cents == 1_140_000
    assert strategies.total_minimum_payment_cents == 31_500
    assert strategies.total_projected_interest_cents == sum(p.total_projected_interest_cents for p in three_debts)
