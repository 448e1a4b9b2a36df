"""Unit tests for command and warning generation"""

from datetime import date, timedelta

from budget_copilot.domain.commands import (
    build_warnings,
    format_cents,
    format_date,
    generate_command,
    interest_cover_amount,
)
from budget_copilot.domain.debts import project_debt
from budget_copilot.domain.models import CommandType, Debt, Obligation, RiskLevel
from budget_copilot.domain.runway import project_runway

AS_OF = date(2026, 3, 2)  # Monday


def runway_for(balance_cents, obligations=(), daily_spend=1_000, days=30, next_income=None):
    return project_runway(balance_cents, list(obligations), [daily_spend] * days, AS_OF, next_income)


def test_format_cents():
    assert format_cents(123_456) == "$1,234.56"
    assert format_cents(5) == "$0.05"
    assert format_cents(100_000_000) == "$1,000,000.00"


def test_format_date():
    assert format_date(AS_OF) == "Mon Mar 2"
    assert format_date(date(2026, 10, 15)) == "Thu Oct 15"


def test_safe_user_gets_weekly_spend():
    runway = runway_for(300_000, next_income=AS_OF + timedelta(days=7))

    plan = generate_command(RiskLevel.SAFE, runway, [], [], AS_OF)

    assert plan.primary_command.type == CommandType.SPEND
    assert plan.primary_command.amount_cents == runway.safe_to_spend_week_cents == 295_000
    assert plan.primary_command.text.startswith("You can spend $2,950.00 this week.")
    assert plan.path == "SAFE_SPEND"


def test_thin_history_waits():
    runway = runway_for(300_000, days=3)

    plan = generate_command(RiskLevel.SAFE, runway, [], [], AS_OF)

    assert plan.primary_command.type == CommandType.WAIT
    assert plan.next_action.reference == "transactions"
    assert plan.path == "INSUFFICIENT_HISTORY"


def test_negative_amortization_pays_interest_cover():
    debt = project_debt(
        Debt("card", "Store card", 100_000, 24.0, minimum_payment_cents=1_000, next_due_date=AS_OF + timedelta(days=4)),
        AS_OF,
    )
    runway = runway_for(50_000)

    plan = generate_command(RiskLevel.CRITICAL, runway, [debt], [], AS_OF)

    assert interest_cover_amount(debt) == 2_100
    assert plan.primary_command.type == CommandType.PAY
    assert plan.primary_command.amount_cents == 2_100
    assert plan.primary_command.target == "Store card"
    assert plan.primary_command.text == (
        "Pay $21.00 to Store card by Fri Mar 6. Anything less and the balance keeps growing."
    )
    assert plan.next_action.reference == "debts/card"
    assert plan.path == "NEGATIVE_AMORTIZATION_PAY"


def test_deficit_freezes_spending():
    rent = Obligation("rent", "Rent", 30_000, AS_OF + timedelta(days=2))
    runway = runway_for(10_000, [rent])

    plan = generate_command(RiskLevel.CRITICAL, runway, [], [rent], AS_OF)

    assert plan.primary_command.type == CommandType.FREEZE
    assert plan.primary_command.amount_cents == 20_000
    assert "$200.00 short" in plan.primary_command.text
    assert plan.path == "CRITICAL_DEFICIT"


def test_danger_sets_a_daily_limit_until_payday():
    rent = Obligation("rent", "Rent", 30_000, AS_OF + timedelta(days=5))
    runway = project_runway(50_000, [rent], [4_000] * 30, AS_OF)

    plan = generate_command(RiskLevel.DANGER, runway, [], [rent], AS_OF)

    assert plan.primary_command.type == CommandType.FREEZE
    assert plan.primary_command.amount_cents == 1_428
    assert plan.primary_command.text == "Do not exceed $14.28/day until Mon Mar 16. Going over means Rent gets missed."
    assert plan.primary_command.date == AS_OF + timedelta(days=14)
    assert plan.path == "DAILY_LIMIT"


def test_warning_pays_debt_minimum_due_before_income():
    debt = project_debt(
        Debt("visa", "Visa", 500_000, 29.99, minimum_payment_cents=15_000, next_due_date=AS_OF + timedelta(days=3)),
        AS_OF,
    )
    runway = runway_for(200_000)

    plan = generate_command(RiskLevel.WARNING, runway, [debt], [], AS_OF)

    assert plan.primary_command.type == CommandType.PAY
    assert plan.primary_command.amount_cents == 15_000
    assert plan.primary_command.text.startswith("Pay the $150.00 minimum to Visa by Thu Mar 5.")
    assert plan.path == "DEBT_MINIMUM"


def test_warning_without_due_debt_saves():
    debt = project_debt(Debt("visa", "Visa", 500_000, 29.99, minimum_payment_cents=15_000), AS_OF)
    runway = runway_for(200_000)

    plan = generate_command(RiskLevel.WARNING, runway, [debt], [], AS_OF)

    assert plan.primary_command.type == CommandType.SAVE
    assert plan.primary_command.amount_cents == 7_000
    assert plan.path == "WARNING_SAVE"


def test_caution_sets_aside_upcoming_bills():
    insurance = Obligation("ins", "Insurance", 60_000, AS_OF + timedelta(days=10))
    runway = runway_for(100_000, [insurance])

    plan = generate_command(RiskLevel.CAUTION, runway, [], [insurance], AS_OF)

    assert plan.primary_command.type == CommandType.SAVE
    assert plan.primary_command.amount_cents == 60_000
    assert plan.primary_command.text == (
        "Set aside $600.00 for 1 bill due in the next 30 days. Avoid large purchases until Thu Mar 12."
    )
    assert plan.path == "CAUTION_SAVE"


def test_warnings_are_capped_and_most_severe_first():
    debt = project_debt(Debt("card", "Store card", 100_000, 24.0, minimum_payment_cents=1_000), AS_OF)
    rent = Obligation("rent", "Rent", 30_000, AS_OF + timedelta(days=2))
    runway = project_runway(20_000, [rent], [4_000] * 30, AS_OF)

    warnings = build_warnings(runway, [debt], [rent], AS_OF)

    assert len(warnings) == 2
    assert warnings[0].startswith("Cash runs ")
    assert warnings[1] == "Rent ($300.00) due in 2 days. You cannot cover it."


def test_covered_bill_warning():
    phone = Obligation("phone", "Phone", 5_000, AS_OF)
    runway = runway_for(300_000, [phone])

    warnings = build_warnings(runway, [], [phone], AS_OF)

    assert warnings == ("Phone ($50.00) due today. You're covered.",)


def test_moderate_debts_do_not_warn():
    debt = project_debt(Debt("car", "Car loan", 800_000, 6.5, minimum_payment_cents=20_000), AS_OF)
    runway = runway_for(300_000)

    assert debt.danger_score < 60
    assert build_warnings(runway, [debt], [], AS_OF) == ()


def test_same_inputs_same_plan():
    rent = Obligation("rent", "Rent", 30_000, AS_OF + timedelta(days=5))
    runway = project_runway(50_000, [rent], [4_000] * 30, AS_OF)

    first = generate_command(RiskLevel.DANGER, runway, [], [rent], AS_OF)
    second = generate_command(RiskLevel.DANGER, runway, [], [rent], AS_OF)

    assert first == second
