import pytest

from budget_planner.aggregates import (
    category_status,
    category_table,
    compute_aggregates,
    goal_pace,
    goal_status,
    goal_table,
    monthly_income,
    pay_multiplier,
    project_portfolio,
)
from budget_planner.models import BudgetBill, BudgetCategory, BudgetGoal, BudgetState, Stock


def _build_state(**overrides):
    values = dict(
        income_per_paycheck=2100,
        pay_frequency="biweekly",
        monthly_buffer=0,
        monthly_investment=0,
    )
    values.update(overrides)
    return BudgetState(**values)


def test_biweekly_income_doubles_paycheck():
    assert monthly_income(_build_state()) == 4200


def test_pay_multipliers():
    assert pay_multiplier("weekly") == 4
    assert pay_multiplier("monthly") == 1
    assert pay_multiplier("biweekly") == 2
    assert pay_multiplier("yearly") == 2


def test_partner_income_only_counts_when_included():
    state = _build_state(partner_income=800)
    assert monthly_income(state) == 4200
    assert monthly_income(_build_state(partner_income=800, include_partner=True)) == 5000


def test_categories_without_bills_reduce_left_to_budget():
    state = _build_state(categories=(
        BudgetCategory("Rent", 1200, 1200),
        BudgetCategory("Groceries", 420, 368),
    ))

    totals = compute_aggregates(state)

    assert totals.planned_category_total == 1620
    assert totals.planned_bills_total == 0
    assert totals.left_to_budget == 4200 - 1620


def test_category_mirroring_a_bill_is_not_double_counted():
    state = _build_state(
        categories=(BudgetCategory("Rent", 1200, 0), BudgetCategory("Groceries", 400, 0)),
        bills=(BudgetBill("rent", "2024-03-01", 1200),),
    )

    totals = compute_aggregates(state)

    assert totals.planned_bills_total == 1200
    assert totals.planned_category_total == 400
    assert totals.category_planned_total == 1600
    assert totals.left_to_budget == 4200 - 1200 - 400


def test_investment_and_buffer_are_subtracted():
    state = _build_state(monthly_investment=200, monthly_buffer=150)
    assert compute_aggregates(state).left_to_budget == 4200 - 350


def test_negative_buffer_is_floored_at_zero():
    totals = compute_aggregates(_build_state(monthly_buffer=-50))
    assert totals.safety_buffer == 0
    assert totals.left_to_budget == 4200


def test_savings_and_debt_categories_are_totalled():
    state = _build_state(categories=(
        BudgetCategory("High-yield savings", 300),
        BudgetCategory("Debt payments", 250),
        BudgetCategory("Groceries", 400),
    ))
    assert compute_aggregates(state).savings_debt_total == 550


def test_category_status_thresholds():
    assert category_status(100, 90) == "ahead"
    assert category_status(100, 100) == "on-track"
    assert category_status(100, 105) == "on-track"
    assert category_status(100, 106) == "over"


def test_goal_status_and_pace():
    assert goal_status(5000, 5000) == "on-track"
    assert goal_status(3250, 5000) == "ahead"
    assert goal_status(820, 2000) == "over"
    assert goal_pace(3250, 5000) == "65%"
    assert goal_pace(6000, 5000) == "100%"
    assert goal_pace(10, 0) == "0%"


def test_portfolio_projection():
    state = _build_state(
        stocks=(Stock("VTI", 10, 200, 50),),
        monthly_investment=100,
        expected_return=10,
    )

    projection = project_portfolio(state)

    assert projection.total_value == pytest.approx(2000)
    assert projection.monthly_contribution == pytest.approx(150)
    assert projection.estimated_gain == pytest.approx(290)
    assert projection.projected_value == pytest.approx(4090)


def test_status_tables():
    state = _build_state(
        categories=(BudgetCategory("Fun money", 180, 126), BudgetCategory("Transportation", 220, 245)),
        goals=(BudgetGoal("Emergency fund", 3250, 5000),),
    )

    categories = category_table(state)
    goals = goal_table(state)

    assert list(categories.columns) == ["Bill", "Planned", "Actual", "Status"]
    assert categories["Status"].tolist() == ["ahead", "over"]
    assert goals.loc[0, "Progress"] == "65%"
    assert goals.loc[0, "Status"] == "ahead"


def test_status_tables_handle_empty_state():
    assert category_table(BudgetState()).empty
    assert goal_table(BudgetState()).empty
