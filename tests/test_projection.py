import pytest

from budget_planner.aggregates import compute_aggregates
from budget_planner.models import BudgetBill, BudgetCategory, BudgetState, default_state
from budget_planner.projection import bill_week_totals, project_weekly_amounts, rotated_weights


def _build_household_state(bias):
    return BudgetState(
        income_per_paycheck=950.5,
        pay_frequency="weekly",
        partner_income=1200,
        include_partner=True,
        monthly_buffer=175,
        monthly_investment=60,
        schedule_bias=bias,
        categories=(
            BudgetCategory("Groceries", 510.25),
            BudgetCategory("Internet", 70),
        ),
        bills=(
            BudgetBill("Internet", "Monthly", 70, recurring_day=27),
            BudgetBill("Loan", "2024-05-09", 310.4),
            BudgetBill("Gym", "Week 3", 45),
            BudgetBill("Misc", "Unscheduled", 19.99),
        ),
    )


def _build_states(bias):
    seeded = default_state()
    return [
        BudgetState(schedule_bias=bias),
        BudgetState(
            income_per_paycheck=seeded.income_per_paycheck,
            categories=seeded.categories,
            bills=seeded.bills,
            monthly_buffer=seeded.monthly_buffer,
            monthly_investment=seeded.monthly_investment,
            schedule_bias=bias,
        ),
        _build_household_state(bias),
    ]


@pytest.mark.parametrize("bias", [0, 1, 2, 3])
@pytest.mark.parametrize("index", [0, 1, 2])
def test_weekly_amounts_sum_to_left_to_budget(bias, index):
    state = _build_states(bias)[index]

    weekly = project_weekly_amounts(state)

    assert len(weekly) == 4
    assert sum(weekly) == pytest.approx(compute_aggregates(state).left_to_budget)


def test_rotated_weights():
    assert rotated_weights(0).tolist() == [0.30, 0.25, 0.28, 0.17]
    assert rotated_weights(1).tolist() == [0.17, 0.30, 0.25, 0.28]
    assert rotated_weights(5).tolist() == rotated_weights(1).tolist()
    assert rotated_weights(2).sum() == pytest.approx(1.0)


def test_income_only_follows_weights():
    state = BudgetState(income_per_paycheck=1000, pay_frequency="monthly", monthly_buffer=0)
    assert project_weekly_amounts(state) == pytest.approx([300, 250, 280, 170])


def test_bills_land_in_their_due_week():
    totals = bill_week_totals(default_state().bills)
    assert totals.tolist() == [1280, 165, 24, 0]


def test_precomputed_aggregates_are_used():
    state = default_state()
    aggregates = compute_aggregates(state)
    assert project_weekly_amounts(state, aggregates) == project_weekly_amounts(state)
