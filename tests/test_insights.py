from dataclasses import replace

import pytest

from budget_planner.aggregates import compute_aggregates
from budget_planner.insights import (
    BillMoveSuggestion,
    apply_suggestion,
    build_cashflow,
    generate_insights,
    suggest_bill_move,
    trend_summary,
)
from budget_planner.models import BudgetBill, default_state
from budget_planner.recurrence import week_index_of


def test_best_and_tight_weeks():
    insights = generate_insights([100, 500, 20, 300])

    assert insights.average == pytest.approx(230)
    assert insights.best_week == 2
    assert insights.tight_week == 3
    assert insights.best_amount == 500
    assert insights.tight_amount == 20
    assert insights.tight_weeks == ((1, 100), (3, 20))
    assert insights.max_weekly == 500
    assert insights.suggestion is None


def test_flat_zero_projection_has_unit_scale():
    insights = generate_insights([0, 0, 0, 0])
    assert insights.max_weekly == 1.0
    assert insights.tight_weeks == ()


def test_phone_bill_is_preferred_for_a_move():
    suggestion = suggest_bill_move(default_state().bills, best_week=2)

    assert suggestion == BillMoveSuggestion(1, "Phone", 2)
    assert suggestion.message == "Shift Phone to Week 2 to smooth dips."


def test_first_bill_is_used_without_a_phone_bill():
    bills = (BudgetBill("Rent", "Mar 1", 1200), BudgetBill("Gym", "Mar 9", 40))
    assert suggest_bill_move(bills, best_week=4).bill_name == "Rent"


def test_applying_a_suggestion_moves_the_bill():
    state = default_state()
    bills = list(state.bills)
    bills[1] = BudgetBill("Phone", "Mar 5", 80, recurring_day=5)
    state = replace(state, bills=tuple(bills))

    moved = apply_suggestion(state, BillMoveSuggestion(1, "Phone", 3))

    assert moved.bills[1].date == "Week 3"
    assert moved.bills[1].recurring_day is None
    assert week_index_of(moved.bills[1].date, moved.bills[1].recurring_day) == 3
    assert state.bills[1].recurring_day == 5


def test_trend_summary_scales_to_largest_magnitude():
    trend = trend_summary([100, -200, 50, 999])

    assert trend.values == (0.5, 1.0, 0.25)
    assert trend.minimum == -200
    assert trend.maximum == 100


def test_cashflow_report_for_seeded_budget():
    state = default_state()

    report = build_cashflow(state)

    assert report.aggregates == compute_aggregates(state)
    assert sum(report.weekly) == pytest.approx(report.aggregates.left_to_budget)
    assert report.insights.suggestion.bill_name == "Phone"
    assert len(report.trend.values) == 3
