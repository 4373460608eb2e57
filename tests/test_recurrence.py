from datetime import date

import pytest

from budget_planner.models import BudgetBill
from budget_planner.recurrence import (
    days_until,
    next_recurring_date,
    parse_due_date,
    resolve_due_date,
    recurring_week,
    week_for_day,
    week_index_of,
)


def test_iso_date_lands_in_first_week():
    assert week_index_of("2024-03-01") == 1


def test_recurring_day_takes_priority_over_label():
    assert week_index_of("Week 4", recurring_day=15) == 2
    assert week_index_of("Unscheduled", recurring_day=15) == 2


def test_recurring_day_rolls_into_next_month():
    assert next_recurring_date(15, date(2024, 3, 20)) == date(2024, 4, 15)
    assert next_recurring_date(20, date(2024, 3, 20)) == date(2024, 3, 20)


def test_recurring_day_clamped_to_month_length():
    assert next_recurring_date(31, date(2024, 2, 10)) == date(2024, 2, 29)
    assert next_recurring_date(31, date(2023, 2, 10)) == date(2023, 2, 28)


def test_recurring_day_rolls_over_year_end():
    assert next_recurring_date(10, date(2024, 12, 20)) == date(2025, 1, 10)


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Week 3", 3),
        ("week7", 4),
        ("Week 0", 1),
        ("Mar 19", 3),
        ("Mar 22", 4),
        ("Apr 8", 2),
        ("2024-03-31", 4),
    ],
)
def test_week_index_from_label(label, expected):
    assert week_index_of(label) == expected


@pytest.mark.parametrize(
    "label, recurring_day",
    [
        (None, None),
        ("", None),
        ("Unscheduled", None),
        ("???", None),
        (42, None),
        ("Feb 31", None),
        ("Monthly", float("nan")),
        ("2024-13-45", True),
        ("Mar 5", "15"),
    ],
)
def test_week_index_is_total(label, recurring_day):
    assert week_index_of(label, recurring_day) in (1, 2, 3, 4)


def test_week_for_day_buckets():
    assert [week_for_day(d) for d in (1, 7, 8, 14, 15, 21, 22, 31)] == [1, 1, 2, 2, 3, 3, 4, 4]


def test_parse_due_date_formats():
    reference = date(2024, 1, 15)
    assert parse_due_date("2024-06-01", reference) == date(2024, 6, 1)
    assert parse_due_date("3/5/2024", reference) == date(2024, 3, 5)
    assert parse_due_date("Mar 5", reference) == date(2024, 3, 5)
    assert parse_due_date("March 5", reference) == date(2024, 3, 5)
    assert parse_due_date("Sept 9", reference) == date(2024, 9, 9)


@pytest.mark.parametrize(
    "label",
    ["", "Unscheduled", "Week 2", "Feb 31", "13/5/2024", "Someday 4", None, 12],
)
def test_parse_due_date_rejects_unparseable_labels(label):
    assert parse_due_date(label, date(2024, 1, 15)) is None


def test_resolve_due_date_prefers_explicit_iso_date():
    bill = BudgetBill("Rent", "2024-03-28", 1200, recurring_day=1)
    assert resolve_due_date(bill, date(2024, 3, 5)) == date(2024, 3, 28)


def test_resolve_due_date_uses_recurring_day_then_monthly_label():
    reference = date(2024, 3, 20)
    assert resolve_due_date(BudgetBill("Phone", "Mar 5", 80, 25), reference) == date(2024, 3, 25)
    assert resolve_due_date(BudgetBill("Gym", "Monthly", 40), reference) == date(2024, 4, 1)
    assert resolve_due_date(BudgetBill("Water", "Mar 9", 30), reference) == date(2024, 3, 9)
    assert resolve_due_date(BudgetBill("Misc", "Unscheduled", 10), reference) is None


def test_days_until():
    assert days_until(date(2024, 3, 8), date(2024, 3, 5)) == 3
    assert days_until(date(2024, 3, 1), date(2024, 3, 5)) == -4


@pytest.mark.parametrize(
    "day, expected",
    [(1, 1), (7, 1), (13, 1), (14, 2), (15, 2), (20, 2), (21, 3), (27, 3), (28, 4), (31, 4)],
)
def test_recurring_day_buckets(day, expected):
    assert recurring_week(day) == expected
    assert week_index_of("", recurring_day=day) == expected
