"""Direct edits to a budget state.

These are the actions a user performs by hand in the workspace (adding a
category, scheduling a bill, ...). Like the normalizer they take a state
and return a new one. Duplicate names are rejected with
:class:`~budget_planner.errors.DuplicateNameError` instead of silently
overwriting.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .aggregates import monthly_income
from .errors import DuplicateNameError
from .models import (
    CATEGORIES_SEED,
    UNSCHEDULED,
    BudgetBill,
    BudgetCategory,
    BudgetGoal,
    BudgetState,
    find_by_name,
    replace_items,
    same_entity,
)
from .normalizer import coerce_number, coerce_recurring_day, ensure_shadow_categories

SUGGESTION_BASE_INCOME = 4200
DEFAULT_GOAL_TARGET = 1000
GOAL_EXTRAS = {
    'debt': ('Debt payments', 250),
    'savings': ('High-yield savings', 300),
}


def _require_name(name: str, kind: str) -> str:
    cleaned = (name or '').strip()
    if not cleaned:
        raise ValueError(f"Add a {kind} name first.")
    return cleaned


def _index_or_raise(items, name: str, kind: str) -> int:
    index = find_by_name(items, name)
    if index < 0:
        raise KeyError(f"No {kind} named {name!r}")
    return index


def add_category(state: BudgetState, name: str, planned=0, actual=0) -> BudgetState:
    name = _require_name(name, 'bill')
    if find_by_name(state.categories, name) >= 0:
        raise DuplicateNameError('category', name, "That bill already exists.")
    category = BudgetCategory(name, coerce_number(planned), coerce_number(actual))
    return replace(state, categories=state.categories + (category,))


def update_category(state: BudgetState, name: str, planned=None, actual=None) -> BudgetState:
    """Edit a category's planned/actual amounts.

    A bill with the same name follows the new planned amount.
    """
    index = _index_or_raise(state.categories, name, 'category')
    category = state.categories[index]
    updated = replace(
        category,
        planned=category.planned if planned is None else coerce_number(planned),
        actual=category.actual if actual is None else coerce_number(actual),
    )
    bills = tuple(
        replace(bill, amount=updated.planned) if same_entity(bill, name) else bill
        for bill in state.bills
    )
    return replace(
        state,
        categories=replace_items(state.categories, index, updated),
        bills=bills,
    )


def remove_category(state: BudgetState, name: str) -> BudgetState:
    """Delete a category and every bill with the same name."""
    return replace(
        state,
        categories=tuple(c for c in state.categories if not same_entity(c, name)),
        bills=tuple(b for b in state.bills if not same_entity(b, name)),
    )


def add_goal(state: BudgetState, name: str, target=None) -> BudgetState:
    name = _require_name(name, 'goal')
    if find_by_name(state.goals, name) >= 0:
        raise DuplicateNameError('goal', name, "That goal already exists.")
    goal_target = coerce_number(target, DEFAULT_GOAL_TARGET) or DEFAULT_GOAL_TARGET
    return replace(state, goals=state.goals + (BudgetGoal(name, 0.0, goal_target),))


def update_goal(
    state: BudgetState,
    name: str,
    new_name: Optional[str] = None,
    amount=None,
    target=None,
) -> BudgetState:
    index = _index_or_raise(state.goals, name, 'goal')
    goal = state.goals[index]
    renamed = _require_name(new_name, 'goal') if new_name is not None else goal.name
    clash = find_by_name(state.goals, renamed)
    if clash >= 0 and clash != index:
        raise DuplicateNameError('goal', renamed, "That goal already exists.")
    updated = BudgetGoal(
        renamed,
        goal.amount if amount is None else coerce_number(amount),
        goal.target if target is None else coerce_number(target),
    )
    return replace(state, goals=replace_items(state.goals, index, updated))


def remove_goal(state: BudgetState, name: str) -> BudgetState:
    return replace(state, goals=tuple(g for g in state.goals if not same_entity(g, name)))


def add_label(state: BudgetState, label: str) -> BudgetState:
    label = (label or '').strip()
    if not label:
        raise ValueError("Label name is required.")
    if label in state.labels:
        raise DuplicateNameError('label', label, "Label already exists.")
    return replace(state, labels=state.labels + (label,))


def remove_label(state: BudgetState, label: str) -> BudgetState:
    return replace(state, labels=tuple(item for item in state.labels if item != label))


def schedule_bill(
    state: BudgetState,
    name: str,
    date: str,
    amount,
    recurring_day=None,
) -> BudgetState:
    """Add a bill or reschedule the existing bill with the same name."""
    name = _require_name(name, 'bill')
    bill = BudgetBill(
        name,
        (date or '').strip() or UNSCHEDULED,
        coerce_number(amount),
        coerce_recurring_day(recurring_day),
    )
    index = find_by_name(state.bills, name)
    if index < 0:
        bills = state.bills + (bill,)
    else:
        bills = replace_items(state.bills, index, replace(bill, name=state.bills[index].name))
    return replace(
        state,
        bills=bills,
        categories=ensure_shadow_categories(state.categories, bills),
    )


def _follow_bill(categories, old_name: str, bill: BudgetBill):
    """Rename/re-plan the category mirroring ``old_name`` so it tracks ``bill``.

    If another category already carries the new name, that one is kept and
    the old mirror is dropped.
    """
    index = find_by_name(categories, old_name)
    if index < 0:
        return tuple(categories)
    target = find_by_name(categories, bill.name)
    if target >= 0 and target != index:
        categories = replace_items(
            categories, target, replace(categories[target], planned=bill.amount)
        )
        return categories[:index] + categories[index + 1:]
    return replace_items(
        categories, index, replace(categories[index], name=bill.name, planned=bill.amount)
    )


def update_bill(state: BudgetState, index: int, **fields) -> BudgetState:
    """Edit one bill by position; ``fields`` may hold name, date, amount, recurring_day.

    The bill's same-named category follows a rename or a new amount.
    """
    bill = state.bills[index]
    changes = {}
    if 'name' in fields:
        changes['name'] = _require_name(fields['name'], 'bill')
    if 'date' in fields:
        changes['date'] = (fields['date'] or '').strip() or UNSCHEDULED
    if 'amount' in fields:
        changes['amount'] = coerce_number(fields['amount'])
    if 'recurring_day' in fields:
        changes['recurring_day'] = coerce_recurring_day(fields['recurring_day'])
    updated = replace(bill, **changes)
    bills = replace_items(state.bills, index, updated)
    categories = state.categories
    if updated.name != bill.name or updated.amount != bill.amount:
        categories = _follow_bill(categories, bill.name, updated)
    return replace(
        state,
        bills=bills,
        categories=ensure_shadow_categories(categories, bills),
    )


def remove_bill(state: BudgetState, index: int) -> BudgetState:
    bills = state.bills[:index] + state.bills[index + 1:]
    return replace(state, bills=bills)


def generate_budget(state: BudgetState) -> BudgetState:
    """Build a starter budget sized to the user's income.

    With auto-suggest on, the seed categories are scaled by monthly income
    relative to a 4200 baseline, plus one extra line for a debt or savings
    primary goal. With it off, only the generated flag changes.
    """
    if not state.auto_suggest:
        return replace(state, budget_generated=True)
    income = monthly_income(state)
    scale = income / SUGGESTION_BASE_INCOME if income > 0 else 1
    categories = [
        BudgetCategory(c.name, round(c.planned * scale), round(c.actual * scale))
        for c in CATEGORIES_SEED
    ]
    extra = GOAL_EXTRAS.get(state.primary_goal)
    if extra is not None:
        categories.append(BudgetCategory(extra[0], round(extra[1] * scale), 0))
    return replace(
        state,
        categories=ensure_shadow_categories(categories, state.bills),
        budget_generated=True,
    )
