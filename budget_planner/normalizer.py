"""Validation and merging of budget updates.

External actors (the budget coach, the bulk-paste parser, local commands)
never touch a :class:`BudgetState` directly. They produce a partial,
camelCase patch which :func:`apply_update` validates and folds into the
current state, or a set of :class:`LocalAction` tags handled by
:func:`apply_local_action`. Both return a new state and leave the input
untouched.

Input is treated forgivingly: numbers that cannot be parsed become 0,
unknown keys are ignored and malformed list entries are dropped.

Whenever bills are written, every bill is guaranteed a category with the
same name (a "shadow" category planned at the bill amount). Aggregation
already skips categories that mirror a bill, so shadow categories never
change the monthly totals.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from enum import Enum
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from .models import (
    PAY_FREQUENCIES,
    SCALAR_FIELDS,
    UNSCHEDULED,
    BudgetBill,
    BudgetCategory,
    BudgetGoal,
    BudgetState,
    Stock,
    find_by_name,
    normalize_name,
)

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = {
    'incomePerPaycheck',
    'partnerIncome',
    'monthlyBuffer',
    'monthlyInvestment',
    'expectedReturn',
}
INTEGER_FIELDS = {'notificationReminderDays', 'scheduleBias'}
TEXT_FIELDS = {'payFrequency', 'primaryGoal', 'debtStrategy'}
BOOLEAN_FIELDS = set(SCALAR_FIELDS) - NUMERIC_FIELDS - INTEGER_FIELDS - TEXT_FIELDS

PAY_FREQUENCY_ALIASES = {
    'bi-weekly': 'biweekly',
    'every 2 weeks': 'biweekly',
    'every two weeks': 'biweekly',
    'fortnightly': 'biweekly',
}
TRUE_STRINGS = {'true', 'yes', 'y', 'on', '1', 'enabled'}
FALSE_STRINGS = {'false', 'no', 'n', 'off', '0', 'disabled'}


class LocalAction(str, Enum):
    CLEAR_BILLS = 'clear_bills'
    CLEAR_GOALS = 'clear_goals'
    CLEAR_SCHEDULE = 'clear_schedule'
    CLEAR_LABELS = 'clear_labels'
    RESET_PREFERENCES = 'reset_preferences'
    RESET_EVERYTHING = 'reset_everything'


# Preferences restored by RESET_PREFERENCES; income and budget data are kept.
PREFERENCE_ATTRIBUTES = (
    'pay_frequency',
    'primary_goal',
    'auto_suggest',
    'include_partner',
    'partner_income',
    'monthly_buffer',
    'notification_weekly_summary',
    'notification_over_budget',
    'notification_bill_reminders',
    'notification_reminder_days',
    'auto_save_enabled',
    'schedule_bias',
    'debt_strategy',
    'expected_return',
)


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Parse ``value`` as a float, falling back to ``default``.

    Strings may carry a currency sign, thousands separators and spaces.
    Booleans, containers, NaN and infinities all give the default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.replace('$', '').replace(',', '').strip()
        if not value:
            return default
    elif not isinstance(value, Real):
        return default
    number = pd.to_numeric(value, errors='coerce')
    if pd.isna(number) or not math.isfinite(float(number)):
        return default
    return float(number)


def coerce_int(value: Any, default: int = 0) -> int:
    return int(coerce_number(value, default))


def coerce_bool(value: Any) -> Optional[bool]:
    """Interpret common truthy/falsy spellings; ``None`` when unrecognized."""
    if isinstance(value, bool):
        return value
    if isinstance(value, Real):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    return None


def coerce_recurring_day(value: Any) -> Optional[int]:
    """Day of month 1-31, or ``None`` to clear recurrence."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    number = coerce_number(value, default=math.nan)
    if math.isnan(number):
        return None
    return min(31, max(1, int(number)))


def _clean_name(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _dedupe(items: Iterable[Any], kind: str) -> Tuple[Any, ...]:
    seen = set()
    unique: List[Any] = []
    for item in items:
        key = normalize_name(item.name)
        if key in seen:
            logger.info("Dropping duplicate %s %r from update", kind, item.name)
            continue
        seen.add(key)
        unique.append(item)
    return tuple(unique)


def normalize_categories(items: Iterable[Any]) -> Tuple[BudgetCategory, ...]:
    categories = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        name = _clean_name(item.get('name'))
        if not name:
            continue
        categories.append(BudgetCategory(
            name=name,
            planned=coerce_number(item.get('planned')),
            actual=coerce_number(item.get('actual')),
        ))
    return _dedupe(categories, 'category')


def normalize_goals(items: Iterable[Any]) -> Tuple[BudgetGoal, ...]:
    goals = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        name = _clean_name(item.get('name'))
        if not name:
            continue
        goals.append(BudgetGoal(
            name=name,
            amount=coerce_number(item.get('amount')),
            target=coerce_number(item.get('target')),
        ))
    return _dedupe(goals, 'goal')


def normalize_bills(items: Iterable[Any]) -> Tuple[BudgetBill, ...]:
    bills = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        name = _clean_name(item.get('name'))
        if not name:
            continue
        label = item.get('date')
        label = str(label).strip() if label is not None else ''
        bills.append(BudgetBill(
            name=name,
            date=label or UNSCHEDULED,
            amount=coerce_number(item.get('amount')),
            recurring_day=coerce_recurring_day(item.get('recurringDay')),
        ))
    return tuple(bills)


def normalize_stocks(items: Iterable[Any]) -> Tuple[Stock, ...]:
    stocks = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        symbol = _clean_name(item.get('symbol')).upper()
        if not symbol:
            continue
        stocks.append(Stock(
            symbol=symbol,
            shares=coerce_number(item.get('shares')),
            price=coerce_number(item.get('price')),
            monthly=coerce_number(item.get('monthly')),
        ))
    return tuple(stocks)


def normalize_labels(items: Iterable[Any]) -> Tuple[str, ...]:
    labels: List[str] = []
    for item in items:
        label = _clean_name(item)
        if label and label not in labels:
            labels.append(label)
    return tuple(labels)


def ensure_shadow_categories(
    categories: Iterable[BudgetCategory], bills: Iterable[BudgetBill]
) -> Tuple[BudgetCategory, ...]:
    """Append a category for every bill that has no same-named category."""
    result = list(categories)
    for bill in bills:
        if find_by_name(result, bill.name) < 0:
            result.append(BudgetCategory(bill.name, planned=bill.amount, actual=0.0))
    return tuple(result)


def _normalize_pay_frequency(value: Any) -> Optional[str]:
    text = str(value).strip().lower()
    text = PAY_FREQUENCY_ALIASES.get(text, text)
    return text if text in PAY_FREQUENCIES else None


def _scalar_changes(patch: Mapping[str, Any]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    for key, attr in SCALAR_FIELDS.items():
        if key not in patch or patch[key] is None:
            continue
        value = patch[key]
        if key in NUMERIC_FIELDS:
            changes[attr] = coerce_number(value)
        elif key == 'scheduleBias':
            changes[attr] = min(3, max(0, coerce_int(value)))
        elif key == 'notificationReminderDays':
            changes[attr] = max(0, coerce_int(value))
        elif key == 'payFrequency':
            frequency = _normalize_pay_frequency(value)
            if frequency is None:
                logger.warning("Ignoring unknown pay frequency %r", value)
                continue
            changes[attr] = frequency
        elif key in TEXT_FIELDS:
            text = _clean_name(value)
            if text:
                changes[attr] = text
        else:
            flag = coerce_bool(value)
            if flag is not None:
                changes[attr] = flag
    return changes


def _list_value(patch: Mapping[str, Any], key: str) -> Optional[List[Any]]:
    value = patch.get(key)
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def apply_update(
    current: BudgetState,
    patch: Optional[Mapping[str, Any]],
    link_bills: bool = True,
) -> BudgetState:
    """Validate a partial update and merge it into ``current``.

    Scalars present in the patch overwrite the current value after
    coercion. Collections present as lists replace the current collection
    wholesale. When ``link_bills`` is set and the patch carries bills, any
    bill without a matching category gets one.

    Args:
        current: State to update
        patch: camelCase partial document, typically untrusted
        link_bills: Synthesize shadow categories for incoming bills

    Returns:
        The updated state (equal to ``current`` for an empty patch)
    """
    if not isinstance(patch, Mapping) or not patch:
        return current

    changes = _scalar_changes(patch)

    categories = _list_value(patch, 'budgetCategories')
    if categories is not None:
        changes['categories'] = normalize_categories(categories)
    goals = _list_value(patch, 'budgetGoals')
    if goals is not None:
        changes['goals'] = normalize_goals(goals)
    bills = _list_value(patch, 'budgetBills')
    if bills is not None:
        changes['bills'] = normalize_bills(bills)
    labels = _list_value(patch, 'labels')
    if labels is not None:
        changes['labels'] = normalize_labels(labels)
    stocks = _list_value(patch, 'stocks')
    if stocks is not None:
        changes['stocks'] = normalize_stocks(stocks)

    if link_bills and 'bills' in changes:
        changes['categories'] = ensure_shadow_categories(
            changes.get('categories', current.categories), changes['bills']
        )

    if not changes:
        return current
    return replace(current, **changes)


def apply_local_action(
    current: BudgetState, actions: Iterable[LocalAction]
) -> BudgetState:
    """Apply deterministic bulk resets.

    Each action is independent; ``RESET_EVERYTHING`` implies all the others
    and also clears categories and investments and restores default income
    figures, leaving a blank budget.
    """
    selected = set(actions)
    if LocalAction.RESET_EVERYTHING in selected:
        return BudgetState()

    blank = BudgetState()
    changes: Dict[str, Any] = {}
    if LocalAction.CLEAR_BILLS in selected:
        changes['bills'] = ()
    elif LocalAction.CLEAR_SCHEDULE in selected:
        changes['bills'] = tuple(
            replace(bill, date=UNSCHEDULED, recurring_day=None) for bill in current.bills
        )
    if LocalAction.CLEAR_GOALS in selected:
        changes['goals'] = ()
    if LocalAction.CLEAR_LABELS in selected:
        changes['labels'] = ()
    if LocalAction.RESET_PREFERENCES in selected:
        for attr in PREFERENCE_ATTRIBUTES:
            changes[attr] = getattr(blank, attr)

    if not changes:
        return current
    return replace(current, **changes)
