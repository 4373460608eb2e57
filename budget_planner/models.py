"""Budget state data model.

The whole budget for one user is a single immutable :class:`BudgetState`
value. Collections are stored as tuples so states compare by value and can
be shared freely between the aggregator, the projector and the normalizer.

The camelCase JSON document produced by :func:`to_document` is the shape
persisted in the state store and exchanged with the budget coach.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

UNSCHEDULED = 'Unscheduled'
PAY_FREQUENCIES = ('weekly', 'biweekly', 'monthly')
PRIMARY_GOALS = ('stability', 'debt', 'savings', 'flex')
DEBT_STRATEGIES = ('avalanche', 'snowball')
WEEKLY_BASE_WEIGHTS = (0.30, 0.25, 0.28, 0.17)
DEFAULT_LABELS = ('Essential', 'Lifestyle', 'Savings')


@dataclass(frozen=True)
class BudgetCategory:
    name: str
    planned: float = 0.0
    actual: float = 0.0


@dataclass(frozen=True)
class BudgetBill:
    name: str
    date: str = UNSCHEDULED
    amount: float = 0.0
    recurring_day: Optional[int] = None

    @property
    def display_date(self) -> str:
        if self.recurring_day is not None:
            return f"Monthly on {self.recurring_day}"
        return self.date


@dataclass(frozen=True)
class BudgetGoal:
    name: str
    amount: float = 0.0
    target: float = 0.0


@dataclass(frozen=True)
class Stock:
    symbol: str
    shares: float = 0.0
    price: float = 0.0
    monthly: float = 0.0


@dataclass(frozen=True)
class BudgetState:
    """Everything one user has configured, plus scalar preferences."""

    income_per_paycheck: float = 0.0
    partner_income: float = 0.0
    pay_frequency: str = 'biweekly'
    primary_goal: str = 'stability'
    auto_suggest: bool = True
    include_partner: bool = False
    monthly_buffer: float = 150.0
    notification_weekly_summary: bool = True
    notification_over_budget: bool = True
    notification_bill_reminders: bool = True
    notification_reminder_days: int = 3
    auto_save_enabled: bool = True
    budget_generated: bool = False
    categories: Tuple[BudgetCategory, ...] = ()
    goals: Tuple[BudgetGoal, ...] = ()
    bills: Tuple[BudgetBill, ...] = ()
    labels: Tuple[str, ...] = ()
    schedule_bias: int = 0
    debt_strategy: str = 'avalanche'
    stocks: Tuple[Stock, ...] = ()
    robinhood_connected: bool = False
    monthly_investment: float = 0.0
    expected_return: float = 7.0


# Document key -> dataclass attribute for every scalar preference.
SCALAR_FIELDS: Dict[str, str] = {
    'incomePerPaycheck': 'income_per_paycheck',
    'partnerIncome': 'partner_income',
    'payFrequency': 'pay_frequency',
    'primaryGoal': 'primary_goal',
    'autoSuggest': 'auto_suggest',
    'includePartner': 'include_partner',
    'monthlyBuffer': 'monthly_buffer',
    'notificationWeeklySummary': 'notification_weekly_summary',
    'notificationOverBudget': 'notification_over_budget',
    'notificationBillReminders': 'notification_bill_reminders',
    'notificationReminderDays': 'notification_reminder_days',
    'autoSaveEnabled': 'auto_save_enabled',
    'budgetGenerated': 'budget_generated',
    'scheduleBias': 'schedule_bias',
    'debtStrategy': 'debt_strategy',
    'robinhoodConnected': 'robinhood_connected',
    'monthlyInvestment': 'monthly_investment',
    'expectedReturn': 'expected_return',
}

COLLECTION_FIELDS: Dict[str, str] = {
    'budgetCategories': 'categories',
    'budgetGoals': 'goals',
    'budgetBills': 'bills',
    'labels': 'labels',
    'stocks': 'stocks',
}

CATEGORIES_SEED: Tuple[BudgetCategory, ...] = (
    BudgetCategory('Rent', 1200, 1200),
    BudgetCategory('Groceries', 420, 368),
    BudgetCategory('Transportation', 220, 245),
    BudgetCategory('Utilities', 160, 142),
    BudgetCategory('Fun money', 180, 126),
    BudgetCategory('Savings', 400, 400),
)

GOALS_SEED: Tuple[BudgetGoal, ...] = (
    BudgetGoal('Emergency fund', 3250, 5000),
    BudgetGoal('Travel fund', 820, 2000),
    BudgetGoal('Debt payoff', 6480, 9200),
)

BILLS_SEED: Tuple[BudgetBill, ...] = (
    BudgetBill('Rent', 'Mar 1', 1200),
    BudgetBill('Phone', 'Mar 5', 80),
    BudgetBill('Car insurance', 'Mar 12', 165),
    BudgetBill('Streaming bundle', 'Mar 19', 24),
)


def normalize_name(name: Any) -> str:
    return str(name or '').strip().lower()


def same_entity(a: Any, b: Any) -> bool:
    """Return True when two names (or named items) refer to the same entity.

    Categories, bills and goals are linked purely by name, compared
    case-insensitively after trimming whitespace. Every merge path goes
    through this predicate.
    """
    left = getattr(a, 'name', a)
    right = getattr(b, 'name', b)
    return normalize_name(left) == normalize_name(right)


def find_by_name(items, name: str) -> int:
    """Index of the first item matching ``name``, or -1."""
    for index, item in enumerate(items):
        if same_entity(item, name):
            return index
    return -1


def default_state() -> BudgetState:
    """Seed state used the first time a user opens the planner."""
    from .normalizer import ensure_shadow_categories

    return BudgetState(
        income_per_paycheck=2100,
        monthly_buffer=150,
        monthly_investment=200,
        categories=ensure_shadow_categories(CATEGORIES_SEED, BILLS_SEED),
        goals=GOALS_SEED,
        bills=BILLS_SEED,
        labels=DEFAULT_LABELS,
    )


def _category_doc(item: BudgetCategory) -> Dict[str, Any]:
    return {'name': item.name, 'planned': item.planned, 'actual': item.actual}


def _goal_doc(item: BudgetGoal) -> Dict[str, Any]:
    return {'name': item.name, 'amount': item.amount, 'target': item.target}


def _bill_doc(item: BudgetBill) -> Dict[str, Any]:
    return {
        'name': item.name,
        'date': item.date,
        'amount': item.amount,
        'recurringDay': item.recurring_day,
    }


def _stock_doc(item: Stock) -> Dict[str, Any]:
    return {
        'symbol': item.symbol,
        'shares': item.shares,
        'price': item.price,
        'monthly': item.monthly,
    }


def to_document(state: BudgetState) -> Dict[str, Any]:
    """Serialize a state into the camelCase JSON document shape."""
    document: Dict[str, Any] = {
        key: getattr(state, attr) for key, attr in SCALAR_FIELDS.items()
    }
    document['budgetCategories'] = [_category_doc(item) for item in state.categories]
    document['budgetGoals'] = [_goal_doc(item) for item in state.goals]
    document['budgetBills'] = [_bill_doc(item) for item in state.bills]
    document['labels'] = list(state.labels)
    document['stocks'] = [_stock_doc(item) for item in state.stocks]
    return document


def from_document(data: Optional[Mapping[str, Any]]) -> BudgetState:
    """Build a state from a stored document.

    Missing (or null) keys fall back to the seeded starter budget from
    :func:`default_state`, and every value passes through the same
    normalization rules used for external updates.
    """
    from .normalizer import apply_update

    if not isinstance(data, Mapping):
        return default_state()
    return apply_update(default_state(), data, link_bills=False)


def replace_items(items, index: int, item) -> Tuple:
    """Return a copy of ``items`` with position ``index`` swapped for ``item``."""
    updated = list(items)
    updated[index] = item
    return tuple(updated)


__all__ = [
    'UNSCHEDULED',
    'PAY_FREQUENCIES',
    'WEEKLY_BASE_WEIGHTS',
    'BudgetCategory',
    'BudgetBill',
    'BudgetGoal',
    'Stock',
    'BudgetState',
    'same_entity',
    'find_by_name',
    'default_state',
    'to_document',
    'from_document',
]
