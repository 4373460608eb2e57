"""Monthly budget totals and status classification.

Everything here is a pure function of a :class:`BudgetState`; results are
recomputed in full whenever the state changes.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict

import pandas as pd

from .models import BudgetState, normalize_name

PAY_MULTIPLIERS: Dict[str, int] = {'weekly': 4, 'biweekly': 2, 'monthly': 1}
SAVINGS_DEBT_PATTERN = re.compile(r'savings|debt', re.IGNORECASE)


@dataclass(frozen=True)
class BudgetAggregates:
    monthly_income: float
    planned_bills_total: float
    planned_category_total: float
    savings_debt_total: float
    monthly_investment: float
    safety_buffer: float
    left_to_budget: float
    category_planned_total: float
    category_count: int


@dataclass(frozen=True)
class PortfolioProjection:
    total_value: float
    monthly_contribution: float
    estimated_gain: float
    projected_value: float


def pay_multiplier(pay_frequency: str) -> int:
    """Paychecks per month; unknown cadences count as biweekly."""
    return PAY_MULTIPLIERS.get(str(pay_frequency).lower(), 2)


def monthly_income(state: BudgetState) -> float:
    partner = state.partner_income if state.include_partner else 0.0
    return state.income_per_paycheck * pay_multiplier(state.pay_frequency) + partner


def compute_aggregates(state: BudgetState) -> BudgetAggregates:
    """Compute the monthly totals shown on the budget summary.

    Categories that share a name with a bill are left out of
    ``planned_category_total`` because the bill amount already counts them.
    """
    income = monthly_income(state)
    bill_names = {normalize_name(bill.name) for bill in state.bills}
    planned_bills_total = sum(bill.amount for bill in state.bills)
    planned_category_total = sum(
        category.planned
        for category in state.categories
        if normalize_name(category.name) not in bill_names
    )
    savings_debt_total = sum(
        category.planned
        for category in state.categories
        if SAVINGS_DEBT_PATTERN.search(category.name)
    )
    safety_buffer = max(0.0, state.monthly_buffer)
    left_to_budget = (
        income
        - planned_bills_total
        - planned_category_total
        - state.monthly_investment
        - safety_buffer
    )
    return BudgetAggregates(
        monthly_income=income,
        planned_bills_total=planned_bills_total,
        planned_category_total=planned_category_total,
        savings_debt_total=savings_debt_total,
        monthly_investment=state.monthly_investment,
        safety_buffer=safety_buffer,
        left_to_budget=left_to_budget,
        category_planned_total=sum(category.planned for category in state.categories),
        category_count=len(state.categories),
    )


def category_status(planned: float, actual: float) -> str:
    if actual <= planned * 0.9:
        return 'ahead'
    if actual <= planned * 1.05:
        return 'on-track'
    return 'over'


def goal_status(amount: float, target: float) -> str:
    if target <= 0:
        return 'on-track'
    ratio = amount / target
    if ratio >= 1:
        return 'on-track'
    if ratio >= 0.6:
        return 'ahead'
    return 'over'


def goal_pace(amount: float, target: float) -> str:
    """Progress toward a goal as a whole percentage, capped at 100%."""
    if target <= 0:
        return '0%'
    return f"{min(100, math.floor(amount / target * 100 + 0.5))}%"


def project_portfolio(state: BudgetState) -> PortfolioProjection:
    """Rough 12-month value of the investment holdings.

    Existing holdings earn a full year at ``expected_return``; monthly
    contributions earn half a year on average.
    """
    total_value = sum(stock.shares * stock.price for stock in state.stocks)
    contribution = sum(stock.monthly for stock in state.stocks) + state.monthly_investment
    rate = state.expected_return / 100
    gain = total_value * rate + contribution * 12 * (rate / 2)
    return PortfolioProjection(
        total_value=total_value,
        monthly_contribution=contribution,
        estimated_gain=gain,
        projected_value=total_value + contribution * 12 + gain,
    )


def category_table(state: BudgetState) -> pd.DataFrame:
    """Planned vs actual per category with a status column."""
    columns = ['Bill', 'Planned', 'Actual', 'Status']
    if not state.categories:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(
        [(c.name, c.planned, c.actual) for c in state.categories],
        columns=columns[:3],
    )
    df['Status'] = [category_status(p, a) for p, a in zip(df['Planned'], df['Actual'])]
    return df


def goal_table(state: BudgetState) -> pd.DataFrame:
    columns = ['Goal', 'Current', 'Target', 'Progress', 'Status']
    if not state.goals:
        return pd.DataFrame(columns=columns)
    df = pd.DataFrame(
        [(g.name, g.amount, g.target) for g in state.goals],
        columns=columns[:3],
    )
    df['Progress'] = [goal_pace(a, t) for a, t in zip(df['Current'], df['Target'])]
    df['Status'] = [goal_status(a, t) for a, t in zip(df['Current'], df['Target'])]
    return df
