"""Insight cards derived from the weekly cash-flow projection."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .aggregates import BudgetAggregates, compute_aggregates
from .models import BudgetBill, BudgetState, replace_items
from .projection import project_weekly_amounts

TIGHT_WEEK_RATIO = 0.75
PHONE_PATTERN = re.compile(r'phone', re.IGNORECASE)


@dataclass(frozen=True)
class BillMoveSuggestion:
    bill_index: int
    bill_name: str
    target_week: int

    @property
    def message(self) -> str:
        return f"Shift {self.bill_name} to Week {self.target_week} to smooth dips."


@dataclass(frozen=True)
class WeeklyInsights:
    average: float
    max_weekly: float
    best_week: int
    tight_week: int
    best_amount: float
    tight_amount: float
    tight_weeks: Tuple[Tuple[int, float], ...]
    suggestion: Optional[BillMoveSuggestion]


@dataclass(frozen=True)
class TrendSummary:
    values: Tuple[float, ...]
    average: float
    minimum: float
    maximum: float


@dataclass(frozen=True)
class CashflowReport:
    aggregates: BudgetAggregates
    weekly: Tuple[float, ...]
    insights: WeeklyInsights
    trend: TrendSummary


def suggest_bill_move(
    bills: Sequence[BudgetBill], best_week: int
) -> Optional[BillMoveSuggestion]:
    """Pick the bill to nudge into the strongest week.

    A bill with "phone" in its name is preferred, otherwise the first bill.
    No smoothing search is done; with no bills there is no suggestion.
    """
    if not bills:
        return None
    index = next(
        (i for i, bill in enumerate(bills) if PHONE_PATTERN.search(bill.name)),
        0,
    )
    return BillMoveSuggestion(index, bills[index].name, best_week)


def generate_insights(
    weekly: Sequence[float], bills: Sequence[BudgetBill] = ()
) -> WeeklyInsights:
    amounts = np.asarray(weekly, dtype=float)
    average = float(amounts.mean())
    best = int(np.argmax(amounts))
    tight = int(np.argmin(amounts))
    tight_weeks = tuple(
        (index + 1, float(amount))
        for index, amount in enumerate(amounts)
        if amount < average * TIGHT_WEEK_RATIO
    )
    return WeeklyInsights(
        average=average,
        max_weekly=max(float(np.abs(amounts).max()), 1.0),
        best_week=best + 1,
        tight_week=tight + 1,
        best_amount=float(amounts[best]),
        tight_amount=float(amounts[tight]),
        tight_weeks=tight_weeks,
        suggestion=suggest_bill_move(bills, best + 1),
    )


def trend_summary(weekly: Sequence[float], weeks: int = 3) -> TrendSummary:
    """Relative swing of the next few weeks, scaled to the largest magnitude."""
    source = np.asarray(list(weekly)[:weeks], dtype=float)
    scale = max(float(np.abs(source).max()), 1.0)
    return TrendSummary(
        values=tuple(float(v) for v in np.abs(source) / scale),
        average=float(source.mean()),
        minimum=float(source.min()),
        maximum=float(source.max()),
    )


def apply_suggestion(state: BudgetState, suggestion: BillMoveSuggestion) -> BudgetState:
    """Move the suggested bill into its target week.

    The recurring day is cleared, otherwise it would keep pinning the bill
    to its old week.
    """
    bill = state.bills[suggestion.bill_index]
    moved = replace(bill, date=f"Week {suggestion.target_week}", recurring_day=None)
    return replace(state, bills=replace_items(state.bills, suggestion.bill_index, moved))


def build_cashflow(state: BudgetState) -> CashflowReport:
    aggregates = compute_aggregates(state)
    weekly: List[float] = project_weekly_amounts(state, aggregates)
    return CashflowReport(
        aggregates=aggregates,
        weekly=tuple(weekly),
        insights=generate_insights(weekly, state.bills),
        trend=trend_summary(weekly),
    )
