"""Four-week cash-flow projection.

Monthly income is spread across four weekly buckets with a fixed weight
vector. The schedule bias rotates that vector so a different week receives
the largest share. Flat monthly outflows (non-bill categories, investment,
buffer) are amortized evenly, and each bill lands in the week its due date
falls in.

Because the weights sum to one and every outflow is subtracted exactly
once, the four weekly balances always add up to ``left_to_budget``.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import numpy as np

from .aggregates import BudgetAggregates, compute_aggregates
from .models import WEEKLY_BASE_WEIGHTS, BudgetBill, BudgetState
from .recurrence import week_index_of

WEEKS = len(WEEKLY_BASE_WEIGHTS)
BASE_WEIGHTS = np.array(WEEKLY_BASE_WEIGHTS, dtype=float)


def rotated_weights(schedule_bias: int) -> np.ndarray:
    """Weight for each week: ``weight[i] = BASE[(i - bias) mod 4]``."""
    return np.roll(BASE_WEIGHTS, int(schedule_bias) % WEEKS)


def bill_week_totals(bills: Iterable[BudgetBill]) -> np.ndarray:
    totals = np.zeros(WEEKS)
    for bill in bills:
        totals[week_index_of(bill.date, bill.recurring_day) - 1] += bill.amount
    return totals


def project_weekly_amounts(
    state: BudgetState,
    aggregates: Optional[BudgetAggregates] = None,
) -> List[float]:
    """Projected end-of-week balance for each of the four weeks.

    Args:
        state: Budget state to project
        aggregates: Precomputed totals for ``state``; computed when omitted

    Returns:
        Four signed amounts, week 1 first
    """
    totals = aggregates or compute_aggregates(state)
    weights = rotated_weights(state.schedule_bias)
    flat_weekly = (
        totals.planned_category_total
        + totals.monthly_investment
        + totals.safety_buffer
    ) / WEEKS
    weekly = (
        totals.monthly_income * weights
        - flat_weekly
        - bill_week_totals(state.bills)
    )
    return [float(amount) for amount in weekly]
