"""CSV export of a budget.

The export is a single CSV file made of titled sections separated by blank
lines: Summary, Monthly bills, Schedule, Goals, Investments and
Preferences. Summary values are the aggregator's numbers rounded to cents,
so re-computing the aggregates from the same state reproduces them.
"""

from __future__ import annotations

import io
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from . import config
from .aggregates import category_table, compute_aggregates, goal_table, project_portfolio
from .formatting import format_currency
from .models import BudgetState

EXPORT_TITLE = 'Budget Planner Export'


def _enabled(flag: bool) -> str:
    return 'Enabled' if flag else 'Disabled'


def _yes_no(flag: bool) -> str:
    return 'Yes' if flag else 'No'


def summary_frame(state: BudgetState) -> pd.DataFrame:
    totals = compute_aggregates(state)
    rows = [
        ('Monthly income', totals.monthly_income),
        ('Planned monthly bills', totals.category_planned_total),
        ('Savings + debt', totals.savings_debt_total),
        ('Monthly investment', totals.monthly_investment),
        ('Safety buffer', totals.safety_buffer),
        ('Left to budget', totals.left_to_budget),
    ]
    return pd.DataFrame(
        [(metric, round(value, 2)) for metric, value in rows],
        columns=['Metric', 'Value'],
    )


def schedule_frame(state: BudgetState) -> pd.DataFrame:
    return pd.DataFrame(
        [(bill.name, bill.display_date, format_currency(bill.amount)) for bill in state.bills],
        columns=['Bill', 'Due date', 'Amount'],
    )


def investments_frame(state: BudgetState) -> pd.DataFrame:
    return pd.DataFrame(
        [
            (
                stock.symbol,
                stock.shares,
                format_currency(stock.price),
                format_currency(stock.monthly),
                format_currency(stock.shares * stock.price),
            )
            for stock in state.stocks
        ],
        columns=['Holding', 'Shares', 'Price', 'Monthly Buy', 'Value'],
    )


def preferences_frame(state: BudgetState) -> pd.DataFrame:
    projection = project_portfolio(state)
    rows: List[Tuple[str, object]] = [
        ('Pay frequency', state.pay_frequency.capitalize()),
        ('Primary goal', state.primary_goal),
        ('Auto-suggest bills', _yes_no(state.auto_suggest)),
        ('Include partner income', _yes_no(state.include_partner)),
        ('Monthly buffer', format_currency(state.monthly_buffer)),
        ('Weekly summary', _enabled(state.notification_weekly_summary)),
        ('Over budget alerts', _enabled(state.notification_over_budget)),
        ('Bill reminders', _enabled(state.notification_bill_reminders)),
        ('Reminder lead days', state.notification_reminder_days),
        ('Auto-save', _enabled(state.auto_save_enabled)),
        ('Debt strategy', state.debt_strategy),
        ('Labels', ' | '.join(state.labels)),
        ('Projected value (12 mo)', format_currency(projection.projected_value)),
        ('Expected annual return', f"{state.expected_return:g}%"),
    ]
    return pd.DataFrame(rows, columns=['Setting', 'Value'])


def export_budget_csv(state: BudgetState, generated_at: Optional[datetime] = None) -> str:
    """Render the whole budget as sectioned CSV text."""
    generated_at = generated_at or datetime.now()
    categories = category_table(state)
    for column in ('Planned', 'Actual'):
        categories[column] = categories[column].map(format_currency)
    goals = goal_table(state).drop(columns=['Status'])
    for column in ('Current', 'Target'):
        goals[column] = goals[column].map(format_currency)

    sections = [
        ('Summary', summary_frame(state)),
        ('Monthly bills', categories),
        ('Schedule', schedule_frame(state)),
        ('Goals', goals),
        ('Investments', investments_frame(state)),
        ('Preferences', preferences_frame(state)),
    ]

    buffer = io.StringIO()
    buffer.write(f"{EXPORT_TITLE}\n")
    buffer.write(f"Generated: {generated_at:%Y-%m-%d %H:%M}\n\n")
    for title, frame in sections:
        buffer.write(f"{title}\n")
        frame.to_csv(buffer, index=False, lineterminator='\n')
        buffer.write('\n')
    return buffer.getvalue()


def write_budget_csv(
    state: BudgetState,
    directory: Optional[Path] = None,
    today: Optional[date] = None,
) -> Path:
    """Write the export to ``budget-export-YYYY-MM-DD.csv`` and return its path."""
    target_dir = Path(directory) if directory is not None else config.EXPORTS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = (today or date.today()).isoformat()
    target = target_dir / f"budget-export-{stamp}.csv"
    target.write_text(export_budget_csv(state), encoding='utf-8')
    return target
