"""Due-date and week-of-month resolution for scheduled bills.

Bills are stored with a free-form ``date`` label (an ISO date, ``"Mar 5"``,
``"Week 2"``, ``"Unscheduled"`` ...) and an optional monthly ``recurring_day``.
The helpers here turn that into either a coarse week bucket (1-4) for the
cash-flow projection or a concrete calendar date for reminders.

None of these functions raise on bad input: unparseable labels degrade to
week 1 or to ``None``.
"""

from __future__ import annotations

import calendar
import math
import re
from datetime import date
from numbers import Number
from typing import Any, Optional

from .models import BudgetBill

ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
US_DATE_PATTERN = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
WEEK_PATTERN = re.compile(r'week\s*(\d+)', re.IGNORECASE)
DAY_PATTERN = re.compile(r'(\d{1,2})')
MONTH_DAY_PATTERN = re.compile(r'^([a-zA-Z]{3,9})\.?\s+(\d{1,2})')
MONTHLY_PATTERN = re.compile(r'^monthly$', re.IGNORECASE)

MONTH_INDEX = {
    'jan': 1,
    'feb': 2,
    'mar': 3,
    'apr': 4,
    'may': 5,
    'jun': 6,
    'jul': 7,
    'aug': 8,
    'sep': 9,
    'sept': 9,
    'oct': 10,
    'nov': 11,
    'dec': 12,
}


def week_for_day(day: int) -> int:
    """Bucket a day of the month into week 1-4 (days 22-31 are week 4)."""
    if day <= 7:
        return 1
    if day <= 14:
        return 2
    if day <= 21:
        return 3
    return 4


def recurring_week(day: int) -> int:
    """Week bucket for a monthly recurring day: ``day // 7`` clamped to 1-4.

    Days 1-13 are week 1, 14-20 week 2, 21-27 week 3 and 28-31 week 4.
    """
    return min(4, max(1, int(day) // 7))


def _valid_recurring_day(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool) or not isinstance(value, Number):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return min(31, max(1, int(value)))


def _parse_iso(label: str) -> Optional[date]:
    if not ISO_DATE_PATTERN.match(label):
        return None
    try:
        return date.fromisoformat(label)
    except ValueError:
        return None


def week_index_of(date_label: Any, recurring_day: Any = None) -> int:
    """Return the week of the month (1-4) a bill falls in.

    Priority: recurring day, ISO date, ``"week N"`` text, the first one or
    two digit number in the label, then week 1.
    """
    day = _valid_recurring_day(recurring_day)
    if day is not None:
        return recurring_week(day)

    label = date_label.strip() if isinstance(date_label, str) else ''

    parsed = _parse_iso(label)
    if parsed is not None:
        return week_for_day(parsed.day)

    week_match = WEEK_PATTERN.search(label)
    if week_match:
        return min(4, max(1, int(week_match.group(1))))

    day_match = DAY_PATTERN.search(label)
    if day_match:
        return week_for_day(int(day_match.group(1)))

    return 1


def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def next_recurring_date(recurring_day: int, reference: date) -> date:
    """Next occurrence of a monthly day on or after ``reference``.

    The day is clamped to 1-31 and then to the length of the month, so a
    bill on the 31st lands on Feb 28/29. If this month's occurrence has
    already passed, the following month is used.
    """
    safe_day = min(31, max(1, int(recurring_day)))
    candidate = _clamped(reference.year, reference.month, safe_day)
    if candidate < reference:
        year = reference.year + reference.month // 12
        month = reference.month % 12 + 1
        candidate = _clamped(year, month, safe_day)
    return candidate


def _month_number(word: str) -> Optional[int]:
    key = word.lower()
    if key in MONTH_INDEX:
        return MONTH_INDEX[key]
    return MONTH_INDEX.get(key[:3])


def parse_due_date(label: Any, reference: date) -> Optional[date]:
    """Parse an explicit due date out of a bill's date label.

    Accepts ``YYYY-MM-DD``, ``M/D/YYYY`` and ``"Mar 5"``/``"March 5"`` (the
    latter in the reference year). Anything else, including impossible
    dates such as ``"Feb 31"``, gives ``None``.
    """
    if not isinstance(label, str) or not label.strip():
        return None
    text = label.strip()

    parsed = _parse_iso(text)
    if parsed is not None:
        return parsed

    us_match = US_DATE_PATTERN.match(text)
    if us_match:
        month, day, year = (int(part) for part in us_match.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    month_match = MONTH_DAY_PATTERN.match(text)
    if month_match:
        month = _month_number(month_match.group(1))
        if month is None:
            return None
        try:
            return date(reference.year, month, int(month_match.group(2)))
        except ValueError:
            return None
    return None


def resolve_due_date(bill: BudgetBill, reference: date) -> Optional[date]:
    """Concrete next due date for a bill, or ``None`` when unresolvable.

    An explicit ISO date wins, then the recurring day of month, then a
    bare ``"Monthly"`` label (the 1st), then the other label formats.
    The result depends only on the bill and ``reference`` so the reminder
    job and the client always agree on it.
    """
    label = bill.date.strip() if isinstance(bill.date, str) else ''

    explicit = _parse_iso(label)
    if explicit is not None:
        return explicit

    day = _valid_recurring_day(bill.recurring_day)
    if day is not None:
        return next_recurring_date(day, reference)

    if MONTHLY_PATTERN.match(label):
        return next_recurring_date(1, reference)

    return parse_due_date(label, reference)


def days_until(due: date, today: date) -> int:
    return (due - today).days
