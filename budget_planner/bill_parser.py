"""Bulk-paste bill parsing.

Users can paste a block of text such as::

    Rent 1200.00
    Phone: $80
    Car insurance - 165, Streaming 24

and get ``name``/``amount`` pairs back. A single amount in a line of prose
is far more likely to be conversation than a bill list, so anything with
fewer than two pairs is rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .models import UNSCHEDULED, BudgetState, find_by_name, to_document
from .normalizer import apply_update

MIN_PAIRS = 2

SEGMENT_SPLIT = re.compile(r'[\n\r;]+|,\s+(?=[A-Za-z])')
BILL_PAIR_PATTERN = re.compile(
    r"(?P<name>[A-Za-z][A-Za-z0-9 &'/.\-]*?)"
    r"\s*[:=\-–]?\s*\$?\s*"
    r"(?P<amount>\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)"
    r"(?![\d,])"
)
LEADING_CONNECTORS = re.compile(r'^(?:and|plus|also)\s+', re.IGNORECASE)


@dataclass(frozen=True)
class ParsedBill:
    name: str
    amount: float


def _clean_bill_name(raw: str) -> str:
    name = LEADING_CONNECTORS.sub('', raw.strip())
    return name.strip(" :=-–.")


def parse_bill_text(text: str) -> Optional[List[ParsedBill]]:
    """Extract bill name/amount pairs from pasted text.

    Returns:
        The pairs in the order they appear (a repeated name keeps its last
        amount), or ``None`` when fewer than two pairs were found.
    """
    if not isinstance(text, str) or not text.strip():
        return None

    found: Dict[str, ParsedBill] = {}
    for segment in SEGMENT_SPLIT.split(text):
        for match in BILL_PAIR_PATTERN.finditer(segment):
            name = _clean_bill_name(match.group('name'))
            if not name:
                continue
            amount = float(match.group('amount').replace(',', ''))
            key = name.lower()
            found.pop(key, None)
            found[key] = ParsedBill(name, amount)

    if len(found) < MIN_PAIRS:
        return None
    return list(found.values())


def merge_parsed_bills(state: BudgetState, parsed: Sequence[ParsedBill]) -> BudgetState:
    """Merge pasted bills into the existing bills and categories.

    Matching is by name (case-insensitive). A nonzero incoming amount
    overwrites the existing one; a zero keeps it. Unknown names become new
    unscheduled bills, each with a category of the same name.
    """
    document = to_document(state)
    bills = document['budgetBills']
    categories = document['budgetCategories']

    for item in parsed:
        bill_index = find_by_name([b['name'] for b in bills], item.name)
        if bill_index >= 0:
            if item.amount:
                bills[bill_index]['amount'] = item.amount
        else:
            bills.append({
                'name': item.name,
                'date': UNSCHEDULED,
                'amount': item.amount,
                'recurringDay': None,
            })

        category_index = find_by_name([c['name'] for c in categories], item.name)
        if category_index >= 0:
            if item.amount:
                categories[category_index]['planned'] = item.amount
        else:
            categories.append({'name': item.name, 'planned': item.amount, 'actual': 0})

    return apply_update(state, {'budgetBills': bills, 'budgetCategories': categories})
