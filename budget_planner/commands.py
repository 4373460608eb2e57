"""Deterministic recognition of local copilot commands.

Some requests ("reset everything", "clear bills") are handled without the
budget coach. They are found by searching for a fixed table of word-bounded
phrase patterns; a negation just before the phrase ("don't clear bills")
cancels that match.
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, Iterable, Pattern, Tuple

from .normalizer import LocalAction

# A bare "reset all" means everything only when nothing follows it;
# "reset all preferences" or "reset all my labels" are narrower requests.
COMMAND_PHRASES: Tuple[Tuple[str, LocalAction], ...] = (
    (r'reset everything', LocalAction.RESET_EVERYTHING),
    (r'reset all(?!\s*\w)', LocalAction.RESET_EVERYTHING),
    (r'start over', LocalAction.RESET_EVERYTHING),
    (r'start from scratch', LocalAction.RESET_EVERYTHING),
    (r'(?:wipe|clear) everything', LocalAction.RESET_EVERYTHING),
    (r'(?:clear|delete|remove) (?:all )?(?:of )?(?:my |the )?bills', LocalAction.CLEAR_BILLS),
    (r'(?:clear|delete|remove) (?:all )?(?:of )?(?:my |the )?goals', LocalAction.CLEAR_GOALS),
    (r'clear (?:the |my )?schedule', LocalAction.CLEAR_SCHEDULE),
    (r'clear (?:all )?(?:the |my )?due dates', LocalAction.CLEAR_SCHEDULE),
    (r'unschedule all', LocalAction.CLEAR_SCHEDULE),
    (r'(?:clear|delete|remove|reset) (?:all )?(?:of )?(?:my |the )?labels', LocalAction.CLEAR_LABELS),
    (r'reset (?:all )?(?:of )?(?:my )?(?:preferences|settings)', LocalAction.RESET_PREFERENCES),
)

_COMPILED_PHRASES: Tuple[Tuple[Pattern[str], LocalAction], ...] = tuple(
    (re.compile(r'\b' + pattern + r'\b'), action) for pattern, action in COMMAND_PHRASES
)

ACTION_DESCRIPTIONS: Dict[LocalAction, str] = {
    LocalAction.RESET_EVERYTHING: 'reset everything to a blank budget',
    LocalAction.CLEAR_BILLS: 'clear all bills',
    LocalAction.CLEAR_GOALS: 'clear all goals',
    LocalAction.CLEAR_SCHEDULE: 'clear every bill due date',
    LocalAction.CLEAR_LABELS: 'clear all labels',
    LocalAction.RESET_PREFERENCES: 'reset preferences to defaults',
}

NEGATION_PATTERN = re.compile(
    r"\b(?:don't|dont|do not|doesn't|does not|never|not|no need to|without|stop)\b"
)
CLAUSE_BREAK = re.compile(r"[.!?;,]|\bbut\b|\bthen\b|\band\b")
NEGATION_WINDOW = 4


def _normalize(text: str) -> str:
    text = text.lower().replace('’', "'").replace('‘', "'")
    return re.sub(r'\s+', ' ', text).strip()


def _is_negated(text: str, start: int) -> bool:
    """True when the words just before ``start`` in the same clause negate it."""
    clause = CLAUSE_BREAK.split(text[:start])[-1]
    words = clause.split()[-NEGATION_WINDOW:]
    return bool(NEGATION_PATTERN.search(' '.join(words)))


def classify_command(text: str) -> FrozenSet[LocalAction]:
    """Return the local actions requested by ``text`` (empty when none)."""
    if not isinstance(text, str):
        return frozenset()
    normalized = _normalize(text)
    actions = set()
    for pattern, action in _COMPILED_PHRASES:
        for match in pattern.finditer(normalized):
            if not _is_negated(normalized, match.start()):
                actions.add(action)
                break
    return frozenset(actions)


def describe_actions(actions: Iterable[LocalAction]) -> str:
    selected = set(actions)
    if LocalAction.RESET_EVERYTHING in selected:
        return ACTION_DESCRIPTIONS[LocalAction.RESET_EVERYTHING]
    parts = [
        description
        for action, description in ACTION_DESCRIPTIONS.items()
        if action in selected
    ]
    return ', '.join(parts)
