import pytest

from budget_planner.commands import classify_command, describe_actions
from budget_planner.normalizer import LocalAction


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Reset everything please", {LocalAction.RESET_EVERYTHING}),
        ("let's start over", {LocalAction.RESET_EVERYTHING}),
        ("clear my bills", {LocalAction.CLEAR_BILLS}),
        ("Clear   the schedule", {LocalAction.CLEAR_SCHEDULE}),
        ("reset my settings", {LocalAction.RESET_PREFERENCES}),
        ("clear bills and clear labels", {LocalAction.CLEAR_BILLS, LocalAction.CLEAR_LABELS}),
        ("reset all", {LocalAction.RESET_EVERYTHING}),
        ("please reset all.", {LocalAction.RESET_EVERYTHING}),
        ("reset all preferences", {LocalAction.RESET_PREFERENCES}),
        ("reset all my labels", {LocalAction.CLEAR_LABELS}),
        ("delete all of my goals", {LocalAction.CLEAR_GOALS}),
    ],
)
def test_commands_are_recognized(text, expected):
    assert classify_command(text) == frozenset(expected)


@pytest.mark.parametrize(
    "text",
    [
        "please don't clear bills",
        "I do not want to reset everything",
        "never clear my goals",
        "how do I save more each month?",
        "",
    ],
)
def test_negated_or_unrelated_text_is_not_a_command(text):
    assert classify_command(text) == frozenset()


def test_negation_only_covers_its_own_clause():
    assert classify_command("Don’t clear bills, but clear goals") == {LocalAction.CLEAR_GOALS}


def test_non_text_input():
    assert classify_command(None) == frozenset()


def test_descriptions():
    assert describe_actions({LocalAction.CLEAR_GOALS, LocalAction.CLEAR_BILLS}) == (
        "clear all bills, clear all goals"
    )
    assert describe_actions({LocalAction.RESET_EVERYTHING, LocalAction.CLEAR_BILLS}) == (
        "reset everything to a blank budget"
    )


def test_phrases_must_be_whole_words():
    assert classify_command("that was unclear bills wise") == frozenset()
