from budget_planner.bill_parser import ParsedBill, merge_parsed_bills, parse_bill_text
from budget_planner.models import UNSCHEDULED, default_state, find_by_name


def test_two_lines_parse_to_two_bills():
    assert parse_bill_text("Rent 1200.00\nPhone 80.00") == [
        ParsedBill("Rent", 1200.0),
        ParsedBill("Phone", 80.0),
    ]


def test_prose_is_not_a_bill_list():
    assert parse_bill_text("just chatting about money") is None
    assert parse_bill_text("can I afford a 300 dollar jacket?") is None
    assert parse_bill_text("Rent 1200") is None
    assert parse_bill_text("") is None
    assert parse_bill_text(None) is None


def test_separators_currency_and_thousands():
    parsed = parse_bill_text("Phone: $80, Car insurance - 1,165; Streaming = 24.99")
    assert parsed == [
        ParsedBill("Phone", 80.0),
        ParsedBill("Car insurance", 1165.0),
        ParsedBill("Streaming", 24.99),
    ]


def test_connectors_are_stripped_from_names():
    parsed = parse_bill_text("Phone 80 and Internet 60")
    assert [item.name for item in parsed] == ["Phone", "Internet"]


def test_repeated_name_keeps_last_amount():
    parsed = parse_bill_text("Rent 1000\nPhone 80\nrent 1200")
    assert {item.name.lower(): item.amount for item in parsed} == {"phone": 80.0, "rent": 1200.0}
    assert len(parsed) == 2


def test_merge_updates_existing_and_adds_new_bills():
    state = default_state()

    merged = merge_parsed_bills(state, [
        ParsedBill("phone", 95),
        ParsedBill("Gym", 40),
        ParsedBill("Rent", 0),
    ])

    phone = merged.bills[find_by_name(merged.bills, "Phone")]
    assert phone.amount == 95
    assert phone.date == "Mar 5"
    assert merged.categories[find_by_name(merged.categories, "Phone")].planned == 95

    gym = merged.bills[find_by_name(merged.bills, "Gym")]
    assert gym.date == UNSCHEDULED
    assert merged.categories[find_by_name(merged.categories, "Gym")].planned == 40

    assert merged.bills[find_by_name(merged.bills, "Rent")].amount == 1200
    assert len(merged.bills) == len(state.bills) + 1
