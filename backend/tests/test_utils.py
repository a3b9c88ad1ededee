from datetime import date, datetime, timedelta

import pytest

from exceptions import InvalidDate, InvalidInput
from utils.date_utils import parse_date_only, today_local, validate_entry_date
from utils.formatting import amount_to_words, format_indian_currency
from utils.validation import require_count, require_positive

START = date(2024, 1, 1)


@pytest.mark.parametrize("value, expected", [
    (date(2024, 1, 5), date(2024, 1, 5)),
    (datetime(2024, 1, 5, 23, 59), date(2024, 1, 5)),
    ("2024-01-05", date(2024, 1, 5)),
    ("2024-01-05T10:30:00", date(2024, 1, 5)),
    ("", None),
    (None, None),
    ("yesterday-ish", None),
])
def test_parse_date_only(value, expected):
    assert parse_date_only(value) == expected


def test_validate_entry_date_bounds():
    assert validate_entry_date("2024-01-01", START) == START
    assert validate_entry_date(today_local(), START) == today_local()
    with pytest.raises(InvalidDate):
        validate_entry_date(today_local() + timedelta(days=1), START)
    with pytest.raises(InvalidDate):
        validate_entry_date(date(2023, 12, 31), START)
    with pytest.raises(InvalidDate):
        validate_entry_date(None, START)


def test_number_validators():
    assert require_positive("2.5", "bags") == 2.5
    assert require_count(3.0, "birds", positive=True) == 3
    with pytest.raises(InvalidInput):
        require_positive(True, "bags")
    with pytest.raises(InvalidInput):
        require_count(0, "birds", positive=True)
    with pytest.raises(InvalidInput):
        require_count("x", "mortality")


def test_indian_currency_grouping():
    assert format_indian_currency(99000) == "₹ 99,000.00"
    assert format_indian_currency(12345678.5) == "₹ 1,23,45,678.50"
    assert format_indian_currency(-1500) == "₹ -1,500.00"
    assert format_indian_currency(999) == "₹ 999.00"


def test_amount_to_words():
    assert amount_to_words(99000) == "Ninety Nine Thousand"
    assert amount_to_words(0.5) == "Zero and Fifty Paise"
    assert amount_to_words(1999.999) == "Two Thousand"
    assert amount_to_words(1250000) == "Twelve Lakh Fifty Thousand"
