from datetime import date, datetime
from decimal import Decimal

import pytest

from soa.utils import (
    cell_text,
    format_currency,
    format_date,
    format_period,
    normalize_amount,
    normalize_customer_name,
    normalize_date,
)

TODAY = date(2024, 6, 15)


@pytest.mark.parametrize("raw, expected", [
    ("(1,250.50)", Decimal("-1250.50")),
    ("1,234.56", Decimal("1234.56")),
    ("  -75.25 ", Decimal("-75.25")),
    (500, Decimal("500")),
    (12.5, Decimal("12.5")),
    (Decimal("3.10"), Decimal("3.10")),
    ("abc", Decimal("0")),
    ("", Decimal("0")),
    (None, Decimal("0")),
    ("nan", Decimal("0")),
])
def test_normalize_amount(raw, expected):
    assert normalize_amount(raw) == expected


def test_parenthesized_amount_is_negative_even_when_inner_sign_is_negative():
    assert normalize_amount("(-40)") == Decimal("-40")


@pytest.mark.parametrize("day", [1, 9, 12, 13, 28])
@pytest.mark.parametrize("month", [1, 2, 11, 12])
@pytest.mark.parametrize("sep", ["/", "-"])
def test_day_month_year_is_never_swapped(day, month, sep):
    raw = f"{day}{sep}{month}{sep}2023"
    assert normalize_date(raw, today=TODAY) == date(2023, month, day)


def test_zero_padded_day_month_year():
    assert normalize_date("05/01/2024", today=TODAY) == date(2024, 1, 5)


def test_day_month_year_with_impossible_month_falls_back_to_today():
    assert normalize_date("02/13/2024", today=TODAY) == TODAY


def test_spreadsheet_serial_dates():
    assert normalize_date(45292, today=TODAY) == date(2024, 1, 1)
    assert normalize_date(45296.75, today=TODAY) == date(2024, 1, 5)


def test_native_date_cells_pass_through():
    assert normalize_date(datetime(2024, 3, 4, 10, 30), today=TODAY) == date(2024, 3, 4)
    assert normalize_date(date(2024, 3, 4), today=TODAY) == date(2024, 3, 4)


@pytest.mark.parametrize("raw, expected", [
    ("2024-01-15", date(2024, 1, 15)),
    ("2024-01-15T08:00:00", date(2024, 1, 15)),
    ("2024/01/15", date(2024, 1, 15)),
    ("Jan 5, 2024", date(2024, 1, 5)),
    ("5 Jan 2024", date(2024, 1, 5)),
    ("05-Jan-2024", date(2024, 1, 5)),
])
def test_generic_date_formats(raw, expected):
    assert normalize_date(raw, today=TODAY) == expected


@pytest.mark.parametrize("raw", [None, "", "not a date", 0])
def test_unparseable_dates_fall_back_to_today(raw):
    assert normalize_date(raw, today=TODAY) == TODAY


def test_normalize_customer_name():
    assert normalize_customer_name("  Acme\r\nTrading   Co ") == "Acme Trading Co"
    assert normalize_customer_name("Line\n\nBreaks") == "Line Breaks"
    assert normalize_customer_name(None) == "Unknown"
    assert normalize_customer_name("") == "Unknown"


def test_formatting_helpers():
    assert format_currency(Decimal("1300")) == "1,300.00"
    assert format_currency(Decimal("-1234.5")) == "-1,234.50"
    assert format_date(date(2024, 1, 5)) == "01/05/2024"
    assert format_date(None) == ""
    assert format_period(date(2024, 1, 1), date(2024, 1, 31)) == "01/01/2024 - 01/31/2024"


def test_cell_text():
    assert cell_text(1001.0) == "1001"
    assert cell_text(10.5) == "10.5"
    assert cell_text(None) == ""
    assert cell_text(datetime(2024, 1, 5, 9, 0)) == "2024-01-05"
