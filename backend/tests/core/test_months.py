# tests/core/test_months.py
from datetime import date, datetime, timedelta, timezone

import pytest

from backoffice.core.exceptions import InvalidInputError
from backoffice.core.months import month_key, parse_month, previous_month

@pytest.mark.parametrize("raw", ["2024-05", "2024-05-01", "2024-05-17", "2024-05-31T23:00:00-03:00"])
def test_parse_month_normalizes_to_first_day(raw):
    assert parse_month(raw) == date(2024, 5, 1)

def test_parse_month_keeps_calendar_month_of_aware_datetime():
    """Sem conversão de fuso: o mês é o do próprio valor."""
    value = datetime(2024, 6, 1, 0, 30, tzinfo=timezone(timedelta(hours=3)))
    assert parse_month(value) == date(2024, 6, 1)

@pytest.mark.parametrize("raw", ["", "maio", "2024-13", "2024/05", "05-2024"])
def test_parse_month_rejects_malformed_values(raw):
    with pytest.raises(InvalidInputError):
        parse_month(raw)

def test_previous_month_crosses_year_boundary():
    assert previous_month(date(2024, 1, 1)) == date(2023, 12, 1)
    assert previous_month(date(2024, 3, 1)) == date(2024, 2, 1)

def test_month_key_is_iso_first_day():
    assert month_key(parse_month("2024-05")) == "2024-05-01"
