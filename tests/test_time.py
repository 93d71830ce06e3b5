"""Period and amount helper tests."""
from datetime import date
from decimal import Decimal

import pytest

from moneyflow.core.money import format_amount, parse_amount, round_percent, to_amount
from moneyflow.core.time import (
    YearMonth, format_date, next_period, parse_year_month, period_from_date, prev_period,
)


def test_period_from_date_takes_first_seven_characters():
    assert period_from_date('2025-02-05') == '2025-02'
    assert period_from_date(date(2025, 12, 31)) == '2025-12'


def test_period_navigation_crosses_year_boundary():
    assert next_period('2025-12') == '2026-01'
    assert prev_period('2025-01') == '2024-12'
    assert next_period('2025-03') == '2025-04'


def test_period_keys_sort_chronologically():
    periods = [str(ym) for ym in YearMonth(2024, 11).range_to(YearMonth(2025, 2))]
    assert periods == ['2024-11', '2024-12', '2025-01', '2025-02']
    assert sorted(periods) == periods


def test_parse_year_month_accepts_dates():
    assert parse_year_month('2025-03') == YearMonth(2025, 3)
    assert parse_year_month('2025-03-17') == YearMonth(2025, 3)


@pytest.mark.parametrize('value', ['2025-13', 'march', '2025/03'])
def test_parse_year_month_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_year_month(value)


def test_format_date_validates_strings():
    assert format_date('2025-02-05') == '2025-02-05'
    with pytest.raises(ValueError):
        format_date('2025-02-30')


def test_amounts_are_rounded_to_cents():
    assert to_amount(10) == Decimal('10.00')
    assert to_amount('0.005') == Decimal('0.01')
    assert to_amount(None) == Decimal('0.00')
    assert parse_amount('3,000,000') == Decimal('3000000.00')
    with pytest.raises(ValueError):
        to_amount('abc')


def test_round_percent():
    assert round_percent(1, 3) == 33.3
    assert round_percent(2, 3) == 66.7
    assert round_percent(5, 0) == 0.0


def test_format_amount():
    assert format_amount(Decimal('3000000')) == 'Rp 3,000,000'
    assert format_amount(Decimal('12.5'), symbol='') == '12.50'
