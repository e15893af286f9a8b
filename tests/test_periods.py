"""Tests for the period resolver."""

import logging
from datetime import date, timedelta

import pytest

from sales_dashboard.analytics.models import DateRange
from sales_dashboard.analytics.periods import (
    filter_by_range,
    resolve_period,
    shift_months,
    split_by_period,
    trailing_months,
)


class TestCalendarMonths:

    def test_month_selector(self):
        window = resolve_period('2025-11')

        assert window.current == DateRange(date(2025, 11, 1), date(2025, 11, 30))
        assert window.previous == DateRange(date(2025, 10, 1), date(2025, 10, 31))
        assert not window.is_fallback

    def test_january_compares_with_previous_december(self):
        window = resolve_period('2025-01')

        assert window.current == DateRange(date(2025, 1, 1), date(2025, 1, 31))
        assert window.previous == DateRange(date(2024, 12, 1), date(2024, 12, 31))

    def test_year_month_tuple_in_leap_year(self):
        window = resolve_period((2024, 3))

        assert window.previous == DateRange(date(2024, 2, 1), date(2024, 2, 29))


class TestRelativeWindows:

    def test_seven_days(self, today):
        window = resolve_period('7', today=today)

        assert window.current == DateRange(date(2025, 11, 14), date(2025, 11, 20))
        assert window.previous == DateRange(date(2025, 11, 7), date(2025, 11, 13))

    @pytest.mark.parametrize('days', [7, 30, 90, 365])
    def test_int_selector_matches_string(self, today, days):
        by_int = resolve_period(days, today=today)
        by_str = resolve_period(str(days), today=today)

        assert by_int.current == by_str.current
        assert by_int.current.days == days
        assert by_int.previous.days == days

    def test_current_month_is_month_to_date(self):
        window = resolve_period('current_month', today=date(2025, 3, 10))

        assert window.current == DateRange(date(2025, 3, 1), date(2025, 3, 10))
        assert window.previous == DateRange(date(2025, 2, 1), date(2025, 2, 28))


@pytest.mark.parametrize('selector', ['7', '30', '90', '365', 'current_month', '2025-01', '2024-03'])
def test_previous_window_directly_precedes_current(today, selector):
    window = resolve_period(selector, today=today)
    assert window.previous.end + timedelta(days=1) == window.current.start


class TestCustomAndFallback:

    def test_custom_range_has_no_comparison(self):
        window = resolve_period('custom', custom_from='2025-01-10', custom_to='20/01/2025')

        assert window.current == DateRange(date(2025, 1, 10), date(2025, 1, 20))
        assert window.previous is None
        assert not window.has_comparison
        assert not window.is_fallback

    @pytest.mark.parametrize('custom_from, custom_to', [
        (None, '2025-01-20'),
        ('2025-01-20', '2025-01-10'),
        ('garbage', '2025-01-10'),
    ])
    def test_bad_custom_range_falls_back(self, custom_from, custom_to):
        window = resolve_period('custom', custom_from=custom_from, custom_to=custom_to)

        assert window.is_fallback
        assert window.current is None

    @pytest.mark.parametrize('selector', [None, '', 'abc', '2025-13', '2025-00', '14', 'last_week'])
    def test_invalid_selector_falls_back(self, selector):
        window = resolve_period(selector)

        assert window.is_fallback
        assert window.current is None
        assert window.previous is None

    def test_invalid_selector_warning_lists_selectors(self, caplog):
        with caplog.at_level(logging.WARNING):
            resolve_period('last_week')

        assert "Invalid period selector: 'last_week'" in caplog.text
        assert "current_month" in caplog.text


def test_shift_months_clamps_day():
    assert shift_months(date(2025, 3, 31), -1) == date(2025, 2, 28)
    assert shift_months(date(2025, 1, 15), -12) == date(2024, 1, 15)
    assert shift_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_trailing_months():
    window = trailing_months(12, date(2025, 11, 20))
    assert window == DateRange(date(2024, 11, 20), date(2025, 11, 20))


class TestSplitByPeriod:

    def test_split_thirty_days(self, sales_df, today):
        current, previous = split_by_period(sales_df, resolve_period('30', today=today))

        assert current['transaction_id'].tolist() == ['t1', 't2', 't3', 't4']
        assert previous['transaction_id'].tolist() == ['t5']

    def test_fallback_uses_whole_collection(self, sales_df):
        current, previous = split_by_period(sales_df, resolve_period('nope'))

        assert len(current) == len(sales_df)
        assert previous.empty

    def test_range_bounds_are_inclusive(self, sales_df):
        day = DateRange(date(2025, 11, 17), date(2025, 11, 17))
        assert filter_by_range(sales_df, day)['transaction_id'].tolist() == ['t1']

    def test_range_without_date_column(self, sales_df):
        day = DateRange(date(2025, 11, 17), date(2025, 11, 17))
        assert filter_by_range(sales_df.drop(columns=['date']), day).empty

    def test_empty_collection(self, empty_df, today):
        current, previous = split_by_period(empty_df, resolve_period('7', today=today))

        assert current.empty
        assert previous.empty
