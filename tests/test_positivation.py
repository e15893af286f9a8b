"""Tests for the positivation calculator."""

import pandas as pd
import pytest

from sales_dashboard.analytics.positivation import (
    calculate_customer_distribution,
    calculate_positivation,
    count_active_customers,
    count_reference_population,
)


@pytest.fixture
def window_df(frame_factory):
    return frame_factory([
        {'customer_id': 'C1', 'salesperson_id': 's1', 'salesperson_name': 'Ana'},
        {'customer_id': 'C1', 'salesperson_id': 's1', 'salesperson_name': 'Ana'},
        {'customer_id': 'C2', 'salesperson_id': 's2', 'salesperson_name': 'Bruno'},
        {'customer_id': 'C3', 'salesperson_id': 's1', 'salesperson_name': 'Ana'},
        {'customer_id': 'C9', 'salesperson_id': 's2', 'salesperson_name': 'Bruno',
         'status': 'Cancelled', 'cancelled': True},
    ])


class TestCalculatePositivation:

    def test_with_reference_population(self, window_df):
        result = calculate_positivation(window_df, total_customers=10)

        assert result.active_count == 3
        assert result.reference_population == 10
        assert result.percentage == 30.0
        assert not result.is_self_referential

    def test_rounds_to_one_decimal(self, window_df):
        assert calculate_positivation(window_df, total_customers=9).percentage == 33.3

    def test_zero_population(self, window_df):
        assert calculate_positivation(window_df, total_customers=0).percentage == 0.0

    def test_self_referential_fallback(self, window_df):
        result = calculate_positivation(window_df)

        assert result.is_self_referential
        assert result.reference_population == 3
        assert result.percentage == 100.0

    def test_self_referential_without_activity(self, empty_df):
        result = calculate_positivation(empty_df)

        assert result.is_self_referential
        assert result.active_count == 0
        assert result.percentage == 0.0

    def test_single_salesperson(self, window_df):
        by_id = calculate_positivation(window_df, salesperson='s1', total_customers=4)
        by_name = calculate_positivation(window_df, salesperson='Ana', total_customers=4)

        assert by_id.active_count == 2
        assert by_id.percentage == 50.0
        assert by_name == by_id


def test_cancelled_customers_are_not_active(window_df):
    assert count_active_customers(window_df, salesperson='s2') == 1


@pytest.mark.parametrize('as_type', [list, dict, pd.DataFrame])
def test_reference_population(customers, as_type):
    if as_type is list:
        source = list(customers.values())
    elif as_type is dict:
        source = customers
    else:
        source = pd.DataFrame(list(customers.values()))

    assert count_reference_population(source) == 3
    assert count_reference_population(source, salesperson='s1') == 2
    assert count_reference_population(None) == 0


def test_customer_distribution(customers):
    distribution = calculate_customer_distribution(customers)

    assert distribution['active'] == 2
    assert distribution['inactive'] == 1
    assert distribution['total'] == 3
    assert distribution['active_percent'] == 66.7
    assert distribution['inactive_percent'] == 33.3

    empty = calculate_customer_distribution([])
    assert empty['active_percent'] == 0.0
