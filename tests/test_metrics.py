"""Tests for KPI aggregation and period comparison."""

import math

import pandas as pd
import pytest

from sales_dashboard.analytics.metrics import (
    SalesMetrics,
    aggregate_by_salesperson,
    calculate_delta,
    calculate_goal_attainment,
    calculate_metrics_with_comparison,
    calculate_window_metrics,
    group_by_week_of_month,
    group_by_weekday,
    sales_share_by_dimension,
)
from sales_dashboard.analytics.periods import resolve_period, split_by_period


@pytest.fixture
def windows(sales_df, today):
    return split_by_period(sales_df, resolve_period('30', today=today))


class TestCalculateDelta:

    @pytest.mark.parametrize('current, expected', [(5, 100.0), (0.01, 100.0), (0, 0.0)])
    def test_zero_baseline(self, current, expected):
        assert calculate_delta(current, 0) == expected

    def test_regular_change(self):
        assert calculate_delta(150, 100) == pytest.approx(50.0)
        assert calculate_delta(50, 100) == pytest.approx(-50.0)
        assert calculate_delta(0, 100) == pytest.approx(-100.0)

    def test_non_finite_inputs(self):
        assert calculate_delta(float('nan'), 0) == 0.0
        assert calculate_delta(10, float('inf')) == 100.0
        assert calculate_delta(None, None) == 0.0


def test_goal_attainment():
    assert calculate_goal_attainment(500, 1000) == pytest.approx(50.0)
    assert calculate_goal_attainment(500, 0) == 0.0
    assert calculate_goal_attainment(500, None) == 0.0
    assert calculate_goal_attainment(500, -10) == 0.0


class TestWindowMetrics:

    def test_average_ticket(self, frame_factory):
        df = frame_factory([{'value': 100.0}, {'value': 200.0}, {'value': 300.0}])
        assert calculate_window_metrics(df)['average_ticket'] == pytest.approx(200.0)

    def test_current_window(self, windows):
        current, _ = windows
        metrics = calculate_window_metrics(current)

        assert metrics['total_value'] == pytest.approx(1000.0)
        assert metrics['deal_count'] == 3
        assert metrics['units_sold'] == pytest.approx(9.0)
        assert metrics['active_customers'] == 3
        assert metrics['active_salespeople'] == 2

    def test_empty_window(self, empty_df):
        metrics = calculate_window_metrics(empty_df)

        assert all(value == 0 for value in metrics.values())


class TestMetricsWithComparison:

    def test_snapshot(self, windows):
        current, previous = windows
        snapshot = calculate_metrics_with_comparison(current, previous, goal=2000)

        assert snapshot.total_value.value == pytest.approx(1000.0)
        assert snapshot.total_value.delta == pytest.approx(400.0)
        assert snapshot.deal_count.delta == pytest.approx(200.0)
        assert snapshot.average_ticket.delta == pytest.approx((1000 / 3 - 200) / 200 * 100)
        assert snapshot.units_sold.delta == pytest.approx(350.0)
        assert snapshot.active_customers.delta == pytest.approx(200.0)
        assert snapshot.active_salespeople.delta == pytest.approx(100.0)
        assert snapshot.goal_attainment.value == pytest.approx(50.0)
        assert snapshot.goal_attainment.delta == 0.0
        assert snapshot.goal == 2000.0

    def test_empty_windows_are_all_zero(self, empty_df):
        snapshot = calculate_metrics_with_comparison(empty_df, empty_df, goal=1000)

        for kpi in snapshot.kpis().values():
            assert kpi.value == 0
            assert kpi.delta == 0

    def test_values_are_always_finite(self, windows, empty_df):
        current, _ = windows
        snapshot = calculate_metrics_with_comparison(current, empty_df)

        for kpi in snapshot.kpis().values():
            assert math.isfinite(kpi.value)
            assert math.isfinite(kpi.delta)
        assert snapshot.total_value.delta == 100.0

    def test_to_dict_rounding(self, windows):
        current, previous = windows
        result = calculate_metrics_with_comparison(current, previous).to_dict(precision=2)

        assert result['average_ticket'] == {'value': 333.33, 'delta': 66.67}
        assert result['goal'] == 0.0


class TestBreakdowns:

    def test_weekday_is_zero_filled(self, windows):
        current, _ = windows
        summary = group_by_weekday(current)

        assert summary['weekday'].tolist() == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
        assert summary['value'].tolist() == [600.0, 300.0, 100.0, 0.0, 0.0, 0.0, 0.0]

    def test_weekday_empty(self, empty_df):
        summary = group_by_weekday(empty_df)
        assert len(summary) == 7
        assert summary['value'].sum() == 0

    def test_week_of_month(self, frame_factory):
        df = frame_factory([
            {'date': '2025-11-29', 'value': 10.0},
            {'date': '2025-11-01', 'value': 20.0},
            {'date': '2025-11-03', 'value': 5.0},
        ])
        summary = group_by_week_of_month(df)

        assert summary['week_of_month'].tolist() == [1, 5]
        assert summary['week_label'].tolist() == ['Week 1', 'Week 5']
        assert summary['value'].tolist() == [25.0, 10.0]

    def test_share_by_segment(self, windows):
        current, _ = windows
        summary = sales_share_by_dimension(current, 'segment')

        assert summary['segment'].tolist() == ['Retail', 'Wholesale']
        assert summary['percentage'].tolist() == pytest.approx([70.0, 30.0])

    def test_share_by_missing_column(self, windows):
        current, _ = windows
        assert sales_share_by_dimension(current, 'region').empty

    def test_aggregate_by_salesperson(self, windows):
        current, _ = windows
        summary = aggregate_by_salesperson(current, goals={'s1': 1400})

        assert summary['salesperson_name'].tolist() == ['Ana', 'Bruno']
        assert summary['value'].tolist() == [700.0, 300.0]
        assert summary['deals'].tolist() == [2, 1]
        assert summary['customers'].tolist() == [2, 1]
        assert summary['goal_progress'].tolist() == pytest.approx([50.0, 0.0])

    def test_cancelled_rows_never_count(self, frame_factory):
        df = frame_factory([
            {'value': 100.0},
            {'value': 900.0, 'status': 'Cancelled', 'cancelled': True},
        ])
        metrics = SalesMetrics(df)

        assert metrics.calculate_overview_metrics()['total_value'] == pytest.approx(100.0)
        assert metrics.prepare_weekday_summary()['value'].sum() == pytest.approx(100.0)


def test_window_metrics_without_value_column(windows):
    current, _ = windows
    metrics = calculate_window_metrics(current.drop(columns=['value']))

    assert metrics['total_value'] == 0.0
    assert metrics['average_ticket'] == 0.0
    assert metrics['deal_count'] == 3
    assert metrics['active_customers'] == 3


def test_breakdowns_without_value_column(windows):
    current, _ = windows
    df = current.drop(columns=['value'])

    weekday = group_by_weekday(df)
    assert len(weekday) == 7
    assert weekday['value'].sum() == 0.0
    assert group_by_week_of_month(df).empty
    assert sales_share_by_dimension(df, 'segment').empty
    assert aggregate_by_salesperson(df).empty


def test_metrics_accept_frame_without_columns():
    metrics = calculate_window_metrics(pd.DataFrame())
    assert metrics['deal_count'] == 0
