# sales_dashboard/analytics/metrics.py
"""
KPI Calculations for the Sales Dashboard

Handles all metric calculations:
- Window KPIs (total value, deals, average ticket, units, active customers/salespeople)
- Goal attainment
- Period-over-period deltas
- Breakdowns for dashboard cards (weekday, week of month, segment share)
- Per-salesperson aggregation with goal progress

Every ratio resolves to a defined number: zero denominators give 0
(or 100 for a delta against a zero baseline), never NaN or inf.
"""

import logging
import math
from typing import Any, Dict, Optional
import pandas as pd
import numpy as np

from .constants import WEEKDAY_ORDER
from .models import KpiValue, MetricsSnapshot

logger = logging.getLogger(__name__)


def _finite(value: Any) -> float:
    """Coerce to a finite float; None/NaN/inf become 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def calculate_delta(current: Any, previous: Any) -> float:
    """
    Percentage change of a KPI versus the previous window.

    previous == 0 -> 100 when current > 0, else 0.
    Otherwise (current - previous) / previous * 100.
    """
    current = _finite(current)
    previous = _finite(previous)

    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def calculate_goal_attainment(total: Any, goal: Any) -> float:
    """total / goal * 100; 0 when the goal is missing, zero or negative."""
    goal = _finite(goal)
    if goal <= 0:
        return 0.0
    return _finite(total) / goal * 100


def _has_columns(df: pd.DataFrame, *columns: str) -> bool:
    """True when every column is present; warns about the first missing one."""
    for column in columns:
        if column not in df.columns:
            logger.warning(f"Column '{column}' not found in DataFrame")
            return False
    return True


class SalesMetrics:
    """
    KPI calculations over a transaction window.

    Usage:
        metrics = SalesMetrics(current_df, previous_df)

        snapshot = metrics.calculate_metrics_with_comparison(goal=50000)
        by_weekday = metrics.prepare_weekday_summary()
        by_salesperson = metrics.aggregate_by_salesperson(goals)
    """

    def __init__(
        self,
        sales_df: pd.DataFrame,
        previous_df: pd.DataFrame = None
    ):
        """
        Initialize with data.

        Args:
            sales_df: Filtered transactions of the current window
            previous_df: Filtered transactions of the comparison window (optional)
        """
        self.sales_df = self._valid_rows(sales_df)
        self.previous_df = self._valid_rows(previous_df if previous_df is not None else pd.DataFrame())

    @staticmethod
    def _valid_rows(df: pd.DataFrame) -> pd.DataFrame:
        """Cancelled transactions never count towards KPIs."""
        if df.empty or 'cancelled' not in df.columns:
            return df
        return df[~df['cancelled'].fillna(False).astype(bool)]

    # =========================================================================
    # WINDOW METRICS
    # =========================================================================

    @staticmethod
    def calculate_window_metrics(df: pd.DataFrame) -> Dict[str, float]:
        """
        KPIs for one window.

        Returns:
            Dict with total_value, deal_count, average_ticket, units_sold,
            active_customers, active_salespeople
        """
        if df.empty:
            return {
                'total_value': 0.0,
                'deal_count': 0,
                'average_ticket': 0.0,
                'units_sold': 0.0,
                'active_customers': 0,
                'active_salespeople': 0,
            }

        if _has_columns(df, 'value'):
            total_value = float(pd.to_numeric(df['value'], errors='coerce').fillna(0).sum())
        else:
            total_value = 0.0
        deal_count = len(df)
        average_ticket = total_value / deal_count if deal_count > 0 else 0.0

        if 'quantity' in df.columns:
            units_sold = float(pd.to_numeric(df['quantity'], errors='coerce').fillna(0).sum())
        else:
            units_sold = 0.0

        active_customers = df['customer_key'].nunique() if 'customer_key' in df.columns else 0
        active_salespeople = df['salesperson_name'].nunique() if 'salesperson_name' in df.columns else 0

        return {
            'total_value': total_value,
            'deal_count': deal_count,
            'average_ticket': average_ticket,
            'units_sold': units_sold,
            'active_customers': int(active_customers),
            'active_salespeople': int(active_salespeople),
        }

    def calculate_overview_metrics(self) -> Dict[str, float]:
        """KPIs of the current window."""
        return self.calculate_window_metrics(self.sales_df)

    # =========================================================================
    # PERIOD COMPARISON
    # =========================================================================

    def calculate_metrics_with_comparison(self, goal: Optional[float] = 0) -> MetricsSnapshot:
        """
        Current-window KPIs paired with their delta versus the previous window.

        Args:
            goal: Goal target for the current window (0/None = no goal)

        Returns:
            MetricsSnapshot. goal_attainment.delta is always 0 because no
            goal exists for the previous window.
        """
        current = self.calculate_window_metrics(self.sales_df)
        previous = self.calculate_window_metrics(self.previous_df)

        kpis = {
            name: KpiValue(
                value=current[name],
                delta=calculate_delta(current[name], previous[name]),
            )
            for name in current
        }

        goal_value = _finite(goal)
        kpis['goal_attainment'] = KpiValue(
            value=calculate_goal_attainment(current['total_value'], goal_value),
            delta=0.0,
        )

        logger.debug(
            f"Metrics: total={current['total_value']:.2f} (prev {previous['total_value']:.2f}), "
            f"deals={current['deal_count']} (prev {previous['deal_count']})"
        )

        return MetricsSnapshot(goal=goal_value, **kpis)

    # =========================================================================
    # BREAKDOWNS
    # =========================================================================

    def prepare_weekday_summary(self) -> pd.DataFrame:
        """
        Total value per weekday, Mon..Sun, zero-filled.

        Returns:
            DataFrame with weekday, value
        """
        all_days = pd.DataFrame({'weekday': WEEKDAY_ORDER})
        df = self.sales_df

        if df.empty or not _has_columns(df, 'weekday', 'value'):
            all_days['value'] = 0.0
            return all_days

        by_day = df.groupby('weekday')['value'].sum().reset_index()
        summary = all_days.merge(by_day, on='weekday', how='left').fillna(0)
        summary['value'] = summary['value'].astype(float)
        return summary

    def prepare_weekly_summary(self) -> pd.DataFrame:
        """
        Total value per week of month, sorted by week number.

        Returns:
            DataFrame with week_of_month, week_label, value
        """
        df = self.sales_df

        if df.empty or not _has_columns(df, 'week_of_month', 'value'):
            return pd.DataFrame(columns=['week_of_month', 'week_label', 'value'])

        weekly = df.groupby('week_of_month')['value'].sum().reset_index()
        weekly = weekly.sort_values('week_of_month').reset_index(drop=True)
        weekly['week_of_month'] = weekly['week_of_month'].astype(int)
        weekly['week_label'] = 'Week ' + weekly['week_of_month'].astype(str)
        return weekly[['week_of_month', 'week_label', 'value']]

    def aggregate_by_dimension(self, column: str) -> pd.DataFrame:
        """
        Value share per dimension value (segment, state, nature, ...).

        Returns:
            DataFrame with <column>, value, percentage (descending by value)
        """
        df = self.sales_df

        if df.empty or not _has_columns(df, column, 'value'):
            return pd.DataFrame(columns=[column, 'value', 'percentage'])

        summary = df.groupby(column, sort=False)['value'].sum().reset_index()
        total = summary['value'].sum()

        summary['percentage'] = (summary['value'] / total * 100) if total > 0 else 0.0
        summary = summary.sort_values('value', ascending=False, kind='mergesort').reset_index(drop=True)
        return summary

    def aggregate_by_salesperson(self, goals: Optional[Dict[str, float]] = None) -> pd.DataFrame:
        """
        Aggregate metrics by salesperson for the team table.

        Args:
            goals: Optional salesperson_id -> goal for the window

        Returns:
            DataFrame with one row per salesperson, sorted by value descending
        """
        df = self.sales_df

        columns = [
            'salesperson_id', 'salesperson_name', 'value', 'deals',
            'customers', 'goal', 'goal_progress'
        ]
        required = ('salesperson_id', 'salesperson_name', 'value', 'customer_key')
        if df.empty or not _has_columns(df, *required):
            return pd.DataFrame(columns=columns)

        summary = df.groupby(['salesperson_id', 'salesperson_name'], sort=False, dropna=False).agg(
            value=('value', 'sum'),
            deals=('value', 'size'),
            customers=('customer_key', pd.Series.nunique),
        ).reset_index()

        goals = goals or {}
        summary['goal'] = summary['salesperson_id'].map(goals).fillna(0).astype(float)
        summary['goal_progress'] = np.where(
            summary['goal'] > 0,
            summary['value'] / summary['goal'].where(summary['goal'] > 0, 1) * 100,
            0.0
        )

        summary = summary.sort_values('value', ascending=False, kind='mergesort').reset_index(drop=True)
        return summary[columns]


def calculate_metrics_with_comparison(
    current_df: pd.DataFrame,
    previous_df: pd.DataFrame,
    goal: Optional[float] = 0
) -> MetricsSnapshot:
    """Shortcut for SalesMetrics(current_df, previous_df).calculate_metrics_with_comparison(goal)."""
    return SalesMetrics(current_df, previous_df).calculate_metrics_with_comparison(goal)


# =============================================================================
# FUNCTIONAL SHORTCUTS
# =============================================================================

def calculate_window_metrics(df: pd.DataFrame) -> Dict[str, float]:
    return SalesMetrics(df).calculate_overview_metrics()


def group_by_weekday(df: pd.DataFrame) -> pd.DataFrame:
    return SalesMetrics(df).prepare_weekday_summary()


def group_by_week_of_month(df: pd.DataFrame) -> pd.DataFrame:
    return SalesMetrics(df).prepare_weekly_summary()


def sales_share_by_dimension(df: pd.DataFrame, column: str = 'segment') -> pd.DataFrame:
    return SalesMetrics(df).aggregate_by_dimension(column)


def aggregate_by_salesperson(
    df: pd.DataFrame,
    goals: Optional[Dict[str, float]] = None
) -> pd.DataFrame:
    return SalesMetrics(df).aggregate_by_salesperson(goals)
