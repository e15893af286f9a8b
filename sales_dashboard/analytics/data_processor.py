# sales_dashboard/analytics/data_processor.py
"""
Data Processor for the Sales Dashboard

Turns the normalized transaction DataFrame into everything the
dashboard cards need for one filter state.

This module implements the "Filter Many" part of the
"Load Once, Filter Many" pattern: transactions are loaded and
normalized once, then process() is called on every filter change.
Nothing is cached between calls.
"""

import logging
import time
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional, Union
import pandas as pd

from ..config import EngineSettings, config
from .abc_classifier import classify_customers, classify_products, tiers_in_window
from .access_control import AccessControl
from .filters import FilterSet, apply_filters
from .metrics import SalesMetrics
from .models import Transaction, items_to_frame, transactions_to_frame
from .normalizer import normalize_sales
from .periods import resolve_period, split_by_period
from .positivation import calculate_positivation
from .ranking import calculate_top_customers, calculate_top_products, calculate_top_salespeople

logger = logging.getLogger(__name__)


class DashboardProcessor:
    """
    Process the transaction collection based on filter values.

    Usage:
        processor = DashboardProcessor(normalization_result.transactions)
        processed = processor.process({
            'period': '30',
            'filters': {'states': ['SP']},
            'user_role': 'admin',
            'goal': 150000,
        })
    """

    def __init__(
        self,
        transactions: Union[pd.DataFrame, List[Union[Transaction, Dict[str, Any]]]],
        settings: Optional[EngineSettings] = None,
        items: Optional[pd.DataFrame] = None
    ):
        """
        Initialize with the transaction collection.

        Args:
            transactions: Transaction DataFrame, or a list of Transaction/dicts
            settings: Engine settings (default: loaded from configuration)
            items: Optional line-item DataFrame for the product cards
        """
        if isinstance(transactions, pd.DataFrame):
            self.transactions = transactions
        else:
            self.transactions = transactions_to_frame(list(transactions))

        self.items = items
        self.normalization = None

        self.settings = settings or config.get_engine_settings()
        self._prepare_dataframe()

    @classmethod
    def from_records(
        cls,
        records: List[Dict[str, Any]],
        customers: Optional[Dict[str, Dict[str, Any]]] = None,
        natures: Optional[Dict[str, Dict[str, Any]]] = None,
        salespeople: Optional[Dict[str, str]] = None,
        settings: Optional[EngineSettings] = None
    ) -> 'DashboardProcessor':
        """
        Normalize raw sale records once and build a processor over them.

        Line items are normalized alongside the sales. Dropped record
        counts stay available on `normalization`.
        """
        settings = settings or config.get_engine_settings()
        normalized = normalize_sales(
            records,
            customers=customers,
            natures=natures,
            salespeople=salespeople,
            unclassified=settings.unclassified_label,
            include_items=True,
        )
        processor = cls(normalized.transactions, settings=settings, items=normalized.items)
        processor.normalization = normalized
        return processor

    def _prepare_dataframe(self):
        """Pre-convert the date columns to datetime for faster filtering."""
        self.transactions = self._with_datetime(self.transactions)
        if self.items is not None:
            self.items = self._with_datetime(self.items)

    @staticmethod
    def _with_datetime(df: pd.DataFrame) -> pd.DataFrame:
        if not df.empty and 'date' in df.columns:
            if not pd.api.types.is_datetime64_any_dtype(df['date']):
                return df.assign(date=pd.to_datetime(df['date'], errors='coerce'))
        return df

    # =========================================================================
    # MAIN ENTRY POINT
    # =========================================================================

    def process(self, filter_values: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Process the collection for one filter state.

        Args:
            filter_values: Dict containing:
                - period: Period selector (default "30")
                - custom_from, custom_to: Bounds for the "custom" period
                - today: Reference day (default date.today())
                - filters: FilterSet or dict of dimension filters
                - user_role, salesperson_id, salesperson_name: Acting user
                - goal: Goal for the current window
                - total_customers: Positivation reference population
                - top_n: Ranking length (default from settings)

        Returns:
            Dict containing:
            - window: Resolved PeriodWindow
            - current_df, previous_df: Filtered windows
            - metrics: MetricsSnapshot
            - positivation: PositivationResult
            - abc: Customer ABC classification over the lookback window
            - abc_in_period: Per-tier activity inside the current window
            - top_salespeople, top_customers: RankingEntry lists
            - top_products: RankingEntry list over the filtered current-window items
            - abc_products: Product ABC classification of the same items
            - by_weekday, by_week, by_segment: Breakdown DataFrames
        """
        start_time = time.perf_counter()
        filter_values = filter_values or {}
        debug_timing = self.settings.enable_debug_timing

        today = filter_values.get('today') or date.today()
        filter_set = filter_values.get('filters')
        if not isinstance(filter_set, FilterSet):
            filter_set = FilterSet.from_dict(filter_set)

        access = None
        if filter_values.get('user_role'):
            access = AccessControl(
                user_role=filter_values['user_role'],
                salesperson_id=filter_values.get('salesperson_id'),
                salesperson_name=filter_values.get('salesperson_name'),
            )
            filter_set = replace(
                filter_set,
                salespeople=access.validate_selected_salespeople(filter_set.salespeople),
            )

        top_n = filter_values.get('top_n', self.settings.top_n_default)
        thresholds = (self.settings.abc_tier_a_threshold, self.settings.abc_tier_b_threshold)

        result = {}

        # =====================================================================
        # 1. RESOLVE PERIOD
        # =====================================================================
        window = resolve_period(
            filter_values.get('period', '30'),
            custom_from=filter_values.get('custom_from'),
            custom_to=filter_values.get('custom_to'),
            today=today,
        )
        result['window'] = window

        # =====================================================================
        # 2. SPLIT AND FILTER
        # =====================================================================
        t = time.perf_counter()
        current_raw, previous_raw = split_by_period(self.transactions, window)

        result['current_df'] = apply_filters(
            current_raw, filter_set, access=access, abc_reference=self.transactions,
            abc_thresholds=thresholds,
        )
        result['previous_df'] = apply_filters(
            previous_raw, filter_set, access=access, abc_reference=self.transactions,
            abc_thresholds=thresholds,
        )
        if debug_timing:
            logger.info(
                f"[filter] {time.perf_counter()-t:.3f}s → "
                f"{len(result['current_df']):,} / {len(result['previous_df']):,} rows"
            )

        # =====================================================================
        # 3. KPIs
        # =====================================================================
        t = time.perf_counter()
        metrics = SalesMetrics(result['current_df'], result['previous_df'])
        result['metrics'] = metrics.calculate_metrics_with_comparison(goal=filter_values.get('goal', 0))
        result['positivation'] = calculate_positivation(
            result['current_df'],
            total_customers=filter_values.get('total_customers'),
        )
        result['by_weekday'] = metrics.prepare_weekday_summary()
        result['by_week'] = metrics.prepare_weekly_summary()
        result['by_segment'] = metrics.aggregate_by_dimension('segment')
        if debug_timing:
            logger.info(f"[metrics] {time.perf_counter()-t:.3f}s")

        # =====================================================================
        # 4. ABC CURVE
        # =====================================================================
        t = time.perf_counter()
        scoped = self.transactions
        if access is not None:
            scoped = access.filter_dataframe(scoped)
        result['abc'] = classify_customers(
            scoped,
            today=today,
            lookback_months=self.settings.abc_lookback_months,
            tier_a=self.settings.abc_tier_a_threshold,
            tier_b=self.settings.abc_tier_b_threshold,
        )
        result['abc_in_period'] = tiers_in_window(result['abc'], result['current_df'])
        if debug_timing:
            logger.info(f"[abc] {time.perf_counter()-t:.3f}s → {result['abc'].total_members:,} customers")

        # =====================================================================
        # 5. RANKINGS
        # =====================================================================
        result['top_salespeople'] = calculate_top_salespeople(result['current_df'], n=top_n)
        result['top_customers'] = calculate_top_customers(result['current_df'], n=top_n)

        # =====================================================================
        # 6. PRODUCTS
        # =====================================================================
        current_items = self.items if self.items is not None else items_to_frame([])
        if not current_items.empty:
            current_items, _ = split_by_period(current_items, window)
            current_items = apply_filters(
                current_items, filter_set, access=access, abc_reference=self.transactions,
                abc_thresholds=thresholds,
            )
        result['top_products'] = calculate_top_products(current_items, n=top_n)
        result['abc_products'] = classify_products(
            current_items,
            tier_a=self.settings.abc_tier_a_threshold,
            tier_b=self.settings.abc_tier_b_threshold,
        )

        logger.info(
            f"Processed period {window.selector!r}: {len(result['current_df']):,} rows "
            f"in {time.perf_counter()-start_time:.3f}s"
        )
        return result
