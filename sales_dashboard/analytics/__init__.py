# sales_dashboard/analytics/__init__.py
"""
Sales Analytics Module

Pure computation behind the sales dashboard cards.
All components work on the normalized transaction DataFrame.

Components:
- normalizer: Raw sale records -> Transaction rows (and line items)
- periods: Period selectors -> current / previous windows
- access_control: Role-based data scoping (admin/manager/salesperson)
- filters: Multi-dimension filters (salesperson, nature, segment, ...)
- metrics: KPI calculations with period-over-period deltas
- abc_classifier: ABC / Pareto tiers (customers, products)
- ranking: Top-N rankings
- positivation: Active customers vs. the customer base
- data_processor: One-call processing of a filter state

Usage:
    from sales_dashboard.analytics import (
        normalize_sales,
        DashboardProcessor,
        FilterSet,
    )
"""

from .normalizer import (
    normalize_sale,
    normalize_sales,
    normalize_sale_item,
    normalize_sale_items,
    parse_transaction_date,
)
from .periods import resolve_period, split_by_period, month_window, trailing_months
from .access_control import AccessControl
from .filters import FilterSet, apply_filters, get_active_filter_summary, extract_filter_options
from .metrics import (
    SalesMetrics,
    calculate_delta,
    calculate_goal_attainment,
    calculate_metrics_with_comparison,
)
from .abc_classifier import (
    classify_abc,
    classify_customers,
    classify_products,
    get_tier_lookup,
    tiers_in_window,
)
from .ranking import (
    rank_top_n,
    calculate_top_salespeople,
    calculate_top_customers,
    calculate_top_products,
    rankings_to_frame,
)
from .positivation import (
    calculate_positivation,
    count_reference_population,
    calculate_customer_distribution,
)
from .data_processor import DashboardProcessor
from .models import (
    Transaction,
    NormalizationResult,
    DateRange,
    PeriodWindow,
    KpiValue,
    MetricsSnapshot,
    TierBucket,
    TierClassification,
    RankingEntry,
    PositivationResult,
    transactions_to_frame,
    items_to_frame,
)

# Constants
from .constants import (
    TRANSACTION_COLUMNS,
    ITEM_COLUMNS,
    FILTER_DIMENSIONS,
    FULL_ACCESS_ROLES,
    SELF_ACCESS_ROLES,
    PERIOD_SELECTORS,
    ABC_TIERS,
    UNCLASSIFIED,
)

__all__ = [
    # Classes
    'AccessControl',
    'FilterSet',
    'SalesMetrics',
    'DashboardProcessor',

    # Models
    'Transaction',
    'NormalizationResult',
    'DateRange',
    'PeriodWindow',
    'KpiValue',
    'MetricsSnapshot',
    'TierBucket',
    'TierClassification',
    'RankingEntry',
    'PositivationResult',
    'transactions_to_frame',
    'items_to_frame',

    # Functions
    'normalize_sale',
    'normalize_sales',
    'normalize_sale_item',
    'normalize_sale_items',
    'parse_transaction_date',
    'resolve_period',
    'split_by_period',
    'month_window',
    'trailing_months',
    'apply_filters',
    'get_active_filter_summary',
    'extract_filter_options',
    'calculate_delta',
    'calculate_goal_attainment',
    'calculate_metrics_with_comparison',
    'classify_abc',
    'classify_customers',
    'classify_products',
    'get_tier_lookup',
    'tiers_in_window',
    'rank_top_n',
    'calculate_top_salespeople',
    'calculate_top_customers',
    'calculate_top_products',
    'rankings_to_frame',
    'calculate_positivation',
    'count_reference_population',
    'calculate_customer_distribution',

    # Constants
    'TRANSACTION_COLUMNS',
    'ITEM_COLUMNS',
    'FILTER_DIMENSIONS',
    'FULL_ACCESS_ROLES',
    'SELF_ACCESS_ROLES',
    'PERIOD_SELECTORS',
    'ABC_TIERS',
    'UNCLASSIFIED',
]

__version__ = '1.0.0'
