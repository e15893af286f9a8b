# sales_dashboard/analytics/filters.py
"""
Dimension Filters for the Sales Analytics Engine

Applies the dashboard filter state to a transaction DataFrame:
- Cancelled sales are always excluded
- Role-based scoping (AccessControl) is applied first
- Multi-value inclusion filters per dimension (salesperson, nature,
  segment, customer status, state), combined as a pure conjunction
- Sale-status filter ("all" / "completed")
- Customer ABC tier filter

An empty value list means "no restriction on this dimension".
Relative row order is always preserved.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import pandas as pd

from .access_control import AccessControl
from .abc_classifier import classify_abc, get_tier_lookup
from .constants import (
    ABC_TIER_A_THRESHOLD,
    ABC_TIER_B_THRESHOLD,
    COMPLETED_STATUSES,
    FILTER_DIMENSIONS,
    SALE_STATUS_ALL,
    SALE_STATUS_COMPLETED,
)
from .normalizer import normalize_text

logger = logging.getLogger(__name__)


# =============================================================================
# FILTER SET
# =============================================================================

@dataclass
class FilterSet:
    """
    Dashboard filter state.

    Attributes:
        salespeople: Allowed salesperson names
        natures: Allowed operation natures
        segments: Allowed customer segments
        customer_statuses: Allowed customer statuses
        states: Allowed state / region codes
        abc_tiers: Allowed customer ABC tiers ('A', 'B', 'C')
        sale_status: 'all' or 'completed'
    """
    salespeople: List[Any] = field(default_factory=list)
    natures: List[Any] = field(default_factory=list)
    segments: List[Any] = field(default_factory=list)
    customer_statuses: List[Any] = field(default_factory=list)
    states: List[Any] = field(default_factory=list)
    abc_tiers: List[str] = field(default_factory=list)
    sale_status: str = SALE_STATUS_ALL

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> 'FilterSet':
        """Build from a plain dict, ignoring unknown keys and None values."""
        values = values or {}
        kwargs = {}
        for name in list(FILTER_DIMENSIONS) + ['abc_tiers']:
            if values.get(name) is not None:
                kwargs[name] = list(values[name])
        if values.get('sale_status'):
            kwargs['sale_status'] = values['sale_status']
        return cls(**kwargs)

    def dimension_values(self) -> Dict[str, List[Any]]:
        """Transaction column -> allowed values, for every dimension."""
        return {
            column: getattr(self, name)
            for name, column in FILTER_DIMENSIONS.items()
        }

    @property
    def is_active(self) -> bool:
        return (
            any(self.dimension_values().values())
            or bool(self.abc_tiers)
            or self.sale_status == SALE_STATUS_COMPLETED
        )

    def __repr__(self) -> str:
        active = {k: len(v) for k, v in self.dimension_values().items() if v}
        return f"FilterSet({active}, abc={self.abc_tiers}, sale_status={self.sale_status})"


# =============================================================================
# SINGLE-DIMENSION FILTERS
# =============================================================================

def apply_dimension_filter(
    df: pd.DataFrame,
    column: str,
    allowed: List[Any]
) -> pd.DataFrame:
    """
    Keep rows whose column value is one of the allowed values.

    Args:
        df: DataFrame to filter
        column: Column name to filter on
        allowed: Allowed values; empty list means no restriction

    Returns:
        Filtered DataFrame. Rows with a missing value fail a non-empty filter.
    """
    if df.empty or not allowed:
        return df

    if column not in df.columns:
        logger.warning(f"Column '{column}' not found in DataFrame")
        return df.head(0)

    return df[df[column].isin(allowed)]


def exclude_cancelled(df: pd.DataFrame) -> pd.DataFrame:
    """Drop cancelled transactions."""
    if df.empty or 'cancelled' not in df.columns:
        return df
    return df[~df['cancelled'].fillna(False).astype(bool)]


def apply_sale_status_filter(df: pd.DataFrame, sale_status: str) -> pd.DataFrame:
    """
    'completed' keeps finished sales only; anything else keeps every row.

    Statuses are compared case- and accent-insensitively.
    """
    if df.empty or sale_status != SALE_STATUS_COMPLETED:
        return df
    if 'status' not in df.columns:
        logger.warning("Column 'status' not found in DataFrame")
        return df.head(0)
    completed = {normalize_text(status) for status in COMPLETED_STATUSES}
    return df[df['status'].map(normalize_text).isin(completed)]


def apply_abc_tier_filter(
    df: pd.DataFrame,
    tiers: List[str],
    reference_df: pd.DataFrame,
    key: str = 'customer_key',
    tier_a: float = ABC_TIER_A_THRESHOLD,
    tier_b: float = ABC_TIER_B_THRESHOLD
) -> pd.DataFrame:
    """
    Keep rows whose customer falls in one of the given ABC tiers.

    Tiers are computed over reference_df; customers absent from the
    reference have no tier and fail the filter.
    """
    if df.empty or not tiers:
        return df

    lookup = get_tier_lookup(classify_abc(reference_df, key=key, tier_a=tier_a, tier_b=tier_b))
    if key not in df.columns:
        logger.warning(f"Column '{key}' not found in DataFrame")
        return df.head(0)

    return df[df[key].map(lookup).isin(tiers)]


# =============================================================================
# COMBINED FILTER
# =============================================================================

def apply_filters(
    df: pd.DataFrame,
    filter_set: Optional[FilterSet] = None,
    access: Optional[AccessControl] = None,
    abc_reference: Optional[pd.DataFrame] = None,
    abc_thresholds: Tuple[float, float] = (ABC_TIER_A_THRESHOLD, ABC_TIER_B_THRESHOLD)
) -> pd.DataFrame:
    """
    Apply the full filter state to a transaction DataFrame.

    Order: cancelled exclusion -> role scoping -> dimensions -> sale
    status -> ABC tiers.

    Args:
        df: Transaction DataFrame
        filter_set: Filter state (None = no explicit filters)
        access: Acting user's AccessControl (None = no scoping)
        abc_reference: Collection the ABC tiers are computed over
                       (default: the non-cancelled input)
        abc_thresholds: (tier A, tier B) cumulative % bounds for the ABC filter

    Returns:
        Filtered DataFrame preserving original order
    """
    filter_set = filter_set or FilterSet()

    if df.empty:
        return df

    before = len(df)
    valid = exclude_cancelled(df)
    result = valid

    if access is not None:
        result = access.filter_dataframe(result)

    for column, allowed in filter_set.dimension_values().items():
        result = apply_dimension_filter(result, column, allowed)

    result = apply_sale_status_filter(result, filter_set.sale_status)

    if filter_set.abc_tiers:
        reference = exclude_cancelled(abc_reference) if abc_reference is not None else valid
        result = apply_abc_tier_filter(
            result, filter_set.abc_tiers, reference,
            tier_a=abc_thresholds[0], tier_b=abc_thresholds[1]
        )

    logger.debug(f"Filters {filter_set!r}: {before} -> {len(result)} rows")
    return result


def get_active_filter_summary(filter_set: FilterSet) -> str:
    """
    Get human-readable summary of active filters.

    Returns:
        Summary string like "Salespeople: Ana, Bruno | States: SP"
    """
    parts = []

    for name in list(FILTER_DIMENSIONS) + ['abc_tiers']:
        selected = getattr(filter_set, name)
        if selected:
            label = name.replace('_', ' ').title()
            values = ', '.join(str(v) for v in selected[:3])
            if len(selected) > 3:
                values += f" +{len(selected) - 3} more"
            parts.append(f"{label}: {values}")

    if filter_set.sale_status == SALE_STATUS_COMPLETED:
        parts.append("Sale Status: completed")

    return " | ".join(parts) if parts else "No filters applied"


def extract_filter_options(df: pd.DataFrame) -> Dict[str, List[Any]]:
    """Sorted distinct values per filter dimension (for the filter widgets)."""
    options = {}
    for name, column in FILTER_DIMENSIONS.items():
        if df.empty or column not in df.columns:
            options[name] = []
            continue
        options[name] = sorted(df[column].dropna().astype(str).unique().tolist())
    return options
