# sales_dashboard/analytics/abc_classifier.py
"""
ABC / Pareto Classifier

Ranks an aggregation key (customer, product, salesperson, ...) by the
value it contributed and partitions it into tiers by cumulative value:

    cumulative % <= 80  -> A
    cumulative % <= 95  -> B
    otherwise           -> C

The cumulative percentage of a group is taken AFTER adding the group's
own value, so the group that crosses a threshold lands in the tier its
cumulative value falls in. Ties keep first-seen order, which decides
which side of a threshold a tied key lands on.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .constants import (
    ABC_LOOKBACK_MONTHS,
    ABC_TIER_A_THRESHOLD,
    ABC_TIER_B_THRESHOLD,
    ABC_TIERS,
    PERCENT_PRECISION,
)
from .models import DateRange, TierBucket, TierClassification
from .periods import filter_by_range, trailing_months

logger = logging.getLogger(__name__)

MEMBER_COLUMNS = ['key', 'label', 'value', 'share_percent', 'cumulative_percent', 'tier', 'rank']


def _empty_classification() -> TierClassification:
    return TierClassification(
        buckets=[],
        members=pd.DataFrame(columns=MEMBER_COLUMNS),
        grand_total=0.0,
    )


def group_values(
    df: pd.DataFrame,
    key: str,
    value: str = 'value',
    label: Optional[str] = None
) -> pd.DataFrame:
    """
    Sum values per key, keeping keys in first-seen order.

    Returns:
        DataFrame with key, label, value, occurrence_count, first_seen
    """
    empty = pd.DataFrame(columns=['key', 'label', 'value', 'occurrence_count', 'first_seen'])
    if df.empty:
        return empty

    for column in (key, value):
        if column not in df.columns:
            logger.warning(f"Column '{column}' not found in DataFrame")
            return empty

    data = df[df[key].notna()]
    missing = len(df) - len(data)
    if missing:
        logger.warning(f"Ignored {missing} row(s) without '{key}'")

    data = data.assign(_value=pd.to_numeric(data[value], errors='coerce').fillna(0.0))
    use_label = label is not None and label != key and label in data.columns

    aggregations = {
        'value': ('_value', 'sum'),
        'occurrence_count': ('_value', 'size'),
    }
    if use_label:
        aggregations['label'] = (label, 'first')

    grouped = data.groupby(key, sort=False).agg(**aggregations).reset_index()
    grouped = grouped.rename(columns={key: 'key'})
    if not use_label:
        grouped['label'] = grouped['key']

    grouped['value'] = grouped['value'].astype(float)
    grouped['occurrence_count'] = grouped['occurrence_count'].astype(int)
    grouped['first_seen'] = np.arange(len(grouped))
    return grouped[['key', 'label', 'value', 'occurrence_count', 'first_seen']]


def sort_by_value(grouped: pd.DataFrame) -> pd.DataFrame:
    """Sort groups by value descending; ties keep first-seen order."""
    return grouped.sort_values(
        ['value', 'first_seen'],
        ascending=[False, True],
        kind='mergesort'
    ).reset_index(drop=True)


def assign_tier(
    cumulative_percent: float,
    tier_a: float = ABC_TIER_A_THRESHOLD,
    tier_b: float = ABC_TIER_B_THRESHOLD
) -> str:
    """Tier for a cumulative value percentage (upper bounds inclusive)."""
    if cumulative_percent <= tier_a:
        return 'A'
    if cumulative_percent <= tier_b:
        return 'B'
    return 'C'


def classify_abc(
    df: pd.DataFrame,
    key: str = 'customer_key',
    label: Optional[str] = None,
    value: str = 'value',
    tier_a: float = ABC_TIER_A_THRESHOLD,
    tier_b: float = ABC_TIER_B_THRESHOLD
) -> TierClassification:
    """
    Classify the members of an aggregation key into ABC tiers.

    Args:
        df: Transaction DataFrame
        key: Grouping column (e.g., 'customer_key', 'salesperson_name')
        label: Optional display column carried alongside the key
        value: Value column to sum
        tier_a: Upper cumulative % bound of tier A
        tier_b: Upper cumulative % bound of tier B

    Returns:
        TierClassification; empty when the grand total is 0
    """
    grouped = group_values(df, key, value=value, label=label)

    if grouped.empty:
        return _empty_classification()

    grand_total = float(grouped['value'].sum())
    if grand_total <= 0:
        logger.info(f"ABC by '{key}': grand total is 0, empty classification")
        return _empty_classification()

    members = sort_by_value(grouped)

    running = members['value'].cumsum()
    grand_total = float(running.iloc[-1])

    members['share_percent'] = members['value'] * 100 / grand_total
    members['cumulative_percent'] = (running * 100 / grand_total).round(PERCENT_PRECISION)
    members['tier'] = [assign_tier(p, tier_a, tier_b) for p in members['cumulative_percent']]
    members['rank'] = np.arange(1, len(members) + 1)

    total_members = len(members)
    buckets = []
    for tier in ABC_TIERS:
        in_tier = members[members['tier'] == tier]
        tier_value = float(in_tier['value'].sum())
        buckets.append(TierBucket(
            tier=tier,
            member_count=len(in_tier),
            total_value=tier_value,
            member_percentage=len(in_tier) * 100 / total_members,
            value_percentage=tier_value * 100 / grand_total,
        ))

    logger.debug(
        f"ABC by '{key}': " +
        ", ".join(f"{b.tier}={b.member_count}" for b in buckets)
    )

    return TierClassification(
        buckets=buckets,
        members=members[MEMBER_COLUMNS],
        grand_total=grand_total,
    )


def get_tier_lookup(classification: TierClassification) -> Dict[Any, str]:
    """Member key -> tier."""
    if classification.is_empty:
        return {}
    return dict(zip(classification.members['key'], classification.members['tier']))


# =============================================================================
# CUSTOMER CURVE
# =============================================================================

def classify_customers(
    df: pd.DataFrame,
    today: Optional[date] = None,
    lookback_months: Optional[int] = ABC_LOOKBACK_MONTHS,
    tier_a: float = ABC_TIER_A_THRESHOLD,
    tier_b: float = ABC_TIER_B_THRESHOLD
) -> TierClassification:
    """
    Customer ABC curve over the trailing lookback window.

    Cancelled transactions never contribute. Pass lookback_months=None
    to classify over the whole collection.
    """
    data = df
    if not data.empty and 'cancelled' in data.columns:
        data = data[~data['cancelled'].astype(bool)]
    if lookback_months:
        data = filter_by_range(data, trailing_months(lookback_months, today))

    return classify_abc(
        data,
        key='customer_key',
        label='customer_name',
        tier_a=tier_a,
        tier_b=tier_b,
    )


def tiers_in_window(
    classification: TierClassification,
    window_df: pd.DataFrame,
    key: str = 'customer_key'
) -> pd.DataFrame:
    """
    How many members of each tier transacted in a (filtered) window.

    Returns:
        DataFrame with tier, member_count, active_count, active_percent
    """
    active_keys = set()
    if not window_df.empty and key in window_df.columns:
        active_keys = set(window_df[key].dropna())

    rows = []
    for tier in ABC_TIERS:
        members = classification.members_of(tier)
        active = sum(1 for member in members if member in active_keys)
        rows.append({
            'tier': tier,
            'member_count': len(members),
            'active_count': active,
            'active_percent': active * 100 / len(members) if members else 0.0,
        })
    return pd.DataFrame(rows)


# =============================================================================
# PRODUCT CURVE
# =============================================================================

PRODUCT_MEMBER_COLUMNS = MEMBER_COLUMNS + ['sku', 'quantity']


def classify_products(
    items_df: pd.DataFrame,
    date_range: Optional[DateRange] = None,
    tier_a: float = ABC_TIER_A_THRESHOLD,
    tier_b: float = ABC_TIER_B_THRESHOLD
) -> TierClassification:
    """
    Product ABC curve from sale line items.

    Args:
        items_df: Line-item DataFrame (see normalize_sale_items)
        date_range: Optional inclusive sale-date range (None = every item)
        tier_a: Upper cumulative % bound of tier A
        tier_b: Upper cumulative % bound of tier B

    Returns:
        TierClassification keyed by product_id, labelled with the product
        description; members also carry sku and total quantity
    """
    data = items_df
    if not data.empty and 'cancelled' in data.columns:
        data = data[~data['cancelled'].astype(bool)]
    if date_range is not None:
        data = filter_by_range(data, date_range)

    classification = classify_abc(
        data,
        key='product_id',
        label='description',
        tier_a=tier_a,
        tier_b=tier_b,
    )
    if classification.is_empty:
        classification.members = pd.DataFrame(columns=PRODUCT_MEMBER_COLUMNS)
        return classification

    extra = pd.DataFrame(index=data['product_id'].dropna().unique())
    if 'sku' in data.columns:
        extra['sku'] = data.groupby('product_id', sort=False)['sku'].first()
    else:
        extra['sku'] = None
    if 'quantity' in data.columns:
        quantity = pd.to_numeric(data['quantity'], errors='coerce').fillna(0.0)
        extra['quantity'] = quantity.groupby(data['product_id'], sort=False).sum()
    else:
        extra['quantity'] = 0.0

    classification.members = classification.members.join(extra, on='key')[PRODUCT_MEMBER_COLUMNS]
    return classification
