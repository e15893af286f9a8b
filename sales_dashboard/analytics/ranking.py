# sales_dashboard/analytics/ranking.py
"""
Top-N Ranking Engine

Orders the members of an aggregation key by summed value and returns
the first N. Ranks are ordinal: 1-based positions after the stable
descending sort, so tied values keep first-seen order and still get
distinct ranks.
"""

import logging
from typing import List, Optional
import pandas as pd

from .abc_classifier import group_values, sort_by_value
from .constants import IGNORED_SALESPERSON_NAMES, TOP_N_DEFAULT
from .models import RankingEntry

logger = logging.getLogger(__name__)

RANKING_COLUMNS = ['rank', 'key', 'label', 'total_value', 'occurrence_count']


def rank_top_n(
    df: pd.DataFrame,
    key: str,
    n: Optional[int] = TOP_N_DEFAULT,
    label: Optional[str] = None,
    value: str = 'value'
) -> List[RankingEntry]:
    """
    Rank members of an aggregation key by total value.

    Args:
        df: Transaction DataFrame
        key: Grouping column (e.g., 'salesperson_name', 'customer_key')
        n: How many entries to return; None returns every member
        label: Optional display column carried alongside the key
        value: Value column to sum

    Returns:
        List of RankingEntry, length min(n, distinct keys)
    """
    if n is not None and n <= 0:
        return []

    grouped = group_values(df, key, value=value, label=label)
    if grouped.empty:
        return []

    ranked = sort_by_value(grouped)
    if n is not None:
        ranked = ranked.head(n)

    return [
        RankingEntry(
            key=row.key,
            label=row.label,
            total_value=float(row.value),
            occurrence_count=int(row.occurrence_count),
            rank=position,
        )
        for position, row in enumerate(ranked.itertuples(index=False), start=1)
    ]


def calculate_top_salespeople(df: pd.DataFrame, n: Optional[int] = TOP_N_DEFAULT) -> List[RankingEntry]:
    """
    Top salespeople by value, skipping blank and unidentified names.
    """
    if df.empty or 'salesperson_name' not in df.columns:
        return []

    names = df['salesperson_name'].fillna('').astype(str).str.strip()
    identified = df[~names.isin(IGNORED_SALESPERSON_NAMES)]

    skipped = len(df) - len(identified)
    if skipped:
        logger.debug(f"Top salespeople: ignored {skipped} row(s) without an identified salesperson")

    return rank_top_n(identified, key='salesperson_name', n=n)


def calculate_top_customers(df: pd.DataFrame, n: Optional[int] = TOP_N_DEFAULT) -> List[RankingEntry]:
    """Top customers by value, labelled with the customer name."""
    return rank_top_n(df, key='customer_key', n=n, label='customer_name')


def calculate_top_products(items_df: pd.DataFrame, n: Optional[int] = TOP_N_DEFAULT) -> List[RankingEntry]:
    """
    Top products by line subtotal, labelled with the product description.

    Args:
        items_df: Line-item DataFrame (see normalize_sale_items)
        n: How many entries to return; None returns every product

    Returns:
        List of RankingEntry keyed by product_id; occurrence_count is the
        number of sale lines
    """
    data = items_df
    if not data.empty and 'cancelled' in data.columns:
        data = data[~data['cancelled'].fillna(False).astype(bool)]
    return rank_top_n(data, key='product_id', n=n, label='description')


def rankings_to_frame(entries: List[RankingEntry]) -> pd.DataFrame:
    """Ranking entries as a DataFrame (for tables and charts)."""
    if not entries:
        return pd.DataFrame(columns=RANKING_COLUMNS)
    return pd.DataFrame([e.to_dict() for e in entries])[RANKING_COLUMNS]
