# sales_dashboard/analytics/positivation.py
"""
Positivation Calculator

Positivation = distinct customers who bought in a window, as a
percentage of the customer population they are measured against.

The population must come from the customer master (Active + Inactive
customers, optionally those assigned to one salesperson). When the
caller cannot supply it, the active count stands in for it and the
result is flagged as self-referential.
"""

import logging
from typing import Any, Dict, Iterable, Optional
import pandas as pd

from .constants import CUSTOMER_STATUS_ACTIVE, CUSTOMER_STATUS_INACTIVE
from .models import PositivationResult

logger = logging.getLogger(__name__)


def _customer_records(customers: Any) -> list:
    if customers is None:
        return []
    if isinstance(customers, pd.DataFrame):
        return customers.to_dict('records')
    if isinstance(customers, dict):
        return list(customers.values())
    return list(customers)


def _assigned_to(customer: Dict[str, Any], salesperson: Optional[str]) -> bool:
    if salesperson is None:
        return True
    return customer.get('assigned_salesperson') == salesperson


def count_active_customers(df: pd.DataFrame, salesperson: Optional[str] = None) -> int:
    """Distinct customers with a non-cancelled transaction, optionally for one salesperson."""
    if df.empty or 'customer_key' not in df.columns:
        return 0

    data = df
    if 'cancelled' in data.columns:
        data = data[~data['cancelled'].fillna(False).astype(bool)]

    if salesperson is not None:
        mask = pd.Series(False, index=data.index)
        for column in ('salesperson_id', 'salesperson_name'):
            if column in data.columns:
                mask |= data[column] == salesperson
        data = data[mask]

    return int(data['customer_key'].dropna().nunique())


def count_reference_population(customers: Any, salesperson: Optional[str] = None) -> int:
    """
    Customers with status Active or Inactive.

    Args:
        customers: Customer records (list of dicts, id -> record dict, or DataFrame)
        salesperson: Only count customers whose assigned_salesperson matches
    """
    statuses = {CUSTOMER_STATUS_ACTIVE, CUSTOMER_STATUS_INACTIVE}
    return sum(
        1 for customer in _customer_records(customers)
        if customer.get('status') in statuses and _assigned_to(customer, salesperson)
    )


def calculate_positivation(
    df: pd.DataFrame,
    salesperson: Optional[str] = None,
    total_customers: Optional[int] = None
) -> PositivationResult:
    """
    Positivation for a window.

    Args:
        df: Transactions of the window (already filtered)
        salesperson: Restrict to one salesperson (id or name)
        total_customers: Reference population from the customer master

    Returns:
        PositivationResult with the percentage rounded to 1 decimal
    """
    active = count_active_customers(df, salesperson)

    if total_customers is None:
        logger.debug("Positivation without a reference population, using active customers")
        return PositivationResult(
            active_count=active,
            reference_population=active,
            percentage=100.0 if active > 0 else 0.0,
            is_self_referential=True,
        )

    total = max(int(total_customers), 0)
    percentage = round(active / total * 100, 1) if total > 0 else 0.0

    return PositivationResult(
        active_count=active,
        reference_population=total,
        percentage=percentage,
    )


def calculate_customer_distribution(
    customers: Iterable[Dict[str, Any]],
    salesperson: Optional[str] = None
) -> Dict[str, float]:
    """
    Active / inactive split of the customer master.

    Returns:
        Dict with active, inactive, total, active_percent, inactive_percent
    """
    active = inactive = 0
    for customer in _customer_records(customers):
        if not _assigned_to(customer, salesperson):
            continue
        if customer.get('status') == CUSTOMER_STATUS_ACTIVE:
            active += 1
        elif customer.get('status') == CUSTOMER_STATUS_INACTIVE:
            inactive += 1

    total = active + inactive
    return {
        'active': active,
        'inactive': inactive,
        'total': total,
        'active_percent': round(active / total * 100, 1) if total else 0.0,
        'inactive_percent': round(inactive / total * 100, 1) if total else 0.0,
    }
