# sales_dashboard/analytics/models.py
"""
Result and record types for the Sales Analytics Engine.

Every value here is transient: it is derived from the transaction
collection on each call and never persisted.
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd

from .constants import ITEM_COLUMNS, TRANSACTION_COLUMNS


# =============================================================================
# TRANSACTION
# =============================================================================

@dataclass(frozen=True)
class Transaction:
    """One normalized commercial transaction (one row of the collection)."""
    transaction_id: str
    customer_key: str
    customer_name: str
    salesperson_name: str
    value: float
    date: date
    nature: str
    segment: str
    customer_status: str
    state: Optional[str]
    weekday: str
    week_of_month: int
    sale_id: Optional[str] = None
    customer_id: Optional[str] = None
    salesperson_id: Optional[str] = None
    quantity: Optional[float] = None
    network_group: Optional[str] = None
    status: Optional[str] = None
    invoiced: bool = False
    cancelled: bool = False

    @property
    def week_label(self) -> str:
        return f"Week {self.week_of_month}"

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row['week_label'] = self.week_label
        return row


def transactions_to_frame(transactions: List[Any]) -> pd.DataFrame:
    """
    Build the transaction DataFrame from Transaction objects or dicts.

    Columns follow TRANSACTION_COLUMNS; `date` is converted to datetime64.
    """
    rows = [t.to_dict() if isinstance(t, Transaction) else dict(t) for t in transactions]
    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    df['date'] = pd.to_datetime(df['date'], errors='coerce')
    df['value'] = pd.to_numeric(df['value'], errors='coerce').fillna(0.0).astype(float)
    df['quantity'] = pd.to_numeric(df['quantity'], errors='coerce')
    df['invoiced'] = df['invoiced'].fillna(False).astype(bool)
    df['cancelled'] = df['cancelled'].fillna(False).astype(bool)
    return df


def items_to_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Build the line-item DataFrame (ITEM_COLUMNS) from row dicts."""
    df = pd.DataFrame(rows, columns=ITEM_COLUMNS)
    df['date'] = pd.to_datetime(df['date'], errors='coerce')
    df['value'] = pd.to_numeric(df['value'], errors='coerce').fillna(0.0).astype(float)
    df['quantity'] = pd.to_numeric(df['quantity'], errors='coerce').fillna(0.0).astype(float)
    df['invoiced'] = df['invoiced'].fillna(False).astype(bool)
    df['cancelled'] = df['cancelled'].fillna(False).astype(bool)
    return df


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing a batch of raw sale records.

    `items` is only built when line items were requested.
    """
    transactions: pd.DataFrame
    dropped_count: int = 0
    dropped_ids: List[Any] = field(default_factory=list)
    skipped_non_revenue: int = 0
    items: Optional[pd.DataFrame] = None
    dropped_item_count: int = 0

    @property
    def kept_count(self) -> int:
        return len(self.transactions)


# =============================================================================
# PERIODS
# =============================================================================

@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range."""
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


@dataclass(frozen=True)
class PeriodWindow:
    """
    Current window and its directly-preceding comparison window.

    Attributes:
        selector: The selector the window was resolved from
        current: Current range; None on a fallback window (whole collection)
        previous: Comparison range; None means an empty comparison window
        is_fallback: True when the selector could not be resolved
    """
    selector: Any
    current: Optional[DateRange]
    previous: Optional[DateRange]
    is_fallback: bool = False

    @property
    def has_comparison(self) -> bool:
        return self.previous is not None


# =============================================================================
# METRICS
# =============================================================================

@dataclass(frozen=True)
class KpiValue:
    """A KPI value paired with its % delta versus the previous window."""
    value: float
    delta: float

    def to_dict(self, precision: Optional[int] = None) -> Dict[str, float]:
        if precision is None:
            return {'value': self.value, 'delta': self.delta}
        return {'value': round(self.value, precision), 'delta': round(self.delta, precision)}


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    KPI set for a window compared against the previous window.

    goal_attainment.delta is always 0: no historical goal is available
    for the previous window.
    """
    total_value: KpiValue
    deal_count: KpiValue
    average_ticket: KpiValue
    units_sold: KpiValue
    active_customers: KpiValue
    active_salespeople: KpiValue
    goal_attainment: KpiValue
    goal: float = 0.0

    KPI_NAMES = (
        'total_value',
        'deal_count',
        'average_ticket',
        'units_sold',
        'active_customers',
        'active_salespeople',
        'goal_attainment',
    )

    def kpis(self) -> Dict[str, KpiValue]:
        return {name: getattr(self, name) for name in self.KPI_NAMES}

    def to_dict(self, precision: Optional[int] = None) -> Dict[str, Any]:
        result = {name: kpi.to_dict(precision) for name, kpi in self.kpis().items()}
        result['goal'] = self.goal
        return result


# =============================================================================
# ABC CLASSIFICATION
# =============================================================================

@dataclass(frozen=True)
class TierBucket:
    tier: str
    member_count: int
    total_value: float
    member_percentage: float
    value_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TierClassification:
    """
    ABC buckets plus the ranked member table they were built from.

    `members` columns: key, label, value, share_percent,
    cumulative_percent, tier, rank.
    """
    buckets: List[TierBucket]
    members: pd.DataFrame
    grand_total: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.buckets

    @property
    def total_members(self) -> int:
        return len(self.members)

    def bucket(self, tier: str) -> Optional[TierBucket]:
        for bucket in self.buckets:
            if bucket.tier == tier:
                return bucket
        return None

    def members_of(self, tier: str) -> List[Any]:
        if self.members.empty:
            return []
        return self.members.loc[self.members['tier'] == tier, 'key'].tolist()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'grand_total': self.grand_total,
            'total_members': self.total_members,
            'buckets': [b.to_dict() for b in self.buckets],
        }


# =============================================================================
# RANKING / POSITIVATION
# =============================================================================

@dataclass(frozen=True)
class RankingEntry:
    key: Any
    label: Any
    total_value: float
    occurrence_count: int
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PositivationResult:
    """
    Distinct active customers versus a reference population.

    is_self_referential is True when no customer-master count was given
    and the active count stood in for the population.
    """
    active_count: int
    reference_population: int
    percentage: float
    is_self_referential: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
