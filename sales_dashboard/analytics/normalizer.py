# sales_dashboard/analytics/normalizer.py
"""
Transaction Normalizer

Converts raw sale records (as returned by the sales backend) into the
uniform Transaction shape the rest of the engine works on:
- Customer attributes resolved through an injected lookup
- Salesperson name resolved by id
- Invoiced value preferred over the provisional order value
- Dates parsed and decorated with weekday / week-of-month
- Optional line items, one row per product line of each kept sale

Malformed records (not a mapping, unparseable date, missing value or
customer) are dropped and counted; one bad record never aborts the batch.
"""

import logging
import math
import unicodedata
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .constants import (
    CANCELLED_STATUSES,
    INVOICED_STAGE_STATUSES,
    UNCLASSIFIED,
    UNIDENTIFIED_SALESPERSON,
    WEEKDAY_ORDER,
)
from .models import NormalizationResult, Transaction, items_to_frame, transactions_to_frame

logger = logging.getLogger(__name__)


# =============================================================================
# FIELD PARSERS
# =============================================================================

def parse_transaction_date(value: Any) -> Optional[date]:
    """
    Parse a sale date into a calendar date.

    Accepts date/datetime/Timestamp objects, 'DD/MM/YYYY' strings and
    ISO-8601 strings (with or without time). Returns None when the value
    cannot be resolved to a valid calendar date.
    """
    if value is None:
        return None

    if isinstance(value, (datetime, pd.Timestamp)):
        if pd.isna(value):
            return None
        return value.date()

    if isinstance(value, date):
        return value

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if '/' in text:
        try:
            return datetime.strptime(text, '%d/%m/%Y').date()
        except ValueError:
            return None

    parsed = pd.to_datetime(text, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def _parse_number(value: Any) -> Optional[float]:
    """Parse a finite number; None for missing, boolean or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_amount(value: Any) -> Optional[float]:
    """Parse a monetary value rounded to cents; negatives are rejected."""
    number = _parse_number(value)
    if number is None or number < 0:
        return None
    return round(number, 2)


def normalize_text(value: Any) -> str:
    """Lowercase, trimmed, accent-free version of a label."""
    text = unicodedata.normalize('NFD', str(value or ''))
    text = ''.join(ch for ch in text if not unicodedata.combining(ch))
    return text.lower().strip()


def _clean_label(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _classified(value: Any, unclassified: str) -> str:
    return _clean_label(value) or unclassified


def week_of_month(day: date) -> int:
    """Week index inside the month: ceil(day / 7), 1..5."""
    return math.ceil(day.day / 7)


def weekday_label(day: date) -> str:
    return WEEKDAY_ORDER[day.weekday()]


def is_cancelled_status(status: Any) -> bool:
    return normalize_text(status) in CANCELLED_STATUSES


def is_invoiced_sale(invoiced_value: Any, status: Any) -> bool:
    """A sale counts as invoiced when it has an invoiced value or an invoiced-stage status."""
    if _parse_number(invoiced_value) is not None:
        return True
    return normalize_text(status) in INVOICED_STAGE_STATUSES


# =============================================================================
# RECORD NORMALIZATION
# =============================================================================

def resolve_salesperson_name(
    record: Dict[str, Any],
    salespeople: Optional[Dict[str, str]] = None
) -> str:
    """Salesperson name by id, then the record's own name, then a placeholder."""
    salesperson_id = _clean_label(record.get('salesperson_id'))
    if salespeople and salesperson_id and _clean_label(salespeople.get(salesperson_id)):
        return salespeople[salesperson_id].strip()
    return _clean_label(record.get('salesperson_name')) or UNIDENTIFIED_SALESPERSON


def normalize_sale(
    record: Dict[str, Any],
    customers: Dict[str, Dict[str, Any]],
    salespeople: Optional[Dict[str, str]] = None,
    unclassified: str = UNCLASSIFIED,
    position: Optional[int] = None
) -> Optional[Transaction]:
    """
    Normalize one raw sale record.

    Args:
        record: Raw sale record (keys: id, number, customer_id, customer_name,
                salesperson_id, salesperson_name, order_value, invoiced_value,
                total_quantity, nature_name, order_date, status)
        customers: Customer records by customer id (segment, status, state,
                   network_group)
        salespeople: Optional salesperson id -> name lookup
        unclassified: Sentinel used when a customer attribute is unknown
        position: Position in the batch, used as a fallback identifier

    Returns:
        Transaction, or None when the record is malformed
    """
    sale_day = parse_transaction_date(record.get('order_date'))
    if sale_day is None:
        return None

    invoiced_value = record.get('invoiced_value')
    value = parse_amount(invoiced_value)
    if value is None:
        value = parse_amount(record.get('order_value'))
    if value is None:
        return None

    customer_id = _clean_label(record.get('customer_id'))
    customer_name = _clean_label(record.get('customer_name'))
    customer_key = customer_id or customer_name
    if customer_key is None:
        return None

    customer = customers.get(customer_id) if customer_id else None
    if not isinstance(customer, Mapping):
        customer = {}
    status = _clean_label(record.get('status'))

    sale_id = _clean_label(record.get('id'))
    transaction_id = _clean_label(record.get('number')) or sale_id
    if transaction_id is None:
        transaction_id = f"row-{position}" if position is not None else customer_key

    return Transaction(
        transaction_id=transaction_id,
        sale_id=sale_id,
        customer_id=customer_id,
        customer_name=customer_name or _clean_label(customer.get('name')) or customer_key,
        customer_key=customer_key,
        salesperson_id=_clean_label(record.get('salesperson_id')),
        salesperson_name=resolve_salesperson_name(record, salespeople),
        value=value,
        quantity=_parse_number(record.get('total_quantity')),
        nature=_classified(record.get('nature_name'), unclassified),
        segment=_classified(customer.get('segment'), unclassified),
        customer_status=_classified(customer.get('status'), unclassified),
        network_group=_clean_label(customer.get('network_group')),
        state=_classified(customer.get('state'), unclassified),
        date=sale_day,
        weekday=weekday_label(sale_day),
        week_of_month=week_of_month(sale_day),
        status=status,
        invoiced=is_invoiced_sale(invoiced_value, status),
        cancelled=is_cancelled_status(status),
    )


def normalize_sale_item(
    item: Any,
    transaction: Transaction,
    position: int = 0
) -> Optional[Dict[str, Any]]:
    """
    Normalize one line item of an already-normalized sale.

    The row inherits every column of its sale (date, customer, salesperson,
    status, cancellation); `value` becomes the line subtotal and `quantity`
    the line quantity.

    Args:
        item: Raw item (keys: id, product_id, sku, description, quantity,
              unit_price, subtotal)
        transaction: The parent sale
        position: Position of the item inside the sale

    Returns:
        Item row dict, or None when the item has no product or no amount
    """
    if not isinstance(item, Mapping):
        return None

    sku = _clean_label(item.get('sku'))
    product_id = _clean_label(item.get('product_id')) or sku
    if product_id is None:
        return None

    quantity = _parse_number(item.get('quantity'))
    subtotal = parse_amount(item.get('subtotal'))
    if subtotal is None:
        unit_price = parse_amount(item.get('unit_price'))
        if unit_price is not None and quantity is not None and quantity >= 0:
            subtotal = round(unit_price * quantity, 2)
    if subtotal is None:
        return None

    row = transaction.to_dict()
    row.update(
        item_id=_clean_label(item.get('id')) or f"{transaction.transaction_id}-{position + 1}",
        product_id=product_id,
        sku=sku,
        description=_clean_label(item.get('description')) or product_id,
        quantity=quantity or 0.0,
        value=subtotal,
    )
    return row


def _generates_revenue(record: Mapping, natures: Dict[str, Dict[str, Any]]) -> bool:
    nature = natures.get(_clean_label(record.get('nature_id')) or '')
    return isinstance(nature, Mapping) and nature.get('generates_revenue') is True


def _record_id(record: Any, position: int) -> Any:
    if not isinstance(record, Mapping):
        return position
    return record.get('number') or record.get('id') or position


def _raw_items(record: Mapping) -> List[Any]:
    items = record.get('items')
    return list(items) if isinstance(items, (list, tuple)) else []


def _normalize_items(
    record: Mapping,
    transaction: Transaction
) -> Tuple[List[Dict[str, Any]], int]:
    rows = []
    dropped = 0
    for position, item in enumerate(_raw_items(record)):
        row = normalize_sale_item(item, transaction, position)
        if row is None:
            dropped += 1
            continue
        rows.append(row)
    return rows, dropped


def normalize_sales(
    records: Iterable[Dict[str, Any]],
    customers: Optional[Dict[str, Dict[str, Any]]] = None,
    natures: Optional[Dict[str, Dict[str, Any]]] = None,
    salespeople: Optional[Dict[str, str]] = None,
    unclassified: str = UNCLASSIFIED,
    include_items: bool = False
) -> NormalizationResult:
    """
    Normalize a batch of raw sale records into the transaction DataFrame.

    Args:
        records: Raw sale records
        customers: Customer records by id
        natures: Optional operation-nature records by id; when given, only
                 sales whose nature generates revenue are kept
        salespeople: Optional salesperson id -> name lookup
        unclassified: Sentinel for unknown customer attributes
        include_items: Also build the line-item DataFrame from each
                       kept sale's `items`

    Returns:
        NormalizationResult with the DataFrame (input order preserved) and
        the dropped / skipped counts
    """
    customers = customers or {}
    kept: List[Transaction] = []
    item_rows: List[Dict[str, Any]] = []
    dropped_ids: List[Any] = []
    dropped_items = 0
    skipped_non_revenue = 0

    for position, record in enumerate(records):
        if not isinstance(record, Mapping):
            dropped_ids.append(position)
            continue

        if natures is not None and not _generates_revenue(record, natures):
            skipped_non_revenue += 1
            continue

        transaction = normalize_sale(
            record,
            customers,
            salespeople=salespeople,
            unclassified=unclassified,
            position=position,
        )
        if transaction is None:
            dropped_ids.append(_record_id(record, position))
            continue
        kept.append(transaction)

        if include_items:
            rows, dropped = _normalize_items(record, transaction)
            item_rows.extend(rows)
            dropped_items += dropped

    if dropped_ids:
        logger.warning(f"Dropped {len(dropped_ids)} malformed sale record(s): {dropped_ids[:10]}")
    if dropped_items:
        logger.warning(f"Dropped {dropped_items} line item(s) without product or amount")
    if skipped_non_revenue:
        logger.info(f"Skipped {skipped_non_revenue} sale(s) with non-revenue operation nature")

    logger.info(f"Normalized {len(kept):,} transactions")

    return NormalizationResult(
        transactions=transactions_to_frame(kept),
        dropped_count=len(dropped_ids),
        dropped_ids=dropped_ids,
        skipped_non_revenue=skipped_non_revenue,
        items=items_to_frame(item_rows) if include_items else None,
        dropped_item_count=dropped_items,
    )


def normalize_sale_items(
    records: Iterable[Dict[str, Any]],
    customers: Optional[Dict[str, Dict[str, Any]]] = None,
    natures: Optional[Dict[str, Dict[str, Any]]] = None,
    salespeople: Optional[Dict[str, str]] = None,
    unclassified: str = UNCLASSIFIED
) -> pd.DataFrame:
    """Line-item DataFrame (ITEM_COLUMNS) of the sales that normalize cleanly."""
    return normalize_sales(
        records,
        customers=customers,
        natures=natures,
        salespeople=salespeople,
        unclassified=unclassified,
        include_items=True,
    ).items
