"""Shared pytest fixtures for the test suite."""

import math
from datetime import date

import pytest

from sales_dashboard.analytics.constants import WEEKDAY_ORDER
from sales_dashboard.analytics.models import items_to_frame, transactions_to_frame

TODAY = date(2025, 11, 20)


def make_row(**overrides):
    """One transaction row with sensible defaults."""
    day = overrides.get('date', TODAY)
    if isinstance(day, str):
        day = date.fromisoformat(day)
    row = {
        'transaction_id': 't-1',
        'sale_id': None,
        'customer_id': 'C1',
        'customer_name': 'Acme',
        'customer_key': overrides.get('customer_id', 'C1'),
        'salesperson_id': 's1',
        'salesperson_name': 'Ana',
        'value': 100.0,
        'quantity': 1.0,
        'nature': 'Sale',
        'segment': 'Retail',
        'customer_status': 'Active',
        'network_group': None,
        'state': 'SP',
        'date': day,
        'weekday': WEEKDAY_ORDER[day.weekday()],
        'week_of_month': math.ceil(day.day / 7),
        'week_label': f"Week {math.ceil(day.day / 7)}",
        'status': 'Invoiced',
        'invoiced': True,
        'cancelled': False,
    }
    row.update(overrides)
    row['date'] = day
    return row


def make_frame(rows):
    """Transaction DataFrame from row override dicts (ids assigned in order)."""
    built = []
    for position, overrides in enumerate(rows, start=1):
        overrides = dict(overrides)
        overrides.setdefault('transaction_id', f"t{position}")
        built.append(make_row(**overrides))
    return transactions_to_frame(built)


def make_item_frame(rows):
    """Line-item DataFrame from row override dicts (product P1 by default)."""
    built = []
    for position, overrides in enumerate(rows, start=1):
        overrides = dict(overrides)
        overrides.setdefault('transaction_id', f"t{position}")
        row = make_row(**overrides)
        row.setdefault('item_id', f"{row['transaction_id']}-1")
        row.setdefault('product_id', 'P1')
        row.setdefault('sku', f"SKU-{row['product_id']}")
        row.setdefault('description', f"Product {row['product_id']}")
        built.append(row)
    return items_to_frame(built)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def frame_factory():
    return make_frame


@pytest.fixture
def sales_df():
    """
    Small collection around 2025-11-20.

    Current 30 days (2025-10-22..2025-11-20): t1, t2, t3 (+ cancelled t4)
    Previous 30 days: t5
    Outside the 12-month ABC lookback: t6
    """
    return make_frame([
        {'customer_id': 'C1', 'customer_name': 'Acme', 'salesperson_id': 's1', 'salesperson_name': 'Ana',
         'value': 600.0, 'quantity': 6.0, 'segment': 'Retail', 'state': 'SP', 'date': '2025-11-17'},
        {'customer_id': 'C2', 'customer_name': 'Beta', 'salesperson_id': 's2', 'salesperson_name': 'Bruno',
         'value': 300.0, 'quantity': 3.0, 'segment': 'Wholesale', 'state': 'RJ', 'date': '2025-11-18'},
        {'customer_id': 'C3', 'customer_name': 'Gamma', 'salesperson_id': 's1', 'salesperson_name': 'Ana',
         'value': 100.0, 'quantity': None, 'segment': 'Retail', 'state': 'SP', 'date': '2025-11-19',
         'status': 'Pending', 'invoiced': False},
        {'customer_id': 'C1', 'customer_name': 'Acme', 'salesperson_id': 's1', 'salesperson_name': 'Ana',
         'value': 999.0, 'date': '2025-11-19', 'status': 'Cancelled', 'cancelled': True},
        {'customer_id': 'C2', 'customer_name': 'Beta', 'salesperson_id': 's2', 'salesperson_name': 'Bruno',
         'value': 200.0, 'quantity': 2.0, 'segment': 'Wholesale', 'state': 'RJ', 'date': '2025-10-15'},
        {'customer_id': 'C4', 'customer_name': 'Delta', 'salesperson_id': 's3', 'salesperson_name': 'Carla',
         'value': 50.0, 'segment': 'Retail', 'state': 'MG', 'date': '2024-10-01'},
    ])


@pytest.fixture
def customers():
    """Customer master by id."""
    return {
        'C1': {'name': 'Acme', 'segment': 'Retail', 'status': 'Active', 'state': 'SP',
               'network_group': 'North', 'assigned_salesperson': 's1'},
        'C2': {'name': 'Beta', 'segment': 'Wholesale', 'status': 'Active', 'state': 'RJ',
               'assigned_salesperson': 's2'},
        'C3': {'name': 'Gamma', 'segment': '', 'status': 'Inactive', 'state': 'SP',
               'assigned_salesperson': 's1'},
        'C5': {'name': 'Epsilon', 'segment': 'Retail', 'status': 'Prospect', 'state': 'PR',
               'assigned_salesperson': 's1'},
    }


@pytest.fixture
def raw_sales():
    """Raw sale records as returned by the sales backend."""
    return [
        {'id': 'a1', 'number': 'PV-001', 'customer_id': 'C1', 'customer_name': 'Acme',
         'salesperson_id': 's1', 'salesperson_name': 'Ana', 'order_value': 100,
         'invoiced_value': 90, 'total_quantity': 2, 'nature_id': 'n1', 'nature_name': 'Sale',
         'order_date': '17/11/2025', 'status': 'Invoiced'},
        {'id': 'a2', 'number': 'PV-002', 'customer_id': 'C2', 'customer_name': 'Beta',
         'salesperson_id': 's2', 'salesperson_name': 'Bruno', 'order_value': '250.5',
         'invoiced_value': None, 'total_quantity': None, 'nature_id': 'n1', 'nature_name': 'Sale',
         'order_date': '2025-11-18T10:30:00', 'status': 'Pending'},
        {'id': 'a3', 'number': 'PV-003', 'customer_id': 'C9', 'customer_name': 'Unknown Co',
         'salesperson_id': None, 'salesperson_name': None, 'order_value': 40,
         'nature_id': 'n2', 'nature_name': None, 'order_date': '2025-11-19', 'status': 'Cancelled'},
    ]


@pytest.fixture
def empty_df():
    return transactions_to_frame([])



@pytest.fixture
def item_frame_factory():
    return make_item_frame


@pytest.fixture
def raw_sales_with_items(raw_sales):
    """The raw sales with product lines (PV-003 is cancelled)."""
    items = [
        [
            {'id': 'i1', 'product_id': 'P1', 'sku': 'SKU-1', 'description': 'Widget',
             'quantity': 2, 'unit_price': 30, 'subtotal': 60},
            {'product_id': 'P2', 'sku': 'SKU-2', 'description': 'Gadget',
             'quantity': 1, 'unit_price': 30},
        ],
        [
            {'id': 'i3', 'product_id': 'P1', 'sku': 'SKU-1', 'description': 'Widget',
             'quantity': 5, 'subtotal': '250.5'},
            {'description': 'Freight', 'quantity': 1, 'subtotal': 10},
            'garbage',
        ],
        [
            {'id': 'i4', 'product_id': 'P3', 'sku': 'SKU-3', 'description': 'Gizmo',
             'quantity': 4, 'subtotal': 40},
        ],
    ]
    return [dict(record, items=lines) for record, lines in zip(raw_sales, items)]
