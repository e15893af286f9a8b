# sales_dashboard/analytics/constants.py
"""
Constants for the Sales Analytics Engine

Centralized configuration for:
- Role definitions
- Transaction columns
- Period selectors
- Sale status groups
- ABC / ranking defaults
"""

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

# Full access: can view every salesperson's transactions
FULL_ACCESS_ROLES = ['admin', 'manager', 'backoffice']

# Self access: restricted to own transactions
SELF_ACCESS_ROLES = ['salesperson', 'seller']

# =====================================================================
# TRANSACTION SHAPE
# =====================================================================

TRANSACTION_COLUMNS = [
    'transaction_id',
    'sale_id',
    'customer_id',
    'customer_name',
    'customer_key',
    'salesperson_id',
    'salesperson_name',
    'value',
    'quantity',
    'nature',
    'segment',
    'customer_status',
    'network_group',
    'state',
    'date',
    'weekday',
    'week_of_month',
    'week_label',
    'status',
    'invoiced',
    'cancelled',
]

# Line-item rows carry every transaction column (value = line subtotal,
# quantity = line quantity) plus the product fields
ITEM_COLUMNS = TRANSACTION_COLUMNS + [
    'item_id',
    'product_id',
    'sku',
    'description',
]

# Dimension name -> transaction column
FILTER_DIMENSIONS = {
    'salespeople': 'salesperson_name',
    'natures': 'nature',
    'segments': 'segment',
    'customer_statuses': 'customer_status',
    'states': 'state',
}

UNCLASSIFIED = "Unclassified"
UNIDENTIFIED_SALESPERSON = "Unidentified salesperson"

# Salesperson names ignored by the top sellers ranking
IGNORED_SALESPERSON_NAMES = ['', 'N/A', UNIDENTIFIED_SALESPERSON]

# =====================================================================
# CALENDAR
# =====================================================================

WEEKDAY_ORDER = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# =====================================================================
# PERIOD DEFINITIONS
# =====================================================================

RELATIVE_PERIOD_DAYS = {
    "7": 7,
    "30": 30,
    "90": 90,
    "365": 365,
}

PERIOD_CURRENT_MONTH = "current_month"
PERIOD_CUSTOM = "custom"

PERIOD_SELECTORS = list(RELATIVE_PERIOD_DAYS) + [PERIOD_CURRENT_MONTH, PERIOD_CUSTOM]

# =====================================================================
# SALE STATUS GROUPS
# =====================================================================

# Statuses counted as a finished sale ("completed" sale-status filter)
COMPLETED_STATUSES = ['Invoiced', 'Completed', 'Shipped']

# Normalized (lowercase, unaccented) statuses that mean the sale went through invoicing
INVOICED_STAGE_STATUSES = {
    'invoiced',
    'ready to ship',
    'shipped',
    'delivered',
    'not delivered',
    'completed',
}

CANCELLED_STATUSES = {'cancelled', 'canceled'}

SALE_STATUS_ALL = 'all'
SALE_STATUS_COMPLETED = 'completed'

# =====================================================================
# CUSTOMER STATUS
# =====================================================================

CUSTOMER_STATUS_ACTIVE = 'Active'
CUSTOMER_STATUS_INACTIVE = 'Inactive'

# =====================================================================
# ABC / RANKING DEFAULTS
# =====================================================================

ABC_TIERS = ['A', 'B', 'C']
ABC_TIER_A_THRESHOLD = 80.0
ABC_TIER_B_THRESHOLD = 95.0
ABC_LOOKBACK_MONTHS = 12

TOP_N_DEFAULT = 10

# Cumulative percentages are compared after rounding to this many decimals
PERCENT_PRECISION = 10
