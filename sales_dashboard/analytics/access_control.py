# sales_dashboard/analytics/access_control.py
"""
Role-based Access Control for the Sales Analytics Engine

Handles data scoping based on the acting user's role:
- admin/manager/backoffice: Full access to every salesperson
- salesperson (and any unknown role): Own transactions only

Scoping is applied before any explicit filter and cannot be widened
by it.
"""

import logging
from typing import List, Optional
import pandas as pd

from .constants import FULL_ACCESS_ROLES, SELF_ACCESS_ROLES

logger = logging.getLogger(__name__)


class AccessControl:
    """
    Scope transaction data to what the acting user may see.

    Usage:
        access = AccessControl(
            user_role='salesperson',
            salesperson_id='user-5',
            salesperson_name='Ana Paula'
        )

        # Get access level
        level = access.get_access_level()  # 'full' or 'self'

        # Filter a dataframe
        scoped_df = access.filter_dataframe(df)
    """

    def __init__(
        self,
        user_role: str,
        salesperson_id: Optional[str] = None,
        salesperson_name: Optional[str] = None
    ):
        """
        Initialize access control.

        Args:
            user_role: Acting user's role (e.g., 'admin', 'backoffice', 'salesperson')
            salesperson_id: Acting user's salesperson id (self-scoped roles)
            salesperson_name: Acting user's display name
        """
        self.user_role = user_role.lower().strip() if user_role else ''
        self.salesperson_id = salesperson_id
        self.salesperson_name = salesperson_name

        logger.debug(f"AccessControl initialized: role={self.user_role}, salesperson_id={self.salesperson_id}")

        if self.user_role not in FULL_ACCESS_ROLES + SELF_ACCESS_ROLES:
            logger.warning(f"Unknown role '{self.user_role}', restricting to own data")

    # =========================================================================
    # ACCESS LEVEL DETERMINATION
    # =========================================================================

    def get_access_level(self) -> str:
        """
        Determine access level based on role.

        Returns:
            'full' - Can view all salespeople
            'self' - Can view own data only
        """
        if self.user_role in [r.lower() for r in FULL_ACCESS_ROLES]:
            return 'full'
        return 'self'

    def can_view_all(self) -> bool:
        """Check if user has full access to all data."""
        return self.get_access_level() == 'full'

    def can_select_salesperson(self) -> bool:
        """Self-scoped users never get the salesperson selector."""
        return self.can_view_all()

    # =========================================================================
    # DATA FILTERING
    # =========================================================================

    def filter_dataframe(
        self,
        df: pd.DataFrame,
        salesperson_id_col: str = 'salesperson_id'
    ) -> pd.DataFrame:
        """
        Filter DataFrame to the transactions this user may see.

        Args:
            df: DataFrame to filter
            salesperson_id_col: Column holding salesperson ids

        Returns:
            Filtered DataFrame (original order preserved)
        """
        if df.empty or self.can_view_all():
            return df

        if not self.salesperson_id:
            logger.warning("Self-scoped access without salesperson_id, returning empty DataFrame")
            return df.head(0)

        if salesperson_id_col not in df.columns:
            logger.warning(f"Column '{salesperson_id_col}' not found in DataFrame, returning empty DataFrame")
            return df.head(0)

        filtered = df[df[salesperson_id_col] == self.salesperson_id]
        logger.debug(f"Scoped DataFrame to {self.salesperson_id}: {len(df)} -> {len(filtered)} rows")

        return filtered

    def validate_selected_salespeople(self, selected: List[str]) -> List[str]:
        """
        Drop salesperson names the user cannot select.

        Self-scoped users only keep their own name.
        """
        if self.can_view_all():
            return list(selected)

        valid = [name for name in selected if name == self.salesperson_name]
        if len(valid) < len(selected):
            logger.warning(
                f"Some selected salespeople were filtered out: "
                f"selected={len(selected)}, valid={len(valid)}"
            )
        return valid

    def __repr__(self) -> str:
        return (
            f"AccessControl(role='{self.user_role}', "
            f"salesperson_id={self.salesperson_id!r}, "
            f"level='{self.get_access_level()}')"
        )
