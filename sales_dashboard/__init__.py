# sales_dashboard/__init__.py
"""
Sales Dashboard Package

Shared pieces used by every dashboard surface:
- config: Configuration management (.env)
- analytics: Sales analytics aggregation & classification engine

Usage:
    from sales_dashboard.config import config
    from sales_dashboard.analytics import DashboardProcessor, FilterSet
"""

from .config import (
    config,
    Config,
    EngineSettings,
)

__all__ = [
    'config',
    'Config',
    'EngineSettings',
]

__version__ = '1.0.0'
