# sales_dashboard/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Local .env loading (python-dotenv)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Engine settings grouped in a dataclass
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any
from dataclasses import dataclass, asdict

# Initialize logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSettings:
    """Analytics engine settings container"""
    abc_tier_a_threshold: float = 80.0
    abc_tier_b_threshold: float = 95.0
    abc_lookback_months: int = 12
    top_n_default: int = 10
    unclassified_label: str = "Unclassified"
    enable_debug_timing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self):
        if not 0 < self.abc_tier_a_threshold <= self.abc_tier_b_threshold <= 100:
            raise ValueError(
                "ABC thresholds must satisfy 0 < A <= B <= 100 "
                f"(got A={self.abc_tier_a_threshold}, B={self.abc_tier_b_threshold})"
            )
        if self.abc_lookback_months <= 0:
            raise ValueError("ABC_LOOKBACK_MONTHS must be positive")
        if self.top_n_default <= 0:
            raise ValueError("TOP_N_DEFAULT must be positive")


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """
    Centralized configuration management

    Usage:
        from sales_dashboard.config import config

        # Get engine settings
        settings = config.get_engine_settings()

        # Get a single setting
        top_n = config.get_app_setting("TOP_N_DEFAULT", 10)

        # Check feature flags
        if config.is_feature_enabled("DEBUG_TIMING"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration from environment"""
        self._load_env_file()
        self._load_app_config()
        self._log_config_status()

    def _load_env_file(self):
        """Load configuration from local .env file"""
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

    def _load_app_config(self):
        """Load engine-specific settings"""
        self._app_config = {
            # ABC / Pareto
            "ABC_TIER_A_THRESHOLD": float(os.getenv("ABC_TIER_A_THRESHOLD", "80")),
            "ABC_TIER_B_THRESHOLD": float(os.getenv("ABC_TIER_B_THRESHOLD", "95")),
            "ABC_LOOKBACK_MONTHS": int(os.getenv("ABC_LOOKBACK_MONTHS", "12")),

            # Rankings
            "TOP_N_DEFAULT": int(os.getenv("TOP_N_DEFAULT", "10")),

            # Normalization
            "UNCLASSIFIED_LABEL": os.getenv("UNCLASSIFIED_LABEL", "Unclassified"),

            # Feature flags
            "ENABLE_DEBUG_TIMING": _env_bool("ENABLE_DEBUG_TIMING"),
        }

        self._engine_settings = EngineSettings(
            abc_tier_a_threshold=self._app_config["ABC_TIER_A_THRESHOLD"],
            abc_tier_b_threshold=self._app_config["ABC_TIER_B_THRESHOLD"],
            abc_lookback_months=self._app_config["ABC_LOOKBACK_MONTHS"],
            top_n_default=self._app_config["TOP_N_DEFAULT"],
            unclassified_label=self._app_config["UNCLASSIFIED_LABEL"],
            enable_debug_timing=self._app_config["ENABLE_DEBUG_TIMING"],
        )
        self._engine_settings.validate()

    def _log_config_status(self):
        """Log configuration status"""
        s = self._engine_settings
        logger.info(f"✅ ABC thresholds: A<={s.abc_tier_a_threshold}%, B<={s.abc_tier_b_threshold}%")
        logger.info(f"✅ ABC lookback: {s.abc_lookback_months} months, top-N default: {s.top_n_default}")

    # ==================== PUBLIC GETTERS ====================

    def get_engine_settings(self) -> EngineSettings:
        """Get analytics engine settings"""
        return self._engine_settings

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, False)

    def reload(self):
        """Re-read the environment (used by tests and long-running hosts)"""
        self._load_config()

    # ==================== PROPERTIES ====================

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

ENGINE_SETTINGS = config.get_engine_settings()

__all__ = [
    'config',
    'Config',
    'EngineSettings',
    'ENGINE_SETTINGS',
]
