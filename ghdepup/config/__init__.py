"""Configuration management for GHDEPUP.

This package contains:
- settings: Settings dataclass with configuration fields
- manager: ConfigManager class for loading configuration
- fetch_config: Fetch performance settings and validation

Configuration Format
====================
Configuration files use the same KEY="VALUE" records as declaration files.

Examples:
    MAX_PARALLEL_FETCHES="8"
    TOKEN_ENV_VAR="GH_PAT"
"""

from ghdepup.config.fetch_config import (
    MAX_RETRIES,
    MAX_RETRY_DELAY_SECONDS,
    MAX_TIMEOUT_SECONDS,
    ConfigValidationError,
    FetchPerformanceConfig,
)
from ghdepup.config.manager import ConfigManager
from ghdepup.config.settings import Settings

__all__ = [
    # Core classes
    "Settings",
    "ConfigManager",
    "FetchPerformanceConfig",
    # Validation
    "ConfigValidationError",
    # Constants
    "MAX_TIMEOUT_SECONDS",
    "MAX_RETRIES",
    "MAX_RETRY_DELAY_SECONDS",
]
