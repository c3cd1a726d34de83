"""Fetch configuration for GHDEPUP.

This module defines the performance settings applied to every tag listing
request and the error raised when configuration values cannot be used.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ghdepup.utils.errors import GhdepupError

logger = logging.getLogger(__name__)

# Upper bounds for performance settings
MAX_TIMEOUT_SECONDS = 300.0
MAX_RETRIES = 10
MAX_RETRY_DELAY_SECONDS = 60.0


class ConfigValidationError(GhdepupError):
    """Raised when a configuration value cannot be converted or is out of range.

    This exception is raised for fail-fast behavior when:
    - A numeric setting holds a non-numeric value
    - The GitHub API URL is not an http(s) URL
    """

    pass


@dataclass
class FetchPerformanceConfig:
    """Performance settings for tag fetching.

    Attributes:
        timeout_seconds: HTTP request timeout (max: 300s/5 min)
        max_retries: Maximum number of retry attempts per page (max: 10)
        retry_delay_seconds: Base delay between retry attempts (max: 60s)

    Upper bounds are enforced to prevent configurations that can block or hang.
    Values are clamped in __post_init__ using simple assignment (not frozen).
    """

    timeout_seconds: float = 30.0
    max_retries: int = 3
    retry_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        """Validate and clamp values to safe bounds (lower and upper)."""
        # Timeout - clamp to [1, MAX] (must be > 0 for valid HTTP timeout)
        if self.timeout_seconds <= 0:
            logger.warning(
                f"timeout_seconds ({self.timeout_seconds}) must be positive, clamping to 1"
            )
            self.timeout_seconds = 1.0
        elif self.timeout_seconds > MAX_TIMEOUT_SECONDS:
            logger.warning(
                f"timeout_seconds ({self.timeout_seconds}) exceeds max "
                f"({MAX_TIMEOUT_SECONDS}), clamping to max"
            )
            self.timeout_seconds = MAX_TIMEOUT_SECONDS

        # Retries - clamp to [0, MAX]
        if self.max_retries < 0:
            logger.warning(f"max_retries ({self.max_retries}) is negative, clamping to 0")
            self.max_retries = 0
        elif self.max_retries > MAX_RETRIES:
            logger.warning(
                f"max_retries ({self.max_retries}) exceeds max ({MAX_RETRIES}), clamping to max"
            )
            self.max_retries = MAX_RETRIES

        # Retry delay - clamp to [0, MAX]
        if self.retry_delay_seconds < 0:
            logger.warning(
                f"retry_delay_seconds ({self.retry_delay_seconds}) is negative, clamping to 0"
            )
            self.retry_delay_seconds = 0.0
        elif self.retry_delay_seconds > MAX_RETRY_DELAY_SECONDS:
            logger.warning(
                f"retry_delay_seconds ({self.retry_delay_seconds}) exceeds max "
                f"({MAX_RETRY_DELAY_SECONDS}), clamping to max"
            )
            self.retry_delay_seconds = MAX_RETRY_DELAY_SECONDS


__all__ = [
    "ConfigValidationError",
    "FetchPerformanceConfig",
    "MAX_RETRIES",
    "MAX_RETRY_DELAY_SECONDS",
    "MAX_TIMEOUT_SECONDS",
]
