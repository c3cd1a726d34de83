"""Retry utilities for handling rate limits and transient errors.

This module provides the delay calculations used by the tag source when
the GitHub API times out, fails with a server error or rate-limits us:
- calculate_backoff_delay: Capped exponential backoff with jitter
- get_retry_after_delay: Delay requested by the server (Retry-After or
  X-RateLimit-Reset), falling back to exponential backoff
"""

from __future__ import annotations

import random
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING

from ghdepup.config.fetch_config import MAX_RETRY_DELAY_SECONDS

if TYPE_CHECKING:
    from ghdepup.config.fetch_config import FetchPerformanceConfig

# Fraction of the delay added as random jitter
JITTER_FACTOR = 0.1

JitterGenerator = Callable[[float], float]


def default_jitter_generator(max_jitter: float) -> float:
    """Generate random jitter between 0 and max_jitter."""
    return random.uniform(0, max_jitter)


def calculate_backoff_delay(
    attempt: int,
    config: FetchPerformanceConfig,
    jitter_generator: JitterGenerator | None = None,
) -> float:
    """Calculate delay with exponential backoff and jitter.

    Formula: min(base * 2^attempt, MAX_RETRY_DELAY_SECONDS) + jitter

    The jitter helps prevent thundering herd problems where several
    concurrent tag listings retry at the same time.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Fetch performance configuration
        jitter_generator: Optional jitter source (injectable for tests)

    Returns:
        Delay in seconds

    Example delays with default config (base=1s):
        Attempt 0: 1.0 - 1.1s
        Attempt 1: 2.0 - 2.2s
        Attempt 2: 4.0 - 4.4s
    """
    generate = jitter_generator or default_jitter_generator
    capped_delay = min(config.retry_delay_seconds * (2**attempt), MAX_RETRY_DELAY_SECONDS)
    return capped_delay + generate(capped_delay * JITTER_FACTOR)


def get_retry_after_delay(
    headers: Mapping[str, str],
    attempt: int,
    config: FetchPerformanceConfig,
    now: datetime | None = None,
) -> float:
    """Extract the server-requested delay from response headers.

    Supports, in order:
    - Retry-After as delay-seconds (e.g. "120")
    - Retry-After as HTTP-date (e.g. "Sun, 26 Jan 2026 12:00:00 GMT")
    - X-RateLimit-Reset as a UNIX timestamp (GitHub primary rate limit)

    All delays are capped at MAX_RETRY_DELAY_SECONDS so a misconfigured
    server cannot park the run for an hour.

    Args:
        headers: Response headers (case-insensitive mapping from httpx)
        attempt: Current attempt number (0-indexed)
        config: Fetch performance configuration for the fallback delay
        now: Current time (injectable for tests)

    Returns:
        Number of seconds to wait before retrying
    """
    current = now or datetime.now(UTC)

    retry_after = headers.get("Retry-After")
    if retry_after:
        try:
            return min(max(0.0, float(retry_after)), MAX_RETRY_DELAY_SECONDS)
        except ValueError:
            pass
        try:
            retry_date = parsedate_to_datetime(retry_after)
            delay = (retry_date - current).total_seconds()
            return min(max(0.0, delay), MAX_RETRY_DELAY_SECONDS)
        except (ValueError, TypeError):
            pass

    reset = headers.get("X-RateLimit-Reset")
    if reset:
        try:
            delay = float(reset) - current.timestamp()
            return min(max(0.0, delay), MAX_RETRY_DELAY_SECONDS)
        except ValueError:
            pass

    default_delay: float = config.retry_delay_seconds * (2**attempt)
    return min(default_delay, MAX_RETRY_DELAY_SECONDS)


__all__ = [
    "JITTER_FACTOR",
    "JitterGenerator",
    "calculate_backoff_delay",
    "default_jitter_generator",
    "get_retry_after_delay",
]
