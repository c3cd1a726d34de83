"""Tests for ghdepup.utils.retry module."""

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import pytest

from ghdepup.config.fetch_config import MAX_RETRY_DELAY_SECONDS, FetchPerformanceConfig
from ghdepup.utils.retry import (
    JITTER_FACTOR,
    calculate_backoff_delay,
    default_jitter_generator,
    get_retry_after_delay,
)

NOW = datetime(2026, 1, 26, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def config():
    """Performance config with a 1s base delay."""
    return FetchPerformanceConfig(retry_delay_seconds=1.0)


class TestCalculateBackoffDelay:
    """Tests for calculate_backoff_delay()."""

    @pytest.mark.parametrize("attempt,expected", [(0, 1.0), (1, 2.0), (2, 4.0), (3, 8.0)])
    def test_exponential(self, config, attempt, expected):
        """Delay doubles per attempt."""
        assert calculate_backoff_delay(attempt, config, lambda _: 0.0) == expected

    def test_capped(self, config):
        """Delay never exceeds the cap before jitter."""
        assert calculate_backoff_delay(20, config, lambda _: 0.0) == MAX_RETRY_DELAY_SECONDS

    def test_jitter_bounded_by_factor(self, config):
        """The jitter generator is asked for at most JITTER_FACTOR of the delay."""
        requested: list[float] = []

        def jitter(max_jitter: float) -> float:
            requested.append(max_jitter)
            return max_jitter

        delay = calculate_backoff_delay(1, config, jitter)

        assert requested == [2.0 * JITTER_FACTOR]
        assert delay == pytest.approx(2.0 * (1 + JITTER_FACTOR))

    def test_default_jitter_in_range(self):
        """Default jitter stays within [0, max]."""
        for _ in range(100):
            assert 0.0 <= default_jitter_generator(0.5) <= 0.5


class TestGetRetryAfterDelay:
    """Tests for get_retry_after_delay()."""

    def test_seconds(self, config):
        """Retry-After as delay-seconds."""
        assert get_retry_after_delay({"Retry-After": "12"}, 0, config, now=NOW) == 12.0

    def test_http_date(self, config):
        """Retry-After as an HTTP-date."""
        when = format_datetime(NOW + timedelta(seconds=30), usegmt=True)

        delay = get_retry_after_delay({"Retry-After": when}, 0, config, now=NOW)

        assert delay == pytest.approx(30.0)

    def test_past_http_date(self, config):
        """A date in the past means no wait."""
        when = format_datetime(NOW - timedelta(seconds=30), usegmt=True)

        assert get_retry_after_delay({"Retry-After": when}, 0, config, now=NOW) == 0.0

    def test_rate_limit_reset(self, config):
        """X-RateLimit-Reset is a UNIX timestamp."""
        reset = str(int(NOW.timestamp()) + 20)

        assert get_retry_after_delay({"X-RateLimit-Reset": reset}, 0, config, now=NOW) == 20.0

    def test_capped(self, config):
        """Server-requested delays are capped."""
        assert get_retry_after_delay({"Retry-After": "86400"}, 0, config, now=NOW) == 60.0

    def test_garbage_falls_back_to_backoff(self, config):
        """Unparseable headers fall back to exponential backoff."""
        delay = get_retry_after_delay({"Retry-After": "soon"}, 2, config, now=NOW)

        assert delay == 4.0

    def test_no_headers(self, config):
        """Without headers the backoff delay is used."""
        assert get_retry_after_delay({}, 1, config, now=NOW) == 2.0
