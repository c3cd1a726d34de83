"""Settings dataclass for GHDEPUP configuration.

This module defines the Settings dataclass that holds all configuration
values and the mapping between file/environment keys and attributes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_TOKEN_ENV_VAR = "GITHUB_TOKEN"

# Bounds for the values clamped by ConfigManager
MAX_PARALLEL_FETCHES = 16
MAX_TAGS_PER_PAGE = 100  # GitHub caps per_page at 100


@dataclass
class Settings:
    """Configuration settings for GHDEPUP.

    All settings have sensible defaults and can be overridden from the
    global config file (~/.ghdepup-config), a local .ghdepup file or
    GHDEPUP_-prefixed environment variables.

    Attributes:
        github_api_url: Base URL of the GitHub REST API
        token_env_var: Name of the environment variable holding the access token
        max_parallel_fetches: Number of dependencies resolved concurrently
        tags_per_page: Page size used when listing tags
        fetch_timeout_seconds: HTTP request timeout
        fetch_max_retries: Retries per page on transient failures
        fetch_retry_delay_seconds: Base delay for exponential backoff
    """

    # GitHub settings
    github_api_url: str = DEFAULT_GITHUB_API_URL
    token_env_var: str = DEFAULT_TOKEN_ENV_VAR

    # Concurrency settings
    max_parallel_fetches: int = 4
    tags_per_page: int = 100

    # Fetch performance settings
    fetch_timeout_seconds: float = 30.0
    fetch_max_retries: int = 3
    fetch_retry_delay_seconds: float = 1.0

    # Config key to attribute mapping
    _key_mapping: dict[str, str] = field(
        default_factory=lambda: {
            "GITHUB_API_URL": "github_api_url",
            "TOKEN_ENV_VAR": "token_env_var",
            "MAX_PARALLEL_FETCHES": "max_parallel_fetches",
            "TAGS_PER_PAGE": "tags_per_page",
            "FETCH_TIMEOUT_SECONDS": "fetch_timeout_seconds",
            "FETCH_MAX_RETRIES": "fetch_max_retries",
            "FETCH_RETRY_DELAY_SECONDS": "fetch_retry_delay_seconds",
        },
        repr=False,
    )

    def get_attribute_for_key(self, key: str) -> str | None:
        """Get the attribute name for a config key."""
        return self._key_mapping.get(key)

    @classmethod
    def get_config_keys(cls) -> list[str]:
        """Get list of all valid configuration keys."""
        temp = cls()
        return list(temp._key_mapping.keys())


# Default configuration file path
CONFIG_FILE = Path.home() / ".ghdepup-config"

# Prefix for environment variable overrides (GHDEPUP_MAX_PARALLEL_FETCHES, ...)
ENV_PREFIX = "GHDEPUP_"


__all__ = [
    "CONFIG_FILE",
    "DEFAULT_GITHUB_API_URL",
    "DEFAULT_TOKEN_ENV_VAR",
    "ENV_PREFIX",
    "MAX_PARALLEL_FETCHES",
    "MAX_TAGS_PER_PAGE",
    "Settings",
]
