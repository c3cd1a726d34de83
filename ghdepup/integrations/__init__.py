"""Integrations with tag hosting services.

This package contains:
- auth: Access token lookup
- exceptions: Fetch error hierarchy
- github: Tag source backed by the GitHub REST API
"""

from ghdepup.integrations.auth import get_token
from ghdepup.integrations.exceptions import (
    AuthenticationError,
    FetchError,
    FetchErrorGroup,
    RepositoryNotFoundError,
    TagFetchError,
    TagResponseParseError,
    TokenMissingError,
)
from ghdepup.integrations.github import GitHubTagSource

__all__ = [
    "AuthenticationError",
    "FetchError",
    "FetchErrorGroup",
    "GitHubTagSource",
    "RepositoryNotFoundError",
    "TagFetchError",
    "TagResponseParseError",
    "TokenMissingError",
    "get_token",
]
