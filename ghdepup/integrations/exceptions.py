"""Custom exceptions for tag fetching operations.

This module defines the exception hierarchy for the integrations package:
- FetchError: Base exception for all tag fetch failures
- TagFetchError: The API answered with an error, or retries ran out
- RepositoryNotFoundError: The project does not exist (HTTP 404)
- AuthenticationError: The token was rejected (HTTP 401)
- TagResponseParseError: The response body is not a JSON array of tags
- TokenMissingError: No access token in the environment
- FetchErrorGroup: Failures of several dependencies in one run
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar

from ghdepup.utils.errors import ExitCode, GhdepupError


class FetchError(GhdepupError):
    """Base exception for tag fetch failures.

    All fetch-related exceptions inherit from this class,
    enabling catch-all error handling when needed.

    Attributes:
        project: The "owner/repo" slug being fetched, if known
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.FETCH_ERROR

    def __init__(self, message: str, project: str | None = None) -> None:
        self.project = project
        super().__init__(message)


class TagFetchError(FetchError):
    """Raised when the API returns an error status or retries are exhausted.

    Attributes:
        project: The project being fetched
        status_code: HTTP status, or None for network failures
    """

    def __init__(
        self,
        project: str,
        reason: str,
        status_code: int | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize TagFetchError.

        Args:
            project: The project whose tags could not be listed
            reason: Description of what went wrong
            status_code: Optional HTTP status
            message: Optional custom message (auto-generated if not provided)
        """
        self.status_code = status_code
        self.reason = reason
        if message is None:
            message = f"Cannot list tags of {project}: {reason}"
        super().__init__(message, project=project)


class RepositoryNotFoundError(TagFetchError):
    """Raised when the project does not exist or is not visible to the token."""

    def __init__(self, project: str) -> None:
        super().__init__(
            project,
            "repository not found",
            status_code=404,
            message=f"GitHub repository '{project}' not found",
        )


class AuthenticationError(TagFetchError):
    """Raised when GitHub rejects the access token."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.AUTH_ERROR

    def __init__(self, project: str) -> None:
        super().__init__(
            project,
            "bad credentials",
            status_code=401,
            message=f"GitHub rejected the access token while listing tags of {project}",
        )


class TagResponseParseError(FetchError):
    """Raised when a tag listing response cannot be parsed.

    Attributes:
        project: The project being fetched
        raw_response: Beginning of the body that failed to parse
    """

    def __init__(self, project: str, reason: str, raw_response: str | None = None) -> None:
        self.raw_response = raw_response
        super().__init__(f"Unexpected tag listing for {project}: {reason}", project=project)


class TokenMissingError(FetchError):
    """Raised when the access token environment variable is unset or blank."""

    _default_exit_code: ClassVar[ExitCode] = ExitCode.AUTH_ERROR

    def __init__(self, env_var: str) -> None:
        self.env_var = env_var
        super().__init__(f"No GitHub token found: set the {env_var} environment variable")


class FetchErrorGroup(GhdepupError):
    """Raised when fetching failed for one or more dependencies.

    Every dependency is attempted before this is raised, so the message
    lists all failures at once.

    Attributes:
        errors: Failure per dependency name, in name order
    """

    _default_exit_code: ClassVar[ExitCode] = ExitCode.FETCH_ERROR

    def __init__(self, errors: Mapping[str, FetchError]) -> None:
        self.errors = dict(sorted(errors.items()))
        lines = [f"Fetching failed for {len(self.errors)} dependency(ies):"]
        lines += [f"  {name}: {error}" for name, error in self.errors.items()]
        # Auth only when every failure is an auth failure
        exit_code = None
        if self.errors and all(e.exit_code == ExitCode.AUTH_ERROR for e in self.errors.values()):
            exit_code = ExitCode.AUTH_ERROR
        super().__init__("\n".join(lines), exit_code=exit_code)


__all__ = [
    "AuthenticationError",
    "FetchError",
    "FetchErrorGroup",
    "RepositoryNotFoundError",
    "TagFetchError",
    "TagResponseParseError",
    "TokenMissingError",
]
