"""GitHub tag source using the REST API.

This module provides GitHubTagSource, which lists the tag names of a
repository page by page through ``GET /repos/{owner}/{repo}/tags``.

Resource Management:
    GitHubTagSource manages a shared HTTP client for connection pooling.
    Use as an async context manager for proper cleanup:

        async with GitHubTagSource(token) as source:
            async for tag in source.list_tags("hyperium/hyper"):
                ...

Testability:
    The source supports an injected sleeper callable and jitter generator
    for deterministic retry tests, and an httpx transport (e.g.
    httpx.MockTransport) in place of the network.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import httpx

from ghdepup import __version__
from ghdepup.config.fetch_config import FetchPerformanceConfig
from ghdepup.config.settings import DEFAULT_GITHUB_API_URL, MAX_TAGS_PER_PAGE
from ghdepup.integrations.exceptions import (
    AuthenticationError,
    RepositoryNotFoundError,
    TagFetchError,
    TagResponseParseError,
)
from ghdepup.utils.logging import log_request
from ghdepup.utils.retry import (
    JitterGenerator,
    calculate_backoff_delay,
    default_jitter_generator,
    get_retry_after_delay,
)

logger = logging.getLogger(__name__)

# HTTP status codes with special handling
HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429

GITHUB_API_VERSION = "2022-11-28"

# Maximum length for error response body in exception messages
MAX_ERROR_BODY_LENGTH = 200

# Type alias for async sleep functions (for dependency injection in tests)
AsyncSleeper = Callable[[float], Awaitable[None]]


def _truncate_error_body(body: str) -> str:
    """Truncate error response body to keep messages and logs short."""
    if len(body) <= MAX_ERROR_BODY_LENGTH:
        return body
    return body[:MAX_ERROR_BODY_LENGTH] + "... [truncated]"


def _is_rate_limited(response: httpx.Response) -> bool:
    """Check for a 429, or a 403 caused by an exhausted primary rate limit."""
    if response.status_code == HTTP_TOO_MANY_REQUESTS:
        return True
    return (
        response.status_code == HTTP_FORBIDDEN
        and response.headers.get("X-RateLimit-Remaining") == "0"
    )


class GitHubTagSource:
    """Lists repository tags from the GitHub REST API.

    Retry Policy (per page):
        - Retries on timeouts, network errors and server errors (5xx)
        - Retries on 429, and on 403 with X-RateLimit-Remaining: 0,
          waiting as long as Retry-After / X-RateLimit-Reset asks
        - Does NOT retry on other client errors (4xx)

    Attributes:
        api_url: Base URL of the REST API
        per_page: Page size requested from the tags endpoint
    """

    def __init__(
        self,
        token: str,
        performance: FetchPerformanceConfig | None = None,
        api_url: str = DEFAULT_GITHUB_API_URL,
        per_page: int = MAX_TAGS_PER_PAGE,
        *,
        sleeper: AsyncSleeper | None = None,
        jitter_generator: JitterGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the tag source.

        Args:
            token: GitHub access token, sent as a Bearer token
            performance: Timeout and retry settings (defaults if not given)
            api_url: Base URL of the REST API (GitHub Enterprise or a mirror)
            per_page: Tags per page, clamped to 1-100
            sleeper: Optional async sleep callable for testing (defaults to asyncio.sleep)
            jitter_generator: Optional jitter generator for testing
            transport: Optional httpx transport for testing
        """
        self._token = token
        self._performance = performance or FetchPerformanceConfig()
        self.api_url = api_url.rstrip("/")
        self.per_page = min(max(1, per_page), MAX_TAGS_PER_PAGE)
        self._transport = transport

        # Shared HTTP client (created lazily on first request)
        self._http_client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

        self._sleeper: AsyncSleeper = sleeper if sleeper is not None else asyncio.sleep
        self._jitter_generator = (
            jitter_generator if jitter_generator is not None else default_jitter_generator
        )

    async def __aenter__(self) -> GitHubTagSource:
        """Enter async context manager, ensuring HTTP client is initialized."""
        await self._get_http_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager, closing HTTP client."""
        await self.close()

    async def close(self) -> None:
        """Close the shared HTTP client. Safe to call multiple times."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client (double-check locking)."""
        if self._http_client is None:
            async with self._client_lock:
                if self._http_client is None:
                    self._http_client = httpx.AsyncClient(
                        timeout=httpx.Timeout(self._performance.timeout_seconds),
                        headers=self._headers(),
                        transport=self._transport,
                    )
        return self._http_client

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": f"ghdepup/{__version__}",
        }

    async def list_tags(self, project: str) -> AsyncIterator[str]:
        """Yield the tag names of project, page by page.

        Follows the Link: rel="next" header until the last page. Entries
        without a string "name" are skipped.

        Args:
            project: Repository as an "owner/repo" slug

        Raises:
            RepositoryNotFoundError: If the repository does not exist
            AuthenticationError: If the token is rejected
            TagFetchError: On other client errors or when retries run out
            TagResponseParseError: If a page is not a JSON array
        """
        url: str | None = f"{self.api_url}/repos/{project}/tags"
        params: dict[str, int] | None = {"per_page": self.per_page, "page": 1}
        page = 0
        while url is not None:
            page += 1
            response = await self._get_with_retry(project, url, params)
            for name in self._tag_names(project, response):
                yield name
            next_link = response.links.get("next")
            url = next_link.get("url") if next_link else None
            # The next link already carries the query string
            params = None
        logger.info(f"Listed tags of {project} in {page} page(s)")

    def _tag_names(self, project: str, response: httpx.Response) -> list[str]:
        try:
            payload = response.json()
        except ValueError as e:
            raise TagResponseParseError(
                project, "response is not valid JSON", _truncate_error_body(response.text)
            ) from e
        if not isinstance(payload, list):
            raise TagResponseParseError(
                project,
                f"expected a JSON array, got {type(payload).__name__}",
                _truncate_error_body(response.text),
            )
        names = []
        for entry in payload:
            name = entry.get("name") if isinstance(entry, dict) else None
            if isinstance(name, str):
                names.append(name)
            else:
                logger.info(f"Skipping tag entry without a name for {project}")
        return names

    async def _get_with_retry(
        self,
        project: str,
        url: str,
        params: dict[str, int] | None,
    ) -> httpx.Response:
        """GET one page with exponential backoff retry.

        Uses FetchPerformanceConfig settings for max_retries and retry_delay.
        """
        http_client = await self._get_http_client()
        attempts = self._performance.max_retries + 1
        last_error = "no attempt made"

        for attempt in range(attempts):
            try:
                response = await http_client.get(url, params=params)
            except httpx.TimeoutException as e:
                log_request("GET", url)
                last_error = f"timeout ({e.__class__.__name__})"
                logger.warning(
                    "Timeout listing tags of %s (attempt %d/%d)", project, attempt + 1, attempts
                )
            except httpx.HTTPError as e:
                log_request("GET", url)
                last_error = f"network error ({e})"
                logger.warning(
                    "Network error listing tags of %s (attempt %d/%d): %s",
                    project,
                    attempt + 1,
                    attempts,
                    e,
                )
            else:
                status_code = response.status_code
                log_request("GET", str(response.url), status_code)

                if status_code < 300:
                    return response
                if status_code == HTTP_NOT_FOUND:
                    raise RepositoryNotFoundError(project)
                if status_code == HTTP_UNAUTHORIZED:
                    raise AuthenticationError(project)

                if _is_rate_limited(response):
                    last_error = f"rate limited ({status_code})"
                    retry_delay = get_retry_after_delay(
                        response.headers, attempt, self._performance
                    )
                    logger.warning(
                        "Rate limited listing tags of %s (attempt %d/%d), waiting %.1fs",
                        project,
                        attempt + 1,
                        attempts,
                        retry_delay,
                    )
                    if attempt < self._performance.max_retries:
                        await self._sleeper(retry_delay)
                    continue

                if 400 <= status_code < 500:
                    raise TagFetchError(
                        project,
                        f"{status_code} {_truncate_error_body(response.text)}",
                        status_code=status_code,
                    )

                last_error = f"server error ({status_code})"
                logger.warning(
                    "HTTP error listing tags of %s (attempt %d/%d): status=%d",
                    project,
                    attempt + 1,
                    attempts,
                    status_code,
                )

            if attempt < self._performance.max_retries:
                await self._sleeper(
                    calculate_backoff_delay(attempt, self._performance, self._jitter_generator)
                )

        raise TagFetchError(project, f"giving up after {attempts} attempt(s): {last_error}")


__all__ = [
    "GITHUB_API_VERSION",
    "GitHubTagSource",
    "MAX_ERROR_BODY_LENGTH",
]
