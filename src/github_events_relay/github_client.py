"""
GitHub events feed client for the relay.

This module performs the conditional GET against an account's received
events feed and exposes the response metadata the poller needs.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from .config import GitHubFeedConfig
from .exceptions import TransportError

logger = structlog.get_logger(__name__)


@dataclass
class FeedResponse:
    """Body and caching metadata of one feed request."""

    status_code: int
    body: bytes
    etag: str | None = None
    poll_interval: str | None = None

    @property
    def not_modified(self) -> bool:
        return self.status_code == 304


class GitHubFeedClient:
    """
    Client for the GitHub received events feed.

    Authenticates with a bearer token and sends ``If-None-Match`` so an
    unchanged feed costs a cheap 304 instead of a full page.
    """

    def __init__(
        self,
        config: GitHubFeedConfig,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the feed client.

        Args:
            config: Inbound feed configuration
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "github-events-relay",
        }
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.AsyncClient(
            headers=headers, timeout=timeout, transport=transport
        )

    @property
    def endpoint(self) -> str:
        """Received events URL of the configured user."""
        return f"{self.config.api_url.rstrip('/')}/users/{self.config.user}/received_events"

    async def fetch_events(self, etag: str | None = None) -> FeedResponse:
        """
        Fetch the newest page of the feed.

        Args:
            etag: Validator from the previous response, if any

        Returns:
            Feed response; ``not_modified`` is set when the feed is unchanged

        Raises:
            TransportError: On network failures or unexpected status codes
        """
        headers = {"If-None-Match": etag} if etag else {}

        try:
            response = await self._client.get(self.endpoint, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Feed request failed", url=self.endpoint, error=str(e))
            raise TransportError(
                f"Feed request failed: {e}", context={"url": self.endpoint}
            ) from e

        if response.status_code != 304 and not response.is_success:
            logger.error(
                "Feed request returned an error status",
                url=self.endpoint,
                status_code=response.status_code,
            )
            raise TransportError(
                f"Feed request returned HTTP {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
                context={"url": self.endpoint},
            )

        logger.debug(
            "Feed fetched",
            status_code=response.status_code,
            etag=response.headers.get("ETag"),
            poll_interval=response.headers.get("X-Poll-Interval"),
        )

        return FeedResponse(
            status_code=response.status_code,
            body=response.content,
            etag=response.headers.get("ETag"),
            poll_interval=response.headers.get("X-Poll-Interval"),
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubFeedClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
