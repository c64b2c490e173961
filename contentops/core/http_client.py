"""
Centralized HTTP Client Configuration

Provides the async HTTP client shared by the Airtable connector and the
workflow trigger registry. Requests are issued once: failures surface to
the caller and are never retried automatically.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx

from contentops.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class HTTPClientConfig:
    """Configuration for HTTP client."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.timeout = settings.http_timeout
        self.max_connections = settings.http_max_connections
        self.max_keepalive_connections = settings.http_max_keepalive
        self.user_agent = settings.http_user_agent

    def to_limits(self):
        """Convert to httpx.Limits object."""
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections
        )

    def to_timeout(self):
        """Convert to httpx.Timeout object."""
        return httpx.Timeout(self.timeout)


class HTTPClient:
    """Async HTTP client with standard configuration."""

    def __init__(
        self,
        config: Optional[HTTPClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.config = config or HTTPClientConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _ensure_client(self):
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=self.config.to_limits(),
                timeout=self.config.to_timeout(),
                headers={
                    'User-Agent': self.config.user_agent
                },
                follow_redirects=True,
                transport=self._transport
            )

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> httpx.Response:
        """
        Make a single HTTP request.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional request parameters

        Returns:
            HTTP response (any status code)

        Raises:
            httpx.RequestError: For transport failures (DNS, connect, timeout)
        """
        await self._ensure_client()
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.warning("HTTP {} {} failed: {}".format(method, url, e.__class__.__name__))
            raise

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """Make GET request."""
        return await self.request('GET', url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """Make POST request."""
        return await self.request('POST', url, **kwargs)


@asynccontextmanager
async def http_client_context(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
):
    """Context manager for HTTP client lifecycle."""
    client = HTTPClient(HTTPClientConfig(settings), transport=transport)
    try:
        yield client
    finally:
        await client.close()
