"""
Base HTTP Client - GET-JSON primitive shared by the explorer and DEX clients.

Contract:
- One GET per call with an Accept: application/json header
- Non-2xx responses raise HttpError (429 raises RateLimitError)
- Transport failures raise HttpError without a status code
- A per-request timeout raises RequestTimeoutError
- No retries; callers decide what a failure means
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from onchain_stats.config import StatsConfig, get_config
from onchain_stats.exceptions import (
    HttpError,
    MalformedResponseError,
    RateLimitError,
    RequestTimeoutError,
)


logger = logging.getLogger(__name__)


class BaseHttpClient(ABC):
    """
    Abstract base class for upstream API clients.

    Session handling:
    - An injected aiohttp.ClientSession is used as-is and never closed here
    - Otherwise a session is created lazily and owned by the client
    """

    def __init__(
        self,
        config: Optional[StatsConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._config = config or get_config()
        self._timeout = self._config.request_timeout_seconds
        self._session = session
        self._owns_session = session is None

        # Request counters
        self.requests_made = 0
        self.requests_failed = 0
        self.last_latency_ms: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in logs and StatResult.source."""
        pass

    @property
    @abstractmethod
    def base_url(self) -> str:
        pass

    def url(self, path: str) -> str:
        """Join a resource path onto the client's base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    # ─────────────────────────────────────────────────────────────
    # HTTP Helpers
    # ─────────────────────────────────────────────────────────────

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }

    async def fetch_json(
        self,
        url: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        GET a URL and decode its JSON body.

        Args:
            url: Absolute request URL
            params: Query parameters (values are stringified)

        Returns:
            Decoded JSON value

        Raises:
            RateLimitError: on HTTP 429
            HttpError: on any other non-2xx status or transport failure
            RequestTimeoutError: when the request exceeds the configured timeout
            MalformedResponseError: when a 2xx body is not JSON
        """
        session = await self._get_session()
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}

        self.requests_made += 1
        start_time = time.monotonic()
        try:
            async with session.get(
                url,
                params=query or None,
                headers=self._get_default_headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as response:
                self.last_latency_ms = (time.monotonic() - start_time) * 1000
                logger.debug(
                    f"[{self.name}] GET {url} -> {response.status} "
                    f"({self.last_latency_ms:.0f}ms)"
                )

                if response.status == 429:
                    self.requests_failed += 1
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        message="Rate limit exceeded",
                        source=self.name,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                        request_url=url,
                    )

                if not 200 <= response.status < 300:
                    self.requests_failed += 1
                    body = await response.text()
                    raise HttpError(
                        message=f"HTTP {response.status}",
                        source=self.name,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                    )

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    self.requests_failed += 1
                    raise MalformedResponseError(
                        message=f"Response is not JSON: {e}",
                        source=self.name,
                        original_error=e,
                    )

        except asyncio.TimeoutError as e:
            self.requests_failed += 1
            raise RequestTimeoutError(
                message=f"Request timed out after {self._timeout}s",
                source=self.name,
                timeout_seconds=self._timeout,
                request_url=url,
                original_error=e,
            )
        except aiohttp.ClientError as e:
            self.requests_failed += 1
            raise HttpError(
                message=f"Connection error: {e}",
                source=self.name,
                request_url=url,
                original_error=e,
            )

    def get_request_stats(self) -> dict[str, Any]:
        """Get request counters."""
        return {
            "requests_made": self.requests_made,
            "requests_failed": self.requests_failed,
            "last_latency_ms": self.last_latency_ms,
        }

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "BaseHttpClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, base_url={self.base_url})>"
