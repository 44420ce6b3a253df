"""
Async HTTP client used by the web fetcher, the scrape service and the analysis client.
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import aiohttp
import structlog
from yarl import URL

from contextiq.config.config import FetcherConfig

logger = structlog.get_logger(__name__)


@dataclass
class FetchResponse:
    """Response with the body fully read and timing information."""

    status: int
    headers: Dict[str, str]
    body: bytes
    url: str
    final_url: str
    start_ts: float
    end_ts: float
    charset: Optional[str] = None
    reason: Optional[str] = field(default=None)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value.lower()
        return ""

    @property
    def elapsed(self) -> float:
        return self.end_ts - self.start_ts

    def text(self) -> str:
        """Decode the body with the declared charset, falling back to UTF-8."""
        try:
            return self.body.decode(self.charset or "utf-8", errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the body as JSON; raises ValueError on malformed content."""
        return json.loads(self.text())


class HttpClient:
    """aiohttp session wrapper with browser-like headers and per-request timeouts."""

    def __init__(self, config: FetcherConfig):
        self.config = config
        self.default_headers: Dict[str, str] = {
            "User-Agent": config.user_agent,
            "Accept-Language": "en-US,en;q=0.5",
        }

        # Session will be initialized in initialize()
        self.session: Optional[aiohttp.ClientSession] = None
        self._is_initialized = False

        logger.info(
            "HTTP client initialized",
            request_timeout=config.request_timeout,
            user_agent=config.user_agent,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            connector = aiohttp.TCPConnector(ttl_dns_cache=30, enable_cleanup_closed=True)
            self.session = aiohttp.ClientSession(connector=connector, headers=self.default_headers)
            self._is_initialized = True
            logger.info("HTTP client session initialized")

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
        self._is_initialized = False
        logger.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def get(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        encoded: bool = False,
    ) -> FetchResponse:
        """
        GET ``url`` and read the whole body.

        Args:
            url: URL to fetch
            headers: Extra headers merged over the session defaults
            timeout: Request timeout in seconds (None = config default)
            encoded: Send ``url`` verbatim; use for already percent-encoded URLs

        Raises:
            TimeoutError: If the request does not complete in time
            aiohttp.ClientError: On connection and protocol errors
        """
        return await self._request("GET", url, headers=headers, timeout=timeout, encoded=encoded)

    async def post_json(
        self,
        url: str,
        payload: Any,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> FetchResponse:
        """POST ``payload`` as JSON and read the whole body."""
        return await self._request("POST", url, headers=headers, timeout=timeout, json_body=payload)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        encoded: bool = False,
        json_body: Any = None,
    ) -> FetchResponse:
        if not self._is_initialized or self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        timeout = timeout if timeout is not None else self.config.request_timeout
        target = URL(url, encoded=True) if encoded else url
        kwargs: Dict[str, Any] = {"headers": dict(headers) if headers else None}
        if json_body is not None:
            kwargs["json"] = json_body

        start_time = time.time()
        try:
            async with asyncio.timeout(timeout):
                async with self.session.request(method, target, **kwargs) as response:
                    body = await response.read()
                    result = FetchResponse(
                        status=response.status,
                        headers=dict(response.headers),
                        body=body,
                        url=url,
                        final_url=str(response.url),
                        start_ts=start_time,
                        end_ts=time.time(),
                        charset=response.charset,
                        reason=response.reason,
                    )
        except TimeoutError:
            # Re-raise with the budget in the message for consistent handling
            raise TimeoutError(f"Request timed out after {timeout}s") from None

        logger.debug(
            "HTTP request completed",
            method=method,
            url=url,
            status=result.status,
            elapsed=round(result.elapsed, 3),
            bytes=len(result.body),
        )
        return result
