"""
Hosted fetch-and-extract service.

Fetches a page directly and reduces it with the same HtmlReducer as the
relay chain; served by the web API as the fetcher's primary service.
"""

from __future__ import annotations

from typing import Dict, Optional

import aiohttp
import structlog

from contextiq.config.config import FetcherConfig
from contextiq.errors import ExtractionFailedError
from contextiq.extractor.html_reducer import HtmlReducer
from contextiq.normalizer import ensure_min_length
from contextiq.validation import validate_url

from .http_client import HttpClient

logger = structlog.get_logger(__name__)


class UpstreamStatusError(ExtractionFailedError):
    """The target site answered with a non-success HTTP status."""

    def __init__(self, status: int, reason: str | None = None) -> None:
        super().__init__(f"Failed to fetch webpage: {status} {reason or ''}".strip(), extractor="scrape")
        self.status = status


class ScrapeService:
    """Direct page fetch followed by HTML reduction."""

    def __init__(self, config: FetcherConfig, http_client: HttpClient, reducer: Optional[HtmlReducer] = None) -> None:
        self.config = config
        self.http_client = http_client
        self.reducer = reducer or HtmlReducer()

    @property
    def page_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Upgrade-Insecure-Requests": "1",
        }

    async def scrape(self, url: str) -> str:
        """
        Return the reduced text of ``url``.

        Raises:
            InvalidUrlError: Malformed, non-http(s) or (by default) private URL
            UpstreamStatusError: The site answered with a non-2xx status
            ExtractionFailedError: Network failure or timeout
            ContentTooShortError: Fewer than ``min_web_length`` characters of text
        """
        url = validate_url(url, allow_private_hosts=self.config.scrape_allow_private_hosts)
        logger.info("Scraping URL", url=url)

        try:
            response = await self.http_client.get(url, headers=self.page_headers)
        except (aiohttp.ClientError, TimeoutError) as e:
            raise ExtractionFailedError(f"Failed to fetch webpage: {e}", extractor="scrape") from e

        if not response.ok:
            raise UpstreamStatusError(response.status, response.reason)

        try:
            text = await self.reducer.reduce_async(response.text())
        except Exception as e:
            raise ExtractionFailedError(f"Could not parse webpage: {e}", extractor="scrape") from e
        ensure_min_length(text, self.config.min_web_length)

        logger.info("Successfully scraped content", url=url, text_length=len(text))
        return text
