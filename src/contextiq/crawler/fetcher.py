"""
Web content fetcher: primary extraction service first, then an ordered relay chain.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Tuple

import structlog

from contextiq.config.config import FetcherConfig
from contextiq.errors import ExtractionFailedError
from contextiq.extractor.html_reducer import HtmlReducer
from contextiq.models import ExtractionResult, ProxyAttempt, WebSource
from contextiq.normalizer import collapse_whitespace
from contextiq.observability.metrics import increment
from contextiq.validation import validate_url

from .http_client import HttpClient
from .relays import RelayEndpoint, build_relays

logger = structlog.get_logger(__name__)

EXHAUSTED_MESSAGE = "could not extract content; site may block automated access"
LOCAL_PRIMARY = "in-process:scrape"


class PrimaryService(Protocol):
    """In-process fetch-and-extract service used when no primary URL is configured."""

    async def scrape(self, url: str) -> str: ...


class WebContentFetcher:
    """
    Resolves the text of a web page.

    The primary service is asked first; when it fails for any reason the
    relays are walked strictly in order, one request at a time, and the first
    relay whose reduced text reaches the minimum length wins. No relay is
    retried.
    """

    def __init__(
        self,
        config: FetcherConfig,
        http_client: HttpClient,
        reducer: Optional[HtmlReducer] = None,
        primary: Optional[PrimaryService] = None,
    ) -> None:
        self.config = config
        self.http_client = http_client
        self.reducer = reducer or HtmlReducer()
        self.primary = primary
        self.relays: List[RelayEndpoint] = build_relays(config.relays)
        self.logger = logger.bind(component="WebContentFetcher")

    @property
    def relay_headers(self) -> dict[str, str]:
        return {"Accept": self.config.accept, "User-Agent": self.config.user_agent}

    async def fetch(self, url: str) -> ExtractionResult:
        """
        Fetch and reduce a page.

        Raises:
            InvalidUrlError: Before any network activity, for malformed or non-http(s) URLs
            ExtractionFailedError: When the primary service and every relay fail
        """
        url = validate_url(url)
        attempts: List[ProxyAttempt] = []

        attempt, text = await self._try_primary(url)
        attempts.append(attempt)

        if text is None:
            for relay in self.relays:
                attempt, text = await self._try_relay(relay, url)
                attempts.append(attempt)
                if text is not None:
                    break

        if text is None:
            self.logger.warning(
                "All fetch attempts failed",
                url=url,
                attempts=[(a.endpoint_url, a.error_reason) for a in attempts],
            )
            raise ExtractionFailedError(EXHAUSTED_MESSAGE, extractor="web")

        self.logger.info(
            "Web content extracted",
            url=url,
            endpoint=attempts[-1].endpoint_url,
            attempts=len(attempts),
            text_length=len(text),
        )
        return ExtractionResult(text=text, source_label=url, source=WebSource(url=url))

    async def _try_primary(self, url: str) -> Tuple[ProxyAttempt, Optional[str]]:
        endpoint = self.config.primary_service_url
        if not endpoint:
            return await self._try_local_primary(url)

        try:
            response = await self.http_client.post_json(endpoint, {"url": url})
            if not response.ok:
                return self._failed(endpoint, "primary", f"HTTP {response.status}"), None

            data = response.json()
            content = data.get("content") if isinstance(data, dict) else None
            if not isinstance(content, str) or not content.strip():
                return self._failed(endpoint, "primary", "no content returned"), None

            text = collapse_whitespace(content)
            if len(text) < self.config.min_web_length:
                return self._failed(endpoint, "primary", f"content too short ({len(text)} characters)"), None

        except Exception as e:
            return self._failed(endpoint, "primary", f"{type(e).__name__}: {e}"), None

        increment("relay_attempts_total", relay="primary", outcome="success")
        return ProxyAttempt(endpoint_url=endpoint, succeeded=True), text

    async def _try_local_primary(self, url: str) -> Tuple[ProxyAttempt, Optional[str]]:
        if self.primary is None:
            return ProxyAttempt(endpoint_url="primary", succeeded=False, error_reason="not configured"), None

        try:
            text = await self.primary.scrape(url)
        except Exception as e:
            return self._failed(LOCAL_PRIMARY, "primary", f"{type(e).__name__}: {e}"), None

        increment("relay_attempts_total", relay="primary", outcome="success")
        return ProxyAttempt(endpoint_url=LOCAL_PRIMARY, succeeded=True), text

    async def _try_relay(self, relay: RelayEndpoint, url: str) -> Tuple[ProxyAttempt, Optional[str]]:
        relay_url = relay.build_url(url)
        self.logger.debug("Trying relay", relay=relay.name, relay_url=relay_url)

        try:
            response = await self.http_client.get(relay_url, headers=self.relay_headers, encoded=True)
            if not response.ok:
                return self._failed(relay_url, relay.name, f"HTTP {response.status}"), None

            html = relay.parse(response)
            if not html.strip():
                return self._failed(relay_url, relay.name, "empty body"), None

            text = await self.reducer.reduce_async(html)
            if len(text) < self.config.min_web_length:
                return self._failed(relay_url, relay.name, f"content too short ({len(text)} characters)"), None

        except Exception as e:
            # Any relay failure moves the chain on to the next relay
            return self._failed(relay_url, relay.name, f"{type(e).__name__}: {e}"), None

        increment("relay_attempts_total", relay=relay.name, outcome="success")
        self.logger.info("Relay succeeded", relay=relay.name, text_length=len(text))
        return ProxyAttempt(endpoint_url=relay_url, succeeded=True), text

    def _failed(self, endpoint_url: str, name: str, reason: str) -> ProxyAttempt:
        increment("relay_attempts_total", relay=name, outcome="failure")
        self.logger.info("Fetch attempt failed", endpoint=name, reason=reason)
        return ProxyAttempt(endpoint_url=endpoint_url, succeeded=False, error_reason=reason)
