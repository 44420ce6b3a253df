"""Web page acquisition: HTTP client, relay chain and the hosted scrape service."""

from .fetcher import EXHAUSTED_MESSAGE, WebContentFetcher
from .http_client import FetchResponse, HttpClient
from .relays import RelayEndpoint, build_relays, encode_target
from .scrape_service import ScrapeService, UpstreamStatusError

__all__ = [
    "EXHAUSTED_MESSAGE",
    "WebContentFetcher",
    "FetchResponse",
    "HttpClient",
    "RelayEndpoint",
    "build_relays",
    "encode_target",
    "ScrapeService",
    "UpstreamStatusError",
]
