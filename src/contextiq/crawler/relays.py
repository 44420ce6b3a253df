"""
Public relay endpoints for fetching pages we cannot reach directly.

Each relay is a small record pairing a URL template with the shape of its
response body, so relay quirks stay isolated from the fallback chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Literal, Sequence
from urllib.parse import quote

from contextiq.config.config import RelayConfig

from .http_client import FetchResponse

ResponseFormat = Literal["text", "json", "auto"]

# Fields carrying the page in JSON relay responses, in lookup order
JSON_CONTENT_FIELDS = ("contents", "data", "response")


def encode_target(url: str) -> str:
    """Percent-encode a URL for embedding in a relay URL (like encodeURIComponent)."""
    return quote(url, safe="!*'()")


@dataclass(slots=True, frozen=True)
class RelayEndpoint:
    """One relay: how to build its request and how to read its response."""

    name: str
    template: str
    response_format: ResponseFormat = "text"

    @classmethod
    def from_config(cls, config: RelayConfig) -> RelayEndpoint:
        return cls(name=config.name, template=config.template, response_format=config.response_format)

    def build_url(self, target_url: str) -> str:
        return self.template.replace("{url}", encode_target(target_url))

    def parse(self, response: FetchResponse) -> str:
        """Return the page HTML carried by ``response`` ('' when absent).

        Raises:
            ValueError: If a JSON relay answers with malformed JSON
        """
        if self.response_format == "json":
            return _json_field(response.json(), ("contents",))
        if self.response_format == "auto" and "application/json" in response.content_type:
            return _json_field(response.json(), JSON_CONTENT_FIELDS)
        return response.text()


def _json_field(data: Any, fields: Sequence[str]) -> str:
    if not isinstance(data, dict):
        return ""
    for name in fields:
        value = data.get(name)
        if isinstance(value, str) and value:
            return value
    return ""


def build_relays(configs: Sequence[RelayConfig]) -> List[RelayEndpoint]:
    return [RelayEndpoint.from_config(config) for config in configs]
