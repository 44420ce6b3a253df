"""
Unit tests for the hosted scrape service.
"""

import aiohttp
import pytest

from contextiq.config import FetcherConfig
from contextiq.crawler.scrape_service import ScrapeService, UpstreamStatusError
from contextiq.errors import ContentTooShortError, ExtractionFailedError, InvalidUrlError

from tests.helpers import LONG_TEXT, make_response, page


@pytest.fixture
def service(mock_http_client):
    return ScrapeService(FetcherConfig(), mock_http_client)


@pytest.mark.unit
class TestScrapeService:
    @pytest.mark.asyncio
    async def test_scrape_reduces_page(self, service, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))

        assert await service.scrape("https://example.com/post") == LONG_TEXT

        call = mock_http_client.get.call_args
        assert call.args[0] == "https://example.com/post"
        headers = call.kwargs["headers"]
        assert headers["Upgrade-Insecure-Requests"] == "1"
        assert headers["Accept"].startswith("text/html")
        assert "Mozilla/5.0" in headers["User-Agent"]

    @pytest.mark.asyncio
    async def test_same_reduction_as_relay_path(self, service, mock_http_client):
        html = '<body><header>Top</header><div class="entry-content">Body &amp; soul ' + "x" * 60 + "</div></body>"
        mock_http_client.get.return_value = make_response(body=html)
        assert await service.scrape("https://example.com/") == service.reducer.reduce(html)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "not-a-url", "ftp://example.com", "http://127.0.0.1:8080/admin"])
    async def test_rejects_invalid_and_private_urls(self, service, mock_http_client, url):
        with pytest.raises(InvalidUrlError):
            await service.scrape(url)
        mock_http_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_private_hosts_allowed_by_config(self, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))
        service = ScrapeService(FetcherConfig(scrape_allow_private_hosts=True), mock_http_client)
        assert await service.scrape("http://localhost:3000/") == LONG_TEXT

    @pytest.mark.asyncio
    async def test_upstream_status_preserved(self, service, mock_http_client):
        mock_http_client.get.return_value = make_response(404, body="Not Found", reason="Not Found")
        with pytest.raises(UpstreamStatusError) as exc_info:
            await service.scrape("https://example.com/missing")
        assert exc_info.value.status == 404
        assert exc_info.value.message == "Failed to fetch webpage: 404 Not Found"

    @pytest.mark.asyncio
    async def test_network_error(self, service, mock_http_client):
        mock_http_client.get.side_effect = aiohttp.ClientConnectionError("refused")
        with pytest.raises(ExtractionFailedError, match="Failed to fetch webpage"):
            await service.scrape("https://example.com/")

    @pytest.mark.asyncio
    async def test_too_little_content(self, service, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page("Just a teaser"))
        with pytest.raises(ContentTooShortError) as exc_info:
            await service.scrape("https://example.com/")
        assert exc_info.value.minimum == 50
