"""
Unit tests for WebContentFetcher: primary service, relay chain and failure policy.
"""

from unittest.mock import AsyncMock

import aiohttp
import pytest

from contextiq.config import FetcherConfig, RelayConfig
from contextiq.crawler.fetcher import EXHAUSTED_MESSAGE, WebContentFetcher
from contextiq.errors import ExtractionFailedError, InvalidUrlError
from contextiq.models import WebSource
from contextiq.observability.metrics import METRICS

from tests.helpers import LONG_TEXT, make_response, metric_delta, page

TARGET = "https://example.com/article"


def requested_hosts(mock_http_client):
    return [call.args[0].split("/")[2] for call in mock_http_client.get.call_args_list]


@pytest.mark.unit
class TestPrimaryService:
    @pytest.mark.asyncio
    async def test_primary_success_skips_relays(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.return_value = make_response(body={"content": f"  {LONG_TEXT}\n\n"})
        fetcher = WebContentFetcher(fetcher_config, mock_http_client)

        result = await fetcher.fetch(TARGET)

        assert result.text == LONG_TEXT
        assert result.source_label == TARGET
        assert result.source == WebSource(url=TARGET)
        mock_http_client.post_json.assert_awaited_once_with(fetcher_config.primary_service_url, {"url": TARGET})
        mock_http_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            make_response(500, body={"error": "boom"}),
            make_response(body={"content": ""}),
            make_response(body={"content": "too short"}),
            make_response(body={"unexpected": True}),
            make_response(body="<html>not json</html>"),
        ],
    )
    async def test_primary_failures_fall_through(self, fetcher_config, mock_http_client, response):
        mock_http_client.post_json.return_value = response
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))

        result = await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)

        assert result.text == LONG_TEXT
        assert requested_hosts(mock_http_client) == ["relay-a.test"]

    @pytest.mark.asyncio
    async def test_unconfigured_primary_goes_to_relays(self, relay_configs, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))
        fetcher = WebContentFetcher(FetcherConfig(relays=relay_configs), mock_http_client)

        await fetcher.fetch(TARGET)

        mock_http_client.post_json.assert_not_awaited()
        assert requested_hosts(mock_http_client) == ["relay-a.test"]

    @pytest.mark.asyncio
    async def test_in_process_primary_used_before_relays(self, relay_configs, mock_http_client):
        primary = AsyncMock()
        primary.scrape.return_value = LONG_TEXT
        fetcher = WebContentFetcher(FetcherConfig(relays=relay_configs), mock_http_client, primary=primary)

        with metric_delta(METRICS["relay_attempts_total"], 1, relay="primary", outcome="success"):
            result = await fetcher.fetch(TARGET)

        assert result.text == LONG_TEXT
        primary.scrape.assert_awaited_once_with(TARGET)
        mock_http_client.post_json.assert_not_awaited()
        mock_http_client.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_in_process_primary_failure_falls_through(self, relay_configs, mock_http_client):
        primary = AsyncMock()
        primary.scrape.side_effect = ExtractionFailedError("Failed to fetch webpage: 403 Forbidden")
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))
        fetcher = WebContentFetcher(FetcherConfig(relays=relay_configs), mock_http_client, primary=primary)

        with metric_delta(METRICS["relay_attempts_total"], 1, relay="primary", outcome="failure"):
            result = await fetcher.fetch(TARGET)

        assert result.text == LONG_TEXT
        assert requested_hosts(mock_http_client) == ["relay-a.test"]

    @pytest.mark.asyncio
    async def test_configured_url_takes_precedence_over_in_process_primary(self, fetcher_config, mock_http_client):
        primary = AsyncMock()
        mock_http_client.post_json.return_value = make_response(body={"content": LONG_TEXT})

        await WebContentFetcher(fetcher_config, mock_http_client, primary=primary).fetch(TARGET)

        primary.scrape.assert_not_awaited()


@pytest.mark.unit
class TestRelayChain:
    @pytest.mark.asyncio
    async def test_first_sufficient_relay_wins(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.side_effect = aiohttp.ClientConnectionError("primary down")
        mock_http_client.get.side_effect = [
            make_response(500, body="error"),
            make_response(body=page(LONG_TEXT)),
        ]

        result = await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)

        assert result.text == LONG_TEXT
        # relays C and D are never contacted
        assert requested_hosts(mock_http_client) == ["relay-a.test", "relay-b.test"]

    @pytest.mark.asyncio
    async def test_relay_request_shape(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.side_effect = TimeoutError("Request timed out after 15.0s")
        mock_http_client.get.return_value = make_response(body=page(LONG_TEXT))

        await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)

        call = mock_http_client.get.call_args
        assert call.args[0] == "https://relay-a.test/?https%3A%2F%2Fexample.com%2Farticle"
        assert call.kwargs["encoded"] is True
        assert call.kwargs["headers"]["Accept"] == fetcher_config.accept
        assert "Mozilla/5.0" in call.kwargs["headers"]["User-Agent"]

    @pytest.mark.asyncio
    async def test_relay_failures_move_on_in_order(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.return_value = make_response(503)
        mock_http_client.get.side_effect = [
            aiohttp.ClientConnectionError("refused"),  # A: network error
            make_response(body="   "),  # B: empty body
            make_response(body=page("tiny")),  # C: too short after reduction
            make_response(body={"contents": page(LONG_TEXT)}),  # D: JSON relay
        ]

        result = await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)

        assert result.text == LONG_TEXT
        assert requested_hosts(mock_http_client) == ["relay-a.test", "relay-b.test", "relay-c.test", "relay-d.test"]

    @pytest.mark.asyncio
    async def test_malformed_json_relay_is_a_failure(self, relay_configs, mock_http_client):
        config = FetcherConfig(relays=[relay_configs[3], relay_configs[0]])
        mock_http_client.get.side_effect = [
            make_response(body="<html>not json</html>", content_type="application/json"),
            make_response(body=page(LONG_TEXT)),
        ]
        result = await WebContentFetcher(config, mock_http_client).fetch(TARGET)
        assert result.text == LONG_TEXT

    @pytest.mark.asyncio
    async def test_all_fail(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.side_effect = aiohttp.ClientError("down")
        mock_http_client.get.return_value = make_response(403, body="Forbidden")

        with pytest.raises(ExtractionFailedError) as exc_info:
            await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)

        assert exc_info.value.message == EXHAUSTED_MESSAGE
        # each relay tried exactly once, no retries
        assert mock_http_client.get.await_count == 4

    @pytest.mark.asyncio
    async def test_invalid_url_makes_no_requests(self, fetcher_config, mock_http_client):
        with pytest.raises(InvalidUrlError):
            await WebContentFetcher(fetcher_config, mock_http_client).fetch("ftp://example.com/file")
        mock_http_client.post_json.assert_not_awaited()
        mock_http_client.get.assert_not_awaited()


@pytest.mark.unit
class TestMinimumWebLength:
    def single_relay(self):
        return FetcherConfig(relays=[RelayConfig(name="only", template="https://only.test/?{url}")])

    @pytest.mark.asyncio
    async def test_fifty_characters_accepted(self, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page("a" * 50))
        result = await WebContentFetcher(self.single_relay(), mock_http_client).fetch(TARGET)
        assert result.text == "a" * 50

    @pytest.mark.asyncio
    async def test_forty_nine_characters_rejected(self, mock_http_client):
        mock_http_client.get.return_value = make_response(body=page("a" * 49))
        with pytest.raises(ExtractionFailedError):
            await WebContentFetcher(self.single_relay(), mock_http_client).fetch(TARGET)


@pytest.mark.unit
class TestRelayMetrics:
    @pytest.mark.asyncio
    async def test_attempts_counted(self, fetcher_config, mock_http_client):
        mock_http_client.post_json.side_effect = aiohttp.ClientError("down")
        mock_http_client.get.side_effect = [make_response(500), make_response(body=page(LONG_TEXT))]
        metric = METRICS["relay_attempts_total"]

        with metric_delta(metric, 1, relay="relay-a", outcome="failure"):
            with metric_delta(metric, 1, relay="relay-b", outcome="success"):
                with metric_delta(metric, 1, relay="primary", outcome="failure"):
                    await WebContentFetcher(fetcher_config, mock_http_client).fetch(TARGET)
