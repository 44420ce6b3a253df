"""
Shared fixtures for ContextIQ tests.

HTTP is never performed for real: the fetcher, scrape service and analysis
client get an AsyncMock client, and HttpClient itself is exercised through
aioresponses.
"""

# Standard library imports
import io
from unittest.mock import AsyncMock

# Third-party imports
import docx
import pytest
import pytest_asyncio

# Local imports
from contextiq.config import FetcherConfig, RelayConfig, UploadConfig
from contextiq.crawler.http_client import HttpClient
from contextiq.extractor import FileTypeDispatcher

from tests.helpers import image_bytes

# ============================================================================
# Configuration fixtures
# ============================================================================


@pytest.fixture
def upload_config() -> UploadConfig:
    return UploadConfig()


@pytest.fixture
def relay_configs():
    return [
        RelayConfig(name="relay-a", template="https://relay-a.test/?{url}", response_format="text"),
        RelayConfig(name="relay-b", template="https://relay-b.test/proxy?quest={url}", response_format="text"),
        RelayConfig(name="relay-c", template="https://relay-c.test/fetch/{url}", response_format="auto"),
        RelayConfig(name="relay-d", template="https://relay-d.test/get?url={url}", response_format="json"),
    ]


@pytest.fixture
def fetcher_config(relay_configs) -> FetcherConfig:
    return FetcherConfig(primary_service_url="https://primary.test/api/scrape", relays=relay_configs)


# ============================================================================
# HTTP fixtures
# ============================================================================


@pytest.fixture
def mock_http_client() -> AsyncMock:
    """HttpClient stand-in; configure ``get``/``post_json`` per test."""
    client = AsyncMock(spec=HttpClient)
    client.get = AsyncMock()
    client.post_json = AsyncMock()
    return client


@pytest_asyncio.fixture
async def http_client(fetcher_config):
    """A real, initialized HttpClient (use with aioresponses)."""
    client = HttpClient(fetcher_config)
    await client.initialize()
    yield client
    await client.close()


# ============================================================================
# File fixtures
# ============================================================================


@pytest.fixture
def docx_bytes() -> bytes:
    document = docx.Document()
    document.add_paragraph("Quarterly report")
    document.add_paragraph("Revenue grew in every region.")
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return image_bytes()


@pytest.fixture
def dispatcher(upload_config) -> FileTypeDispatcher:
    return FileTypeDispatcher(upload_config)


@pytest.fixture
def status_log():
    """Listener that records (status, progress) pairs."""

    class StatusLog(list):
        def __call__(self, status, progress=None):
            self.append((status, progress))

        @property
        def statuses(self):
            return [status for status, _ in self]

    return StatusLog()
