"""
Unit tests for PdfExtractor (pypdf is patched).
"""

from unittest.mock import MagicMock, patch

import pytest

from contextiq.errors import ExtractionFailedError
from contextiq.extractor.pdf_extractor import PdfExtractor


def make_page(items, fallback=""):
    """A page whose extract_text feeds ``items`` to the visitor."""
    page = MagicMock()

    def extract_text(visitor_text=None):
        for item in items:
            visitor_text(item, None, None, None, 12)
        return fallback

    page.extract_text.side_effect = extract_text
    return page


def make_reader(pages, encrypted=False):
    reader = MagicMock()
    reader.is_encrypted = encrypted
    reader.pages = pages
    return reader


@pytest.mark.unit
class TestPdfExtractor:
    def test_init(self):
        assert PdfExtractor().name == "pdf"

    @pytest.mark.asyncio
    async def test_items_joined_with_spaces_pages_with_newlines(self):
        reader = make_reader([make_page(["Hello", "world", " "]), make_page(["Second", "page"])])
        with patch("contextiq.extractor.pdf_extractor.PdfReader", return_value=reader):
            text = await PdfExtractor().extract(b"%PDF-1.4 ...")
        assert text == "Hello world\nSecond page"

    @pytest.mark.asyncio
    async def test_falls_back_to_layout_text(self):
        reader = make_reader([make_page([], fallback="Layout text")])
        with patch("contextiq.extractor.pdf_extractor.PdfReader", return_value=reader):
            assert await PdfExtractor().extract(b"%PDF") == "Layout text"

    @pytest.mark.asyncio
    async def test_corrupt_document(self):
        with patch("contextiq.extractor.pdf_extractor.PdfReader", side_effect=ValueError("EOF marker not found")):
            with pytest.raises(ExtractionFailedError, match="corrupted") as exc_info:
                await PdfExtractor().extract(b"not a pdf")
        assert exc_info.value.extractor == "pdf"

    @pytest.mark.asyncio
    async def test_encrypted_document(self):
        with patch("contextiq.extractor.pdf_extractor.PdfReader", return_value=make_reader([], encrypted=True)):
            with pytest.raises(ExtractionFailedError, match="password-protected"):
                await PdfExtractor().extract(b"%PDF")

    @pytest.mark.asyncio
    async def test_page_failure(self):
        page = MagicMock()
        page.extract_text.side_effect = KeyError("/Contents")
        with patch("contextiq.extractor.pdf_extractor.PdfReader", return_value=make_reader([page])):
            with pytest.raises(ExtractionFailedError):
                await PdfExtractor().extract(b"%PDF")

    @pytest.mark.asyncio
    async def test_garbage_bytes_with_real_reader(self):
        with pytest.raises(ExtractionFailedError):
            await PdfExtractor().extract(b"this is definitely not a PDF document")
