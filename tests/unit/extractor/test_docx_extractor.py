"""
Unit tests for DocxExtractor using real python-docx documents.
"""

import pytest

from contextiq.errors import ExtractionFailedError
from contextiq.extractor.docx_extractor import DocxExtractor


@pytest.mark.unit
class TestDocxExtractor:
    @pytest.mark.asyncio
    async def test_paragraphs_joined_with_newlines(self, docx_bytes):
        text = await DocxExtractor().extract(docx_bytes)
        assert text == "Quarterly report\nRevenue grew in every region."

    @pytest.mark.asyncio
    async def test_corrupt_document(self):
        with pytest.raises(ExtractionFailedError, match=r"plain text \(\.txt\)") as exc_info:
            await DocxExtractor().extract(b"PK\x03\x04 not really a zip")
        assert exc_info.value.extractor == "docx"
