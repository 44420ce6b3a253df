"""
PDF text extraction using pypdf.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any, List

import structlog
from pypdf import PdfReader

from ..errors import ExtractionFailedError
from ..models import ProgressCallback

logger = structlog.get_logger(__name__)


class PdfExtractor:
    """Extracts page text in reading order.

    Text items inside a page are joined with spaces and pages are joined with
    newlines. Corrupt and password-protected documents fail terminally.
    """

    name = "pdf"

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._extract_sync, data)

    def _extract_sync(self, data: bytes) -> str:
        try:
            reader = PdfReader(io.BytesIO(data))
            encrypted = reader.is_encrypted
        except Exception as exc:
            raise ExtractionFailedError(
                "Could not open this PDF. The file may be corrupted.", extractor=self.name
            ) from exc

        if encrypted:
            raise ExtractionFailedError(
                "This PDF is password-protected. Please remove the password and try again.",
                extractor=self.name,
            )

        pages: List[str] = []
        try:
            for page_number, page in enumerate(reader.pages, start=1):
                pages.append(self._page_text(page))
                logger.debug("Extracted PDF page", page=page_number, characters=len(pages[-1]))
        except Exception as exc:
            raise ExtractionFailedError(
                "Could not read text from this PDF. The file may be corrupted.", extractor=self.name
            ) from exc

        logger.info("PDF extracted", pages=len(pages))
        return "\n".join(pages)

    @staticmethod
    def _page_text(page: Any) -> str:
        items: List[str] = []

        def visitor(text: str, *_: Any) -> None:
            if text and text.strip():
                items.append(text.strip())

        fallback = page.extract_text(visitor_text=visitor) or ""
        if items:
            return " ".join(items)
        # Some content streams never reach the visitor; keep pypdf's own layout then.
        return fallback
