"""
DOCX raw-text extraction using python-docx.
"""

from __future__ import annotations

import asyncio
import io

import docx
import structlog

from ..errors import ExtractionFailedError
from ..models import ProgressCallback

logger = structlog.get_logger(__name__)


class DocxExtractor:
    """Concatenates paragraph text, one paragraph per line."""

    name = "docx"

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._extract_sync, data)

    def _extract_sync(self, data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
            paragraphs = [paragraph.text for paragraph in document.paragraphs]
        except Exception as exc:
            raise ExtractionFailedError(
                "Could not read this Word document. Please save it as plain text (.txt) and try again.",
                extractor=self.name,
            ) from exc

        logger.info("DOCX extracted", paragraphs=len(paragraphs))
        return "\n".join(paragraphs)
