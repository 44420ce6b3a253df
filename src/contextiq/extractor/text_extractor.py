"""
Plain-text and RTF extractors.
"""

from __future__ import annotations

import structlog
from striprtf.striprtf import rtf_to_text

from ..errors import ExtractionFailedError
from ..models import ProgressCallback
from ..normalizer import normalize_line_endings

logger = structlog.get_logger(__name__)


class PlainTextExtractor:
    """Decodes UTF-8 text (txt, md, csv)."""

    name = "text"

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        # utf-8-sig drops a leading BOM; undecodable bytes become U+FFFD
        text = data.decode("utf-8-sig", errors="replace")
        return normalize_line_endings(text)


class RtfExtractor:
    """Strips RTF control words and groups, keeping the document text."""

    name = "rtf"

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        body = data.removeprefix(b"\xef\xbb\xbf")
        if not body.lstrip().startswith(b"{\\rtf"):
            logger.debug("RTF header missing, treating content as plain text")
            return await PlainTextExtractor().extract(data)
        # RTF is 7-bit; non-ASCII characters arrive as \'xx or \uN escapes
        raw = body.decode("latin-1")
        try:
            text = rtf_to_text(raw, errors="ignore")
        except Exception as exc:
            raise ExtractionFailedError(
                "Could not read this RTF document. Please save it as plain text (.txt) and try again.",
                extractor=self.name,
            ) from exc
        return normalize_line_endings(text)
