"""
Protocols for pluggable file extraction strategies.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import ProgressCallback


@runtime_checkable
class FileExtractor(Protocol):
    """Raw file bytes to UTF-8 text."""

    name: str

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        """Extract text from raw file bytes.

        Args:
            data: Raw file content
            progress: Optional percentage callback (only OCR reports progress)

        Returns:
            Extracted text, not yet normalized

        Raises:
            ExtractionFailedError: If the content cannot be decoded
        """
        ...
