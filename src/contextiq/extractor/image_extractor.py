"""
Image OCR using Tesseract (pytesseract) on Pillow-decoded images.
"""

from __future__ import annotations

import asyncio
import io

import pytesseract
import structlog
from PIL import Image

from ..errors import ExtractionFailedError
from ..models import ProgressCallback

logger = structlog.get_logger(__name__)


class ImageOcrExtractor:
    """Recognizes text in raster images with a fixed language model.

    This is the only extractor that reports progress; the percentage is
    informational and does not change the success/failure contract.
    """

    name = "image"

    def __init__(self, language: str = "eng", min_characters: int = 5) -> None:
        self.language = language
        self.min_characters = min_characters

    async def extract(self, data: bytes, *, progress: ProgressCallback | None = None) -> str:
        loop = asyncio.get_running_loop()
        self._report(progress, 0.0)

        image = await loop.run_in_executor(None, self._decode, data)
        try:
            self._report(progress, 30.0)
            text = await loop.run_in_executor(None, self._recognize, image)
        finally:
            image.close()

        self._report(progress, 100.0)

        text = text.strip()
        if len(text) < self.min_characters:
            raise ExtractionFailedError(
                "No readable text found in this image. Please use a clearer image with visible text.",
                extractor=self.name,
            )
        logger.info("OCR completed", language=self.language, characters=len(text))
        return text

    def _decode(self, data: bytes) -> Image.Image:
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                # Tesseract handles RGB and greyscale; flatten palettes and alpha.
                return image.convert("RGB") if image.mode not in ("RGB", "L") else image.copy()
        except Exception as exc:
            raise ExtractionFailedError(
                "Could not decode this image. The file may be corrupted or in an unsupported format.",
                extractor=self.name,
            ) from exc

    def _recognize(self, image: Image.Image) -> str:
        try:
            return pytesseract.image_to_string(image, lang=self.language) or ""
        except pytesseract.TesseractNotFoundError as exc:
            raise ExtractionFailedError("OCR engine is not available on this server.", extractor=self.name) from exc
        except Exception as exc:
            raise ExtractionFailedError(
                "Text recognition failed for this image. Please try a different image.",
                extractor=self.name,
            ) from exc

    @staticmethod
    def _report(progress: ProgressCallback | None, percent: float) -> None:
        if progress is not None:
            progress(percent)
