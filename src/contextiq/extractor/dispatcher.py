"""
File type dispatcher.

Routes an uploaded file to exactly one format extractor by its extension,
after the size and allow-list checks have passed.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Dict, Optional

import structlog

from ..config.config import OcrConfig, UploadConfig
from ..errors import UnsupportedTypeError
from ..models import ExtractionResult, FileSource, ProgressCallback, UploadedFile
from ..normalizer import ContentNormalizer
from ..observability.metrics import observe
from ..validation import check_extension, check_upload_size
from .docx_extractor import DocxExtractor
from .image_extractor import ImageOcrExtractor
from .pdf_extractor import PdfExtractor
from .protocols import FileExtractor
from .text_extractor import PlainTextExtractor, RtfExtractor

logger = structlog.get_logger(__name__)


class FormatKind(Enum):
    """Closed set of format kinds a file can resolve to."""

    TEXT = "text"
    RTF = "rtf"
    PDF = "pdf"
    DOCX = "docx"
    IMAGE = "image"
    LEGACY_WORD = "legacy_word"
    UNSUPPORTED = "unsupported"


EXTENSION_KINDS: Dict[str, FormatKind] = {
    "txt": FormatKind.TEXT,
    "md": FormatKind.TEXT,
    "csv": FormatKind.TEXT,
    "rtf": FormatKind.RTF,
    "pdf": FormatKind.PDF,
    "docx": FormatKind.DOCX,
    "jpg": FormatKind.IMAGE,
    "jpeg": FormatKind.IMAGE,
    "png": FormatKind.IMAGE,
    "gif": FormatKind.IMAGE,
    "bmp": FormatKind.IMAGE,
    "webp": FormatKind.IMAGE,
    "doc": FormatKind.LEGACY_WORD,
}


def resolve_kind(extension: str) -> FormatKind:
    """Map a lowercase extension to its format kind."""
    return EXTENSION_KINDS.get(extension, FormatKind.UNSUPPORTED)


class FileTypeDispatcher:
    """
    Validates an upload and hands it to the extractor for its format.

    Size and type are checked before any extractor runs; the extracted text
    then goes through the shared normalizer and minimum-length floor.
    """

    def __init__(
        self,
        upload: UploadConfig,
        ocr: Optional[OcrConfig] = None,
        extractors: Optional[Dict[FormatKind, FileExtractor]] = None,
        normalizer: Optional[ContentNormalizer] = None,
    ) -> None:
        self.upload = upload
        ocr = ocr or OcrConfig()
        self.normalizer = normalizer or ContentNormalizer(min_text_length=upload.min_text_length)
        self.logger = logger.bind(component="FileTypeDispatcher")

        self._extractors: Dict[FormatKind, FileExtractor] = extractors or {
            FormatKind.TEXT: PlainTextExtractor(),
            FormatKind.RTF: RtfExtractor(),
            FormatKind.PDF: PdfExtractor(),
            FormatKind.DOCX: DocxExtractor(),
            FormatKind.IMAGE: ImageOcrExtractor(language=ocr.language, min_characters=ocr.min_characters),
        }

    def select(self, file: UploadedFile) -> FileExtractor:
        """Validate ``file`` and return the extractor that will handle it.

        Raises:
            SizeExceededError: If the file is larger than the upload limit
            UnsupportedTypeError: If the extension is not allowed or is a legacy format
        """
        check_upload_size(file.size, self.upload.max_upload_bytes)

        extension = file.extension
        check_extension(extension, self.upload.allowed_extensions, self.upload.rejected_extensions)

        kind = resolve_kind(extension)
        if kind is FormatKind.LEGACY_WORD:
            raise UnsupportedTypeError(
                extension,
                "Legacy .doc files are not supported. Please save the document as .docx or .txt and try again.",
            )
        if kind is FormatKind.UNSUPPORTED or kind not in self._extractors:
            raise UnsupportedTypeError(extension)

        return self._extractors[kind]

    async def extract(self, file: UploadedFile, *, progress: ProgressCallback | None = None) -> ExtractionResult:
        """Extract, normalize and validate the text of an uploaded file."""
        extractor = self.select(file)

        self.logger.info("Dispatching file", file_name=file.name, size=file.size, extractor=extractor.name)

        start_time = time.perf_counter()
        raw_text = await extractor.extract(file.data, progress=progress)
        observe("extraction_seconds", time.perf_counter() - start_time, format=extractor.name)

        text = self.normalizer.normalize_text(raw_text)

        self.logger.info("File extracted", file_name=file.name, extractor=extractor.name, text_length=len(text))
        return ExtractionResult(text=text, source_label=file.name, source=FileSource(name=file.name))
