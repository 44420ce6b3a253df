"""
ContextIQ extraction module.

Turns uploaded files and raw HTML into plain text:
- File type dispatch over a closed set of formats
- Plain text, RTF, PDF (pypdf), DOCX (python-docx) and image OCR (Tesseract)
- HTML reduction with BeautifulSoup (chrome removal, main-content lookup)
"""

from .dispatcher import EXTENSION_KINDS, FileTypeDispatcher, FormatKind, resolve_kind
from .docx_extractor import DocxExtractor
from .html_reducer import HtmlReducer, reduce_html
from .image_extractor import ImageOcrExtractor
from .pdf_extractor import PdfExtractor
from .protocols import FileExtractor
from .text_extractor import PlainTextExtractor, RtfExtractor

__all__ = [
    "EXTENSION_KINDS",
    "FileTypeDispatcher",
    "FormatKind",
    "resolve_kind",
    "DocxExtractor",
    "HtmlReducer",
    "reduce_html",
    "ImageOcrExtractor",
    "PdfExtractor",
    "FileExtractor",
    "PlainTextExtractor",
    "RtfExtractor",
]
