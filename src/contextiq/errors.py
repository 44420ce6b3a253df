"""
Error taxonomy for content acquisition.

Every error carries a short, user-facing ``message``; acquisition failures
are terminal for the attempt that raised them.
"""

from __future__ import annotations


class AcquisitionError(Exception):
    """Base class for failures while acquiring content."""

    kind = "acquisition_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(AcquisitionError, ValueError):
    """Raised when a URL is malformed or does not use http(s)."""

    kind = "invalid_url"


class SizeExceededError(AcquisitionError):
    """Raised when an upload is larger than the configured limit."""

    kind = "size_exceeded"

    def __init__(self, size: int, limit: int) -> None:
        limit_mb = limit / (1024 * 1024)
        super().__init__(f"File size must be less than {limit_mb:g}MB")
        self.size = size
        self.limit = limit


class UnsupportedTypeError(AcquisitionError):
    """Raised for extensions outside the allow-list or legacy formats."""

    kind = "unsupported_type"

    def __init__(self, extension: str, message: str | None = None) -> None:
        if message is None:
            message = f"File type not supported: .{extension}" if extension else "File has no extension"
        super().__init__(message)
        self.extension = extension


class ExtractionFailedError(AcquisitionError):
    """Raised when a decoder, OCR engine or every web relay fails."""

    kind = "extraction_failed"

    def __init__(self, reason: str, *, extractor: str | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.extractor = extractor


class ContentTooShortError(AcquisitionError):
    """Raised when extracted text is below the minimum length for its source."""

    kind = "content_too_short"

    def __init__(self, length: int, minimum: int) -> None:
        super().__init__(f"Extracted content is too short ({length} characters, need at least {minimum})")
        self.length = length
        self.minimum = minimum
