"""
Content acquisition pipeline.

Selects the source (manual text, uploaded file, web page), runs the matching
extraction path and turns every failure into an explicit outcome value so
callers never have to catch acquisition errors themselves.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional
from uuid import uuid4

import structlog
from structlog.contextvars import bound_contextvars

from .crawler.fetcher import WebContentFetcher
from .errors import AcquisitionError
from .extractor.dispatcher import FileTypeDispatcher
from .models import (
    AcquisitionOutcome,
    AcquisitionStatus,
    ExtractionResult,
    StatusListener,
    TextSource,
    UploadedFile,
)
from .normalizer import ContentNormalizer
from .observability.metrics import increment
from .validation import check_upload_size

logger = structlog.get_logger(__name__)


class AcquisitionPipeline:
    """
    One entry point per content source.

    Each call reports ``RUNNING`` to the optional listener, then exactly one
    of ``SUCCEEDED`` or ``FAILED``. OCR progress is forwarded as ``RUNNING``
    with a percentage. The pipeline keeps no state between calls.
    """

    def __init__(
        self,
        dispatcher: FileTypeDispatcher,
        fetcher: WebContentFetcher,
        normalizer: Optional[ContentNormalizer] = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.fetcher = fetcher
        self.normalizer = normalizer or dispatcher.normalizer
        self.logger = logger.bind(component="AcquisitionPipeline")

    async def acquire_text(self, text: str, listener: StatusListener | None = None) -> AcquisitionOutcome:
        """Normalize text typed or pasted by the user."""

        async def run() -> ExtractionResult:
            normalized = self.normalizer.normalize_text(text or "")
            source = TextSource()
            return ExtractionResult(text=normalized, source_label=source.label, source=source)

        return await self._acquire("text", run, listener)

    async def acquire_file(self, file: UploadedFile, listener: StatusListener | None = None) -> AcquisitionOutcome:
        """Extract text from an uploaded file of any supported format."""

        async def read() -> bytes:
            return file.data

        return await self.acquire_upload(file.name, file.size, read, listener)

    async def acquire_upload(
        self,
        name: str,
        size: int | None,
        read: Callable[[], Awaitable[bytes]],
        listener: StatusListener | None = None,
    ) -> AcquisitionOutcome:
        """
        Extract text from an upload whose bytes have not been read yet.

        A declared ``size`` over the limit is refused before ``read`` is
        awaited; the dispatcher checks the actual size again afterwards.
        """

        def progress(percent: float) -> None:
            if listener is not None:
                listener(AcquisitionStatus.RUNNING, percent)

        async def run() -> ExtractionResult:
            if size is not None:
                check_upload_size(size, self.dispatcher.upload.max_upload_bytes)
            file = UploadedFile(name=name, data=await read())
            return await self.dispatcher.extract(file, progress=progress)

        return await self._acquire("file", run, listener, file_name=name)

    async def acquire_url(self, url: str, listener: StatusListener | None = None) -> AcquisitionOutcome:
        """Fetch a web page through the primary service or the relay chain."""

        async def run() -> ExtractionResult:
            return await self.fetcher.fetch(url)

        return await self._acquire("web", run, listener, url=url)

    async def _acquire(
        self,
        source: str,
        run: Callable[[], Awaitable[ExtractionResult]],
        listener: StatusListener | None,
        **context: str,
    ) -> AcquisitionOutcome:
        with bound_contextvars(acquisition_id=str(uuid4())):
            self.logger.info("Acquisition started", source=source, **context)
            _notify(listener, AcquisitionStatus.RUNNING)

            try:
                result = await run()
            except AcquisitionError as e:
                increment("acquisitions_total", source=source, outcome=e.kind)
                self.logger.warning("Acquisition failed", source=source, error_kind=e.kind, error=e.message)
                _notify(listener, AcquisitionStatus.FAILED)
                return AcquisitionOutcome(error=e)

            increment("acquisitions_total", source=source, outcome="success")
            self.logger.info("Acquisition succeeded", source=source, text_length=len(result.text))
            _notify(listener, AcquisitionStatus.SUCCEEDED)
            return AcquisitionOutcome(result=result)


def _notify(listener: StatusListener | None, status: AcquisitionStatus, progress: float | None = None) -> None:
    if listener is not None:
        listener(status, progress)
