"""
Data models for content acquisition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, ClassVar, Dict, Optional, Union

from .errors import AcquisitionError


class AcquisitionStatus(Enum):
    """Lifecycle of a single acquisition, reported to the caller."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# Progress is reported as a percentage in [0, 100].
ProgressCallback = Callable[[float], None]
StatusListener = Callable[[AcquisitionStatus, Optional[float]], None]


@dataclass(slots=True, frozen=True)
class TextSource:
    """Text typed or pasted by the user."""

    kind: ClassVar[str] = "text"

    @property
    def label(self) -> str:
        return "Manual input"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


@dataclass(slots=True, frozen=True)
class FileSource:
    """Text extracted from an uploaded file."""

    name: str
    kind: ClassVar[str] = "file"

    @property
    def label(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "name": self.name}


@dataclass(slots=True, frozen=True)
class WebSource:
    """Text scraped from a remote page."""

    url: str
    kind: ClassVar[str] = "web"

    @property
    def label(self) -> str:
        return self.url

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "url": self.url}


ContentSource = Union[TextSource, FileSource, WebSource]


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """Normalized, analysis-ready text and where it came from."""

    text: str
    source_label: str
    source: ContentSource

    def __post_init__(self) -> None:
        """Validate the result."""
        if not self.text:
            raise ValueError("ExtractionResult text must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "source_label": self.source_label,
            "source": self.source.to_dict(),
            "length": len(self.text),
        }


@dataclass(slots=True, frozen=True)
class ProxyAttempt:
    """One relay (or primary service) tried while fetching a page."""

    endpoint_url: str
    succeeded: bool
    error_reason: str | None = None


@dataclass(slots=True, frozen=True)
class UploadedFile:
    """An uploaded file: its client-side name and raw bytes."""

    name: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """Lowercase trailing extension without the dot ('' when absent)."""
        return PurePath(self.name).suffix.lower().lstrip(".")


@dataclass(slots=True, frozen=True)
class AcquisitionOutcome:
    """Explicit result of one acquisition: either a result or an error."""

    result: ExtractionResult | None = None
    error: AcquisitionError | None = None

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("AcquisitionOutcome needs exactly one of result or error")

    @property
    def ok(self) -> bool:
        return self.result is not None

    @property
    def status(self) -> AcquisitionStatus:
        return AcquisitionStatus.SUCCEEDED if self.ok else AcquisitionStatus.FAILED
