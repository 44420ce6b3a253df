"""
The active content buffer handed to the analysis client, and the per-session
store the web API keeps them in.
"""

from __future__ import annotations

import secrets
from collections import OrderedDict
from typing import Any, Dict, Optional

import structlog

from .models import AcquisitionOutcome, ContentSource, ExtractionResult
from .normalizer import preview

logger = structlog.get_logger(__name__)


class ContentBuffer:
    """
    Holds the most recent successful extraction.

    A failed outcome leaves the previous text and source untouched; a
    successful one replaces both wholesale.
    """

    def __init__(self) -> None:
        self._result: Optional[ExtractionResult] = None

    @property
    def text(self) -> str:
        return self._result.text if self._result else ""

    @property
    def source(self) -> Optional[ContentSource]:
        return self._result.source if self._result else None

    @property
    def source_label(self) -> str:
        return self._result.source_label if self._result else ""

    @property
    def is_empty(self) -> bool:
        return self._result is None

    def apply(self, outcome: AcquisitionOutcome) -> bool:
        """Adopt ``outcome`` if it succeeded. Returns whether the buffer changed."""
        if outcome.result is None:
            return False
        self._result = outcome.result
        logger.debug("Content buffer replaced", source=outcome.result.source.kind, length=len(outcome.result.text))
        return True

    def clear(self) -> None:
        self._result = None

    def context_preview(self, limit: int = 4000) -> str:
        return preview(self.text, limit)

    def to_dict(self) -> Dict[str, Any]:
        if self._result is None:
            return {"text": "", "source_label": "", "source": None, "length": 0}
        return self._result.to_dict()


class SessionStore:
    """
    One ContentBuffer per web session.

    Session ids are random tokens issued by :meth:`create`; unknown ids are
    never adopted. The least recently used session is evicted once
    ``max_sessions`` is exceeded.
    """

    def __init__(self, max_sessions: int = 1024) -> None:
        self.max_sessions = max_sessions
        self._buffers: OrderedDict[str, ContentBuffer] = OrderedDict()

    def __len__(self) -> int:
        return len(self._buffers)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._buffers

    def create(self) -> str:
        session_id = secrets.token_urlsafe(24)
        self._buffers[session_id] = ContentBuffer()
        while len(self._buffers) > self.max_sessions:
            self._buffers.popitem(last=False)
            logger.debug("Session evicted", sessions=len(self._buffers))
        return session_id

    def get(self, session_id: str) -> ContentBuffer:
        """Buffer for ``session_id``; raises KeyError for ids this store never issued."""
        buffer = self._buffers[session_id]
        self._buffers.move_to_end(session_id)
        return buffer
