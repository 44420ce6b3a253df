"""
Whitespace normalization and minimum-length validation shared by every source.
"""

from __future__ import annotations

import re

from .errors import ContentTooShortError

_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_BLANK_LINES = re.compile(r"\n{3,}")
_ANY_WS = re.compile(r"\s+")


def normalize_line_endings(text: str) -> str:
    """Convert ``\\r\\n`` and lone ``\\r`` to ``\\n``."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace while keeping paragraph structure.

    Runs of spaces/tabs become one space, spaces hugging a newline are
    dropped, more than one blank line collapses to a single blank line and
    the result is trimmed.
    """
    text = normalize_line_endings(text)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _BLANK_LINES.sub("\n\n", text)
    return text.strip()


def collapse_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return _ANY_WS.sub(" ", text).strip()


def ensure_min_length(text: str, minimum: int) -> str:
    """Return ``text`` unchanged if it has at least ``minimum`` characters."""
    if len(text) < minimum:
        raise ContentTooShortError(len(text), minimum)
    return text


def preview(text: str, limit: int) -> str:
    """Leading ``limit`` characters of ``text``, used as chat context."""
    return text[:limit]


class ContentNormalizer:
    """Applies the same normalization and length floor to every source."""

    def __init__(self, min_text_length: int = 10, min_web_length: int = 50) -> None:
        self.min_text_length = min_text_length
        self.min_web_length = min_web_length

    def normalize_text(self, text: str) -> str:
        """Normalize manual or file text; raises ContentTooShortError."""
        return ensure_min_length(normalize_whitespace(text), self.min_text_length)

    def normalize_web(self, text: str) -> str:
        """Normalize reduced page text; raises ContentTooShortError."""
        return ensure_min_length(collapse_whitespace(text), self.min_web_length)
