"""
BeautifulSoup-based HTML-to-text reduction.

The same reduction is used by the relay path and by the hosted scrape
service, so identical HTML always yields identical text.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import structlog
from bs4 import BeautifulSoup

from ..normalizer import collapse_whitespace

logger = structlog.get_logger(__name__)

REMOVE_TAGS: List[str] = ["script", "style", "nav", "header", "footer"]

# Text on either side of these is a separate word; inline tags join their text.
BLOCK_TAGS: List[str] = [
    "address",
    "article",
    "aside",
    "blockquote",
    "br",
    "dd",
    "div",
    "dl",
    "dt",
    "figcaption",
    "figure",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "hr",
    "li",
    "main",
    "ol",
    "p",
    "pre",
    "section",
    "table",
    "td",
    "th",
    "tr",
    "ul",
]

# Priority order; the first match wins and matches are never merged.
CONTENT_SELECTORS: List[str] = [
    "main",
    "article",
    '[class*="content"]',
    '[id*="content"]',
    '[role="main"]',
    ".main-content",
    ".post-content",
    ".entry-content",
    "#main",
]


class HtmlReducer:
    """Strips page chrome, locates the main content and flattens it to text."""

    name = "html_reducer"

    def __init__(self) -> None:
        self.config: Dict[str, Any] = {
            "parser": "html.parser",  # Built-in parser, no native dependency
            "remove_tags": list(REMOVE_TAGS),
            "content_selectors": list(CONTENT_SELECTORS),
        }

    def reduce(self, html: str) -> str:
        """Reduce raw HTML to a single line of analysable text."""
        if not html or not html.strip():
            return ""

        soup = BeautifulSoup(html, self.config["parser"])

        for tag in soup.find_all(self.config["remove_tags"]):
            # Nested matches go away with their removed ancestor
            if not tag.decomposed:
                tag.decompose()

        container = None
        for selector in self.config["content_selectors"]:
            container = soup.select_one(selector)
            if container is not None:
                logger.debug("Main content container found", selector=selector)
                break

        if container is None:
            container = soup.body or soup

        for block in container.find_all(BLOCK_TAGS):
            block.insert_before(" ")
            block.insert_after(" ")

        # The parser has already decoded entities (&nbsp; arrives as U+00A0,
        # which the whitespace collapse treats as a space).
        return collapse_whitespace(container.get_text())

    async def reduce_async(self, html: str) -> str:
        """Run :meth:`reduce` in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.reduce, html)


_default_reducer = HtmlReducer()


def reduce_html(html: str) -> str:
    """Reduce HTML using the default reducer."""
    return _default_reducer.reduce(html)
