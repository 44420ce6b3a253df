"""
Client for the hosted chat-completion API.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import structlog

from contextiq.config.config import AnalysisConfig
from contextiq.crawler.http_client import FetchResponse, HttpClient
from contextiq.normalizer import preview

logger = structlog.get_logger(__name__)

SENTIMENTS = ("positive", "negative", "neutral", "mixed")

ANALYZE_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "analyze_text",
        "description": "Analyze text for sentiment, themes, and keywords",
        "parameters": {
            "type": "object",
            "properties": {
                "sentiment": {"type": "string", "enum": list(SENTIMENTS)},
                "themes": {"type": "array", "items": {"type": "string"}},
                "keywords": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["sentiment", "themes", "keywords"],
            "additionalProperties": False,
        },
    },
}


class AnalysisServiceError(Exception):
    """The chat-completion API could not be reached or refused the request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass(slots=True)
class TextAnalysis:
    sentiment: str = "neutral"
    themes: List[str] = field(default_factory=lambda: ["general"])
    keywords: List[str] = field(default_factory=lambda: ["text"])

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> TextAnalysis:
        sentiment = arguments.get("sentiment")
        return cls(
            sentiment=sentiment if sentiment in SENTIMENTS else "neutral",
            themes=[str(t) for t in arguments.get("themes") or []],
            keywords=[str(k) for k in arguments.get("keywords") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"sentiment": self.sentiment, "themes": self.themes, "keywords": self.keywords}


@dataclass(slots=True, frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class AnalysisClient:
    """
    Summaries, sentiment/theme analysis and conversational Q&A.

    All three operations go through one chat-completion endpoint; HTTP
    failures surface as AnalysisServiceError with a message fit for users.
    """

    def __init__(self, config: AnalysisConfig, http_client: HttpClient) -> None:
        self.config = config
        self.http_client = http_client
        self.logger = logger.bind(component="AnalysisClient")

    async def summarize(self, text: str) -> str:
        messages = [
            {
                "role": "system",
                "content": (
                    "You are a helpful assistant that creates concise, clear summaries of text. "
                    "Focus on key points and main ideas. "
                    f"Keep summaries under {self.config.summary_max_words} words."
                ),
            },
            {"role": "user", "content": f"Please summarize the following text:\n\n{text}"},
        ]
        data = await self._complete({"messages": messages})
        return _message(data).get("content") or ""

    async def analyze(self, text: str) -> TextAnalysis:
        """Classify sentiment and extract themes and keywords.

        Falls back to a neutral analysis when the model answers without
        calling the analysis tool.
        """
        messages = [
            {
                "role": "system",
                "content": (
                    "You are an AI text analyzer. Analyze the given text and provide: "
                    "1) Overall sentiment (positive/negative/neutral/mixed), 2) Key themes/topics, "
                    "3) Main keywords. Format your response as JSON."
                ),
            },
            {
                "role": "user",
                "content": (
                    'Analyze this text and return a JSON object with "sentiment", "themes" (array), '
                    f'and "keywords" (array):\n\n{text}'
                ),
            },
        ]
        data = await self._complete(
            {
                "messages": messages,
                "tools": [ANALYZE_TOOL],
                "tool_choice": {"type": "function", "function": {"name": "analyze_text"}},
            }
        )

        tool_calls = _message(data).get("tool_calls") or []
        if not tool_calls:
            self.logger.info("Model returned no tool call, using neutral analysis")
            return TextAnalysis()

        try:
            arguments = json.loads(tool_calls[0]["function"]["arguments"])
        except (KeyError, TypeError, ValueError) as e:
            raise AnalysisServiceError(f"Malformed analysis response: {e}") from e
        if not isinstance(arguments, dict):
            raise AnalysisServiceError("Malformed analysis response: arguments are not an object")
        return TextAnalysis.from_arguments(arguments)

    async def chat(
        self,
        message: str,
        context: Optional[str] = None,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        """Answer ``message`` with the leading part of ``context`` as reference."""
        if context:
            grounding = f"Here is the context to reference:\n\n{preview(context, self.config.context_preview_chars)}"
        else:
            grounding = "Answer questions helpfully and accurately."
        system = {
            "role": "system",
            "content": (
                f"You are ContextIQ, a helpful AI assistant that answers questions about content. {grounding}"
                "\n\nProvide clear, concise answers based on the context and conversation history."
            ),
        }
        messages = [system, *(m.to_dict() for m in history), {"role": "user", "content": message}]
        data = await self._complete(
            {
                "messages": messages,
                "max_tokens": self.config.chat_max_tokens,
                "temperature": self.config.chat_temperature,
            }
        )
        return _message(data).get("content") or ""

    async def _complete(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if self.config.api_key is None:
            raise AnalysisServiceError("Analysis API key not configured")

        headers = {
            "Authorization": f"Bearer {self.config.api_key.get_secret_value()}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.config.model, **body}

        try:
            response = await self.http_client.post_json(
                self.config.api_url, payload, headers=headers, timeout=self.config.request_timeout
            )
        except (aiohttp.ClientError, TimeoutError) as e:
            raise AnalysisServiceError(f"Analysis service unreachable: {e}") from e

        if not response.ok:
            raise _error_for(response)

        try:
            data = response.json()
        except ValueError as e:
            raise AnalysisServiceError("Analysis service returned invalid JSON") from e
        if not isinstance(data, dict):
            raise AnalysisServiceError("Analysis service returned an unexpected payload")
        return data


def _message(data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        message = data["choices"][0]["message"]
    except (KeyError, IndexError, TypeError) as e:
        raise AnalysisServiceError("Analysis service returned no choices") from e
    return message if isinstance(message, dict) else {}


def _error_for(response: FetchResponse) -> AnalysisServiceError:
    """Map an error response to a readable AnalysisServiceError."""
    try:
        payload = response.json()
        detail = payload.get("error", {}).get("message") if isinstance(payload, dict) else None
    except (ValueError, AttributeError):
        detail = None
    detail = detail or response.text() or "Unknown error"

    logger.error("Analysis API error", status=response.status, detail=detail)

    status = response.status
    if status == 429:
        if "quota" in detail:
            return AnalysisServiceError("Analysis API quota exceeded. Please check your billing.", status)
        return AnalysisServiceError("Analysis API rate limit reached. Please wait a moment and try again.", status)
    if status == 402:
        return AnalysisServiceError("AI credits exhausted. Please add credits to continue.", status)
    if status == 401:
        return AnalysisServiceError("Invalid analysis API key. Please check your configuration.", status)
    if status == 400:
        return AnalysisServiceError(f"Invalid request: {detail}", status)
    return AnalysisServiceError(f"Analysis API error ({status}): {detail}", status)
