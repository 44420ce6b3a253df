"""Chat-completion collaborator: summaries, text analysis and Q&A over the active buffer."""

from .client import AnalysisClient, AnalysisServiceError, ChatMessage, TextAnalysis

__all__ = ["AnalysisClient", "AnalysisServiceError", "ChatMessage", "TextAnalysis"]
