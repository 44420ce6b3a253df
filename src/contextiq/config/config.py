"""
Configuration management for ContextIQ using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Setup Logging ---
log = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# --- Nested Configuration Models ---


class UploadConfig(BaseModel):
    """File upload limits and the extension allow-list."""

    max_upload_mb: float = Field(default=15, gt=0, description="Maximum upload size in megabytes.")
    allowed_extensions: List[str] = Field(
        default_factory=lambda: [
            "txt",
            "md",
            "csv",
            "rtf",
            "pdf",
            "docx",
            "jpg",
            "jpeg",
            "png",
            "gif",
            "bmp",
            "webp",
        ],
        description="Extensions (without dot) that are dispatched to an extractor.",
    )
    rejected_extensions: List[str] = Field(
        default_factory=lambda: ["doc"],
        description="Recognised extensions that are refused with a conversion hint.",
    )
    min_text_length: int = Field(default=10, ge=1, description="Minimum characters for text and file content.")

    @field_validator("allowed_extensions", "rejected_extensions", mode="after")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        return [ext.lower().lstrip(".") for ext in v if ext.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


class OcrConfig(BaseModel):
    """Optical character recognition settings."""

    language: str = Field(default="eng", description="Tesseract language model.")
    min_characters: int = Field(default=5, ge=1, description="Below this the image has no readable text.")


class RelayConfig(BaseModel):
    """A public relay endpoint that fetches a page on our behalf."""

    name: str
    template: str = Field(description="URL template; '{url}' is replaced by the percent-encoded target.")
    response_format: Literal["text", "json", "auto"] = Field(
        default="text",
        description="'text' returns the body, 'json' reads a contents field, 'auto' decides by content type.",
    )

    @field_validator("template")
    @classmethod
    def require_placeholder(cls, v: str) -> str:
        if "{url}" not in v:
            raise ValueError("relay template must contain a '{url}' placeholder")
        return v


def _default_relays() -> List[RelayConfig]:
    return [
        RelayConfig(name="corsproxy", template="https://corsproxy.io/?{url}", response_format="text"),
        RelayConfig(name="codetabs", template="https://api.codetabs.com/v1/proxy?quest={url}", response_format="text"),
        RelayConfig(name="thingproxy", template="https://thingproxy.freeboard.io/fetch/{url}", response_format="auto"),
        RelayConfig(name="allorigins", template="https://api.allorigins.win/get?url={url}", response_format="json"),
    ]


class FetcherConfig(BaseModel):
    """Web content fetcher configuration."""

    primary_service_url: Optional[str] = Field(
        default=None,
        description="Managed fetch-and-extract service (POST {url} -> {content}). None uses the in-process scrape service.",
    )
    relays: List[RelayConfig] = Field(default_factory=_default_relays, description="Relays tried in order.")
    request_timeout: float = Field(default=15.0, gt=0, description="Per-request timeout in seconds.")
    user_agent: str = Field(default=BROWSER_USER_AGENT, description="User-Agent sent to relays and target sites.")
    accept: str = Field(default="application/json, text/html, */*", description="Accept header sent to relays.")
    min_web_length: int = Field(default=50, ge=1, description="Minimum characters of reduced page text.")
    scrape_allow_private_hosts: bool = Field(
        default=False, description="Let the hosted scrape service fetch loopback/private addresses."
    )

    @field_validator("relays")
    @classmethod
    def validate_relays(cls, v: List[RelayConfig]) -> List[RelayConfig]:
        if not v:
            raise ValueError("relays must contain at least one endpoint")
        return v


class AnalysisConfig(BaseModel):
    """Chat-completion endpoint used for summaries, analysis and Q&A."""

    api_url: str = Field(default="https://models.inference.ai.azure.com/chat/completions")
    api_key: Optional[SecretStr] = Field(default=None, description="Bearer token for the chat-completion API.")
    model: str = Field(default="gpt-4o")
    context_preview_chars: int = Field(default=4000, ge=1, description="Context characters sent with chat questions.")
    summary_max_words: int = Field(default=150, ge=1)
    chat_max_tokens: int = Field(default=1000, ge=1)
    chat_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    request_timeout: float = Field(default=60.0, gt=0)


class MonitoringConfig(BaseModel):
    """Configuration for logging and metrics."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")
    json_logs: bool = Field(default=False, description="Render console logs as JSON.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


class WebConfig(BaseModel):
    """Configuration for the HTTP API."""

    host: str = Field(default="127.0.0.1", description="Host for the web server.")
    port: int = Field(default=8000, description="Port for the web server.")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"])
    max_sessions: int = Field(default=1024, ge=1, description="Content buffers kept for web sessions.")


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "ContextIQ"
    version: str = "0.1.0"
    upload: UploadConfig = Field(default_factory=UploadConfig)
    ocr: OcrConfig = Field(default_factory=OcrConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    model_config = SettingsConfigDict(env_prefix="CONTEXTIQ_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        return cls.model_validate(yaml_data)


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    for path in (current_dir / "config.yaml", current_dir / "config.yml"):
        if path.exists():
            return path
    return None

