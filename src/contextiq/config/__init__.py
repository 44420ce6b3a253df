"""Configuration models for ContextIQ."""

from .config import (
    AnalysisConfig,
    Config,
    FetcherConfig,
    MonitoringConfig,
    OcrConfig,
    RelayConfig,
    UploadConfig,
    WebConfig,
    find_config_file,
)

__all__ = [
    "AnalysisConfig",
    "Config",
    "FetcherConfig",
    "MonitoringConfig",
    "OcrConfig",
    "RelayConfig",
    "UploadConfig",
    "WebConfig",
    "find_config_file",
]
