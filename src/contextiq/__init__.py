"""
ContextIQ - content acquisition and normalization for text analysis.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config
from .container import DependencyContainer
from .models import AcquisitionOutcome, AcquisitionStatus, ExtractionResult
from .pipeline import AcquisitionPipeline

__all__ = [
    "__version__",
    "Config",
    "DependencyContainer",
    "AcquisitionOutcome",
    "AcquisitionStatus",
    "ExtractionResult",
    "AcquisitionPipeline",
]
