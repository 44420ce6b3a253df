"""
Defines Prometheus metrics for content acquisition.
"""

from __future__ import annotations

from typing import Any, Dict

from prometheus_client import REGISTRY as _PROM_REGISTRY
from prometheus_client import Counter as _OrigCounter
from prometheus_client import Histogram as _OrigHistogram

# ---------------------------------------------------------------------------
# Duplicate-safe Prometheus metric wrappers
# ---------------------------------------------------------------------------
# Reuse an already registered collector so that re-importing this module
# (test reloads, multiple app instances) does not raise duplicate errors.


def _duplicate_safe_factory(metric_cls):
    """Return a factory that reuses an existing collector if already present."""

    def _factory(name: str, documentation: str, *args, **kwargs):  # type: ignore[override]
        existing = _PROM_REGISTRY._names_to_collectors.get(name)
        if existing is not None:
            return existing  # type: ignore[return-value]

        try:
            return metric_cls(name, documentation, *args, **kwargs)  # type: ignore[call-arg]
        except ValueError:
            # Registration lost the race; fall back to the now-existing collector.
            return _PROM_REGISTRY._names_to_collectors[name]  # type: ignore[return-value]

    return _factory


Counter = _duplicate_safe_factory(_OrigCounter)  # type: ignore[assignment]
Histogram = _duplicate_safe_factory(_OrigHistogram)  # type: ignore[assignment]


def _create_metrics() -> Dict[str, Any]:
    return {
        "acquisitions_total": Counter(
            "contextiq_acquisitions_total",
            "Acquisitions by source kind and outcome",
            ["source", "outcome"],
        ),
        "relay_attempts_total": Counter(
            "contextiq_relay_attempts_total",
            "Web fetch attempts per endpoint and outcome",
            ["relay", "outcome"],
        ),
        "extraction_seconds": Histogram(
            "contextiq_extraction_seconds",
            "Time spent extracting text per format",
            ["format"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        ),
    }


METRICS: Dict[str, Any] = _create_metrics()


def increment(name: str, value: float = 1.0, **labels: str) -> None:
    """Increment a counter metric."""
    metric = METRICS.get(name)
    if metric is None:
        return
    if labels:
        metric.labels(**labels).inc(value)
    else:
        metric.inc(value)


def observe(name: str, value: float, **labels: str) -> None:
    """Observe a histogram metric."""
    metric = METRICS.get(name)
    if metric is None:
        return
    if labels:
        metric.labels(**labels).observe(value)
    else:
        metric.observe(value)


def export_prometheus() -> bytes:
    """Export metrics in Prometheus text format."""
    from prometheus_client import generate_latest

    return generate_latest()
