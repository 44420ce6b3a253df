"""
Helpers for validating metric value changes during tests.

Labelled metrics are resolved with ``metric.labels(**labels)`` before reading.
"""

from contextlib import contextmanager


def _resolve(metric, labels):
    return metric.labels(**labels) if labels else metric


def counter_value(metric, **labels) -> float:
    """Current value of a counter (or one labelled child of it)."""
    child = _resolve(metric, labels)
    if not hasattr(child, "_value"):
        raise ValueError(f"Metric {metric} doesn't have a _value attribute")
    return child._value.get()


def histogram_count(histogram, **labels) -> float:
    """Number of observations recorded by a histogram child."""
    child = _resolve(histogram, labels)
    return sum(bucket.get() for bucket in child._buckets)


@contextmanager
def metric_delta(metric, expected_delta=1, **labels):
    """
    Context manager to validate counter changes.

    Usage:
        with metric_delta(METRICS["acquisitions_total"], source="text", outcome="success"):
            await pipeline.acquire_text("...")
    """
    initial_value = counter_value(metric, **labels)

    yield

    actual_delta = counter_value(metric, **labels) - initial_value
    if actual_delta != expected_delta:
        raise AssertionError(
            f"Expected metric {labels or ''} to change by {expected_delta}, but it changed by {actual_delta}"
        )


@contextmanager
def histogram_observes(histogram, min_observations=1, **labels):
    """Context manager to validate that a histogram child records observations."""
    initial_count = histogram_count(histogram, **labels)

    yield

    actual_observations = histogram_count(histogram, **labels) - initial_count
    if actual_observations < min_observations:
        raise AssertionError(
            f"Expected at least {min_observations} histogram observations, but got {actual_observations}"
        )
