from .factories import LONG_TEXT, image_bytes, make_response, page
from .metric_delta import counter_value, histogram_count, histogram_observes, metric_delta

__all__ = [
    "LONG_TEXT",
    "image_bytes",
    "make_response",
    "page",
    "counter_value",
    "histogram_count",
    "histogram_observes",
    "metric_delta",
]
