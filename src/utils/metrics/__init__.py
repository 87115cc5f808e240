"""
Prometheus metrics for table merging

Usage:
    from utils.metrics import MergeMetrics, MetricsPublisher

    MetricsPublisher(port=9091).start()
    metrics = MergeMetrics()
    metrics.record_run("merged_customers", success=True, duration=12.5)
"""

import logging
from typing import Callable, TypeVar

from prometheus_client import REGISTRY, CollectorRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_create_metric(
    metric_factory: Callable[[], T],
    metric_name: str,
    registry: CollectorRegistry = REGISTRY,
) -> T:
    """
    Create a metric, or return the one already registered under that name.

    Args:
        metric_factory: Callable that creates the metric (e.g., lambda: Counter(...))
        metric_name: Name of the metric for lookup if already registered
        registry: Prometheus registry the factory registers into

    Returns:
        The metric instance (either newly created or existing)
    """
    try:
        return metric_factory()
    except ValueError:
        existing = registry._names_to_collectors.get(metric_name)
        if existing is not None:
            return existing
        raise


from .merge import MergeMetrics  # noqa: E402
from .publisher import MetricsPublisher  # noqa: E402

__all__ = [
    "MergeMetrics",
    "MetricsPublisher",
    "get_or_create_metric",
]
