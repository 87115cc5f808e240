"""
Metrics for merge runs.

Tracks run outcomes, record provenance, conflict resolutions and write
batches so repeated snapshot comparisons can be monitored over time.
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from . import get_or_create_metric

logger = logging.getLogger(__name__)


class MergeMetrics:
    """
    Prometheus metrics for the merge engine

    Metric objects are shared per registry, so building this class twice
    against the same registry is safe.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.runs_total = get_or_create_metric(
            lambda: Counter(
                "merge_runs_total",
                "Total number of merge runs",
                ["table", "status"],
                registry=self.registry,
            ),
            "merge_runs_total",
            self.registry,
        )

        self.duration_seconds = get_or_create_metric(
            lambda: Histogram(
                "merge_duration_seconds",
                "Duration of merge runs in seconds",
                ["table"],
                buckets=(0.5, 1, 5, 10, 30, 60, 120, 300, 600, 1800),
                registry=self.registry,
            ),
            "merge_duration_seconds",
            self.registry,
        )

        self.records_total = get_or_create_metric(
            lambda: Counter(
                "merge_records_total",
                "Merged records by provenance",
                ["table", "source"],
                registry=self.registry,
            ),
            "merge_records_total",
            self.registry,
        )

        self.conflicts_total = get_or_create_metric(
            lambda: Counter(
                "merge_conflicts_total",
                "Matched entities with differing fields, by resolution",
                ["table", "resolution"],
                registry=self.registry,
            ),
            "merge_conflicts_total",
            self.registry,
        )

        self.auto_filled_total = get_or_create_metric(
            lambda: Counter(
                "merge_auto_filled_fields_total",
                "Fields filled from B because A was NULL or empty",
                ["table"],
                registry=self.registry,
            ),
            "merge_auto_filled_fields_total",
            self.registry,
        )

        self.batches_written_total = get_or_create_metric(
            lambda: Counter(
                "merge_batches_written_total",
                "Insert batches written to the output table",
                ["table"],
                registry=self.registry,
            ),
            "merge_batches_written_total",
            self.registry,
        )

    def record_run(self, table: str, success: bool, duration: float) -> None:
        status = "success" if success else "failed"
        self.runs_total.labels(table=table, status=status).inc()
        self.duration_seconds.labels(table=table).observe(duration)
        logger.debug(f"Recorded merge run: table={table}, status={status}, duration={duration:.2f}s")

    def record_report(self, table: str, report) -> None:
        """Publish the counters of a finished ``MergeReport``."""
        self.records_total.labels(table=table, source="exact").inc(report.exact_match)
        self.records_total.labels(table=table, source="only_a").inc(report.only_in_a)
        self.records_total.labels(table=table, source="only_b").inc(report.only_in_b)
        self.records_total.labels(table=table, source="conflict").inc(report.conflict)
        self.conflicts_total.labels(table=table, resolution="A").inc(report.conflict_use_a)
        self.conflicts_total.labels(table=table, resolution="B").inc(report.conflict_use_b)
        auto_only = report.conflict - report.conflict_use_a - report.conflict_use_b
        self.conflicts_total.labels(table=table, resolution="auto").inc(max(auto_only, 0))
        self.auto_filled_total.labels(table=table).inc(report.null_auto_filled)

    def record_batch(self, table: str) -> None:
        self.batches_written_total.labels(table=table).inc()
