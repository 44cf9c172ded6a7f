"""
Prometheus metrics for the pin timeline service.

Defines and exposes metrics for:
- Pin creation and follow graph mutations
- Session authentication outcomes
- Timeline fan-out writes, deletes, latency and failures
- Timeline read latency

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the pin timeline service.

    Usage:
        metrics = get_metrics()
        metrics.record_fanout("publish", written=12, latency=0.03)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.pins_created = Counter(
            "pin_timeline_pins_created_total",
            "Total number of pins created",
        )

        self.pins_deleted = Counter(
            "pin_timeline_pins_deleted_total",
            "Total number of pins deleted",
        )

        self.follow_events = Counter(
            "pin_timeline_follow_events_total",
            "Follow graph mutations",
            ["action"],  # follow, unfollow
        )

        self.auth_attempts = Counter(
            "pin_timeline_auth_attempts_total",
            "Session authentication attempts",
            ["result"],  # success, missing, invalid, error
        )

        self.timeline_entries_written = Counter(
            "pin_timeline_timeline_entries_written_total",
            "Timeline entries written by fan-out operations",
            ["operation"],  # publish, backfill, rebuild
        )

        self.timeline_entries_deleted = Counter(
            "pin_timeline_timeline_entries_deleted_total",
            "Timeline entries removed",
            ["operation"],  # unfollow, rebuild
        )

        self.fanout_errors = Counter(
            "pin_timeline_fanout_errors_total",
            "Fan-out batches that failed to write",
            ["operation"],
        )

        self.fanout_latency = Histogram(
            "pin_timeline_fanout_latency_seconds",
            "Time spent writing timeline entries per operation",
            ["operation"],
            buckets=LATENCY_BUCKETS,
        )

        self.timeline_read_latency = Histogram(
            "pin_timeline_timeline_read_latency_seconds",
            "Time to serve one timeline page",
            buckets=LATENCY_BUCKETS,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_fanout(self, operation: str, written: int, latency: float) -> None:
        """
        Record a completed fan-out operation.

        Args:
            operation: publish, backfill, or rebuild
            written: Number of timeline entries inserted
            latency: Wall time in seconds
        """
        self.timeline_entries_written.labels(operation=operation).inc(written)
        self.fanout_latency.labels(operation=operation).observe(latency)

    def record_fanout_error(self, operation: str, failed_batches: int = 1) -> None:
        self.fanout_errors.labels(operation=operation).inc(failed_batches)

    def record_timeline_deleted(self, operation: str, count: int) -> None:
        self.timeline_entries_deleted.labels(operation=operation).inc(count)

    def record_follow(self, action: str) -> None:
        self.follow_events.labels(action=action).inc()

    def record_auth(self, result: str) -> None:
        self.auth_attempts.labels(result=result).inc()

    def record_timeline_read(self, latency: float) -> None:
        self.timeline_read_latency.observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
