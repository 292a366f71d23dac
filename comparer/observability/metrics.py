"""
Profile Comparer - Prometheus Metrics

Metrics exposed:
- comparer_requests_total: Counter of HTTP requests by endpoint, method, status
- comparer_request_duration_seconds: Histogram of request latency
- comparer_relay_events_total: Counter of relayed events by type (content/done/error)
- comparer_relay_malformed_chunks_total: Counter of skipped upstream chunks
- comparer_relay_streams_total: Counter of finished relays by mode and outcome
- comparer_upstream_requests_total: Counter of upstream generation calls by status
- comparer_profile_fetches_total: Counter of GitHub profile fetches by outcome
- comparer_active_streams: Gauge of currently open event streams

Usage:
    from comparer.observability.metrics import get_metrics, metrics_endpoint

    metrics = get_metrics()
    metrics.record_relay_event("content")

    @app.get("/metrics")
    async def metrics():
        return metrics_endpoint()
"""

from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import Response


class MetricsCollector:
    """
    Central metrics collector using Prometheus client.

    Singleton per registry; collectors cannot be registered twice.
    """

    _instance: Optional["MetricsCollector"] = None

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        self.info = Info(
            "comparer",
            "Profile comparer service information",
            registry=registry,
        )
        self.info.info({
            "version": "1.0.0",
            "service": "profile-comparer",
        })

        self.requests_total = Counter(
            "comparer_requests_total",
            "Total number of HTTP requests",
            labelnames=["endpoint", "method", "status"],
            registry=registry,
        )

        # Streaming endpoints stay open for the whole generation
        self.request_duration = Histogram(
            "comparer_request_duration_seconds",
            "Request duration in seconds",
            labelnames=["endpoint", "method"],
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
            registry=registry,
        )

        self.relay_events = Counter(
            "comparer_relay_events_total",
            "Events written to client event streams",
            labelnames=["type"],
            registry=registry,
        )

        self.relay_malformed_chunks = Counter(
            "comparer_relay_malformed_chunks_total",
            "Upstream chunks skipped because they could not be decoded",
            registry=registry,
        )

        self.relay_streams = Counter(
            "comparer_relay_streams_total",
            "Finished relays by generation mode and outcome",
            labelnames=["mode", "outcome"],
            registry=registry,
        )

        self.upstream_requests = Counter(
            "comparer_upstream_requests_total",
            "Generation provider calls by response status",
            labelnames=["status"],
            registry=registry,
        )

        self.profile_fetches = Counter(
            "comparer_profile_fetches_total",
            "GitHub profile fetches by outcome",
            labelnames=["outcome"],
            registry=registry,
        )

        self.active_streams = Gauge(
            "comparer_active_streams",
            "Number of currently open event streams",
            registry=registry,
        )

    @classmethod
    def get_instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def record_request(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        duration_seconds: float,
    ):
        """Record a completed HTTP request."""
        self.requests_total.labels(
            endpoint=endpoint,
            method=method,
            status=str(status_code),
        ).inc()

        self.request_duration.labels(
            endpoint=endpoint,
            method=method,
        ).observe(duration_seconds)

    def record_relay_event(self, event_type: str):
        self.relay_events.labels(type=event_type).inc()

    def record_malformed_chunk(self):
        self.relay_malformed_chunks.inc()

    def record_relay_outcome(self, mode: str, outcome: str):
        """Record how a relay ended: completed, error, disconnected or cancelled."""
        self.relay_streams.labels(mode=mode, outcome=outcome).inc()

    def record_upstream_request(self, status: str):
        self.upstream_requests.labels(status=status).inc()

    def record_profile_fetch(self, outcome: str):
        self.profile_fetches.labels(outcome=outcome).inc()

    def track_active_stream(self) -> "ActiveStreamTracker":
        """Context manager to track open event streams."""
        return ActiveStreamTracker(self)


class ActiveStreamTracker:
    """Context manager for tracking open event streams."""

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def __enter__(self):
        self.collector.active_streams.inc()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.collector.active_streams.dec()


_metrics_instance: Optional[MetricsCollector] = None


def setup_metrics(registry: CollectorRegistry = REGISTRY) -> MetricsCollector:
    """
    Setup metrics collection.

    Safe to call multiple times - returns existing instance.
    """
    global _metrics_instance

    if _metrics_instance is not None and _metrics_instance.registry is registry:
        return _metrics_instance

    if registry is REGISTRY and MetricsCollector._instance is not None:
        _metrics_instance = MetricsCollector._instance
        return _metrics_instance

    _metrics_instance = MetricsCollector(registry)
    if registry is REGISTRY:
        MetricsCollector._instance = _metrics_instance
    return _metrics_instance


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, initializing with defaults."""
    global _metrics_instance
    if _metrics_instance is None:
        _metrics_instance = MetricsCollector.get_instance()
    return _metrics_instance


def metrics_endpoint() -> Response:
    """Generate Prometheus metrics endpoint response."""
    content = generate_latest(get_metrics().registry)
    return Response(
        content=content,
        media_type=CONTENT_TYPE_LATEST,
    )
