"""
Profile Comparer - Observability Module

- Prometheus metrics (Counter, Histogram, Gauge)
- OpenTelemetry distributed tracing
- Structured JSON logging with context injection

Usage:
    from comparer.observability import setup_observability, get_logger, get_metrics

    setup_observability(service_name="profile-comparer")

    logger = get_logger(__name__)
    metrics = get_metrics()
"""

from .metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
    metrics_endpoint,
)
from .tracing import (
    TracingManager,
    get_tracing_manager,
    setup_tracing,
    trace_upstream_call,
)
from .logging import (
    StructuredLogger,
    TimedOperation,
    get_logger,
    setup_logging,
    LogContext,
)
from .middleware import (
    ObservabilityMiddleware,
    get_request_id,
    setup_observability,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "setup_metrics",
    "metrics_endpoint",
    # Tracing
    "TracingManager",
    "get_tracing_manager",
    "setup_tracing",
    "trace_upstream_call",
    # Logging
    "StructuredLogger",
    "TimedOperation",
    "get_logger",
    "setup_logging",
    "LogContext",
    # Combined
    "ObservabilityMiddleware",
    "get_request_id",
    "setup_observability",
]
