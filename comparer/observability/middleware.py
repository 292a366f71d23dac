"""
Profile Comparer - Observability Middleware

Unified middleware that combines metrics, tracing, and logging.

Usage:
    from comparer.observability import setup_observability, ObservabilityMiddleware

    setup_observability(service_name="profile-comparer")
    app.add_middleware(ObservabilityMiddleware)
"""

import os
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Request, Response
from opentelemetry.trace import Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from .logging import LogContext, get_logger, setup_logging
from .metrics import get_metrics, setup_metrics
from .tracing import TraceContext, get_tracing_manager, setup_tracing


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Unified observability middleware.

    Every request gets a request id, a server span, a structured log line
    and a metrics sample. The request id is echoed back as X-Request-Id.
    """

    EXCLUDE_PATHS = {"/metrics", "/openapi.json", "/docs", "/redoc"}

    def __init__(
        self,
        app: ASGIApp,
        service_name: str = "profile-comparer",
        exclude_paths: Optional[set] = None,
    ):
        super().__init__(app)
        self.service_name = service_name
        self.exclude_paths = exclude_paths or self.EXCLUDE_PATHS
        self.logger = get_logger("comparer.middleware")

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        metrics = get_metrics()
        tracing = get_tracing_manager()

        headers = dict(request.headers)

        request_id = headers.get("x-request-id", "")
        if not request_id:
            request_id = f"req_{uuid.uuid4().hex[:24]}"

        start_time = time.perf_counter()

        with tracing.start_server_span(
            name=f"{request.method} {request.url.path}",
            headers=headers,
            attributes={
                "http.method": request.method,
                "http.route": request.url.path,
                "http.scheme": request.url.scheme,
                "comparer.request_id": request_id,
            },
        ) as span:
            trace_ctx = TraceContext.from_span(span)

            log_ctx = LogContext(
                request_id=request_id,
                trace_id=trace_ctx.trace_id,
                span_id=trace_ctx.span_id,
                endpoint=request.url.path,
            )
            LogContext.set_current(log_ctx)

            request.state.request_id = request_id
            request.state.trace_id = trace_ctx.trace_id
            request.state.log_context = log_ctx

            try:
                response = await call_next(request)
                duration_seconds = time.perf_counter() - start_time

                span.set_attribute("http.status_code", response.status_code)
                if response.status_code >= 500:
                    span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status_code}"))
                elif response.status_code >= 400:
                    span.set_attribute("http.error", True)
                else:
                    span.set_status(Status(StatusCode.OK))

                metrics.record_request(
                    endpoint=request.url.path,
                    method=request.method,
                    status_code=response.status_code,
                    duration_seconds=duration_seconds,
                )

                self._log_request(request, response, duration_seconds * 1000)

                response.headers["X-Request-Id"] = request_id
                response.headers["X-Trace-Id"] = trace_ctx.trace_id

                return response

            except Exception as e:
                duration_seconds = time.perf_counter() - start_time

                tracing.record_exception(span, e)

                metrics.record_request(
                    endpoint=request.url.path,
                    method=request.method,
                    status_code=500,
                    duration_seconds=duration_seconds,
                )

                self.logger.exception(
                    "Request failed with exception",
                    error=str(e),
                    error_type=type(e).__name__,
                    duration_ms=round(duration_seconds * 1000, 2),
                )
                raise

            finally:
                LogContext.clear()

    def _log_request(self, request: Request, response: Response, duration_ms: float):
        status_code = response.status_code

        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
            "streaming": response.headers.get("content-type", "").startswith("text/event-stream"),
            "client_ip": request.client.host if request.client else None,
        }

        if status_code >= 500:
            self.logger.error("Request completed with server error", **log_data)
        elif status_code >= 400:
            self.logger.warning("Request completed with client error", **log_data)
        else:
            self.logger.info("Request completed", **log_data)


_observability_initialized = False


def setup_observability(
    service_name: str = "profile-comparer",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    log_level: str = "INFO",
) -> Dict[str, Any]:
    """
    Setup logging, metrics and tracing.

    Call once at application startup. Safe to call multiple times.
    """
    global _observability_initialized

    if otlp_endpoint is None:
        otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None

    log_level = os.getenv("LOG_LEVEL", log_level)
    json_output = os.getenv("LOG_FORMAT", "json").lower() == "json"

    # Logging first; the other components log during setup
    setup_logging(level=log_level, json_output=json_output)

    result: Dict[str, Any] = {
        "logging": True,
        "metrics": setup_metrics(),
        "tracing": setup_tracing(
            service_name=service_name,
            service_version=service_version,
            otlp_endpoint=otlp_endpoint,
        ),
    }

    if not _observability_initialized:
        get_logger("comparer.observability").info(
            "Observability initialized",
            service_name=service_name,
            service_version=service_version,
            otlp_endpoint=otlp_endpoint or "none",
        )
        _observability_initialized = True

    return result


def get_request_id(request: Request) -> str:
    """Request id assigned by the middleware, or a fresh one outside it."""
    request_id = getattr(request.state, "request_id", "")
    return request_id or f"req_{uuid.uuid4().hex[:12]}"
