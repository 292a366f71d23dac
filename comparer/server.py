"""
Profile Comparer - Main API Server

FastAPI server that aggregates two GitHub profiles and streams an AI
comparison (or roast) of them as Server-Sent Events.

Features:
- GitHub GraphQL profile aggregation
- Streamed OpenRouter generations relayed as a normalized event stream
- Full observability (metrics, tracing, logging)
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import compare_router, health_router
from .api.dependencies import set_services
from .config import Settings
from .core.errors import ComparerException
from .observability import (
    ObservabilityMiddleware,
    get_logger,
    metrics_endpoint,
    setup_observability,
)
from .profiles.github import GitHubProfileClient
from .streaming.upstream import UpstreamStreamAdapter


# ============================================================
# Lifespan management
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown."""
    settings = Settings.from_env()

    observability = setup_observability(
        service_name="profile-comparer",
        service_version="1.0.0",
        otlp_endpoint=settings.otlp_endpoint,
        log_level=settings.log_level,
    )

    logger = get_logger("comparer.server")

    if not settings.github.token:
        logger.warning("GITHUB_TOKEN is not set; GitHub requests will be rejected")
    if not settings.upstream.api_key:
        logger.warning("OPENROUTER_API_KEY is not set; generations will fail")

    profile_client = GitHubProfileClient(settings.github)
    upstream_adapter = UpstreamStreamAdapter(settings.upstream)
    set_services(profile_client, upstream_adapter)

    logger.info(
        "Profile comparer ready",
        port=settings.port,
        model=settings.upstream.model,
        upstream_read_timeout=settings.upstream.read_timeout,
    )

    yield

    set_services(None, None)
    await profile_client.aclose()
    await upstream_adapter.aclose()

    observability["tracing"].shutdown()

    logger.info("Profile comparer stopped")


# ============================================================
# FastAPI App
# ============================================================

app = FastAPI(
    title="Profile Comparer",
    description="Compare two GitHub profiles with a streamed AI narration",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# First added = innermost
app.add_middleware(ObservabilityMiddleware, service_name="profile-comparer")

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.from_env().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(compare_router)


@app.get("/metrics")
async def prometheus_metrics():
    """Prometheus metrics endpoint."""
    return metrics_endpoint()


# ============================================================
# Error handlers
# ============================================================

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or f"req_{uuid.uuid4().hex[:24]}"


@app.exception_handler(ComparerException)
async def comparer_exception_handler(request: Request, exc: ComparerException):
    """Handle all canonical errors."""
    if not exc.error.request_id:
        exc.error.request_id = _request_id(request)

    headers = {
        "X-Request-Id": exc.error.request_id,
        "X-Error-Code": exc.error.code,
    }

    if exc.error.retry_after:
        headers["Retry-After"] = str(exc.error.retry_after)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.error.to_dict(),
        headers=headers
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle standard HTTP exceptions."""
    request_id = _request_id(request)
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": detail,
            "code": "http_error",
            "kind": "invalid_request" if exc.status_code < 500 else "unknown",
            "request_id": request_id,
        },
        headers={"X-Request-Id": request_id}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    request_id = _request_id(request)

    get_logger("comparer.server").exception(
        "Unhandled exception",
        request_id=request_id,
        error_type=type(exc).__name__,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "An error occurred while comparing profiles",
            "code": "internal_error",
            "kind": "unknown",
            "request_id": request_id,
        },
        headers={"X-Request-Id": request_id}
    )


# ============================================================
# Run server
# ============================================================

def main():
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        "comparer.server:app",
        host="0.0.0.0",
        port=settings.port,
    )


if __name__ == "__main__":
    main()
