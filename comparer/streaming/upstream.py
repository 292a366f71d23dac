"""
Profile Comparer - Upstream Stream Adapter

Opens one streamed chat completion against OpenRouter (OpenAI-compatible)
and exposes it as an async iterator of raw protocol lines.

Failure contract:
- A non-success status is raised as the mapped ComparerException before
  any line is yielded.
- A transport failure at any point is raised as TransportFailureError.
- Closing the iterator closes the HTTP response.
"""

from typing import Any, AsyncIterator, Dict, Optional

import httpx
from opentelemetry.trace import SpanKind, Status, StatusCode

from ..config import UpstreamConfig
from ..core.errors import (
    ComparerException,
    handle_openrouter_response,
    handle_transport_error,
)
from ..core.models import GenerationRequest
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics
from ..observability.tracing import get_tracing_manager
from ..prompts import build_messages, generation_params

logger = get_logger(__name__)


class UpstreamStreamAdapter:
    """
    Adapter for the OpenRouter chat completions endpoint.

    Owns its httpx client unless one is passed in.
    """

    def __init__(self, config: UpstreamConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.read_timeout, connect=config.connect_timeout),
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.config.referer,
            "X-Title": self.config.title,
        }

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        """Build the chat completion payload for one generation."""
        params = generation_params(request.mode)
        return {
            "model": self.config.model,
            "messages": build_messages(request.profile1, request.profile2, request.mode),
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
            "stream": params.stream,
        }

    async def stream_lines(self, request: GenerationRequest) -> AsyncIterator[str]:
        """
        Stream the raw response lines of one generation.

        Yields every line as received (framing is left to the caller).
        """
        payload = self.build_payload(request)
        metrics = get_metrics()
        span = get_tracing_manager().tracer.start_span(
            "openrouter.chat",
            kind=SpanKind.CLIENT,
            attributes={
                "peer.service": "openrouter",
                "ai.model": self.config.model,
                "comparer.mode": request.mode.value,
                "comparer.request_id": request.request_id,
            },
        )

        try:
            async with self.client.stream(
                "POST",
                "/chat/completions",
                json=payload,
                headers=self._headers(),
            ) as response:
                metrics.record_upstream_request(str(response.status_code))
                span.set_attribute("http.status_code", response.status_code)

                if response.status_code >= 400:
                    body = await response.aread()
                    raise handle_openrouter_response(
                        response.status_code,
                        body,
                        response.headers,
                        request.request_id,
                    )

                async for line in response.aiter_lines():
                    yield line

            span.set_status(Status(StatusCode.OK))

        except ComparerException as e:
            logger.warning(
                "Upstream request failed",
                request_id=request.request_id,
                error_code=e.error.code,
                status_code=e.status_code,
            )
            span.set_status(Status(StatusCode.ERROR, e.error.code))
            raise

        except httpx.HTTPError as e:
            error = handle_transport_error(e, request.request_id)
            metrics.record_upstream_request("transport_error")
            logger.warning(
                "Upstream transport failed",
                request_id=request.request_id,
                error=error.error.message,
            )
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, "transport_failure"))
            raise error from e

        finally:
            span.end()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
