"""
Profile Comparer - Relay Normalizer

Turns the provider's raw line stream into the provider-agnostic event
stream sent to browsers and terminal clients.

Guarantees:
- Events keep upstream order.
- Every relay ends with exactly one terminal event (Completion or
  ErrorEvent) unless the client went away, in which case nothing more is
  written.
- The upstream iterator is closed exactly once, on every path.
"""

import asyncio
import json
from contextlib import aclosing
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from ..core.errors import (
    COMPARISON_FAILED_MESSAGE,
    INSUFFICIENT_QUOTA_MESSAGE,
    ROAST_FAILED_MESSAGE,
    STREAM_ERROR_MESSAGE,
    ComparerException,
    ErrorKind,
    is_quota_fault,
)
from ..core.models import GenerationMode, GenerationRequest
from ..observability.logging import get_logger
from ..observability.metrics import get_metrics
from .events import (
    DONE_SENTINEL,
    Completion,
    ContentDelta,
    ErrorEvent,
    RelayEvent,
    encode_event,
    is_terminal,
    strip_data_prefix,
)

logger = get_logger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


class RelayNormalizer:
    """
    Normalizes one upstream generation.

    Single use: one instance per relayed request.
    """

    def __init__(
        self,
        request_id: str = "",
        mode: GenerationMode = GenerationMode.NEUTRAL,
        is_disconnected: Optional[DisconnectCheck] = None,
    ):
        self.request_id = request_id
        self.mode = mode
        self.is_disconnected = is_disconnected

        # True once the first upstream line arrived
        self.started = False
        self.deltas = 0
        self.malformed = 0
        self.outcome: Optional[str] = None

    # ------------------------------------------------------------
    # Line level
    # ------------------------------------------------------------

    def normalize_line(self, line: str) -> Optional[RelayEvent]:
        """
        Convert one upstream line to an event.

        Returns None for lines that carry nothing for the client: comments,
        keep-alives, role-only deltas and malformed payloads.
        """
        payload = strip_data_prefix(line)
        if payload is None:
            return None

        if payload.strip() == DONE_SENTINEL:
            return Completion()

        try:
            data: Any = json.loads(payload)
        except json.JSONDecodeError:
            return self._skip_malformed(payload)

        if not isinstance(data, dict):
            return self._skip_malformed(payload)

        # OpenRouter reports failures after the 200 as an error payload
        if data.get("error"):
            logger.warning(
                "Upstream reported a mid-stream error",
                request_id=self.request_id,
                upstream_error=data["error"],
            )
            if is_quota_fault(0, data):
                return ErrorEvent(INSUFFICIENT_QUOTA_MESSAGE)
            return ErrorEvent(STREAM_ERROR_MESSAGE)

        content = self._extract_content(data)
        if content:
            return ContentDelta(content)

        return None

    def _extract_content(self, data: dict) -> Optional[str]:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        choice = choices[0]
        if not isinstance(choice, dict):
            return None
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            return None
        content = delta.get("content")
        return content if isinstance(content, str) else None

    def _skip_malformed(self, payload: str) -> None:
        self.malformed += 1
        get_metrics().record_malformed_chunk()
        logger.debug(
            "Skipping malformed upstream chunk",
            request_id=self.request_id,
            payload=payload[:200],
        )
        return None

    def _failure_event(self, error: ComparerException) -> ErrorEvent:
        if error.kind is ErrorKind.INSUFFICIENT_QUOTA:
            return ErrorEvent(INSUFFICIENT_QUOTA_MESSAGE)
        if self.started:
            return ErrorEvent(STREAM_ERROR_MESSAGE)
        return ErrorEvent(self.generic_failure_message())

    def generic_failure_message(self) -> str:
        return ROAST_FAILED_MESSAGE if self.mode.is_roast else COMPARISON_FAILED_MESSAGE

    # ------------------------------------------------------------
    # Stream level
    # ------------------------------------------------------------

    async def relay(self, lines: AsyncIterator[str]) -> AsyncIterator[RelayEvent]:
        """
        Relay upstream lines as events.

        Stops reading at the first terminal event. Upstream failures are
        converted to a terminal ErrorEvent, never raised.
        """
        metrics = get_metrics()
        self.outcome = None

        try:
            try:
                async for line in lines:
                    self.started = True

                    if self.is_disconnected is not None and await self.is_disconnected():
                        self.outcome = "disconnected"
                        logger.info(
                            "Client disconnected, closing upstream",
                            request_id=self.request_id,
                        )
                        return

                    event = self.normalize_line(line)
                    if event is None:
                        continue

                    metrics.record_relay_event(event.type.value)
                    if isinstance(event, ContentDelta):
                        self.deltas += 1

                    if is_terminal(event):
                        self.outcome = "completed" if isinstance(event, Completion) else "error"
                        yield event
                        return

                    yield event

                logger.warning(
                    "Upstream closed without completion sentinel",
                    request_id=self.request_id,
                )
                terminal = ErrorEvent(STREAM_ERROR_MESSAGE)

            except ComparerException as e:
                terminal = self._failure_event(e)

            except Exception as e:
                logger.exception(
                    "Unexpected relay failure",
                    request_id=self.request_id,
                    error=str(e),
                )
                terminal = ErrorEvent(
                    STREAM_ERROR_MESSAGE if self.started else self.generic_failure_message()
                )

            self.outcome = "error"
            metrics.record_relay_event(terminal.type.value)
            yield terminal

        except (asyncio.CancelledError, GeneratorExit):
            if self.outcome is None:
                self.outcome = "cancelled"
            raise

        finally:
            aclose = getattr(lines, "aclose", None)
            if aclose is not None:
                await aclose()

            metrics.record_relay_outcome(self.mode.value, self.outcome)
            logger.info(
                "Relay finished",
                request_id=self.request_id,
                mode=self.mode.value,
                outcome=self.outcome,
                deltas=self.deltas,
                malformed_chunks=self.malformed,
            )

    async def stream_sse(self, lines: AsyncIterator[str]) -> AsyncIterator[str]:
        """Relay upstream lines as SSE frames."""
        with get_metrics().track_active_stream():
            async with aclosing(self.relay(lines)) as events:
                async for event in events:
                    yield encode_event(event)


def relay_generation(
    adapter,
    request: GenerationRequest,
    is_disconnected: Optional[DisconnectCheck] = None,
) -> AsyncIterator[str]:
    """
    Factory for the SSE body of one generation.

    The upstream request is only sent once the body is iterated.
    """
    normalizer = RelayNormalizer(
        request_id=request.request_id,
        mode=request.mode,
        is_disconnected=is_disconnected,
    )
    return normalizer.stream_sse(adapter.stream_lines(request))
