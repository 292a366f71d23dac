"""
Profile Comparer - Stream Consumer

Reads the relay's event stream from arbitrary byte chunks and dispatches one
callback per event.

Chunk boundaries carry no meaning: a frame, a line or even a multi-byte
character may be split across reads.
"""

import codecs
from typing import AsyncIterable, Optional, Protocol

from ..observability.logging import get_logger
from ..streaming.events import (
    Completion,
    ContentDelta,
    ErrorEvent,
    decode_payload,
    strip_data_prefix,
)

logger = get_logger(__name__)


class StreamHandler(Protocol):
    """Receiver of decoded events, called in arrival order."""

    def on_content(self, text: str) -> None: ...

    def on_error(self, message: str) -> None: ...

    def on_complete(self) -> None: ...


class StreamConsumer:
    """
    Incremental decoder for one event stream.

    After an error or a completion the consumer is finished and ignores any
    further input.
    """

    def __init__(self, handler: StreamHandler):
        self.handler = handler
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.finished = False
        self.error: Optional[str] = None

    def feed(self, chunk: bytes) -> None:
        """Decode one read and dispatch every complete line in it."""
        if self.finished:
            return

        self._buffer += self._decoder.decode(chunk)

        while not self.finished:
            newline = self._buffer.find("\n")
            if newline < 0:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            self._dispatch_line(line)

    def close(self) -> None:
        """
        Signal end of input.

        A trailing line without a newline is still dispatched. If no terminal
        event was seen, the stream is reported complete.
        """
        if self.finished:
            return

        self._buffer += self._decoder.decode(b"", final=True)
        if self._buffer:
            line, self._buffer = self._buffer, ""
            self._dispatch_line(line)

        if not self.finished:
            logger.debug("Event stream ended without a terminal event")
            self.finished = True
            self.handler.on_complete()

    async def consume(self, chunks: AsyncIterable[bytes]) -> None:
        """Feed every chunk of ``chunks``, then close."""
        async for chunk in chunks:
            self.feed(chunk)
            if self.finished:
                break
        self.close()

    def _dispatch_line(self, line: str) -> None:
        payload = strip_data_prefix(line.rstrip("\r"))
        if payload is None:
            return

        event = decode_payload(payload)
        if event is None:
            logger.debug("Skipping undecodable event payload", payload=payload[:200])
            return

        if isinstance(event, ContentDelta):
            self.handler.on_content(event.text)
        elif isinstance(event, ErrorEvent):
            self.finished = True
            self.error = event.message
            self.handler.on_error(event.message)
        elif isinstance(event, Completion):
            self.finished = True
            self.handler.on_complete()
