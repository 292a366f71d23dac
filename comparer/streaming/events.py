"""
Profile Comparer - Relay Events

The provider-agnostic events carried on the client-facing stream, and their
wire framing.

Wire format (one SSE frame per event):
    data: {"content": "Hello"}\\n\\n
    data: {"done": true}\\n\\n
    data: {"error": "Stream error occurred"}\\n\\n
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

SSE_DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class RelayEventType(str, Enum):
    """Types of relay events."""
    CONTENT = "content"   # Text delta
    DONE = "done"         # Stream complete
    ERROR = "error"       # Generation failed


@dataclass(frozen=True)
class ContentDelta:
    """A fragment of generated text."""
    text: str

    type = RelayEventType.CONTENT

    def to_dict(self) -> dict:
        return {"content": self.text}


@dataclass(frozen=True)
class Completion:
    """The generation finished normally."""

    type = RelayEventType.DONE

    def to_dict(self) -> dict:
        return {"done": True}


@dataclass(frozen=True)
class ErrorEvent:
    """The generation failed; ``message`` is shown to the user as is."""
    message: str

    type = RelayEventType.ERROR

    def to_dict(self) -> dict:
        return {"error": self.message}


RelayEvent = Union[ContentDelta, Completion, ErrorEvent]


def is_terminal(event: RelayEvent) -> bool:
    """Completion and ErrorEvent end a stream; nothing may follow them."""
    return isinstance(event, (Completion, ErrorEvent))


def encode_event(event: RelayEvent) -> str:
    """Convert an event to its SSE frame."""
    return f"{SSE_DATA_PREFIX} {json.dumps(event.to_dict())}\n\n"


def decode_payload(data: str) -> Optional[RelayEvent]:
    """
    Decode the payload of one ``data:`` line into an event.

    Accepts the JSON objects written by ``encode_event`` plus a bare
    ``[DONE]``. Returns None for anything it cannot interpret. When a
    payload carries several keys, error wins over content, content over done.
    """
    data = data.strip()
    if data == DONE_SENTINEL:
        return Completion()

    try:
        payload: Any = json.loads(data)
    except json.JSONDecodeError:
        return None

    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if error:
        return ErrorEvent(str(error))

    content = payload.get("content")
    if isinstance(content, str) and content:
        return ContentDelta(content)

    if payload.get("done") is True:
        return Completion()

    return None


def strip_data_prefix(line: str) -> Optional[str]:
    """Return the payload of a ``data:`` line, or None for any other line."""
    if not line.startswith(SSE_DATA_PREFIX):
        return None
    payload = line[len(SSE_DATA_PREFIX):]
    # One optional space follows the field name
    if payload.startswith(" "):
        payload = payload[1:]
    return payload.rstrip("\r")
