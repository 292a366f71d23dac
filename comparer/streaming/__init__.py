"""
Profile Comparer Streaming Module

Upstream generation adapter, relay normalizer and the event vocabulary of
the client-facing stream.
"""

from .events import (
    RelayEventType,
    RelayEvent,
    ContentDelta,
    Completion,
    ErrorEvent,
    encode_event,
    decode_payload,
    is_terminal,
)
from .normalizer import RelayNormalizer, relay_generation
from .upstream import UpstreamStreamAdapter

__all__ = [
    "RelayEventType",
    "RelayEvent",
    "ContentDelta",
    "Completion",
    "ErrorEvent",
    "encode_event",
    "decode_payload",
    "is_terminal",
    "RelayNormalizer",
    "relay_generation",
    "UpstreamStreamAdapter",
]
