"""
Profile Comparer Client Module

Receiving side of the event stream: decoding, word pacing, the roast action
gate and the session that ties them together.
"""

from .consumer import StreamConsumer, StreamHandler
from .gate import ActionGate
from .pacing import (
    DEFAULT_CADENCE,
    Lifecycle,
    LifecycleState,
    PacingController,
    on_generation_started,
    on_queue_drained,
    on_source_finished,
    tokenize,
)
from .session import ComparisonSession, SessionSnapshot

__all__ = [
    "StreamConsumer",
    "StreamHandler",
    "ActionGate",
    "DEFAULT_CADENCE",
    "Lifecycle",
    "LifecycleState",
    "PacingController",
    "on_generation_started",
    "on_queue_drained",
    "on_source_finished",
    "tokenize",
    "ComparisonSession",
    "SessionSnapshot",
]
