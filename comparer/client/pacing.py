"""
Profile Comparer - Pacing Controller

Turns bursty text deltas into an even, word-by-word rendering.

Deltas are split into word and whitespace tokens and queued; a single drain
task renders one token per cadence tick. The generation only counts as
finished for the user once the source finished AND the queue ran dry:

    IDLE --start--> STREAMING --finish--> DRAINING --queue empty--> IDLE
                        |                                            ^
                        +------finish with nothing queued------------+
"""

import asyncio
import re
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Deque, List, Optional

from ..observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CADENCE = 0.02

_TOKEN_SPLIT = re.compile(r"(\s+)")


class LifecycleState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    DRAINING = "draining"


@dataclass(frozen=True)
class Lifecycle:
    state: LifecycleState = LifecycleState.IDLE
    source_finished: bool = False


# ============================================================
# Transitions
# ============================================================

def on_generation_started(lifecycle: Lifecycle) -> Lifecycle:
    return Lifecycle(state=LifecycleState.STREAMING, source_finished=False)


def on_source_finished(lifecycle: Lifecycle, queue_empty: bool) -> Lifecycle:
    """The stream ended (completion or error). Nothing is flushed early."""
    state = LifecycleState.IDLE if queue_empty else LifecycleState.DRAINING
    return Lifecycle(state=state, source_finished=True)


def on_queue_drained(lifecycle: Lifecycle) -> Lifecycle:
    """The drain loop found the queue empty."""
    if lifecycle.source_finished:
        return replace(lifecycle, state=LifecycleState.IDLE)
    return lifecycle


def tokenize(text: str) -> List[str]:
    """Split text into alternating word and whitespace tokens."""
    return [token for token in _TOKEN_SPLIT.split(text) if token]


class PacingController:
    """
    Paces the deltas of one generation.

    One instance per generation; a cancelled controller never calls back.
    Must be used from inside a running event loop.
    """

    def __init__(
        self,
        generation_id: int = 0,
        on_render: Optional[Callable[[str], None]] = None,
        on_idle: Optional[Callable[[], None]] = None,
        cadence: float = DEFAULT_CADENCE,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.generation_id = generation_id
        self.on_render = on_render
        self.on_idle = on_idle
        self.cadence = cadence
        self._sleep = sleep

        self.queue: Deque[str] = deque()
        self.rendered = ""
        self.lifecycle = Lifecycle()
        self.error: Optional[str] = None
        self.cancelled = False

        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()

    @property
    def state(self) -> LifecycleState:
        return self.lifecycle.state

    @property
    def draining(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.queue.clear()
        self.rendered = ""
        self.error = None
        self._idle.clear()
        self.lifecycle = on_generation_started(self.lifecycle)

    def push(self, text: str) -> None:
        """Queue a delta and make sure the drain task is running."""
        if self.cancelled or self.lifecycle.source_finished:
            return
        self.queue.extend(tokenize(text))
        if self.queue and not self.draining:
            self._task = asyncio.get_running_loop().create_task(self._drain())

    def finish(self, error: Optional[str] = None) -> None:
        """Mark the source finished; idle follows once the queue is empty."""
        if self.cancelled or self.lifecycle.source_finished:
            return
        self.error = error
        self.lifecycle = on_source_finished(
            self.lifecycle,
            queue_empty=not self.queue and not self.draining,
        )
        if self.state is LifecycleState.IDLE:
            self._become_idle()

    def cancel(self) -> None:
        """Stop pacing and drop queued text without calling back."""
        self.cancelled = True
        self.queue.clear()
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._idle.set()

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def _drain(self) -> None:
        while self.queue and not self.cancelled:
            token = self.queue.popleft()
            self.rendered += token
            if self.on_render is not None:
                self.on_render(self.rendered)
            await self._sleep(self.cadence)

        self._task = None
        if self.cancelled:
            return

        self.lifecycle = on_queue_drained(self.lifecycle)
        if self.state is LifecycleState.IDLE:
            self._become_idle()

    def _become_idle(self) -> None:
        if self._idle.is_set():
            return
        self._idle.set()
        logger.debug(
            "Generation idle",
            generation_id=self.generation_id,
            rendered_chars=len(self.rendered),
            error=self.error,
        )
        if self.on_idle is not None and not self.cancelled:
            self.on_idle()
