"""
Profile Comparer - Comparison Session

Client-side state of one comparison: the two profiles, the paced narration,
the current error and the roast action gate.

Every generation gets a new id; callbacks carrying an older id are ignored,
so a reset or a newer generation can never be overwritten by a stale one.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from ..core.models import GenerationMode, Profile
from ..observability.logging import get_logger
from .consumer import StreamConsumer
from .gate import ActionGate
from .pacing import DEFAULT_CADENCE, LifecycleState, PacingController

logger = get_logger(__name__)

COMPARE_FAILED_MESSAGE = "Failed to compare profiles"
GENERIC_ERROR_MESSAGE = "An error occurred. Please try again."
STREAM_COMPARISON_FAILED_MESSAGE = "Failed to stream comparison. Please try again."
STREAM_ROAST_FAILED_MESSAGE = "Failed to stream roast. Please try again."


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a view needs to draw the session."""
    profile1: Optional[Profile]
    profile2: Optional[Profile]
    text: str
    error: Optional[str]
    loading: bool
    state: LifecycleState
    enabled_actions: Tuple[str, ...]
    mode: Optional[GenerationMode]
    generation_id: int

    @property
    def streaming(self) -> bool:
        return self.state is not LifecycleState.IDLE


class _GenerationHandler:
    """Routes consumer events of one generation to its pacing controller."""

    def __init__(self, session: "ComparisonSession", generation_id: int, pacing: PacingController):
        self.session = session
        self.generation_id = generation_id
        self.pacing = pacing

    @property
    def current(self) -> bool:
        return self.session.generation_id == self.generation_id

    def on_content(self, text: str) -> None:
        if self.current:
            self.pacing.push(text)

    def on_error(self, message: str) -> None:
        if self.current:
            self.session.error = message
            self.pacing.finish(error=message)
            self.session._publish()

    def on_complete(self) -> None:
        if self.current:
            self.pacing.finish()


class ComparisonSession:
    """
    Drives the comparison flow against a running server.

    Usage:
        async with ComparisonSession("http://localhost:5000", on_update=draw) as session:
            await session.compare("octocat", "torvalds")
            await session.roast("user1")
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        cadence: float = DEFAULT_CADENCE,
        client: Optional[httpx.AsyncClient] = None,
        on_update: Optional[Callable[[SessionSnapshot], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._owns_client = client is None
        # Streams stay open for the whole generation
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(30.0, read=None),
        )
        self.cadence = cadence
        self.on_update = on_update
        self._sleep = sleep

        self.gate = ActionGate(GenerationMode.roast_types())
        self.profile1: Optional[Profile] = None
        self.profile2: Optional[Profile] = None
        self.text = ""
        self.error: Optional[str] = None
        self.loading = False
        self.mode: Optional[GenerationMode] = None
        self.generation_id = 0
        self.pacing: Optional[PacingController] = None
        self._reader: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "ComparisonSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @property
    def state(self) -> LifecycleState:
        return self.pacing.state if self.pacing is not None else LifecycleState.IDLE

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            profile1=self.profile1,
            profile2=self.profile2,
            text=self.text,
            error=self.error,
            loading=self.loading,
            state=self.state,
            enabled_actions=tuple(self.gate.enabled_actions()),
            mode=self.mode,
            generation_id=self.generation_id,
        )

    def _publish(self) -> None:
        if self.on_update is not None:
            self.on_update(self.snapshot())

    # ------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------

    async def compare(self, username1: str, username2: str) -> bool:
        """
        Fetch both profiles, then stream the neutral comparison.

        Returns False when a generation or a fetch is already running, or
        when the session was reset before the profiles arrived.
        """
        if self.loading or self.gate.busy:
            return False

        self._invalidate()
        generation_id = self.generation_id
        self.loading = True
        self.error = None
        self.profile1 = self.profile2 = None
        self.text = ""
        self._publish()

        profiles: Optional[Tuple[Profile, Profile]] = None
        error: Optional[str] = None
        try:
            response = await self.client.post(
                "/api/compare",
                json={"username1": username1, "username2": username2},
            )
            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Unexpected compare response: {type(data).__name__}")
            if response.is_error:
                error = data.get("error") or COMPARE_FAILED_MESSAGE
            else:
                profiles = (Profile.from_dict(data["user1"]), Profile.from_dict(data["user2"]))
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Profile comparison request failed", error=str(e))
            error = GENERIC_ERROR_MESSAGE
        finally:
            if generation_id == self.generation_id:
                self.loading = False

        # Reset or superseded while the profiles were loading
        if generation_id != self.generation_id:
            return False

        self.error = error
        if profiles is None:
            self._publish()
            return True

        self.profile1, self.profile2 = profiles
        self._publish()
        await self._generate(
            action=None,
            path="/api/compare/stream",
            body={"user1": self.profile1.to_dict(), "user2": self.profile2.to_dict()},
            failure_message=STREAM_COMPARISON_FAILED_MESSAGE,
        )
        return True

    async def roast(self, roast_type: str) -> bool:
        """
        Stream a roast of the current profiles.

        A no-op returning False without profiles, while busy, or when the
        action is disabled.
        """
        mode = GenerationMode.from_roast_type(roast_type)
        if self.profile1 is None or self.profile2 is None:
            return False
        if not self.gate.is_enabled(mode.value):
            return False

        return await self._generate(
            action=mode.value,
            path="/api/roast/stream",
            body={
                "user1": self.profile1.to_dict(),
                "user2": self.profile2.to_dict(),
                "roastType": mode.value,
            },
            failure_message=STREAM_ROAST_FAILED_MESSAGE,
        )

    def reset(self) -> None:
        """Back to the empty form; any running generation is dropped."""
        self._invalidate()
        self.gate.reset()
        self.profile1 = self.profile2 = None
        self.text = ""
        self.error = None
        self.loading = False
        self.mode = None
        self._publish()

    def dismiss_error(self) -> None:
        self.error = None
        self._publish()

    async def aclose(self) -> None:
        self._invalidate()
        if self._owns_client:
            await self.client.aclose()

    # ------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------

    def _invalidate(self) -> None:
        self.generation_id += 1
        if self.pacing is not None:
            self.pacing.cancel()
            self.pacing = None
        # Leaving the stream context closes the response, so the server sees
        # the disconnect and stops the upstream generation
        if self._reader is not None:
            self._reader.cancel()
            self._reader = None

    async def _generate(
        self,
        action: Optional[str],
        path: str,
        body: Dict[str, Any],
        failure_message: str,
    ) -> bool:
        if not self.gate.begin(action):
            return False

        self._invalidate()
        generation_id = self.generation_id
        pacing = PacingController(
            generation_id=generation_id,
            on_render=lambda text: self._on_render(generation_id, text),
            on_idle=lambda: self._on_idle(generation_id),
            cadence=self.cadence,
            sleep=self._sleep,
        )
        self.pacing = pacing
        self.mode = GenerationMode(action) if action else GenerationMode.NEUTRAL
        self.error = None
        self.text = ""
        pacing.start()
        self._publish()

        reader = asyncio.get_running_loop().create_task(
            self._read_stream(generation_id, pacing, path, body, failure_message)
        )
        self._reader = reader
        try:
            await asyncio.wait({reader})
        except asyncio.CancelledError:
            reader.cancel()
            raise

        if self._reader is reader:
            self._reader = None
        if reader.cancelled():
            return True
        reader.result()

        await pacing.wait_idle()
        return True

    async def _read_stream(
        self,
        generation_id: int,
        pacing: PacingController,
        path: str,
        body: Dict[str, Any],
        failure_message: str,
    ) -> None:
        consumer = StreamConsumer(_GenerationHandler(self, generation_id, pacing))

        try:
            async with self.client.stream("POST", path, json=body) as response:
                if response.is_error:
                    await response.aread()
                    logger.warning(
                        "Stream request rejected",
                        path=path,
                        status_code=response.status_code,
                    )
                    self._fail(generation_id, pacing, failure_message)
                else:
                    await consumer.consume(response.aiter_bytes())
        except httpx.HTTPError as e:
            logger.warning("Stream request failed", path=path, error=str(e))
            self._fail(generation_id, pacing, failure_message)

    def _fail(self, generation_id: int, pacing: PacingController, message: str) -> None:
        if generation_id != self.generation_id or pacing.lifecycle.source_finished:
            return
        self.error = message
        pacing.finish(error=message)
        self._publish()

    def _on_render(self, generation_id: int, text: str) -> None:
        if generation_id != self.generation_id:
            return
        self.text = text
        self._publish()

    def _on_idle(self, generation_id: int) -> None:
        if generation_id != self.generation_id or self.pacing is None:
            return
        self.gate.complete(failed=self.pacing.error is not None)
        self._publish()
