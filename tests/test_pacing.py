"""
Profile Comparer - Pacing Tests

Verifies:
- Deltas render one word or whitespace token per cadence tick
- Completion does not flush the queue early
- Idle fires exactly once, after the queue drains
- Cancelled controllers never call back
"""

import asyncio

import pytest

from comparer.client.pacing import (
    DEFAULT_CADENCE,
    Lifecycle,
    LifecycleState,
    PacingController,
    on_generation_started,
    on_queue_drained,
    on_source_finished,
    tokenize,
)


def _controller(recording_sleep, **kwargs):
    renders = []
    idles = []
    controller = PacingController(
        on_render=renders.append,
        on_idle=lambda: idles.append(True),
        sleep=recording_sleep,
        **kwargs,
    )
    return controller, renders, idles


# ============================================================
# Transitions
# ============================================================

class TestTransitions:
    """Test the pure lifecycle transitions."""

    def test_start(self):
        lifecycle = on_generation_started(Lifecycle())
        assert lifecycle == Lifecycle(LifecycleState.STREAMING, False)

    def test_finish_with_empty_queue_is_idle(self):
        lifecycle = on_source_finished(on_generation_started(Lifecycle()), queue_empty=True)
        assert lifecycle == Lifecycle(LifecycleState.IDLE, True)

    def test_finish_with_queued_text_drains(self):
        lifecycle = on_source_finished(on_generation_started(Lifecycle()), queue_empty=False)
        assert lifecycle == Lifecycle(LifecycleState.DRAINING, True)

    def test_drained_before_finish_keeps_streaming(self):
        streaming = on_generation_started(Lifecycle())
        assert on_queue_drained(streaming) == streaming

    def test_drained_after_finish_is_idle(self):
        draining = Lifecycle(LifecycleState.DRAINING, True)
        assert on_queue_drained(draining).state is LifecycleState.IDLE

    def test_tokenize(self):
        assert tokenize("Hello world") == ["Hello", " ", "world"]
        assert tokenize("  a\n\nb ") == ["  ", "a", "\n\n", "b", " "]
        assert tokenize("") == []


# ============================================================
# Controller
# ============================================================

class TestPacingController:
    """Test the drain loop."""

    @pytest.mark.asyncio
    async def test_renders_one_token_per_tick(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("Hello world")
        controller.finish()
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

        assert renders == ["Hello", "Hello ", "Hello world"]
        assert recording_sleep.calls == [DEFAULT_CADENCE] * 3
        assert controller.state is LifecycleState.IDLE
        assert idles == [True]

    @pytest.mark.asyncio
    async def test_completion_does_not_flush(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("one two three")
        controller.finish()

        assert controller.state is LifecycleState.DRAINING
        assert renders == []
        assert idles == []

        await asyncio.wait_for(controller.wait_idle(), timeout=1)
        assert renders[-1] == "one two three"
        assert idles == [True]

    @pytest.mark.asyncio
    async def test_finish_with_nothing_queued_is_idle_immediately(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.finish()

        assert controller.state is LifecycleState.IDLE
        assert idles == [True]
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_error_drains_then_idles_with_error(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("partial text")
        controller.finish(error="Stream error occurred")
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

        assert renders[-1] == "partial text"
        assert controller.error == "Stream error occurred"
        assert idles == [True]

    @pytest.mark.asyncio
    async def test_stays_streaming_between_deltas(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("a")
        for _ in range(5):
            await asyncio.sleep(0)

        assert renders == ["a"]
        assert controller.state is LifecycleState.STREAMING
        assert idles == []

        controller.push(" b")
        controller.finish()
        await asyncio.wait_for(controller.wait_idle(), timeout=1)
        assert renders[-1] == "a b"

    @pytest.mark.asyncio
    async def test_push_after_finish_is_ignored(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.finish()
        controller.push("late")
        for _ in range(3):
            await asyncio.sleep(0)

        assert renders == []
        assert len(controller.queue) == 0

    @pytest.mark.asyncio
    async def test_idle_fires_once(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("x")
        controller.finish()
        controller.finish(error="ignored")
        await asyncio.wait_for(controller.wait_idle(), timeout=1)
        for _ in range(3):
            await asyncio.sleep(0)

        assert idles == [True]
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_cancel_suppresses_callbacks(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("many words to render here")
        await asyncio.sleep(0)
        rendered_before = list(renders)
        controller.cancel()
        controller.finish()
        for _ in range(5):
            await asyncio.sleep(0)

        assert renders == rendered_before
        assert idles == []
        assert controller.cancelled
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

    @pytest.mark.asyncio
    async def test_custom_cadence(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep, cadence=0.005)
        controller.start()

        controller.push("a b")
        controller.finish()
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

        assert recording_sleep.calls == [0.005] * 3

    @pytest.mark.asyncio
    async def test_word_and_space_as_separate_deltas(self, recording_sleep):
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        controller.push("Hello")
        controller.push(" ")
        controller.push("world")
        controller.finish()
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

        assert renders == ["Hello", "Hello ", "Hello world"]
        assert recording_sleep.calls == [DEFAULT_CADENCE] * 3
        assert idles == [True]


class TestChunking:
    """Rendered text does not depend on how the deltas were split."""

    TEXT = "Alice ships  Python daily,\nbob writes Go at night. "

    @pytest.mark.parametrize("cuts", [
        [],
        [3, 9],
        [5, 6, 11, 12, 13],
        [26, 27],
        list(range(1, 52)),
    ])
    @pytest.mark.asyncio
    async def test_split_deltas_render_the_same_text(self, recording_sleep, cuts):
        bounds = [0] + cuts + [len(self.TEXT)]
        pieces = [self.TEXT[start:end] for start, end in zip(bounds, bounds[1:])]
        controller, renders, idles = _controller(recording_sleep)
        controller.start()

        # Bursts of two pieces, with loop turns in between
        for index, piece in enumerate(pieces):
            controller.push(piece)
            if index % 2:
                for _ in range(3):
                    await asyncio.sleep(0)
        controller.finish()
        await asyncio.wait_for(controller.wait_idle(), timeout=1)

        assert controller.rendered == self.TEXT
        assert renders[-1] == self.TEXT
        for before, after in zip(renders, renders[1:]):
            assert after.startswith(before) and len(after) > len(before)
        assert idles == [True]
