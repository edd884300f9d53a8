from __future__ import annotations

import asyncio

import pytest

from boxy_chat.config import PacingSettings
from boxy_chat.presentation import PresentationItem, PresentationQueue
from boxy_chat.rendering import TranscriptRenderer

PACING = PacingSettings(
    typewriter_delay=0.01,
    pause_multiplier=6,
    settle_delay=0.3,
    layout_pause=0.5,
    entry_delay=0.0,
)


def test_items_reveal_in_enqueue_order_without_interleaving(
    event_renderer, recording_sleep
) -> None:
    async def scenario() -> None:
        queue = PresentationQueue(event_renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("Alpha.", PACING))
        queue.enqueue(PresentationItem.from_content("Beta!", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    events = event_renderer.events
    assert events == [
        "begin",
        "ready",
        *"Alpha.",
        "finish",
        "begin",
        "ready",
        *"Beta!",
        "finish",
    ]
    assert event_renderer.bot_messages == ["Alpha.", "Beta!"]


def test_item_enqueued_mid_reveal_waits_for_the_current_item(
    event_renderer, recording_sleep
) -> None:
    async def scenario() -> None:
        queue = PresentationQueue(event_renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("First message", PACING))
        while "F" not in event_renderer.events:
            await asyncio.sleep(0)
        assert event_renderer.revealing
        queue.enqueue(PresentationItem.from_content("Second", PACING))
        assert not queue.idle
        await queue.join()
        assert queue.idle
        await queue.close()

    asyncio.run(scenario())

    events = event_renderer.events
    first_finish = events.index("finish")
    second_begin = events.index("begin", 1)
    assert first_finish < second_begin
    assert "".join(events[:first_finish]).endswith("First message")


def test_pacing_uses_settle_base_and_punctuation_delays(
    event_renderer, recording_sleep
) -> None:
    async def scenario() -> None:
        queue = PresentationQueue(event_renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("Hi, yo.", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    assert recording_sleep.calls == pytest.approx(
        [0.3, 0.01, 0.01, 0.06, 0.01, 0.01, 0.01]
    )


def test_block_spans_yield_to_layout_but_inline_spans_do_not(
    event_renderer, recording_sleep
) -> None:
    async def scenario() -> None:
        queue = PresentationQueue(event_renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("<p>Ok</p>", PACING))
        queue.enqueue(PresentationItem.from_content("<em>Ok</em>", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    assert recording_sleep.calls == pytest.approx([0.3, 0.5, 0.01, 0.3, 0.01])


def test_line_breaks_pause_and_render_as_newlines(
    event_renderer, recording_sleep
) -> None:
    async def scenario() -> None:
        queue = PresentationQueue(event_renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content(["A", "B"], PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    assert event_renderer.bot_messages == ["A\nB"]
    assert recording_sleep.calls == pytest.approx([0.3, 0.5])


def test_composing_indicator_shows_until_first_content(
    recording_sleep,
) -> None:
    renderer = TranscriptRenderer()
    seen_composing: list[bool] = []

    async def observing_sleep(delay: float) -> None:
        if renderer.entries:
            seen_composing.append(renderer.entries[-1].composing)
        await recording_sleep(delay)

    async def scenario() -> None:
        queue = PresentationQueue(renderer, sleep=observing_sleep)
        queue.enqueue(PresentationItem.from_content("Hey", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    assert seen_composing[0] is True
    assert not any(seen_composing[1:])
    assert renderer.entries[-1].complete


def test_transcript_scrolls_after_every_revealed_character(recording_sleep) -> None:
    renderer = TranscriptRenderer()

    async def scenario() -> None:
        queue = PresentationQueue(renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("Hello", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    # begin + five characters + finish
    assert renderer.scroll_count == 7


def test_renderer_failure_is_logged_and_next_item_still_presented(
    recording_sleep, caplog
) -> None:
    class FlakyRenderer(TranscriptRenderer):
        def __init__(self) -> None:
            super().__init__()
            self.failed = False

        def write(self, text: str) -> None:
            if not self.failed:
                self.failed = True
                raise RuntimeError("surface detached")
            super().write(text)

    renderer = FlakyRenderer()

    async def scenario() -> None:
        queue = PresentationQueue(renderer, sleep=recording_sleep)
        queue.enqueue(PresentationItem.from_content("Lost", PACING))
        queue.enqueue(PresentationItem.from_content("Kept", PACING))
        await queue.join()
        await queue.close()

    asyncio.run(scenario())

    assert renderer.bot_messages == ["", "Kept"]
    assert all(entry.complete for entry in renderer.entries)
    assert "Presentation of a bot message failed." in caplog.text
