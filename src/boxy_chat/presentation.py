"""Sequential presentation of bot messages.

Bot content is queued as :class:`PresentationItem` records and revealed one
at a time by a single consumer task. An item is never interrupted: items
enqueued while another is mid-reveal wait in FIFO order.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from .config import PacingSettings
from .markup import Content, ContentKind, MarkupNode, NodeKind, build_nodes, detect_kind
from .rendering import TranscriptRenderer

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class PresentationItem:
    """One unit of bot-authored content waiting to be revealed."""

    content: Content
    kind: ContentKind
    pacing: PacingSettings
    nodes: List[MarkupNode] = field(default_factory=list)

    @classmethod
    def from_content(
        cls, content: Content, pacing: PacingSettings
    ) -> "PresentationItem":
        return cls(
            content=content,
            kind=detect_kind(content),
            pacing=pacing,
            nodes=build_nodes(content),
        )


async def reveal_nodes(
    nodes: List[MarkupNode],
    renderer: TranscriptRenderer,
    pacing: PacingSettings,
    sleep: Sleeper,
) -> None:
    """Reveal a flat node list into the renderer's current entry."""
    for node in nodes:
        if node.kind is NodeKind.TEXT:
            await _reveal_text(node.text, renderer, pacing, sleep)
        elif node.kind is NodeKind.OPEN:
            renderer.open_element(node.tag, node.block)
            renderer.scroll_to_latest()
            if node.block:
                await sleep(pacing.layout_pause)
        elif node.kind is NodeKind.BREAK:
            renderer.line_break()
            renderer.scroll_to_latest()
            await sleep(pacing.layout_pause)
        elif node.kind is NodeKind.CLOSE:
            renderer.close_element(node.tag, node.block)


async def _reveal_text(
    text: str,
    renderer: TranscriptRenderer,
    pacing: PacingSettings,
    sleep: Sleeper,
) -> None:
    if not text.strip():
        renderer.write(text)
        renderer.scroll_to_latest()
        return
    last_index = len(text) - 1
    for index, char in enumerate(text):
        renderer.write(char)
        renderer.scroll_to_latest()
        if index < last_index:
            await sleep(pacing.delay_after(char))


class PresentationQueue:
    """Strict FIFO of presentation items with exactly one consumer."""

    def __init__(
        self,
        renderer: TranscriptRenderer,
        *,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self._renderer = renderer
        self._sleep: Sleeper = sleep or asyncio.sleep
        self._queue: Optional[asyncio.Queue[PresentationItem]] = None
        self._worker: Optional[asyncio.Task[None]] = None
        self.presented = 0
        self._unfinished = 0

    def enqueue(self, item: PresentationItem) -> None:
        """Append ``item``; it is revealed after everything queued before it."""
        queue = self._ensure_worker()
        queue.put_nowait(item)
        self._unfinished += 1
        logger.debug("Queued %s item (%d pending)", item.kind.value, queue.qsize())

    @property
    def pending(self) -> int:
        if self._queue is None:
            return 0
        return self._queue.qsize()

    @property
    def idle(self) -> bool:
        # counts the item currently being revealed as well as waiting ones
        return self._unfinished == 0

    async def join(self) -> None:
        """Wait until every queued item has been fully revealed."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        worker = self._worker
        self._worker = None
        if worker is not None:
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
        self._queue = None
        self._unfinished = 0

    def _ensure_worker(self) -> asyncio.Queue[PresentationItem]:
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._consume(self._queue))
        return self._queue

    async def _consume(self, queue: asyncio.Queue[PresentationItem]) -> None:
        while True:
            item = await queue.get()
            try:
                await self._present(item)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Presentation of a bot message failed.")
            finally:
                self._unfinished -= 1
                queue.task_done()

    async def _present(self, item: PresentationItem) -> None:
        renderer = self._renderer
        renderer.begin_bot_entry()
        renderer.scroll_to_latest()
        await self._sleep(item.pacing.settle_delay)
        renderer.clear_composing()
        try:
            await reveal_nodes(item.nodes, renderer, item.pacing, self._sleep)
        finally:
            renderer.finish_bot_entry()
            renderer.scroll_to_latest()
        self.presented += 1
