from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, List, Optional

import pytest

from boxy_chat.config import AppSettings, PacingSettings, RenderMode
from boxy_chat.rendering import TranscriptRenderer
from boxy_chat.services import SupportServices, TrackingSummary
from boxy_chat.sessions import SupportChatSession

FIXED_NOW = datetime(2024, 3, 25, 10, 0)


class RecordingSleep:
    """Records requested delays and yields to the loop without waiting."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


class EventRenderer(TranscriptRenderer):
    """Transcript renderer that also logs every reveal primitive."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[str] = []

    def _emit(self, text: str) -> None:
        super()._emit(text)
        self.events.append(text)

    def _on_user_entry(self, text: str) -> None:
        self.events.append(f"user:{text}")

    def _on_begin_bot_entry(self) -> None:
        self.events.append("begin")

    def _on_clear_composing(self) -> None:
        self.events.append("ready")

    def _on_finish_bot_entry(self) -> None:
        self.events.append("finish")


class FixedTracking:
    def __init__(self) -> None:
        self.requests: List[tuple[str, str]] = []

    def lookup(self, tracking_number: str, carrier: str) -> TrackingSummary:
        self.requests.append((tracking_number, carrier))
        return TrackingSummary(
            status="Parcel arrived at regional facility",
            last_scan="Mar 24, 9:00 AM · Portland, OR depot",
            eta="Mar 27, 10:00 AM",
        )


class SequentialTickets:
    def __init__(self) -> None:
        self.issued: List[str] = []

    def issue(self, prefix: str) -> str:
        ticket = f"{prefix}-{100001 + len(self.issued)}"
        self.issued.append(ticket)
        return ticket


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def event_renderer() -> EventRenderer:
    return EventRenderer()


@pytest.fixture
def support_services() -> SupportServices:
    return SupportServices(
        tracking=FixedTracking(),
        tickets=SequentialTickets(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def instant_settings() -> AppSettings:
    return AppSettings(render_mode=RenderMode.INSTANT)


@pytest.fixture
def make_session(
    instant_settings: AppSettings,
    support_services: SupportServices,
) -> Callable[..., SupportChatSession]:
    def _make(
        *,
        renderer: Optional[TranscriptRenderer] = None,
        pacing: Optional[PacingSettings] = None,
        **kwargs: Any,
    ) -> SupportChatSession:
        return SupportChatSession.create(
            instant_settings,
            renderer=renderer or EventRenderer(),
            services=kwargs.pop("services", support_services),
            pacing=pacing,
            **kwargs,
        )

    return _make
