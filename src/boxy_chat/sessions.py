"""Shared session orchestration for one support conversation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .config import AppSettings, PacingSettings
from .flow import build_support_registry, off_topic_fallback
from .models import SessionState
from .presentation import PresentationQueue, Sleeper
from .rendering import TranscriptRenderer
from .router import InputRouter, RoutingResult
from .services import SupportServices
from .state_machine import ConversationStateMachine
from .steps import StepRegistry


@dataclass(slots=True)
class SupportChatSession:
    """Wires the renderer, queue, state machine and router together."""

    machine: ConversationStateMachine
    router: InputRouter
    queue: PresentationQueue
    renderer: TranscriptRenderer
    started: bool = False

    @classmethod
    def create(
        cls,
        settings: Optional[AppSettings] = None,
        *,
        renderer: Optional[TranscriptRenderer] = None,
        services: Optional[SupportServices] = None,
        registry: Optional[StepRegistry] = None,
        pacing: Optional[PacingSettings] = None,
        sleep: Optional[Sleeper] = None,
    ) -> "SupportChatSession":
        settings = settings or AppSettings()
        renderer = renderer or TranscriptRenderer()
        if services is None:
            services = SupportServices.seeded(settings.seed)
        queue = PresentationQueue(renderer, sleep=sleep)
        machine = ConversationStateMachine(
            registry or build_support_registry(),
            queue=queue,
            renderer=renderer,
            pacing=pacing or settings.effective_pacing,
            services=services,
            sleep=sleep,
        )
        router = InputRouter(machine, renderer, off_topic_fallback)
        return cls(machine=machine, router=router, queue=queue, renderer=renderer)

    @property
    def state(self) -> SessionState:
        return self.machine.state

    @property
    def answers(self) -> Dict[str, str]:
        return dict(self.machine.answers)

    @property
    def idle(self) -> bool:
        return not self.machine.entering and self.queue.idle

    async def start(self) -> None:
        """Enter the initial step; only the first call has any effect."""

        if self.started:
            return
        self.started = True
        self.machine.advance_to(self.machine.registry.initial)

    def submit_text(self, user_text: str) -> RoutingResult:
        """Route a typed submission."""

        return self.router.route(user_text)

    def select_choice(self, index: int) -> RoutingResult:
        """Route a click on the ``index``-th (zero-based) offered choice."""

        return self.router.select(index)

    async def wait_idle(self) -> None:
        """Wait until pending step entries ran and every message is revealed."""

        while not self.idle:
            await self.machine.wait_for_entries()
            await self.queue.join()

    async def close(self) -> None:
        await self.machine.close()
        await self.queue.close()
