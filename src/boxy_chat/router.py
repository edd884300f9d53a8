"""Route user submissions to choices, text prompts, or the off-topic fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .errors import RoutingMiss
from .models import Choice, Decision
from .rendering import TranscriptRenderer
from .state_machine import ConversationStateMachine

logger = logging.getLogger(__name__)

FallbackHandler = Callable[[ConversationStateMachine], None]


class RouteOutcome(str, Enum):
    IGNORED = "ignored"
    CHOICE = "choice"
    TEXT = "text"
    FALLBACK = "fallback"


@dataclass(frozen=True, slots=True)
class RoutingResult:
    outcome: RouteOutcome
    decision: Optional[Decision] = None
    choice: Optional[Choice] = None


class InputRouter:
    """Decides how each user submission is handled.

    Precedence: a typed match against the offered choices (only when no text
    prompt is open), then the step awaiting free text, then the fallback.
    Every routed submission is echoed to the transcript before anything else
    happens so the user's line always precedes the bot's reply.
    """

    def __init__(
        self,
        machine: ConversationStateMachine,
        renderer: TranscriptRenderer,
        fallback: FallbackHandler,
    ) -> None:
        self._machine = machine
        self._renderer = renderer
        self._fallback = fallback

    def route(self, raw: str) -> RoutingResult:
        text = raw.strip()
        if not text:
            return RoutingResult(RouteOutcome.IGNORED)
        state = self._machine.state
        choice: Optional[Choice] = None
        if not state.active_input_step and state.choice_typing_enabled:
            choice = state.match_choice(text)
        self._renderer.append_user(text)
        if choice is not None:
            decision = self._machine.handle_selection(choice)
            return RoutingResult(RouteOutcome.CHOICE, decision, choice)
        try:
            decision = self._route_text(text)
        except RoutingMiss:
            logger.info("No prompt or choice matched %r; offering fallback.", text)
            self._fallback(self._machine)
            return RoutingResult(RouteOutcome.FALLBACK)
        return RoutingResult(RouteOutcome.TEXT, decision)

    def _route_text(self, text: str) -> Decision:
        decision = self._machine.handle_text(text)
        if decision is None:
            raise RoutingMiss(text)
        return decision

    def select(self, index: int) -> RoutingResult:
        """Handle a click on the ``index``-th offered choice."""
        offered = self._machine.state.offered_choices
        if not 0 <= index < len(offered):
            logger.warning(
                "Ignoring selection %d; %d choice(s) offered.", index, len(offered)
            )
            return RoutingResult(RouteOutcome.IGNORED)
        if self._machine.choices_stale:
            logger.debug("Ignoring selection %d while the next step loads.", index)
            return RoutingResult(RouteOutcome.IGNORED)
        choice = offered[index]
        self._renderer.append_user(choice.label)
        decision = self._machine.handle_selection(choice)
        return RoutingResult(RouteOutcome.CHOICE, decision, choice)
