"""Conversation state machine.

The machine owns the :class:`~boxy_chat.models.SessionState` and is the only
component that commits transitions. Step handlers receive the machine as
their context and use its helpers (``say``, ``offer_choices``,
``show_text_input``, ``set_hint``, ``record_answer``) to present content and
describe the input they expect next.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Optional, Sequence, Set

from .config import PacingSettings
from .errors import SelectionError, UnknownStepError, ValidationError
from .markup import Content
from .models import Choice, Decision, SessionState, TextInputSpec
from .presentation import PresentationItem, PresentationQueue, Sleeper
from .rendering import InputField, TranscriptRenderer
from .services import SupportServices
from .steps import Step, StepRegistry, default_next, input_handler, select_handler

logger = logging.getLogger(__name__)

CHOICE_FIELD_LABEL = "Choose an option"
CHOICE_FIELD_PLACEHOLDER = "Type an option shown above"
CHOICE_FIELD_HINT = "Type the option text or tap a button."
DEFAULT_FIELD_LABEL = "Your response"


class ConversationStateMachine:
    """Drives step entry and the validation/transition protocols."""

    def __init__(
        self,
        registry: StepRegistry,
        *,
        queue: PresentationQueue,
        renderer: TranscriptRenderer,
        pacing: PacingSettings,
        services: Optional[SupportServices] = None,
        state: Optional[SessionState] = None,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        self.registry = registry
        self.state = state or SessionState()
        self.services = services or SupportServices()
        self._queue = queue
        self._renderer = renderer
        self._pacing = pacing
        self._sleep: Sleeper = sleep or asyncio.sleep
        self._field = InputField()
        self._entry_generation = 0
        self._pending_entries: Set[asyncio.Task[None]] = set()

    # transitions ----------------------------------------------------------

    @property
    def current_step(self) -> Optional[str]:
        return self.state.current_step

    @property
    def answers(self) -> dict[str, str]:
        return self.state.collected_answers

    @property
    def input_field(self) -> InputField:
        return replace(self._field)

    @property
    def entering(self) -> bool:
        return bool(self._pending_entries)

    @property
    def choices_stale(self) -> bool:
        """Whether the offered choices belong to a step the machine has left."""
        owner = self.state.choices_owner
        return owner is not None and owner != self.state.current_step

    def advance_to(self, step_id: str) -> bool:
        """Move to ``step_id`` and schedule its entry behaviour.

        Unknown steps are logged and ignored; the conversation stays where it
        is.
        """
        try:
            step = self.registry.get(step_id)
        except UnknownStepError as exc:
            logger.error("Cannot advance: %s", exc)
            return False
        self.hide_text_input()
        self.state.current_step = step.name
        self._schedule_entry(step)
        logger.debug("Advanced to %s", step.name)
        return True

    def _schedule_entry(self, step: Step) -> None:
        self._entry_generation += 1
        generation = self._entry_generation
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._enter_after_delay(step, generation))
        self._pending_entries.add(task)
        task.add_done_callback(self._pending_entries.discard)

    async def _enter_after_delay(self, step: Step, generation: int) -> None:
        await self._sleep(self._pacing.entry_delay)
        if generation != self._entry_generation:
            logger.debug("Skipping superseded entry of %s", step.name)
            return
        try:
            step.on_enter(self)
        except Exception:
            logger.exception("Entry behaviour of step %s failed.", step.name)

    async def wait_for_entries(self) -> None:
        while self._pending_entries:
            await asyncio.gather(*list(self._pending_entries))

    async def close(self) -> None:
        pending = list(self._pending_entries)
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # input protocols ------------------------------------------------------

    def handle_text(self, raw: str) -> Optional[Decision]:
        """Give ``raw`` to the step that owns the free-text prompt.

        Returns ``None`` when no step is awaiting text.
        """
        step = self.registry.find(self.state.active_input_step)
        handler = input_handler(step)
        if step is None or handler is None:
            return None
        try:
            result = handler(self, raw) or Decision.default()
        except ValidationError as exc:
            self.say(exc.message)
            if exc.hint is not None:
                self.set_hint(exc.hint)
            result = Decision.hold()
        except Exception:
            logger.exception("Input handler of step %s failed.", step.name)
            result = Decision.hold()
        if result.error:
            self.say(result.error)
            self._focus_field()
            return result
        if result.stay:
            self._focus_field()
            return result
        self.hide_text_input()
        target = result.target or default_next(step)
        if target:
            self.advance_to(target)
        return Decision(next=target)

    def handle_selection(self, choice: Choice) -> Decision:
        """Apply a selected choice, consulting the owning step's validator."""
        if self.choices_stale:
            logger.debug(
                "Ignoring %r offered by %s; now on %s",
                choice.label,
                self.state.choices_owner,
                self.state.current_step,
            )
            return Decision.hold()
        owner = self.registry.find(self.state.choices_owner)
        handler = select_handler(owner)
        target = choice.next
        if owner is not None and handler is not None:
            try:
                result = handler(self, choice) or Decision.default()
            except SelectionError as exc:
                self.say(exc.message)
                result = Decision.hold()
            except Exception:
                logger.exception("Selection handler of step %s failed.", owner.name)
                return Decision.hold()
            if result.error:
                self.say(result.error)
                return result
            if result.stay:
                self._reenter(owner.name)
                return result
            target = result.next or choice.next
        if target:
            # typed replies are ignored until the next step offers its own
            self.state.choice_typing_enabled = False
            self.advance_to(target)
        return Decision(next=target)

    def _reenter(self, step_id: str) -> None:
        self.state.choice_typing_enabled = False
        self.advance_to(step_id)

    # helpers for step handlers ---------------------------------------------

    def say(self, content: Content) -> None:
        """Queue bot content for sequential reveal."""
        self._queue.enqueue(PresentationItem.from_content(content, self._pacing))

    def offer_choices(
        self,
        choices: Sequence[Choice],
        *,
        owned: bool = True,
    ) -> None:
        """Replace the offered choices.

        Choices belong to the current step unless ``owned`` is False, in which
        case no step validates the selection.
        """
        owner = self.state.current_step if owned else None
        self.state.offer(choices, owner=owner)
        self._renderer.show_choices([choice.label for choice in self.state.offered_choices])
        if not self.state.offered_choices:
            self.state.choice_typing_enabled = False
            if not self.state.active_input_step:
                self._field = InputField()
                self._sync_field()
            return
        if not self.state.active_input_step:
            self.state.choice_typing_enabled = True
            self._field = InputField(
                visible=True,
                label=CHOICE_FIELD_LABEL,
                placeholder=CHOICE_FIELD_PLACEHOLDER,
                hint=CHOICE_FIELD_HINT,
            )
            self._sync_field()

    def show_text_input(self, spec: TextInputSpec) -> None:
        """Open the free-text prompt for the current step."""
        self.state.active_input_step = self.state.current_step
        self._field = InputField(
            visible=True,
            label=spec.label or DEFAULT_FIELD_LABEL,
            placeholder=spec.placeholder,
            hint=spec.hint,
            focused=True,
        )
        self._sync_field()
        self.offer_choices([])

    def hide_text_input(self) -> None:
        self.state.active_input_step = None
        typing = self.state.choice_typing_enabled
        self._field = replace(
            self._field,
            visible=self._field.visible if typing else False,
            hint=self._field.hint if typing else "",
            focused=False,
        )
        self._sync_field()

    def set_hint(self, hint: str) -> None:
        self._field = replace(self._field, hint=hint)
        self._sync_field()

    def record_answer(self, field_name: str, value: str) -> bool:
        owner = self.state.current_step or ""
        return self.state.record_answer(field_name, value, owner=owner)

    def restart(self) -> None:
        self.state.restart()

    def _focus_field(self) -> None:
        self._field = replace(self._field, focused=True)
        self._sync_field()

    def _sync_field(self) -> None:
        self._renderer.update_input(replace(self._field))
