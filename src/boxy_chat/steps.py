"""Step kinds and the registry that validates the conversation graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Iterable,
    Iterator,
    Optional,
    Tuple,
    Union,
)

from .errors import StepDefinitionError, UnknownStepError
from .models import Choice, Decision

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .state_machine import ConversationStateMachine

EnterHandler = Callable[["ConversationStateMachine"], None]
InputHandler = Callable[["ConversationStateMachine", str], Optional[Decision]]
SelectHandler = Callable[["ConversationStateMachine", Choice], Optional[Decision]]

INITIAL_STEP = "start"


@dataclass(frozen=True, slots=True)
class EntryOnlyStep:
    """Presents content; any choices it offers carry their own targets."""

    name: str
    on_enter: EnterHandler


@dataclass(frozen=True, slots=True)
class TextPromptStep:
    """Opens a free-text prompt and validates what the user types."""

    name: str
    on_enter: EnterHandler
    on_input: InputHandler
    default_next: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ChoicePromptStep:
    """Offers choices and validates the one selected."""

    name: str
    on_enter: EnterHandler
    on_select: SelectHandler


@dataclass(frozen=True, slots=True)
class HybridStep:
    """Accepts both free text and choice selections."""

    name: str
    on_enter: EnterHandler
    on_input: InputHandler
    on_select: SelectHandler
    default_next: Optional[str] = None


Step = Union[EntryOnlyStep, TextPromptStep, ChoicePromptStep, HybridStep]

STEP_KINDS: Tuple[type, ...] = (
    EntryOnlyStep,
    TextPromptStep,
    ChoicePromptStep,
    HybridStep,
)

_REQUIRED_HANDLERS: Dict[type, Tuple[str, ...]] = {
    EntryOnlyStep: ("on_enter",),
    TextPromptStep: ("on_enter", "on_input"),
    ChoicePromptStep: ("on_enter", "on_select"),
    HybridStep: ("on_enter", "on_input", "on_select"),
}


def input_handler(step: Optional[Step]) -> Optional[InputHandler]:
    if isinstance(step, (TextPromptStep, HybridStep)):
        return step.on_input
    return None


def select_handler(step: Optional[Step]) -> Optional[SelectHandler]:
    if isinstance(step, (ChoicePromptStep, HybridStep)):
        return step.on_select
    return None


def default_next(step: Optional[Step]) -> Optional[str]:
    if isinstance(step, (TextPromptStep, HybridStep)):
        return step.default_next
    return None


class StepRegistry:
    """Immutable, validated collection of conversation steps."""

    def __init__(
        self,
        steps: Iterable[Step],
        *,
        initial: str = INITIAL_STEP,
    ) -> None:
        registered: Dict[str, Step] = {}
        for step in steps:
            self._check_step(step)
            if step.name in registered:
                raise StepDefinitionError(f"Duplicate step name: {step.name}")
            registered[step.name] = step
        if initial not in registered:
            raise StepDefinitionError(f"Initial step {initial!r} is not registered.")
        for step in registered.values():
            target = default_next(step)
            if target is not None and target not in registered:
                raise StepDefinitionError(
                    f"Step {step.name!r} defaults to unknown step {target!r}."
                )
        self._steps = registered
        self._initial = initial

    @staticmethod
    def _check_step(step: object) -> None:
        if not isinstance(step, STEP_KINDS):
            raise StepDefinitionError(
                f"Unsupported step kind: {type(step).__name__}"
            )
        name = getattr(step, "name", "")
        if not isinstance(name, str) or not name.strip():
            raise StepDefinitionError("Step names must be non-empty strings.")
        required = next(
            handlers
            for kind, handlers in _REQUIRED_HANDLERS.items()
            if isinstance(step, kind)
        )
        for attribute in required:
            if not callable(getattr(step, attribute)):
                raise StepDefinitionError(
                    f"Step {name!r} requires a callable {attribute}."
                )

    @property
    def initial(self) -> str:
        return self._initial

    def get(self, step_id: str) -> Step:
        try:
            return self._steps[step_id]
        except (KeyError, TypeError) as exc:
            raise UnknownStepError(step_id) from exc

    def find(self, step_id: Optional[str]) -> Optional[Step]:
        if step_id is None:
            return None
        return self._steps.get(step_id)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps.values())

    def __len__(self) -> int:
        return len(self._steps)
