"""Conversation value objects and the mutable session record."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


def normalize_reply(text: str) -> str:
    """Normalize typed text for choice matching."""
    return text.strip().lower()


class Choice(BaseModel):
    """An option offered to the user as a button or typed reply."""

    model_config = ConfigDict(frozen=True)

    label: str
    value: Optional[str] = None
    next: Optional[str] = None

    @field_validator("label")
    @classmethod
    def _label_not_blank(cls, label: str) -> str:
        if not label.strip():
            raise ValueError("Choice label must not be blank.")
        return label

    def matches(self, text: str) -> bool:
        normalized = normalize_reply(text)
        if not normalized:
            return False
        keys = [self.label, self.value]
        return any(
            isinstance(key, str) and normalize_reply(key) == normalized
            for key in keys
        )


class Decision(BaseModel):
    """What a step handler wants to happen after handling input.

    ``stay`` rejects the input and keeps the current step; it wins over
    ``next`` when both are set. ``error`` shows a message while leaving the
    offered choices untouched. An empty decision advances using the step's
    default target, if any.
    """

    model_config = ConfigDict(frozen=True)

    stay: bool = False
    next: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def hold(cls) -> "Decision":
        return cls(stay=True)

    @classmethod
    def advance(cls, step_id: str) -> "Decision":
        return cls(next=step_id)

    @classmethod
    def default(cls) -> "Decision":
        return cls()

    @property
    def target(self) -> Optional[str]:
        """The step to advance to, honouring ``stay`` precedence."""
        if self.stay:
            return None
        return self.next


@dataclass(frozen=True, slots=True)
class TextInputSpec:
    """How a free-text prompt should be presented."""

    label: str = ""
    placeholder: str = ""
    hint: str = ""


@dataclass(slots=True)
class SessionState:
    """The single mutable record of one conversation."""

    current_step: Optional[str] = None
    collected_answers: Dict[str, str] = field(default_factory=dict)
    active_input_step: Optional[str] = None
    offered_choices: List[Choice] = field(default_factory=list)
    choice_typing_enabled: bool = False
    choices_owner: Optional[str] = None
    answer_owners: Dict[str, str] = field(default_factory=dict)

    def record_answer(self, field_name: str, value: str, *, owner: str) -> bool:
        """Store an answer unless a different step already owns the field."""
        existing_owner = self.answer_owners.get(field_name)
        if existing_owner is not None and existing_owner != owner:
            logger.warning(
                "Refusing to overwrite %s owned by %s from step %s",
                field_name,
                existing_owner,
                owner,
            )
            return False
        self.collected_answers[field_name] = value
        self.answer_owners[field_name] = owner
        return True

    def offer(self, choices: Sequence[Choice], *, owner: Optional[str]) -> None:
        self.offered_choices = list(choices)
        self.choices_owner = owner if self.offered_choices else None

    def match_choice(self, text: str) -> Optional[Choice]:
        """Return the first offered choice matching ``text``."""
        for choice in self.offered_choices:
            if choice.matches(text):
                return choice
        return None

    def restart(self) -> None:
        """Forget collected answers for a fresh run through the flow."""
        self.collected_answers.clear()
        self.answer_owners.clear()
