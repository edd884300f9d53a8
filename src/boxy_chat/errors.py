"""Error taxonomy for the support chat engine."""

from __future__ import annotations

from typing import Optional


class ConversationError(Exception):
    """Base class for conversation-level failures."""


class ValidationError(ConversationError):
    """Free text failed a step's format or content rule.

    Raised from an ``on_input`` handler. The state machine shows ``message``
    as a bot reply, replaces the input hint with ``hint`` when given, and keeps
    the prompt open.
    """

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class SelectionError(ConversationError):
    """An offered choice resolved to an unexpected value."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RoutingMiss(ConversationError):
    """Input arrived with no active prompt and no matching choice."""


class UnknownStepError(ConversationError):
    """A transition named a step that is not registered."""

    def __init__(self, step_id: object) -> None:
        super().__init__(f"Unknown step: {step_id!r}")
        self.step_id = step_id


class StepDefinitionError(ConversationError):
    """The step graph is malformed."""
