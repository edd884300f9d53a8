"""The package-support conversation graph."""

from __future__ import annotations

import re
from datetime import date, datetime
from html import escape as html_escape
from typing import List

from . import prompts
from .errors import SelectionError, ValidationError
from .models import Choice, Decision
from .state_machine import ConversationStateMachine
from .steps import (
    ChoicePromptStep,
    EntryOnlyStep,
    Step,
    StepRegistry,
    TextPromptStep,
)

START = "start"
ASK_TRACKING_NUMBER = "ask_tracking_number"
ASK_CARRIER = "ask_carrier"
SHOW_TRACKING_STATUS = "show_tracking_status"
ALERTS_CONFIGURED = "alerts_configured"
ASK_EXPECTED_DATE = "ask_expected_date"
INVESTIGATION_OPENED = "investigation_opened"
ASK_DAMAGE_DESCRIPTION = "ask_damage_description"
CLAIM_FILED = "claim_filed"
DAMAGE_TIPS = "damage_tips"
OFF_TOPIC = "off_topic"
AGENT_TRANSFER = "agent_transfer"
CLOSING = "closing"

TRACKING_NUMBER_RE = re.compile(r"^[A-Za-z0-9]{8,22}$")
US_DATE_RE = re.compile(r"^([0-9]{2})/([0-9]{2})/([0-9]{4})$")
ISO_DATE_RE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")
MIN_DAMAGE_DESCRIPTION = 10

INVESTIGATION_PREFIX = "INV"
CLAIM_PREFIX = "CLM"


# validators -----------------------------------------------------------------


def normalize_tracking_number(raw: str) -> str:
    """Strip all whitespace and uppercase a tracking number."""
    normalized = re.sub(r"\s+", "", raw)
    if not TRACKING_NUMBER_RE.match(normalized):
        raise ValidationError(
            prompts.TRACKING_INVALID, hint=prompts.TRACKING_EXAMPLE_HINT
        )
    return normalized.upper()


def parse_expected_date(raw: str, today: date) -> date:
    """Parse ``MM/DD/YYYY`` or ``YYYY-MM-DD`` and reject future dates."""
    text = raw.strip()
    us_match = US_DATE_RE.match(text)
    iso_match = ISO_DATE_RE.match(text)
    if us_match:
        month, day, year = (int(part) for part in us_match.groups())
    elif iso_match:
        year, month, day = (int(part) for part in iso_match.groups())
    else:
        raise ValidationError(
            prompts.DATE_FORMAT_INVALID, hint=prompts.DATE_EXAMPLE_HINT
        )
    try:
        entered = date(year, month, day)
    except ValueError as exc:
        raise ValidationError(
            prompts.DATE_NOT_REAL, hint=prompts.DATE_EXAMPLE_HINT
        ) from exc
    if entered > today:
        raise ValidationError(prompts.DATE_IN_FUTURE, hint=prompts.DATE_PAST_HINT)
    return entered


def normalize_damage_description(raw: str) -> str:
    description = re.sub(r"\s+", " ", raw).strip()
    if len(description) < MIN_DAMAGE_DESCRIPTION:
        raise ValidationError(
            prompts.DAMAGE_TOO_SHORT, hint=prompts.DAMAGE_LENGTH_HINT
        )
    return description


def _today(machine: ConversationStateMachine) -> date:
    now = machine.services.clock()
    if isinstance(now, datetime):
        return now.date()
    return now


# steps ----------------------------------------------------------------------


def _enter_start(machine: ConversationStateMachine) -> None:
    machine.restart()
    machine.say(prompts.GREETING)
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_NO_UPDATES, next=ASK_TRACKING_NUMBER),
            Choice(label=prompts.LABEL_MISSING, next=ASK_EXPECTED_DATE),
            Choice(label=prompts.LABEL_DAMAGED, next=ASK_DAMAGE_DESCRIPTION),
            Choice(label=prompts.LABEL_SOMETHING_ELSE, next=OFF_TOPIC),
        ]
    )


def _enter_ask_tracking_number(machine: ConversationStateMachine) -> None:
    machine.say(prompts.TRACKING_PROMPT)
    machine.show_text_input(prompts.TRACKING_INPUT)


def _input_tracking_number(machine: ConversationStateMachine, raw: str) -> Decision:
    tracking_number = normalize_tracking_number(raw)
    machine.set_hint("")
    machine.record_answer("tracking_number", tracking_number)
    machine.say(
        prompts.TRACKING_ACCEPTED.format(tracking_number=html_escape(tracking_number))
    )
    return Decision.advance(ASK_CARRIER)


def _enter_ask_carrier(machine: ConversationStateMachine) -> None:
    machine.say(prompts.CARRIER_PROMPT)
    machine.offer_choices(
        [Choice(label=carrier, value=carrier) for carrier in prompts.CARRIERS]
    )


def _select_carrier(machine: ConversationStateMachine, choice: Choice) -> Decision:
    carrier = choice.value
    if carrier not in prompts.CARRIERS:
        raise SelectionError(prompts.CARRIER_INVALID)
    machine.record_answer("carrier", carrier)
    machine.say(prompts.CARRIER_ACCEPTED.format(carrier=carrier))
    return Decision.advance(SHOW_TRACKING_STATUS)


def _enter_show_tracking_status(machine: ConversationStateMachine) -> None:
    answers = machine.answers
    summary = machine.services.tracking.lookup(
        answers.get("tracking_number", ""),
        answers.get("carrier", ""),
    )
    machine.say(
        [
            prompts.STATUS_LINE.format(status=html_escape(summary.status)),
            prompts.LAST_SCAN_LINE.format(last_scan=html_escape(summary.last_scan)),
            prompts.ETA_LINE.format(eta=html_escape(summary.eta)),
        ]
    )
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_ALERTS, next=ALERTS_CONFIGURED),
            Choice(label=prompts.LABEL_AGENT, next=AGENT_TRANSFER),
            Choice(label=prompts.LABEL_ALL_SET, next=CLOSING),
        ]
    )


def _enter_alerts_configured(machine: ConversationStateMachine) -> None:
    machine.say(prompts.ALERTS_CONFIRMED)
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_AGENT, next=AGENT_TRANSFER),
            Choice(label=prompts.LABEL_ALL_SET, next=CLOSING),
        ]
    )


def _enter_ask_expected_date(machine: ConversationStateMachine) -> None:
    machine.say(prompts.EXPECTED_DATE_PROMPT)
    machine.show_text_input(prompts.EXPECTED_DATE_INPUT)


def _input_expected_date(machine: ConversationStateMachine, raw: str) -> Decision:
    entered = parse_expected_date(raw, _today(machine))
    machine.set_hint("")
    machine.record_answer("expected_date", entered.isoformat())
    machine.say(prompts.DATE_ACCEPTED.format(expected_date=html_escape(raw.strip())))
    return Decision.advance(INVESTIGATION_OPENED)


def _enter_investigation_opened(machine: ConversationStateMachine) -> None:
    ticket = machine.services.tickets.issue(INVESTIGATION_PREFIX)
    machine.record_answer("investigation_id", ticket)
    machine.say(prompts.INVESTIGATION_OPENED.format(ticket=ticket))
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_AGENT, next=AGENT_TRANSFER),
            Choice(label=prompts.LABEL_ALL_SET, next=CLOSING),
        ]
    )


def _enter_ask_damage_description(machine: ConversationStateMachine) -> None:
    machine.say(prompts.DAMAGE_PROMPT)
    machine.show_text_input(prompts.DAMAGE_INPUT)


def _input_damage_description(
    machine: ConversationStateMachine, raw: str
) -> Decision:
    description = normalize_damage_description(raw)
    machine.set_hint("")
    machine.record_answer("damage_description", description)
    machine.say(prompts.DAMAGE_ACCEPTED)
    return Decision.advance(CLAIM_FILED)


def _enter_claim_filed(machine: ConversationStateMachine) -> None:
    ticket = machine.services.tickets.issue(CLAIM_PREFIX)
    machine.record_answer("claim_id", ticket)
    machine.say(prompts.CLAIM_FILED.format(ticket=ticket))
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_CARE_TIPS, next=DAMAGE_TIPS),
            Choice(label=prompts.LABEL_ALL_SET, next=CLOSING),
        ]
    )


def _enter_damage_tips(machine: ConversationStateMachine) -> None:
    machine.say(prompts.DAMAGE_TIPS)
    machine.offer_choices([Choice(label=prompts.LABEL_ALL_SET, next=CLOSING)])


def _enter_off_topic(machine: ConversationStateMachine) -> None:
    machine.say(prompts.OFF_TOPIC)
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_KEEP_TROUBLESHOOTING, next=START),
            Choice(label=prompts.LABEL_AGENT, next=AGENT_TRANSFER),
        ]
    )


def _enter_agent_transfer(machine: ConversationStateMachine) -> None:
    machine.say(prompts.AGENT_TRANSFER)
    machine.offer_choices([Choice(label=prompts.LABEL_START_OVER, next=START)])


def _enter_closing(machine: ConversationStateMachine) -> None:
    machine.say(prompts.CLOSING)
    machine.offer_choices([Choice(label=prompts.LABEL_RESTART, next=START)])


def off_topic_fallback(machine: ConversationStateMachine) -> None:
    """Steer unroutable input back to troubleshooting or a human."""
    machine.say(prompts.FALLBACK)
    machine.offer_choices(
        [
            Choice(label=prompts.LABEL_RESUME, next=START),
            Choice(label=prompts.LABEL_AGENT, next=AGENT_TRANSFER),
        ],
        owned=False,
    )


def support_steps() -> List[Step]:
    return [
        EntryOnlyStep(START, _enter_start),
        TextPromptStep(
            ASK_TRACKING_NUMBER,
            _enter_ask_tracking_number,
            _input_tracking_number,
        ),
        ChoicePromptStep(ASK_CARRIER, _enter_ask_carrier, _select_carrier),
        EntryOnlyStep(SHOW_TRACKING_STATUS, _enter_show_tracking_status),
        EntryOnlyStep(ALERTS_CONFIGURED, _enter_alerts_configured),
        TextPromptStep(
            ASK_EXPECTED_DATE,
            _enter_ask_expected_date,
            _input_expected_date,
        ),
        EntryOnlyStep(INVESTIGATION_OPENED, _enter_investigation_opened),
        TextPromptStep(
            ASK_DAMAGE_DESCRIPTION,
            _enter_ask_damage_description,
            _input_damage_description,
        ),
        EntryOnlyStep(CLAIM_FILED, _enter_claim_filed),
        EntryOnlyStep(DAMAGE_TIPS, _enter_damage_tips),
        EntryOnlyStep(OFF_TOPIC, _enter_off_topic),
        EntryOnlyStep(AGENT_TRANSFER, _enter_agent_transfer),
        EntryOnlyStep(CLOSING, _enter_closing),
    ]


def build_support_registry() -> StepRegistry:
    """Build the validated package-support step graph."""
    return StepRegistry(support_steps(), initial=START)
