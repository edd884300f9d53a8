from __future__ import annotations

import asyncio
import re
from datetime import date

import pytest

from boxy_chat import prompts
from boxy_chat.errors import ValidationError
from boxy_chat.flow import (
    normalize_damage_description,
    normalize_tracking_number,
    parse_expected_date,
)
from boxy_chat.models import Choice

TODAY = date(2024, 3, 25)


async def _begin(session, choice_index: int) -> None:
    await session.start()
    await session.wait_idle()
    session.select_choice(choice_index)
    await session.wait_idle()


def test_tracking_number_is_normalized_and_carrier_choices_follow(
    make_session,
) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 0)
        assert session.state.active_input_step == "ask_tracking_number"
        session.submit_text("1z999aa10123456784")
        await session.wait_idle()
        assert session.answers["tracking_number"] == "1Z999AA10123456784"
        assert session.state.current_step == "ask_carrier"
        assert [choice.label for choice in session.state.offered_choices] == [
            "UPS",
            "USPS",
            "FedEx",
        ]
        assert "Thanks! Got it: 1Z999AA10123456784." in session.renderer.bot_messages
        await session.close()

    asyncio.run(scenario())


def test_tracking_normalization_is_idempotent() -> None:
    once = normalize_tracking_number(" 1z 999 aa1\t0123456784 ")

    assert once == "1Z999AA10123456784"
    assert normalize_tracking_number(once) == once


@pytest.mark.parametrize("raw", ["short", "1Z999-AA1012", "A" * 23])
def test_malformed_tracking_numbers_are_rejected(raw: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalize_tracking_number(raw)

    assert excinfo.value.hint == prompts.TRACKING_EXAMPLE_HINT


def test_short_tracking_number_keeps_the_prompt_open_with_example_hint(
    make_session,
) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 0)
        session.submit_text("short")
        await session.wait_idle()
        assert session.state.current_step == "ask_tracking_number"
        assert session.state.active_input_step == "ask_tracking_number"
        assert session.renderer.bot_messages[-1] == prompts.TRACKING_INVALID
        assert session.renderer.input_field.hint == "Example: 1Z999AA10123456784"
        assert "tracking_number" not in session.answers
        await session.close()

    asyncio.run(scenario())


def test_tracking_status_reports_the_lookup_result(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 0)
        session.submit_text("1Z999AA10123456784")
        await session.wait_idle()
        session.select_choice(0)
        await session.wait_idle()
        assert session.answers["carrier"] == "UPS"
        assert session.state.current_step == "show_tracking_status"
        assert session.renderer.bot_messages[-1] == (
            "Status: Parcel arrived at regional facility\n"
            "Last scan: Mar 24, 9:00 AM · Portland, OR depot\n"
            "ETA: Mar 27, 10:00 AM"
        )
        assert session.machine.services.tracking.requests == [
            ("1Z999AA10123456784", "UPS")
        ]
        session.select_choice(0)
        await session.wait_idle()
        assert session.state.current_step == "alerts_configured"
        assert session.renderer.bot_messages[-1] == prompts.ALERTS_CONFIRMED
        await session.close()

    asyncio.run(scenario())


def test_unknown_carrier_is_rejected_and_the_question_repeats(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 0)
        session.submit_text("1Z999AA10123456784")
        await session.wait_idle()
        decision = session.machine.handle_selection(Choice(label="DHL", value="DHL"))
        await session.wait_idle()
        assert decision.stay
        assert session.state.current_step == "ask_carrier"
        assert "carrier" not in session.answers
        assert session.renderer.bot_messages[-2:] == [
            prompts.CARRIER_INVALID,
            prompts.CARRIER_PROMPT,
        ]
        await session.close()

    asyncio.run(scenario())


def test_future_expected_date_is_rejected_without_opening_a_ticket(
    make_session,
) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 1)
        session.submit_text("2099-01-01")
        await session.wait_idle()
        assert session.state.current_step == "ask_expected_date"
        assert session.renderer.bot_messages[-1] == prompts.DATE_IN_FUTURE
        assert session.renderer.input_field.hint == prompts.DATE_PAST_HINT
        assert "investigation_id" not in session.answers
        await session.close()

    asyncio.run(scenario())


def test_past_expected_date_opens_an_investigation(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 1)
        session.submit_text("03/22/2024")
        await session.wait_idle()
        assert session.state.current_step == "investigation_opened"
        assert session.answers["expected_date"] == "2024-03-22"
        assert re.fullmatch(r"INV-\d{6}", session.answers["investigation_id"])
        assert session.answers["investigation_id"] in session.renderer.bot_messages[-1]
        await session.close()

    asyncio.run(scenario())


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("02/30/2024", prompts.DATE_NOT_REAL),
        ("2024/03/22", prompts.DATE_FORMAT_INVALID),
        ("yesterday", prompts.DATE_FORMAT_INVALID),
        ("03/26/2024", prompts.DATE_IN_FUTURE),
    ],
)
def test_expected_date_validation_messages(raw: str, message: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_expected_date(raw, TODAY)

    assert excinfo.value.message == message


def test_expected_date_accepts_today() -> None:
    assert parse_expected_date(" 03/25/2024 ", TODAY) == TODAY
    assert parse_expected_date("2024-03-25", TODAY) == TODAY


def test_damage_description_must_have_enough_detail(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 2)
        session.submit_text("cracked")
        await session.wait_idle()
        assert session.state.current_step == "ask_damage_description"
        assert session.renderer.bot_messages[-1] == prompts.DAMAGE_TOO_SHORT
        assert session.renderer.input_field.hint == prompts.DAMAGE_LENGTH_HINT

        session.submit_text("Box was crushed in transit")
        await session.wait_idle()
        assert session.state.current_step == "claim_filed"
        assert session.answers["damage_description"] == "Box was crushed in transit"
        assert re.fullmatch(r"CLM-\d{6}", session.answers["claim_id"])

        session.select_choice(0)
        await session.wait_idle()
        assert session.state.current_step == "damage_tips"
        tips = session.renderer.bot_messages[-1]
        assert tips.startswith("While you wait:\n- Photograph the damage")
        assert tips.count("\n- ") == 3
        await session.close()

    asyncio.run(scenario())


def test_damage_description_collapses_whitespace() -> None:
    assert normalize_damage_description("  Box   was\ncrushed ") == "Box was crushed"


def test_off_topic_branch_leads_to_an_agent(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 3)
        assert session.state.current_step == "off_topic"
        assert session.renderer.bot_messages[-1] == prompts.OFF_TOPIC
        session.submit_text("talk to an agent")
        await session.wait_idle()
        assert session.state.current_step == "agent_transfer"
        assert session.renderer.bot_messages[-1] == prompts.AGENT_TRANSFER
        assert [choice.label for choice in session.state.offered_choices] == [
            prompts.LABEL_START_OVER
        ]
        await session.close()

    asyncio.run(scenario())


def test_restart_clears_collected_answers(make_session) -> None:
    session = make_session()

    async def scenario() -> None:
        await _begin(session, 0)
        session.submit_text("1Z999AA10123456784")
        await session.wait_idle()
        session.submit_text("usps")
        await session.wait_idle()
        session.submit_text("all set")
        await session.wait_idle()
        assert session.state.current_step == "closing"
        assert session.answers["carrier"] == "USPS"

        session.submit_text("restart")
        await session.wait_idle()
        assert session.state.current_step == "start"
        assert session.answers == {}
        assert session.renderer.bot_messages[-1] == prompts.GREETING
        await session.close()

    asyncio.run(scenario())


@pytest.mark.parametrize("raw", ["٠٣/٢٢/٢٠٢٤", "２０２４-０３-２２"])
def test_expected_date_accepts_only_ascii_digits(raw: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_expected_date(raw, TODAY)

    assert excinfo.value.message == prompts.DATE_FORMAT_INVALID


def test_tracking_number_accepts_only_ascii_alphanumerics() -> None:
    with pytest.raises(ValidationError):
        normalize_tracking_number("１Z999AA10123456784")
    with pytest.raises(ValidationError):
        normalize_tracking_number("1Z999ÄA10123456784")
