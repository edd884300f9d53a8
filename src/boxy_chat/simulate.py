"""Scripted customer for exercising the support flow end to end."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, cast

from .config import AppSettings, RenderMode
from .rendering import TerminalRenderer, TranscriptEntry, TranscriptRenderer
from .router import RouteOutcome
from .services import SupportServices
from .sessions import SupportChatSession

logger = logging.getLogger(__name__)

CLICK_PREFIX = "#"


@dataclass(slots=True)
class ScriptedReply:
    """A reply that is either typed text or a click on choice ``index``."""

    text: str = ""
    index: Optional[int] = None

    @classmethod
    def parse(cls, raw: str) -> "ScriptedReply":
        candidate = raw.strip()
        if candidate.startswith(CLICK_PREFIX) and candidate[1:].isdigit():
            number = int(candidate[1:])
            if number >= 1:
                return cls(index=number - 1)
        return cls(text=raw)


@dataclass(slots=True)
class SimulationResult:
    """Outcome of a scripted conversation."""

    transcript: List[TranscriptEntry] = field(default_factory=list)
    answers: Dict[str, str] = field(default_factory=dict)
    final_step: Optional[str] = None
    outcomes: List[RouteOutcome] = field(default_factory=list)


class ScriptedCustomer:
    """Replays a fixed list of replies, one per bot turn."""

    def __init__(self, replies: Sequence[str]) -> None:
        self._replies = [ScriptedReply.parse(reply) for reply in replies]

    def __iter__(self) -> Iterator[ScriptedReply]:
        return iter(self._replies)

    def __len__(self) -> int:
        return len(self._replies)


async def simulate_conversation(
    customer: ScriptedCustomer,
    *,
    settings: Optional[AppSettings] = None,
    renderer: Optional[TranscriptRenderer] = None,
    services: Optional[SupportServices] = None,
) -> SimulationResult:
    """Run ``customer`` against a fresh session and collect the outcome."""

    settings = settings or AppSettings(render_mode=RenderMode.INSTANT)
    session = SupportChatSession.create(
        settings,
        renderer=renderer,
        services=services,
    )
    outcomes: List[RouteOutcome] = []
    try:
        await session.start()
        await session.wait_idle()
        for reply in customer:
            if reply.index is not None:
                result = session.select_choice(reply.index)
            else:
                result = session.submit_text(reply.text)
            outcomes.append(result.outcome)
            logger.debug("Reply %r routed as %s", reply, result.outcome.value)
            await session.wait_idle()
    finally:
        await session.close()
    return SimulationResult(
        transcript=list(session.renderer.entries),
        answers=session.answers,
        final_step=session.state.current_step,
        outcomes=outcomes,
    )


def _load_script_file(path: Path) -> List[str]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SystemExit(f"Unable to load script file: {exc}") from exc
    if not isinstance(data, list):
        raise SystemExit("Script file must contain a JSON array of replies.")
    typed = cast(List[Any], data)
    return [str(item) for item in typed]


def run_simulation_cli(settings: AppSettings, argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="boxy-chat simulate",
        description="Replay scripted customer replies through the support flow.",
    )
    parser.add_argument(
        "--reply",
        action="append",
        default=[],
        help="Customer reply; repeat for each turn. Use '#N' to tap choice N.",
    )
    parser.add_argument(
        "--script",
        help="Optional JSON file holding an array of replies.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the collected answers, not the transcript.",
    )
    parser.add_argument(
        "--animate",
        action="store_true",
        help="Keep the typewriter pacing instead of revealing instantly.",
    )
    args = parser.parse_args(argv)

    replies: List[str] = []
    if args.script:
        replies.extend(_load_script_file(Path(args.script)))
    replies.extend(args.reply)
    if not replies:
        raise SystemExit("Provide at least one --reply or a --script file.")

    if not args.animate:
        settings = settings.with_render_mode(RenderMode.INSTANT)
    renderer: TranscriptRenderer = (
        TranscriptRenderer() if args.quiet else TerminalRenderer()
    )
    result = asyncio.run(
        simulate_conversation(
            ScriptedCustomer(replies),
            settings=settings,
            renderer=renderer,
        )
    )
    print()
    print(f"Final step: {result.final_step}")
    print("Collected answers:")
    if not result.answers:
        print("  (none)")
    for name, value in result.answers.items():
        print(f"  {name}: {value}")
