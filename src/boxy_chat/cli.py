"""Command line entry-point for the Boxy support chat."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from typing import Callable, Optional

from .config import AppSettings, RenderMode
from .observability import initialize_logging
from .rendering import TerminalRenderer
from .sessions import SupportChatSession
from .simulate import run_simulation_cli

EXIT_TOKENS = {"quit", "exit", "/quit"}
INPUT_PROMPT = "> "


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="boxy-chat",
        description="Chat with Boxy about a lost or damaged package.",
    )
    parser.add_argument(
        "--render-mode",
        choices=[mode.value for mode in RenderMode],
        help="Reveal style for bot messages (typewriter, instant).",
    )
    parser.add_argument(
        "--instant",
        action="store_true",
        help="Shortcut for --render-mode instant.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the mock tracking and ticket services. Overrides BOXY_SEED.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: BOXY_LOG_LEVEL or WARNING).",
    )
    return parser.parse_args(argv)


async def run_chat(
    settings: AppSettings,
    *,
    read_line: Callable[[str], str] = input,
    renderer: Optional[TerminalRenderer] = None,
) -> SupportChatSession:
    """Conduct the conversation in the terminal until the user quits."""

    renderer = renderer or TerminalRenderer()
    session = SupportChatSession.create(settings, renderer=renderer)
    try:
        await session.start()
        await session.wait_idle()
        while True:
            renderer.render_controls()
            try:
                raw = read_line(INPUT_PROMPT)
            except EOFError:
                break
            text = raw.strip()
            if text.lower() in EXIT_TOKENS:
                break
            offered = session.state.offered_choices
            if text.isdigit() and offered and not session.state.active_input_step:
                session.select_choice(int(text) - 1)
            else:
                session.submit_text(raw)
            await session.wait_idle()
    finally:
        await session.close()
    return session


def run_cli(argv: Optional[list[str]] = None) -> None:
    """Entry-point invoked from ``python -m boxy_chat``."""

    arg_list = list(argv) if argv is not None else sys.argv[1:]
    if arg_list and arg_list[0] == "simulate":
        settings = AppSettings.load()
        initialize_logging(settings.log_level)
        run_simulation_cli(settings, arg_list[1:])
        return

    args = _parse_args(arg_list)
    settings = AppSettings.load()
    initialize_logging(args.log_level or settings.log_level)
    if args.instant:
        settings = settings.with_render_mode(RenderMode.INSTANT)
    elif args.render_mode:
        settings = settings.with_render_mode(
            RenderMode.from_string(args.render_mode, default=settings.render_mode)
        )
    if args.seed is not None:
        settings = replace(settings, seed=args.seed)
    try:
        asyncio.run(run_chat(settings))
    except KeyboardInterrupt:  # pragma: no cover - interactive exit
        print()


if __name__ == "__main__":  # pragma: no cover - manual execution hook
    run_cli()
