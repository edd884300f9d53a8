"""Configuration helpers for the Boxy support chat."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from importlib import import_module
from typing import Optional

PAUSE_CHARACTERS = frozenset(".!?,")


class RenderMode(str, Enum):
    """How bot messages are revealed."""

    TYPEWRITER = "typewriter"
    INSTANT = "instant"

    @classmethod
    def from_string(
        cls,
        mode: str | None,
        default: Optional["RenderMode"] = None,
    ) -> "RenderMode":
        """Map ``typewriter`` or ``instant`` (any case) onto a render mode."""
        try:
            return cls((mode or "").strip().lower())
        except ValueError:
            if default is None:
                raise ValueError(f"Unsupported render mode: {mode!r}") from None
            return default


@dataclass(frozen=True, slots=True)
class PacingSettings:
    """Timing parameters for the typewriter reveal, in seconds."""

    typewriter_delay: float = 0.022
    pause_multiplier: float = 6.0
    settle_delay: float = 0.32
    layout_pause: float = 0.016
    entry_delay: float = 0.26

    @classmethod
    def instant(cls) -> "PacingSettings":
        return cls(
            typewriter_delay=0.0,
            pause_multiplier=0.0,
            settle_delay=0.0,
            layout_pause=0.0,
            entry_delay=0.0,
        )

    def delay_after(self, char: str) -> float:
        """Return the pause that follows revealing ``char``."""
        if char in PAUSE_CHARACTERS:
            return self.typewriter_delay * self.pause_multiplier
        return self.typewriter_delay


@dataclass(frozen=True, slots=True)
class AppSettings:
    """Top-level application settings loaded from environment variables."""

    render_mode: RenderMode = RenderMode.TYPEWRITER
    pacing: PacingSettings = PacingSettings()
    seed: Optional[int] = None
    log_level: str = "WARNING"

    @property
    def effective_pacing(self) -> PacingSettings:
        if self.render_mode is RenderMode.INSTANT:
            return PacingSettings.instant()
        return self.pacing

    def with_render_mode(self, mode: RenderMode) -> "AppSettings":
        return replace(self, render_mode=mode)

    @classmethod
    def load(cls) -> "AppSettings":
        """Load settings from the environment, then a `.env` in the working tree."""
        _load_env_file()
        render_mode = RenderMode.from_string(
            os.getenv("BOXY_RENDER_MODE"),
            default=RenderMode.TYPEWRITER,
        )
        pacing = PacingSettings(
            typewriter_delay=_read_millis("BOXY_TYPEWRITER_DELAY_MS", 22),
            pause_multiplier=float(_read_int("BOXY_PAUSE_MULTIPLIER", 6)),
            settle_delay=_read_millis("BOXY_SETTLE_DELAY_MS", 320),
            layout_pause=_read_millis("BOXY_LAYOUT_PAUSE_MS", 16),
            entry_delay=_read_millis("BOXY_ENTRY_DELAY_MS", 260),
        )
        seed_raw = os.getenv("BOXY_SEED", "").strip()
        seed: Optional[int] = None
        if seed_raw:
            try:
                seed = int(seed_raw)
            except ValueError as exc:
                raise RuntimeError("BOXY_SEED must be an integer") from exc
        log_level = os.getenv("BOXY_LOG_LEVEL", "WARNING").strip().upper()
        return cls(
            render_mode=render_mode,
            pacing=pacing,
            seed=seed,
            log_level=log_level or "WARNING",
        )


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc
    if value < 0:
        raise RuntimeError(f"{name} must be at least 0")
    return value


def _read_millis(name: str, default: int) -> float:
    return _read_int(name, default) / 1000.0


def _load_env_file() -> None:
    """Load `.env` from the working directory; the real environment wins."""
    try:
        dotenv = import_module("dotenv")
    except ModuleNotFoundError as exc:  # pragma: no cover - declared dependency
        raise RuntimeError("python-dotenv is needed to read .env files.") from exc

    env_path = dotenv.find_dotenv(usecwd=True)
    if env_path:
        dotenv.load_dotenv(env_path, override=False)
