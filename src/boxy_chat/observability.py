"""Logging helpers for the support chat runtime."""

from __future__ import annotations

import logging
import os
from typing import Optional


_initialized = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    raw = (level or os.getenv("BOXY_LOG_LEVEL", "WARNING")).strip().upper()
    resolved = logging.getLevelName(raw)
    if isinstance(resolved, int):
        return resolved
    return logging.WARNING


def initialize_logging(level: Optional[str] = None) -> bool:
    """Configure root logging once for the chat runtime."""

    global _initialized
    if _initialized:
        return False

    resolved = _resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("boxy_chat").setLevel(resolved)

    _initialized = True
    logging.debug("Logging initialized at level %s", logging.getLevelName(resolved))
    return True
