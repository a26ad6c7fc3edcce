"""TRACE logging level for per-chunk and per-match detail, below DEBUG."""

import logging

TRACE = 5

logging.addLevelName(TRACE, "TRACE")


def level_from_name(name: str) -> int:
    """Convert a level name such as ``"TRACE"`` or ``"debug"`` to its number."""
    level = logging.getLevelName((name or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO
