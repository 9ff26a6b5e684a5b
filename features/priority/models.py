"""
Data models for the priority feature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

MIN_PRIORITY = 1
MAX_PRIORITY = 4


@dataclass(frozen=True)
class PriorityOverride:
    """Pins signals whose file path matches ``pattern`` to ``priority``.

    ``pattern`` is a glob; a trailing "**" also matches everything below
    the directory prefix in front of it.
    """
    pattern: str
    priority: int

    def __post_init__(self):
        if not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            raise ValueError(f"priority must be {MIN_PRIORITY}-{MAX_PRIORITY}, got {self.priority}")


def parse_priority_overrides(raw: str) -> list[PriorityOverride]:
    """Parse ``"auth/**=1,docs/*.md=4"`` into overrides, keeping order.

    Malformed entries are logged and skipped.
    """
    overrides = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        pattern, sep, value = entry.rpartition("=")
        if not sep or not pattern.strip():
            log.warning("Ignoring malformed priority override: %r", entry)
            continue
        try:
            overrides.append(PriorityOverride(pattern=pattern.strip(), priority=int(value)))
        except ValueError as e:
            log.warning("Ignoring priority override %r: %s", entry, e)
    return overrides
