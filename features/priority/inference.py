"""
Priority inference — one LLM round-trip assigning P1-P4, then glob
overrides, then a distribution sanity check that only logs.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from functools import lru_cache

from features.priority.models import MAX_PRIORITY, MIN_PRIORITY, PriorityOverride
from features.priority.prompts import SYSTEM_PROMPT, build_priority_prompt, parse_priority_response
from models.schemas import Signal, resolve_positional_id
from utils.llm import (
    CompletionRequest,
    OperationContext,
    Provider,
    TransportError,
    request_completion,
)
from utils.parsing import ParseError

log = logging.getLogger(__name__)

MAX_TOKENS = 4096


def infer_priorities(
    signals: list[Signal],
    provider: Provider,
    overrides: list[PriorityOverride] | None = None,
    *,
    ctx: OperationContext | None = None,
) -> list[Signal]:
    """Set ``priority`` on each signal in place and return the same list.

    Never raises. On LLM failure only the overrides are applied.
    """
    if not signals:
        return signals
    overrides = overrides or []

    try:
        content = request_completion(
            provider,
            ctx,
            CompletionRequest(
                prompt=build_priority_prompt(signals),
                system_prompt=SYSTEM_PROMPT,
                max_tokens=MAX_TOKENS,
            ),
        )
        items = parse_priority_response(content)
    except (TransportError, ParseError) as e:
        log.warning("LLM priority inference failed, applying overrides only: %s", e)
        apply_overrides(signals, overrides)
        return signals

    for item in items:
        idx = resolve_positional_id(item.id, signals, strict=False)
        if idx is None:
            log.debug("Ignoring unknown signal ID %r in priority response", item.id)
            continue
        if not MIN_PRIORITY <= item.priority <= MAX_PRIORITY:
            log.debug("Ignoring out-of-range priority %d for %s", item.priority, item.id)
            continue
        signals[idx].priority = item.priority

    apply_overrides(signals, overrides)
    validate_distribution(signals)
    return signals


@lru_cache(maxsize=256)
def compile_path_glob(pattern: str) -> re.Pattern | None:
    """Translate a path glob to a regex; None when the pattern is malformed.

    "*" and "?" never match "/". "[...]" is a character class ("^" negates)
    and a backslash escapes the next character.
    """
    out = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            if i >= n:
                return None
            out.append(re.escape(pattern[i]))
            i += 1
        elif c == "[":
            negate = i < n and pattern[i] == "^"
            start = i + 1 if negate else i
            end = pattern.find("]", start)
            if end <= start:
                return None
            body = pattern[start:end].replace("\\", "\\\\").replace("[", "\\[")
            out.append(f"[{'^' if negate else ''}{body}]")
            i = end + 1
        else:
            out.append(re.escape(c))
    try:
        return re.compile("".join(out))
    except re.error:
        return None


def match_override(pattern: str, path: str) -> bool:
    """Glob match, falling back to a plain prefix test for "**" patterns.

    Malformed patterns never match.
    """
    regex = compile_path_glob(pattern)
    if regex is None:
        log.debug("Skipping malformed override pattern %r", pattern)
        return False
    if regex.fullmatch(path):
        return True
    if "**" in pattern:
        prefix = pattern.split("**", 1)[0]
        return bool(prefix) and path.startswith(prefix)
    return False


def apply_overrides(signals: list[Signal], overrides: list[PriorityOverride]) -> None:
    """First matching override (in caller order) wins, replacing any prior value."""
    if not overrides:
        return
    for sig in signals:
        for override in overrides:
            if match_override(override.pattern, sig.file_path):
                sig.priority = override.priority
                break


def validate_distribution(signals: list[Signal]) -> None:
    """Warn when the assigned priorities look skewed. Never fails."""
    counts = Counter(sig.priority for sig in signals if sig.priority is not None)
    assigned = sum(counts.values())
    if not assigned:
        return

    p1_frac = counts[1] / assigned
    if p1_frac > 0.5:
        log.warning(
            "Priority distribution skew: >50%% P1 (p1=%d total=%d fraction=%.0f%%)",
            counts[1], assigned, p1_frac * 100,
        )
    if len(counts) == 1:
        (only,) = counts
        log.warning("All %d signals assigned the same priority P%d", assigned, only)

    log.info(
        "Priority distribution: P1=%d P2=%d P3=%d P4=%d total=%d",
        counts[1], counts[2], counts[3], counts[4], assigned,
    )
