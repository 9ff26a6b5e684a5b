"""
Activity: Infer Priorities — assigns P1-P4 to every signal, then applies
the configured path overrides.
"""

from __future__ import annotations

import logging

from temporalio import activity

import config
from features.priority import PriorityOverride, infer_priorities, parse_priority_overrides
from models.schemas import Signal
from utils.llm import OperationContext, get_provider

log = logging.getLogger(__name__)


@activity.defn
def infer_priorities_activity(payload: dict) -> dict:
    """
    Payload:
        {"signals": [...], "overrides": [{"pattern": "auth/**", "priority": 1}, ...]}

    When "overrides" is absent, PRIORITY_OVERRIDES from the environment is used.

    Returns:
        {"signals": [signal dict with "priority" set, ...]}
    """
    signals = [Signal.from_dict(s) for s in payload.get("signals", [])]
    if "overrides" in payload:
        overrides = [PriorityOverride(o["pattern"], int(o["priority"])) for o in payload["overrides"]]
    else:
        overrides = parse_priority_overrides(config.PRIORITY_OVERRIDES)

    log.info("Inferring priorities for %d signals (%d overrides)", len(signals), len(overrides))
    ctx = OperationContext(timeout=config.OPENAI_TIMEOUT)
    infer_priorities(signals, get_provider(), overrides, ctx=ctx)
    return {"signals": [s.to_dict() for s in signals]}
