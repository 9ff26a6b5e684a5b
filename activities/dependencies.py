"""
Activity: Infer Dependencies — proposes blocking / parent / related edges
between signals and mirrors the blocking edges onto the signals.
"""

from __future__ import annotations

import logging

from temporalio import activity

import config
from features.dependencies import apply_deps_to_signals, infer_dependencies
from models.schemas import Signal
from utils.llm import OperationContext, get_provider

log = logging.getLogger(__name__)


@activity.defn
def infer_dependencies_activity(payload: dict) -> dict:
    """
    Payload:
        {"signals": [...], "id_prefix": "str-"}

    Returns:
        {"dependencies": [dependency dict, ...], "signals": [signal dict with blocks/depends_on, ...]}
    """
    signals = [Signal.from_dict(s) for s in payload.get("signals", [])]
    id_prefix = payload.get("id_prefix") or config.BEAD_ID_PREFIX

    log.info("Inferring dependencies for %d signals", len(signals))
    ctx = OperationContext(timeout=config.OPENAI_TIMEOUT)
    deps = infer_dependencies(signals, get_provider(), id_prefix, ctx=ctx)
    apply_deps_to_signals(signals, deps, id_prefix)
    return {
        "dependencies": [d.to_dict() for d in deps],
        "signals": [s.to_dict() for s in signals],
    }
