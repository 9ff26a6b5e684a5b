"""
Dependency inference — one LLM round-trip proposing typed relationships,
validated, made acyclic on "blocks" edges, and remapped to stable bead IDs.

Dependencies are enrichment only: any LLM failure yields no edges.
"""

from __future__ import annotations

import logging

from features.dependencies.dag import validate_dag
from features.dependencies.models import VALID_DEPENDENCY_TYPES, BeadDependency, DependencyType
from features.dependencies.prompts import (
    SYSTEM_PROMPT,
    build_dependency_prompt,
    parse_dependency_response,
)
from models.schemas import Signal, positional_id, resolve_positional_id, signal_id
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


def infer_dependencies(
    signals: list[Signal],
    provider: Provider,
    id_prefix: str,
    *,
    ctx: OperationContext | None = None,
) -> list[BeadDependency]:
    """Return validated dependencies between ``signals``; never raises."""
    if len(signals) < 2:
        return []

    try:
        content = request_completion(
            provider,
            ctx,
            CompletionRequest(
                prompt=build_dependency_prompt(signals),
                system_prompt=SYSTEM_PROMPT,
                max_tokens=MAX_TOKENS,
            ),
        )
        items = parse_dependency_response(content)
    except (TransportError, ParseError) as e:
        log.warning("LLM dependency inference failed, skipping: %s", e)
        return []

    deps: list[BeadDependency] = []
    for item in items:
        if resolve_positional_id(item.from_, signals) is None or resolve_positional_id(item.to, signals) is None:
            log.debug("Ignoring dependency with unknown signal ID: %r -> %r", item.from_, item.to)
            continue
        if item.from_ == item.to:
            log.debug("Ignoring self-dependency on %s", item.from_)
            continue
        if item.type not in VALID_DEPENDENCY_TYPES:
            log.debug("Ignoring invalid dependency type %r", item.type)
            continue
        deps.append(BeadDependency(
            from_id=item.from_,
            to_id=item.to,
            type=DependencyType(item.type),
            confidence=item.confidence,
        ))

    deps = validate_dag(deps)
    deps = map_to_bead_ids(deps, signals, id_prefix)
    log.info("Dependency inference complete: %d dependencies among %d signals", len(deps), len(signals))
    return deps


def map_to_bead_ids(deps: list[BeadDependency], signals: list[Signal], id_prefix: str) -> list[BeadDependency]:
    """Replace "sig-N" references with stable bead IDs.

    Edges with an endpoint that cannot be mapped are dropped.
    """
    id_map = {positional_id(i): signal_id(sig, id_prefix) for i, sig in enumerate(signals)}
    result = []
    for dep in deps:
        from_bead = id_map.get(dep.from_id)
        to_bead = id_map.get(dep.to_id)
        if from_bead is None or to_bead is None:
            continue
        result.append(BeadDependency(
            from_id=from_bead,
            to_id=to_bead,
            type=dep.type,
            confidence=dep.confidence,
        ))
    return result


def apply_deps_to_signals(signals: list[Signal], deps: list[BeadDependency], id_prefix: str) -> None:
    """Mirror "blocks" edges onto ``blocks`` / ``depends_on`` in place.

    Parent and relates-to edges are informational and not mirrored.
    Re-applying the same edges is a no-op.
    """
    index_by_bead_id = {signal_id(sig, id_prefix): i for i, sig in enumerate(signals)}

    for dep in deps:
        if dep.type != DependencyType.BLOCKS:
            continue
        from_idx = index_by_bead_id.get(dep.from_id)
        to_idx = index_by_bead_id.get(dep.to_id)
        if from_idx is None or to_idx is None:
            continue
        _append_unique(signals[from_idx].blocks, dep.to_id)
        _append_unique(signals[to_idx].depends_on, dep.from_id)


def _append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)
