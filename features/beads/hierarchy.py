"""
Epic hierarchy builder — large clusters become one epic plus a task bead
per member signal.
"""

from __future__ import annotations

import logging

import config
from features.beads.merge import merge_cluster_to_beads, resolve_cluster_signals
from features.beads.models import AnalysisBead, BeadType
from features.beads.prompts import SYSTEM_PROMPT, build_epic_prompt, parse_epic_response
from features.clustering.models import Cluster
from models.schemas import Signal, dedupe_tags
from utils.llm import (
    CompletionRequest,
    OperationContext,
    Provider,
    TransportError,
    request_completion,
)
from utils.parsing import ParseError

log = logging.getLogger(__name__)

MAX_TOKENS = 1024
EPIC_TAG = "epic"


def create_epic_hierarchy(
    cluster: Cluster,
    signals: list[Signal],
    provider: Provider,
    *,
    ctx: OperationContext | None = None,
) -> list[AnalysisBead]:
    """Build beads for ``cluster``; never raises.

    Clusters with at most EPIC_THRESHOLD resolved members are merged flat
    without calling the provider. Otherwise the epic comes first, then one
    child task per member in member order.
    """
    members = resolve_cluster_signals(cluster, signals)
    if len(members) <= config.EPIC_THRESHOLD:
        return merge_cluster_to_beads(cluster, signals)

    try:
        title, description = generate_epic_metadata(cluster, signals, provider, ctx=ctx)
    except (TransportError, ParseError) as e:
        log.warning("LLM epic generation failed for %s, using cluster name: %s", cluster.id, e)
        title, description = cluster.name, cluster.description

    epic_id = f"epic-{cluster.id}"
    beads = [AnalysisBead(
        id=epic_id,
        title=title,
        description=description,
        type=BeadType.EPIC,
        confidence=cluster.confidence,
        tags=dedupe_tags(cluster.tags, [EPIC_TAG]),
    )]
    for i, sig in enumerate(members):
        beads.append(AnalysisBead(
            id=f"{cluster.id}-task-{i}",
            title=sig.title,
            description=sig.description,
            type=BeadType.TASK,
            confidence=sig.confidence,
            tags=list(sig.tags),
            parent_id=epic_id,
            source_signals=[sig],
        ))

    log.info("Created epic %s with %d child tasks", epic_id, len(members))
    return beads


def generate_epic_metadata(
    cluster: Cluster,
    signals: list[Signal],
    provider: Provider,
    *,
    ctx: OperationContext | None = None,
) -> tuple[str, str]:
    """Ask the LLM for an epic title and description."""
    content = request_completion(
        provider,
        ctx,
        CompletionRequest(
            prompt=build_epic_prompt(cluster, signals),
            system_prompt=SYSTEM_PROMPT,
            max_tokens=MAX_TOKENS,
        ),
    )
    parsed = parse_epic_response(content)
    return parsed.title, parsed.description
