"""
Cluster formation — pre-filter, one LLM round-trip, validation against the
real signal list, then size constraints.

cluster_signals() never raises: any transport or parse failure degrades to
one singleton cluster per signal so callers always get usable output.
"""

from __future__ import annotations

import logging

from features.clustering.models import Cluster, ClusterConfig, ClusterResult, SignalGroup
from features.clustering.prompts import SYSTEM_PROMPT, build_clustering_prompt, parse_cluster_response
from features.clustering.similarity import pre_filter_signals
from models.schemas import Signal, dedupe_tags, positional_id, resolve_positional_id
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


def cluster_signals(
    signals: list[Signal],
    provider: Provider,
    cfg: ClusterConfig | None = None,
    *,
    ctx: OperationContext | None = None,
) -> ClusterResult:
    """Group related signals into clusters.

    Returns an empty result for empty input and a singleton-per-signal
    result when the LLM step fails for any reason.
    """
    if not signals:
        return ClusterResult()

    cfg = (cfg or ClusterConfig()).with_defaults()

    groups = pre_filter_signals(signals, cfg.similarity_threshold)
    log.debug("Pre-filter complete: %d signals -> %d groups", len(signals), len(groups))

    try:
        clusters = form_clusters_with_llm(groups, provider, signals, ctx=ctx)
    except (TransportError, ParseError) as e:
        log.warning("LLM clustering failed, falling back to ungrouped: %s", e)
        return fallback_result(signals)

    result = apply_constraints(clusters, signals, cfg)
    log.info(
        "Clustering complete: %d clusters, %d unclustered (from %d signals)",
        len(result.clusters), len(result.unclustered), len(signals),
    )
    return result


def form_clusters_with_llm(
    groups: list[SignalGroup],
    provider: Provider,
    signals: list[Signal],
    *,
    ctx: OperationContext | None = None,
) -> list[Cluster]:
    """Ask the LLM to cluster the pre-filtered groups and validate the answer.

    Raises TransportError or ParseError so the caller can fall back.
    """
    content = request_completion(
        provider,
        ctx,
        CompletionRequest(
            prompt=build_clustering_prompt(groups),
            system_prompt=SYSTEM_PROMPT,
            max_tokens=MAX_TOKENS,
        ),
    )
    items = parse_cluster_response(content)

    clusters: list[Cluster] = []
    for i, item in enumerate(items):
        valid_ids: list[str] = []
        for ref in item.signal_ids:
            if resolve_positional_id(ref, signals) is None:
                log.debug("Ignoring unknown signal ID %r in cluster %r", ref, item.name)
                continue
            if ref not in valid_ids:
                valid_ids.append(ref)

        if not valid_ids:
            continue

        clusters.append(Cluster(
            id=f"cluster-{i}",
            name=item.name,
            description=item.description,
            signal_ids=valid_ids,
            confidence=compute_cluster_confidence(valid_ids, signals),
            tags=compute_cluster_tags(valid_ids, signals),
        ))

    return clusters


def fallback_result(signals: list[Signal]) -> ClusterResult:
    """Every signal becomes its own cluster."""
    clusters = [
        Cluster(
            id=f"cluster-{i}",
            name=sig.title,
            description=sig.description,
            signal_ids=[positional_id(i)],
            confidence=sig.confidence,
            tags=list(sig.tags),
        )
        for i, sig in enumerate(signals)
    ]
    return ClusterResult(clusters=clusters)


def apply_constraints(clusters: list[Cluster], signals: list[Signal], cfg: ClusterConfig) -> ClusterResult:
    """Drop undersized clusters, truncate oversized ones, collect the remainder.

    Undersized clusters are never padded; their members become unclustered.
    """
    claimed: set[str] = set()
    valid: list[Cluster] = []

    for cluster in clusters:
        if len(cluster.signal_ids) < cfg.min_cluster_size:
            log.debug("Dropping undersized cluster %s (%d signals)", cluster.id, len(cluster.signal_ids))
            continue
        if len(cluster.signal_ids) > cfg.max_cluster_size:
            log.debug(
                "Truncating cluster %s from %d to %d signals",
                cluster.id, len(cluster.signal_ids), cfg.max_cluster_size,
            )
            cluster.signal_ids = cluster.signal_ids[:cfg.max_cluster_size]
        claimed.update(cluster.signal_ids)
        valid.append(cluster)

    unclustered = [
        positional_id(i) for i in range(len(signals)) if positional_id(i) not in claimed
    ]
    return ClusterResult(clusters=valid, unclustered=unclustered)


def compute_cluster_confidence(signal_ids: list[str], signals: list[Signal]) -> float:
    """Highest confidence among the referenced signals."""
    confidences = [signals[idx].confidence for idx in _resolve_all(signal_ids, signals)]
    return max(confidences, default=0.0)


def compute_cluster_tags(signal_ids: list[str], signals: list[Signal]) -> list[str]:
    """Deduplicated union of member tags, in member order."""
    return dedupe_tags(*(signals[idx].tags for idx in _resolve_all(signal_ids, signals)))


def _resolve_all(signal_ids: list[str], signals: list[Signal]) -> list[int]:
    indices = (resolve_positional_id(ref, signals) for ref in signal_ids)
    return [idx for idx in indices if idx is not None]
