"""
Activity: Cluster Signals — groups signals into clusters and folds the
clusters into backlog beads (epics for large clusters).
"""

from __future__ import annotations

import logging

from temporalio import activity

import config
from features.beads import BeadType, beads_to_signals, create_epic_hierarchy
from features.clustering import ClusterConfig, ClusterResult, cluster_signals
from models.schemas import Signal
from utils.llm import OperationContext, get_provider

log = logging.getLogger(__name__)


@activity.defn
def cluster_signals_activity(payload: dict) -> dict:
    """
    Cluster the payload's signals.

    Payload:
        {"signals": [signal dict, ...], "cluster_config": {"similarity_threshold": ..., ...}}

    Returns:
        {"clusters": [cluster dict, ...], "unclustered": ["sig-N", ...]}
    """
    signals = [Signal.from_dict(s) for s in payload.get("signals", [])]
    cfg = ClusterConfig.from_config()
    overrides = payload.get("cluster_config") or {}
    if overrides:
        cfg = ClusterConfig(
            similarity_threshold=float(overrides.get("similarity_threshold", cfg.similarity_threshold)),
            min_cluster_size=int(overrides.get("min_cluster_size", cfg.min_cluster_size)),
            max_cluster_size=int(overrides.get("max_cluster_size", cfg.max_cluster_size)),
        )

    log.info("Clustering %d signals", len(signals))
    ctx = OperationContext(timeout=config.OPENAI_TIMEOUT)
    result = cluster_signals(signals, get_provider(), cfg, ctx=ctx)
    return result.to_dict()


@activity.defn
def build_beads_activity(payload: dict) -> dict:
    """
    Turn every cluster into beads, in cluster order.

    Payload:
        {"signals": [...], "cluster_result": {"clusters": [...], "unclustered": [...]}}

    Returns:
        {"beads": [bead dict, ...], "bead_signals": [signal dict, ...]}
    """
    signals = [Signal.from_dict(s) for s in payload.get("signals", [])]
    result = ClusterResult.from_dict(payload.get("cluster_result") or {})
    provider = get_provider()

    beads = []
    for cluster in result.clusters:
        # Each epic request gets its own deadline.
        ctx = OperationContext(timeout=config.OPENAI_TIMEOUT)
        beads.extend(create_epic_hierarchy(cluster, signals, provider, ctx=ctx))

    epics = sum(1 for b in beads if b.type == BeadType.EPIC)
    log.info("Built %d beads (%d epics) from %d clusters", len(beads), epics, len(result.clusters))
    return {
        "beads": [b.to_dict() for b in beads],
        "bead_signals": [s.to_dict() for s in beads_to_signals(beads)],
    }
