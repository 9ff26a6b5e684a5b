"""
Clustering feature — groups related signals into LLM-confirmed clusters.

Public API:
    from features.clustering import cluster_signals, ClusterConfig, ClusterResult
"""

from features.clustering.engine import cluster_signals
from features.clustering.models import Cluster, ClusterConfig, ClusterResult, SignalGroup
from features.clustering.similarity import jaccard_similarity, pre_filter_signals

__all__ = [
    "Cluster",
    "ClusterConfig",
    "ClusterResult",
    "SignalGroup",
    "cluster_signals",
    "jaccard_similarity",
    "pre_filter_signals",
]
