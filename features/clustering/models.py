"""
Data models for the clustering feature.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

import config
from models.schemas import Signal

DEFAULT_SIMILARITY_THRESHOLD = 0.7
DEFAULT_MIN_CLUSTER_SIZE = 1
DEFAULT_MAX_CLUSTER_SIZE = 20


@dataclass
class SignalGroup:
    """Pre-filter output: near-duplicate signals considered together.

    The representative is the first signal added to the group.
    """
    representative: Signal
    members: list[Signal] = field(default_factory=list)
    member_indices: list[int] = field(default_factory=list)  # positions in the input list


@dataclass
class Cluster:
    """A group of related signals confirmed by the LLM."""
    id: str
    name: str
    description: str = ""
    signal_ids: list[str] = field(default_factory=list)  # "sig-N" references
    confidence: float = 0.0  # max member confidence
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Cluster":
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            signal_ids=list(data.get("signal_ids") or []),
            confidence=float(data.get("confidence", 0.0)),
            tags=list(data.get("tags") or []),
        )


@dataclass
class ClusterResult:
    clusters: list[Cluster] = field(default_factory=list)
    unclustered: list[str] = field(default_factory=list)  # "sig-N" not claimed by any cluster

    def to_dict(self) -> dict:
        return {
            "clusters": [c.to_dict() for c in self.clusters],
            "unclustered": list(self.unclustered),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClusterResult":
        return cls(
            clusters=[Cluster.from_dict(c) for c in data.get("clusters", [])],
            unclustered=list(data.get("unclustered") or []),
        )


@dataclass
class ClusterConfig:
    """Clustering knobs. Non-positive values fall back to the defaults."""
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    min_cluster_size: int = DEFAULT_MIN_CLUSTER_SIZE
    max_cluster_size: int = DEFAULT_MAX_CLUSTER_SIZE

    @classmethod
    def from_config(cls) -> "ClusterConfig":
        return cls(
            similarity_threshold=config.SIMILARITY_THRESHOLD,
            min_cluster_size=config.MIN_CLUSTER_SIZE,
            max_cluster_size=config.MAX_CLUSTER_SIZE,
        )

    def with_defaults(self) -> "ClusterConfig":
        return ClusterConfig(
            similarity_threshold=(
                self.similarity_threshold if self.similarity_threshold > 0 else DEFAULT_SIMILARITY_THRESHOLD
            ),
            min_cluster_size=self.min_cluster_size if self.min_cluster_size > 0 else DEFAULT_MIN_CLUSTER_SIZE,
            max_cluster_size=self.max_cluster_size if self.max_cluster_size > 0 else DEFAULT_MAX_CLUSTER_SIZE,
        )
