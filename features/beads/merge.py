"""
Bead merger — folds a cluster into a single backlog bead, no LLM involved.
"""

from __future__ import annotations

from features.beads.models import AnalysisBead, BeadType
from features.clustering.models import Cluster
from models.schemas import Signal, dedupe_tags, resolve_positional_id

BRIDGE_SOURCE = "cluster"


def resolve_cluster_signals(cluster: Cluster, signals: list[Signal]) -> list[Signal]:
    """Member signals in cluster order; unresolvable references are skipped."""
    members = []
    for ref in cluster.signal_ids:
        idx = resolve_positional_id(ref, signals)
        if idx is not None:
            members.append(signals[idx])
    return members


def merge_cluster_to_beads(cluster: Cluster, signals: list[Signal]) -> list[AnalysisBead]:
    """Produce zero or one bead for ``cluster``.

    A single member passes straight through with cluster and signal tags
    combined. Several members collapse into one bead titled after the
    cluster; that bead carries the cluster tags only.
    """
    members = resolve_cluster_signals(cluster, signals)
    if not members:
        return []

    if len(members) == 1:
        sig = members[0]
        return [AnalysisBead(
            id=cluster.id,
            title=sig.title,
            description=sig.description,
            type=BeadType.TASK,
            confidence=sig.confidence,
            tags=dedupe_tags(cluster.tags, sig.tags),
            source_signals=members,
        )]

    max_conf = max([cluster.confidence] + [sig.confidence for sig in members])
    # Member tags are deliberately not unioned here (see DESIGN.md).
    return [AnalysisBead(
        id=cluster.id,
        title=cluster.name,
        description=build_merged_description(cluster, members),
        type=BeadType.TASK,
        confidence=max_conf,
        tags=list(cluster.tags),
        source_signals=members,
    )]


def build_merged_description(cluster: Cluster, members: list[Signal]) -> str:
    parts = []
    if cluster.description:
        parts.append(cluster.description + "\n\n")
    parts.append("Related signals:\n")

    bullets = []
    for sig in members:
        bullet = f"- {sig.title}"
        if sig.file_path:
            location = f"{sig.file_path}:{sig.line}" if sig.line > 0 else sig.file_path
            bullet += f" ({location})"
        bullets.append(bullet)
    parts.append("\n".join(bullets))
    return "".join(parts)


def beads_to_signals(beads: list[AnalysisBead]) -> list[Signal]:
    """Bridge beads back into signals for downstream output stages.

    Location and authorship are inherited from the first source signal.
    """
    result = []
    for bead in beads:
        sig = Signal(
            title=bead.title,
            kind=bead.type.value,
            source=BRIDGE_SOURCE,
            description=bead.description,
            confidence=bead.confidence,
            tags=list(bead.tags),
        )
        if bead.source_signals:
            first = bead.source_signals[0]
            sig.file_path = first.file_path
            sig.line = first.line
            sig.author = first.author
            sig.timestamp = first.timestamp
        result.append(sig)
    return result
