"""
Beads feature — turns clusters into backlog-ready beads.

Public API:
    from features.beads import AnalysisBead, BeadType
    from features.beads import create_epic_hierarchy, merge_cluster_to_beads, beads_to_signals
"""

from features.beads.hierarchy import create_epic_hierarchy
from features.beads.merge import beads_to_signals, merge_cluster_to_beads
from features.beads.models import AnalysisBead, BeadType

__all__ = [
    "AnalysisBead",
    "BeadType",
    "beads_to_signals",
    "create_epic_hierarchy",
    "merge_cluster_to_beads",
]
