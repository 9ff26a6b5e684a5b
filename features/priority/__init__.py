"""
Priority feature — assigns P1-P4 to signals.

Public API:
    from features.priority import infer_priorities, PriorityOverride, parse_priority_overrides
"""

from features.priority.inference import apply_overrides, infer_priorities
from features.priority.models import PriorityOverride, parse_priority_overrides

__all__ = ["PriorityOverride", "apply_overrides", "infer_priorities", "parse_priority_overrides"]
