"""
Dependencies feature — infers typed relationships between signals.

Public API:
    from features.dependencies import infer_dependencies, apply_deps_to_signals
    from features.dependencies import BeadDependency, DependencyType
"""

from features.dependencies.dag import has_cycle, validate_dag
from features.dependencies.inference import apply_deps_to_signals, infer_dependencies
from features.dependencies.models import BeadDependency, DependencyType

__all__ = [
    "BeadDependency",
    "DependencyType",
    "apply_deps_to_signals",
    "has_cycle",
    "infer_dependencies",
    "validate_dag",
]
