"""
Data models for the dependencies feature.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DependencyType(str, Enum):
    BLOCKS = "blocks"  # from must finish before to can start; must form a DAG
    PARENT = "parent"
    RELATES_TO = "relates-to"


VALID_DEPENDENCY_TYPES = frozenset(t.value for t in DependencyType)


@dataclass
class BeadDependency:
    """A typed relationship between two beads (or "sig-N" refs before remapping)."""
    from_id: str
    to_id: str
    type: DependencyType
    confidence: float = 0.0  # 0.0-1.0

    def to_dict(self) -> dict:
        return {
            "from_id": self.from_id,
            "to_id": self.to_id,
            "type": self.type.value,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BeadDependency":
        return cls(
            from_id=data["from_id"],
            to_id=data["to_id"],
            type=DependencyType(data["type"]),
            confidence=float(data.get("confidence", 0.0)),
        )
