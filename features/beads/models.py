"""
Data models for the beads feature.

AnalysisBead is the backlog-ready unit produced from a cluster: either a
flat task or an epic whose children point back to it via parent_id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from models.schemas import Signal


class BeadType(str, Enum):
    TASK = "task"
    EPIC = "epic"


@dataclass
class AnalysisBead:
    """A bead produced by clustering analysis."""
    id: str
    title: str
    description: str = ""
    type: BeadType = BeadType.TASK
    confidence: float = 0.0
    tags: list[str] = field(default_factory=list)
    parent_id: str = ""  # empty = top-level
    source_signals: list[Signal] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "confidence": self.confidence,
            "tags": list(self.tags),
            "parent_id": self.parent_id,
            "source_signals": [s.to_dict() for s in self.source_signals],
        }
