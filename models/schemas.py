"""
Core domain models shared by every analysis feature.

A Signal is produced by an external collector and mutated in place by
priority inference and dependency application. Feature-specific models
live in features.<name>.models.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any


@dataclass
class Signal:
    """A single mechanically detected candidate work item."""
    title: str
    kind: str = ""
    source: str = ""  # collector name: "todos", "gitlog", ...
    file_path: str = ""
    line: int = 0  # 0 when not applicable
    description: str = ""
    confidence: float = 0.0  # 0.0-1.0
    tags: list[str] = field(default_factory=list)
    priority: int | None = None  # 1-4, None = unassigned
    blocks: list[str] = field(default_factory=list)  # bead IDs this signal blocks
    depends_on: list[str] = field(default_factory=list)  # bead IDs blocking this signal
    author: str = ""
    timestamp: datetime | None = None
    workspace: str = ""

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["tags"] = list(self.tags)
        data["blocks"] = list(self.blocks)
        data["depends_on"] = list(self.depends_on)
        data["timestamp"] = self.timestamp.isoformat() if self.timestamp else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Signal":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        ts = kwargs.get("timestamp")
        if isinstance(ts, str):
            kwargs["timestamp"] = datetime.fromisoformat(ts) if ts else None
        for key in ("tags", "blocks", "depends_on"):
            kwargs[key] = list(kwargs.get(key) or [])
        return cls(**kwargs)


def signal_id(sig: Signal, prefix: str) -> str:
    """Deterministic, content-derived bead ID for a signal.

    Fields are joined with NUL bytes so that "ab"+"c" and "a"+"bc" hash
    differently. Same content and prefix always yields the same ID.
    """
    payload = "\x00".join([sig.source, sig.kind, sig.file_path, str(sig.line), sig.title])
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{prefix}{digest[:8]}"


def positional_id(index: int) -> str:
    """Call-scoped reference for the signal at input position ``index``."""
    return f"sig-{index}"


def resolve_positional_id(ref: str, signals: list[Signal], *, strict: bool = True) -> int | None:
    """Map a "sig-N" reference back to an index into ``signals``.

    Strict lookups accept only the canonical form ("sig-07" is not "sig-7");
    with ``strict=False`` leading zeros are tolerated.
    Returns None for malformed or out-of-range references.
    """
    if not isinstance(ref, str) or not ref.startswith("sig-"):
        return None
    raw = ref[len("sig-"):]
    if not (raw.isascii() and raw.isdigit()):
        return None
    idx = int(raw)
    if idx >= len(signals) or (strict and str(idx) != raw):
        return None
    return idx


def dedupe_tags(*tag_lists: list[str]) -> list[str]:
    """Ordered union of tag lists, first occurrence wins."""
    seen: set[str] = set()
    result: list[str] = []
    for tags in tag_lists:
        for tag in tags:
            if tag not in seen:
                seen.add(tag)
                result.append(tag)
    return result
