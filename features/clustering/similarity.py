"""
Similarity pre-filter — deterministic, LLM-free grouping of near-duplicate
signals, run before the (expensive, rate-limited) clustering prompt.
"""

from __future__ import annotations

import posixpath
import re

from features.clustering.models import SignalGroup
from models.schemas import Signal

STOP_WORDS = frozenset({
    "a", "an", "the", "is", "it", "in", "of", "to", "and", "or",
    "for", "on", "at", "by", "with", "this", "that", "from", "as", "be",
})

_WORD_RE = re.compile(r"[^\W_]+")


def pre_filter_signals(signals: list[Signal], threshold: float) -> list[SignalGroup]:
    """Greedily group signals; every index lands in exactly one group.

    For each unassigned signal (input order) a group is opened and every
    later unassigned signal similar to it is pulled in. O(n²).
    """
    assigned = [False] * len(signals)
    groups: list[SignalGroup] = []

    for i, sig in enumerate(signals):
        if assigned[i]:
            continue
        group = SignalGroup(representative=sig, members=[sig], member_indices=[i])
        assigned[i] = True

        for j in range(i + 1, len(signals)):
            if assigned[j]:
                continue
            if are_similar(sig, signals[j], threshold):
                group.members.append(signals[j])
                group.member_indices.append(j)
                assigned[j] = True

        groups.append(group)

    return groups


def are_similar(a: Signal, b: Signal, threshold: float) -> bool:
    """Same collector AND (same directory OR similar titles)."""
    if a.source != b.source:
        return False
    if path_similar(a.file_path, b.file_path):
        return True
    return jaccard_similarity(a.title, b.title) >= threshold


def path_similar(a: str, b: str) -> bool:
    """True when both paths share the same non-root parent directory."""
    if not a or not b:
        return False
    dir_a = posixpath.normpath(posixpath.dirname(a))
    dir_b = posixpath.normpath(posixpath.dirname(b))
    return dir_a == dir_b and dir_a not in (".", "/")


def normalize_title(text: str) -> list[str]:
    """Lower-cased word tokens with punctuation, short words and stop words removed."""
    words = _WORD_RE.findall(text.lower())
    return [w for w in words if len(w) >= 2 and w not in STOP_WORDS]


def jaccard_similarity(a: str, b: str) -> float:
    """Jaccard index over normalized title tokens.

    0.0 when both normalize to nothing or nothing overlaps.
    """
    set_a = set(normalize_title(a))
    set_b = set(normalize_title(b))
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)
