"""
Clustering prompt and response parser.
"""

from __future__ import annotations

from features.clustering.models import SignalGroup
from utils.parsing import ResponseModel, parse_items
from utils.prompting import SIGNALS_FOOTER, SIGNALS_HEADER, describe_signal

SYSTEM_PROMPT = (
    "You are a software engineering assistant that analyzes code signals and "
    "groups related work items. Always respond with valid JSON only."
)


class ClusterResponseItem(ResponseModel):
    name: str = ""
    description: str = ""
    signal_ids: list[str] = []


def build_clustering_prompt(groups: list[SignalGroup]) -> str:
    """List every pre-filtered signal, group by group, and ask for clusters."""
    body = "".join(
        describe_signal(idx, sig)
        for group in groups
        for idx, sig in zip(group.member_indices, group.members)
    )
    return (
        "You are analyzing signals extracted from a software repository. "
        "Each signal represents an actionable work item (TODO, bug, code smell, etc.).\n\n"
        "Below is a list of signals. Group related signals into clusters based on:\n"
        "- Common theme or topic (e.g., all related to authentication)\n"
        "- Same module or directory (e.g., all in the database layer)\n"
        "- Similar intent (e.g., all are performance improvements)\n\n"
        + SIGNALS_HEADER + body + SIGNALS_FOOTER +
        "Respond with ONLY a JSON object in the following format (no markdown, no explanation):\n"
        '{"clusters": [{"name": "short cluster name", "description": "why these signals are related", '
        '"signal_ids": ["sig-0", "sig-1"]}]}\n\n'
        "Rules:\n"
        "- Every signal ID must appear in exactly one cluster\n"
        "- Cluster names should be short (3-6 words)\n"
        "- If a signal doesn't fit any group, put it in its own single-signal cluster\n"
        "- Prefer fewer, meaningful clusters over many small ones\n"
    )


def parse_cluster_response(content: str) -> list[ClusterResponseItem]:
    return parse_items(content, ClusterResponseItem, "clusters", label="cluster")
