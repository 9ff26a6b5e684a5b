"""
Epic summary prompt and response parser.
"""

from __future__ import annotations

from pydantic import field_validator

from features.clustering.models import Cluster
from models.schemas import Signal, resolve_positional_id
from utils.parsing import ResponseModel, parse_object

SYSTEM_PROMPT = (
    "You are a software engineering assistant that creates concise epic summaries. "
    "Always respond with valid JSON only."
)


class EpicResponse(ResponseModel):
    title: str
    description: str = ""

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        if not v:
            raise ValueError("epic response missing title")
        return v


def build_epic_prompt(cluster: Cluster, signals: list[Signal]) -> str:
    lines = [
        "You are summarizing a group of related work items from a software repository.\n",
        f"Cluster name: {cluster.name}",
        f"Cluster description: {cluster.description}\n",
        "The cluster contains these signals:",
    ]
    for ref in cluster.signal_ids:
        idx = resolve_positional_id(ref, signals)
        if idx is None:
            continue
        sig = signals[idx]
        entry = f"- {ref}: {sig.title}"
        if sig.file_path:
            entry += f" ({sig.file_path})"
        lines.append(entry)

    lines.append("\nRespond with ONLY a JSON object:")
    lines.append(
        '{"title": "epic title (under 80 chars)", '
        '"description": "2-3 sentence summary of the work needed"}'
    )
    return "\n".join(lines) + "\n"


def parse_epic_response(content: str) -> EpicResponse:
    return parse_object(content, EpicResponse, label="epic")
