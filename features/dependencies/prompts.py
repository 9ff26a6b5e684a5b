"""
Dependency prompt and response parser.
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from models.schemas import Signal
from utils.parsing import ResponseModel, parse_items
from utils.prompting import describe_signals

SYSTEM_PROMPT = (
    "You are a software engineering dependency analysis expert. "
    "Always respond with valid JSON only."
)


class DependencyResponseItem(ResponseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: str = Field("", alias="from")
    to: str = ""
    type: str = ""
    confidence: float = 0.0


def build_dependency_prompt(signals: list[Signal]) -> str:
    return (
        "You are analyzing work items from a software repository to identify dependencies.\n\n"
        "Dependency types:\n"
        '- "blocks": Signal A must be completed before Signal B can start\n'
        '- "parent": Signal A is a parent/epic that contains Signal B as a subtask\n'
        '- "relates-to": Signals are related but neither blocks the other\n\n'
        + describe_signals(signals, tags=True) +
        "Respond with ONLY a JSON object in the following format (no markdown, no explanation):\n"
        '{"dependencies": [{"from": "sig-0", "to": "sig-1", "type": "blocks", "confidence": 0.8}]}\n\n'
        "Rules:\n"
        "- Only include dependencies you are confident about (confidence >= 0.6)\n"
        "- \"blocks\" means the 'from' signal must be done before 'to' can start\n"
        "- Avoid creating circular blocking chains\n"
        '- If no dependencies exist, return {"dependencies": []}\n'
        "- A signal cannot depend on itself\n"
    )


def parse_dependency_response(content: str) -> list[DependencyResponseItem]:
    """An empty ``{"dependencies": []}`` is a valid answer, not a failure."""
    return parse_items(
        content, DependencyResponseItem, "dependencies", allow_empty=True, label="dependency",
    )
