"""
Priority prompt and response parser.
"""

from __future__ import annotations

from models.schemas import Signal
from utils.parsing import ResponseModel, parse_items
from utils.prompting import describe_signals

SYSTEM_PROMPT = (
    "You are a software engineering prioritization expert. "
    "Always respond with valid JSON only."
)


class PriorityResponseItem(ResponseModel):
    id: str = ""
    priority: int = 0
    reasoning: str = ""


def build_priority_prompt(signals: list[Signal]) -> str:
    return (
        "You are prioritizing actionable work items from a software repository.\n\n"
        "Priority levels:\n"
        "- P1 (Critical): Security vulnerabilities, data integrity issues, production outages\n"
        "- P2 (High): User-facing bugs, performance problems, broken functionality\n"
        "- P3 (Medium): Code quality, tech debt, refactoring, missing tests\n"
        "- P4 (Low): Cosmetic issues, minor improvements, low-impact cleanup\n\n"
        + describe_signals(signals, tags=True, confidence=True) +
        "Respond with ONLY a JSON object in the following format (no markdown, no explanation):\n"
        '{"priorities": [{"id": "sig-0", "priority": 2, "reasoning": "brief reason"}]}\n\n'
        "Rules:\n"
        "- Assign a priority (1-4) to every signal\n"
        "- Use the full range of priorities, avoid assigning everything the same level\n"
        "- Security and data-integrity issues should be P1\n"
        "- Keep reasoning to one sentence\n"
    )


def parse_priority_response(content: str) -> list[PriorityResponseItem]:
    return parse_items(content, PriorityResponseItem, "priorities", label="priority")
