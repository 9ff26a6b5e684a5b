"""
Prompt helpers shared by the clustering, priority and dependency prompts.
"""

from __future__ import annotations

import config
from models.schemas import Signal, positional_id

SIGNALS_HEADER = "SIGNALS:\n--------\n"
SIGNALS_FOOTER = "--------\n\n"


def truncate(text: str, limit: int = config.PROMPT_DESCRIPTION_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def describe_signal(
    index: int,
    sig: Signal,
    *,
    tags: bool = False,
    confidence: bool = False,
) -> str:
    """Render one signal as an ``ID: sig-N`` block for a prompt."""
    lines = [
        f"ID: {positional_id(index)}",
        f"  Title: {sig.title}",
        f"  Kind: {sig.kind}",
        f"  Source: {sig.source}",
    ]
    if sig.file_path:
        lines.append(f"  Path: {sig.file_path}")
    if tags and sig.tags:
        lines.append(f"  Tags: {', '.join(sig.tags)}")
    if confidence:
        lines.append(f"  Confidence: {sig.confidence:.2f}")
    if sig.description:
        lines.append(f"  Description: {truncate(sig.description)}")
    return "\n".join(lines) + "\n\n"


def describe_signals(signals: list[Signal], **kwargs) -> str:
    """Render every signal, in input order, between the SIGNALS markers."""
    body = "".join(describe_signal(i, sig, **kwargs) for i, sig in enumerate(signals))
    return SIGNALS_HEADER + body + SIGNALS_FOOTER
