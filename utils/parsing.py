"""
LLM response parsing — tolerant JSON extraction shared by every engine.

Models wrap JSON in markdown fences and alternate between a named wrapper
object and a bare top-level array; both shapes are accepted here, and the
per-feature parsers are thin instances of parse_items().
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError, ValidationInfo, field_validator

log = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

# Characters of offending content quoted in a ParseError
ERROR_SNIPPET_CHARS = 200


class ParseError(ValueError):
    """LLM response was not valid JSON in any accepted shape."""

    def __init__(self, message: str, content: str = ""):
        self.content = content[:ERROR_SNIPPET_CHARS]
        super().__init__(f"{message}: {self.content}")


class ResponseModel(BaseModel):
    """Base for LLM response shapes.

    An explicit ``null`` reads as the field's default, so one null field
    does not invalidate an otherwise usable response. Required fields
    still reject ``null``.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, v, info: ValidationInfo):
        if v is None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return v


def strip_code_fences(content: str) -> str:
    """Trim, and if fenced with ``` keep only the lines inside the fence.

    The language tag on the opening fence is ignored.
    """
    content = content.strip()
    if not content.startswith("```"):
        return content

    kept = []
    in_block = False
    for line in content.split("\n"):
        if line.strip().startswith("```"):
            in_block = not in_block
            continue
        if in_block:
            kept.append(line)
    return "\n".join(kept).strip()


def parse_items(
    content: str,
    item_type: type[T],
    wrapper_key: str,
    *,
    allow_empty: bool = False,
    label: str = "",
) -> list[T]:
    """Decode a list of ``item_type`` from an LLM response.

    Tries ``{"<wrapper_key>": [...]}`` first, then a bare ``[...]``.
    Zero decoded items is a failure unless ``allow_empty`` is set.
    """
    label = label or wrapper_key
    text = strip_code_fences(content)
    adapter = TypeAdapter(list[item_type])

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        raise ParseError(f"failed to parse LLM response as {label} JSON", text) from None

    items: list[T] | None = None
    if isinstance(data, dict):
        try:
            items = adapter.validate_python(data.get(wrapper_key) or [])
        except ValidationError as e:
            log.debug("%s wrapper did not validate: %s", label, e)
    elif isinstance(data, list):
        try:
            items = adapter.validate_python(data)
        except ValidationError as e:
            log.debug("%s array did not validate: %s", label, e)

    if items is None or (not items and not allow_empty):
        raise ParseError(f"failed to parse LLM response as {label} JSON", text)
    return items


def parse_object(content: str, model_type: type[T], *, label: str = "") -> T:
    """Decode a single JSON object (no array form) from an LLM response."""
    label = label or model_type.__name__
    text = strip_code_fences(content)
    try:
        return model_type.model_validate_json(text)
    except ValidationError:
        raise ParseError(f"failed to parse LLM response as {label} JSON", text) from None
