"""
Strict decoding of JSON blocks embedded in model output.

Models wrap JSON in prose or markdown fences. ``decode_json_block`` finds the
first well-formed object or array, validates it against a pydantic type and
returns a tagged result instead of raising, so callers branch on
``ParseError`` in one place.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

T = TypeVar("T")

_OPENERS = {"object": "{", "array": "["}


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successfully decoded and validated value."""

    value: T


@dataclass(frozen=True)
class ParseError:
    """Why the model output could not be decoded."""

    reason: str
    raw_excerpt: str = ""


DecodeResult = Union[Ok[T], ParseError]


def extract_json_block(text: str, shape: str = "object") -> Optional[Any]:
    """Return the first JSON value of the given shape found in text, or None."""
    opener = _OPENERS[shape]
    decoder = json.JSONDecoder()
    index = text.find(opener)
    while index != -1:
        try:
            value, _ = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            index = text.find(opener, index + 1)
            continue
        if (shape == "object" and isinstance(value, dict)) or (
            shape == "array" and isinstance(value, list)
        ):
            return value
        index = text.find(opener, index + 1)
    return None


def decode_json_block(text: str, schema: Any, shape: str = "object") -> DecodeResult:
    """Find the first JSON block of ``shape`` in text and validate it as ``schema``."""
    if not text or not text.strip():
        return ParseError("empty model output")

    raw = extract_json_block(text, shape)
    if raw is None:
        return ParseError(f"no JSON {shape} found", text[:120])

    try:
        return Ok(TypeAdapter(schema).validate_python(raw))
    except PydanticValidationError as exc:
        return ParseError(f"schema validation failed: {exc.error_count()} error(s)", text[:120])
