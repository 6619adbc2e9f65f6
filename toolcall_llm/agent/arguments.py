"""Typing of tool-call arguments serialized as JSON."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from toolcall_llm.tools.registry import Scalar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MalformedArguments:
    """Arguments that could not be decoded into a JSON object."""
    raw: str
    reason: str


def type_value(value: Any) -> Optional[Scalar]:
    """
    Map a decoded JSON value onto a tool scalar.

    Strings stay strings, numbers become floats, booleans stay booleans,
    null is dropped (None), and arrays or objects are kept as their JSON text.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return value
    return json.dumps(value)


def type_fields(obj: Mapping[str, Any]) -> Dict[str, Scalar]:
    """Apply type_value to every field, omitting nulls."""
    typed: Dict[str, Scalar] = {}
    for key, value in obj.items():
        scalar = type_value(value)
        if scalar is not None:
            typed[key] = scalar
    return typed


def extract_arguments(serialized: str) -> Union[Dict[str, Scalar], MalformedArguments]:
    """
    Decode a serialized argument object into a typed argument map.

    Args:
        serialized: JSON text that should hold an object

    Returns:
        Typed arguments, or MalformedArguments describing why decoding failed
    """
    if serialized is None or not serialized.strip():
        return {}

    try:
        decoded = json.loads(serialized)
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse tool arguments: {e}")
        return MalformedArguments(raw=serialized, reason=f"Invalid JSON arguments: {e}")

    if not isinstance(decoded, dict):
        return MalformedArguments(
            raw=serialized,
            reason=f"Arguments must be a JSON object, got {type(decoded).__name__}",
        )

    return type_fields(decoded)
