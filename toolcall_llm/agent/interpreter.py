"""Turn a model response into a chat outcome."""

import json
import logging
import re
from typing import Any, Dict, Optional, Tuple

from toolcall_llm.agent.arguments import extract_arguments, type_fields
from toolcall_llm.agent.results import (
    ChatOutcome,
    PlainText,
    ToolCallPending,
    ToolCallRequest,
    ToolCallSource,
)
from toolcall_llm.model.client import ModelResponse
from toolcall_llm.tools.registry import Scalar

logger = logging.getLogger(__name__)

THINK_PATTERN = re.compile(r"<think>(.*?)</think>", re.DOTALL)
FENCED_JSON_PATTERN = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)

# Keys naming the tool in a textual call, in lookup order
NAME_KEYS = ("tool", "function", "name")
# Keys whose object value holds the arguments of a textual call
NESTED_ARGUMENT_KEYS = ("parameters", "arguments")


def split_reasoning(text: str) -> Tuple[Optional[str], str]:
    """
    Separate a <think>...</think> reasoning span from visible text.

    Returns:
        Tuple of (thoughts, visible_text). thoughts is the stripped inner text of
        the first span, or None if there is none; every span is removed from the
        visible text.
    """
    match = THINK_PATTERN.search(text)
    if not match:
        return None, text.strip()
    thoughts = match.group(1).strip()
    visible = THINK_PATTERN.sub("", text).strip()
    return thoughts, visible


def find_json_span(text: str) -> Optional[Tuple[str, str]]:
    """
    Locate a JSON object candidate in free text.

    A fenced ```json block wins; otherwise the span from the first "{" to the
    last "}" is used.

    Returns:
        Tuple of (matched_span, json_text) or None
    """
    fenced = FENCED_JSON_PATTERN.search(text)
    if fenced:
        return fenced.group(0), fenced.group(1)

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return None
    span = text[start:end + 1]
    return span, span


def _split_call_object(obj: Dict[str, Any]) -> Tuple[str, Dict[str, Any], int]:
    """Return (name, argument fields, argument key count) of a decoded call object."""
    name = ""
    name_key = None
    for key in NAME_KEYS:
        if key in obj:
            name_key = key
            break

    fields: Dict[str, Any] = {}
    key_count = 0

    if name_key is not None:
        value = obj[name_key]
        if isinstance(value, dict):
            # {"function": {"name": ..., "parameters": {...}}}
            name = str(value.get("name") or "")
            for key, inner in value.items():
                if key in NAME_KEYS:
                    continue
                key_count += 1
                _merge_field(fields, key, inner)
        elif value is not None:
            name = str(value)

    for key, value in obj.items():
        if key in NAME_KEYS:
            continue
        key_count += 1
        _merge_field(fields, key, value)

    return name, fields, key_count


def _merge_field(fields: Dict[str, Any], key: str, value: Any) -> None:
    if key in NESTED_ARGUMENT_KEYS and isinstance(value, dict):
        fields.update(value)
    else:
        fields[key] = value


def parse_text_tool_call(text: str) -> Optional[Tuple[ToolCallRequest, str]]:
    """
    Parse a tool call written as JSON inside free text.

    Args:
        text: Visible model text

    Returns:
        Tuple of (request, matched_span), or None if the text holds no usable call
    """
    located = find_json_span(text)
    if located is None:
        return None
    span, json_text = located

    try:
        decoded = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.debug(f"Failed to parse JSON from content: {e}")
        return None

    if not isinstance(decoded, dict):
        logger.debug(f"JSON in content is not an object: {type(decoded).__name__}")
        return None

    name, fields, key_count = _split_call_object(decoded)
    if not name or key_count == 0:
        return None

    arguments: Dict[str, Scalar] = type_fields(fields)
    request = ToolCallRequest(
        source=ToolCallSource.PARSED_FROM_TEXT,
        function_name=name,
        raw_arguments=json.dumps(arguments),
        arguments=arguments,
    )
    return request, span


class ResponseInterpreter:
    """Classifies a model response as plain text or a tool call request."""

    def interpret(self, response: ModelResponse) -> ChatOutcome:
        """
        Interpret one model response.

        Native tool calls take precedence over anything in the text. Only when
        there are none is the visible text scanned for a JSON tool call.

        Args:
            response: Normalized model response

        Returns:
            PlainText or ToolCallPending
        """
        thoughts, visible = split_reasoning(response.text or "")
        content: Optional[str] = visible or None

        if response.tool_calls:
            if len(response.tool_calls) > 1:
                ignored = [call.name for call in response.tool_calls[1:]]
                logger.debug(f"Ignoring additional native tool calls: {ignored}")
            call = response.tool_calls[0]
            request = ToolCallRequest(
                source=ToolCallSource.NATIVE,
                id=call.id,
                function_name=call.name,
                raw_arguments=call.arguments,
                arguments=extract_arguments(call.arguments),
            )
            return ToolCallPending(thoughts=thoughts, content=content, request=request)

        if visible:
            parsed = parse_text_tool_call(visible)
            if parsed is not None:
                request, span = parsed
                if span == visible:
                    content = None
                return ToolCallPending(thoughts=thoughts, content=content, request=request)

        return PlainText(thoughts=thoughts, content=content)
