"""Canned demonstration scenarios for the SMS and weather tools."""

import logging
from typing import Callable, Dict, Iterator, List, Optional

from toolcall_llm.agent.dispatch import CancellationToken, ToolDispatcher
from toolcall_llm.agent.messages import Message, SystemMessage, UserMessage, to_dicts
from toolcall_llm.agent.results import ChatOutcome
from toolcall_llm.model.client import CompletionOptions, ModelClient, StreamChunk
from toolcall_llm.model.prompts import (
    DEFAULT_SMS_MESSAGE,
    DEFAULT_WEATHER_MESSAGE,
    SMS_SYSTEM_PROMPT,
    STREAM_SMS_SYSTEM_PROMPT,
)
from toolcall_llm.tools.registry import ToolRegistry
from toolcall_llm.tools.sms import SMS_TOOL_SPEC

logger = logging.getLogger(__name__)

STREAM_MAX_OUTPUT_TOKENS = 2048


def run_sms_scenario(
    dispatcher: ToolDispatcher,
    message: Optional[str] = None,
    max_output_tokens: Optional[int] = None,
    cancel: Optional[CancellationToken] = None,
) -> ChatOutcome:
    """
    Ask the model to send an SMS and execute the call it produces.

    Args:
        dispatcher: Dispatcher whose registry holds SendSms
        message: User request (defaults to ordering books by SMS)
        max_output_tokens: Output token limit

    Returns:
        ToolCallCompleted if the model asked for a tool, otherwise PlainText
    """
    logger.info("Running SMS scenario")
    messages: List[Message] = [
        SystemMessage(SMS_SYSTEM_PROMPT),
        UserMessage(message or DEFAULT_SMS_MESSAGE),
    ]
    return dispatcher.complete_with_tools(messages, max_output_tokens, cancel)


def run_weather_scenario(
    dispatcher: ToolDispatcher,
    message: Optional[str] = None,
    max_output_tokens: Optional[int] = None,
    cancel: Optional[CancellationToken] = None,
) -> List[Message]:
    """
    Ask about the weather and let the model chain location and weather lookups.

    Returns:
        The full conversation, ending with the model's answer
    """
    logger.info("Running weather scenario")
    messages: List[Message] = [UserMessage(message or DEFAULT_WEATHER_MESSAGE)]
    return dispatcher.run_rounds(messages, max_output_tokens=max_output_tokens, cancel=cancel)


def stream_sms_scenario(
    client: ModelClient,
    registry: ToolRegistry,
    message: Optional[str] = None,
    max_output_tokens: int = STREAM_MAX_OUTPUT_TOKENS,
) -> Iterator[StreamChunk]:
    """
    Stream the SMS request and yield text and tool-call fragments as they arrive.

    Nothing is executed; the caller decides what to do with the fragments.
    """
    spec = registry.spec(SMS_TOOL_SPEC.name) or SMS_TOOL_SPEC
    messages = [
        SystemMessage(STREAM_SMS_SYSTEM_PROMPT),
        UserMessage(message or DEFAULT_SMS_MESSAGE),
    ]
    options = CompletionOptions(max_output_tokens=max_output_tokens, tools=[spec.to_manifest()])
    return client.stream(to_dicts(messages), options)


SCENARIOS: Dict[str, Callable] = {
    "sms": run_sms_scenario,
    "weather": run_weather_scenario,
    "stream": stream_sms_scenario,
}
