"""Model client module for local tool-calling chat models."""

from .client import (
    FinishReason,
    NativeToolCall,
    ModelResponse,
    StreamChunk,
    CompletionOptions,
    ModelClient,
    LiteLLMClient,
    collect_stream,
    supports_native_tools,
    create_client,
)
from .prompts import (
    SHELL_ASSISTANT_PROMPT,
    SMS_SYSTEM_PROMPT,
    STREAM_SMS_SYSTEM_PROMPT,
    create_tool_catalogue,
    with_tool_catalogue,
    create_tool_result_prompt,
)

__all__ = [
    'FinishReason',
    'NativeToolCall',
    'ModelResponse',
    'StreamChunk',
    'CompletionOptions',
    'ModelClient',
    'LiteLLMClient',
    'collect_stream',
    'supports_native_tools',
    'create_client',
    'SHELL_ASSISTANT_PROMPT',
    'SMS_SYSTEM_PROMPT',
    'STREAM_SMS_SYSTEM_PROMPT',
    'create_tool_catalogue',
    'with_tool_catalogue',
    'create_tool_result_prompt',
]
