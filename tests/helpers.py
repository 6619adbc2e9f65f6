import json
from typing import Any, Dict, Iterator, List, Optional, Union

from toolcall_llm.agent import ModelConfig, ToolDispatcher
from toolcall_llm.logging import RecordingLogger
from toolcall_llm.model import (
    CompletionOptions,
    FinishReason,
    ModelClient,
    ModelResponse,
    NativeToolCall,
    StreamChunk,
)
from toolcall_llm.tools import ToolRegistry, create_default_registry


class FakeModelClient(ModelClient):
    """Replays scripted responses and records every request."""

    def __init__(self, responses: List[Union[ModelResponse, Exception]], chunks: Optional[List[StreamChunk]] = None):
        self.responses = list(responses)
        self.chunks = list(chunks or [])
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, options=None) -> ModelResponse:
        self.calls.append({"messages": [dict(m) for m in messages], "options": options or CompletionOptions()})
        if not self.responses:
            raise AssertionError("FakeModelClient ran out of scripted responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def stream(self, messages, options=None) -> Iterator[StreamChunk]:
        self.calls.append({"messages": [dict(m) for m in messages], "options": options or CompletionOptions()})
        return iter(self.chunks)


def text_response(text: str, finish_reason: FinishReason = FinishReason.STOP) -> ModelResponse:
    return ModelResponse(text=text, finish_reason=finish_reason)


def tool_response(*calls: NativeToolCall, text: str = "") -> ModelResponse:
    return ModelResponse(text=text, tool_calls=list(calls), finish_reason=FinishReason.TOOL_CALLS)


def native_call(name: str, arguments: Optional[Dict[str, Any]] = None, call_id: str = "call_1") -> NativeToolCall:
    return NativeToolCall(id=call_id, name=name, arguments=json.dumps(arguments or {}))


def make_dispatcher(
    responses: List[Union[ModelResponse, Exception]],
    tool_mode: str = "native",
    registry: Optional[ToolRegistry] = None,
    **config_overrides,
):
    """Build (dispatcher, client, events) around a scripted client."""
    client = FakeModelClient(responses)
    events = RecordingLogger()
    config = ModelConfig(model="ollama_chat/test-model", tool_mode=tool_mode, **config_overrides)
    dispatcher = ToolDispatcher(
        client,
        registry if registry is not None else create_default_registry(),
        config=config,
        event_logger=events,
    )
    return dispatcher, client, events
