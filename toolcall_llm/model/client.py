"""Model client for locally hosted, OpenAI-compatible chat models."""

import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

from toolcall_llm.errors import ModelTransportError

logger = logging.getLogger(__name__)


class FinishReason(str, Enum):
    """Why the model stopped generating."""
    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    LENGTH = "length"
    CONTENT_FILTER = "content_filter"
    FUNCTION_CALL = "function_call"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "FinishReason":
        """Map a provider finish reason string onto the enum."""
        if value is None:
            return cls.STOP
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class NativeToolCall:
    """A structured function call surfaced by the model."""
    id: str
    name: str
    arguments: str = "{}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the OpenAI tool-call dictionary."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class ModelResponse:
    """Normalized result of one completion call."""
    text: str = ""
    tool_calls: List[NativeToolCall] = field(default_factory=list)
    finish_reason: FinishReason = FinishReason.STOP


@dataclass
class StreamChunk:
    """Incremental fragment of a streamed completion."""
    text: str = ""
    tool_call_index: Optional[int] = None
    tool_call_id: Optional[str] = None
    function_name: Optional[str] = None
    arguments_delta: str = ""
    finish_reason: Optional[FinishReason] = None

    @property
    def has_tool_call(self) -> bool:
        return self.tool_call_index is not None


@dataclass
class CompletionOptions:
    """Sampling and tool options for a completion call."""
    temperature: float = 0.1
    top_p: float = 0.9
    max_output_tokens: Optional[int] = None
    tools: Optional[List[Dict[str, Any]]] = None
    timeout: Optional[float] = None

    def to_kwargs(self) -> Dict[str, Any]:
        """Convert to litellm completion keyword arguments."""
        kwargs: Dict[str, Any] = {
            "temperature": self.temperature,
            "top_p": self.top_p,
        }
        if self.max_output_tokens:
            kwargs["max_tokens"] = self.max_output_tokens
        if self.tools:
            kwargs["tools"] = self.tools
            kwargs["tool_choice"] = "auto"
        if self.timeout:
            kwargs["timeout"] = self.timeout
        return kwargs


class ModelClient(ABC):
    """Abstract base class for chat model clients."""

    @abstractmethod
    def complete(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[CompletionOptions] = None,
    ) -> ModelResponse:
        """
        Run one chat completion.

        Args:
            messages: Chat messages as OpenAI-style dictionaries
            options: Sampling options and optional tool manifest

        Returns:
            Normalized ModelResponse

        Raises:
            ModelTransportError: If the endpoint fails
        """
        pass

    @abstractmethod
    def stream(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[CompletionOptions] = None,
    ) -> Iterator[StreamChunk]:
        """
        Run a streamed chat completion.

        Yields:
            StreamChunk fragments with text or tool-call deltas
        """
        pass


class LiteLLMClient(ModelClient):
    """Client for any model litellm can reach (Ollama, vLLM, Foundry Local, ...)."""

    def __init__(
        self,
        model: str,
        api_base: Optional[str] = None,
        api_key: Optional[str] = None,
    ):
        """
        Initialize litellm client.

        Args:
            model: litellm model identifier (e.g. "ollama_chat/qwen2.5-coder:7b")
            api_base: Endpoint of the local inference server (optional)
            api_key: API key (defaults to TOOLCALL_LLM_API_KEY env var)
        """
        import litellm

        litellm.suppress_debug_info = True
        self._litellm = litellm
        self.model = model
        self.api_base = api_base
        self.api_key = api_key or os.getenv("TOOLCALL_LLM_API_KEY")

    def _completion_kwargs(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[CompletionOptions],
    ) -> Dict[str, Any]:
        completion_kwargs = {
            "model": self.model,
            "messages": messages,
            **(options or CompletionOptions()).to_kwargs(),
        }
        if self.api_base:
            completion_kwargs["api_base"] = self.api_base
        if self.api_key:
            completion_kwargs["api_key"] = self.api_key
        return completion_kwargs

    def complete(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[CompletionOptions] = None,
    ) -> ModelResponse:
        """Run one chat completion through litellm."""
        completion_kwargs = self._completion_kwargs(messages, options)
        logger.debug(f"Completion request: model={self.model}, messages={len(messages)}")

        try:
            response = self._litellm.completion(**completion_kwargs)
            choice = response.choices[0]
        except Exception as e:
            raise ModelTransportError(f"Model call failed: {e}") from e

        message = choice.message
        tool_calls = [
            NativeToolCall(
                id=call.id or f"call_{index}",
                name=call.function.name,
                arguments=_serialize_arguments(call.function.arguments),
            )
            for index, call in enumerate(getattr(message, "tool_calls", None) or [])
        ]

        finish_reason = FinishReason.parse(choice.finish_reason)
        # Some local runtimes report "stop" even when tool calls are present
        if tool_calls and finish_reason == FinishReason.STOP:
            finish_reason = FinishReason.TOOL_CALLS

        return ModelResponse(
            text=message.content or "",
            tool_calls=tool_calls,
            finish_reason=finish_reason,
        )

    def stream(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[CompletionOptions] = None,
    ) -> Iterator[StreamChunk]:
        """Stream a chat completion through litellm."""
        completion_kwargs = self._completion_kwargs(messages, options)
        completion_kwargs["stream"] = True

        try:
            response = self._litellm.completion(**completion_kwargs)
            for part in response:
                if not part.choices:
                    continue
                choice = part.choices[0]
                delta = choice.delta
                finish_reason = (
                    FinishReason.parse(choice.finish_reason) if choice.finish_reason else None
                )

                content = getattr(delta, "content", None)
                if content:
                    yield StreamChunk(text=content, finish_reason=finish_reason)
                    finish_reason = None

                for call in getattr(delta, "tool_calls", None) or []:
                    function = call.function
                    yield StreamChunk(
                        tool_call_index=call.index or 0,
                        tool_call_id=call.id,
                        function_name=getattr(function, "name", None),
                        arguments_delta=getattr(function, "arguments", None) or "",
                        finish_reason=finish_reason,
                    )
                    finish_reason = None

                if finish_reason is not None:
                    yield StreamChunk(finish_reason=finish_reason)
        except ModelTransportError:
            raise
        except Exception as e:
            raise ModelTransportError(f"Streaming model call failed: {e}") from e


def _serialize_arguments(arguments: Any) -> str:
    """Ollama-style providers may hand back arguments as a dict."""
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments)


def collect_stream(chunks: Iterable[StreamChunk]) -> ModelResponse:
    """
    Assemble streamed fragments into a single ModelResponse.

    Tool-call fragments are grouped by their index; the id and name arrive on
    the first fragment and argument text is concatenated in order.
    """
    text_parts: List[str] = []
    calls: Dict[int, Dict[str, Any]] = {}
    finish_reason = FinishReason.STOP

    for chunk in chunks:
        if chunk.text:
            text_parts.append(chunk.text)
        if chunk.has_tool_call:
            entry = calls.setdefault(chunk.tool_call_index, {"id": None, "name": "", "arguments": []})
            if chunk.tool_call_id:
                entry["id"] = chunk.tool_call_id
            if chunk.function_name:
                entry["name"] = chunk.function_name
            entry["arguments"].append(chunk.arguments_delta)
        if chunk.finish_reason is not None:
            finish_reason = chunk.finish_reason

    tool_calls = [
        NativeToolCall(
            id=entry["id"] or f"call_{index}",
            name=entry["name"],
            arguments="".join(entry["arguments"]) or "{}",
        )
        for index, entry in sorted(calls.items())
    ]
    if tool_calls and finish_reason == FinishReason.STOP:
        finish_reason = FinishReason.TOOL_CALLS

    return ModelResponse(text="".join(text_parts), tool_calls=tool_calls, finish_reason=finish_reason)


def supports_native_tools(model: str) -> bool:
    """Ask litellm whether the model supports structured function calling."""
    try:
        import litellm

        return bool(litellm.supports_function_calling(model=model))
    except Exception as e:
        logger.debug(f"Could not determine function-calling support for {model}: {e}")
        return False


def create_client(
    model: str,
    api_base: Optional[str] = None,
    api_key: Optional[str] = None,
) -> ModelClient:
    """
    Factory function to create a model client.

    Args:
        model: litellm model identifier
        api_base: Optional endpoint of the local inference server
        api_key: Optional API key

    Returns:
        ModelClient instance
    """
    if not model:
        raise ValueError("A model identifier is required")
    return LiteLLMClient(model=model, api_base=api_base, api_key=api_key)
