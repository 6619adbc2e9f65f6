"""Chat message types exchanged with the model."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from toolcall_llm.model.client import NativeToolCall


@dataclass(frozen=True)
class SystemMessage:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": "system", "content": self.text}


@dataclass(frozen=True)
class UserMessage:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"role": "user", "content": self.text}


@dataclass(frozen=True)
class AssistantMessage:
    """Model output, optionally carrying the native tool calls it requested."""
    text: str
    tool_calls: Tuple[NativeToolCall, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            d["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return d


@dataclass(frozen=True)
class ToolResultMessage:
    """Output of a native tool call, linked back by call id."""
    call_id: str
    text: str
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"role": "tool", "tool_call_id": self.call_id, "content": self.text}
        if self.name:
            d["name"] = self.name
        return d


Message = Union[SystemMessage, UserMessage, AssistantMessage, ToolResultMessage]


def to_dicts(messages: Iterable[Message]) -> List[Dict[str, Any]]:
    """Convert messages to the chat format litellm expects."""
    return [message.to_dict() for message in messages]
