"""Result dataclasses for tool-calling turns."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from toolcall_llm.agent.arguments import MalformedArguments
from toolcall_llm.errors import ToolErrorKind
from toolcall_llm.tools.registry import Scalar


class ToolCallSource(str, Enum):
    """Where a tool call request came from."""
    NATIVE = "native"
    PARSED_FROM_TEXT = "parsed_from_text"


class ToolMode(str, Enum):
    """How tools are presented to the model."""
    AUTO = "auto"
    NATIVE = "native"
    TEXT = "text"


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call the model asked for."""
    source: ToolCallSource
    function_name: str
    raw_arguments: str
    arguments: Union[Dict[str, Scalar], MalformedArguments] = field(default_factory=dict)
    id: Optional[str] = None  # Only native calls carry an id

    @property
    def parsed(self) -> bool:
        return not isinstance(self.arguments, MalformedArguments)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source": self.source.value,
            "id": self.id,
            "function_name": self.function_name,
            "raw_arguments": self.raw_arguments,
            "arguments": self.arguments if self.parsed else None,
            "parsed": self.parsed,
        }


@dataclass(frozen=True)
class ToolCallResult:
    """Outcome of executing a tool call request."""
    request: ToolCallRequest
    output_text: str
    succeeded: bool
    error_kind: Optional[ToolErrorKind] = None
    error_detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "request": self.request.to_dict(),
            "output_text": self.output_text,
            "succeeded": self.succeeded,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error_detail": self.error_detail,
        }


@dataclass(frozen=True)
class PlainText:
    """The model answered without requesting a tool."""
    thoughts: Optional[str] = None
    content: Optional[str] = None


@dataclass(frozen=True)
class ToolCallCompleted:
    """A tool call request together with its executed result."""
    thoughts: Optional[str]
    content: Optional[str]
    request: ToolCallRequest
    result: ToolCallResult


@dataclass(frozen=True)
class ToolCallPending:
    """The model requested a tool that has not been executed yet."""
    thoughts: Optional[str]
    content: Optional[str]
    request: ToolCallRequest

    def complete(self, result: ToolCallResult) -> ToolCallCompleted:
        return ToolCallCompleted(
            thoughts=self.thoughts,
            content=self.content,
            request=self.request,
            result=result,
        )


ChatOutcome = Union[PlainText, ToolCallPending, ToolCallCompleted]


@dataclass
class TurnReport:
    """Everything a single-turn dispatch produced."""
    text: str
    outcome: ChatOutcome
    model_calls: int = 0
    mode: ToolMode = ToolMode.NATIVE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        d: Dict[str, Any] = {
            "text": self.text,
            "model_calls": self.model_calls,
            "mode": self.mode.value,
            "thoughts": self.outcome.thoughts,
        }
        if isinstance(self.outcome, (ToolCallPending, ToolCallCompleted)):
            d["request"] = self.outcome.request.to_dict()
        if isinstance(self.outcome, ToolCallCompleted):
            d["result"] = self.outcome.result.to_dict()
        return d
