"""Exception hierarchy for toolcall-llm."""

from enum import Enum


class ToolErrorKind(str, Enum):
    """Recoverable failure categories surfaced to the model as text."""
    MALFORMED_ARGUMENTS = "malformed_arguments"
    UNKNOWN_TOOL = "unknown_tool"
    EXECUTION_FAILURE = "execution_failure"


class ToolcallError(Exception):
    """Base class for all toolcall-llm errors."""


class ToolError(ToolcallError):
    """A tool could not produce a result."""


class ToolArgumentError(ToolError):
    """Arguments passed to a tool are missing or invalid."""


class UnknownToolError(ToolError):
    """The requested tool is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool '{name}'")
        self.name = name


class ToolTimeoutError(ToolError):
    """A tool handler did not finish before its timeout."""


class ModelTransportError(ToolcallError):
    """The model endpoint failed or returned a malformed completion."""


class DispatchError(ToolcallError):
    """A turn or scenario cannot continue."""


class FatalFinishError(DispatchError):
    """The model stopped for a reason whose output cannot be trusted."""

    def __init__(self, finish_reason: str, message: str):
        super().__init__(message)
        self.finish_reason = finish_reason


class RoundLimitExceeded(DispatchError):
    """Multi-round dispatch kept requesting tools past the configured limit."""


class TurnCancelled(DispatchError):
    """The turn was aborted through its cancellation token."""
