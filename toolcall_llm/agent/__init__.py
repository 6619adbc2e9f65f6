"""Tool-calling agent: argument typing, interpretation, dispatch and sessions."""

from toolcall_llm.agent.arguments import (
    MalformedArguments,
    extract_arguments,
    type_value,
    type_fields,
)
from toolcall_llm.agent.messages import (
    Message,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolResultMessage,
)
from toolcall_llm.agent.results import (
    ToolCallSource,
    ToolMode,
    ToolCallRequest,
    ToolCallResult,
    ChatOutcome,
    PlainText,
    ToolCallPending,
    ToolCallCompleted,
    TurnReport,
)
from toolcall_llm.agent.models import ModelConfig
from toolcall_llm.agent.interpreter import ResponseInterpreter
from toolcall_llm.agent.dispatch import (
    CancellationToken,
    ToolDispatcher,
    TurnState,
)
from toolcall_llm.agent.session import ConversationSession
from toolcall_llm.agent.scenarios import (
    SCENARIOS,
    run_sms_scenario,
    run_weather_scenario,
    stream_sms_scenario,
)

__all__ = [
    "MalformedArguments",
    "extract_arguments",
    "type_value",
    "type_fields",
    "Message",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolResultMessage",
    "ToolCallSource",
    "ToolMode",
    "ToolCallRequest",
    "ToolCallResult",
    "ChatOutcome",
    "PlainText",
    "ToolCallPending",
    "ToolCallCompleted",
    "TurnReport",
    "ModelConfig",
    "ResponseInterpreter",
    "CancellationToken",
    "ToolDispatcher",
    "TurnState",
    "ConversationSession",
    "SCENARIOS",
    "run_sms_scenario",
    "run_weather_scenario",
    "stream_sms_scenario",
]
