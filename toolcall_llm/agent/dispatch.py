"""Tool-calling dispatch loop."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from enum import Enum
from typing import List, Optional, Sequence

from toolcall_llm.agent.interpreter import ResponseInterpreter, split_reasoning
from toolcall_llm.agent.messages import (
    AssistantMessage,
    Message,
    SystemMessage,
    ToolResultMessage,
    UserMessage,
    to_dicts,
)
from toolcall_llm.agent.models import ModelConfig
from toolcall_llm.agent.results import (
    ChatOutcome,
    PlainText,
    ToolCallCompleted,
    ToolCallPending,
    ToolCallRequest,
    ToolCallResult,
    ToolCallSource,
    ToolMode,
    TurnReport,
)
from toolcall_llm.agent.arguments import extract_arguments
from toolcall_llm.errors import (
    FatalFinishError,
    ModelTransportError,
    RoundLimitExceeded,
    ToolArgumentError,
    ToolErrorKind,
    ToolTimeoutError,
    TurnCancelled,
    UnknownToolError,
)
from toolcall_llm.logging import Logger, NullLogger
from toolcall_llm.model.client import (
    CompletionOptions,
    FinishReason,
    ModelClient,
    ModelResponse,
    NativeToolCall,
    supports_native_tools,
)
from toolcall_llm.model.prompts import (
    NO_RESPONSE_TEXT,
    create_tool_result_prompt,
    with_tool_catalogue,
)
from toolcall_llm.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

FATAL_FINISH_MESSAGES = {
    FinishReason.LENGTH: "Incomplete model output due to MaxTokens parameter or token limit exceeded.",
    FinishReason.CONTENT_FILTER: "Omitted content due to a content filter flag.",
    FinishReason.FUNCTION_CALL: "Deprecated in favor of tool calls.",
}

# How often a pending tool is checked for cancellation
POLL_INTERVAL_SECONDS = 0.1


class TurnState(str, Enum):
    """Lifecycle of a dispatch turn."""
    AWAITING_MODEL = "awaiting_model"
    TOOL_REQUESTED = "tool_requested"
    EXECUTING_TOOL = "executing_tool"
    FINAL = "final"
    FATAL = "fatal"


class CancellationToken:
    """Thread-safe flag used to abort a running turn."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TurnCancelled("Turn cancelled")


def chat_error_text(error: Exception) -> str:
    return f"Error during chat completion: {error}"


class ToolDispatcher:
    """
    Runs tool-calling turns against a model client and a tool registry.

    A single turn is one model call, at most one tool execution and one
    follow-up model call. Multi-round dispatch keeps calling the model and
    executing every requested tool until it stops asking for tools.
    """

    def __init__(
        self,
        client: ModelClient,
        registry: ToolRegistry,
        config: Optional[ModelConfig] = None,
        event_logger: Optional[Logger] = None,
        interpreter: Optional[ResponseInterpreter] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            client: Model client used for every call
            registry: Tools available to the model
            config: Model configuration (defaults to ModelConfig())
            event_logger: Receives progress events (defaults to NullLogger)
            interpreter: Response interpreter (defaults to ResponseInterpreter())
        """
        self.client = client
        self.registry = registry
        self.config = config or ModelConfig()
        self.events = event_logger or NullLogger()
        self.interpreter = interpreter or ResponseInterpreter()
        self._mode: Optional[ToolMode] = None
        self._executor: Optional[ThreadPoolExecutor] = None

    def __enter__(self) -> "ToolDispatcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the tool worker threads."""
        if self._executor is not None:
            # A timed-out tool may still be running; do not block on it
            self._executor.shutdown(wait=False)
            self._executor = None

    @property
    def mode(self) -> ToolMode:
        """Tool presentation mode, resolving "auto" once against litellm."""
        if self._mode is None:
            if self.config.tool_mode == ToolMode.AUTO:
                native = supports_native_tools(self.config.model)
                self._mode = ToolMode.NATIVE if native else ToolMode.TEXT
                logger.info(f"Tool mode for {self.config.model}: {self._mode.value}")
            else:
                self._mode = self.config.tool_mode
        return self._mode

    def _state(self, state: TurnState, **data) -> None:
        self.events.debug("turn.state", state.value, data or None)

    def _options(self, native: bool, max_output_tokens: Optional[int]) -> CompletionOptions:
        return CompletionOptions(
            temperature=self.config.temperature,
            top_p=self.config.top_p,
            max_output_tokens=max_output_tokens or self.config.max_tokens,
            tools=self.registry.manifest() if native and len(self.registry) else None,
            timeout=self.config.request_timeout,
        )

    def _call_model(
        self,
        messages: Sequence[Message],
        options: CompletionOptions,
        cancel: CancellationToken,
    ) -> ModelResponse:
        cancel.raise_if_cancelled()
        self._state(TurnState.AWAITING_MODEL)
        self.events.info(
            "model.request",
            f"Calling {self.config.model}",
            {"messages": len(messages), "tools": len(options.tools or [])},
        )
        response = self.client.complete(to_dicts(messages), options)
        logger.debug(
            f"Model finished with {response.finish_reason.value}, "
            f"{len(response.tool_calls)} native tool call(s)"
        )
        return response

    def _build_messages(
        self,
        mode: ToolMode,
        system_prompt: Optional[str],
        history: Sequence[Message],
        user_text: str,
    ) -> List[Message]:
        messages: List[Message] = []
        if mode == ToolMode.TEXT:
            system_prompt = with_tool_catalogue(system_prompt or "", self.registry.schemas())
        if system_prompt:
            messages.append(SystemMessage(system_prompt))
        messages.extend(history)
        messages.append(UserMessage(user_text))
        return messages

    def run_turn(
        self,
        history: Sequence[Message],
        system_prompt: Optional[str],
        user_text: str,
        max_output_tokens: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """Run one turn and return the text to show the user."""
        return self.dispatch_turn(history, system_prompt, user_text, max_output_tokens, cancel).text

    def dispatch_turn(
        self,
        history: Sequence[Message],
        system_prompt: Optional[str],
        user_text: str,
        max_output_tokens: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> TurnReport:
        """
        Run one turn: model call, optional tool execution, optional follow-up call.

        When the first native-mode call fails, the turn is retried once with
        the tool catalogue embedded in the system prompt instead.

        Args:
            history: Earlier messages of the conversation
            system_prompt: System instructions (may be None)
            user_text: New user message
            max_output_tokens: Output token limit (defaults to config.max_tokens)
            cancel: Token that aborts the turn

        Returns:
            TurnReport with the final text and the interpreted outcome

        Raises:
            TurnCancelled: If the token is cancelled mid-turn
        """
        cancel = cancel or CancellationToken()
        mode = self.mode
        self.events.info("turn.started", user_text, {"mode": mode.value})

        try:
            report = self._dispatch(mode, history, system_prompt, user_text, max_output_tokens, cancel)
        except TurnCancelled:
            self.events.warning("turn.cancelled", "Turn cancelled")
            raise
        except ModelTransportError as e:
            if mode != ToolMode.NATIVE:
                return self._failed_turn(e, mode)
            logger.warning(f"Native tool calling failed, retrying in text mode: {e}")
            self.events.warning("fallback.text", "Native tool calling failed, retrying with JSON tool prompt", {"error": str(e)})
            try:
                report = self._dispatch(ToolMode.TEXT, history, system_prompt, user_text, max_output_tokens, cancel)
            except ModelTransportError as retry_error:
                return self._failed_turn(retry_error, ToolMode.TEXT)

        self._state(TurnState.FINAL)
        self.events.info("turn.completed", "Turn completed", {"model_calls": report.model_calls})
        return report

    def _failed_turn(self, error: ModelTransportError, mode: ToolMode) -> TurnReport:
        text = chat_error_text(error)
        logger.error(text)
        self.events.error("turn.fatal", text)
        return TurnReport(text=text, outcome=PlainText(content=text), model_calls=0, mode=mode)

    def _dispatch(
        self,
        mode: ToolMode,
        history: Sequence[Message],
        system_prompt: Optional[str],
        user_text: str,
        max_output_tokens: Optional[int],
        cancel: CancellationToken,
    ) -> TurnReport:
        messages = self._build_messages(mode, system_prompt, history, user_text)
        options = self._options(mode == ToolMode.NATIVE, max_output_tokens)

        response = self._call_model(messages, options, cancel)
        outcome = self.interpreter.interpret(response)

        if isinstance(outcome, PlainText):
            return TurnReport(
                text=outcome.content or NO_RESPONSE_TEXT,
                outcome=outcome,
                model_calls=1,
                mode=mode,
            )

        self._state(TurnState.TOOL_REQUESTED, tool=outcome.request.function_name)
        result = self.execute(outcome.request, cancel)
        completed = outcome.complete(result)
        follow_up = messages + self._result_messages(completed, response)

        try:
            second = self._call_model(follow_up, options, cancel)
        except ModelTransportError as e:
            # The tool already ran; report instead of retrying the turn
            text = chat_error_text(e)
            logger.error(text)
            return TurnReport(text=text, outcome=completed, model_calls=2, mode=mode)

        _, visible = split_reasoning(second.text or "")
        return TurnReport(
            text=visible or NO_RESPONSE_TEXT,
            outcome=completed,
            model_calls=2,
            mode=mode,
        )

    def _result_messages(self, completed: ToolCallCompleted, response: ModelResponse) -> List[Message]:
        request = completed.request
        if request.source == ToolCallSource.NATIVE:
            call = NativeToolCall(id=request.id, name=request.function_name, arguments=request.raw_arguments)
            return [
                AssistantMessage(text=completed.content or "", tool_calls=(call,)),
                ToolResultMessage(call_id=request.id, text=completed.result.output_text, name=request.function_name),
            ]
        return [
            AssistantMessage(text=response.text or ""),
            UserMessage(create_tool_result_prompt(completed.result.output_text)),
        ]

    def complete_with_tools(
        self,
        messages: Sequence[Message],
        max_output_tokens: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ChatOutcome:
        """
        Make one model call and execute the tool it asks for, if any.

        Returns:
            ToolCallCompleted when a tool ran, otherwise PlainText. A transport
            failure yields PlainText holding the error text.
        """
        cancel = cancel or CancellationToken()
        options = self._options(self.mode == ToolMode.NATIVE, max_output_tokens)
        try:
            response = self._call_model(messages, options, cancel)
        except ModelTransportError as e:
            text = chat_error_text(e)
            logger.error(text)
            return PlainText(content=text)

        outcome = self.interpreter.interpret(response)
        if isinstance(outcome, ToolCallPending):
            return outcome.complete(self.execute(outcome.request, cancel))
        return outcome

    def execute(
        self,
        request: ToolCallRequest,
        cancel: Optional[CancellationToken] = None,
    ) -> ToolCallResult:
        """
        Execute a tool call request through the registry.

        Malformed arguments, unknown tools, handler errors and timeouts come
        back as failed results whose text is meant for the model.

        Raises:
            TurnCancelled: If the token is cancelled while the tool runs
        """
        cancel = cancel or CancellationToken()
        name = request.function_name

        if not request.parsed:
            reason = request.arguments.reason
            return self._tool_failure(
                request,
                ToolErrorKind.MALFORMED_ARGUMENTS,
                f"Error: Invalid arguments for {name}: {reason}",
                reason,
            )

        if name not in self.registry:
            return self._tool_failure(
                request,
                ToolErrorKind.UNKNOWN_TOOL,
                f"Error: Unknown tool '{name}'",
                f"Unknown tool '{name}'",
            )

        self._state(TurnState.EXECUTING_TOOL, tool=name)
        self.events.info("tool.call", f"Calling {name}", {"arguments": request.arguments})

        try:
            output = self._run_handler(name, request.arguments, cancel)
        except (ToolArgumentError, UnknownToolError) as e:
            kind = ToolErrorKind.UNKNOWN_TOOL if isinstance(e, UnknownToolError) else ToolErrorKind.MALFORMED_ARGUMENTS
            return self._tool_failure(request, kind, f"Error: {e}", str(e))
        except TurnCancelled:
            raise
        except Exception as e:
            logger.error(f"Tool {name} failed: {e}", exc_info=True)
            return self._tool_failure(
                request,
                ToolErrorKind.EXECUTION_FAILURE,
                f"Error executing {name}: {e}",
                str(e),
            )

        self.events.info("tool.result", f"{name} finished", {"output": output})
        return ToolCallResult(request=request, output_text=output, succeeded=True)

    def _run_handler(self, name: str, arguments, cancel: CancellationToken) -> str:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="toolcall-tool")

        future = self._executor.submit(self.registry.invoke, name, arguments)
        timeout = self.config.tool_timeout
        deadline = time.monotonic() + timeout

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._abandon(future)
                raise ToolTimeoutError(f"timed out after {timeout}s")
            try:
                return future.result(timeout=min(POLL_INTERVAL_SECONDS, remaining))
            except FutureTimeoutError:
                if cancel.cancelled:
                    self._abandon(future)
                    raise TurnCancelled(f"Turn cancelled while {name} was running")

    def _abandon(self, future) -> None:
        """Give up on a running handler; later tools get a fresh worker pool."""
        if not future.cancel():
            logger.warning("Abandoning a tool handler that is still running")
            self.close()

    def _tool_failure(
        self,
        request: ToolCallRequest,
        kind: ToolErrorKind,
        output_text: str,
        detail: str,
    ) -> ToolCallResult:
        logger.warning(output_text)
        self.events.warning("tool.error", output_text, {"kind": kind.value})
        return ToolCallResult(
            request=request,
            output_text=output_text,
            succeeded=False,
            error_kind=kind,
            error_detail=detail,
        )

    def run_rounds(
        self,
        messages: Sequence[Message],
        max_output_tokens: Optional[int] = None,
        max_rounds: Optional[int] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> List[Message]:
        """
        Keep calling the model until it stops requesting tools.

        Every native tool call of a response is executed in order and answered
        with its own tool-result message before the next model call.

        Args:
            messages: Conversation to continue
            max_output_tokens: Output token limit per call
            max_rounds: Model calls allowed (defaults to config.max_rounds)
            cancel: Token that aborts the loop

        Returns:
            The conversation including every assistant and tool message added

        Raises:
            FatalFinishError: If the model stops for length, content filter or another reason
            RoundLimitExceeded: If the model is still requesting tools after max_rounds calls
            ModelTransportError: If a model call fails
            TurnCancelled: If the token is cancelled
        """
        cancel = cancel or CancellationToken()
        history: List[Message] = list(messages)
        limit = max_rounds or self.config.max_rounds
        options = self._options(True, max_output_tokens)

        for round_number in range(1, limit + 1):
            self.events.info("round.started", f"Round {round_number}", {"round": round_number})
            response = self._call_model(history, options, cancel)
            finish_reason = response.finish_reason
            if finish_reason == FinishReason.TOOL_CALLS and not response.tool_calls:
                finish_reason = FinishReason.STOP

            _, visible = split_reasoning(response.text or "")

            if finish_reason == FinishReason.STOP:
                history.append(AssistantMessage(text=visible))
                self._state(TurnState.FINAL)
                self.events.info("turn.completed", "Model finished", {"rounds": round_number})
                return history

            if finish_reason == FinishReason.TOOL_CALLS:
                history.append(AssistantMessage(text=visible, tool_calls=tuple(response.tool_calls)))
                self._state(TurnState.TOOL_REQUESTED, tools=[call.name for call in response.tool_calls])
                for call in response.tool_calls:
                    request = ToolCallRequest(
                        source=ToolCallSource.NATIVE,
                        id=call.id,
                        function_name=call.name,
                        raw_arguments=call.arguments,
                        arguments=extract_arguments(call.arguments),
                    )
                    result = self.execute(request, cancel)
                    history.append(ToolResultMessage(call_id=call.id, text=result.output_text, name=call.name))
                continue

            message = FATAL_FINISH_MESSAGES.get(finish_reason, f"Unexpected finish reason: {finish_reason.value}")
            self._state(TurnState.FATAL, finish_reason=finish_reason.value)
            self.events.error("turn.fatal", message, {"finish_reason": finish_reason.value})
            raise FatalFinishError(finish_reason.value, message)

        self._state(TurnState.FATAL, rounds=limit)
        raise RoundLimitExceeded(f"Model was still requesting tools after {limit} rounds")
