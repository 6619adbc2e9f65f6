"""Multi-turn conversation over a dispatcher."""

import logging
from typing import List, Optional, Tuple

from toolcall_llm.agent.dispatch import CancellationToken, ToolDispatcher
from toolcall_llm.agent.messages import AssistantMessage, Message, UserMessage

logger = logging.getLogger(__name__)


class ConversationSession:
    """Keeps the history of one conversation and runs each user turn against it."""

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        system_prompt: Optional[str] = None,
        max_output_tokens: Optional[int] = None,
    ):
        self.dispatcher = dispatcher
        self.system_prompt = system_prompt
        self.max_output_tokens = max_output_tokens
        self._history: List[Message] = []
        self._turns = 0

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._history)

    @property
    def turns(self) -> int:
        return self._turns

    def send(self, user_text: str, cancel: Optional[CancellationToken] = None) -> str:
        """
        Run one turn and record it in the history.

        Tool-call intermediates are not kept; the history only gains the user
        message and the final assistant text. A cancelled turn leaves the
        history unchanged.

        Args:
            user_text: New user message
            cancel: Token that aborts the turn

        Returns:
            Final assistant text

        Raises:
            TurnCancelled: If the turn was cancelled
        """
        reply = self.dispatcher.run_turn(
            self._history,
            self.system_prompt,
            user_text,
            max_output_tokens=self.max_output_tokens,
            cancel=cancel,
        )
        if cancel is not None:
            # The last model call may have finished after the turn was cancelled
            cancel.raise_if_cancelled()
        self._history.append(UserMessage(user_text))
        self._history.append(AssistantMessage(reply))
        self._turns += 1
        return reply

    def reset(self) -> None:
        """Forget the conversation so far."""
        logger.debug(f"Clearing {len(self._history)} messages")
        self._history.clear()
        self._turns = 0
