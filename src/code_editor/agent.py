"""Agent orchestrator: the reason/act/observe loop around one conversation."""

from enum import Enum
from typing import Optional, Protocol

from .cancellation import CancellationToken
from .conversation import (
    Conversation,
    ToolResultBlock,
    Turn,
    tool_result_turn,
    user_turn,
)
from .llm import LLMClient
from .logging_config import get_logger
from .rag.retriever import ContextRetriever
from .tools.registry import ToolRepository

logger = get_logger(__name__)

CONTEXT_QUERY_SEPARATOR = "\n\nUser Query:\n"


class AgentState(str, Enum):
    AWAITING_USER_INPUT = "awaiting_user_input"
    RETRIEVING_CONTEXT = "retrieving_context"
    REASONING = "reasoning"
    ACTING = "acting"
    OBSERVING = "observing"
    SHUTDOWN = "shutdown"


class UserInputProvider(Protocol):
    def get_user_message(self) -> Optional[str]:
        """Next user message, or None once input is exhausted."""
        ...


class AgentDisplay(Protocol):
    def show_context(self, context: str) -> None: ...

    def show_thinking(self) -> None: ...

    def show_assistant_text(self, text: str) -> None: ...

    def show_tool_execution(self, name: str) -> None: ...

    def show_observing(self) -> None: ...


def build_user_message(user_input: str, context: str) -> str:
    """Prefix retrieved context to the user's input; empty context leaves it unchanged."""
    if not context:
        return user_input
    return f"{context}{CONTEXT_QUERY_SEPARATOR}{user_input}"


class Agent:
    """Runs the conversation until the user input provider is exhausted.

    Each user message may be augmented with retrieved code context, then
    the model is called repeatedly: while it asks for tools, every call is
    executed in order and the results are sent back as one turn; the first
    reply without tool calls ends the exchange.
    """

    def __init__(
        self,
        llm: LLMClient,
        user_input: UserInputProvider,
        tools: ToolRepository,
        display: AgentDisplay,
        retriever: Optional[ContextRetriever] = None,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self.llm = llm
        self.user_input = user_input
        self.tools = tools
        self.display = display
        self.retriever = retriever
        self.token = token or CancellationToken()
        self._conversation = Conversation()
        self._state = AgentState.AWAITING_USER_INPUT

    @property
    def conversation(self) -> Conversation:
        return self._conversation

    @property
    def state(self) -> AgentState:
        return self._state

    def _transition(self, state: AgentState) -> None:
        logger.debug("Agent state: %s -> %s", self._state.value, state.value)
        self._state = state

    def run(self) -> None:
        """Read user messages until end of input.

        Raises:
            TransportError: The LLM provider failed; the conversation cannot continue
            OperationCancelled: The cancellation token was triggered
        """
        while True:
            self._transition(AgentState.AWAITING_USER_INPUT)
            self.token.raise_if_cancelled()
            message = self.user_input.get_user_message()
            if message is None:
                break
            if not message.strip():
                continue
            self.handle_message(message)

        self._transition(AgentState.SHUTDOWN)
        logger.info("User input exhausted, agent shutting down")

    def _retrieve_context(self, user_input: str) -> str:
        if self.retriever is None:
            return ""
        self._transition(AgentState.RETRIEVING_CONTEXT)
        self.token.raise_if_cancelled()
        return self.retriever.retrieve(user_input, self.token)

    def handle_message(self, user_input: str) -> int:
        """Process one user message through the reason/act/observe loop.

        Returns:
            Number of model calls made for this message
        """
        context = self._retrieve_context(user_input)
        if context:
            self.display.show_context(context)
        self._conversation.append(user_turn(build_user_message(user_input, context)))

        iterations = 0
        while True:
            reply = self._reason()
            iterations += 1
            tool_uses = reply.tool_uses
            if not tool_uses:
                break
            results = self._act(reply)
            self._observe(results)

        self._transition(AgentState.AWAITING_USER_INPUT)
        return iterations

    def _reason(self) -> Turn:
        self._transition(AgentState.REASONING)
        self.token.raise_if_cancelled()
        self.display.show_thinking()
        reply = self.llm.infer(self._conversation, self.tools.all_tools())
        self._conversation.append(reply)
        if reply.text:
            self.display.show_assistant_text(reply.text)
        return reply

    def _act(self, reply: Turn) -> list[ToolResultBlock]:
        self._transition(AgentState.ACTING)
        results = []
        for use in reply.tool_uses:
            self.token.raise_if_cancelled()
            self.display.show_tool_execution(use.name)
            result = self.tools.execute(use.id, use.name, use.raw_input)
            results.append(ToolResultBlock(
                tool_use_id=result.tool_use_id,
                content=result.content,
                is_error=result.is_error,
            ))
        return results

    def _observe(self, results: list[ToolResultBlock]) -> None:
        self._transition(AgentState.OBSERVING)
        self.display.show_observing()
        self._conversation.append(tool_result_turn(results))
