"""LLM client: converts the conversation to langchain messages and back."""

import json
import uuid
from typing import Optional, Protocol, assert_never

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI

from .config import LLMSettings
from .conversation import (
    BlockKind,
    Conversation,
    Role,
    TextBlock,
    ToolUseBlock,
    Turn,
    assistant_turn,
)
from .errors import ConfigurationError, TransportError
from .logging_config import get_logger
from .tools.registry import ToolDefinition

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a coding assistant working inside a sandboxed workspace directory. "
    "Use the available tools to inspect and change files; all paths are relative "
    "to the workspace root. When the user message starts with retrieved code "
    "snippets, treat them as context for the query that follows."
)


class LLMClient(Protocol):
    def infer(self, conversation: Conversation, tools: list[ToolDefinition]) -> Turn:
        ...


def _tool_call_args(block: ToolUseBlock) -> Optional[dict]:
    try:
        args = json.loads(block.raw_input) if block.raw_input else {}
    except json.JSONDecodeError:
        return None
    return args if isinstance(args, dict) else None


def _assistant_message(turn: Turn) -> AIMessage:
    text_parts = []
    tool_calls = []
    invalid_tool_calls = []
    for block in turn.blocks:
        match block.kind:
            case BlockKind.TEXT:
                text_parts.append(block.text)
            case BlockKind.TOOL_USE:
                args = _tool_call_args(block)
                if args is None:
                    # Replay malformed arguments verbatim so the model sees its own mistake
                    invalid_tool_calls.append({
                        "name": block.name,
                        "args": block.raw_input,
                        "id": block.id,
                        "error": None,
                        "type": "invalid_tool_call",
                    })
                else:
                    tool_calls.append({
                        "name": block.name,
                        "args": args,
                        "id": block.id,
                        "type": "tool_call",
                    })
            case BlockKind.TOOL_RESULT:
                raise ValueError("assistant turns cannot carry tool results")
            case _:
                assert_never(block.kind)
    return AIMessage(
        content="\n".join(text_parts),
        tool_calls=tool_calls,
        invalid_tool_calls=invalid_tool_calls,
    )


def to_messages(conversation: Conversation, system_prompt: Optional[str] = None) -> list[BaseMessage]:
    """Translate the conversation into the langchain message list sent to the model."""
    messages: list[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))

    for turn in conversation:
        match turn.role:
            case Role.USER:
                messages.append(HumanMessage(content=turn.text))
            case Role.ASSISTANT:
                messages.append(_assistant_message(turn))
            case Role.TOOL_RESULT:
                for result in turn.tool_results:
                    messages.append(ToolMessage(
                        content=result.content,
                        tool_call_id=result.tool_use_id,
                        status="error" if result.is_error else "success",
                    ))
            case _:
                assert_never(turn.role)
    return messages


def _text_of(content: str | list) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, dict) and item.get("type") == "text":
            parts.append(item.get("text", ""))
    return "".join(parts)


def from_message(message: AIMessage) -> Turn:
    """Translate a model reply into an assistant turn (text first, then tool calls in order)."""
    blocks: list[TextBlock | ToolUseBlock] = []
    text = _text_of(message.content)
    if text:
        blocks.append(TextBlock(text))
    for call in message.tool_calls:
        blocks.append(ToolUseBlock(
            id=call.get("id") or f"call_{uuid.uuid4().hex}",
            name=call["name"],
            raw_input=json.dumps(call.get("args") or {}),
        ))
    for call in message.invalid_tool_calls:
        blocks.append(ToolUseBlock(
            id=call.get("id") or f"call_{uuid.uuid4().hex}",
            name=call.get("name") or "",
            raw_input=call.get("args") or "",
        ))
    return assistant_turn(*blocks)


class ChatModelClient:
    """LLMClient over any langchain chat model that supports tool binding."""

    def __init__(self, model: BaseChatModel, system_prompt: Optional[str] = DEFAULT_SYSTEM_PROMPT) -> None:
        self.model = model
        self.system_prompt = system_prompt

    def infer(self, conversation: Conversation, tools: list[ToolDefinition]) -> Turn:
        """Send the whole conversation plus the tool catalog and return the reply.

        Raises:
            TransportError: If the provider call fails or returns no message
        """
        messages = to_messages(conversation, self.system_prompt)
        runnable = self.model.bind_tools([d.tool for d in tools]) if tools else self.model
        try:
            reply = runnable.invoke(messages)
        except Exception as e:
            raise TransportError(f"LLM request failed: {e}") from e

        if not isinstance(reply, AIMessage):
            raise TransportError(f"LLM returned {type(reply).__name__}, expected an AI message")
        logger.debug(
            "LLM reply: %d chars, %d tool calls",
            len(_text_of(reply.content)),
            len(reply.tool_calls),
        )
        return from_message(reply)


def create_chat_model(settings: LLMSettings) -> ChatOpenAI:
    """Configured ChatOpenAI instance.

    An API key is required unless a custom base_url points at an
    OpenAI-compatible server that does not authenticate.

    Raises:
        ConfigurationError: If neither an API key nor a base_url is configured
    """
    if not settings.api_key and not settings.base_url:
        raise ConfigurationError(
            "No LLM API key configured; set OPENAI_API_KEY or CODE_EDITOR_LLM_API_KEY"
        )
    kwargs = {
        "model": settings.model,
        "api_key": settings.api_key or "not-needed",
        "max_tokens": settings.max_tokens,
        "temperature": settings.temperature,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return ChatOpenAI(**kwargs)
