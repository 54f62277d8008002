"""Conversation model: an append-only sequence of user, assistant and tool-result turns."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL_RESULT = "tool_result"


class BlockKind(str, Enum):
    TEXT = "text"
    TOOL_USE = "tool_use"
    TOOL_RESULT = "tool_result"


@dataclass(frozen=True)
class TextBlock:
    text: str
    kind: BlockKind = field(default=BlockKind.TEXT, init=False)


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool call requested by the model.

    raw_input is the JSON text of the arguments exactly as the model sent
    them; it may be malformed, in which case the dispatcher reports a
    validation error back to the model.
    """

    id: str
    name: str
    raw_input: str
    kind: BlockKind = field(default=BlockKind.TOOL_USE, init=False)

    @classmethod
    def from_args(cls, id: str, name: str, args: dict) -> "ToolUseBlock":
        return cls(id=id, name=name, raw_input=json.dumps(args))


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content: str
    is_error: bool = False
    kind: BlockKind = field(default=BlockKind.TOOL_RESULT, init=False)


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock


@dataclass(frozen=True)
class Turn:
    role: Role
    blocks: tuple[ContentBlock, ...]

    @property
    def text(self) -> str:
        return "\n".join(b.text for b in self.blocks if isinstance(b, TextBlock))

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.blocks if isinstance(b, ToolUseBlock)]

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.blocks if isinstance(b, ToolResultBlock)]


def user_turn(text: str) -> Turn:
    return Turn(role=Role.USER, blocks=(TextBlock(text),))


def assistant_turn(*blocks: TextBlock | ToolUseBlock) -> Turn:
    return Turn(role=Role.ASSISTANT, blocks=tuple(blocks))


def tool_result_turn(results: list[ToolResultBlock]) -> Turn:
    return Turn(role=Role.TOOL_RESULT, blocks=tuple(results))


class Conversation:
    """Ordered, append-only history owned by one Agent for one process run."""

    def __init__(self) -> None:
        self._turns: list[Turn] = []

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))
