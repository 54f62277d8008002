"""Test doubles for the LLM, embedding provider, vector store, web search and user input."""

from .mock_llm import ToolCallingFakeChatModel, create_mock_llm, tool_call_message
from .fakes import (
    FakeEmbeddingProvider,
    FakeWebSearch,
    InMemoryVectorStore,
    RecordingDisplay,
    ScriptedUserInput,
    StaticVectorStore,
    UnreachableVectorStore,
)

__all__ = [
    "ToolCallingFakeChatModel",
    "create_mock_llm",
    "tool_call_message",
    "FakeEmbeddingProvider",
    "FakeWebSearch",
    "InMemoryVectorStore",
    "RecordingDisplay",
    "ScriptedUserInput",
    "StaticVectorStore",
    "UnreachableVectorStore",
]
