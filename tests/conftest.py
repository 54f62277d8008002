"""Pytest configuration and fixtures for agent testing."""

import pytest

from code_editor.logging_config import reset_logging
from code_editor.rag.fallback import FallbackStore
from code_editor.testing.fakes import (
    FakeEmbeddingProvider,
    InMemoryVectorStore,
    RecordingDisplay,
)
from code_editor.testing.mock_llm import create_mock_llm
from code_editor.tools.sandbox import Sandbox

_ENV_VARS = (
    "OPENAI_API_KEY",
    "BRAVE_API_KEY",
    "CODE_EDITOR_LLM_API_KEY",
    "CODE_EDITOR_LLM_BASE_URL",
    "CODE_EDITOR_LLM_MODEL",
    "CODE_EDITOR_LOG_LEVEL",
    "CODE_EDITOR_LOG_FILE",
    "CODE_EDITOR_WORKSPACE",
    "CODE_EDITOR_INDEX_DIR",
    "CODE_EDITOR_EMBEDDING_PROVIDER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real credentials and overrides from leaking into tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    reset_logging()


@pytest.fixture
def workspace(tmp_path):
    """Sandbox root directory for file tools.

    Returns:
        Path to an empty workspace directory
    """
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def sandbox(workspace):
    return Sandbox(workspace)


@pytest.fixture
def fallback_store(workspace):
    return FallbackStore(workspace)


@pytest.fixture
def embedder():
    return FakeEmbeddingProvider(dimension=8)


@pytest.fixture
def memory_store():
    return InMemoryVectorStore()


@pytest.fixture
def display():
    return RecordingDisplay()


@pytest.fixture
def mock_llm_factory():
    """Factory for creating mock LLMs with scripted responses.

    Example:
        >>> def test_agent(mock_llm_factory):
        ...     llm = mock_llm_factory(["Done."])
    """
    def _factory(responses):
        return create_mock_llm(responses)
    return _factory
