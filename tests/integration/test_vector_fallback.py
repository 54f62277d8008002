"""Integration tests: vector tools through the dispatcher when the store is down."""

import json

from code_editor.rag.fallback import METADATA_SEPARATOR, FallbackStore
from code_editor.testing.fakes import FakeEmbeddingProvider, UnreachableVectorStore
from code_editor.tools.registry import ToolRepository
from code_editor.tools.vector import VectorTools


def _repository(sandbox, store):
    vector_tools = VectorTools(FakeEmbeddingProvider(), store, FallbackStore(sandbox.root))
    return ToolRepository.build(sandbox, vector_tools=vector_tools)


def test_upsert_falls_back_to_file_and_reports_success(sandbox, workspace):
    store = UnreachableVectorStore()
    repo = _repository(sandbox, store)

    result = repo.execute(
        "u1",
        "vector_upsert",
        json.dumps({"text_content": "deploys happen on Tuesdays", "metadata": {"team": "infra"}}),
    )

    assert result.is_error is False
    assert result.content.startswith("Successfully stored content in fallback file 'vector_store_fallback_")
    assert store.attempts == 1
    (path,) = workspace.glob("vector_store_fallback_*.txt")
    assert path.read_text(encoding="utf-8") == (
        "deploys happen on Tuesdays" + METADATA_SEPARATOR + "team: infra\n"
    )


def test_search_reads_back_fallback_files(sandbox):
    repo = _repository(sandbox, UnreachableVectorStore())
    repo.execute("u1", "vector_upsert", json.dumps({"text_content": "deploys happen on Tuesdays"}))
    repo.execute("u2", "vector_upsert", json.dumps({"text_content": "lunch is at noon"}))

    result = repo.execute("s1", "vector_search", json.dumps({"query": "deploys"}))

    assert result.is_error is False
    (hit,) = json.loads(result.content)
    assert hit["content"] == "deploys happen on Tuesdays"
    assert hit["matched_line"] == "deploys happen on Tuesdays"


def test_missing_text_is_error_result(sandbox):
    repo = _repository(sandbox, UnreachableVectorStore())
    result = repo.execute("u3", "vector_upsert", "{}")
    assert result.is_error is True
