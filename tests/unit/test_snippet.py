"""Unit tests for snippets and embeddings."""

import pytest

from code_editor.rag.snippet import Embedding, Snippet


class TestSnippet:
    def test_embedding_text_includes_path_and_symbols(self):
        snippet = Snippet(content="def f(): pass", file_path="m.py", symbols=("f", "g"))
        assert snippet.embedding_text() == "File: m.py\nSymbols: f, g\ndef f(): pass"

    def test_embedding_text_without_symbols(self):
        snippet = Snippet(content="x = 1", file_path="m.py")
        assert snippet.embedding_text() == "File: m.py\nx = 1"

    def test_with_embedding_returns_copy(self):
        snippet = Snippet(content="x", file_path="a.py", start_line=1, end_line=1)
        embedded = snippet.with_embedding(Embedding.of([0.1, 0.2]))
        assert snippet.embedding is None
        assert embedded.embedding.dimension == 2
        assert embedded.id == snippet.id

    def test_inverted_line_range_rejected(self):
        with pytest.raises(ValueError):
            Snippet(content="x", file_path="a.py", start_line=5, end_line=2)

    def test_ids_are_unique(self):
        assert Snippet(content="x", file_path="a").id != Snippet(content="x", file_path="a").id

    def test_to_dict_omits_embedding(self):
        snippet = Snippet(content="x", file_path="a.go", symbols=["A"]).with_embedding(Embedding.of([1.0]))
        data = snippet.to_dict()
        assert "embedding" not in data
        assert data["symbols"] == ["A"]


def test_embedding_values_are_floats():
    embedding = Embedding.of([1, 2, 3])
    assert embedding.values == (1.0, 2.0, 3.0)
    assert len(embedding) == 3
