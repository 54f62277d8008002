"""Integration tests for the indexing pipeline over a real directory tree."""

import pytest

from code_editor.cancellation import CancellationToken
from code_editor.errors import IndexingError, OperationCancelled
from code_editor.rag.indexer import TRUNCATION_MARKER, IndexingPipeline
from code_editor.testing.fakes import FakeEmbeddingProvider, InMemoryVectorStore, UnreachableVectorStore

GO_FILE = """package calc

func Add(a, b int) int {
\treturn a + b
}

func Sub(a, b int) int {
\treturn a - b
}
"""


@pytest.fixture
def tree(tmp_path):
    root = tmp_path / "src"
    root.mkdir()
    (root / "calc.go").write_text(GO_FILE, encoding="utf-8")
    return root


class TestIndexDirectory:
    def test_one_snippet_per_function(self, tree, embedder, memory_store):
        stats = IndexingPipeline(embedder, memory_store).index_directory(tree)

        assert stats.snippets == 2
        assert stats.files_indexed == 1
        snippets = sorted(memory_store.snippets.values(), key=lambda s: s.start_line)
        assert [(s.symbols, s.start_line, s.end_line) for s in snippets] == [
            (("Add",), 3, 5),
            (("Sub",), 7, 9),
        ]
        assert all(s.file_path == "calc.go" for s in snippets)
        assert all(s.embedding.dimension == 8 for s in snippets)

    def test_embedding_text_carries_path_and_symbols(self, tree, embedder, memory_store):
        IndexingPipeline(embedder, memory_store).index_directory(tree)
        (batch,) = embedder.batches
        assert batch[0].startswith("File: calc.go\nSymbols: Add\nfunc Add")

    def test_batches_preserve_counts(self, tree, embedder, memory_store):
        for i in range(3):
            (tree / f"note{i}.md").write_text(f"# Note {i}\n", encoding="utf-8")
        stats = IndexingPipeline(embedder, memory_store, batch_size=2).index_directory(tree)
        assert stats.snippets == 5
        assert stats.batches == 3
        assert [len(b) for b in embedder.batches] == [2, 2, 1]
        assert memory_store.upsert_calls == 3

    def test_whole_file_snippet_for_other_text(self, tree, embedder, memory_store):
        (tree / "README.md").write_text("line one\nline two\n", encoding="utf-8")
        IndexingPipeline(embedder, memory_store).index_directory(tree)
        readme = next(s for s in memory_store.snippets.values() if s.file_path == "README.md")
        assert readme.start_line == 1
        assert readme.end_line == 3
        assert readme.metadata["file_type"] == "md"
        assert readme.metadata["file_name"] == "README.md"

    def test_long_file_truncated(self, tree, embedder, memory_store):
        (tree / "big.txt").write_text("a" * 500, encoding="utf-8")
        IndexingPipeline(embedder, memory_store, max_snippet_chars=100).index_directory(tree)
        big = next(s for s in memory_store.snippets.values() if s.file_path == "big.txt")
        assert big.content == "a" * 100 + TRUNCATION_MARKER
        assert big.metadata["truncated"] == "true"

    def test_python_without_declarations_indexed_whole(self, tree, embedder, memory_store):
        (tree / "settings.py").write_text("DEBUG = True\n", encoding="utf-8")
        IndexingPipeline(embedder, memory_store).index_directory(tree)
        assert any(s.file_path == "settings.py" and s.content == "DEBUG = True\n"
                   for s in memory_store.snippets.values())

    def test_skips_binary_empty_ignored_and_hidden(self, tree, embedder, memory_store):
        (tree / "blob.bin").write_bytes(b"\x00\x01\x02\x03" * 300)
        (tree / "empty.txt").write_bytes(b"")
        (tree / ".gitignore").write_text("build/\n*.log\n", encoding="utf-8")
        (tree / "build").mkdir()
        (tree / "build" / "gen.go").write_text(GO_FILE, encoding="utf-8")
        (tree / "debug.log").write_text("noise", encoding="utf-8")
        (tree / ".git").mkdir()
        (tree / ".git" / "config").write_text("[core]", encoding="utf-8")

        stats = IndexingPipeline(embedder, memory_store).index_directory(tree)

        assert {s.file_path for s in memory_store.snippets.values()} == {"calc.go"}
        assert dict(stats.skipped) == {"blob.bin": "binary file", "empty.txt": "empty file"}

    def test_unparseable_file_recorded_as_failed(self, tree, embedder, memory_store):
        (tree / "broken.py").write_text("def broken(:\n", encoding="utf-8")
        stats = IndexingPipeline(embedder, memory_store).index_directory(tree)
        assert [path for path, _ in stats.failed] == ["broken.py"]
        assert stats.snippets == 2

    def test_ignored_directory_not_descended(self, tree, embedder, memory_store):
        (tree / ".indexignore").write_text("vendor/\n", encoding="utf-8")
        (tree / "vendor" / "deep").mkdir(parents=True)
        (tree / "vendor" / "deep" / "x.go").write_text(GO_FILE, encoding="utf-8")
        files = IndexingPipeline(embedder, memory_store).walk(tree)
        assert [p.name for p in files] == ["calc.go"]


class TestFailures:
    def test_embedding_failure_is_indexing_error(self, tree, memory_store):
        pipeline = IndexingPipeline(FakeEmbeddingProvider(fail=True), memory_store)
        with pytest.raises(IndexingError, match="failed to embed batch 1"):
            pipeline.index_directory(tree)
        assert memory_store.snippets == {}

    def test_count_mismatch_is_indexing_error(self, tree, memory_store):
        pipeline = IndexingPipeline(FakeEmbeddingProvider(empty=True), memory_store)
        with pytest.raises(IndexingError, match="mismatch"):
            pipeline.index_directory(tree)

    def test_store_failure_is_indexing_error(self, tree, embedder):
        with pytest.raises(IndexingError, match="failed to upsert batch 1"):
            IndexingPipeline(embedder, UnreachableVectorStore()).index_directory(tree)

    def test_earlier_batches_stay_committed(self, tree, memory_store):
        class FailsSecondBatch(FakeEmbeddingProvider):
            def embed(self, texts):
                if self.batches:
                    self.fail = True
                return super().embed(texts)

        pipeline = IndexingPipeline(FailsSecondBatch(), memory_store, batch_size=1)
        with pytest.raises(IndexingError):
            pipeline.index_directory(tree)
        assert len(memory_store.snippets) == 1

    def test_missing_root(self, tmp_path, embedder, memory_store):
        with pytest.raises(IndexingError, match="Not a directory"):
            IndexingPipeline(embedder, memory_store).index_directory(tmp_path / "nope")

    def test_cancellation_between_files(self, tree, embedder, memory_store):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            IndexingPipeline(embedder, memory_store).index_directory(tree, token)

    def test_invalid_batch_size(self, embedder, memory_store):
        with pytest.raises(ValueError):
            IndexingPipeline(embedder, memory_store, batch_size=0)
