"""Unit tests for the fallback file store."""

import json

from code_editor.rag.fallback import (
    FALLBACK_PREFIX,
    METADATA_SEPARATOR,
    NO_FALLBACK_FILES,
    NO_RELEVANT_RESULTS,
    FallbackStore,
)


class TestWrite:
    def test_writes_text_with_metadata_footer(self, fallback_store, workspace):
        path = fallback_store.write("remember the deploy key rotation", {"topic": "ops"})
        assert path.parent == workspace
        assert path.name.startswith(FALLBACK_PREFIX)
        assert path.read_text(encoding="utf-8") == (
            "remember the deploy key rotation" + METADATA_SEPARATOR + "topic: ops\n"
        )

    def test_no_metadata_means_no_footer(self, fallback_store):
        path = fallback_store.write("plain note")
        assert path.read_text(encoding="utf-8") == "plain note"

    def test_consecutive_writes_never_collide(self, fallback_store):
        paths = {fallback_store.write(f"note {i}") for i in range(5)}
        assert len(paths) == 5
        assert len(fallback_store.files()) == 5

    def test_creates_missing_root(self, tmp_path):
        store = FallbackStore(tmp_path / "not" / "yet")
        store.write("x")
        assert len(store.files()) == 1


class TestSearch:
    def test_no_files_message(self, fallback_store):
        assert fallback_store.search("anything") == NO_FALLBACK_FILES

    def test_no_match_message(self, fallback_store):
        fallback_store.write("apples and pears")
        assert fallback_store.search("kubernetes") == NO_RELEVANT_RESULTS

    def test_results_ranked_by_term_count(self, fallback_store):
        fallback_store.write("retry once")
        fallback_store.write("retry retry retry\nbackoff with retry")
        results = json.loads(fallback_store.search("Retry"))
        assert [r["relevance"] for r in results] == [4, 1]
        assert results[0]["matched_line"] == "retry retry retry"
        assert set(results[0]) == {"filename", "content", "relevance", "matched_line"}

    def test_at_most_five_results(self, fallback_store):
        for i in range(7):
            fallback_store.write(f"token {i}")
        assert len(json.loads(fallback_store.search("token"))) == 5

    def test_unrelated_files_ignored(self, fallback_store, workspace):
        (workspace / "notes.txt").write_text("token token", encoding="utf-8")
        assert fallback_store.search("token") == NO_FALLBACK_FILES
