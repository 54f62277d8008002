"""Unit tests for .gitignore/.indexignore handling."""

import pytest

from code_editor.rag.ignore import load_ignore_patterns, parse_ignore_lines, should_ignore


@pytest.fixture
def patterns():
    return parse_ignore_lines([
        "# build output",
        "",
        "*.log",
        "build/",
        "/docs",
        "vendor/**/testdata",
        "!keep.log",
    ])


class TestShouldIgnore:
    def test_glob_matches_at_any_depth(self, patterns):
        assert should_ignore("app.log", False, patterns)
        assert should_ignore("deep/nested/app.log", False, patterns)

    def test_negation_reincludes(self, patterns):
        assert not should_ignore("keep.log", False, patterns)

    def test_directory_pattern(self, patterns):
        assert should_ignore("build", True, patterns)
        assert should_ignore("build/out.go", False, patterns)
        assert should_ignore("src/build", True, patterns)
        # A plain file named like the directory pattern is kept
        assert not should_ignore("build", False, patterns)

    def test_anchored_pattern_only_at_root(self, patterns):
        assert should_ignore("docs", True, patterns)
        assert should_ignore("docs/index.md", False, patterns)
        assert not should_ignore("src/docs/index.md", False, patterns)

    def test_double_star(self, patterns):
        assert should_ignore("vendor/a/b/testdata/x.go", False, patterns)
        assert should_ignore("vendor/testdata", True, patterns)

    def test_dot_components_always_ignored(self):
        assert should_ignore(".git", True, [])
        assert should_ignore("pkg/.cache/x.py", False, [])
        assert should_ignore(".env", False, parse_ignore_lines(["!.env"]))

    def test_unmatched_path_kept(self, patterns):
        assert not should_ignore("src/main.go", False, patterns)


def test_indexignore_can_override_gitignore(tmp_path):
    (tmp_path / ".gitignore").write_text("generated/\n", encoding="utf-8")
    (tmp_path / ".indexignore").write_text("!generated/\n", encoding="utf-8")
    patterns = load_ignore_patterns(tmp_path)
    assert not should_ignore("generated", True, patterns)


def test_no_ignore_files(tmp_path):
    assert load_ignore_patterns(tmp_path) == []
